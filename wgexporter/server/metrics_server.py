from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable
from wgexporter.common.errors import ExporterError
from wgexporter.common.logger import get_logger
from wgexporter.metrics.render import CONTENT_TYPE
from wgexporter.models.config import ExporterOptions


logger = get_logger("http")

METRICS_PATH = "/metrics"


class MetricsRequestHandler(BaseHTTPRequestHandler):
    # set on the subclass built by make_handler
    scrape_func: Callable[[], str]

    def _send(self, code: int, body: str, content_type: str = "text/plain; charset=utf-8"):
        payload = body.encode('utf-8')
        self.send_response(code)
        self.send_header('Content-Type', content_type)
        self.send_header('Content-Length', str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def do_GET(self):
        path = self.path.split('?', 1)[0]
        if path == "/":
            self._send(200, '<html><body><a href="{0}">{0}</a></body></html>\n'.format(METRICS_PATH), "text/html; charset=utf-8")
            return
        if path != METRICS_PATH:
            self._send(404, "not found\n")
            return

        try:
            body = type(self).scrape_func()
        except ExporterError as e:
            logger.error('scrape failed: {}'.format(e))
            self._send(500, "scrape failed: {}\n".format(e))
            return

        self._send(200, body, CONTENT_TYPE)

    def log_message(self, format, *args):
        logger.debug('{} {}'.format(self.address_string(), format % args))


def make_handler(scrape_func: Callable[[], str]):
    return type("BoundMetricsRequestHandler", (MetricsRequestHandler,), {"scrape_func": staticmethod(scrape_func)})


def create_server(options: ExporterOptions, scrape_func: Callable[[], str]) -> ThreadingHTTPServer:
    server = ThreadingHTTPServer((options.address, options.port), make_handler(scrape_func))
    server.daemon_threads = True
    return server


def serve(options: ExporterOptions, scrape_func: Callable[[], str]):
    server = create_server(options, scrape_func)
    host, port = server.server_address[:2]
    logger.info('starting exporter on http://{}:{}{}'.format(host, port, METRICS_PATH))
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info('interrupted, shutting down')
    finally:
        server.server_close()
