import argparse
import functools
import os
from pydantic import ValidationError
from wgexporter.common.logger import get_logger, setup_logging
from wgexporter.exporter import scrape
from wgexporter.models.config import ExporterOptions
from wgexporter.server.metrics_server import serve


logger = get_logger("cli")

ENV_PREFIX = "WG_EXPORTER_"


def env_str(name: str, default=None):
    return os.environ.get(ENV_PREFIX + name, default)


def env_bool(name: str) -> bool:
    return env_str(name, "").strip().lower() in ("1", "true", "yes", "on")


def env_list(name: str) -> list[str]:
    return [s.strip() for s in env_str(name, "").split(",") if s.strip()]


def build_parser():
    parser = argparse.ArgumentParser(prog="wgexporter", description="Prometheus exporter for WireGuard peers")

    parser.add_argument("-l", "--address", default=env_str("ADDRESS", "0.0.0.0"), help="listen address")
    parser.add_argument("-p", "--port", default=env_str("PORT", "9586"), help="listen port")
    parser.add_argument("-v", "--verbose", action="store_true", default=env_bool("VERBOSE"), help="verbose logging")

    parser.add_argument("-a", "--prepend-sudo", action="store_true", default=env_bool("PREPEND_SUDO"),
                        help="prepend sudo to the wg show commands")
    parser.add_argument("--namespace", default=env_str("NAMESPACE", ""), help="run wg inside this network namespace")
    parser.add_argument("--command-timeout", default=env_str("COMMAND_TIMEOUT", "5"),
                        help="seconds before a wg show command is abandoned")
    parser.add_argument("-i", "--interface", dest="interfaces", action="append", default=None,
                        help="interface passed to wg show, repeatable (default: all)")

    parser.add_argument("-n", "--config-file", dest="config_files", action="append", default=None,
                        help="WireGuard config file to read friendly_name/friendly_json comments from, repeatable")

    parser.add_argument("-s", "--split-allowed-ips", action="store_true", default=env_bool("SPLIT_ALLOWED_IPS"),
                        help="export one allowed_ip_N/allowed_subnet_N label pair per allowed ip")
    parser.add_argument("-r", "--export-remote-endpoint", action="store_true", default=env_bool("EXPORT_REMOTE_ENDPOINT"),
                        help="export the peer endpoint address and port as labels")
    parser.add_argument("--export-peers-total", action="store_true", default=env_bool("EXPORT_PEERS_TOTAL"),
                        help="export wireguard_peers_total per interface")
    parser.add_argument("-t", "--handshake-timeout", dest="handshake_timeout_seconds",
                        default=env_str("HANDSHAKE_TIMEOUT_SECONDS"),
                        help="split wireguard_peers_total by handshakes newer than this many seconds")

    return parser


def options_from_args(parser: argparse.ArgumentParser, argv=None) -> ExporterOptions:
    args = parser.parse_args(argv)

    try:
        return ExporterOptions(
            address=args.address,
            port=args.port,
            verbose=args.verbose,
            prepend_sudo=args.prepend_sudo,
            namespace=args.namespace,
            command_timeout=args.command_timeout,
            interfaces=args.interfaces or env_list("INTERFACES") or ["all"],
            config_files=args.config_files or env_list("CONFIG_FILES"),
            allowed_ips_mode="split" if args.split_allowed_ips else "combined",
            export_remote_endpoint=args.export_remote_endpoint,
            export_peers_total=args.export_peers_total or args.handshake_timeout_seconds is not None,
            handshake_timeout_seconds=args.handshake_timeout_seconds,
        )
    except ValidationError as e:
        parser.error(str(e))


def main(argv=None):
    parser = build_parser()
    options = options_from_args(parser, argv)

    setup_logging(options.verbose)
    logger.info('using options: {}'.format(options.model_dump()))

    serve(options, functools.partial(scrape, options))


if __name__ == "__main__":
    main()
