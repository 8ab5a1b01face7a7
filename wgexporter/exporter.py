from typing import Iterable
from wgexporter.common.logger import get_logger
from wgexporter.config.annotations import load_annotations, merge_annotations
from wgexporter.device.wireguard import collect_devices, parse_wireguard_dump
from wgexporter.metrics.aggregate import aggregate
from wgexporter.metrics.render import render_metrics
from wgexporter.models.config import ExporterOptions, RenderOptions


logger = get_logger("exporter")


def translate(dump_output: str, config_texts: Iterable[str] = (), options: RenderOptions | None = None) -> str:
    "dump text + configuration texts -> exposition text, no I/O"

    devices = parse_wireguard_dump(dump_output)
    records = aggregate(devices, merge_annotations(config_texts))
    return render_metrics(records, options, devices=devices)


def scrape(options: ExporterOptions) -> str:
    """
    One full scrape: fresh annotation files, fresh `wg show` output, rendered
    document. Any ExporterError propagates and no document is produced.
    """
    annotations = load_annotations(options.config_files)
    devices = collect_devices(
        options.interfaces,
        namespace=options.namespace,
        prepend_sudo=options.prepend_sudo,
        timeout=options.command_timeout,
    )
    records = aggregate(devices, annotations)
    logger.debug('rendering {} peer records'.format(len(records)))
    return render_metrics(records, options.render_options(), devices=devices)
