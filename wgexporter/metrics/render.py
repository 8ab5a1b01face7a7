import time
from dataclasses import dataclass, field
from typing import Callable
from wgexporter.metrics.aggregate import PeerMetricRecord
from wgexporter.models.config import RenderOptions
from wgexporter.models.device import WireGuardDeviceState


CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

Labels = list[tuple[str, str]]


def escape_label_value(value: str) -> str:
    # backslash first, otherwise the other escapes get doubled
    return value.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')


def format_labels(labels: Labels) -> str:
    if not labels:
        return ''
    return '{' + ','.join('{}="{}"'.format(name, escape_label_value(value)) for name, value in labels) + '}'


@dataclass
class MetricFamily:
    name: str
    metric_type: str
    help: str
    samples: list[tuple[Labels, int]] = field(default_factory=list)

    def add(self, labels: Labels, value: int):
        self.samples.append((labels, value))

    def render(self) -> str:
        lines = [
            "# HELP {} {}".format(self.name, self.help),
            "# TYPE {} {}".format(self.name, self.metric_type),
        ]
        for labels, value in self.samples:
            lines.append("{}{} {}".format(self.name, format_labels(labels), int(value)))
        return '\n'.join(lines) + '\n'


def allowed_ip_labels(record: PeerMetricRecord, mode: str) -> Labels:
    if mode == "split":
        labels: Labels = []
        for idx, allowed_ip in enumerate(record.allowed_ips):
            labels.append(("allowed_ip_{}".format(idx), allowed_ip.address))
            labels.append(("allowed_subnet_{}".format(idx), str(allowed_ip.prefixlen)))
        return labels

    return [("allowed_ips", ','.join(str(allowed_ip) for allowed_ip in record.allowed_ips))]


def peer_labels(record: PeerMetricRecord, options: RenderOptions) -> Labels:
    "interface, public_key, allowed ips, endpoint/remote_port, annotation labels"

    labels: Labels = [
        ("interface", record.interface),
        ("public_key", record.public_key),
    ]
    labels.extend(allowed_ip_labels(record, options.allowed_ips_mode))

    if options.export_remote_endpoint and record.endpoint is not None:
        labels.append(("endpoint", record.endpoint.address))
        labels.append(("remote_port", str(record.endpoint.port)))

    labels.extend(record.annotation_labels)
    return labels


def peers_total_family(devices: list[WireGuardDeviceState], options: RenderOptions, now: int) -> MetricFamily:
    family = MetricFamily("wireguard_peers_total", "gauge", "Total number of peers")

    for device in devices:
        if options.handshake_timeout_seconds is None:
            family.add([("interface", device.name)], len(device.peers))
            continue

        seen = sum(1 for peer in device.peers if now - peer.latest_handshake < options.handshake_timeout_seconds)
        family.add([("interface", device.name), ("seen_recently", "true")], seen)
        family.add([("interface", device.name), ("seen_recently", "false")], len(device.peers) - seen)

    return family


def render_metrics(records: list[PeerMetricRecord], options: RenderOptions | None = None,
                   devices: list[WireGuardDeviceState] | None = None,
                   clock: Callable[[], float] = time.time) -> str:
    options = options or RenderOptions()

    sent = MetricFamily("wireguard_sent_bytes_total", "counter", "Bytes sent to the peer")
    received = MetricFamily("wireguard_received_bytes_total", "counter", "Bytes received from the peer")
    handshake = MetricFamily("wireguard_latest_handshake_seconds", "gauge", "UNIX timestamp seconds of the last handshake")

    for record in records:
        labels = peer_labels(record, options)
        sent.add(labels, record.sent_bytes)
        received.add(labels, record.received_bytes)
        handshake.add(labels, record.latest_handshake)

    families = [sent, received, handshake]
    if options.export_peers_total and devices is not None:
        families.append(peers_total_family(devices, options, int(clock())))

    return '\n'.join(family.render() for family in families)
