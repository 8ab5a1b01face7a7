from dataclasses import dataclass, field
from wgexporter.common.logger import get_logger
from wgexporter.models.annotation import PeerAnnotation
from wgexporter.models.device import AllowedIP, PeerEndpoint, WireGuardDeviceState, WireGuardPeerState


logger = get_logger("aggregate")


@dataclass
class PeerMetricRecord:
    interface: str
    peer: WireGuardPeerState
    # ordered, values unescaped
    annotation_labels: list[tuple[str, str]] = field(default_factory=list)

    @property
    def public_key(self) -> str:
        return self.peer.public_key

    @property
    def allowed_ips(self) -> list[AllowedIP]:
        return self.peer.allowed_ips

    @property
    def endpoint(self) -> PeerEndpoint | None:
        return self.peer.endpoint

    @property
    def sent_bytes(self) -> int:
        return self.peer.tx

    @property
    def received_bytes(self) -> int:
        return self.peer.rx

    @property
    def latest_handshake(self) -> int:
        return self.peer.latest_handshake


def aggregate(devices: list[WireGuardDeviceState], annotations: dict[str, PeerAnnotation] | None = None) -> list[PeerMetricRecord]:
    """
    Flatten devices into one record per (interface, peer), keeping interface
    order and peer order as parsed. The same public key on two interfaces
    gives two records.
    """
    annotations = annotations or {}
    records: list[PeerMetricRecord] = []
    matched: set[str] = set()

    for device in devices:
        for peer in device.peers:
            annotation = annotations.get(peer.public_key)
            labels: list[tuple[str, str]] = []
            if annotation is not None:
                labels = annotation.labels()
                matched.add(peer.public_key)

            records.append(PeerMetricRecord(interface=device.name, peer=peer, annotation_labels=labels))

    unmatched = len(annotations) - len(matched)
    if unmatched:
        logger.debug('{} annotations did not match any peer'.format(unmatched))

    return records
