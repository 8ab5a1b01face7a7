from dataclasses import dataclass, field


@dataclass
class AllowedIP:
    address: str
    prefixlen: int

    def __str__(self) -> str:
        return "{}/{}".format(self.address, self.prefixlen)


@dataclass
class PeerEndpoint:
    address: str
    port: int


@dataclass
class WireGuardPeerState:
    public_key: str
    preshared: bool
    endpoint: PeerEndpoint | None
    allowed_ips: list[AllowedIP]
    latest_handshake: int
    rx: int
    tx: int
    keepalive: int | None = None


@dataclass
class WireGuardDeviceState:
    name: str
    public_key: str = ''
    listen: int = 0
    fwmark: int = 0
    peers: list[WireGuardPeerState] = field(default_factory=list)
