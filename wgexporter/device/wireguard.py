from wgexporter.common.errors import DumpParseError
from wgexporter.common.logger import get_logger
from wgexporter.common.utils import ns_wrap, sudo_wrap, call_output, split_hostport, is_uint
from wgexporter.models.device import AllowedIP, PeerEndpoint, WireGuardPeerState, WireGuardDeviceState


logger = get_logger("wireguard")

NONE = '(none)'
OFF = 'off'

INTERFACE_FIELDS = 5
PEER_FIELDS = 9


def _uint(value: str, field_name: str, lineno: int, line: str) -> int:
    if not is_uint(value):
        raise DumpParseError(lineno, "{} is not a non-negative integer: {!r}".format(field_name, value), line)
    return int(value)


def _optional_uint(value: str, field_name: str, lineno: int, line: str) -> int | None:
    if value in (NONE, OFF):
        return None
    return _uint(value, field_name, lineno, line)


def _parse_fwmark(value: str, lineno: int, line: str) -> int:
    # wg prints a set fwmark as 0x-prefixed hex
    if value.lower().startswith('0x'):
        try:
            return int(value[2:], 16)
        except ValueError:
            raise DumpParseError(lineno, "fwmark is not a hex number: {!r}".format(value), line)
    return _optional_uint(value, "fwmark", lineno, line) or 0


def _parse_endpoint(value: str, lineno: int, line: str) -> PeerEndpoint | None:
    if value == NONE:
        return None

    try:
        host, port = split_hostport(value)
    except ValueError as e:
        raise DumpParseError(lineno, str(e), line)

    return PeerEndpoint(address=host, port=_uint(port, "endpoint port", lineno, line))


def _parse_allowed_ips(value: str, lineno: int, line: str) -> list[AllowedIP]:
    if value == NONE or not value:
        return []

    allowed_ips: list[AllowedIP] = []
    for entry in value.split(','):
        address, sep, prefixlen = entry.strip().partition('/')
        if not sep or not address:
            raise DumpParseError(lineno, "allowed ip without prefix length: {!r}".format(entry), line)
        allowed_ips.append(AllowedIP(address=address, prefixlen=_uint(prefixlen, "allowed ip prefix", lineno, line)))

    return allowed_ips


def parse_wireguard_dump(output: str) -> list[WireGuardDeviceState]:
    """
    Parse the output of `wg show all dump`.

    Interface rows have 5 tab separated fields, peer rows have 9. Interfaces are
    returned in order of first appearance and peers keep their row order.
    Raises DumpParseError on the first bad row, nothing is returned partially.
    """
    state_map: dict[str, WireGuardDeviceState] = {}

    for lineno, line in enumerate(output.splitlines(), start=1):
        if not line.strip():
            continue

        # empty fields are significant, never filter them out
        parts = line.split('\t')

        if len(parts) == INTERFACE_FIELDS:
            name = parts[0]
            state = state_map.get(name)
            if state is None:
                state = state_map[name] = WireGuardDeviceState(name=name)

            state.public_key = parts[1]
            state.listen = _uint(parts[3], "listen port", lineno, line)
            state.fwmark = _parse_fwmark(parts[4], lineno, line)
        elif len(parts) == PEER_FIELDS:
            name = parts[0]
            if name not in state_map:
                logger.debug('peer row before interface row for {}'.format(name))
                state_map[name] = WireGuardDeviceState(name=name)

            state_map[name].peers.append(WireGuardPeerState(
                public_key=parts[1],
                preshared=parts[2] not in ('', NONE),
                endpoint=_parse_endpoint(parts[3], lineno, line),
                allowed_ips=_parse_allowed_ips(parts[4], lineno, line),
                latest_handshake=_uint(parts[5], "latest handshake", lineno, line),
                rx=_uint(parts[6], "rx bytes", lineno, line),
                tx=_uint(parts[7], "tx bytes", lineno, line),
                keepalive=_optional_uint(parts[8], "persistent keepalive", lineno, line),
            ))
        else:
            raise DumpParseError(lineno, "expected {} or {} fields, got {}".format(INTERFACE_FIELDS, PEER_FIELDS, len(parts)), line)

    return list(state_map.values())


def prefix_interface_name(output: str, interface: str) -> str:
    # `wg show <if> dump` omits the interface column that `wg show all dump` has
    return ''.join("{}\t{}\n".format(interface, line) for line in output.splitlines() if line)


def dump_wireguard_state(interface: str, namespace: str = '', prepend_sudo: bool = False, timeout: float | None = None):
    output = call_output(sudo_wrap(ns_wrap(namespace, ["wg", "show", interface, "dump"]), prepend_sudo), timeout=timeout)
    if interface != 'all':
        logger.debug('injecting {} into wg show output'.format(interface))
        output = prefix_interface_name(output, interface)

    return parse_wireguard_dump(output)


def collect_devices(interfaces: list[str], namespace: str = '', prepend_sudo: bool = False, timeout: float | None = None) -> list[WireGuardDeviceState]:
    devices: list[WireGuardDeviceState] = []
    for interface in interfaces or ['all']:
        devices.extend(dump_wireguard_state(interface, namespace=namespace, prepend_sudo=prepend_sudo, timeout=timeout))

    logger.debug('collected {} interfaces, {} peers'.format(len(devices), sum(len(d.peers) for d in devices)))
    return devices
