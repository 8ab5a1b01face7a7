import pytest

from wgexporter.common.errors import DumpParseError
from wgexporter.device.wireguard import parse_wireguard_dump, prefix_interface_name
from wgexporter.models.device import AllowedIP, PeerEndpoint


DUMP_ALL = (
    "wg0\t000q4qAC0ExW/BuGSmVR1nxH9JAXT6g9Wd3oEGy5lA=\t0000u8LWR682knVm350lnuqlCJzw5SNLW9Nf96P+m8=\t51820\toff\n"
    "wg0\t2S7mA0vEMethCNQrJpJKE81/JmhgtB+tHHLYQhgM6kk=\t(none)\t37.159.76.245:29159\t10.70.0.2/32,10.70.0.66/32\t1555771458\t10288508\t139524160\toff\n"
    "wg0\tqnoxQoQI8KKMupLnSSureORV0wMmH7JryZNsmGVISzU=\t(none)\t(none)\t10.70.0.3/32\t0\t0\t0\toff\n"
    "wg0\tL2UoJZN7RmEKsMmqaJgKG0m1S2Zs2wd2ptAf+kb3008=\t(none)\t(none)\t10.70.0.4/32\t0\t0\t0\toff\n"
    "wg2\tMdVOIPKt9K2MPj/sO2NlWQbOnFJcL/qX80mmhQwsUlA=\t(none)\t(none)\t10.70.5.50/32\t0\t0\t0\toff\n"
    "pollo\tYdVOIPKt9K2MPsO2NlWQbOnFJcL/qX80mmhQwsUlA=\t(none)\t(none)\t10.70.70.50/32\t0\t0\t0\toff\n"
    "wg0\t928vO9Lf4+Mo84cWu4k1oRyzf0AR7FTGoPKHGoTMSHk=\tsecretpsk=\t5.90.62.106:21741\t10.70.0.80/32\t1555344925\t283012\t6604620\t25\n"
)


def test_parse_empty_input():
    assert parse_wireguard_dump("") == []
    assert parse_wireguard_dump("\n\n") == []


def test_parse_interfaces_in_order_of_first_appearance():
    devices = parse_wireguard_dump(DUMP_ALL)

    assert [d.name for d in devices] == ["wg0", "wg2", "pollo"]
    assert [len(d.peers) for d in devices] == [4, 1, 1]
    assert sum(len(d.peers) for d in devices) == 6


def test_parse_peer_order_kept():
    wg0 = parse_wireguard_dump(DUMP_ALL)[0]

    assert [p.public_key for p in wg0.peers] == [
        "2S7mA0vEMethCNQrJpJKE81/JmhgtB+tHHLYQhgM6kk=",
        "qnoxQoQI8KKMupLnSSureORV0wMmH7JryZNsmGVISzU=",
        "L2UoJZN7RmEKsMmqaJgKG0m1S2Zs2wd2ptAf+kb3008=",
        "928vO9Lf4+Mo84cWu4k1oRyzf0AR7FTGoPKHGoTMSHk=",
    ]


def test_parse_interface_row():
    wg0 = parse_wireguard_dump(DUMP_ALL)[0]

    assert wg0.public_key == "000q4qAC0ExW/BuGSmVR1nxH9JAXT6g9Wd3oEGy5lA="
    assert wg0.listen == 51820
    assert wg0.fwmark == 0


def test_parse_peer_fields():
    peers = parse_wireguard_dump(DUMP_ALL)[0].peers

    first = peers[0]
    assert first.preshared is False
    assert first.endpoint == PeerEndpoint("37.159.76.245", 29159)
    assert first.allowed_ips == [AllowedIP("10.70.0.2", 32), AllowedIP("10.70.0.66", 32)]
    assert first.latest_handshake == 1555771458
    assert first.rx == 10288508
    assert first.tx == 139524160
    assert first.keepalive is None

    assert peers[1].endpoint is None

    last = peers[3]
    assert last.preshared is True
    assert last.keepalive == 25


def test_parse_empty_private_key_field():
    devices = parse_wireguard_dump(
        "wg0\tABCDEF==\t\t51820\t0\n"
        "wg0\tXYZ123==\t(none)\t1.2.3.4:55555\t10.0.0.5/32\t1600000000\t100\t200\t(none)\n"
    )

    assert len(devices) == 1
    assert devices[0].public_key == "ABCDEF=="
    peer = devices[0].peers[0]
    assert peer.public_key == "XYZ123=="
    assert peer.endpoint == PeerEndpoint("1.2.3.4", 55555)
    assert peer.allowed_ips == [AllowedIP("10.0.0.5", 32)]
    assert (peer.rx, peer.tx, peer.latest_handshake) == (100, 200, 1600000000)


def test_parse_hex_fwmark():
    devices = parse_wireguard_dump("wg0\tPUB=\tPRIV=\t51820\t0xca6c\n")
    assert devices[0].fwmark == 0xca6c


def test_parse_no_allowed_ips():
    devices = parse_wireguard_dump("wg0\tKEY=\t(none)\t(none)\t(none)\t0\t0\t0\toff\n")
    assert devices[0].peers[0].allowed_ips == []


def test_parse_ipv6_endpoint_with_zone():
    devices = parse_wireguard_dump("wg0\tKEY=\t(none)\t[fe80::1%eth0]:51820\tfd00::2/128\t0\t0\t0\toff\n")
    peer = devices[0].peers[0]

    assert peer.endpoint == PeerEndpoint("fe80::1", 51820)
    assert peer.allowed_ips == [AllowedIP("fd00::2", 128)]


def test_same_public_key_on_two_interfaces():
    devices = parse_wireguard_dump(
        "wg0\tSAME=\t(none)\t(none)\t10.0.0.2/32\t0\t1\t2\toff\n"
        "wg1\tSAME=\t(none)\t(none)\t10.0.1.2/32\t0\t3\t4\toff\n"
    )

    assert [d.name for d in devices] == ["wg0", "wg1"]
    assert devices[0].peers[0].public_key == devices[1].peers[0].public_key


@pytest.mark.parametrize(
    "line",
    [
        "wg0\tKEY=\t(none)\n",
        "wg0\tKEY=\t(none)\t(none)\t10.0.0.2/32\t0\t0\t0\n",
        "wg0\tKEY=\t(none)\t(none)\t10.0.0.2/32\t0\t0\t0\toff\textra\n",
    ],
)
def test_parse_wrong_field_count(line):
    with pytest.raises(DumpParseError):
        parse_wireguard_dump(line)


@pytest.mark.parametrize(
    "line",
    [
        "wg0\tKEY=\t(none)\t(none)\t10.0.0.2/32\tnever\t0\t0\toff\n",
        "wg0\tKEY=\t(none)\t(none)\t10.0.0.2/32\t0\t-1\t0\toff\n",
        "wg0\tKEY=\t(none)\t(none)\t10.0.0.2/32\t0\t0\t1.5\toff\n",
        "wg0\tKEY=\t(none)\t(none)\t10.0.0.2/32\t0\t0\t0\tsometimes\n",
        "wg0\tKEY=\t(none)\t1.2.3.4:port\t10.0.0.2/32\t0\t0\t0\toff\n",
        "wg0\tKEY=\t(none)\t(none)\t10.0.0.2/x\t0\t0\t0\toff\n",
        "wg0\tKEY=\t(none)\t(none)\t10.0.0.2\t0\t0\t0\toff\n",
        "wg0\tKEY=\tPRIV=\tport\toff\n",
    ],
)
def test_parse_bad_numeric_field(line):
    with pytest.raises(DumpParseError):
        parse_wireguard_dump(line)


def test_parse_error_is_all_or_nothing():
    text = DUMP_ALL + "wg0\tbroken\n"

    with pytest.raises(DumpParseError) as excinfo:
        parse_wireguard_dump(text)
    assert excinfo.value.lineno == 8


def test_prefix_interface_name():
    single = "PRIV=\tPUB=\t51820\toff\nPEER=\t(none)\t(none)\t10.0.0.2/32\t0\t0\t0\toff\n"
    prefixed = prefix_interface_name(single, "wg7")

    assert prefixed.splitlines() == [
        "wg7\tPRIV=\tPUB=\t51820\toff",
        "wg7\tPEER=\t(none)\t(none)\t10.0.0.2/32\t0\t0\t0\toff",
    ]
    devices = parse_wireguard_dump(prefixed)
    assert devices[0].name == "wg7"
    assert len(devices[0].peers) == 1
