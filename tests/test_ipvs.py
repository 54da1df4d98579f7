import ipaddress

import pytest

from procinfo.fs import FS
from procinfo.ipvs import (
    IPVSBackendStatus,
    IPVSStats,
    ipvs_backend_status,
    ipvs_stats,
    parse_ip_port,
    parse_ipvs_backend_status,
    parse_ipvs_stats,
)

IP_VS_STATS = """\
   Total Incoming Outgoing         Incoming         Outgoing
   Conns  Packets  Packets            Bytes            Bytes
 16AA370 E33656E5        0 51D8C8883AB3        0

 Conns/s   Pkts/s   Pkts/s          Bytes/s          Bytes/s
       4    1FB3C        0          1282A8F        0
"""

IP_VS = """\
IP Virtual Server version 1.2.1 (size=4096)
Prot LocalAddress:Port Scheduler Flags
  -> RemoteAddress:Port Forward Weight ActiveConn InActConn
TCP  C0A80016:0CEA wlc
  -> C0A85216:0CEA      Tunnel  100    248        2
  -> C0A85318:0CEA      Tunnel  100    248        2
  -> C0A85315:0CEA      Tunnel  100    248        1
TCP  C0A80039:0CEA wlc
  -> C0A85416:0CEA      Tunnel  0      0          0
  -> C0A85215:0CEA      Tunnel  100    1499       0
  -> C0A83215:0CEA      Tunnel  100    1498       0
TCP  C0A80037:0CEA wlc
  -> C0A8321A:0CEA      Tunnel  0      0          0
  -> C0A83120:0CEA      Tunnel  100    0          0
TCP  [2620:0000:0000:0000:0000:0000:0000:0001]:0050 sh
  -> [2620:0000:0000:0000:0000:0000:0000:0002]:0050      Route   1      0          0
  -> [2620:0000:0000:0000:0000:0000:0000:0003]:0050      Route   1      0          0
  -> [2620:0000:0000:0000:0000:0000:0000:0004]:0050      Route   1      1          1
FWM  10001000 wlc
  -> C0A8321A:0CEA      Route   0      0          1
  -> C0A83215:0CEA      Route   0      0          2
"""


def ip(text):
    return ipaddress.ip_address(text)


EXPECTED_BACKENDS = [
    ("192.168.0.22", 3306, "192.168.82.22", 3306, "TCP", "", 100, 248, 2),
    ("192.168.0.22", 3306, "192.168.83.24", 3306, "TCP", "", 100, 248, 2),
    ("192.168.0.22", 3306, "192.168.83.21", 3306, "TCP", "", 100, 248, 1),
    ("192.168.0.57", 3306, "192.168.84.22", 3306, "TCP", "", 0, 0, 0),
    ("192.168.0.57", 3306, "192.168.82.21", 3306, "TCP", "", 100, 1499, 0),
    ("192.168.0.57", 3306, "192.168.50.21", 3306, "TCP", "", 100, 1498, 0),
    ("192.168.0.55", 3306, "192.168.50.26", 3306, "TCP", "", 0, 0, 0),
    ("192.168.0.55", 3306, "192.168.49.32", 3306, "TCP", "", 100, 0, 0),
    ("2620::1", 80, "2620::2", 80, "TCP", "", 1, 0, 0),
    ("2620::1", 80, "2620::3", 80, "TCP", "", 1, 0, 0),
    ("2620::1", 80, "2620::4", 80, "TCP", "", 1, 1, 1),
    (None, 0, "192.168.50.26", 3306, "FWM", "10001000", 0, 0, 1),
    (None, 0, "192.168.50.21", 3306, "FWM", "10001000", 0, 0, 2),
]


@pytest.fixture
def proc_fs(tmp_path):
    net = tmp_path / "net"
    net.mkdir()
    (net / "ip_vs_stats").write_text(IP_VS_STATS)
    (net / "ip_vs").write_text(IP_VS)
    return FS(str(tmp_path))


def test_ipvs_stats(proc_fs):
    assert ipvs_stats(proc_fs) == IPVSStats(
        connections=23765872,
        incoming_packets=3811989221,
        outgoing_packets=0,
        incoming_bytes=89991519156915,
        outgoing_bytes=0,
    )


def test_parse_ipvs_stats_too_short():
    with pytest.raises(ValueError, match="too short"):
        parse_ipvs_stats("a\nb\n")


def test_parse_ipvs_stats_wrong_field_count():
    with pytest.raises(ValueError, match="unexpected number of fields"):
        parse_ipvs_stats("a\nb\n1 2 3\nrest")


def test_parse_ipvs_stats_bad_hex():
    with pytest.raises(ValueError):
        parse_ipvs_stats(b"a\nb\n1 2 3 4 ZZ\nrest")


def test_parse_ip_port():
    assert parse_ip_port("C0A80016:0CEA") == (ip("192.168.0.22"), 3306)


@pytest.mark.parametrize(
    "text",
    ["", "C0A80016", "C0A800:1234", "FOOBARBA:1234", "C0A80016:0CEA:1234"],
)
def test_parse_ip_port_invalid(text):
    with pytest.raises(ValueError):
        parse_ip_port(text)


def test_parse_ip_port_ipv6():
    got = parse_ip_port("[DEAD:BEEF:0000:0000:0000:0000:0000:0001]:1F90")
    assert got == (ip("dead:beef::1"), 8080)


def test_ipvs_backend_status(proc_fs):
    statuses = ipvs_backend_status(proc_fs)
    assert len(statuses) == len(EXPECTED_BACKENDS)
    for got, want in zip(statuses, EXPECTED_BACKENDS):
        local, lport, remote, rport, proto, mark, weight, active, inact = want
        assert got == IPVSBackendStatus(
            local_address=ip(local) if local else None,
            remote_address=ip(remote),
            local_port=lport,
            remote_port=rport,
            local_mark=mark,
            proto=proto,
            active_conn=active,
            inact_conn=inact,
            weight=weight,
        )


def test_parse_backend_status_bad_address():
    lines = ["TCP  XXXXXXXX:0CEA wlc"]
    with pytest.raises(ValueError):
        parse_ipvs_backend_status(lines)


def test_parse_backend_status_bad_weight():
    lines = ["TCP  C0A80016:0CEA wlc", "  -> C0A85216:0CEA Tunnel x 1 2"]
    with pytest.raises(ValueError):
        parse_ipvs_backend_status(lines)


def test_parse_backend_status_short_rows_skipped():
    lines = ["TCP  C0A80016:0CEA wlc", "  -> C0A85216:0CEA Tunnel 1"]
    assert parse_ipvs_backend_status(lines) == []


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ipvs_backend_status(FS(str(tmp_path)))