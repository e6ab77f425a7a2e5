"""Tests for the ss/netstat record parser."""

from datetime import datetime

import pytest

from portsinfo.models import ListingVariant, ProcessDetails, Protocol
from portsinfo.parser import (
    enrich,
    parse_listing,
    parse_ss_users,
    split_address,
    split_owner,
)


def _details(name="proc"):
    return ProcessDetails(
        command_line=f"/usr/bin/{name}",
        user="root",
        cpu_usage=0.5,
        mem_usage=1024.0 * 1024.0,
        start_time=datetime(2024, 1, 1, 12, 0, 0),
        status="sleeping",
    )


def test_netstat_row_from_example():
    line = "tcp 0 0 0.0.0.0:8080 0.0.0.0:* LISTEN 1234/java"
    result = parse_listing(line, ListingVariant.NETSTAT_DETAILED)

    assert result.skipped_lines == 0
    (record,) = result.records
    assert record.protocol is Protocol.TCP
    assert record.port == 8080
    assert record.pid == 1234
    assert record.process_name == "java"
    assert record.state == "LISTEN"
    assert record.local_address == "0.0.0.0:8080"
    assert record.foreign_address == "0.0.0.0:*"


def test_netstat_detailed_output(netstat_detailed):
    result = parse_listing(netstat_detailed, ListingVariant.NETSTAT_DETAILED)

    assert result.skipped_lines == 0
    assert [r.port for r in result.records] == [53, 22, 8080, 80, 53, 68]

    sshd = result.records[1]
    assert sshd.pid == 812
    assert sshd.process_name == "sshd: /usr/sbin"

    unknown_owner = result.records[3]
    assert unknown_owner.protocol is Protocol.TCP
    assert unknown_owner.local_ip == "::"
    assert unknown_owner.pid is None
    assert unknown_owner.process_name is None

    dhclient = result.records[5]
    assert dhclient.protocol is Protocol.UDP
    assert dhclient.state == ""
    assert dhclient.pid == 744
    assert dhclient.process_name == "dhclient"


def test_netstat_limited_output_has_no_owners(netstat_limited):
    result = parse_listing(netstat_limited, ListingVariant.NETSTAT_LIMITED)

    assert result.skipped_lines == 0
    assert [r.port for r in result.records] == [22, 80, 68]
    assert all(r.pid is None and r.process_name is None for r in result.records)
    assert result.records[0].state == "LISTEN"
    assert result.records[2].state == ""


def test_ss_detailed_output(ss_detailed):
    result = parse_listing(ss_detailed, ListingVariant.SS_DETAILED)

    assert result.skipped_lines == 0
    assert [r.port for r in result.records] == [53, 53, 22, 80, 631]

    resolver = result.records[0]
    assert resolver.protocol is Protocol.UDP
    assert resolver.state == "UNCONN"
    assert resolver.pid == 612
    assert resolver.process_name == "systemd-resolve"
    assert resolver.local_ip == "127.0.0.53%lo"

    nginx = result.records[3]
    assert nginx.pid == 900
    assert nginx.process_name == "nginx"
    assert nginx.local_ip == "::"
    assert nginx.send_q == 511

    cups = result.records[4]
    assert cups.pid is None
    assert cups.process_name is None


def test_ss_limited_output(ss_limited):
    result = parse_listing(ss_limited, ListingVariant.SS_LIMITED)

    assert [r.port for r in result.records] == [5353, 22, 80]
    assert all(r.pid is None for r in result.records)


def test_ss_limited_ignores_process_column():
    line = 'tcp LISTEN 0 128 0.0.0.0:22 0.0.0.0:* users:(("sshd",pid=812,fd=3))'
    (record,) = parse_listing(line, ListingVariant.SS_LIMITED).records
    assert record.pid is None
    assert record.process_name is None


def test_missing_protocol_token_is_skipped_and_counted():
    lines = [
        "tcp 0 0 0.0.0.0:22 0.0.0.0:* LISTEN 812/sshd",
        "0 0 0.0.0.0:80 0.0.0.0:* LISTEN 900/nginx",
        "udp 0 0 0.0.0.0:68 0.0.0.0:* 744/dhclient",
    ]
    result = parse_listing("\n".join(lines), ListingVariant.NETSTAT_DETAILED)

    assert len(result.records) == len(lines) - 1
    assert result.skipped_lines == 1
    assert [r.port for r in result.records] == [22, 68]


def test_unknown_protocol_is_skipped():
    text = "raw 0 0 0.0.0.0:255 0.0.0.0:* 7 1/init\ntcp 0 0 0.0.0.0:22 0.0.0.0:* LISTEN -"
    result = parse_listing(text, ListingVariant.NETSTAT_DETAILED)
    assert [r.port for r in result.records] == [22]
    assert result.skipped_lines == 1


@pytest.mark.parametrize("address", ["0.0.0.0", "0.0.0.0:*", "0.0.0.0:70000", "0.0.0.0:-1"])
def test_bad_local_addresses_are_skipped(address):
    text = f"tcp 0 0 {address} 0.0.0.0:* LISTEN 1/init\ntcp 0 0 0.0.0.0:443 0.0.0.0:* LISTEN 2/nginx"
    result = parse_listing(text, ListingVariant.NETSTAT_DETAILED)
    assert [r.port for r in result.records] == [443]
    assert result.skipped_lines == 1


def test_every_port_is_in_range(ss_detailed, netstat_detailed):
    text = ss_detailed + "tcp LISTEN 0 128 0.0.0.0:99999 0.0.0.0:*\n"
    for variant, output in [
        (ListingVariant.SS_DETAILED, text),
        (ListingVariant.NETSTAT_DETAILED, netstat_detailed),
    ]:
        for record in parse_listing(output, variant).records:
            assert isinstance(record.port, int)
            assert 0 <= record.port <= 65535


def test_banner_and_blank_lines_are_not_counted():
    text = "\n\nActive Internet connections (only servers)\nProto Recv-Q Send-Q Local Address\n\n"
    result = parse_listing(text, ListingVariant.NETSTAT_LIMITED)
    assert result.records == ()
    assert result.skipped_lines == 0


def test_short_rows_are_skipped():
    result = parse_listing("tcp LISTEN 0", ListingVariant.SS_LIMITED)
    assert result.records == ()
    assert result.skipped_lines == 1


def test_protocol_token_is_case_insensitive():
    (record,) = parse_listing("TCP 0 0 0.0.0.0:22 0.0.0.0:* LISTEN", ListingVariant.NETSTAT_LIMITED).records
    assert record.protocol is Protocol.TCP


def test_split_owner():
    assert split_owner("1234/java") == (1234, "java")
    assert split_owner("java") == (None, "java")
    assert split_owner("4321") == (None, "4321")
    assert split_owner("-") == (None, None)
    assert split_owner("") == (None, None)


def test_owner_without_slash_is_a_program_name():
    line = "tcp 0 0 0.0.0.0:8080 0.0.0.0:* LISTEN 4321"
    (record,) = parse_listing(line, ListingVariant.NETSTAT_DETAILED).records
    assert record.pid is None
    assert record.process_name == "4321"


def test_split_address_uses_last_colon():
    assert split_address("[::1]:631") == ("[::1]", 631)
    assert split_address(":::22") == ("::", 22)


def test_parse_ss_users_takes_first_entry():
    assert parse_ss_users('users:(("nginx",pid=900,fd=6),("nginx",pid=899,fd=6))') == (900, "nginx")
    assert parse_ss_users("") == (None, None)


def test_enrich_attaches_details_per_pid():
    text = "\n".join([
        "tcp 0 0 0.0.0.0:22 0.0.0.0:* LISTEN 812/sshd",
        "tcp6 0 0 :::22 :::* LISTEN 812/sshd",
        "tcp 0 0 0.0.0.0:80 0.0.0.0:* LISTEN 900/nginx",
        "tcp 0 0 0.0.0.0:25 0.0.0.0:* LISTEN -",
    ])
    records = parse_listing(text, ListingVariant.NETSTAT_DETAILED).records
    calls = []

    def lookup(pid):
        calls.append(pid)
        return _details("sshd") if pid == 812 else None

    enriched = enrich(records, lookup)

    assert calls == [812, 900]
    assert enriched[0].details == _details("sshd")
    assert enriched[1].command_line == "/usr/bin/sshd"
    # Lookup failed: process exited between listing and lookup
    assert enriched[2].details is None
    assert enriched[2].pid == 900
    assert enriched[3].details is None


def test_detailed_fields_are_all_or_nothing(netstat_detailed):
    records = parse_listing(netstat_detailed, ListingVariant.NETSTAT_DETAILED).records
    enriched = enrich(records, lambda pid: _details() if pid == 812 else None)

    for record in enriched:
        values = [
            record.command_line,
            record.user,
            record.cpu_usage,
            record.mem_usage,
            record.start_time,
            record.status,
        ]
        present = [value is not None for value in values]
        assert all(present) or not any(present)
