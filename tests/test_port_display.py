from datetime import datetime

from portsinfo.models import PortRecord, ProcessDetails, Protocol, ScanMode
from portsinfo.port_display import (
    format_detail_lines,
    format_local_address,
    format_port_title,
    format_process_label,
)


def test_title():
    assert format_port_title(PortRecord(Protocol.UDP, "0.0.0.0:68", 68)) == "UDP 68"


def test_process_label():
    owned = PortRecord(Protocol.TCP, "0.0.0.0:22", 22, pid=812, process_name="sshd")
    hidden = PortRecord(Protocol.TCP, "0.0.0.0:25", 25)
    named = PortRecord(Protocol.TCP, "0.0.0.0:80", 80, process_name="nginx")

    assert format_process_label(owned, ScanMode.DETAILED) == "sshd (PID: 812)"
    assert format_process_label(hidden, ScanMode.DETAILED) == "Unknown"
    assert format_process_label(hidden, ScanMode.LIMITED) == "Unknown (no privileges)"
    assert format_process_label(named, ScanMode.DETAILED) == "nginx"


def test_detail_lines_without_process_details():
    record = PortRecord(Protocol.UDP, "127.0.0.1:53", 53, foreign_address="0.0.0.0:*")
    assert format_detail_lines(record) == [
        "Protocol: UDP",
        "Local Address: 127.0.0.1:53",
        "Foreign Address: 0.0.0.0:*",
        "State: stateless",
    ]


def test_detail_lines_with_process_details():
    details = ProcessDetails(
        command_line="/usr/bin/java -jar app.jar",
        user="app",
        cpu_usage=12.345,
        mem_usage=256 * 1024 * 1024,
        start_time=datetime(2024, 3, 1, 9, 0, 0),
        status="running",
    )
    record = PortRecord(
        Protocol.TCP, "0.0.0.0:8080", 8080, state="LISTEN",
        pid=1234, process_name="java", details=details,
    )

    lines = format_detail_lines(record)

    assert "State: LISTEN" in lines
    assert "Command: /usr/bin/java -jar app.jar" in lines
    assert "User: app" in lines
    assert "CPU Usage: 12.3%" in lines
    assert "Memory Usage: 256.0 MB" in lines
    assert "Started: 2024-03-01 09:00:00" in lines
    assert lines[-1] == "Status: running"


def test_ipv6_local_address_is_bracketed():
    wildcard = PortRecord(Protocol.TCP, ":::80", 80)
    loopback = PortRecord(Protocol.TCP, "[::1]:631", 631)
    v4 = PortRecord(Protocol.TCP, "0.0.0.0:22", 22)

    assert format_local_address(wildcard) == "[::]:80"
    assert format_local_address(loopback) == "[::1]:631"
    assert format_local_address(v4) == "0.0.0.0:22"
    assert format_detail_lines(wildcard)[1] == "Local Address: [::]:80"
