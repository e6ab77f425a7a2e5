"""Helpers for presenting port records in the list and in detail rows."""

from __future__ import annotations

from typing import List

from .models import PortRecord, ScanMode
from .process_info import format_memory, format_start_time

UNKNOWN_PROCESS = "Unknown"
UNKNOWN_UNPRIVILEGED = "Unknown (no privileges)"


def format_port_title(record: PortRecord) -> str:
    """Row title, e.g. ``TCP 8080``."""
    return f"{record.protocol.value.upper()} {record.port}"


def format_process_label(record: PortRecord, mode: ScanMode) -> str:
    """Row subtitle naming the owning process when it is known."""
    if mode is ScanMode.LIMITED and record.process_name is None and record.pid is None:
        return UNKNOWN_UNPRIVILEGED
    name = record.process_name or UNKNOWN_PROCESS
    if record.pid is not None:
        return f"{name} (PID: {record.pid})"
    return name


def format_local_address(record: PortRecord) -> str:
    """``ip:port`` with IPv6 addresses bracketed, e.g. ``[::]:80``."""
    host = record.local_ip
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{record.port}"


def format_detail_lines(record: PortRecord) -> List[str]:
    """Lines shown when a row is expanded."""
    lines = [
        f"Protocol: {record.protocol.value.upper()}",
        f"Local Address: {format_local_address(record)}",
        f"Foreign Address: {record.foreign_address or '*'}",
        f"State: {record.state or 'stateless'}",
    ]
    details = record.details
    if details is None:
        return lines

    if details.command_line:
        lines.append(f"Command: {details.command_line}")
    if details.user:
        lines.append(f"User: {details.user}")
    lines.append(f"CPU Usage: {details.cpu_usage:.1f}%")
    lines.append(f"Memory Usage: {format_memory(details.mem_usage)}")
    started = format_start_time(details.start_time)
    if started:
        lines.append(f"Started: {started}")
    lines.append(f"Status: {details.status}")
    return lines
