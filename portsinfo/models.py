"""
Data model for Ports Info
Immutable records describing listening sockets and the scans that produced them
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

MIN_PORT = 0
MAX_PORT = 65535


class Protocol(Enum):
    TCP = "tcp"
    UDP = "udp"

    @classmethod
    def from_token(cls, token: str) -> Optional["Protocol"]:
        """Map a listing's protocol column (``tcp``, ``UDP``, ``tcp6``...) to a member."""
        value = (token or "").strip().lower()
        if value.endswith("6"):
            value = value[:-1]
        for member in cls:
            if member.value == value:
                return member
        return None


class ScanMode(Enum):
    """Whether process ownership can be collected."""

    DETAILED = "detailed"
    LIMITED = "limited"


class ListingVariant(Enum):
    """One member per supported {tool, mode} pair.

    The column layout differs structurally between tools and between
    privileged and unprivileged invocations, so the parser dispatches on
    the variant rather than guessing.
    """

    SS_DETAILED = ("ss", ScanMode.DETAILED, ("-tulnp",))
    SS_LIMITED = ("ss", ScanMode.LIMITED, ("-tuln",))
    NETSTAT_DETAILED = ("netstat", ScanMode.DETAILED, ("-tulnp",))
    NETSTAT_LIMITED = ("netstat", ScanMode.LIMITED, ("-tuln",))

    def __init__(self, tool: str, mode: ScanMode, args: Tuple[str, ...]):
        self.tool = tool
        self.mode = mode
        self.args = args

    @property
    def argv(self) -> Tuple[str, ...]:
        return (self.tool,) + self.args

    @classmethod
    def for_tool(cls, tool: str, mode: ScanMode) -> "ListingVariant":
        for member in cls:
            if member.tool == tool and member.mode is mode:
                return member
        raise ValueError(f"Unsupported listing tool: {tool}")


@dataclass(frozen=True)
class ProcessDetails:
    """Per-PID enrichment; attached to a record as a whole or not at all."""

    command_line: str
    user: str
    cpu_usage: float
    mem_usage: float  # resident set size in bytes
    start_time: datetime
    status: str


@dataclass(frozen=True)
class PortRecord:
    """One listening socket"""

    protocol: Protocol
    local_address: str
    port: int
    state: str = ""
    pid: Optional[int] = None
    process_name: Optional[str] = None
    details: Optional[ProcessDetails] = None
    foreign_address: str = ""
    recv_q: int = 0
    send_q: int = 0

    def __post_init__(self):
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise TypeError(f"port must be an int, got {self.port!r}")
        if not MIN_PORT <= self.port <= MAX_PORT:
            raise ValueError(f"port out of range: {self.port}")

    @property
    def local_ip(self) -> str:
        """Address part of ``local_address`` without brackets; ``*`` when unbound."""
        host = self.local_address.rsplit(":", 1)[0] if ":" in self.local_address else ""
        host = host.strip("[]")
        return host or "*"

    @property
    def has_details(self) -> bool:
        return self.details is not None

    @property
    def command_line(self) -> Optional[str]:
        return self.details.command_line if self.details else None

    @property
    def user(self) -> Optional[str]:
        return self.details.user if self.details else None

    @property
    def cpu_usage(self) -> Optional[float]:
        return self.details.cpu_usage if self.details else None

    @property
    def mem_usage(self) -> Optional[float]:
        return self.details.mem_usage if self.details else None

    @property
    def start_time(self) -> Optional[datetime]:
        return self.details.start_time if self.details else None

    @property
    def status(self) -> Optional[str]:
        return self.details.status if self.details else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'protocol': self.protocol.value,
            'local_address': self.local_address,
            'local_ip': self.local_ip,
            'port': self.port,
            'state': self.state,
            'foreign_address': self.foreign_address,
            'recv_q': self.recv_q,
            'send_q': self.send_q,
            'pid': self.pid,
            'process_name': self.process_name,
            'command_line': self.command_line,
            'user': self.user,
            'cpu_usage': self.cpu_usage,
            'mem_usage': self.mem_usage,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'status': self.status,
        }


@dataclass(frozen=True)
class Snapshot:
    """The complete result of one successful scan."""

    records: Tuple[PortRecord, ...]
    mode: ScanMode
    variant: ListingVariant
    skipped_lines: int = 0
    taken_at: datetime = field(default_factory=datetime.now)

    def __len__(self) -> int:
        return len(self.records)
