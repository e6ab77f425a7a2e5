"""
Record parser for Ports Info
Turns ``ss``/``netstat`` output into PortRecord tuples

Column layouts differ between the two tools and between privileged and
unprivileged runs, so each ListingVariant has its own row grammar:

    netstat  proto recv-q send-q local foreign [state] [pid/program]
    ss       netid state recv-q send-q local peer [users:(("name",pid=N,fd=M))]
"""

import dataclasses
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .models import (
    MAX_PORT,
    MIN_PORT,
    ListingVariant,
    PortRecord,
    ProcessDetails,
    Protocol,
    ScanMode,
)

logger = logging.getLogger(__name__)

BANNER_TOKENS = frozenset({"active", "proto", "netid", "state"})

_SS_USERS_RE = re.compile(r'\("([^"]*)",pid=(\d+)')
_STATE_RE = re.compile(r"^[A-Z][A-Z0-9_-]*$")


class MalformedLine(ValueError):
    """A single listing row that cannot be turned into a record"""
    pass


@dataclass(frozen=True)
class ParseResult:
    records: Tuple[PortRecord, ...]
    skipped_lines: int = 0


def split_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` on the last colon and validate the port."""
    if ":" not in address:
        raise MalformedLine(f"address without port: {address!r}")
    host, port_str = address.rsplit(":", 1)
    if not port_str.isdigit():
        raise MalformedLine(f"non-numeric port in {address!r}")
    port = int(port_str)
    if not MIN_PORT <= port <= MAX_PORT:
        raise MalformedLine(f"port out of range in {address!r}")
    return host, port


def split_owner(field: str) -> Tuple[Optional[int], Optional[str]]:
    """Split a netstat ``pid/program`` column.

    ``-`` means the owner is unknown. Without a ``/`` the whole
    column is the program name and the pid stays unset.
    """
    field = (field or "").strip()
    if not field or field == "-":
        return None, None
    if "/" in field:
        pid_str, name = field.split("/", 1)
        pid = int(pid_str) if pid_str.isdigit() else None
        return pid, name.strip() or None
    return None, field


def parse_ss_users(field: str) -> Tuple[Optional[int], Optional[str]]:
    """Extract the first ``("name",pid=N,...)`` entry of an ss process column."""
    match = _SS_USERS_RE.search(field or "")
    if not match:
        return None, None
    return int(match.group(2)), match.group(1) or None


def _to_int(value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _protocol(token: str) -> Protocol:
    protocol = Protocol.from_token(token)
    if protocol is None:
        raise MalformedLine(f"unrecognized protocol {token!r}")
    return protocol


def _parse_netstat_row(fields: List[str], mode: ScanMode) -> PortRecord:
    if len(fields) < 5:
        raise MalformedLine("too few columns")
    protocol = _protocol(fields[0])
    local, foreign = fields[3], fields[4]
    _, port = split_address(local)
    rest = fields[5:]

    state = ""
    if rest and (protocol is Protocol.TCP or _STATE_RE.match(rest[0])):
        state, rest = rest[0], rest[1:]

    pid = name = None
    if mode is ScanMode.DETAILED and rest:
        # Program names may contain spaces ("sshd: /usr/sbin")
        pid, name = split_owner(" ".join(rest))

    return PortRecord(
        protocol=protocol,
        local_address=local,
        port=port,
        state=state,
        pid=pid,
        process_name=name,
        foreign_address=foreign,
        recv_q=_to_int(fields[1]),
        send_q=_to_int(fields[2]),
    )


def _parse_ss_row(fields: List[str], mode: ScanMode) -> PortRecord:
    if len(fields) < 6:
        raise MalformedLine("too few columns")
    protocol = _protocol(fields[0])
    local, peer = fields[4], fields[5]
    _, port = split_address(local)

    pid = name = None
    if mode is ScanMode.DETAILED and len(fields) > 6:
        pid, name = parse_ss_users(" ".join(fields[6:]))

    return PortRecord(
        protocol=protocol,
        local_address=local,
        port=port,
        state=fields[1],
        pid=pid,
        process_name=name,
        foreign_address=peer,
        recv_q=_to_int(fields[2]),
        send_q=_to_int(fields[3]),
    )


_ROW_PARSERS: Dict[str, Callable[[List[str], ScanMode], PortRecord]] = {
    "netstat": _parse_netstat_row,
    "ss": _parse_ss_row,
}


def is_banner(fields: List[str]) -> bool:
    return bool(fields) and fields[0].lower() in BANNER_TOKENS


def parse_listing(text: str, variant: ListingVariant) -> ParseResult:
    """Parse the output of one listing command.

    Banner and blank lines are ignored. Any other line that does not form a
    valid record is skipped and counted; a bad line never aborts the scan.
    """
    row_parser = _ROW_PARSERS[variant.tool]
    records = []
    skipped = 0

    for line in (text or "").splitlines():
        fields = line.split()
        if not fields or is_banner(fields):
            continue
        try:
            records.append(row_parser(fields, variant.mode))
        except ValueError as e:
            skipped += 1
            logger.debug("Skipping %s line %r: %s", variant.tool, line.strip(), e)

    if skipped:
        logger.info("Skipped %d malformed %s line(s)", skipped, variant.tool)
    return ParseResult(records=tuple(records), skipped_lines=skipped)


def enrich(records: Iterable[PortRecord],
           lookup: Callable[[int], Optional[ProcessDetails]]) -> Tuple[PortRecord, ...]:
    """Attach process details by PID.

    Each PID is looked up once. A failed lookup (the process exited between
    listing and lookup) leaves ``details`` unset on that record.
    """
    cache: Dict[int, Optional[ProcessDetails]] = {}
    enriched = []
    for record in records:
        if record.pid is None:
            enriched.append(record)
            continue
        if record.pid not in cache:
            cache[record.pid] = lookup(record.pid)
        details = cache[record.pid]
        enriched.append(dataclasses.replace(record, details=details) if details else record)
    return tuple(enriched)
