from __future__ import annotations

from typing import Sequence, Tuple

from .models import PortRecord


def record_matches(record: PortRecord, query: str) -> bool:
    """Return True if the record matches the search query.

    The query is matched case-insensitively as a plain substring against
    the port number (in decimal) and the process name.
    """
    if not query:
        return True
    text = query.lower()
    fields = [str(record.port), record.process_name or ""]
    return any(text in field.lower() for field in fields)


def filter_records(records: Sequence[PortRecord], query: str) -> Tuple[PortRecord, ...]:
    """Return the records matching ``query`` in their original order."""
    if not query:
        return tuple(records)
    return tuple(record for record in records if record_matches(record, query))


__all__ = ["record_matches", "filter_records"]
