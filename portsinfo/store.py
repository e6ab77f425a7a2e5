"""
Result store for Ports Info
Holds the latest snapshot and swaps it atomically
"""

import logging
import threading
from typing import Optional, Tuple

from .models import PortRecord, Snapshot

logger = logging.getLogger(__name__)


class ResultStore:
    """Owner of the current snapshot.

    Readers get the immutable snapshot itself, never a view that a writer
    could change. Each scan takes a generation token from :meth:`begin`; a
    result is only installed while no newer scan has started, so a slow
    scan superseded by a user refresh is discarded when it finally lands.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot: Optional[Snapshot] = None
        self._generation = 0

    def begin(self) -> int:
        """Start a scan and return its generation token."""
        with self._lock:
            self._generation += 1
            return self._generation

    def invalidate(self):
        """Abandon every scan currently in flight."""
        with self._lock:
            self._generation += 1

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def install(self, snapshot: Snapshot, generation: int) -> bool:
        """Replace the snapshot if ``generation`` is still the newest scan."""
        with self._lock:
            if generation != self._generation:
                logger.debug(
                    "Discarding stale scan result (generation %d, current %d)",
                    generation, self._generation,
                )
                return False
            self._snapshot = snapshot
        logger.debug("Installed snapshot with %d records", len(snapshot))
        return True

    def snapshot(self) -> Optional[Snapshot]:
        return self._snapshot

    def current(self) -> Tuple[PortRecord, ...]:
        snapshot = self._snapshot
        return snapshot.records if snapshot is not None else ()
