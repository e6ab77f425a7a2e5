"""
Ports service for Ports Info
Runs the scan pipeline and exposes the results to the user interface
"""

import logging
import threading
from typing import Callable, Optional, Tuple

from gi.repository import GLib, GObject

from .errors import PermissionDenied, ScanError
from .mode import LIMITED_MODE_MESSAGE, ModeSelector
from .models import PortRecord, ProcessDetails, ScanMode, Snapshot
from .parser import enrich, parse_listing
from .process_info import get_process_details
from .scanner import DEFAULT_TIMEOUT, PortScanner
from .search import filter_records
from .store import ResultStore

logger = logging.getLogger(__name__)


class PortsService(GObject.Object):
    """Mode selection, scanning, parsing and storage behind one object.

    Signals are always emitted on the thread running the GLib main loop when
    results come from :meth:`refresh`; :meth:`scan` emits on the caller's
    thread.
    """

    __gsignals__ = {
        'ports-updated': (GObject.SignalFlags.RUN_FIRST, None, (object,)),  # Snapshot
        'limited-mode': (GObject.SignalFlags.RUN_FIRST, None, (str,)),
        'scan-failed': (GObject.SignalFlags.RUN_FIRST, None, (object,)),  # ScanError
    }

    def __init__(self, config=None, scanner: Optional[PortScanner] = None,
                 selector: Optional[ModeSelector] = None,
                 store: Optional[ResultStore] = None,
                 lookup: Callable[[int], Optional[ProcessDetails]] = get_process_details):
        super().__init__()
        self.config = config
        self.scanner = scanner or PortScanner(
            timeout=self._setting('scan.timeout', DEFAULT_TIMEOUT),
            elevation_helper=self._setting('scan.elevation_helper', ''),
        )
        self.selector = selector or ModeSelector(
            start_limited=bool(self._setting('scan.start_limited', False)),
            preferred_tool=self._setting('scan.preferred_tool', 'ss'),
        )
        self.store = store or ResultStore()
        self.lookup = lookup
        self.last_error: Optional[ScanError] = None

        if config is not None and hasattr(config, 'connect'):
            config.connect('setting-changed', self._on_setting_changed)

    def _setting(self, key: str, default):
        if self.config is None:
            return default
        return self.config.get_setting(key, default)

    def _on_setting_changed(self, config, key, value):
        if key == 'scan.timeout':
            self.scanner.timeout = float(value) if value else DEFAULT_TIMEOUT
        elif key == 'scan.elevation_helper':
            self.scanner.elevation_helper = (value or '').strip() or None
        elif key == 'scan.preferred_tool':
            self.selector.preferred_tool = value

    # --- Presentation boundary -------------------------------------------

    @property
    def mode(self) -> ScanMode:
        return self.selector.mode

    def current(self) -> Tuple[PortRecord, ...]:
        return self.store.current()

    def snapshot(self) -> Optional[Snapshot]:
        return self.store.snapshot()

    def filter(self, query: str) -> Tuple[PortRecord, ...]:
        return filter_records(self.store.current(), query)

    def reelevate(self):
        """Request detailed information again after rights were re-acquired."""
        self.selector.reelevate()

    def cancel(self):
        """Discard the results of every scan still running."""
        self.store.invalidate()

    def scan(self) -> Snapshot:
        """Run one blocking scan and install its snapshot.

        Raises the ScanError that aborted the scan; the previous snapshot
        stays in place in that case.
        """
        generation = self.store.begin()
        return self._scan(generation, self.emit)

    def refresh(self) -> int:
        """Start a scan on a worker thread and return its generation token.

        A newer refresh supersedes this one: its result is then discarded.
        """
        generation = self.store.begin()

        def emit_on_main_loop(*args):
            GLib.idle_add(self.emit, *args)

        def do_scan():
            try:
                self._scan(generation, emit_on_main_loop)
            except ScanError:
                pass  # already reported through 'scan-failed'

        threading.Thread(target=do_scan, daemon=True).start()
        return generation

    # --- Pipeline ----------------------------------------------------------

    def _collect(self, emit):
        try:
            return self.scanner.collect(self.selector.variants())
        except PermissionDenied as e:
            if not self.selector.is_detailed:
                raise
            logger.warning(f"Detailed listing denied: {e}")
            if self.selector.demote():
                emit('limited-mode', LIMITED_MODE_MESSAGE)
            return self.scanner.collect(self.selector.variants())

    def _scan(self, generation: int, emit) -> Snapshot:
        try:
            variant, output = self._collect(emit)
        except ScanError as e:
            if self.store.is_current(generation):
                self.last_error = e
                logger.error(f"Port scan failed: {e}")
                emit('scan-failed', e)
            raise

        result = parse_listing(output, variant)
        records = result.records
        if variant.mode is ScanMode.DETAILED:
            records = enrich(records, self.lookup)

        snapshot = Snapshot(
            records=records,
            mode=variant.mode,
            variant=variant,
            skipped_lines=result.skipped_lines,
        )
        logger.info(
            "Scan with %s found %d listening sockets (%d lines skipped)",
            " ".join(variant.argv), len(records), result.skipped_lines,
        )
        if self.store.install(snapshot, generation):
            self.last_error = None
            emit('ports-updated', snapshot)
        return snapshot
