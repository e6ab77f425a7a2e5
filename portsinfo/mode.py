"""Selection between detailed (privileged) and limited listings."""

import logging
import threading
from typing import List

from .models import ListingVariant, ScanMode

logger = logging.getLogger(__name__)

SUPPORTED_TOOLS = ("ss", "netstat")

LIMITED_MODE_MESSAGE = (
    "Limited port information: Running without administrative privileges"
)


class ModeSelector:
    """Two-state machine: DETAILED -> LIMITED on a permission failure.

    The only automatic transition is the demotion. Going back requires an
    explicit :meth:`reelevate` call after the caller re-acquired rights.
    """

    def __init__(self, start_limited: bool = False, preferred_tool: str = "ss"):
        self._lock = threading.Lock()
        self._mode = ScanMode.LIMITED if start_limited else ScanMode.DETAILED
        self._notice_pending = True
        self.preferred_tool = preferred_tool

    @property
    def preferred_tool(self) -> str:
        return self._preferred_tool

    @preferred_tool.setter
    def preferred_tool(self, tool: str):
        if tool not in SUPPORTED_TOOLS:
            logger.warning("Unknown listing tool %r; using ss", tool)
            tool = "ss"
        self._preferred_tool = tool

    @property
    def mode(self) -> ScanMode:
        return self._mode

    @property
    def is_detailed(self) -> bool:
        return self._mode is ScanMode.DETAILED

    def demote(self) -> bool:
        """Switch to LIMITED mode.

        Returns True exactly once per session, the first time detailed
        information becomes unavailable, so the caller can show its notice.
        """
        with self._lock:
            if self._mode is ScanMode.DETAILED:
                logger.info("Detailed port information unavailable; switching to limited mode")
            self._mode = ScanMode.LIMITED
            notify = self._notice_pending
            self._notice_pending = False
        return notify

    def reelevate(self):
        """Return to DETAILED mode after an external re-elevation."""
        with self._lock:
            if self._mode is ScanMode.LIMITED:
                logger.info("Re-elevated; detailed port information will be requested again")
            self._mode = ScanMode.DETAILED

    def tool_order(self) -> List[str]:
        others = [tool for tool in SUPPORTED_TOOLS if tool != self.preferred_tool]
        return [self.preferred_tool] + others

    def variants(self) -> List[ListingVariant]:
        """Listing variants to try for the current mode, preferred tool first."""
        mode = self._mode
        return [ListingVariant.for_tool(tool, mode) for tool in self.tool_order()]
