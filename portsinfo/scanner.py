"""
Port scanner for Ports Info
Runs ``ss``/``netstat`` and returns their raw output; the only code that talks to the OS
"""

import logging
import shutil
import subprocess
from typing import List, Optional, Sequence, Tuple

from .errors import ExecutionFailed, PermissionDenied, ScanTimeout, ToolNotFound
from .models import ListingVariant, ScanMode

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0

# pkexec: 126 = authentication dialog dismissed, 127 = not authorized
ELEVATION_DENIED_EXIT_CODES = (126, 127)

PERMISSION_MARKERS = (
    "permission denied",
    "operation not permitted",
    "not authorized",
    "must be root",
    "authentication failed",
)


def is_permission_message(text: str) -> bool:
    lowered = (text or "").lower()
    return any(marker in lowered for marker in PERMISSION_MARKERS)


class PortScanner:
    """Invoke a listing tool with a bounded timeout.

    No retries happen here; retry and fallback policy belong to the caller.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT,
                 elevation_helper: Optional[str] = None):
        self.timeout = timeout if timeout and timeout > 0 else DEFAULT_TIMEOUT
        self.elevation_helper = (elevation_helper or "").strip() or None

    def build_command(self, variant: ListingVariant) -> List[str]:
        """Return the argv for a variant; detailed listings get the elevation prefix."""
        command = list(variant.argv)
        if variant.mode is ScanMode.DETAILED and self.elevation_helper:
            command = [self.elevation_helper] + command
        return command

    def is_available(self, variant: ListingVariant) -> bool:
        return shutil.which(variant.tool) is not None

    def run(self, variant: ListingVariant) -> str:
        """Run one listing command and return its standard output.

        Raises:
            ToolNotFound: the tool (or the elevation helper) is not installed
            ScanTimeout: the command did not finish within ``timeout``
            PermissionDenied: the command or helper refused the request
            ExecutionFailed: any other failure
        """
        if not self.is_available(variant):
            raise ToolNotFound(f"{variant.tool} is not installed", variant.argv)

        command = self.build_command(variant)
        if command[0] != variant.tool and shutil.which(command[0]) is None:
            # Without the helper there is no way to get ownership details
            raise PermissionDenied(f"Elevation helper {command[0]} is not installed", command)

        logger.debug("Running %s (timeout %.1fs)", " ".join(command), self.timeout)
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise ToolNotFound(f"{command[0]} is not installed", command) from e
        except subprocess.TimeoutExpired as e:
            raise ScanTimeout(
                f"{variant.tool} did not finish within {self.timeout:g} seconds", command
            ) from e
        except PermissionError as e:
            raise PermissionDenied(f"Cannot execute {command[0]}: {e}", command) from e
        except OSError as e:
            raise ExecutionFailed(f"Failed to run {variant.tool}: {e}", command) from e

        stdout = (result.stdout or b"").decode("utf-8", errors="replace")
        stderr = (result.stderr or b"").decode("utf-8", errors="replace").strip()
        self._check_result(variant, command, result.returncode, stdout, stderr)

        if stderr:
            logger.debug("%s stderr: %s", variant.tool, stderr)
        return stdout

    def _check_result(self, variant: ListingVariant, command: Sequence[str],
                      returncode: int, stdout: str, stderr: str):
        elevated = command[0] != variant.tool
        if returncode != 0:
            if elevated and returncode in ELEVATION_DENIED_EXIT_CODES:
                raise PermissionDenied(
                    f"{command[0]} refused to run {variant.tool} (exit {returncode})",
                    command, stderr,
                )
            if is_permission_message(stderr):
                raise PermissionDenied(f"{variant.tool}: {stderr}", command, stderr)
            raise ExecutionFailed(
                f"{variant.tool} exited with status {returncode}: {stderr or 'no output'}",
                command, stderr,
            )
        if not stdout.strip() and is_permission_message(stderr):
            raise PermissionDenied(f"{variant.tool}: {stderr}", command, stderr)

    def collect(self, variants: Sequence[ListingVariant]) -> Tuple[ListingVariant, str]:
        """Try variants in order, moving on only when a tool is missing.

        Returns the variant that produced output together with the output.
        """
        missing = []
        for variant in variants:
            try:
                return variant, self.run(variant)
            except ToolNotFound as e:
                logger.debug("%s", e)
                missing.append(variant.tool)
        tried = " or ".join(missing) or "no tool"
        raise ToolNotFound(
            f"Failed to get port information: {tried} not available. "
            "Install iproute2 (ss) or net-tools (netstat).",
        )
