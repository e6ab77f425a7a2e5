"""Errors raised while collecting port listings."""

from enum import Enum
from typing import Optional, Sequence


class ScanErrorKind(Enum):
    TOOL_NOT_FOUND = "tool-not-found"
    EXECUTION_FAILED = "execution-failed"
    PERMISSION_DENIED = "permission-denied"
    TIMEOUT = "timeout"


class ScanError(Exception):
    """Base class for failures of a single scan.

    A scan error never invalidates the last good snapshot; callers keep
    showing it and surface the error as a transient notice.
    """

    kind: ScanErrorKind = ScanErrorKind.EXECUTION_FAILED

    def __init__(self, message: str, command: Optional[Sequence[str]] = None,
                 stderr: str = ""):
        super().__init__(message)
        self.command = list(command) if command else []
        self.stderr = stderr


class ToolNotFound(ScanError):
    """Neither ``ss`` nor ``netstat`` could be executed"""
    kind = ScanErrorKind.TOOL_NOT_FOUND


class ExecutionFailed(ScanError):
    kind = ScanErrorKind.EXECUTION_FAILED


class PermissionDenied(ScanError):
    """The listing tool refused to report process ownership"""
    kind = ScanErrorKind.PERMISSION_DENIED


class ScanTimeout(ScanError):
    kind = ScanErrorKind.TIMEOUT
