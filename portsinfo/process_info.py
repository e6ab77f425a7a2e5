"""Per-process details for listening sockets, looked up with psutil."""

import logging
import threading
from datetime import datetime
from typing import Dict, Optional, Tuple

import psutil

from .models import ProcessDetails

logger = logging.getLogger(__name__)

# Seconds spent sampling CPU time for a process seen for the first time
CPU_SAMPLE_INTERVAL = 0.1

# psutil measures cpu_percent between two calls on the same Process object,
# so the objects are kept across scans
_processes: Dict[int, psutil.Process] = {}
_processes_lock = threading.Lock()


def _tracked_process(pid: int) -> Tuple[psutil.Process, bool]:
    """Return the cached Process for ``pid`` and whether it was just created."""
    with _processes_lock:
        process = _processes.get(pid)
    if process is not None and process.is_running():
        return process, False

    process = psutil.Process(pid)
    with _processes_lock:
        _processes[pid] = process
    return process, True


def _forget(pid: int):
    with _processes_lock:
        _processes.pop(pid, None)


def get_process_details(pid: int) -> Optional[ProcessDetails]:
    """Return details for ``pid`` or None if the process is gone or hidden.

    Processes commonly exit between the socket listing and this lookup;
    that is not an error for the scan.
    """
    try:
        process, is_new = _tracked_process(pid)
        # Must run outside oneshot(), which would cache the second sample
        cpu = process.cpu_percent(interval=CPU_SAMPLE_INTERVAL if is_new else None)
        with process.oneshot():
            cmdline = process.cmdline()
            name = process.name()
            user = process.username()
            rss = process.memory_info().rss
            started = datetime.fromtimestamp(process.create_time())
            status = process.status()
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess) as e:
        logger.debug(f"No details for PID {pid}: {e}")
        _forget(pid)
        return None

    return ProcessDetails(
        # Kernel threads report an empty command line
        command_line=" ".join(cmdline) if cmdline else name,
        user=user,
        cpu_usage=float(cpu),
        mem_usage=float(rss),
        start_time=started,
        status=str(status),
    )


def format_start_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%Y-%m-%d %H:%M:%S")


def format_memory(rss_bytes: Optional[float]) -> Optional[str]:
    """Render resident memory in megabytes, e.g. ``12.3 MB``"""
    if rss_bytes is None:
        return None
    return f"{rss_bytes / 1024.0 / 1024.0:.1f} MB"
