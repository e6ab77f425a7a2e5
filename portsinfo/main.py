#!/usr/bin/env python3
"""
Ports Info - listening ports information
Command line entry point
"""

import argparse
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from . import __version__
from .config import Config
from .errors import ScanError
from .mode import ModeSelector
from .models import ScanMode
from .platform_utils import get_data_dir
from .port_display import format_process_label
from .service import PortsService

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Set up logging configuration"""
    log_dir = get_data_dir()
    os.makedirs(log_dir, exist_ok=True)

    log_level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Clear any existing handlers
    logging.getLogger().handlers.clear()

    # File handler with rotation
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, 'ports-info.log'),
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    # Console output stays quiet unless asked; stdout carries the table
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level if verbose else logging.WARNING)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.getLogger('gi').setLevel(logging.INFO if verbose else logging.WARNING)
    logging.getLogger('portsinfo').setLevel(log_level)


def format_table(records, mode: ScanMode) -> str:
    rows = [("PROTO", "PORT", "LOCAL ADDRESS", "STATE", "PROCESS")]
    for record in records:
        rows.append((
            record.protocol.value,
            str(record.port),
            record.local_address,
            record.state,
            format_process_label(record, mode),
        ))
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]) - 1)]
    lines = []
    for row in rows:
        cells = [cell.ljust(width) for cell, width in zip(row, widths)]
        lines.append("  ".join(cells + [row[-1]]))
    return "\n".join(lines)


def main(argv=None):
    """Main entry point"""
    parser = argparse.ArgumentParser(description="List listening network ports")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose debug logging")
    parser.add_argument("--search", "-s", default="", help="Only show ports or process names containing this text")
    parser.add_argument("--limited", action="store_true", help="Skip the privileged listing")
    parser.add_argument("--json", action="store_true", help="Print records as JSON")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    config = Config()
    setup_logging(args.verbose or bool(config.get_setting('logging.debug', False)))

    selector = None
    if args.limited:
        selector = ModeSelector(
            start_limited=True,
            preferred_tool=config.get_setting('scan.preferred_tool', 'ss'),
        )

    service = PortsService(config=config, selector=selector)
    service.connect('limited-mode', lambda _service, message: logger.warning(message))

    try:
        snapshot = service.scan()
    except ScanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    records = service.filter(args.search)
    if args.json:
        print(json.dumps([record.to_dict() for record in records], indent=2))
    else:
        print(format_table(records, snapshot.mode))
    return 0


if __name__ == '__main__':
    sys.exit(main())
