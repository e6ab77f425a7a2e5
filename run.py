#!/usr/bin/env python3
"""
Runner for Ports Info from a source checkout
"""

import os
import sys

CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))

# Make the in-tree package importable without installing it
sys.path.insert(0, CURRENT_DIR)


def main() -> int:
    from portsinfo.main import main as ports_main

    return ports_main()


if __name__ == '__main__':
    sys.exit(main())
