#!/usr/bin/env python3
"""
vimimswitch entry point for running as a module: python3 -m vimimswitch
"""

import sys
from vimimswitch.cli import main

if __name__ == '__main__':
    sys.exit(main())
