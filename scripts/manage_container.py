#!/usr/bin/env python3
"""
CLI script for managing eFMU containers.

Usage:
    python scripts/manage_container.py --create -I schemas/ -N demo -O demo.fmu
    python scripts/manage_container.py --add -E demo.fmu -N m1 -I prodcode/ -M manifest.xml
    python scripts/manage_container.py --list -E demo.fmu

Installed as the ``efmu-container`` console script.
"""

from __future__ import annotations

import sys

from efmucontainer.cli import main

if __name__ == "__main__":
    sys.exit(main())
