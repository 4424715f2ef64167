#!/usr/bin/env python3
"""Entry point to run the Upwork job monitor without installing it."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from upwork_monitor.cli import main

if __name__ == "__main__":
    sys.exit(main())
