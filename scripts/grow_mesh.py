#!/usr/bin/env python3
"""Grow scaled copies of an STL mesh onto its own triangles."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from meshgrowth.cli import main

if __name__ == "__main__":
    sys.exit(main())
