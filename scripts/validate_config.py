#!/usr/bin/env python3
"""Check the NaijaTax rule tables from a source checkout.

Usage: ``scripts/validate_config.py [YEAR ...]``. With no years, every year in
the manifest is validated. The exit status is non-zero when any table fails.
"""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from naijatax.backend.config.validator import main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
