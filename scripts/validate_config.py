#!/usr/bin/env python3
"""Check tax year YAML files and the relief catalogue from a source checkout.

Usage: ``python scripts/validate_config.py [YEAR ...]``. Exits non-zero when
any year reports an issue.
"""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from cukai.backend.config.validator import main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
