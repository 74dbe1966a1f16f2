"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path


# ``app`` sits at the project root and the shared test factories live next to
# this file; make both importable without an editable install.
ROOT = Path(__file__).resolve().parents[1]
TESTS_DIR = Path(__file__).resolve().parent
for path in (ROOT, TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
