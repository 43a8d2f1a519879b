"""
Pytest Configuration

Shared pytest behaviour for the suite: puts ``src`` and the repository root on
``sys.path`` so the package and ``tests.fixtures`` import without an editable
install, and re-exports the HTTP mocking fixtures.

Usage:
    pytest tests/integration_download
"""

from __future__ import annotations

import sys
from pathlib import Path

# --- Globals ---

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
for _entry in (SRC, ROOT):
    if str(_entry) not in sys.path:
        sys.path.insert(0, str(_entry))

from tests.fixtures.http_mocking import (  # noqa: E402,F401
    http_client,
    scenario,
    services,
)
