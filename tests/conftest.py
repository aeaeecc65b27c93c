"""
Pytest Configuration

Makes ``src`` importable when the package is not installed, registers the
shared HTTP mocking fixtures and keeps the process-wide client manager and
``HTTPSOURCE_*`` environment out of individual tests.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Generator

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
for entry in (SRC, ROOT):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))

from ImageSources.HttpSource import reset_http_client_manager  # noqa: E402
from tests.fixtures.http_mocking import (  # noqa: E402,F401
    client_manager,
    source_server,
)


@pytest.fixture(autouse=True)
def _isolate_http_source(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop ambient HTTPSOURCE_* variables and reset the shared manager."""
    for key in list(os.environ):
        if key.upper().startswith("HTTPSOURCE_"):
            monkeypatch.delenv(key, raising=False)
    reset_http_client_manager()
    yield
    reset_http_client_manager()
