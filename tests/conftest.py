from __future__ import annotations

import faulthandler
import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

faulthandler.enable()  # Ensure crashes emit tracebacks.
os.environ.setdefault("QUOTEFLOW_WORK_DIR", tempfile.mkdtemp(prefix="quoteflow-tests-"))

from quoteflow.config import load_quote_form_selectors
from quoteflow.core.logger import get_logger
from quoteflow.core.settings import HarnessSettings

get_logger()


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "e2e: drives the real quote form in a browser"
    )


@pytest.fixture
def settings(tmp_path) -> HarnessSettings:
    return HarnessSettings(form_url="http://quote.test/getQuote.html", work_dir=tmp_path / "work")


@pytest.fixture(scope="session")
def selectors():
    return load_quote_form_selectors()
