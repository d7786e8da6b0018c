"""Fixtures for the browser tests against the live quote form."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse

import pytest
import requests

from quoteflow.browser import QuoteFormSession
from quoteflow.core.settings import HarnessSettings, load_settings


def _form_reachable(url: str) -> str | None:
    """Return a skip reason when the form cannot be loaded, else ``None``."""

    parsed = urlparse(url)
    if parsed.scheme == "file":
        return None if Path(parsed.path).exists() else f"表单文件不存在: {parsed.path}"
    try:
        response = requests.get(url, timeout=5)
    except requests.RequestException as exc:
        return f"表单不可访问: {url} ({exc.__class__.__name__})"
    if response.status_code >= 400:
        return f"表单返回 HTTP {response.status_code}: {url}"
    return None


@pytest.fixture(scope="session")
def live_settings(tmp_path_factory) -> HarnessSettings:
    settings = load_settings().with_overrides(work_dir=tmp_path_factory.mktemp("e2e"))
    reason = _form_reachable(settings.form_url)
    if reason:
        pytest.skip(reason)
    return settings


@pytest.fixture
def quote_form(live_settings, selectors):
    """One freshly opened session per test, released on every exit path."""

    with QuoteFormSession(live_settings, selectors) as session:
        yield session
