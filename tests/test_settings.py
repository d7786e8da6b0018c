from pathlib import Path

import pytest

from quoteflow.core.errors import ConfigError
from quoteflow.core.settings import DEFAULT_FORM_URL, ensure_work_dirs, load_settings


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for key in ("QUOTEFLOW_SETTINGS", "QUOTEFLOW_FORM_URL", "QUOTEFLOW_HEADLESS", "QUOTEFLOW_WORK_DIR", "QUOTEFLOW_SELECTORS_VARIANT"):
        monkeypatch.delenv(key, raising=False)


def test_bundled_settings_match_harness_bounds():
    settings = load_settings()

    assert settings.form_url == DEFAULT_FORM_URL
    assert settings.page_load_timeout_ms == 30_000
    assert settings.ready_timeout_ms == 20_000
    assert settings.result_timeout_ms == 20_000
    assert settings.browser_args == ("--start-maximized", "--disable-notifications")
    assert settings.browser_channels[0] == "chromium"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("QUOTEFLOW_FORM_URL", "http://127.0.0.1:8080/getQuote.html")
    monkeypatch.setenv("QUOTEFLOW_HEADLESS", "false")
    monkeypatch.setenv("QUOTEFLOW_WORK_DIR", str(tmp_path))

    settings = load_settings()

    assert settings.form_url == "http://127.0.0.1:8080/getQuote.html"
    assert settings.headless is False
    assert settings.work_dir == Path(tmp_path)


def test_settings_file_from_environment(monkeypatch, tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("form_url: file:///srv/getQuote.html\ntimeouts:\n  result_ms: 1500\n", encoding="utf-8")
    monkeypatch.setenv("QUOTEFLOW_SETTINGS", str(path))

    settings = load_settings()

    assert settings.form_url == "file:///srv/getQuote.html"
    assert settings.result_timeout_ms == 1500
    assert settings.ready_timeout_ms == 20_000


@pytest.mark.parametrize(
    "content",
    [
        "timeouts:\n  ready_ms: 0\n",
        "timeouts:\n  ready_ms: soon\n",
        "browser:\n  headless: maybe\n",
        "browser: [chromium]\n",
        "- just\n- a list\n",
    ],
)
def test_invalid_settings_raise_config_error(tmp_path, content):
    path = tmp_path / "settings.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_settings(path)


def test_missing_settings_file(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "nope.yaml")


def test_with_overrides_ignores_none(settings):
    updated = settings.with_overrides(form_url=None, headless=False)

    assert updated.form_url == settings.form_url
    assert updated.headless is False


def test_ensure_work_dirs_creates_layout(tmp_path):
    dirs = ensure_work_dirs(tmp_path)

    assert dirs["shot"] == tmp_path / "logs" / "shot"
    assert all(path.is_dir() for path in dirs.values())


def test_selectors_variant_from_file_and_environment(monkeypatch, tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("selectors:\n  variant: legacy\n", encoding="utf-8")

    assert load_settings().selectors_variant is None
    assert load_settings(path).selectors_variant == "legacy"

    monkeypatch.setenv("QUOTEFLOW_SELECTORS_VARIANT", "staging")
    assert load_settings(path).selectors_variant == "staging"
