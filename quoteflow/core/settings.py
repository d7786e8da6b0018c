from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .errors import ConfigError


load_dotenv(override=False)

SETTINGS_ENV = "QUOTEFLOW_SETTINGS"
FORM_URL_ENV = "QUOTEFLOW_FORM_URL"
HEADLESS_ENV = "QUOTEFLOW_HEADLESS"
WORK_DIR_ENV = "QUOTEFLOW_WORK_DIR"
ROOT_ENV = "QUOTEFLOW_ROOT"
SELECTORS_VARIANT_ENV = "QUOTEFLOW_SELECTORS_VARIANT"
LOG_LEVEL_ENV = "QUOTEFLOW_LOG_LEVEL"

DEFAULT_FORM_URL = "http://localhost/prog8170a04/getQuote.html"
DEFAULT_BROWSER_ARGS = ("--start-maximized", "--disable-notifications")
DEFAULT_CHANNELS = ("chromium", "msedge", "chrome")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class HarnessSettings:
    """Runtime settings for a quote form session.

    Attributes:
        form_url: Address of the quote calculator page.
        headless: Launch the browser without a window.
        browser_channels: Chromium channels tried in order at launch.
        browser_args: Extra command line switches for the browser.
        page_load_timeout_ms: Navigation bound.
        ready_timeout_ms: Bound for the submit control to become visible.
        result_timeout_ms: Bound for the quote result to be populated.
        action_timeout_ms: Default bound for clicks and keystrokes.
        validation_timeout_ms: Bound for validation message lookups.
        capture_screenshots: Save a screenshot when a session fails.
        capture_trace: Record a Playwright trace and export it on failure.
        work_dir: Writable base for logs, screenshots, traces and reports.
        selectors_variant: Named entry under ``variants`` in quote_form.yaml
            merged over ``base``; ``None`` uses ``base`` alone.
    """

    form_url: str = DEFAULT_FORM_URL
    headless: bool = True
    browser_channels: tuple[str, ...] = DEFAULT_CHANNELS
    browser_args: tuple[str, ...] = DEFAULT_BROWSER_ARGS
    page_load_timeout_ms: int = 30_000
    ready_timeout_ms: int = 20_000
    result_timeout_ms: int = 20_000
    action_timeout_ms: int = 5_000
    validation_timeout_ms: int = 2_000
    capture_screenshots: bool = True
    capture_trace: bool = False
    work_dir: Path = field(default_factory=lambda: _work_dir())
    selectors_variant: str | None = None

    def with_overrides(self, **changes: Any) -> "HarnessSettings":
        """Return a copy with the non-``None`` values applied."""

        applied = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **applied)


def _project_root() -> Path:
    env = os.getenv(ROOT_ENV)
    if env:
        return Path(env)
    # In source layout, this file is under <root>/quoteflow/core
    return Path(__file__).resolve().parents[2]


def _config_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "config"


def _work_dir() -> Path:
    env = os.getenv(WORK_DIR_ENV)
    if env:
        return Path(env)
    return _project_root() / "quoteflow" / "work"


def ensure_work_dirs(base: Path | None = None) -> dict[str, Path]:
    root = Path(base) if base is not None else _work_dir()
    logs = root / "logs"
    shot = logs / "shot"
    trace = logs / "trace"
    out = root / "out"
    for p in (logs, shot, trace, out):
        p.mkdir(parents=True, exist_ok=True)
    return {"logs": logs, "shot": shot, "trace": trace, "out": out}


def load_settings(path: str | Path | None = None) -> HarnessSettings:
    """Load harness settings from config/settings.yaml and the environment.

    Resolution order: explicit ``path``, ``QUOTEFLOW_SETTINGS``, bundled
    defaults. ``QUOTEFLOW_FORM_URL``, ``QUOTEFLOW_HEADLESS``,
    ``QUOTEFLOW_WORK_DIR`` and ``QUOTEFLOW_SELECTORS_VARIANT`` override the
    file values.

    Raises:
        ConfigError: The file is missing or holds invalid values.
    """

    env_path = os.getenv(SETTINGS_ENV)
    cfg_path = Path(path) if path else Path(env_path) if env_path else _config_dir() / "settings.yaml"
    if not cfg_path.exists():
        raise ConfigError(f"settings.yaml 未找到: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError("settings.yaml 必须是字典结构")
    return _apply_env(_from_mapping(data))


def _from_mapping(data: Mapping[str, Any]) -> HarnessSettings:
    browser = _section(data, "browser")
    timeouts = _section(data, "timeouts")
    artifacts = _section(data, "artifacts")
    selectors = _section(data, "selectors")
    defaults = HarnessSettings()
    try:
        return HarnessSettings(
            form_url=str(data.get("form_url", defaults.form_url)),
            headless=_as_bool(browser.get("headless", defaults.headless), "browser.headless"),
            browser_channels=_as_tuple(browser.get("channels", defaults.browser_channels), "browser.channels"),
            browser_args=_as_tuple(browser.get("args", defaults.browser_args), "browser.args"),
            page_load_timeout_ms=_as_timeout(timeouts.get("page_load_ms", defaults.page_load_timeout_ms), "page_load_ms"),
            ready_timeout_ms=_as_timeout(timeouts.get("ready_ms", defaults.ready_timeout_ms), "ready_ms"),
            result_timeout_ms=_as_timeout(timeouts.get("result_ms", defaults.result_timeout_ms), "result_ms"),
            action_timeout_ms=_as_timeout(timeouts.get("action_ms", defaults.action_timeout_ms), "action_ms"),
            validation_timeout_ms=_as_timeout(
                timeouts.get("validation_ms", defaults.validation_timeout_ms), "validation_ms"
            ),
            capture_screenshots=_as_bool(
                artifacts.get("screenshots", defaults.capture_screenshots), "artifacts.screenshots"
            ),
            capture_trace=_as_bool(artifacts.get("trace", defaults.capture_trace), "artifacts.trace"),
            work_dir=Path(artifacts["work_dir"]) if artifacts.get("work_dir") else defaults.work_dir,
            selectors_variant=str(selectors["variant"]) if selectors.get("variant") else None,
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"配置错误: {e}") from e


def _apply_env(settings: HarnessSettings) -> HarnessSettings:
    url = os.getenv(FORM_URL_ENV)
    headless = os.getenv(HEADLESS_ENV)
    work_dir = os.getenv(WORK_DIR_ENV)
    variant = os.getenv(SELECTORS_VARIANT_ENV)
    return settings.with_overrides(
        form_url=url or None,
        headless=_as_bool(headless, HEADLESS_ENV) if headless else None,
        work_dir=Path(work_dir) if work_dir else None,
        selectors_variant=variant or None,
    )


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    node = data.get(key) or {}
    if not isinstance(node, Mapping):
        raise ConfigError(f"{key} 节点必须是映射类型")
    return node


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} 不是合法的布尔值: {value!r}")


def _as_tuple(value: Any, name: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"{name} 必须是列表")
    return tuple(str(item) for item in value)


def _as_timeout(value: Any, name: str) -> int:
    timeout = int(value)
    if timeout <= 0:
        raise ConfigError(f"timeouts.{name} 必须大于 0")
    return timeout
