"""Playwright session wrapper for the insurance quote calculator page.

This module provides a page-object style wrapper that owns one browser
handle, drives the quote form through the Locator API, waits on explicit
bounds for the page and the result field, and captures screenshots and
Playwright traces when a session fails.
"""

from __future__ import annotations

import platform
import time

from playwright.sync_api import (
    Browser,
    BrowserContext,
    Locator,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    Error as PlaywrightError,
    sync_playwright,
)

from quoteflow.config import QuoteFormSelectors, load_quote_form_selectors
from quoteflow.core.errors import BrowserError, NavigationError, ResultTimeoutError
from quoteflow.core.logger import get_logger
from quoteflow.core.settings import HarnessSettings, ensure_work_dirs, load_settings
from quoteflow.models import FormInput, ValidationResult, ValidationSignal


_DEFAULT_FORM = FormInput()

# Resolves to the value once the field holds non-empty text.
_POPULATED_VALUE_JS = """
(id) => {
    const el = document.getElementById(id);
    return el && el.value ? el.value : null;
}
"""
_VALIDATION_MESSAGE_JS = "(el) => el.validationMessage || ''"


class QuoteFormSession:
    """Owns one browser handle pointed at the quote form.

    A session is opened once, used for a single scenario and closed. Closing
    is idempotent and never raises, so teardown cannot mask the assertion
    that failed the test.
    """

    def __init__(
        self,
        settings: HarnessSettings | None = None,
        selectors: QuoteFormSelectors | None = None,
        *,
        logger=None,
    ) -> None:
        self.settings = settings or load_settings()
        self.selectors = selectors or load_quote_form_selectors(variant=self.settings.selectors_variant)
        self.logger = logger or get_logger()
        work_dirs = ensure_work_dirs(self.settings.work_dir)
        self.screenshots_dir = work_dirs["shot"]
        self.trace_dir = work_dirs["trace"]

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._tracing_active = False
        self._browser_channel: str | None = None
        self._closed = False
        self._artifacts_recorded = False

    # ------------------------------------------------------------------
    # Lifecycle helpers
    def __enter__(self) -> "QuoteFormSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, _tb) -> bool:
        if exc is not None:
            self.logger.error("报价表单会话失败: %s", exc)
            if not self._artifacts_recorded:
                self._record_failure_artifacts("exception")
        self.close()
        # Do not suppress exceptions
        return False

    @property
    def is_open(self) -> bool:
        return self._page is not None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise BrowserError("会话未打开，请先调用 open()")
        return self._page

    def open(self) -> Page:
        """Launch the browser, load the form and wait until it is usable.

        Raises:
            NavigationError: The page or its submit control did not become
                ready within the configured bounds.
            BrowserError: Playwright or the browser could not be started, or
                the session was already closed.
        """

        if self._page is not None:
            return self._page
        if self._closed:
            raise BrowserError("会话已关闭，不能重复使用")

        try:
            self._playwright = sync_playwright().start()
        except Exception as exc:  # noqa: BLE001
            self.close()
            raise BrowserError("Playwright 未安装或初始化失败，请运行 python -m playwright install chromium") from exc

        try:
            browser = self._launch_browser(self._playwright)
            self._browser = browser
            context = browser.new_context(no_viewport=True)
            self._context = context
            page = context.new_page()
        except BrowserError:
            self.close()
            raise
        except PlaywrightError as exc:
            self.close()
            raise BrowserError("创建浏览器页面失败") from exc

        page.set_default_navigation_timeout(self.settings.page_load_timeout_ms)
        page.set_default_timeout(self.settings.action_timeout_ms)
        self._page = page
        self._start_trace()
        self._navigate(page)
        return page

    def close(self) -> None:
        """Release Playwright resources."""
        if self._context is not None:
            try:
                self._context.close()
            except Exception:  # noqa: BLE001
                self.logger.warning("关闭 BrowserContext 失败", exc_info=True)
        if self._browser is not None:
            try:
                self._browser.close()
            except Exception:  # noqa: BLE001
                self.logger.warning("关闭 Browser 实例失败", exc_info=True)
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception:  # noqa: BLE001
                self.logger.warning("停止 Playwright 失败", exc_info=True)

        self._context = None
        self._browser = None
        self._playwright = None
        self._page = None
        self._tracing_active = False
        self._closed = True

    # ------------------------------------------------------------------
    # Form interactions
    def fill_personal_info(self, valid: bool = True, form: FormInput | None = None) -> None:
        """Type the personal details; contact fields only when ``valid``.

        With ``valid=False`` postal code, phone and email stay blank so the
        caller can enter deliberately malformed values via ``enter_text``.
        """

        form = form or _DEFAULT_FORM
        for key, value in form.personal_fields():
            self.enter_text(key, value)
        if valid:
            for key, value in form.contact_fields():
                self.enter_text(key, value)

    def enter_text(self, field: str, value: str) -> None:
        self._locator(field).press_sequentially(value)

    def fill_driving_info(self, age: str | int | None, experience: str | int | None, accidents: str | int | None) -> None:
        """Clear the numeric fields and type each value that is not empty."""

        for key, value in (("age", age), ("experience", experience), ("accidents", accidents)):
            locator = self._locator(key)
            locator.clear()
            text = "" if value is None else str(value)
            if text:
                locator.press_sequentially(text)

    def fill_form(self, form: FormInput) -> None:
        self.fill_personal_info(valid=False, form=form)
        for key, value in form.contact_fields():
            if value:
                self.enter_text(key, value)
        self.fill_driving_info(form.age, form.experience, form.accidents)

    def submit(self) -> None:
        self.logger.info("提交报价表单")
        self._locator("submit").click()

    def get_quote_result(self, timeout_ms: int | None = None) -> str:
        """Wait until the result field holds a value and return it.

        Raises:
            ResultTimeoutError: The field stayed empty past the bound.
        """

        page = self.page
        result_id = self.selectors.element_id("result")
        bound = timeout_ms if timeout_ms is not None else self.settings.result_timeout_ms
        self.logger.debug("等待报价结果: #%s (%sms)", result_id, bound)
        try:
            handle = page.wait_for_function(_POPULATED_VALUE_JS, arg=result_id, timeout=bound)
        except PlaywrightTimeoutError as exc:
            self._record_failure_artifacts("result-timeout")
            raise ResultTimeoutError(f"{bound}ms 内未获得报价结果: #{result_id}") from exc
        value = handle.json_value()
        self.logger.info("报价结果: %s", value)
        return str(value)

    def inspect_validation(self, field: str) -> ValidationResult:
        """Report whether ``field`` carries a validation message.

        The native ``validationMessage`` wins; otherwise the class attribute
        is checked for the configured error markers. Lookup failures never
        propagate: they come back as ``ABSENT`` with ``error`` filled in.
        """

        markers = self.selectors.validation
        bound = self.settings.validation_timeout_ms
        try:
            locator = self._locator(field)
            native = locator.evaluate(_VALIDATION_MESSAGE_JS, timeout=bound)
            if native:
                return ValidationResult(field, ValidationSignal.NATIVE, str(native))
            classes = locator.get_attribute("class", timeout=bound) or ""
            if any(marker in classes for marker in markers.classes):
                return ValidationResult(field, ValidationSignal.MARKER, markers.message)
            return ValidationResult(field, ValidationSignal.ABSENT)
        except Exception as exc:  # noqa: BLE001
            self.logger.debug("读取校验信息失败: %s", field, exc_info=True)
            return ValidationResult(field, ValidationSignal.ABSENT, error=str(exc))

    def get_validation_message(self, field: str) -> str:
        return self.inspect_validation(field).message

    # ------------------------------------------------------------------
    # Internal helpers
    def _locator(self, name: str) -> Locator:
        return self.page.locator(self.selectors.css(name))

    def _navigate(self, page: Page) -> None:
        url = self.settings.form_url
        self.logger.info("打开页面: %s", url)
        try:
            page.goto(url, wait_until="domcontentloaded")
        except PlaywrightTimeoutError as exc:
            self._abort("goto-timeout")
            raise NavigationError(f"页面跳转超时: {url}") from exc
        except PlaywrightError as exc:
            self._abort("goto-error")
            raise NavigationError(f"页面跳转失败: {url}") from exc

        submit = page.locator(self.selectors.css("submit"))
        self.logger.debug("等待提交按钮: %s", submit)
        try:
            submit.wait_for(state="visible", timeout=self.settings.ready_timeout_ms)
        except PlaywrightError as exc:
            self._abort("ready-timeout")
            raise NavigationError(f"提交按钮未及时出现: {url}") from exc

    def _abort(self, label: str) -> None:
        self._record_failure_artifacts(label)
        self.close()

    def _launch_browser(self, playwright: Playwright) -> Browser:
        last_exc: PlaywrightError | None = None
        for label in self.settings.browser_channels:
            channel = None if label == "chromium" else label
            try:
                browser = playwright.chromium.launch(
                    headless=self.settings.headless,
                    channel=channel,
                    args=list(self.settings.browser_args),
                )
                self._browser_channel = label
                return browser
            except PlaywrightError as exc:
                last_exc = exc
                continue
        raise BrowserError(
            "无法启动 Chromium，请执行 python -m playwright install chromium 或安装 Edge/Chrome"
        ) from last_exc

    def _start_trace(self) -> None:
        if not self.settings.capture_trace or self._context is None:
            return
        try:
            self._context.tracing.start(name="quote-form", screenshots=True, snapshots=True, sources=True)
            self._tracing_active = True
        except PlaywrightError:
            self.logger.warning("启动 trace 失败", exc_info=True)
            self._tracing_active = False

    def _record_failure_artifacts(self, label: str) -> None:
        self._artifacts_recorded = True
        timestamp = time.strftime("%Y%m%d-%H%M%S")
        page = self._page
        context = self._context

        if page is not None and self.settings.capture_screenshots:
            snap_path = self.screenshots_dir / f"{label}_{timestamp}.png"
            try:
                page.screenshot(path=str(snap_path), full_page=True)
                self.logger.info("故障截图已保存: %s", snap_path)
            except PlaywrightError:
                self.logger.warning("截图失败", exc_info=True)

        if context is not None and self._tracing_active:
            trace_path = self.trace_dir / f"{label}_{timestamp}.zip"
            try:
                context.tracing.stop(path=str(trace_path))
                self.logger.info("Playwright trace 导出: %s", trace_path)
            except PlaywrightError:
                self.logger.warning("导出 trace 失败", exc_info=True)
            finally:
                self._tracing_active = False

    # ------------------------------------------------------------------
    # Diagnostics
    def environment_snapshot(self) -> dict[str, str | None]:
        """Return Playwright/browser/OS metadata for diagnostics."""

        info: dict[str, str | None] = {
            "playwrightVersion": self._playwright_version(),
            "browserName": None,
            "browserVersion": None,
            "browserChannel": self._browser_channel,
            "os": platform.platform(),
        }
        browser = self._browser
        if browser is not None:
            browser_type = getattr(browser, "browser_type", None)
            info["browserName"] = getattr(browser_type, "name", None)
            try:
                info["browserVersion"] = browser.version
            except Exception:  # noqa: BLE001
                info["browserVersion"] = None
        return info

    @staticmethod
    def _playwright_version() -> str | None:
        try:
            from importlib.metadata import version

            return version("playwright")
        except Exception:  # noqa: BLE001
            return None
