from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Iterable

from playwright.sync_api import Error as PlaywrightError

from quoteflow.browser import QuoteFormSession
from quoteflow.config import QuoteFormSelectors, load_quote_form_selectors
from quoteflow.core.errors import BrowserError
from quoteflow.core.logger import get_logger
from quoteflow.core.settings import HarnessSettings, ensure_work_dirs, load_settings
from quoteflow.models import QuoteOutcome
from quoteflow.scenarios import Scenario


SessionFactory = Callable[[], QuoteFormSession]


@dataclass
class ScenarioResult:
    scenario_id: str
    title: str
    expected: str
    actual: str | None
    passed: bool
    outcome: str | None = None
    error: str | None = None
    duration_s: float = 0.0


class ScenarioRunner:
    """Runs scenarios one after another, each in a fresh browser session."""

    def __init__(
        self,
        settings: HarnessSettings | None = None,
        selectors: QuoteFormSelectors | None = None,
        *,
        session_factory: SessionFactory | None = None,
        logger=None,
    ) -> None:
        self.settings = settings or load_settings()
        self.selectors = selectors or load_quote_form_selectors(variant=self.settings.selectors_variant)
        self.session_factory = session_factory or self._default_session
        self.logger = logger or get_logger()
        self.environment: dict[str, Any] | None = None

    def _default_session(self) -> QuoteFormSession:
        return QuoteFormSession(self.settings, self.selectors, logger=self.logger)

    def run(self, scenario: Scenario) -> ScenarioResult:
        self.logger.info("运行场景 %s: %s", scenario.label, scenario.title)
        started = time.perf_counter()
        actual: str | None = None
        outcome: str | None = None
        error: str | None = None

        try:
            with self.session_factory() as session:
                if self.environment is None:
                    self.environment = session.environment_snapshot()
                session.fill_form(scenario.form)
                session.submit()
                if scenario.expect.kind == "validation":
                    validation = session.inspect_validation(scenario.expect.field or "")
                    actual = validation.message
                    outcome = validation.signal.value
                    if validation.error:
                        self.logger.warning("场景 %s 校验信息读取失败: %s", scenario.label, validation.error)
                else:
                    actual = session.get_quote_result()
                    outcome = QuoteOutcome.parse(actual).kind
        except (BrowserError, PlaywrightError) as exc:
            error = str(exc)
            self.logger.error("场景 %s 执行失败: %s", scenario.label, error)

        passed = error is None and scenario.expect.matches(actual)
        result = ScenarioResult(
            scenario_id=scenario.label,
            title=scenario.title,
            expected=scenario.expect.describe(),
            actual=actual,
            passed=passed,
            outcome=outcome,
            error=error,
            duration_s=round(time.perf_counter() - started, 3),
        )
        self.logger.info("场景 %s %s (实际: %r)", scenario.label, "通过" if passed else "失败", actual)
        return result

    def run_all(self, scenarios: Iterable[Scenario]) -> list[ScenarioResult]:
        return [self.run(scenario) for scenario in scenarios]


def write_report(
    results: list[ScenarioResult],
    output_dir: Path | None = None,
    *,
    environment: dict[str, Any] | None = None,
) -> tuple[Path, Path]:
    """Write Markdown and JSON reports of a scenario run."""

    output_dir = output_dir or ensure_work_dirs()["out"]
    output_dir.mkdir(parents=True, exist_ok=True)
    passed = sum(1 for r in results if r.passed)

    json_path = output_dir / "quote_report.json"
    payload = {
        "summary": {"total": len(results), "passed": passed, "failed": len(results) - passed},
        "environment": environment or {},
        "results": [asdict(r) for r in results],
    }
    json_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")

    lines = ["# Quote Form Report", ""]
    lines.append(f"- Scenarios: {len(results)}")
    lines.append(f"- Passed: {passed}")
    lines.append(f"- Failed: {len(results) - passed}")
    lines.append("")
    if environment:
        lines.append("## Environment")
        for key, value in environment.items():
            lines.append(f"- {key}: {value}")
        lines.append("")
    lines.append("| Scenario | Expected | Actual | Result |")
    lines.append("|---|---|---|---|")
    for r in results:
        actual = r.error if r.error else repr(r.actual)
        lines.append(f"| {r.scenario_id} | {r.expected} | {actual} | {'PASS' if r.passed else 'FAIL'} |")

    report_path = output_dir / "quote_report.md"
    report_path.write_text("\n".join(lines), encoding="utf-8")
    return report_path, json_path
