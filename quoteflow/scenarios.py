"""Named quote form scenarios loaded from config/scenarios.yaml."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from quoteflow.core.errors import ConfigError, ScenarioValidationError
from quoteflow.models import DENIAL_MESSAGES, ExpectedOutcome, FormInput


DEFAULT_SCENARIO_PATH = Path(__file__).resolve().parent / "config" / "scenarios.yaml"

_FORM_KEYS = {f.name for f in fields(FormInput)}
_EXPECT_KINDS = ("quote", "denial", "validation")


@dataclass(frozen=True)
class Scenario:
    """One submission of the form and the outcome it must produce."""

    id: str
    name: str
    title: str
    form: FormInput
    expect: ExpectedOutcome

    @property
    def label(self) -> str:
        return f"{self.id}_{self.name}"


def load_scenarios(path: str | Path | None = None) -> list[Scenario]:
    """Load and validate scenarios, keeping file order."""

    scenario_path = Path(path) if path else DEFAULT_SCENARIO_PATH
    if not scenario_path.exists():
        raise ConfigError(f"场景文件未找到: {scenario_path}")
    with scenario_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigError("场景配置必须是字典结构")
    entries = data.get("scenarios")
    if not isinstance(entries, list) or not entries:
        raise ScenarioValidationError("scenarios 节点缺失或为空")

    scenarios: list[Scenario] = []
    seen: set[str] = set()
    for idx, entry in enumerate(entries):
        scenario = _build_scenario(idx, entry)
        for key in (scenario.id, scenario.name):
            if key in seen:
                raise ScenarioValidationError(f"场景标识重复: {key}")
            seen.add(key)
        scenarios.append(scenario)
    return scenarios


def get_scenario(key: str, scenarios: Iterable[Scenario] | None = None) -> Scenario:
    """Find a scenario by id (``"04"``), name or ``id_name`` label."""

    pool = list(scenarios) if scenarios is not None else load_scenarios()
    wanted = key.strip()
    for scenario in pool:
        if wanted in (scenario.id, scenario.name, scenario.label):
            return scenario
    if wanted.isdigit():
        padded = wanted.zfill(2)
        for scenario in pool:
            if scenario.id == padded:
                return scenario
    raise KeyError(f"未知场景: {key}")


def _build_scenario(idx: int, entry: Any) -> Scenario:
    if not isinstance(entry, Mapping):
        raise ScenarioValidationError(f"scenarios[{idx}] 必须是映射")
    scenario_id = entry.get("id")
    name = entry.get("name")
    if not isinstance(scenario_id, str) or not scenario_id:
        raise ScenarioValidationError(f"scenarios[{idx}] 缺少字符串 id")
    if not isinstance(name, str) or not name:
        raise ScenarioValidationError(f"场景 {scenario_id} 缺少 name")
    title = str(entry.get("title") or name)
    form = _build_form(scenario_id, entry.get("form"))
    expect = _build_expect(scenario_id, entry.get("expect"))
    return Scenario(id=scenario_id, name=name, title=title, form=form, expect=expect)


def _build_form(scenario_id: str, node: Any) -> FormInput:
    if node is None:
        return FormInput()
    if not isinstance(node, Mapping):
        raise ScenarioValidationError(f"场景 {scenario_id} 的 form 必须是映射")
    unknown = sorted(set(node) - _FORM_KEYS)
    if unknown:
        raise ScenarioValidationError(f"场景 {scenario_id} 含未知字段: {', '.join(unknown)}")
    values = {key: "" if value is None else str(value) for key, value in node.items()}
    return FormInput().with_values(**values)


def _build_expect(scenario_id: str, node: Any) -> ExpectedOutcome:
    if not isinstance(node, Mapping) or len(node) != 1:
        raise ScenarioValidationError(f"场景 {scenario_id} 的 expect 必须恰好包含一项: {', '.join(_EXPECT_KINDS)}")
    kind, value = next(iter(node.items()))
    if kind not in _EXPECT_KINDS:
        raise ScenarioValidationError(f"场景 {scenario_id} 未知的 expect 类型: {kind}")
    if not isinstance(value, str) or not value:
        raise ScenarioValidationError(f"场景 {scenario_id} 的 expect.{kind} 必须是非空字符串")
    if kind == "quote":
        return ExpectedOutcome.quote(value)
    if kind == "denial":
        if value not in DENIAL_MESSAGES:
            raise ScenarioValidationError(f"场景 {scenario_id} 的拒保文案无法识别: {value!r}")
        return ExpectedOutcome.denial(value)
    return ExpectedOutcome.validation(value)
