"""Selector configuration for the quote calculator page.

The element ids live in ``selectors/quote_form.yaml`` so that a redeployed
page with renamed controls only needs a YAML change. The file may declare
``variants`` with a ``base`` entry plus named overrides which are deep merged
on top of it.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from quoteflow.core.errors import ConfigError, SelectorValidationError


CONFIG_DIR = Path(__file__).resolve().parent
DEFAULT_QUOTE_FORM_SELECTOR_PATH = CONFIG_DIR / "selectors" / "quote_form.yaml"

REQUIRED_FIELDS = (
    "first_name",
    "last_name",
    "address",
    "city",
    "postal_code",
    "phone",
    "email",
    "age",
    "experience",
    "accidents",
)
REQUIRED_CONTROLS = ("submit", "result")
_ID_PATTERN_FORBIDDEN = set(" #.[]>")


@dataclass(frozen=True)
class ValidationMarkers:
    """Class-attribute markers that flag a field as invalid."""

    classes: tuple[str, ...]
    message: str


@dataclass(frozen=True)
class QuoteFormSelectors:
    """Element ids of the quote form keyed by logical name."""

    fields: Mapping[str, str]
    controls: Mapping[str, str]
    validation: ValidationMarkers
    raw: Mapping[str, Any]

    def element_id(self, name: str) -> str:
        """Resolve a logical field/control key; unknown names are taken as ids."""

        if name in self.fields:
            return self.fields[name]
        if name in self.controls:
            return self.controls[name]
        return name

    def css(self, name: str) -> str:
        return f"#{self.element_id(name)}"


def load_quote_form_selectors(
    path: str | Path | None = None,
    *,
    variant: str | None = None,
) -> QuoteFormSelectors:
    """Load quote form selectors, applying the named variant when given."""

    selectors_path = Path(path) if path else DEFAULT_QUOTE_FORM_SELECTOR_PATH
    raw = _load_yaml(selectors_path)
    merged = _resolve_variant(raw, variant=variant)
    return _build_selectors(merged, raw)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"选择器文件未找到: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigError("选择器配置必须是字典结构")
    return data


def _resolve_variant(data: Mapping[str, Any], *, variant: str | None) -> Dict[str, Any]:
    variants = data.get("variants")
    if variants is None:
        if variant:
            raise SelectorValidationError(f"未定义 variants，无法应用 {variant}")
        return deepcopy(dict(data))
    if not isinstance(variants, Mapping):
        raise SelectorValidationError("variants 节点必须为映射类型")
    base_variant = variants.get("base")
    if not isinstance(base_variant, Mapping):
        raise SelectorValidationError("variants.base 缺失或格式错误")
    merged = deepcopy(dict(base_variant))
    if variant and variant != "base":
        override = variants.get(variant)
        if override is None:
            raise SelectorValidationError(f"variants.{variant} 不存在")
        if not isinstance(override, Mapping):
            raise SelectorValidationError(f"variants.{variant} 必须是映射类型")
        merged = _deep_merge(merged, override)
    return merged


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        base_value = base.get(key)
        if isinstance(base_value, dict) and isinstance(value, Mapping):
            base[key] = _deep_merge(dict(base_value), value)
        else:
            base[key] = deepcopy(value)
    return base


def _build_selectors(data: Mapping[str, Any], raw: Mapping[str, Any]) -> QuoteFormSelectors:
    fields = _normalize_ids(data.get("fields"), category="fields", required=REQUIRED_FIELDS)
    controls = _normalize_ids(data.get("controls"), category="controls", required=REQUIRED_CONTROLS)
    validation = _normalize_validation(data.get("validation"))
    return QuoteFormSelectors(fields=fields, controls=controls, validation=validation, raw=raw)


def _normalize_ids(node: Any, *, category: str, required: tuple[str, ...]) -> Mapping[str, str]:
    if not isinstance(node, Mapping) or not node:
        raise SelectorValidationError(f"{category} 节点缺失或格式错误")
    missing = [key for key in required if key not in node]
    if missing:
        raise SelectorValidationError(f"{category} 缺少: {', '.join(missing)}")
    result: Dict[str, str] = {}
    for key, value in node.items():
        if not isinstance(value, str) or not value.strip():
            raise SelectorValidationError(f"{category}.{key} 必须是非空字符串")
        element_id = value.strip()
        if _ID_PATTERN_FORBIDDEN & set(element_id):
            raise SelectorValidationError(f"{category}.{key} 应为元素 id 而非 CSS 选择器: {element_id}")
        result[str(key)] = element_id
    return result


def _normalize_validation(node: Any) -> ValidationMarkers:
    if node is None:
        return ValidationMarkers(classes=("error", "invalid"), message="Invalid field")
    if not isinstance(node, Mapping):
        raise SelectorValidationError("validation 节点必须是映射类型")
    classes = node.get("marker_classes", ["error", "invalid"])
    if isinstance(classes, str):
        classes = [classes]
    if not isinstance(classes, list) or not classes:
        raise SelectorValidationError("validation.marker_classes 必须是非空列表")
    for idx, marker in enumerate(classes):
        if not isinstance(marker, str) or not marker:
            raise SelectorValidationError(f"validation.marker_classes[{idx}] 必须是非空字符串")
    message = node.get("marker_message", "Invalid field")
    if not isinstance(message, str) or not message:
        raise SelectorValidationError("validation.marker_message 必须是非空字符串")
    return ValidationMarkers(classes=tuple(classes), message=message)


__all__ = [
    "QuoteFormSelectors",
    "SelectorValidationError",
    "ValidationMarkers",
    "load_quote_form_selectors",
]
