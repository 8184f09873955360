"""Contract templates: storage, variable validation and rendering."""

from __future__ import annotations

import re
from datetime import date
from threading import RLock
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .errors import NotFoundError, ValidationError
from .messages import ERROR_MESSAGES
from .models import Contract, Party, Template, TemplateVariable, utcnow

PLACEHOLDER_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _check_variable(var: TemplateVariable, raw: Any, errors: List[str]) -> Optional[str]:
    label = var.display_name
    rules = var.validation

    if var.type == "number":
        try:
            number = float(raw)
        except (TypeError, ValueError):
            errors.append(f"{label}は数値で入力してください")
            return None
        if rules and rules.min is not None and number < rules.min:
            errors.append(f"{label}は{_format_number(rules.min)}以上で入力してください")
        if rules and rules.max is not None and number > rules.max:
            errors.append(f"{label}は{_format_number(rules.max)}以下で入力してください")
        return _format_number(number)

    if var.type == "date":
        try:
            parsed = raw if isinstance(raw, date) else date.fromisoformat(str(raw).strip())
        except ValueError:
            errors.append(f"{label}は日付（YYYY-MM-DD）で入力してください")
            return None
        return f"{parsed.year}年{parsed.month}月{parsed.day}日"

    if var.type == "boolean":
        if isinstance(raw, bool):
            flag = raw
        elif str(raw).strip().lower() in _TRUE:
            flag = True
        elif str(raw).strip().lower() in _FALSE:
            flag = False
        else:
            errors.append(f"{label}は真偽値で入力してください")
            return None
        return "はい" if flag else "いいえ"

    text = str(raw)
    if var.type == "select" and var.options and text not in var.options:
        errors.append(f"{label}は選択肢から選んでください")
        return None
    if rules:
        if rules.min_length is not None and len(text) < rules.min_length:
            errors.append(f"{label}は{rules.min_length}文字以上で入力してください")
        if rules.max_length is not None and len(text) > rules.max_length:
            errors.append(f"{label}は{rules.max_length}文字以内で入力してください")
        if rules.pattern and not re.fullmatch(rules.pattern, text):
            errors.append(f"{label}の形式が正しくありません")
    return text


def resolve_values(template: Template, values: Mapping[str, Any]) -> Dict[str, str]:
    """Apply defaults and validation; returns display strings per variable."""
    errors: List[str] = []
    resolved: Dict[str, str] = {}
    for var in template.variables:
        raw = values.get(var.name)
        if _blank(raw):
            raw = var.default_value
        if _blank(raw):
            if var.required:
                errors.append(f"{var.display_name}は必須です")
            resolved[var.name] = ""
            continue
        rendered = _check_variable(var, raw, errors)
        resolved[var.name] = rendered if rendered is not None else ""
    if errors:
        raise ValidationError(details="; ".join(errors))
    return resolved


def fill(text: str, values: Mapping[str, str]) -> str:
    """Substitute ``{{name}}`` placeholders; unknown names are left intact."""
    return PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), text)


def render_template(
    template: Template,
    values: Mapping[str, Any],
    excluded_clauses: Sequence[str] = (),
) -> str:
    resolved = resolve_values(template, values)
    excluded = set(excluded_clauses)
    for clause in template.clauses:
        if clause.id in excluded and clause.is_required:
            raise ValidationError(ERROR_MESSAGES["template_required_clause"], details=clause.id)

    blocks = [fill(template.title, resolved)]
    kept = [c for c in sorted(template.clauses, key=lambda c: c.order) if c.id not in excluded]
    for n, clause in enumerate(kept, start=1):
        blocks.append(f"第{n}条（{clause.title}）\n{fill(clause.content, resolved)}")
    return "\n\n".join(blocks)


def instantiate(
    template: Template,
    values: Mapping[str, Any],
    *,
    title: Optional[str] = None,
    contract_type: Optional[str] = None,
    excluded_clauses: Sequence[str] = (),
    parties: Iterable[Party] = (),
    created_by: str = "system",
) -> Contract:
    """Build a draft contract from ``template``."""
    if not template.is_active:
        raise ValidationError(details=f"template {template.template_id} is inactive")
    content = render_template(template, values, excluded_clauses)
    return Contract(
        title=title or template.title,
        description=template.description,
        content=content,
        type=contract_type or template.contract_type,
        parties=list(parties),
        category=template.category,
        tags=list(template.tags),
        created_by=created_by,
    )


class TemplateStore:
    def __init__(self, seed: Optional[Iterable[Template]] = None) -> None:
        self._data: Dict[str, Template] = {}
        self._lock = RLock()
        for t in seed or ():
            self._data[t.template_id] = t

    def list(self, category: Optional[str] = None, include_inactive: bool = False) -> List[Template]:
        with self._lock:
            items = list(self._data.values())
        if not include_inactive:
            items = [t for t in items if t.is_active]
        if category:
            items = [t for t in items if t.category == category]
        return items

    def get(self, template_id: str) -> Template:
        with self._lock:
            found = self._data.get(template_id)
        if found is None:
            raise NotFoundError(ERROR_MESSAGES["template_not_found"])
        return found

    def create(self, template: Template) -> Template:
        with self._lock:
            if template.template_id in self._data:
                raise ValidationError(details=f"duplicate template id {template.template_id}")
            self._data[template.template_id] = template
        return template

    def update(self, template_id: str, changes: Mapping[str, Any]) -> Template:
        with self._lock:
            current = self.get(template_id)
            data = current.model_dump()
            data.update({k: v for k, v in changes.items() if k != "template_id"})
            data["updated_at"] = utcnow()
            updated = Template.model_validate(data)
            self._data[template_id] = updated
        return updated

    def delete(self, template_id: str) -> bool:
        with self._lock:
            return self._data.pop(template_id, None) is not None


__all__ = [
    "PLACEHOLDER_RE",
    "TemplateStore",
    "fill",
    "instantiate",
    "render_template",
    "resolve_values",
]
