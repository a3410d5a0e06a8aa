"""
Form builder and per-kind coercion.

Every FieldKind has exactly one coercer (UI value -> storage value) and one
control renderer (value -> FormControl for the template). Both tables are
checked for completeness at import.
"""
from __future__ import annotations

import json
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from app.smartstyle.crud.errors import SaveError
from app.smartstyle.crud.schema import EntitySchema, FieldDescriptor, FieldKind, Option
from app.smartstyle.crud.text import is_blank, number_text

PLACEHOLDER_OPTION = "Select…"
_TRUTHY_FORM_VALUES = ("on", "true", "1", "yes")


@dataclass
class Draft:
    """In-progress copy of a record. `id` is set only when editing."""

    values: dict[str, Any]
    id: str | None = None

    @property
    def is_update(self) -> bool:
        return self.id is not None


@dataclass(frozen=True)
class FormControl:
    key: str
    label: str
    widget: str  # input | textarea | checkbox | select
    value: str = ""
    input_type: str = "text"
    step: str | None = None
    required: bool = False
    checked: bool = False
    options: tuple[Option, ...] = ()
    placeholder: str | None = None
    unavailable: bool = False
    wide: bool = False


# ---------- Seeding ----------
def empty_value(kind: FieldKind) -> Any:
    if kind is FieldKind.CHECKBOX:
        return False
    if kind is FieldKind.TAGS:
        return []
    return ""


def build_draft(schema: EntitySchema, initial: Mapping[str, Any] | None = None) -> Draft:
    """Seed from the record when it has the key, else the default, else an empty value."""
    initial = initial or {}
    values: dict[str, Any] = {}
    for f in schema:
        seeded = True
        if f.key in initial:
            value = initial[f.key]
        elif f.default is not None:
            value = f.default
        else:
            value, seeded = empty_value(f.kind), False
        if f.json_value and seeded and value is not None:
            # Quote strings too, so "42" is not re-read as a number on resubmit.
            value = json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False)
        elif isinstance(value, list):
            value = list(value)
        values[f.key] = value
    record_id = initial.get("id")
    return Draft(values=values, id=str(record_id) if record_id is not None else None)


def draft_from_form(schema: EntitySchema, form: Mapping[str, Any], record_id: str | None = None) -> Draft:
    """Read a submitted HTML form. Unchecked checkboxes are absent from the form."""
    values: dict[str, Any] = {}
    for f in schema:
        if f.kind is FieldKind.CHECKBOX:
            raw = form.get(f.key)
            values[f.key] = raw is not None and str(raw).strip().lower() in _TRUTHY_FORM_VALUES
        else:
            values[f.key] = form.get(f.key, "")
    return Draft(values=values, id=record_id or None)


# ---------- Coercion ----------
def _coerce_text(value: Any) -> Any:
    return None if value == "" or value is None else value


def _coerce_number(value: Any) -> int | float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("expected a number")
    if isinstance(value, (int, float)):
        number = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = int(text)
        except ValueError:
            number = float(text)
    if isinstance(number, float) and not math.isfinite(number):
        raise ValueError("expected a finite number")
    return number


def _coerce_tags(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return list(value)
    if value is None:
        return []
    return [piece.strip() for piece in str(value).split(",") if piece.strip()]


def _coerce_checkbox(value: Any) -> bool:
    return bool(value)


def _coerce_date(value: Any) -> Any:
    return value or None


_COERCERS: dict[FieldKind, Callable[[Any], Any]] = {
    FieldKind.TEXT: _coerce_text,
    FieldKind.TEXTAREA: _coerce_text,
    FieldKind.SELECT: _coerce_text,
    FieldKind.FK: _coerce_text,
    FieldKind.NUMBER: _coerce_number,
    FieldKind.MONEY: _coerce_number,
    FieldKind.TAGS: _coerce_tags,
    FieldKind.CHECKBOX: _coerce_checkbox,
    FieldKind.DATE: _coerce_date,
}


def coerce_value(f: FieldDescriptor, value: Any) -> Any:
    try:
        return _COERCERS[f.kind](value)
    except ValueError as e:
        raise SaveError(f"{f.label}: {e}.", field=f.key) from e


def coerce_payload(schema: EntitySchema, draft: Draft) -> dict[str, Any]:
    return {f.key: coerce_value(f, draft.values.get(f.key)) for f in schema}


def missing_required(schema: EntitySchema, payload: Mapping[str, Any]) -> list[str]:
    """Labels of required fields left empty. Does not consult foreign-key options."""
    missing = []
    for f in schema:
        if f.required and f.kind is not FieldKind.CHECKBOX and is_blank(payload.get(f.key)):
            missing.append(f.label)
    return missing


def prepare_payload(schema: EntitySchema, draft: Draft) -> dict[str, Any]:
    """
    Coerce every field, enforce required fields, then apply `before_save`.
    Raises SaveError before anything reaches the store.
    """
    payload = coerce_payload(schema, draft)
    missing = missing_required(schema, payload)
    if missing:
        raise SaveError(f"Required: {', '.join(missing)}.")
    if schema.before_save is not None:
        payload = schema.before_save(payload, draft.is_update)
    return payload


# ---------- Rendering ----------
def _value_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return number_text(value)
    return str(value)


def _render_text(f: FieldDescriptor, value: Any, options: tuple[Option, ...] | None) -> FormControl:
    return FormControl(key=f.key, label=f.label, widget="input", value=_value_text(value), required=f.required)


def _render_textarea(f: FieldDescriptor, value: Any, options: tuple[Option, ...] | None) -> FormControl:
    if isinstance(value, (dict, list)):
        text = json.dumps(value, indent=2, sort_keys=True)
    else:
        text = _value_text(value)
    return FormControl(key=f.key, label=f.label, widget="textarea", value=text, required=f.required, wide=True)


def _render_number(f: FieldDescriptor, value: Any, options: tuple[Option, ...] | None) -> FormControl:
    return FormControl(
        key=f.key, label=f.label, widget="input", input_type="number", step="any",
        value=_value_text(value), required=f.required,
    )


def _render_money(f: FieldDescriptor, value: Any, options: tuple[Option, ...] | None) -> FormControl:
    return FormControl(
        key=f.key, label=f.label, widget="input", input_type="number", step="0.01",
        value=_value_text(value), required=f.required,
    )


def _render_date(f: FieldDescriptor, value: Any, options: tuple[Option, ...] | None) -> FormControl:
    return FormControl(key=f.key, label=f.label, widget="input", input_type="date", value=_value_text(value), required=f.required)


def _render_checkbox(f: FieldDescriptor, value: Any, options: tuple[Option, ...] | None) -> FormControl:
    return FormControl(key=f.key, label=f.label, widget="checkbox", checked=bool(value))


def _render_select(f: FieldDescriptor, value: Any, options: tuple[Option, ...] | None) -> FormControl:
    return FormControl(
        key=f.key, label=f.label, widget="select", value=_value_text(value), required=f.required,
        options=f.options, placeholder=PLACEHOLDER_OPTION,
    )


def _render_fk(f: FieldDescriptor, value: Any, options: tuple[Option, ...] | None) -> FormControl:
    # None means resolution failed; the select keeps only its placeholder.
    return FormControl(
        key=f.key, label=f.label, widget="select", value=_value_text(value), required=f.required,
        options=options or (), placeholder=PLACEHOLDER_OPTION, unavailable=options is None,
    )


def _render_tags(f: FieldDescriptor, value: Any, options: tuple[Option, ...] | None) -> FormControl:
    text = ", ".join(str(v) for v in value) if isinstance(value, (list, tuple)) else _value_text(value)
    return FormControl(
        key=f.key, label=f"{f.label} (comma separated)", widget="input", value=text, required=f.required, wide=True,
    )


_RENDERERS: dict[FieldKind, Callable[[FieldDescriptor, Any, tuple[Option, ...] | None], FormControl]] = {
    FieldKind.TEXT: _render_text,
    FieldKind.TEXTAREA: _render_textarea,
    FieldKind.NUMBER: _render_number,
    FieldKind.MONEY: _render_money,
    FieldKind.DATE: _render_date,
    FieldKind.CHECKBOX: _render_checkbox,
    FieldKind.SELECT: _render_select,
    FieldKind.FK: _render_fk,
    FieldKind.TAGS: _render_tags,
}

_unhandled = sorted(k.value for k in FieldKind if k not in _COERCERS or k not in _RENDERERS)
if _unhandled:
    raise RuntimeError(f"Field kinds without a coercer or renderer: {', '.join(_unhandled)}")


def render_control(f: FieldDescriptor, value: Any, options: tuple[Option, ...] | None = None) -> FormControl:
    return _RENDERERS[f.kind](f, value, options)


def _keep_current_fk(f: FieldDescriptor, control: FormControl, record: Mapping[str, Any] | None) -> FormControl:
    """
    A value missing from the option set (or with no option set at all) stays
    selectable, so saving the form does not clear the reference.
    """
    if not control.value or any(o.value == control.value for o in control.options):
        return control
    label = control.value
    if record is not None and f.list_formatter is not None and _value_text(record.get(f.key)) == control.value:
        label = f.list_formatter(record.get(f.key), dict(record))
    return replace(control, options=(Option(value=control.value, label=label),) + control.options)


def render_form(
    schema: EntitySchema,
    draft: Draft,
    fk_options: Mapping[str, tuple[Option, ...]] | None = None,
    failed_fk: frozenset[str] | set[str] = frozenset(),
    record: Mapping[str, Any] | None = None,
) -> list[FormControl]:
    """`record` is the row being edited; its read projection labels kept FK values."""
    fk_options = fk_options or {}
    controls = []
    for f in schema:
        options = None
        if f.kind is FieldKind.FK and f.key not in failed_fk:
            options = tuple(fk_options.get(f.key, ()))
        control = render_control(f, draft.values.get(f.key), options)
        if f.kind is FieldKind.FK:
            control = _keep_current_fk(f, control, record)
        controls.append(control)
    return controls
