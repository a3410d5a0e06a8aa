"""List-only display formatters: (raw value, whole record) -> text."""
from __future__ import annotations

from typing import Any

from app.smartstyle.crud.listing import PLACEHOLDER
from app.smartstyle.crud.text import number_text, stringify


def money(symbol: str = "$"):
    def _fmt(value: Any, record: dict) -> str:
        if value is None or value == "":
            return PLACEHOLDER
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return f"{symbol}{number_text(value)}"
        return f"{symbol}{value}"

    return _fmt


def embedded(table: str, *keys: str, sep: str = " / "):
    """Label from an embedded relation of the read projection, falling back to the raw id."""

    def _fmt(value: Any, record: dict) -> str:
        if value is None or value == "":
            return PLACEHOLDER
        related = record.get(table)
        if isinstance(related, dict):
            parts = [stringify(related.get(k)) for k in keys]
            parts = [p for p in parts if p]
            if parts:
                return sep.join(parts)
        return stringify(value)

    return _fmt


def yes_no(value: Any, record: dict) -> str:
    if value is None:
        return PLACEHOLDER
    return "Yes" if value else "No"
