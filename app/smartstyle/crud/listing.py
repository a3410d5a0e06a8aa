from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from app.smartstyle.crud.schema import EntitySchema, FieldDescriptor
from app.smartstyle.crud.text import is_blank, stringify

PLACEHOLDER = "—"


@dataclass(frozen=True)
class ListRow:
    id: str | None
    cells: tuple[str, ...]


@dataclass(frozen=True)
class ListView:
    headers: tuple[str, ...]  # last header is the unlabeled actions column
    rows: tuple[ListRow, ...]


def list_columns(schema: EntitySchema) -> tuple[FieldDescriptor, ...]:
    return tuple(schema.get_field(k) for k in schema.effective_list_columns)


def render_cell(f: FieldDescriptor, record: dict[str, Any]) -> str:
    raw = record.get(f.key)
    if f.list_formatter is not None:
        text = f.list_formatter(raw, record)
        return PLACEHOLDER if is_blank(text) else str(text)
    if is_blank(raw):
        return PLACEHOLDER
    return stringify(raw)


def render_list(schema: EntitySchema, records: Sequence[dict[str, Any]]) -> ListView:
    """Rows in the order given; server ordering is authoritative."""
    columns = list_columns(schema)
    rows = []
    for record in records:
        record_id = record.get("id")
        rows.append(
            ListRow(
                id=str(record_id) if record_id is not None else None,
                cells=tuple(render_cell(f, record) for f in columns),
            )
        )
    return ListView(headers=tuple(f.label for f in columns) + ("",), rows=tuple(rows))
