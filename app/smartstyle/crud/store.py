"""
Table store: uniform fetch/insert/update/delete against a named collection.

Reads accept a projection clause such as ``"*, vendors(name)"``: base columns
(or ``*``) plus embedded relations resolved through the foreign key from the
base table, returned as nested dicts. Writes always target the bare table and
return the post-write row read back through the same projection.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from flask import Flask
from sqlalchemy import Date, DateTime, MetaData, String, Table, delete, insert, select, update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.smartstyle.crud.errors import StoreError
from app.smartstyle.crud.schema import Ordering
from app.smartstyle.models import new_id

logger = logging.getLogger(__name__)

Record = dict[str, Any]

_TERM = re.compile(r"^(\*|[A-Za-z_][A-Za-z0-9_]*)(?:\((.*)\))?$", re.DOTALL)
_EMBED_PREFIX = "__embed"


@dataclass(frozen=True)
class Embed:
    table: str
    columns: tuple[str, ...]


@dataclass(frozen=True)
class Projection:
    columns: tuple[str, ...] = ("*",)
    embeds: tuple[Embed, ...] = ()


def _split_top_level(clause: str) -> list[str]:
    parts, depth, current = [], 0, []
    for ch in clause:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise StoreError(f"Unbalanced parentheses in projection '{clause}'.")
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    if depth != 0:
        raise StoreError(f"Unbalanced parentheses in projection '{clause}'.")
    parts.append("".join(current))
    return [p.strip() for p in parts]


def parse_projection(clause: str | None) -> Projection:
    """Parse ``"*, vendors(name)"`` / ``"id, name"``. Empty means all base columns."""
    if not clause or not clause.strip():
        return Projection()
    columns: list[str] = []
    embeds: list[Embed] = []
    for term in _split_top_level(clause):
        m = _TERM.match(term)
        if not term or not m:
            raise StoreError(f"Invalid projection term '{term}' in '{clause}'.")
        name, inner = m.group(1), m.group(2)
        if inner is None:
            columns.append(name)
            continue
        if name == "*":
            raise StoreError(f"Invalid projection term '{term}' in '{clause}'.")
        embed_cols = [c.strip() for c in inner.split(",")]
        if not all(c == "*" or re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", c) for c in embed_cols):
            raise StoreError(f"Invalid embedded columns in '{term}'.")
        embeds.append(Embed(table=name, columns=tuple(embed_cols)))
    return Projection(columns=tuple(columns), embeds=tuple(embeds))


def _normalize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def _db_message(e: SQLAlchemyError) -> str:
    if isinstance(e, DBAPIError) and e.orig is not None:
        return str(e.orig).strip().splitlines()[0]
    return str(e).strip().splitlines()[0]


class TableStore:
    def __init__(self, session_factory: sessionmaker, metadata: MetaData):
        self._session_factory = session_factory
        self._metadata = metadata

    @classmethod
    def from_app(cls, app: Flask) -> "TableStore":
        from app.smartstyle.models import Base

        return cls(app.extensions["sqlalchemy_sessionmaker"], Base.metadata)

    # ---------- internals ----------
    @contextmanager
    def _scope(self, action: str, collection: str) -> Generator[Session, None, None]:
        s: Session = self._session_factory()
        try:
            yield s
            s.commit()
        except StoreError:
            s.rollback()
            raise
        except SQLAlchemyError as e:
            s.rollback()
            logger.error("Store %s on %s failed: %s", action, collection, e)
            raise StoreError(_db_message(e)) from e
        finally:
            s.close()

    def _table(self, collection: str) -> Table:
        table = self._metadata.tables.get(collection)
        if table is None:
            raise StoreError(f"Unknown collection '{collection}'.")
        return table

    def _select(self, table: Table, projection: Projection):
        cols = []
        for name in projection.columns:
            if name == "*":
                cols.extend(c.label(c.name) for c in table.columns)
            elif name in table.c:
                cols.append(table.c[name].label(name))
            else:
                raise StoreError(f"Unknown column '{name}' on {table.name}.")

        joined = table
        for i, embed in enumerate(projection.embeds):
            target = self._table(embed.table)
            links = [fk for fk in table.foreign_keys if fk.column.table.name == target.name]
            if len(links) != 1:
                raise StoreError(
                    f"Cannot embed {embed.table} in {table.name}: expected one foreign key, found {len(links)}."
                )
            fk = links[0]
            alias = target.alias(f"{_EMBED_PREFIX}{i}")
            joined = joined.outerjoin(alias, table.c[fk.parent.name] == alias.c[fk.column.name])
            cols.append(alias.c[fk.column.name].label(f"{_EMBED_PREFIX}{i}__key"))
            for name in embed.columns:
                if name == "*":
                    cols.extend(c.label(f"{_EMBED_PREFIX}{i}_{c.name}") for c in alias.columns)
                elif name in alias.c:
                    cols.append(alias.c[name].label(f"{_EMBED_PREFIX}{i}_{name}"))
                else:
                    raise StoreError(f"Unknown column '{name}' on {embed.table}.")

        if not cols:
            raise StoreError(f"Projection selects no columns from {table.name}.")
        return select(*cols).select_from(joined)

    @staticmethod
    def _decode(row: Mapping[str, Any], projection: Projection) -> Record:
        record: Record = {}
        for key, value in row.items():
            if not key.startswith(_EMBED_PREFIX):
                record[key] = _normalize(value)
        for i, embed in enumerate(projection.embeds):
            prefix = f"{_EMBED_PREFIX}{i}_"
            if row.get(f"{prefix}_key") is None:
                record[embed.table] = None
                continue
            record[embed.table] = {
                key[len(prefix):]: _normalize(value)
                for key, value in row.items()
                if key.startswith(prefix) and key != f"{prefix}_key"
            }
        return record

    def _bind(self, table: Table, payload: Mapping[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for key, value in payload.items():
            if key not in table.c:
                raise StoreError(f"Unknown column '{key}' on {table.name}.")
            col_type = table.c[key].type
            if isinstance(value, str) and isinstance(col_type, (DateTime, Date)):
                try:
                    value = (
                        datetime.fromisoformat(value) if isinstance(col_type, DateTime) else date.fromisoformat(value)
                    )
                except ValueError as e:
                    raise StoreError(f"Invalid date for '{key}': {value}") from e
            values[key] = value
        return values

    def _read_one(self, s: Session, table: Table, projection: Projection, record_id: Any) -> Record:
        stmt = self._select(table, projection).where(table.c.id == record_id)
        row = s.execute(stmt).mappings().first()
        if row is None:
            raise StoreError(f"{table.name} {record_id} not found.")
        return self._decode(row, projection)

    # ---------- operations ----------
    def fetch_all(
        self,
        collection: str,
        projection: str | None = None,
        ordering: Ordering | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        table = self._table(collection)
        proj = parse_projection(projection)
        stmt = self._select(table, proj)
        if ordering is not None:
            if ordering.column not in table.c:
                raise StoreError(f"Unknown order column '{ordering.column}' on {collection}.")
            col = table.c[ordering.column]
            stmt = stmt.order_by(col.asc() if ordering.ascending else col.desc())
        if limit:
            stmt = stmt.limit(limit)
        with self._scope("fetch", collection) as s:
            rows = s.execute(stmt).mappings().all()
            return [self._decode(row, proj) for row in rows]

    def insert(self, collection: str, payload: Mapping[str, Any], projection: str | None = None) -> Record:
        table = self._table(collection)
        proj = parse_projection(projection)
        values = self._bind(table, payload)
        if "id" in table.c and isinstance(table.c.id.type, String) and values.get("id") is None:
            values["id"] = new_id()
        with self._scope("insert", collection) as s:
            result = s.execute(insert(table).values(**values))
            record_id = values.get("id")
            if record_id is None:
                record_id = result.inserted_primary_key[0]
            return self._read_one(s, table, proj, record_id)

    def update(self, collection: str, record_id: Any, payload: Mapping[str, Any], projection: str | None = None) -> Record:
        table = self._table(collection)
        proj = parse_projection(projection)
        values = self._bind(table, {k: v for k, v in payload.items() if k != "id"})
        with self._scope("update", collection) as s:
            if values:
                result = s.execute(update(table).where(table.c.id == record_id).values(**values))
                if result.rowcount == 0:
                    raise StoreError(f"{collection} {record_id} not found.")
            return self._read_one(s, table, proj, record_id)

    def delete(self, collection: str, record_id: Any) -> None:
        table = self._table(collection)
        with self._scope("delete", collection) as s:
            result = s.execute(delete(table).where(table.c.id == record_id))
            if result.rowcount == 0:
                raise StoreError(f"{collection} {record_id} not found.")
