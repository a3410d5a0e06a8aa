from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from app.smartstyle.crud.schema import EntitySchema
from app.smartstyle.crud.text import stringify

logger = logging.getLogger(__name__)

Record = dict[str, Any]


def load_records(store, schema: EntitySchema) -> list[Record]:
    """Fetch the current page using the schema's projection, ordering and limit."""
    records = store.fetch_all(schema.collection, schema.list_projection, schema.ordering, schema.page_limit)
    logger.debug("Loaded %d %s", len(records), schema.collection)
    return list(records)


def record_matches(record: Record, query: str, keys: Iterable[str]) -> bool:
    q = query.lower()
    return any(q in stringify(record.get(k)).lower() for k in keys)


def filter_records(records: Sequence[Record], query: str, keys: Iterable[str]) -> list[Record]:
    """Case-insensitive substring match on any key. Keeps the loaded order."""
    if not query:
        return list(records)
    keys = tuple(keys)
    return [r for r in records if record_matches(r, query, keys)]
