from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.smartstyle.crud.errors import StoreError
from app.smartstyle.crud.schema import EntitySchema, FieldDescriptor, Option, Ordering, SchemaError
from app.smartstyle.crud.text import stringify

logger = logging.getLogger(__name__)


@dataclass
class FkResolution:
    """
    Option sets for every foreign-key field of one schema.

    Sets are loaded once per panel mount and only reloaded by an explicit
    refresh; changes made to the referenced collections in the meantime are
    not reflected.
    """

    options: dict[str, tuple[Option, ...]] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def failed(self) -> frozenset[str]:
        return frozenset(self.errors)


def resolve_field_options(store, f: FieldDescriptor) -> tuple[Option, ...]:
    ref = f.reference
    if ref is None:
        raise SchemaError(f"Field '{f.key}' has no reference to resolve options from.")
    columns = ref.value_key if ref.value_key == ref.label_key else f"{ref.value_key}, {ref.label_key}"
    ordering = Ordering(ref.order_by) if ref.order_by else None
    rows = store.fetch_all(ref.table, columns, ordering)
    options = []
    for row in rows:
        value = stringify(row.get(ref.value_key))
        label = row.get(ref.label_key)
        options.append(Option(value=value, label=stringify(label) if label is not None else value))
    return tuple(options)


def resolve_fk_options(store, schema: EntitySchema) -> FkResolution:
    """One fetch per foreign-key field; a failing field does not affect the others."""
    resolution = FkResolution()
    for f in schema.fk_fields:
        try:
            resolution.options[f.key] = resolve_field_options(store, f)
        except StoreError as e:
            logger.warning("FK options for %s.%s failed: %s", schema.collection, f.key, e.message)
            resolution.options[f.key] = ()
            resolution.errors[f.key] = e.message
    return resolution
