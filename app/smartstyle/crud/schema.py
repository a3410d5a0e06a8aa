"""
Declarative entity schemas.

An EntitySchema describes one manageable collection: where it is stored, how
it is read for the list view, and how each of its fields is edited, coerced
and displayed. Schemas validate themselves on construction so a broken
declaration fails at import time rather than on first render.
"""
from __future__ import annotations

import enum
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any


class SchemaError(ValueError):
    """Raised when an entity declaration is inconsistent."""


class FieldKind(enum.Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    SELECT = "select"
    FK = "fk"
    TAGS = "tags"
    MONEY = "money"
    DATE = "date"


ListFormatter = Callable[[Any, dict], str]
BeforeSave = Callable[[dict, bool], dict]


@dataclass(frozen=True)
class Option:
    value: str
    label: str


def options_from(values) -> tuple[Option, ...]:
    """Build select options whose label is the value itself."""
    return tuple(Option(value=v, label=v) for v in values)


@dataclass(frozen=True)
class FkReference:
    table: str
    value_key: str = "id"
    label_key: str = "name"
    order_by: str | None = None


@dataclass(frozen=True)
class Ordering:
    column: str
    ascending: bool = True


@dataclass(frozen=True)
class FieldDescriptor:
    key: str
    label: str
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    options: tuple[Option, ...] = ()
    reference: FkReference | None = None
    list_formatter: ListFormatter | None = None
    default: Any = None
    hidden_in_list: bool = False
    # Textarea holding a JSON value; stored values are shown as JSON text.
    json_value: bool = False

    def __post_init__(self) -> None:
        if not self.key:
            raise SchemaError("Field key is required.")
        if not isinstance(self.kind, FieldKind):
            raise SchemaError(f"Field '{self.key}': unknown kind {self.kind!r}.")
        if self.kind is FieldKind.SELECT and not self.options:
            raise SchemaError(f"Field '{self.key}': select fields need options.")
        if self.kind is FieldKind.FK and self.reference is None:
            raise SchemaError(f"Field '{self.key}': foreign-key fields need a reference.")
        if self.json_value and self.kind is not FieldKind.TEXTAREA:
            raise SchemaError(f"Field '{self.key}': json_value is only valid on textarea fields.")


@dataclass(frozen=True)
class EntitySchema:
    title: str
    collection: str
    fields: tuple[FieldDescriptor, ...]
    subtitle: str = ""
    list_projection: str | None = None
    ordering: Ordering | None = None
    page_limit: int | None = None
    search_keys: tuple[str, ...] = ()
    list_columns: tuple[str, ...] = ()
    before_save: BeforeSave | None = None
    slug: str = ""
    _by_key: dict[str, FieldDescriptor] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.collection:
            raise SchemaError(f"{self.title}: collection is required.")
        if not self.fields:
            raise SchemaError(f"{self.title}: at least one field is required.")

        by_key: dict[str, FieldDescriptor] = {}
        for f in self.fields:
            if f.key in by_key:
                raise SchemaError(f"{self.title}: duplicate field key '{f.key}'.")
            by_key[f.key] = f
        self._by_key.update(by_key)

        for attr in ("search_keys", "list_columns"):
            for key in getattr(self, attr):
                if key not in by_key:
                    raise SchemaError(f"{self.title}: {attr} references undeclared field '{key}'.")

        if self.page_limit is not None and self.page_limit <= 0:
            raise SchemaError(f"{self.title}: page_limit must be positive.")

        if not self.slug:
            object.__setattr__(self, "slug", self.collection.replace("_", "-"))

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def get_field(self, key: str) -> FieldDescriptor:
        return self._by_key[key]

    @property
    def effective_search_keys(self) -> tuple[str, ...]:
        return self.search_keys or tuple(f.key for f in self.fields)

    @property
    def effective_list_columns(self) -> tuple[str, ...]:
        if self.list_columns:
            return self.list_columns
        return tuple(f.key for f in self.fields if not f.hidden_in_list)

    @property
    def fk_fields(self) -> tuple[FieldDescriptor, ...]:
        return tuple(f for f in self.fields if f.kind is FieldKind.FK)

    @property
    def singular(self) -> str:
        title = self.title
        if title.endswith("s"):
            title = title[:-1]
        return title.lower()


class EntityRegistry:
    """Declared schemas keyed by slug, in declaration order."""

    def __init__(self) -> None:
        self._schemas: dict[str, EntitySchema] = {}

    def register(self, schema: EntitySchema) -> EntitySchema:
        if schema.slug in self._schemas:
            raise SchemaError(f"Duplicate entity slug '{schema.slug}'.")
        self._schemas[schema.slug] = schema
        return schema

    def get(self, slug: str) -> EntitySchema | None:
        return self._schemas.get(slug)

    def __iter__(self) -> Iterator[EntitySchema]:
        return iter(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)

    def __contains__(self, slug: object) -> bool:
        return slug in self._schemas
