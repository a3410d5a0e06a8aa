import pytest

from app.smartstyle.crud.schema import (
    EntityRegistry,
    EntitySchema,
    FieldDescriptor as F,
    FieldKind as K,
    FkReference,
    Option,
    SchemaError,
    options_from,
)
from app.smartstyle.entities import registry


def _schema(**kwargs):
    defaults = dict(title="Vendors", collection="vendors", fields=(F("name", "Name", required=True),))
    defaults.update(kwargs)
    return EntitySchema(**defaults)


def test_select_needs_options():
    with pytest.raises(SchemaError):
        F("status", "Status", K.SELECT)


def test_fk_needs_reference():
    with pytest.raises(SchemaError):
        F("vendor_id", "Vendor", K.FK)


def test_json_value_only_on_textarea():
    with pytest.raises(SchemaError, match="json_value"):
        F("pref_value", "Value", K.TEXT, json_value=True)
    assert F("pref_value", "Value", K.TEXTAREA, json_value=True).json_value


def test_duplicate_field_keys_rejected():
    with pytest.raises(SchemaError, match="duplicate field key 'name'"):
        _schema(fields=(F("name", "Name"), F("name", "Other")))


def test_search_keys_must_be_declared():
    with pytest.raises(SchemaError, match="search_keys"):
        _schema(search_keys=("missing",))


def test_list_columns_must_be_declared():
    with pytest.raises(SchemaError, match="list_columns"):
        _schema(list_columns=("missing",))


def test_page_limit_must_be_positive():
    with pytest.raises(SchemaError):
        _schema(page_limit=0)


def test_slug_and_singular():
    s = _schema(title="Wardrobe Items", collection="wardrobe_items")
    assert s.slug == "wardrobe-items"
    assert s.singular == "wardrobe item"


def test_search_keys_default_to_all_fields():
    s = _schema(fields=(F("name", "Name"), F("notes", "Notes", K.TEXTAREA)))
    assert s.effective_search_keys == ("name", "notes")


def test_list_columns_default_skips_hidden():
    s = _schema(fields=(F("name", "Name"), F("notes", "Notes", K.TEXTAREA, hidden_in_list=True)))
    assert s.effective_list_columns == ("name",)


def test_fk_fields_and_lookup():
    ref = FkReference(table="vendors")
    s = _schema(
        title="Products",
        collection="products",
        fields=(F("vendor_id", "Vendor", K.FK, reference=ref), F("name", "Name")),
    )
    assert [f.key for f in s.fk_fields] == ["vendor_id"]
    assert s.get_field("name").label == "Name"


def test_options_from_uses_value_as_label():
    assert options_from(("a", "b")) == (Option("a", "a"), Option("b", "b"))


def test_registry_rejects_duplicate_slug():
    reg = EntityRegistry()
    reg.register(_schema())
    with pytest.raises(SchemaError):
        reg.register(_schema())
    assert "vendors" in reg
    assert len(reg) == 1


def test_declared_entities():
    slugs = [s.slug for s in registry]
    assert slugs == [
        "vendors",
        "products",
        "personas",
        "outfits",
        "wardrobe-items",
        "persona-measurements",
        "persona-preferences",
        "product-variants",
        "inventory",
        "media-assets",
        "wardrobes",
        "outfit-items",
    ]


def test_declared_fk_fields_have_formatters_or_raw_ids():
    for schema in registry:
        for f in schema.fk_fields:
            assert f.reference is not None
            assert f.reference.table
