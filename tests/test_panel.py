import copy
import itertools

import pytest

from app.smartstyle.crud.errors import DeleteError, LoadError, SaveError, StoreError
from app.smartstyle.crud.fields import Draft
from app.smartstyle.crud.panel import Creating, Editing, Panel, PanelState
from app.smartstyle.crud.options import resolve_field_options
from app.smartstyle.crud.schema import FieldDescriptor as F, FieldKind as K, SchemaError
from app.smartstyle.entities import INVENTORY, PRODUCTS, VENDORS, WARDROBE_ITEMS


class FakeStore:
    """In-memory store with per-operation failure injection."""

    def __init__(self, tables=None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.fail = {}  # (op, collection) -> message
        self.calls = []
        self._ids = itertools.count(1)

    def _check(self, op, collection):
        self.calls.append((op, collection))
        msg = self.fail.get((op, collection))
        if msg:
            raise StoreError(msg)

    def fetch_all(self, collection, projection=None, ordering=None, limit=None):
        self._check("fetch", collection)
        rows = copy.deepcopy(self.tables.get(collection, []))
        if limit:
            rows = rows[:limit]
        return rows

    def insert(self, collection, payload, projection=None):
        self._check("insert", collection)
        row = {"id": f"new-{next(self._ids)}", **payload}
        self.tables.setdefault(collection, []).append(row)
        return dict(row)

    def update(self, collection, record_id, payload, projection=None):
        self._check("update", collection)
        for row in self.tables.get(collection, []):
            if row["id"] == record_id:
                row.update(payload)
                return dict(row)
        raise StoreError(f"{collection} {record_id} not found.")

    def delete(self, collection, record_id):
        self._check("delete", collection)
        rows = self.tables.get(collection, [])
        self.tables[collection] = [r for r in rows if r["id"] != record_id]


@pytest.fixture()
def store():
    return FakeStore(
        {
            "vendors": [{"id": "v-1", "name": "Acme"}, {"id": "v-2", "name": "Bolt"}],
            "products": [
                {"id": "p-1", "vendor_id": "v-1", "name": "Linen Shirt", "category": "Tops"},
                {"id": "p-2", "vendor_id": "v-2", "name": "Wool Coat", "category": "Outerwear"},
            ],
        }
    )


def _mounted(schema, store):
    panel = Panel(schema, store)
    panel.mount()
    return panel


def test_mount_loads_records_and_options(store):
    panel = _mounted(PRODUCTS, store)
    assert panel.state is PanelState.LOADED
    assert panel.error is None
    assert [r["id"] for r in panel.records] == ["p-1", "p-2"]
    assert [o.label for o in panel.fk.options["vendor_id"]] == ["Acme", "Bolt"]
    assert panel.resolution_errors == []


def test_load_failure_leaves_panel_usable(store):
    store.fail[("fetch", "products")] = "permission denied"
    panel = _mounted(PRODUCTS, store)
    assert panel.state is PanelState.LOADED
    assert panel.records == []
    assert isinstance(panel.error, LoadError)
    assert str(panel.error) == "Load failed: permission denied"

    panel.open_new()
    assert isinstance(panel.modal, Creating)


def test_refresh_recovers_after_failure(store):
    store.fail[("fetch", "products")] = "boom"
    panel = _mounted(PRODUCTS, store)
    del store.fail[("fetch", "products")]
    assert panel.refresh().ok
    assert len(panel.records) == 2
    assert panel.error is None


def test_fk_failure_is_per_field_and_required_still_enforced(store):
    store.fail[("fetch", "vendors")] = "vendors unavailable"
    panel = _mounted(PRODUCTS, store)
    assert len(panel.records) == 2
    assert panel.fk.options["vendor_id"] == ()
    [err] = panel.resolution_errors
    assert err.field == "vendor_id"
    assert str(err) == "Loading options failed: vendors unavailable"

    panel.open_new()
    controls = {c.key: c for c in panel.form_controls()}
    assert controls["vendor_id"].unavailable

    result = panel.submit(Draft(values={"name": "Tee", "vendor_id": ""}))
    assert not result.ok
    assert isinstance(result.error, SaveError)
    assert "Required: Vendor." in str(result.error)
    assert ("insert", "products") not in store.calls
    assert isinstance(panel.modal, Creating)


@pytest.fixture()
def wardrobe_store(store):
    store.tables.update(
        {
            "wardrobes": [{"id": "w-1", "title": "Summer"}],
            "product_variants": [{"id": "pv-1", "product_id": "p-1", "size_label": "M"}],
            "wardrobe_items": [{"id": "wi-1", "wardrobe_id": "w-1", "product_id": "p-1", "variant_id": "pv-1"}],
        }
    )
    return store


def test_one_failed_fk_does_not_affect_sibling_fields(wardrobe_store):
    wardrobe_store.fail[("fetch", "products")] = "products unavailable"
    panel = _mounted(WARDROBE_ITEMS, wardrobe_store)
    assert set(panel.fk.errors) == {"product_id"}
    assert [o.label for o in panel.fk.options["wardrobe_id"]] == ["Summer"]
    assert [o.label for o in panel.fk.options["variant_id"]] == ["M"]
    assert [r["id"] for r in panel.records] == ["wi-1"]

    panel.open_edit("wi-1")
    controls = {c.key: c for c in panel.form_controls()}
    assert controls["product_id"].unavailable
    assert controls["product_id"].value == "p-1"
    assert [o.value for o in controls["product_id"].options] == ["p-1"]
    assert not controls["wardrobe_id"].unavailable


def test_inventory_keeps_vendor_when_vendor_options_fail(store):
    store.tables["product_variants"] = [{"id": "pv-1", "size_label": "M"}]
    store.tables["inventory"] = [
        {"id": "inv-1", "variant_id": "pv-1", "vendor_id": "v-2", "quantity_on_hand": 3, "vendors": {"name": "Bolt"}}
    ]
    store.fail[("fetch", "vendors")] = "vendors unavailable"
    panel = _mounted(INVENTORY, store)
    assert set(panel.fk.errors) == {"vendor_id"}

    panel.open_edit("inv-1")
    controls = {c.key: c for c in panel.form_controls()}
    assert controls["vendor_id"].options[0].label == "Bolt"

    result = panel.submit(Draft(values={k: c.value for k, c in controls.items()}, id="inv-1"))
    assert result.ok
    assert store.tables["inventory"][0]["vendor_id"] == "v-2"


def test_resolving_options_for_a_plain_field_is_a_schema_error(store):
    with pytest.raises(SchemaError, match="no reference"):
        resolve_field_options(store, F("name", "Name", K.TEXT))
    assert store.calls == []


def test_create_prepends_record_and_closes_form(store):
    panel = _mounted(PRODUCTS, store)
    draft = panel.open_new()
    draft.values.update(name="Tee", vendor_id="v-1")
    result = panel.submit()
    assert result.ok
    assert panel.records[0]["name"] == "Tee"
    assert panel.records[0]["currency"] == "USD"
    assert len(panel.records) == 3
    assert panel.modal is None
    assert panel.draft is None


def test_edit_replaces_record_in_place(store):
    panel = _mounted(PRODUCTS, store)
    panel.open_edit("p-2")
    assert isinstance(panel.modal, Editing)
    result = panel.submit(Draft(values={"name": "Camel Coat", "vendor_id": "v-2"}))
    assert result.ok
    assert [r["id"] for r in panel.records] == ["p-1", "p-2"]
    assert panel.records[1]["name"] == "Camel Coat"
    assert store.calls[-1] == ("update", "products")


def test_edit_ignores_id_smuggled_in_draft(store):
    panel = _mounted(PRODUCTS, store)
    panel.open_edit("p-2")
    panel.submit(Draft(values={"name": "Camel Coat", "vendor_id": "v-2"}, id="p-1"))
    assert panel.find("p-1")["name"] == "Linen Shirt"


def test_open_edit_unknown_id(store):
    panel = _mounted(PRODUCTS, store)
    with pytest.raises(KeyError):
        panel.open_edit("missing")


def test_cancel_does_not_touch_records(store):
    panel = _mounted(PRODUCTS, store)
    before = copy.deepcopy(panel.records)
    draft = panel.open_edit("p-1")
    draft.values["name"] = "Changed"
    panel.cancel()
    assert panel.modal is None
    assert panel.records == before
    assert [c for c in store.calls if c[0] != "fetch"] == []


def test_save_failure_keeps_form_open(store):
    store.fail[("update", "products")] = "duplicate key"
    panel = _mounted(PRODUCTS, store)
    panel.open_edit("p-1")
    result = panel.submit(Draft(values={"name": "Tee", "vendor_id": "v-1"}))
    assert not result.ok
    assert str(result.error) == "Save failed: duplicate key"
    assert isinstance(panel.modal, Editing)
    assert panel.draft.values["name"] == "Tee"
    assert panel.find("p-1")["name"] == "Linen Shirt"
    assert panel.busy is False


def test_submit_refused_while_busy(store):
    panel = _mounted(VENDORS, store)
    panel.open_new()
    panel.busy = True
    result = panel.submit(Draft(values={"name": "Cedar"}))
    assert not result.ok
    assert ("insert", "vendors") not in store.calls


def test_delete_removes_exactly_one(store):
    panel = _mounted(VENDORS, store)
    assert panel.request_delete("v-1") == "Delete this vendor?"
    result = panel.confirm_delete()
    assert result.ok
    assert result.record["id"] == "v-1"
    assert [r["id"] for r in panel.records] == ["v-2"]
    assert panel.pending_delete is None


def test_delete_leaves_other_records_untouched(store):
    store.tables["vendors"].append({"id": "v-3", "name": "Cord", "wholesale": True, "notes": {"terms": [30, 60]}})
    panel = _mounted(VENDORS, store)
    before = copy.deepcopy(panel.records)
    panel.request_delete("v-2")
    assert panel.confirm_delete().ok
    assert panel.records == [r for r in before if r["id"] != "v-2"]
    assert store.calls.count(("delete", "vendors")) == 1


def test_delete_failure_keeps_row(store):
    store.fail[("delete", "vendors")] = "still referenced"
    panel = _mounted(VENDORS, store)
    panel.request_delete("v-1")
    result = panel.confirm_delete()
    assert not result.ok
    assert isinstance(panel.error, DeleteError)
    assert str(panel.error) == "Delete failed: still referenced"
    assert [r["id"] for r in panel.records] == ["v-1", "v-2"]


def test_cancel_delete_sends_nothing(store):
    panel = _mounted(VENDORS, store)
    panel.request_delete("v-2")
    panel.cancel_delete()
    assert panel.pending_delete is None
    assert ("delete", "vendors") not in store.calls
    with pytest.raises(RuntimeError):
        panel.confirm_delete()


def test_request_delete_unknown_id(store):
    panel = _mounted(VENDORS, store)
    with pytest.raises(KeyError):
        panel.request_delete("nope")


def test_search_filters_visible_rows_only(store):
    panel = _mounted(PRODUCTS, store)
    assert [r["id"] for r in panel.search("wool")] == ["p-2"]
    assert len(panel.records) == 2
    view = panel.list_view()
    assert [row.id for row in view.rows] == ["p-2"]


def test_actions_require_mount(store):
    panel = Panel(VENDORS, store)
    with pytest.raises(RuntimeError):
        panel.open_new()
