"""HTTP flows for the generic entity panels."""
import json

import pytest
from werkzeug.security import generate_password_hash

from app.smartstyle import create_app
from app.smartstyle.crud import options as fk_options
from app.smartstyle.crud.errors import StoreError
from app.smartstyle.crud.store import TableStore
from app.smartstyle.db import session_scope
from app.smartstyle.models import AuditEvent, Base, User


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    for k in ("EMPLOYEE_EMAILS", "EMPLOYEE_DOMAIN"):
        monkeypatch.delenv(k, raising=False)

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        s.add(User(email="admin@example.com", password_hash=generate_password_hash("pw"), is_active=True))

    return app.test_client()


def _login(client):
    client.post("/auth/login", data={"email": "admin@example.com", "password": "pw"}, follow_redirects=True)


def _tokens(client, submit_token="submit-1"):
    """Put a known CSRF token and an open submit token in the session."""
    with client.session_transaction() as sess:
        sess["csrf_token"] = "csrf-test"
        sess["submit_tokens"] = list(sess.get("submit_tokens") or []) + [submit_token]
    return {"csrf_token": "csrf-test", "submit_token": submit_token}


def _store(client):
    return TableStore.from_app(client.application)


def _audit_actions(client):
    with session_scope(client.application) as s:
        return [e.action for e in s.query(AuditEvent).order_by(AuditEvent.id)]


def test_panel_requires_auth(client):
    r = client.get("/admin/vendors")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]


def test_unknown_slug_is_404(client):
    _login(client)
    assert client.get("/admin/nope").status_code == 404


def test_empty_panel(client):
    _login(client)
    r = client.get("/admin/vendors")
    assert r.status_code == 200
    assert b"Brands, boutiques, suppliers" in r.data
    assert b"No vendors yet." in r.data


def test_new_form_renders_controls(client):
    _login(client)
    r = client.get("/admin/products?new=1")
    assert r.status_code == 200
    assert b'name="vendor_id"' in r.data
    assert b'name="submit_token"' in r.data
    assert b"Create" in r.data


def test_create_vendor(client):
    _login(client)
    data = {"name": "Acme", "contact_email": " Sales@Acme.COM ", "wholesale": "on", **_tokens(client)}
    r = client.post("/admin/vendors/save", data=data, follow_redirects=True)
    assert r.status_code == 200
    assert b"Vendor created." in r.data
    assert b"Acme" in r.data

    [row] = _store(client).fetch_all("vendors")
    assert row["contact_email"] == "sales@acme.com"
    assert row["wholesale"] is True
    assert "vendors.create" in _audit_actions(client)


def test_resubmitted_form_is_applied_once(client):
    _login(client)
    data = {"name": "Acme", **_tokens(client)}
    client.post("/admin/vendors/save", data=data)
    r = client.post("/admin/vendors/save", data=data, follow_redirects=True)
    assert b"already submitted" in r.data
    assert len(_store(client).fetch_all("vendors")) == 1


def test_missing_csrf_is_rejected(client):
    _login(client)
    tokens = _tokens(client)
    r = client.post("/admin/vendors/save", data={"name": "Acme", "submit_token": tokens["submit_token"]})
    assert r.status_code == 400
    assert _store(client).fetch_all("vendors") == []


def test_missing_required_rerenders_form(client):
    _login(client)
    r = client.post("/admin/vendors/save", data={"name": "  ", "contact_name": "Jo", **_tokens(client)})
    assert r.status_code == 400
    assert b"Required: Name." in r.data
    assert b'value="Jo"' in r.data
    assert _store(client).fetch_all("vendors") == []


def test_non_numeric_money_is_rejected(client):
    _login(client)
    vendor = _store(client).insert("vendors", {"name": "Acme"})
    data = {"vendor_id": vendor["id"], "name": "Tee", "msrp": "cheap", **_tokens(client)}
    r = client.post("/admin/products/save", data=data)
    assert r.status_code == 400
    assert b"Save failed: MSRP" in r.data
    assert _store(client).fetch_all("products") == []


def test_create_product_lists_vendor_name_and_price(client):
    _login(client)
    vendor = _store(client).insert("vendors", {"name": "Acme"})
    data = {"vendor_id": vendor["id"], "name": "Linen Shirt", "msrp": "42", "search_tags": "linen, summer",
            **_tokens(client)}
    r = client.post("/admin/products/save", data=data, follow_redirects=True)
    assert r.status_code == 200
    assert b"Product created." in r.data
    assert b"<td>Acme</td>" in r.data
    assert b"<td>$42</td>" in r.data

    [row] = _store(client).fetch_all("products")
    assert row["search_tags"] == ["linen", "summer"]
    assert row["currency"] is None


def test_edit_vendor(client):
    _login(client)
    vendor = _store(client).insert("vendors", {"name": "Acme", "notes": "keep"})

    r = client.get(f"/admin/vendors?edit={vendor['id']}")
    assert r.status_code == 200
    assert b"Update" in r.data
    assert b"keep" in r.data

    data = {"id": vendor["id"], "name": "Acme Co", "notes": "keep", **_tokens(client)}
    r = client.post("/admin/vendors/save", data=data, follow_redirects=True)
    assert b"Vendor updated." in r.data

    [row] = _store(client).fetch_all("vendors")
    assert row["name"] == "Acme Co"

    with session_scope(client.application) as s:
        ev = s.query(AuditEvent).filter(AuditEvent.action == "vendors.edit").one()
        assert ev.entity_id == vendor["id"]
        assert json.loads(ev.metadata_json)["changed"] == ["name"]


def test_edit_unknown_id_is_404(client):
    _login(client)
    assert client.get("/admin/vendors?edit=nope").status_code == 404
    r = client.post("/admin/vendors/save", data={"id": "nope", "name": "x", **_tokens(client)})
    assert r.status_code == 404


def test_search_filters_rows(client):
    _login(client)
    for name in ("Acme", "Bolt"):
        _store(client).insert("vendors", {"name": name})
    r = client.get("/admin/vendors?q=bol")
    assert b"<td>Bolt</td>" in r.data
    assert b"<td>Acme</td>" not in r.data

    r = client.get("/admin/vendors?q=zzz")
    assert b"No results for your search." in r.data


def test_delete_flow(client):
    _login(client)
    keep = _store(client).insert("vendors", {"name": "Keep"})
    gone = _store(client).insert("vendors", {"name": "Gone"})

    r = client.get(f"/admin/vendors?delete={gone['id']}")
    assert r.status_code == 200
    assert b"Delete this vendor?" in r.data

    r = client.post(
        f"/admin/vendors/{gone['id']}/delete",
        data={"confirm": "yes", **_tokens(client)},
        follow_redirects=True,
    )
    assert b"Vendor deleted." in r.data
    assert [row["id"] for row in _store(client).fetch_all("vendors")] == [keep["id"]]
    assert "vendors.delete" in _audit_actions(client)


def test_delete_requires_confirmation(client):
    _login(client)
    vendor = _store(client).insert("vendors", {"name": "Acme"})
    r = client.post(f"/admin/vendors/{vendor['id']}/delete", data=_tokens(client), follow_redirects=True)
    assert b"Delete was not confirmed." in r.data
    assert len(_store(client).fetch_all("vendors")) == 1


def test_delete_unknown_id_is_404(client):
    _login(client)
    r = client.post("/admin/vendors/nope/delete", data={"confirm": "yes", **_tokens(client)})
    assert r.status_code == 404


def test_fk_options_come_from_referenced_table(client):
    _login(client)
    persona = _store(client).insert("personas", {"display_name": "Ada Lovelace"})
    r = client.get("/admin/outfits?new=1")
    assert r.status_code == 200
    assert f'value="{persona["id"]}"'.encode() in r.data
    assert b"Ada Lovelace" in r.data


def test_preferences_store_json(client):
    _login(client)
    persona = _store(client).insert("personas", {"display_name": "Ada"})
    data = {"persona_id": persona["id"], "pref_key": "palette", "pref_value": '{"avoid": ["orange"]}',
            "priority": "2", **_tokens(client)}
    r = client.post("/admin/persona-preferences/save", data=data)
    assert r.status_code == 302
    [row] = _store(client).fetch_all("persona_preferences")
    assert row["pref_value"] == {"avoid": ["orange"]}
    assert row["priority"] == 2


def _inventory_row(client):
    store = _store(client)
    vendor = store.insert("vendors", {"name": "Acme"})
    product = store.insert("products", {"name": "Linen Shirt", "vendor_id": vendor["id"]})
    variant = store.insert("product_variants", {"product_id": product["id"], "size_label": "M"})
    row = store.insert("inventory", {"variant_id": variant["id"], "vendor_id": vendor["id"], "quantity_on_hand": 4})
    return vendor, variant, row


def test_edit_keeps_vendor_when_vendor_options_fail(client, monkeypatch):
    _login(client)
    vendor, variant, row = _inventory_row(client)
    resolve = fk_options.resolve_field_options

    def _vendors_down(store, f):
        if f.reference.table == "vendors":
            raise StoreError("vendors unavailable")
        return resolve(store, f)

    monkeypatch.setattr(fk_options, "resolve_field_options", _vendors_down)

    r = client.get(f"/admin/inventory?edit={row['id']}")
    assert r.status_code == 200
    assert b"Options could not be loaded." in r.data
    assert f'<option value="{vendor["id"]}" selected>Acme</option>'.encode() in r.data

    data = {"id": row["id"], "variant_id": variant["id"], "vendor_id": vendor["id"], "quantity_on_hand": "5",
            **_tokens(client)}
    r = client.post("/admin/inventory/save", data=data, follow_redirects=True)
    assert b"Inventory updated." in r.data

    [saved] = _store(client).fetch_all("inventory")
    assert saved["vendor_id"] == vendor["id"]
    assert saved["quantity_on_hand"] == 5


def test_edit_form_quotes_string_preferences(client):
    _login(client)
    persona = _store(client).insert("personas", {"display_name": "Ada"})
    pref = _store(client).insert(
        "persona_preferences", {"persona_id": persona["id"], "pref_key": "size", "pref_value": "42", "priority": 0}
    )
    r = client.get(f"/admin/persona-preferences?edit={pref['id']}")
    assert r.status_code == 200
    assert b"&#34;42&#34;" in r.data

    data = {"id": pref["id"], "persona_id": persona["id"], "pref_key": "size", "pref_value": '"42"',
            "priority": "0", **_tokens(client)}
    assert client.post("/admin/persona-preferences/save", data=data).status_code == 302
    [row] = _store(client).fetch_all("persona_preferences")
    assert row["pref_value"] == "42"
