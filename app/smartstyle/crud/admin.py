from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, g, redirect, render_template, request, url_for

from app.smartstyle.audit import record_event
from app.smartstyle.crud.fields import draft_from_form
from app.smartstyle.crud.panel import Creating, Editing, Panel
from app.smartstyle.crud.schema import EntitySchema
from app.smartstyle.crud.store import TableStore
from app.smartstyle.crud.text import is_blank
from app.smartstyle.db import db_session
from app.smartstyle.entities import registry
from app.smartstyle.gate import require_employee
from app.smartstyle.models import User
from app.smartstyle.security import consume_submit_token, issue_submit_token

bp = Blueprint("crud", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def _schema_or_404(slug: str) -> EntitySchema:
    schema = registry.get(slug)
    if schema is None:
        abort(404)
    return schema


def _mounted_panel(schema: EntitySchema) -> Panel:
    panel = Panel(schema, TableStore.from_app(current_app))
    panel.mount()
    return panel


def _list_url(schema: EntitySchema, q: str = "", **params) -> str:
    if q:
        params["q"] = q
    return url_for("crud.panel_view", slug=schema.slug, **params)


def _changed_keys(schema: EntitySchema, before: dict | None, after: dict) -> list[str]:
    if before is None:
        return sorted(f.key for f in schema if not is_blank(after.get(f.key)))
    return sorted(f.key for f in schema if before.get(f.key) != after.get(f.key))


def _render_panel(panel: Panel, status: int = 200, delete_prompt: str | None = None):
    mode = None
    if isinstance(panel.modal, Creating):
        mode = "create"
    elif isinstance(panel.modal, Editing):
        mode = "edit"
    needs_token = panel.draft is not None or panel.pending_delete is not None
    return (
        render_template(
            "crud/panel.html",
            schema=panel.schema,
            panel=panel,
            view=panel.list_view(),
            controls=panel.form_controls(),
            mode=mode,
            query=panel.query,
            delete_prompt=delete_prompt,
            submit_token=issue_submit_token() if needs_token else None,
        ),
        status,
    )


# ---------- Index ----------
@bp.get("/")
@require_employee
def index():
    return render_template("crud/index.html", entities=list(registry))


# ---------- List / open forms ----------
@bp.get("/<slug>")
@require_employee
def panel_view(slug: str):
    schema = _schema_or_404(slug)
    panel = _mounted_panel(schema)
    panel.search(request.args.get("q") or "")

    edit_id = (request.args.get("edit") or "").strip()
    delete_id = (request.args.get("delete") or "").strip()
    delete_prompt = None
    try:
        if request.args.get("new") == "1":
            panel.open_new()
        elif edit_id:
            panel.open_edit(edit_id)
        if delete_id:
            delete_prompt = panel.request_delete(delete_id)
    except KeyError:
        abort(404)

    return _render_panel(panel, delete_prompt=delete_prompt)


# ---------- Create / Update ----------
@bp.post("/<slug>/save")
@require_employee
def panel_save(slug: str):
    schema = _schema_or_404(slug)
    s = db_session()
    u = _current_user()
    q = request.form.get("q") or ""

    if not consume_submit_token(request.form.get("submit_token")):
        flash("This form was already submitted.", "warning")
        return redirect(_list_url(schema, q))

    panel = _mounted_panel(schema)
    if panel.error is not None:
        flash(str(panel.error), "danger")
        return redirect(_list_url(schema, q))

    record_id = (request.form.get("id") or "").strip() or None
    before = None
    try:
        if record_id:
            panel.open_edit(record_id)
            before = dict(panel.modal.record)
        else:
            panel.open_new()
    except KeyError:
        abort(404)

    result = panel.submit(draft_from_form(schema, request.form, record_id))
    if not result.ok:
        panel.search(q)
        return _render_panel(panel, status=400)

    saved = result.record or {}
    record_event(
        s,
        actor=u,
        action=f"{schema.collection}.{'edit' if record_id else 'create'}",
        entity_type=schema.collection,
        entity_id=str(saved.get("id")),
        metadata={"changed": _changed_keys(schema, before, saved)},
    )
    s.commit()

    flash(f"{schema.singular.capitalize()} {'updated' if record_id else 'created'}.", "success")
    return redirect(_list_url(schema, q))


# ---------- Delete ----------
@bp.post("/<slug>/<record_id>/delete")
@require_employee
def panel_delete(slug: str, record_id: str):
    schema = _schema_or_404(slug)
    s = db_session()
    u = _current_user()
    q = request.form.get("q") or ""

    if request.form.get("confirm") != "yes":
        flash("Delete was not confirmed.", "warning")
        return redirect(_list_url(schema, q))

    if not consume_submit_token(request.form.get("submit_token")):
        flash("This delete was already submitted.", "warning")
        return redirect(_list_url(schema, q))

    panel = _mounted_panel(schema)
    if panel.error is not None:
        flash(str(panel.error), "danger")
        return redirect(_list_url(schema, q))

    try:
        panel.request_delete(record_id)
    except KeyError:
        abort(404)

    result = panel.confirm_delete()
    if not result.ok:
        flash(str(result.error), "danger")
        return redirect(_list_url(schema, q))

    record_event(
        s,
        actor=u,
        action=f"{schema.collection}.delete",
        entity_type=schema.collection,
        entity_id=record_id,
    )
    s.commit()

    flash(f"{schema.singular.capitalize()} deleted.", "success")
    return redirect(_list_url(schema, q))
