"""
Panel controller: the view/create/edit/delete lifecycle for one entity.

States: IDLE -> LOADING -> LOADED. From LOADED at most one form is open at a
time (Creating or Editing). Every action returns an ActionResult; failures
are kept on `panel.error` and never leave the panel unusable.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any

from app.smartstyle.crud.errors import DeleteError, LoadError, PanelError, ResolutionError, SaveError, StoreError
from app.smartstyle.crud.fields import Draft, FormControl, build_draft, prepare_payload, render_form
from app.smartstyle.crud.listing import ListView, render_list
from app.smartstyle.crud.options import FkResolution, resolve_fk_options
from app.smartstyle.crud.records import filter_records, load_records
from app.smartstyle.crud.schema import EntitySchema

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class PanelState(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"


@dataclass(frozen=True)
class Creating:
    pass


@dataclass(frozen=True)
class Editing:
    record: Record


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    error: PanelError | None = None
    record: Record | None = None


def _same_id(record: Record, record_id: Any) -> bool:
    rid = record.get("id")
    return rid is not None and str(rid) == str(record_id)


class Panel:
    def __init__(self, schema: EntitySchema, store):
        self.schema = schema
        self.store = store
        self.state = PanelState.IDLE
        self.records: list[Record] = []
        self.fk = FkResolution()
        self.modal: Creating | Editing | None = None
        self.draft: Draft | None = None
        self.error: PanelError | None = None
        self.pending_delete: str | None = None
        self.query = ""
        self.busy = False

    # ---------- loading ----------
    def mount(self) -> ActionResult:
        self.state = PanelState.LOADING
        self.error = None
        self.fk = resolve_fk_options(self.store, self.schema)
        try:
            self.records = load_records(self.store, self.schema)
            result = ActionResult(ok=True)
        except StoreError as e:
            logger.warning("Load %s failed: %s", self.schema.collection, e.message)
            self.records = []
            self.error = LoadError(e.message)
            result = ActionResult(ok=False, error=self.error)
        self.state = PanelState.LOADED
        return result

    def refresh(self) -> ActionResult:
        """Reload records and every foreign-key option set."""
        return self.mount()

    @property
    def resolution_errors(self) -> list[ResolutionError]:
        return [ResolutionError(msg, field=key) for key, msg in self.fk.errors.items()]

    # ---------- lookup ----------
    def find(self, record_id: Any) -> Record | None:
        for r in self.records:
            if _same_id(r, record_id):
                return r
        return None

    def _require_loaded(self) -> None:
        if self.state is not PanelState.LOADED:
            raise RuntimeError(f"{self.schema.title} panel is not loaded.")

    # ---------- forms ----------
    def open_new(self) -> Draft:
        self._require_loaded()
        self.modal = Creating()
        self.draft = build_draft(self.schema)
        self.error = None
        return self.draft

    def open_edit(self, record_id: Any) -> Draft:
        self._require_loaded()
        record = self.find(record_id)
        if record is None:
            raise KeyError(record_id)
        self.modal = Editing(record)
        self.draft = build_draft(self.schema, record)
        self.error = None
        return self.draft

    def cancel(self) -> None:
        self.modal = None
        self.draft = None
        self.error = None

    def _modal_id(self) -> str | None:
        if isinstance(self.modal, Editing):
            return str(self.modal.record["id"])
        return None

    def submit(self, draft: Draft | None = None) -> ActionResult:
        """
        Coerce, check required fields, apply before_save, then insert or update.
        On failure the submitted draft is kept as-is for correction.
        """
        if self.modal is None:
            raise RuntimeError("No form is open.")
        if self.busy:
            return ActionResult(ok=False, error=SaveError("A save is already in progress."))

        source = draft if draft is not None else self.draft
        if source is None:
            raise RuntimeError("No draft to submit.")
        self.draft = Draft(values=dict(source.values), id=self._modal_id())

        self.busy = True
        try:
            payload = prepare_payload(self.schema, self.draft)
            if self.draft.is_update:
                saved = self.store.update(self.schema.collection, self.draft.id, payload, self.schema.list_projection)
            else:
                saved = self.store.insert(self.schema.collection, payload, self.schema.list_projection)
        except SaveError as e:
            self.error = e
            return ActionResult(ok=False, error=e)
        except StoreError as e:
            logger.warning("Save %s failed: %s", self.schema.collection, e.message)
            self.error = SaveError(e.message)
            return ActionResult(ok=False, error=self.error)
        finally:
            self.busy = False

        if self.draft.is_update:
            self.records = [saved if _same_id(r, self.draft.id) else r for r in self.records]
        else:
            self.records.insert(0, saved)
        self.modal = None
        self.draft = None
        self.error = None
        return ActionResult(ok=True, record=saved)

    # ---------- delete ----------
    def request_delete(self, record_id: Any) -> str:
        """First step of a delete; nothing is sent until confirm_delete()."""
        self._require_loaded()
        if self.find(record_id) is None:
            raise KeyError(record_id)
        self.pending_delete = str(record_id)
        return f"Delete this {self.schema.singular}?"

    def cancel_delete(self) -> None:
        self.pending_delete = None

    def confirm_delete(self) -> ActionResult:
        if self.pending_delete is None:
            raise RuntimeError("No delete awaiting confirmation.")
        if self.busy:
            return ActionResult(ok=False, error=DeleteError("Another request is in progress."))

        record_id = self.pending_delete
        self.pending_delete = None
        self.busy = True
        try:
            self.store.delete(self.schema.collection, record_id)
        except StoreError as e:
            logger.warning("Delete %s %s failed: %s", self.schema.collection, record_id, e.message)
            self.error = DeleteError(e.message)
            return ActionResult(ok=False, error=self.error)
        finally:
            self.busy = False

        removed = self.find(record_id)
        self.records = [r for r in self.records if r is not removed]
        self.error = None
        return ActionResult(ok=True, record=removed)

    # ---------- view ----------
    def search(self, query: str) -> list[Record]:
        self.query = query or ""
        return self.visible

    @property
    def visible(self) -> list[Record]:
        return filter_records(self.records, self.query, self.schema.effective_search_keys)

    def list_view(self) -> ListView:
        return render_list(self.schema, self.visible)

    def form_controls(self) -> list[FormControl]:
        if self.draft is None:
            return []
        record = self.modal.record if isinstance(self.modal, Editing) else None
        return render_form(self.schema, self.draft, self.fk.options, self.fk.failed, record)
