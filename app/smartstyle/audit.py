from __future__ import annotations

import json
from typing import Any

from flask import g, has_request_context
from sqlalchemy.orm import Session

from app.smartstyle.models import AuditEvent, User


def _current_request_id() -> str | None:
    if not has_request_context():
        return None
    return getattr(g, "request_id", None)


def record_event(
    s: Session,
    *,
    actor: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    reason: str | None = None,
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> AuditEvent:
    """
    Add an audit event to `s`; the caller commits.

    `action` is "<collection>.create|edit|delete" for panel writes and
    "auth.*" for sign-in activity.
    """
    event = AuditEvent(
        request_id=request_id or _current_request_id(),
        actor_user_id=getattr(actor, "id", None),
        actor_user_email=getattr(actor, "email", None),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
        metadata_json=json.dumps(metadata, sort_keys=True, default=str) if metadata else None,
    )
    s.add(event)
    return event
