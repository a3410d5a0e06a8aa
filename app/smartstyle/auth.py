from __future__ import annotations

import uuid
from collections import deque
from datetime import datetime, timedelta

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, session, url_for
from werkzeug.security import check_password_hash

from app.smartstyle.audit import record_event
from app.smartstyle.db import db_session
from app.smartstyle.gate import is_allowed
from app.smartstyle.models import User

bp = Blueprint("auth", __name__)


class LoginThrottle:
    """Per-address sliding window of failed sign-in attempts (process-local)."""

    def __init__(self, limit: int = 5, window: timedelta = timedelta(minutes=5)):
        self.limit = limit
        self.window = window
        self._attempts: dict[str, deque[datetime]] = {}

    def __len__(self) -> int:
        return len(self._attempts)

    def blocked(self, key: str) -> bool:
        attempts = self._attempts.get(key)
        if attempts is None:
            return False
        cutoff = datetime.utcnow() - self.window
        while attempts and attempts[0] <= cutoff:
            attempts.popleft()
        if not attempts:
            # Expired addresses are forgotten.
            del self._attempts[key]
            return False
        return len(attempts) >= self.limit

    def hit(self, key: str) -> None:
        self._attempts.setdefault(key, deque()).append(datetime.utcnow())

    def reset(self, key: str) -> None:
        self._attempts.pop(key, None)


throttle = LoginThrottle()


def _safe_next(nxt: str) -> str | None:
    # Local paths only; "//host" would be an open redirect.
    if nxt.startswith("/") and not nxt.startswith("//"):
        return nxt
    return None


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie and assigns a
    per-request request_id for audit/log correlation.
    """
    g.request_id = getattr(g, "request_id", None) or uuid.uuid4().hex
    g.current_user = None
    if request.path.startswith(("/static/", "/health", "/healthz")):
        return

    user_id = session.get("user_id")
    if not user_id:
        return
    user = db_session().get(User, int(user_id))
    if user is None or not user.is_active:
        session.pop("user_id", None)
        return
    g.current_user = user


@bp.get("/login")
def login_get():
    return render_template("auth/login.html", next=(request.args.get("next") or "").strip())


@bp.post("/login")
def login_post():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    nxt = _safe_next((request.form.get("next") or "").strip())
    ip = request.remote_addr or "unknown"

    if throttle.blocked(ip):
        flash("Too many login attempts. Please wait 5 minutes.", "danger")
        return redirect(url_for("auth.login_get"))

    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none()
    if user is None or not user.is_active or not check_password_hash(user.password_hash, password):
        throttle.hit(ip)
        current_app.logger.warning("Login failed (email=%s request_id=%s)", email, g.request_id)
        record_event(
            s,
            actor=None,
            action="auth.login_failed",
            entity_type="User",
            entity_id=email,
            reason="Invalid credentials",
        )
        s.commit()
        flash("Invalid credentials.", "danger")
        return redirect(url_for("auth.login_get"))

    if not is_allowed(user.email, current_app.config):
        current_app.logger.warning("Login refused, not on employee allowlist (email=%s)", email)
        record_event(s, actor=user, action="auth.login_refused", entity_type="User", entity_id=str(user.id))
        s.commit()
        flash("This account is not authorized to use the console.", "danger")
        return redirect(url_for("auth.login_get"))

    session["user_id"] = user.id
    throttle.reset(ip)
    record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=str(user.id))
    s.commit()
    return redirect(nxt or url_for("crud.index"))


@bp.get("/logout")
def logout():
    user = getattr(g, "current_user", None)
    if user is not None:
        s = db_session()
        record_event(s, actor=user, action="auth.logout", entity_type="User", entity_id=str(user.id))
        s.commit()
    session.pop("user_id", None)
    return redirect(url_for("auth.login_get"))
