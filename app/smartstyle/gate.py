from collections.abc import Callable, Mapping
from functools import wraps
from typing import Any

from flask import abort, current_app, g, redirect, request, url_for

from app.smartstyle.models import User


def is_allowed(email: str | None, config: Mapping[str, Any]) -> bool:
    """
    Employee allowlist: explicit emails or an email domain.
    With no allowlist configured every active account is allowed.
    """
    if not email:
        return False
    email = email.strip().lower()
    emails = tuple(config.get("EMPLOYEE_EMAILS") or ())
    domain = (config.get("EMPLOYEE_DOMAIN") or "").strip().lower()
    if email in emails:
        return True
    if domain and email.endswith(f"@{domain}"):
        return True
    return not emails and not domain


def require_employee(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        # Unauthenticated → redirect to login.
        if not user or not user.is_active:
            nxt = request.full_path or request.path
            # Avoid trailing '?' from full_path when there is no query string.
            if nxt.endswith("?"):
                nxt = nxt[:-1]
            return redirect(url_for("auth.login_get", next=nxt))
        # Authenticated but not on the allowlist → 403
        if not is_allowed(user.email, current_app.config):
            abort(403)
        return fn(*args, **kwargs)

    return wrapped
