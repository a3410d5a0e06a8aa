import secrets
from flask import session, Request

_MAX_OPEN_SUBMIT_TOKENS = 50


def ensure_csrf_token() -> str:
    """Ensure a CSRF token exists in the session and return it."""
    token = session.get("csrf_token")
    if not token:
        token = secrets.token_urlsafe(32)
        session["csrf_token"] = token
    return token


def validate_csrf(req: Request) -> bool:
    """Validate CSRF token from form or header."""
    token = req.headers.get("X-CSRF-Token") or req.form.get("csrf_token")
    return bool(token and token == session.get("csrf_token"))


def issue_submit_token() -> str:
    """
    One-time token embedded in each rendered form.
    A second POST carrying the same token is refused instead of applied twice.
    """
    token = secrets.token_urlsafe(16)
    open_tokens = list(session.get("submit_tokens") or [])
    open_tokens.append(token)
    session["submit_tokens"] = open_tokens[-_MAX_OPEN_SUBMIT_TOKENS:]
    return token


def consume_submit_token(token: str | None) -> bool:
    open_tokens = list(session.get("submit_tokens") or [])
    if not token or token not in open_tokens:
        return False
    open_tokens.remove(token)
    session["submit_tokens"] = open_tokens
    return True

