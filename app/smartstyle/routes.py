from flask import Blueprint, redirect, url_for

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    return redirect(url_for("crud.index"))


@bp.get("/health")
def health():
    return {"ok": True, "service": "smartstyle-console"}


@bp.get("/healthz")
def healthz():
    # Probe endpoint: no DB access.
    return "ok", 200
