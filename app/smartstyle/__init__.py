import logging
import os

from dotenv import load_dotenv
from flask import Flask, g, render_template, request, session

from app.smartstyle.auth import bp as auth_bp, load_current_user
from app.smartstyle.config import load_config, load_settings
from app.smartstyle.crud.admin import bp as crud_bp
from app.smartstyle.db import init_db, teardown_db_session
from app.smartstyle.entities import registry
from app.smartstyle.routes import bp as routes_bp
from app.smartstyle.security import ensure_csrf_token, validate_csrf

logger = logging.getLogger(__name__)

_UNGUARDED_PREFIXES = ("/static/", "/health", "/healthz")
_UNSAFE_METHODS = ("POST", "PUT", "PATCH", "DELETE")


def _register_guards(app: Flask) -> None:
    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(_UNGUARDED_PREFIXES):
            return None
        ensure_csrf_token()
        session.permanent = True
        # Login/logout are exempt so a fresh session can sign in.
        if request.method in _UNSAFE_METHODS and not (request.endpoint or "").startswith("auth."):
            if not validate_csrf(request):
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400
        return None

    app.before_request(load_current_user)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        user = getattr(g, "current_user", None)
        app.logger.warning(
            "Forbidden: user=%s path=%s request_id=%s",
            getattr(user, "email", None),
            request.path,
            getattr(g, "request_id", None),
        )
        return render_template("errors/403.html"), 403

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500


def _dispose_engine_on_fork(app: Flask) -> None:
    # Pooled connections must not be shared with gunicorn workers forked after --preload.
    if not hasattr(os, "register_at_fork"):
        return

    def _after_fork_child():
        engine = app.extensions.get("sqlalchemy_engine")
        if engine is not None:
            engine.dispose()
            app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

    os.register_at_fork(after_in_child=_after_fork_child)


def create_app() -> Flask:
    load_dotenv()
    settings = load_settings()
    settings.check_production()

    app = Flask(__name__, template_folder="templates")
    app.config.from_mapping(load_config(settings))

    init_db(app)
    _dispose_engine_on_fork(app)

    _register_guards(app)
    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(crud_bp, url_prefix="/admin")
    app.teardown_appcontext(teardown_db_session)
    _register_error_handlers(app)

    logger.info("create_app() complete (env=%s, %d entity panels)", settings.env, len(registry))
    return app
