import os
from dataclasses import dataclass
from datetime import timedelta

DEFAULT_SECRET_KEY = "change-me"


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    session_hours: int

    # Employee allowlist; both empty means any active account may sign in.
    employee_emails: tuple[str, ...]
    employee_domain: str

    @property
    def is_production(self) -> bool:
        return self.env in ("prod", "production")

    def check_production(self) -> None:
        """Fail fast on settings that are only acceptable in development."""
        if not self.is_production:
            return
        if not self.database_url:
            raise RuntimeError("DATABASE_URL is required in production.")
        if self.database_url.startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if self.secret_key in ("", DEFAULT_SECRET_KEY):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _split_emails(raw: str) -> tuple[str, ...]:
    return tuple(e.strip().lower() for e in raw.split(",") if e.strip())


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", DEFAULT_SECRET_KEY),
        env=_getenv("ENV", "development").lower(),
        database_url=_getenv("DATABASE_URL", "sqlite:///smartstyle.db"),
        session_hours=int(_getenv("SESSION_HOURS", "8")),
        employee_emails=_split_emails(_getenv("EMPLOYEE_EMAILS")),
        employee_domain=_getenv("EMPLOYEE_DOMAIN").lower().lstrip("@"),
    )


def load_config(settings: Settings | None = None) -> dict:
    s = settings or load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "EMPLOYEE_EMAILS": s.employee_emails,
        "EMPLOYEE_DOMAIN": s.employee_domain,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": s.is_production,  # Require HTTPS in production
        "PERMANENT_SESSION_LIFETIME": timedelta(hours=s.session_hours),
        "SESSION_REFRESH_EACH_REQUEST": True,
    }
