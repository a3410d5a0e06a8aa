"""
Release phase: migrate the database to head, then seed the admin account.

Run before the web process starts (scripts/start.py calls run_release()).
DATABASE_URL must be set; production refuses SQLite.

  python scripts/release.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def release_database_url() -> str:
    url = (os.environ.get("DATABASE_URL") or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set; the release phase needs an explicit database.")
    env = (os.environ.get("ENV") or "").strip().lower()
    if env in ("prod", "production") and url.startswith("sqlite"):
        raise RuntimeError("Production releases must target Postgres, not sqlite.")
    return url


def migrate(url: str, revision: str = "head") -> None:
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", url)
    command.upgrade(cfg, revision)


def run_release() -> None:
    url = release_database_url()
    print(f"[release] migrating to head (ENV={os.environ.get('ENV') or 'unset'})", flush=True)
    migrate(url)

    from scripts import init_db

    print("[release] seeding admin account", flush=True)
    init_db.seed_only(database_url=url)
    print("[release] done", flush=True)


if __name__ == "__main__":
    run_release()
