import os
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker


def _build_database_url() -> str:
    """
    DATABASE_URL from the environment, else a local SQLite file.

    Heroku-style postgres:// URLs are rewritten to postgresql+psycopg2://,
    which SQLAlchemy 2.x requires.
    """
    url = os.getenv("DATABASE_URL", "sqlite:///./questline.db").strip()
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


DATABASE_URL = _build_database_url()
IS_SQLITE = DATABASE_URL.startswith("sqlite")

# check_same_thread: FastAPI runs sync handlers in a threadpool
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if IS_SQLITE else {},
    future=True,
)

if IS_SQLITE:
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, _record):
        # ON DELETE CASCADE on check_ins / reflection_gates needs this
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

# Snapshots keep using loaded rows after commit, so nothing expires on commit.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

Base = declarative_base()


def describe_database() -> dict:
    """Where the engine points, password hidden. Shared by startup and /debug."""
    url = engine.url
    info = {
        "backend": url.get_backend_name(),
        "url": url.render_as_string(hide_password=True),
    }
    if info["backend"] == "sqlite":
        db_path = Path(url.database or "").resolve()
        exists = db_path.exists()
        info.update(
            sqlite_path=str(db_path),
            sqlite_exists=exists,
            sqlite_size_bytes=db_path.stat().st_size if exists else 0,
        )
    else:
        info.update(database=url.database, host=url.host, port=url.port, drivername=url.drivername)
    return info


try:
    _info = describe_database()
    print(f"[DB] Using database backend={_info['backend']} url={_info['url']}", flush=True)
    if "sqlite_path" in _info:
        print(
            f"[DB] SQLite path={_info['sqlite_path']} exists={_info['sqlite_exists']} "
            f"size_bytes={_info['sqlite_size_bytes']}",
            flush=True,
        )
except OSError as exc:
    print("[DB] Failed to log DB diagnostics:", repr(exc), flush=True)
