"""
Engine and session handling for the tracker database.

SQLite is the default store for a single household install; PostgreSQL is
used when DATABASE_URL points at it. Request handlers get a session from
get_db(), which commits when the handler returns and rolls back when it
raises.
"""

import logging
import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from baby_tracker.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

if settings.is_production:
    settings.validate_production_config()


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    database = make_url(database_url).database
    if not database or database == ":memory:":
        return
    directory = os.path.dirname(database)
    if directory:
        os.makedirs(directory, exist_ok=True)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine suited to the database behind the URL.

    SQLite gets a single shared connection usable from FastAPI's worker
    threads; other databases get a small pre-pinged pool.
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        _ensure_sqlite_directory(database_url)
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )

    return create_engine(
        database_url,
        pool_size=5,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=echo,
    )


@event.listens_for(Engine, "connect")
def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """Turn on foreign key enforcement for every new SQLite connection."""
    if type(dbapi_conn).__module__.startswith("sqlite3"):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(settings.database_url, echo=settings.log_level == "DEBUG")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Session scope for code running outside a request.

    Commits on a clean exit and rolls back if the block raises.

    Usage:
        with get_db_context() as db:
            create_setup_invite(db, password)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    with get_db_context() as db:
        yield db


def init_db() -> None:
    """
    Create any missing tables.

    Used for development installs; deployed databases are managed with
    `alembic upgrade head`.
    """
    from baby_tracker.models import Base

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables ensured on {engine.url.render_as_string(hide_password=True)}")


def check_connection() -> bool:
    """Return True when the database answers a trivial query."""
    try:
        with get_db_context() as db:
            db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
