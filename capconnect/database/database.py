"""
Central SQLAlchemy setup.

*   Reads DATABASE_URL from the environment.
*   Creates an Engine with pooling + disconnect handling (Postgres) or a
    shared single connection (SQLite, used by the test-suite).
*   Exposes `SessionLocal()` factory and `Base` declarative metadata.
*   Provides `db_session()` context manager + `init_db()` helper.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

# --------------------------------------------------------------------------- #
# Environment
# --------------------------------------------------------------------------- #
DATABASE_URL: str | None = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    raise RuntimeError(
        "DATABASE_URL is not set – cannot start application without a database."
    )


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        # one connection shared by every session, otherwise ":memory:" is per-connection
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "pool_recycle": 1800,  # 30 min – keeps long-lived workers fresh.
    }


# --------------------------------------------------------------------------- #
# Engine
# --------------------------------------------------------------------------- #
ENGINE = create_engine(
    DATABASE_URL,
    echo=os.getenv("SQLALCHEMY_ECHO", "false").lower() == "true",
    future=True,
    **_engine_options(DATABASE_URL),
)

# --------------------------------------------------------------------------- #
# Session factory
# --------------------------------------------------------------------------- #
SessionLocal = sessionmaker(
    bind=ENGINE,
    expire_on_commit=False,  # typical for FastAPI
    autoflush=False,        # we control flush explicitly
    autocommit=False,
)

# --------------------------------------------------------------------------- #
# Declarative base
# --------------------------------------------------------------------------- #
Base = declarative_base()  # other modules import this for model definitions.

# --------------------------------------------------------------------------- #
# Dependency helpers
# --------------------------------------------------------------------------- #
@contextmanager
def db_session() -> Generator[Session, None, None]:
    """
    Context-manager version::

        with db_session() as db:
            db.query(...)

    Commits on success, rolls back on error, always closes.
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
    """FastAPI dependency – yields a SQLAlchemy Session per request."""
    with db_session() as db:
        yield db


def init_db() -> None:
    """
    Create all tables that are imported into metadata.
    Call once at startup (or run migrations against Supabase instead).
    """
    import capconnect.database.models  # noqa: F401 – ensure models are imported

    Base.metadata.create_all(bind=ENGINE)


def drop_db() -> None:
    """Drop every table known to the metadata. Test-suite only."""
    import capconnect.database.models  # noqa: F401

    Base.metadata.drop_all(bind=ENGINE)
