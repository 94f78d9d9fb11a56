"""
artclaps.database.engine — Database Connection & Session Helpers
=================================================================

FastAPI runs the sync route handlers on Starlette's thread pool, so the
services stay plain synchronous SQLAlchemy.  ``run_db`` is kept for the
async routes that need to call into them (the Farcaster sync endpoint
awaits an HTTP call, then hands the DB write to a worker thread).

Usage::

    from artclaps.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    # Inside an async route:
    user = await run_db(apply_profile_sync, engine, profile)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from artclaps.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None) -> Engine:
    """Build the application :class:`Engine`.

    *url* defaults to ``DATABASE_URL``.  PostgreSQL gets a small pooled
    setup (5 persistent connections, 10 overflow, 10 s checkout timeout,
    hourly recycle); SQLite URLs are used as-is for local tinkering.

    Raises
    ------
    RuntimeError
        If no URL is given and ``DATABASE_URL`` is not set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example to .env and point it at PostgreSQL."
        )

    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(
            url,
            pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
            max_overflow=10,
            pool_pre_ping=True,
            pool_timeout=10,
            pool_recycle=3600,
        )
    logger.info("Database engine ready (%s)", engine.url.get_backend_name())
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create any missing tables.  Production schemas come from ``alembic upgrade head``."""
    Base.metadata.create_all(engine)
    logger.info("Schema ensured (%d tables)", len(Base.metadata.tables))


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Yield a :class:`Session` that commits on success and rolls back on
    exception.

    Every workflow service opens exactly one of these, so a clap, a follow
    or a referral redemption either lands completely or not at all.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread."""
    return await asyncio.to_thread(func, *args, **kwargs)
