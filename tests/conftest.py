"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy import Engine, create_engine, select

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import Session

from artclaps.config import ArtClapsConfig
from artclaps.database.models import ArtistStatus, Base, User
from artclaps.engine.authorization import AdminPolicy

_jsonb_sqlite_registered = False

ADMIN_FID = 7418


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent).

    Also maps BigInteger → INTEGER so fids behave like plain integers.
    """
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Art Claps tables.

    Uses StaticPool so all threads share the same in-memory database
    (the TestClient and ``asyncio.to_thread`` both hop threads).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine) -> Iterator[Session]:
    """Read-side session for assertions; services open their own."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def config() -> ArtClapsConfig:
    return ArtClapsConfig(app_name="Art Claps (test)", admin_fids=frozenset({ADMIN_FID}))


@pytest.fixture
def policy(config: ArtClapsConfig) -> AdminPolicy:
    return AdminPolicy.from_config(config)


def _insert_user(
    engine: Engine,
    fid: int,
    username: str | None = None,
    *,
    status: ArtistStatus = ArtistStatus.SUPPORTER,
    **fields,
) -> User:
    """Insert a user and return a detached copy."""
    with Session(engine, expire_on_commit=False) as session:
        user = User(
            fid=fid,
            username=username or f"user{fid}",
            display_name=fields.pop("display_name", None) or (username or f"user{fid}").title(),
            artist_status=status.value,
            artist_links=[],
            **fields,
        )
        session.add(user)
        session.commit()
        return user


def _load_user(engine: Engine, fid: int) -> User:
    """Fresh read of a user, bypassing any stale identity map."""
    with Session(engine, expire_on_commit=False) as session:
        return session.scalar(select(User).where(User.fid == fid))


@pytest.fixture
def make_user(db_engine: Engine):
    """Factory: ``make_user(fid, "alice", status=ArtistStatus.VERIFIED_ARTIST)``."""
    return lambda *args, **kwargs: _insert_user(db_engine, *args, **kwargs)


@pytest.fixture
def reload_user(db_engine: Engine):
    return lambda fid: _load_user(db_engine, fid)


@pytest.fixture
def client(db_engine: Engine, config: ArtClapsConfig):
    """FastAPI TestClient wired to the in-memory engine and test config."""
    from fastapi.testclient import TestClient

    from artclaps.api.deps import get_config, get_engine
    from artclaps.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: config
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
