"""
artclaps.api.deps — FastAPI dependency injection
=================================================
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from artclaps.config import ArtClapsConfig, load_config
from artclaps.database.engine import create_db_engine
from artclaps.engine.authorization import AdminPolicy


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> ArtClapsConfig:
    return load_config()


def get_admin_policy(
    cfg: Annotated[ArtClapsConfig, Depends(get_config)],
) -> AdminPolicy:
    return AdminPolicy.from_config(cfg)


def get_read_session(engine: Annotated[Engine, Depends(get_engine)]):
    """Read-only request session; writes go through the service workflows."""
    with Session(engine) as session:
        yield session
