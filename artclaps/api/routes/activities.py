"""
artclaps.api.routes.activities — Activity ledger endpoints
===========================================================
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from artclaps.api.deps import get_engine, get_read_session
from artclaps.api.serializers import activity_dict, pagination, user_ref
from artclaps.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from artclaps.schemas import CamelModel
from artclaps.services import points_service

router = APIRouter(tags=["activities"])


class ActivityBody(CamelModel):
    user_fid: int
    activity_type: str
    target_fid: int | None = None
    cast_hash: str | None = None
    metadata: dict[str, Any] | None = None


@router.post("/activities")
def post_activity(body: ActivityBody, engine: Engine = Depends(get_engine)):
    result = points_service.record_activity(
        engine,
        user_fid=body.user_fid,
        activity_type=body.activity_type,
        target_fid=body.target_fid,
        cast_hash=body.cast_hash,
        metadata=body.metadata,
    )
    return {
        "success": True,
        "activity": activity_dict(result.activity),
        "pointsAwarded": result.points,
        "newTotalPoints": result.new_total_points,
    }


@router.get("/activities")
def get_activities(
    user_fid: int = Query(..., alias="userFid"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_read_session),
):
    """Actor's ledger, newest first."""
    rows, total = points_service.list_activities(
        session, user_fid, limit=limit, offset=offset
    )
    return {
        "success": True,
        "activities": [
            {**activity_dict(a), "targetUser": user_ref(a.target_user)} for a in rows
        ],
        "pagination": pagination(total, limit, offset),
    }
