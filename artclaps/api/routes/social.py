"""
artclaps.api.routes.social — Claps and follows
===============================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from artclaps.api.deps import get_engine, get_read_session
from artclaps.schemas import CamelModel
from artclaps.services import clap_service, follow_service

router = APIRouter(tags=["social"])


class PairBody(CamelModel):
    user_fid: int
    target_fid: int


# ---------------------------------------------------------------------------
# POST /clap
# ---------------------------------------------------------------------------
@router.post("/clap")
def post_clap(body: PairBody, engine: Engine = Depends(get_engine)):
    result = clap_service.clap(engine, body.user_fid, body.target_fid)
    return {
        "success": True,
        "message": f"Clapped! +{result.points} points",
        "pointsEarned": result.points,
        "newTotalPoints": result.new_total_points,
        "activity": {
            "id": result.activity.id,
            "type": result.activity.activity_type,
            "createdAt": result.activity.created_at.isoformat(),
        },
    }


# ---------------------------------------------------------------------------
# /follow
# ---------------------------------------------------------------------------
@router.post("/follow")
def post_follow(body: PairBody, engine: Engine = Depends(get_engine)):
    result = follow_service.toggle_follow(engine, body.user_fid, body.target_fid)
    return {
        "success": True,
        "message": f"Successfully {result.action} {result.target_name}!",
        "isFollowing": result.is_following,
        "pointsEarned": result.points_earned,
        "action": result.action,
    }


@router.get("/follow")
def get_follow(
    user_fid: int = Query(..., alias="userFid"),
    target_fid: int = Query(..., alias="targetFid"),
    session: Session = Depends(get_read_session),
):
    return {
        "success": True,
        "isFollowing": follow_service.is_following(session, user_fid, target_fid),
    }
