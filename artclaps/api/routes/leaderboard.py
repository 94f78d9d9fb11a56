"""
artclaps.api.routes.leaderboard — Ranked listings
==================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from artclaps.api.deps import get_read_session
from artclaps.api.serializers import user_ref
from artclaps.constants import LEADERBOARD_PAGE_SIZE, MAX_PAGE_SIZE
from artclaps.services.leaderboard_service import get_leaderboard, parse_period

router = APIRouter(tags=["leaderboard"])


@router.get("/leaderboard")
def leaderboard(
    period: str = Query("all"),
    current_user_fid: int | None = Query(None, alias="currentUserFid"),
    limit: int = Query(LEADERBOARD_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_read_session),
):
    """Users with points in *period*, best first."""
    window = parse_period(period)
    page = get_leaderboard(
        session, window, limit=limit, offset=offset, current_user_fid=current_user_fid
    )
    return {
        "success": True,
        "data": {
            "users": [
                {
                    **user_ref(u),
                    "id": u.id,
                    "fid": u.fid,
                    "rank": rank,
                    "points": points,
                    "totalPoints": u.total_points,
                    "weeklyPoints": u.weekly_points,
                    "monthlyPoints": u.monthly_points,
                    "artistStatus": u.artist_status,
                    "follower_count": u.follower_count,
                }
                for rank, u, points in page.entries
            ],
            "stats": {
                "totalUsers": page.stats.total_users,
                "totalPointsAwarded": page.stats.total_points,
                "averagePoints": page.stats.average_points,
                "period": page.stats.period.value,
            },
            "currentUserRank": page.requester_rank,
        },
    }
