"""
artclaps.services.leaderboard_service — Ranked Point Projections
=================================================================

Read-only.  Rank is positional (``offset + i + 1``); ties fall back to
the user id so a page is stable between requests.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from artclaps.database.models import User
from artclaps.errors import ValidationFailed


class LeaderboardPeriod(enum.StrEnum):
    LIFETIME = "lifetime"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


_PERIOD_ALIASES = {"all": LeaderboardPeriod.LIFETIME, "": LeaderboardPeriod.LIFETIME}


@dataclass
class LeaderboardStats:
    total_users: int
    total_points: int
    average_points: int
    period: LeaderboardPeriod


@dataclass
class LeaderboardPage:
    entries: list[tuple[int, User, int]]  # (rank, user, points)
    stats: LeaderboardStats
    requester_rank: int | None


def parse_period(raw: str | None) -> LeaderboardPeriod:
    key = (raw or "").strip().lower()
    if key in _PERIOD_ALIASES:
        return _PERIOD_ALIASES[key]
    try:
        return LeaderboardPeriod(key)
    except ValueError:
        raise ValidationFailed("Invalid period") from None


def points_column(period: LeaderboardPeriod) -> InstrumentedAttribute[int]:
    return {
        LeaderboardPeriod.LIFETIME: User.total_points,
        LeaderboardPeriod.WEEKLY: User.weekly_points,
        LeaderboardPeriod.MONTHLY: User.monthly_points,
    }[period]


def rank_for(session: Session, user: User, period: LeaderboardPeriod) -> int:
    """1 + number of users strictly ahead of *user* in *period*."""
    col = points_column(period)
    mine = session.scalar(select(col).where(User.id == user.id)) or 0
    ahead = session.scalar(select(func.count()).select_from(User).where(col > mine)) or 0
    return ahead + 1


def _stats(session: Session, period: LeaderboardPeriod) -> LeaderboardStats:
    col = points_column(period)
    count, total = session.execute(
        select(func.count(), func.coalesce(func.sum(col), 0)).where(col > 0)
    ).one()
    # Half-up rounding; round() would bank to even.
    average = int(total / count + 0.5) if count else 0
    return LeaderboardStats(
        total_users=count,
        total_points=int(total),
        average_points=average,
        period=period,
    )


def get_leaderboard(
    session: Session,
    period: LeaderboardPeriod = LeaderboardPeriod.LIFETIME,
    *,
    limit: int = 50,
    offset: int = 0,
    current_user_fid: int | None = None,
) -> LeaderboardPage:
    col = points_column(period)
    rows = session.scalars(
        select(User)
        .where(col > 0)
        .order_by(col.desc(), User.id)
        .offset(offset)
        .limit(limit)
    ).all()
    entries = [
        (offset + i + 1, u, getattr(u, col.key))
        for i, u in enumerate(rows)
    ]

    requester_rank = None
    if current_user_fid is not None:
        me = session.scalar(select(User).where(User.fid == current_user_fid))
        if me is not None:
            requester_rank = rank_for(session, me, period)

    return LeaderboardPage(
        entries=entries,
        stats=_stats(session, period),
        requester_rank=requester_rank,
    )
