"""
artclaps.services.user_service — User Directory
================================================

Profile upsert on sign-in, the ``/user`` detail view, computed stats and
the self-service profile editor.  Counters on :class:`User` are never
written here; they belong to the points and follow services.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from artclaps.database.engine import get_session
from artclaps.database.models import Activity, ArtistConnection, ArtistStatus, User
from artclaps.engine.calendar import ensure_utc, utc_day_bounds, utc_now
from artclaps.errors import Conflict, Forbidden, NotFound, ValidationFailed
from artclaps.schemas import drop_blank_links, parse_links
from artclaps.services.leaderboard_service import LeaderboardPeriod, rank_for
from artclaps.services.points_service import count_activities, get_user_by_fid

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10


@dataclass
class ProfileInput:
    """Identity fields supplied by the sign-in widget or an application."""

    fid: int
    username: str
    display_name: str | None = None
    pfp_url: str | None = None
    bio: str | None = None


@dataclass
class UserDetail:
    user: User
    recent_given: list[Activity]
    recent_received: list[Activity]


# ---------------------------------------------------------------------------
# Link validation
# ---------------------------------------------------------------------------
def normalize_links(raw: Any) -> list[dict]:
    """Validate a ``[{label, url}, …]`` payload into its stored JSON form.

    Every entry needs a label and an absolute http(s) URL.  An optional
    ``platform`` is carried through.
    """
    return [link.stored() for link in parse_links(raw)]


# ---------------------------------------------------------------------------
# Upsert / fetch
# ---------------------------------------------------------------------------
def upsert_user(session: Session, profile: ProfileInput) -> User:
    """Create or refresh the identity fields for ``profile.fid``.

    Display name falls back to the handle.  Raises ``Conflict`` when the
    handle already belongs to another fid.
    """
    username = profile.username.strip()
    if not username:
        raise ValidationFailed("Farcaster FID and username are required")

    owner = session.scalar(select(User).where(User.username == username))
    if owner is not None and owner.fid != profile.fid:
        raise Conflict("Username is already taken")

    user = owner if owner is not None else get_user_by_fid(session, profile.fid)
    if user is None:
        user = User(fid=profile.fid, username=username, artist_links=[])
        session.add(user)
        logger.info("New user fid=%s (@%s)", profile.fid, username)

    user.username = username
    user.display_name = (profile.display_name or "").strip() or username
    user.pfp_url = profile.pfp_url
    user.bio = profile.bio
    session.flush()
    return user


def save_user(engine: Engine, profile: ProfileInput) -> User:
    with get_session(engine) as session:
        return upsert_user(session, profile)


def get_user_detail(session: Session, fid: int) -> UserDetail:
    user = get_user_by_fid(session, fid)
    if user is None:
        raise NotFound("User not found")

    def _recent(column) -> list[Activity]:
        return list(session.scalars(
            select(Activity)
            .where(column == user.id)
            .order_by(Activity.created_at.desc(), Activity.id.desc())
            .limit(RECENT_ACTIVITY_LIMIT)
        ))

    return UserDetail(
        user=user,
        recent_given=_recent(Activity.user_id),
        recent_received=_recent(Activity.target_user_id),
    )


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------
def _streak_days(session: Session, user_id: int, now: datetime) -> int:
    """Consecutive UTC days with at least one activity, ending today.

    A streak whose last day is yesterday is still alive.
    """
    today, _ = utc_day_bounds(now)
    stamps = session.scalars(
        select(Activity.created_at)
        .where(Activity.user_id == user_id, Activity.created_at < today + timedelta(days=1))
        .order_by(Activity.created_at.desc())
    )
    days = sorted({ensure_utc(s).date() for s in stamps}, reverse=True)
    if not days:
        return 0

    cursor = today.date()
    if days[0] != cursor:
        cursor -= timedelta(days=1)
    streak = 0
    for day in days:
        if day != cursor:
            break
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def user_stats(session: Session, fid: int, now: datetime | None = None) -> dict[str, Any]:
    """Dashboard numbers for one user, computed from the ledger and counters."""
    now = ensure_utc(now or utc_now())
    user = get_user_by_fid(session, fid)
    if user is None:
        raise NotFound("User not found")

    start, end = utc_day_bounds(now)
    todays_points = session.scalar(
        select(func.coalesce(func.sum(Activity.points_earned), 0)).where(
            Activity.user_id == user.id,
            Activity.created_at >= start,
            Activity.created_at < end,
        )
    ) or 0
    total_users = session.scalar(select(func.count()).select_from(User)) or 0
    rank = rank_for(session, user, LeaderboardPeriod.LIFETIME)
    percentile = (
        round((total_users - rank + 1) / total_users * 100) if total_users else 100
    )
    artists_supported = session.scalar(
        select(func.count())
        .select_from(ArtistConnection)
        .where(ArtistConnection.from_user_id == user.id)
    ) or 0
    connections = session.scalar(
        select(func.count())
        .select_from(ArtistConnection)
        .where(ArtistConnection.to_user_id == user.id)
    ) or 0

    given, received = user.support_given, user.support_received
    ratio = round(given / received, 2) if received else float(given)

    return {
        "totalPoints": user.total_points,
        "weeklyPoints": user.weekly_points,
        "monthlyPoints": user.monthly_points,
        "todaysPoints": int(todays_points),
        "rank": rank,
        "totalUsers": total_users,
        "percentile": percentile,
        "supportGiven": given,
        "supportReceived": received,
        "supportRatio": ratio,
        "artistsSupported": artists_supported,
        "connections": connections,
        "activitiesCount": count_activities(session, user.id),
        "streakDays": _streak_days(session, user.id, now),
    }


# ---------------------------------------------------------------------------
# Profile editing
# ---------------------------------------------------------------------------
def _apply_profile_fields(
    user: User,
    extended_bio: str | None,
    artist_links: Any,
    *,
    skip_blank_links: bool,
) -> list[str]:
    changed: list[str] = []
    if extended_bio is not None:
        user.extended_bio = extended_bio.strip()
        changed.append("extendedBio")
    if artist_links is not None:
        if skip_blank_links:
            artist_links = drop_blank_links(artist_links)
        user.artist_links = normalize_links(artist_links)
        changed.append("artistLinks")
    return changed


def update_profile(
    engine: Engine,
    fid: int,
    *,
    extended_bio: str | None = None,
    artist_links: Any = None,
) -> list[str]:
    """Self-service editor; blank link rows are dropped silently.

    Returns the names of the fields that were written.
    """
    if artist_links is not None and not isinstance(artist_links, list):
        raise ValidationFailed("Artist links must be an array")

    with get_session(engine) as session:
        user = get_user_by_fid(session, fid)
        if user is None:
            raise NotFound("User not found")
        changed = _apply_profile_fields(
            user, extended_bio, artist_links, skip_blank_links=True
        )

    logger.info("Profile updated for fid=%s: %s", fid, ", ".join(changed) or "nothing")
    return changed


def update_artist_profile(
    engine: Engine,
    username: str,
    user_fid: int,
    *,
    extended_bio: str | None = None,
    artist_links: Any = None,
) -> list[str]:
    """Owner-only edit of a verified artist's public page."""
    with get_session(engine) as session:
        user = session.scalar(
            select(User).where(User.username == username, User.fid == user_fid)
        )
        if user is None:
            raise Forbidden("Unauthorized or user not found")
        if user.artist_status != ArtistStatus.VERIFIED_ARTIST.value:
            raise Forbidden("Only verified artists can update profile")
        changed = _apply_profile_fields(
            user, extended_bio, artist_links, skip_blank_links=False
        )

    logger.info("Artist page @%s updated: %s", username, ", ".join(changed) or "nothing")
    return changed
