"""
artclaps.services.artist_service — Artist Directory
====================================================

Discovery list and public profile pages for verified artists, each
annotated with whether the viewer has already clapped today.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from artclaps.database.models import Activity, ActivityType, ArtistConnection, ArtistStatus, User
from artclaps.errors import NotFound
from artclaps.services.clap_service import clapped_today
from artclaps.services.points_service import get_user_by_fid


@dataclass
class ArtistCard:
    user: User
    claps: int
    connections: int
    total_activities: int
    already_clapped_today: bool = False


def _verified():
    return User.artist_status == ArtistStatus.VERIFIED_ARTIST.value


def _count_by_target(session: Session, stmt) -> dict[int, int]:
    return {target: n for target, n in session.execute(stmt).all()}


def _viewer_claps(
    session: Session,
    current_user_fid: int | None,
    target_ids: list[int],
    now: datetime | None,
) -> set[int]:
    if current_user_fid is None or not target_ids:
        return set()
    viewer = get_user_by_fid(session, current_user_fid)
    if viewer is None:
        return set()
    return clapped_today(session, viewer.id, target_ids, now=now)


def _cards(
    session: Session,
    artists: list[User],
    current_user_fid: int | None,
    now: datetime | None,
) -> list[ArtistCard]:
    ids = [a.id for a in artists]
    if not ids:
        return []

    claps = _count_by_target(
        session,
        select(Activity.target_user_id, func.count())
        .where(
            Activity.target_user_id.in_(ids),
            Activity.activity_type == ActivityType.CLAP_REACTION.value,
        )
        .group_by(Activity.target_user_id),
    )
    activities = _count_by_target(
        session,
        select(Activity.target_user_id, func.count())
        .where(Activity.target_user_id.in_(ids))
        .group_by(Activity.target_user_id),
    )
    connections = _count_by_target(
        session,
        select(ArtistConnection.to_user_id, func.count())
        .where(ArtistConnection.to_user_id.in_(ids))
        .group_by(ArtistConnection.to_user_id),
    )
    viewed = _viewer_claps(session, current_user_fid, ids, now)

    return [
        ArtistCard(
            user=a,
            claps=claps.get(a.id, 0),
            connections=connections.get(a.id, 0),
            total_activities=activities.get(a.id, 0),
            already_clapped_today=a.id in viewed,
        )
        for a in artists
    ]


def list_artists(
    session: Session,
    *,
    limit: int = 20,
    offset: int = 0,
    current_user_fid: int | None = None,
    now: datetime | None = None,
) -> tuple[list[ArtistCard], int]:
    """Verified artists by weekly points, then support received."""
    artists = session.scalars(
        select(User)
        .where(_verified())
        .order_by(User.weekly_points.desc(), User.support_received.desc(), User.id)
        .offset(offset)
        .limit(limit)
    ).all()
    total = session.scalar(select(func.count()).select_from(User).where(_verified())) or 0
    return _cards(session, list(artists), current_user_fid, now), total


def get_artist(
    session: Session,
    username: str,
    *,
    current_user_fid: int | None = None,
    now: datetime | None = None,
) -> ArtistCard:
    artist = session.scalar(
        select(User).where(User.username == username.strip().lstrip("@"), _verified())
    )
    if artist is None:
        raise NotFound("Artist not found")
    return _cards(session, [artist], current_user_fid, now)[0]
