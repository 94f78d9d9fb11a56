"""
artclaps.services.clap_service — Daily Clap Workflow
=====================================================

One clap per (actor, target) per UTC calendar day.  A clap is a
``CLAP_REACTION`` ledger entry worth 5 points plus one step on the
directional ArtistConnection row.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import Session

from artclaps.database.engine import get_session
from artclaps.database.models import Activity, ActivityType
from artclaps.engine.calendar import utc_day_bounds, utc_now
from artclaps.errors import Conflict, ValidationFailed
from artclaps.services.points_service import (
    AwardResult,
    award_points,
    lock_user,
    require_pair,
    touch_connection,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

ALREADY_CLAPPED = "You already clapped for this artist today!"


def clapped_today(
    session: Session,
    actor_id: int,
    target_ids: Iterable[int] | None = None,
    now: datetime | None = None,
) -> set[int]:
    """Target user ids *actor_id* has clapped for during the current UTC day.

    With *target_ids* the query is narrowed to those targets.
    """
    start, end = utc_day_bounds(now or utc_now())
    stmt = select(Activity.target_user_id).where(
        Activity.user_id == actor_id,
        Activity.activity_type == ActivityType.CLAP_REACTION.value,
        Activity.created_at >= start,
        Activity.created_at < end,
    )
    if target_ids is not None:
        stmt = stmt.where(Activity.target_user_id.in_(list(target_ids)))
    return {tid for tid in session.scalars(stmt) if tid is not None}


def clap(
    engine: Engine,
    user_fid: int,
    target_fid: int,
    now: datetime | None = None,
) -> AwardResult:
    """Record a clap from *user_fid* to *target_fid*.

    Raises ``ValidationFailed`` for a self-clap, ``NotFound`` for an
    unknown user and ``Conflict`` for a second clap on the same UTC day.
    Nothing is written when any of those fire.
    """
    if user_fid == target_fid:
        raise ValidationFailed("You cannot clap for yourself")

    now = now or utc_now()
    with get_session(engine) as session:
        actor, target = require_pair(session, user_fid, target_fid)
        lock_user(session, actor.id)

        if clapped_today(session, actor.id, [target.id], now=now):
            raise Conflict(ALREADY_CLAPPED)

        try:
            result = award_points(
                session,
                actor=actor,
                activity_type=ActivityType.CLAP_REACTION,
                target=target,
                metadata={"source": "clap"},
                now=now,
                clap_day=utc_day_bounds(now)[0].date(),
            )
        except Conflict:
            raise Conflict(ALREADY_CLAPPED) from None
        touch_connection(session, actor.id, target.id, now=now)

    logger.info(
        "Clap: fid=%s → fid=%s (+%d, total=%d)",
        user_fid, target_fid, result.points, result.new_total_points,
    )
    return result
