"""
artclaps.services.follow_service — Follow Graph
================================================

``toggle_follow`` flips the edge for (actor, target) and keeps the
denormalized ``follower_count`` / ``following_count`` columns in step
inside the same transaction.  Following earns ``FOLLOW_NEW_ARTIST``
points; unfollowing never takes them back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import case, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from artclaps.database.engine import get_session
from artclaps.database.models import ActivityType, Follow, User
from artclaps.errors import Conflict, ValidationFailed
from artclaps.services.points_service import award_points, require_pair

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


@dataclass
class FollowResult:
    is_following: bool
    points_earned: int
    action: str  # "followed" | "unfollowed"
    target_name: str


def _floored_decrement(column):
    return case((column > 0, column - 1), else_=0)


def is_following(session: Session, user_fid: int, target_fid: int) -> bool:
    """Current follow state; raises ``NotFound`` for an unknown user or target."""
    user, target = require_pair(session, user_fid, target_fid)
    return session.get(Follow, (user.id, target.id)) is not None


def toggle_follow(
    engine: Engine,
    user_fid: int,
    target_fid: int,
    now: datetime | None = None,
) -> FollowResult:
    if user_fid == target_fid:
        raise ValidationFailed("You cannot follow yourself")

    with get_session(engine) as session:
        actor, target = require_pair(session, user_fid, target_fid)
        target_name = target.display_name or target.username
        existing = session.get(Follow, (actor.id, target.id))

        if existing is not None:
            session.execute(
                delete(Follow).where(
                    Follow.follower_id == actor.id,
                    Follow.following_id == target.id,
                )
            )
            session.execute(
                update(User)
                .where(User.id == target.id)
                .values(follower_count=_floored_decrement(User.follower_count))
                .execution_options(synchronize_session=False)
            )
            session.execute(
                update(User)
                .where(User.id == actor.id)
                .values(following_count=_floored_decrement(User.following_count))
                .execution_options(synchronize_session=False)
            )
            result = FollowResult(
                is_following=False,
                points_earned=0,
                action="unfollowed",
                target_name=target_name,
            )
        else:
            try:
                with session.begin_nested():
                    session.add(Follow(follower_id=actor.id, following_id=target.id))
                    session.flush()
            except IntegrityError:
                raise Conflict("Follow state changed, please retry") from None

            session.execute(
                update(User)
                .where(User.id == target.id)
                .values(follower_count=User.follower_count + 1)
                .execution_options(synchronize_session=False)
            )
            session.execute(
                update(User)
                .where(User.id == actor.id)
                .values(following_count=User.following_count + 1)
                .execution_options(synchronize_session=False)
            )
            award = award_points(
                session,
                actor=actor,
                activity_type=ActivityType.FOLLOW_NEW_ARTIST,
                target=target,
                metadata={"source": "follow"},
                now=now,
            )
            result = FollowResult(
                is_following=True,
                points_earned=award.points,
                action="followed",
                target_name=target_name,
            )

    logger.info("Follow: fid=%s %s fid=%s", user_fid, result.action, target_fid)
    return result
