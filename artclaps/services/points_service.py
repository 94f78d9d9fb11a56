"""
artclaps.services.points_service — Activity Ledger & Points Accountant
=======================================================================

Shared building blocks for every point-earning workflow:

* ``append_activity``  — insert one ledger row (no counters touched)
* ``award_points``     — ledger row + actor/target counter increments
* ``touch_connection`` — upsert the directional ArtistConnection row
* ``record_activity``  — the ``POST /activities`` workflow

The first three take an open ``Session`` and never commit; the caller's
transaction decides whether the whole workflow lands.  Counters are
always bumped with SQL-side ``col = col + n`` so two concurrent requests
cannot lose an increment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from artclaps.database.engine import get_session
from artclaps.database.models import Activity, ActivityType, ArtistConnection, User
from artclaps.engine.calendar import ensure_utc, utc_now
from artclaps.engine.points import parse_activity_type, points_for
from artclaps.errors import Conflict, NotFound, ValidationFailed

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

CONNECTION_STRENGTH_STEP = 0.1


@dataclass
class AwardResult:
    """Outcome of one accountant run."""

    activity: Activity
    points: int
    new_total_points: int


# ---------------------------------------------------------------------------
# User lookups
# ---------------------------------------------------------------------------
def get_user_by_fid(session: Session, fid: int) -> User | None:
    return session.scalar(select(User).where(User.fid == fid))


def get_users_by_fid(session: Session, *fids: int) -> dict[int, User]:
    """Fetch several users in a single round trip, keyed by fid."""
    rows = session.scalars(select(User).where(User.fid.in_(set(fids)))).all()
    return {u.fid: u for u in rows}


def require_pair(session: Session, user_fid: int, target_fid: int) -> tuple[User, User]:
    """Load actor and target together; raise ``NotFound`` for either."""
    users = get_users_by_fid(session, user_fid, target_fid)
    user = users.get(user_fid)
    if user is None:
        raise NotFound("User not found. Please sign in again.")
    target = users.get(target_fid)
    if target is None:
        raise NotFound("Target artist not found")
    return user, target


def user_lock(user_id: int) -> Select:
    """``SELECT ... FOR UPDATE`` on one user row."""
    return select(User).where(User.id == user_id).with_for_update()


def lock_user(session: Session, user_id: int) -> None:
    """Serialize read-then-write workflows run by the same user.

    A no-op on SQLite, which ignores ``FOR UPDATE``.
    """
    session.execute(user_lock(user_id))


def current_total_points(session: Session, user_id: int) -> int:
    return session.scalar(select(User.total_points).where(User.id == user_id)) or 0


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
def find_keyed_activity(
    session: Session,
    *,
    user_id: int,
    activity_type: ActivityType,
    cast_hash: str,
    target_user_id: int | None,
) -> Activity | None:
    """Existing row for the (actor, type, cast hash, target) idempotency key."""
    stmt = select(Activity).where(
        Activity.user_id == user_id,
        Activity.activity_type == activity_type.value,
        Activity.cast_hash == cast_hash,
    )
    if target_user_id is None:
        stmt = stmt.where(Activity.target_user_id.is_(None))
    else:
        stmt = stmt.where(Activity.target_user_id == target_user_id)
    return session.scalar(stmt.limit(1))


def append_activity(
    session: Session,
    *,
    user_id: int,
    activity_type: ActivityType,
    points: int,
    target_user_id: int | None = None,
    cast_hash: str | None = None,
    metadata: dict | None = None,
    now: datetime | None = None,
    clap_day: date | None = None,
) -> Activity:
    """Insert one immutable ledger row and flush it.

    Rows carrying a ``cast_hash`` or a ``clap_day`` fall under a unique index;
    a collision there raises ``Conflict`` and leaves the caller's
    transaction usable.
    """
    activity = Activity(
        user_id=user_id,
        activity_type=activity_type.value,
        points_earned=points,
        target_user_id=target_user_id,
        cast_hash=cast_hash,
        metadata_=metadata or {},
        processed=True,
        created_at=ensure_utc(now or utc_now()),
        clap_day=clap_day,
    )
    if cast_hash is None and clap_day is None:
        session.add(activity)
        session.flush()
        return activity

    # The partial unique indexes back up the pre-checks against a concurrent
    # insert; the SAVEPOINT keeps the outer transaction usable.
    try:
        with session.begin_nested():
            session.add(activity)
            session.flush()
    except IntegrityError:
        raise Conflict("Activity already recorded") from None
    return activity


# ---------------------------------------------------------------------------
# Points Accountant
# ---------------------------------------------------------------------------
def award_points(
    session: Session,
    *,
    actor: User,
    activity_type: str | ActivityType,
    target: User | None = None,
    cast_hash: str | None = None,
    metadata: dict | None = None,
    now: datetime | None = None,
    clap_day: date | None = None,
) -> AwardResult:
    """Append a ledger row and apply its points to the running counters.

    Actor gets the table value on lifetime/weekly/monthly and one
    ``support_given``.  A target always gets one ``support_received``,
    whatever the point value.
    """
    kind = parse_activity_type(activity_type)
    points = points_for(kind)

    activity = append_activity(
        session,
        user_id=actor.id,
        activity_type=kind,
        points=points,
        target_user_id=target.id if target is not None else None,
        cast_hash=cast_hash,
        metadata=metadata,
        now=now,
        clap_day=clap_day,
    )

    session.execute(
        update(User)
        .where(User.id == actor.id)
        .values(
            total_points=User.total_points + points,
            weekly_points=User.weekly_points + points,
            monthly_points=User.monthly_points + points,
            support_given=User.support_given + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if target is not None:
        session.execute(
            update(User)
            .where(User.id == target.id)
            .values(support_received=User.support_received + 1)
            .execution_options(synchronize_session=False)
        )

    return AwardResult(
        activity=activity,
        points=points,
        new_total_points=current_total_points(session, actor.id),
    )


# ---------------------------------------------------------------------------
# Connection Graph
# ---------------------------------------------------------------------------
def touch_connection(
    session: Session,
    from_user_id: int,
    to_user_id: int,
    now: datetime | None = None,
) -> ArtistConnection:
    """Create the (from, to) connection or strengthen the existing one."""
    stamp = ensure_utc(now or utc_now())
    existing = session.get(ArtistConnection, (from_user_id, to_user_id))
    if existing is None:
        conn = ArtistConnection(
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            interaction_count=1,
            relationship_strength=1.0,
            last_interaction=stamp,
        )
        session.add(conn)
        session.flush()
        return conn

    session.execute(
        update(ArtistConnection)
        .where(
            ArtistConnection.from_user_id == from_user_id,
            ArtistConnection.to_user_id == to_user_id,
        )
        .values(
            interaction_count=ArtistConnection.interaction_count + 1,
            relationship_strength=(
                ArtistConnection.relationship_strength + CONNECTION_STRENGTH_STEP
            ),
            last_interaction=stamp,
        )
        .execution_options(synchronize_session=False)
    )
    session.refresh(existing)
    return existing


# ---------------------------------------------------------------------------
# POST /activities
# ---------------------------------------------------------------------------
def record_activity(
    engine: Engine,
    *,
    user_fid: int,
    activity_type: str,
    target_fid: int | None = None,
    cast_hash: str | None = None,
    metadata: dict | None = None,
    now: datetime | None = None,
) -> AwardResult:
    """Validate, de-duplicate and account one reported activity.

    Raises ``ValidationFailed`` for an unknown type, ``NotFound`` for a
    missing actor or target and ``Conflict`` when the cast hash was
    already recorded for the same key.
    """
    kind = parse_activity_type(activity_type)
    if target_fid is not None and target_fid == user_fid:
        raise ValidationFailed("Cannot target yourself")

    with get_session(engine) as session:
        if target_fid is None:
            actor = get_user_by_fid(session, user_fid)
            if actor is None:
                raise NotFound("User not found")
            target = None
        else:
            actor, target = require_pair(session, user_fid, target_fid)

        if cast_hash:
            dup = find_keyed_activity(
                session,
                user_id=actor.id,
                activity_type=kind,
                cast_hash=cast_hash,
                target_user_id=target.id if target is not None else None,
            )
            if dup is not None:
                raise Conflict("Activity already recorded")

        result = award_points(
            session,
            actor=actor,
            activity_type=kind,
            target=target,
            cast_hash=cast_hash or None,
            metadata=metadata,
            now=now,
        )
        if target is not None:
            touch_connection(session, actor.id, target.id, now=now)

    logger.info(
        "Activity %s recorded for fid=%s (+%d points)", kind.value, user_fid, result.points
    )
    return result


def count_activities(session: Session, user_id: int) -> int:
    return session.scalar(
        select(func.count()).select_from(Activity).where(Activity.user_id == user_id)
    ) or 0


def list_activities(
    session: Session,
    user_fid: int,
    *,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Activity], int]:
    """Actor's history, newest first, with the total for pagination."""
    user = get_user_by_fid(session, user_fid)
    if user is None:
        raise NotFound("User not found")
    rows = session.scalars(
        select(Activity)
        .where(Activity.user_id == user.id)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()
    return list(rows), count_activities(session, user.id)
