"""
artclaps.engine.points — Activity Point Table
==============================================

Pure lookup, no DB I/O.  ``WORK_SHARED`` and ``QUALITY_REPLY_RECEIVED``
are the "received" side of an action and are worth nothing to the actor.
"""

from __future__ import annotations

from artclaps.database.models import ActivityType
from artclaps.errors import ValidationFailed

__all__ = ["ACTIVITY_POINTS", "parse_activity_type", "points_for"]

ACTIVITY_POINTS: dict[ActivityType, int] = {
    ActivityType.CLAP_REACTION: 5,
    ActivityType.SHARE_ARTIST_WORK: 15,
    ActivityType.QUALITY_REPLY: 10,
    ActivityType.ARTIST_DISCOVERY: 20,
    ActivityType.COLLABORATION_TAG: 25,
    ActivityType.DETAILED_CRITIQUE: 30,
    ActivityType.ARTIST_SPOTLIGHT: 40,
    ActivityType.RECAST_WITH_COMMENT: 12,
    ActivityType.ART_THREAD_CREATION: 35,
    ActivityType.ARTIST_TAG_MENTION: 8,
    ActivityType.FOLLOW_NEW_ARTIST: 10,
    ActivityType.CROSS_PROMOTION: 20,
    ActivityType.WORK_SHARED: 0,
    ActivityType.QUALITY_REPLY_RECEIVED: 0,
}


def parse_activity_type(raw: str | ActivityType) -> ActivityType:
    """Return the :class:`ActivityType` for *raw* or raise ``ValidationFailed``."""
    if isinstance(raw, ActivityType):
        return raw
    try:
        return ActivityType(raw)
    except ValueError:
        raise ValidationFailed("Invalid activity type") from None


def points_for(activity_type: str | ActivityType) -> int:
    """Point value of *activity_type* per the table above."""
    return ACTIVITY_POINTS[parse_activity_type(activity_type)]
