"""
artclaps.database.models — SQLAlchemy 2.0 Data Models
======================================================

Tables:
- users              — Farcaster members, profile and running counters
- activities         — Append-only point ledger with idempotent cast-hash key
- artist_connections — Directional interaction strength per user pair
- follows            — Follow edges (hard-deleted on unfollow)
- referral_codes     — Single-use codes minted by verified artists / admins
- admin_log          — Append-only audit trail for approvals
"""

from __future__ import annotations

import enum
from datetime import UTC, date, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Art Claps ORM models."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ActivityType(enum.StrEnum):
    """Closed set of ledger entry types."""
    CLAP_REACTION = "CLAP_REACTION"
    SHARE_ARTIST_WORK = "SHARE_ARTIST_WORK"
    QUALITY_REPLY = "QUALITY_REPLY"
    ARTIST_DISCOVERY = "ARTIST_DISCOVERY"
    COLLABORATION_TAG = "COLLABORATION_TAG"
    DETAILED_CRITIQUE = "DETAILED_CRITIQUE"
    ARTIST_SPOTLIGHT = "ARTIST_SPOTLIGHT"
    RECAST_WITH_COMMENT = "RECAST_WITH_COMMENT"
    ART_THREAD_CREATION = "ART_THREAD_CREATION"
    ARTIST_TAG_MENTION = "ARTIST_TAG_MENTION"
    FOLLOW_NEW_ARTIST = "FOLLOW_NEW_ARTIST"
    CROSS_PROMOTION = "CROSS_PROMOTION"
    WORK_SHARED = "WORK_SHARED"
    QUALITY_REPLY_RECEIVED = "QUALITY_REPLY_RECEIVED"


class ArtistStatus(enum.StrEnum):
    SUPPORTER = "supporter"
    PENDING_ARTIST = "pending_artist"
    VERIFIED_ARTIST = "verified_artist"


# ---------------------------------------------------------------------------
# Users — one row per Farcaster account
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fid: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(200), default=None)
    pfp_url: Mapped[str | None] = mapped_column(String(500), default=None)
    bio: Mapped[str | None] = mapped_column(Text, default=None)
    extended_bio: Mapped[str | None] = mapped_column(Text, default=None)
    artist_links: Mapped[list | None] = mapped_column(JSONB, default=list)

    artist_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ArtistStatus.SUPPORTER.value
    )
    verification_notes: Mapped[str | None] = mapped_column(Text, default=None)
    referred_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Running counters, only ever touched through SQL-side increments
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weekly_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monthly_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    support_given: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    support_received: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    follower_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    following_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_sync_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow
    )

    referrer: Mapped[User | None] = relationship(remote_side=[id])

    __table_args__ = (
        CheckConstraint(
            "total_points >= 0 AND weekly_points >= 0 AND monthly_points >= 0 "
            "AND support_given >= 0 AND support_received >= 0 "
            "AND follower_count >= 0 AND following_count >= 0",
            name="ck_users_counters_non_negative",
        ),
        Index("ix_users_total_points", "total_points"),
        Index("ix_users_weekly_points", "weekly_points"),
        Index("ix_users_monthly_points", "monthly_points"),
        Index("ix_users_artist_status", "artist_status"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} fid={self.fid} username={self.username!r}>"


# ---------------------------------------------------------------------------
# Activity — append-only point ledger
# ---------------------------------------------------------------------------
class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    target_user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    cast_hash: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # UTC day of a CLAP_REACTION; NULL for every other type
    clap_day: Mapped[date | None] = mapped_column(Date, nullable=True)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    user: Mapped[User] = relationship(foreign_keys=[user_id])
    target_user: Mapped[User | None] = relationship(foreign_keys=[target_user_id])

    __table_args__ = (
        # Idempotent insert for externally keyed activities
        Index(
            "ix_activities_idempotent",
            "user_id",
            "activity_type",
            "cast_hash",
            "target_user_id",
            unique=True,
            postgresql_where=cast_hash.isnot(None),
            sqlite_where=cast_hash.isnot(None),
        ),
        Index(
            "ix_activities_one_clap_per_day",
            "user_id",
            "target_user_id",
            "clap_day",
            unique=True,
            postgresql_where=clap_day.isnot(None),
            sqlite_where=clap_day.isnot(None),
        ),
        Index("ix_activities_user_time", "user_id", "created_at"),
        Index("ix_activities_target_type_time", "target_user_id", "activity_type", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Activity id={self.id} user={self.user_id} type={self.activity_type}>"


# ---------------------------------------------------------------------------
# ArtistConnection — directional interaction strength
# ---------------------------------------------------------------------------
class ArtistConnection(Base):
    __tablename__ = "artist_connections"

    from_user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    to_user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    interaction_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_interaction: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )
    relationship_strength: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)

    __table_args__ = (
        Index("ix_artist_connections_to", "to_user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ArtistConnection {self.from_user_id}->{self.to_user_id} "
            f"count={self.interaction_count}>"
        )


# ---------------------------------------------------------------------------
# Follow — boolean follow edge
# ---------------------------------------------------------------------------
class Follow(Base):
    __tablename__ = "follows"

    follower_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    following_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_follows_following", "following_id"),
    )

    def __repr__(self) -> str:
        return f"<Follow {self.follower_id}->{self.following_id}>"


# ---------------------------------------------------------------------------
# ReferralCode — single-use instant verification token
# ---------------------------------------------------------------------------
class ReferralCode(Base):
    __tablename__ = "referral_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    created_by_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow
    )

    creator: Mapped[User] = relationship(foreign_keys=[created_by_id])
    used_by: Mapped[User | None] = relationship(foreign_keys=[used_by_id])

    __table_args__ = (
        Index("ix_referral_codes_creator_used", "created_by_id", "used"),
        # Case-insensitive uniqueness
        Index("ix_referral_codes_code_upper", func.upper(code), unique=True),
    )

    def __repr__(self) -> str:
        return f"<ReferralCode id={self.id} code={self.code!r} used={self.used}>"


# ---------------------------------------------------------------------------
# AdminLog — append-only audit trail
# ---------------------------------------------------------------------------
class AdminLog(Base):
    __tablename__ = "admin_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_fid: Mapped[int] = mapped_column(BigInteger, nullable=False)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_table: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    before_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    after_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_admin_log_actor_time", "actor_fid", "timestamp"),
        Index("ix_admin_log_target", "target_table", "target_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AdminLog id={self.id} actor={self.actor_fid} action={self.action_type}>"
