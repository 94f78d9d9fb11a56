"""Initial schema

Users, activity ledger, artist connections, follows, referral codes and
the admin audit log.

Revision ID: 4c1e7a9b2d30
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "4c1e7a9b2d30"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(*names: str) -> list[sa.Column]:
    return [
        sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now())
        for name in names
    ]


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("fid", sa.BigInteger(), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(200)),
        sa.Column("pfp_url", sa.String(500)),
        sa.Column("bio", sa.Text()),
        sa.Column("extended_bio", sa.Text()),
        sa.Column("artist_links", postgresql.JSONB(), server_default="[]"),
        sa.Column("artist_status", sa.String(20), nullable=False, server_default="supporter"),
        sa.Column("verification_notes", sa.Text()),
        sa.Column("referred_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("weekly_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("monthly_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("support_given", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("support_received", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("follower_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("following_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_sync_at", sa.DateTime(timezone=True)),
        *_timestamps("created_at", "updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fid"),
        sa.UniqueConstraint("username"),
        sa.CheckConstraint(
            "total_points >= 0 AND weekly_points >= 0 AND monthly_points >= 0 "
            "AND support_given >= 0 AND support_received >= 0 "
            "AND follower_count >= 0 AND following_count >= 0",
            name="ck_users_counters_non_negative",
        ),
    )
    op.create_index("ix_users_total_points", "users", ["total_points"])
    op.create_index("ix_users_weekly_points", "users", ["weekly_points"])
    op.create_index("ix_users_monthly_points", "users", ["monthly_points"])
    op.create_index("ix_users_artist_status", "users", ["artist_status"])

    # --- activities ---
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("activity_type", sa.String(50), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("target_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("cast_hash", sa.String(100)),
        sa.Column("metadata", postgresql.JSONB()),
        sa.Column("processed", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_activities_idempotent",
        "activities",
        ["user_id", "activity_type", "cast_hash", "target_user_id"],
        unique=True,
        postgresql_where=sa.text("cast_hash IS NOT NULL"),
    )
    op.create_index("ix_activities_user_time", "activities", ["user_id", "created_at"])
    op.create_index(
        "ix_activities_target_type_time",
        "activities",
        ["target_user_id", "activity_type", "created_at"],
    )

    # --- artist_connections ---
    op.create_table(
        "artist_connections",
        sa.Column("from_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("to_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("interaction_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("last_interaction", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("relationship_strength", sa.Float(), nullable=False, server_default="1.0"),
        sa.PrimaryKeyConstraint("from_user_id", "to_user_id"),
    )
    op.create_index("ix_artist_connections_to", "artist_connections", ["to_user_id"])

    # --- follows ---
    op.create_table(
        "follows",
        sa.Column("follower_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("following_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        *_timestamps("created_at"),
        sa.PrimaryKeyConstraint("follower_id", "following_id"),
    )
    op.create_index("ix_follows_following", "follows", ["following_id"])

    # --- referral_codes ---
    op.create_table(
        "referral_codes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(40), nullable=False),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("used_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        *_timestamps("created_at", "updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_referral_codes_creator_used", "referral_codes", ["created_by_id", "used"])
    # Case-insensitive uniqueness on Postgres
    op.execute("CREATE UNIQUE INDEX ix_referral_codes_code_upper ON referral_codes (upper(code))")

    # --- admin_log ---
    op.create_table(
        "admin_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("actor_fid", sa.BigInteger(), nullable=False),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("target_table", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(100)),
        sa.Column("before_snapshot", postgresql.JSONB()),
        sa.Column("after_snapshot", postgresql.JSONB()),
        sa.Column("reason", sa.Text()),
        *_timestamps("timestamp"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admin_log_actor_time", "admin_log", ["actor_fid", "timestamp"])
    op.create_index("ix_admin_log_target", "admin_log", ["target_table", "target_id", "timestamp"])


def downgrade() -> None:
    op.drop_table("admin_log")
    op.execute("DROP INDEX IF EXISTS ix_referral_codes_code_upper")
    op.drop_table("referral_codes")
    op.drop_table("follows")
    op.drop_table("artist_connections")
    op.drop_table("activities")
    op.drop_table("users")
