"""Add clap_day guard to activities

One clap per (actor, target) per UTC day is now backed by a partial
unique index instead of relying on the read-before-write check alone.

Revision ID: 7e3b2c9d4f61
Revises: 4c1e7a9b2d30
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "7e3b2c9d4f61"
down_revision = "4c1e7a9b2d30"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Add ``activities.clap_day`` and backfill it for existing claps.

    Should historical data already hold two claps for the same pair on the
    same day, the backfill keeps the day on the earliest one only.
    """
    op.add_column("activities", sa.Column("clap_day", sa.Date(), nullable=True))
    op.execute(
        """
        UPDATE activities AS a
        SET clap_day = (a.created_at AT TIME ZONE 'UTC')::date
        WHERE a.activity_type = 'CLAP_REACTION'
          AND a.id = (
              SELECT MIN(b.id) FROM activities AS b
              WHERE b.activity_type = 'CLAP_REACTION'
                AND b.user_id = a.user_id
                AND b.target_user_id IS NOT DISTINCT FROM a.target_user_id
                AND (b.created_at AT TIME ZONE 'UTC')::date
                    = (a.created_at AT TIME ZONE 'UTC')::date
          )
        """
    )
    op.create_index(
        "ix_activities_one_clap_per_day",
        "activities",
        ["user_id", "target_user_id", "clap_day"],
        unique=True,
        postgresql_where=sa.text("clap_day IS NOT NULL"),
    )


def downgrade() -> None:
    op.drop_index("ix_activities_one_clap_per_day", table_name="activities")
    op.drop_column("activities", "clap_day")
