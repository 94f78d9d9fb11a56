"""
artclaps.services.admin_service — Artist Review Queue
======================================================

Admin-only reads and writes for the manual verification path.  Every
decision follows the same pattern:
  1. Begin transaction
  2. Read "before" snapshot of the applicant
  3. Apply the status change (and seed referral codes on approval)
  4. Write admin_log with before/after JSONB
  5. Commit
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from artclaps.database.engine import get_session
from artclaps.database.models import AdminLog, ArtistStatus, User
from artclaps.engine.calendar import ensure_utc, utc_now
from artclaps.errors import Forbidden, NotFound
from artclaps.services.referral_service import mint_code

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from artclaps.config import ArtClapsConfig
    from artclaps.engine.authorization import AdminPolicy

logger = logging.getLogger(__name__)

_SNAPSHOT_FIELDS = ("artist_status", "verification_notes")


@dataclass
class ReviewResult:
    artist: User
    approved: bool
    referral_codes: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        name = self.artist.display_name or self.artist.username
        if self.approved:
            return f"{name} has been approved as a verified artist!"
        return f"Application from {name} has been rejected."


# ---------------------------------------------------------------------------
# Audit helpers
# ---------------------------------------------------------------------------
def _snapshot(user: User) -> dict[str, Any]:
    return {key: getattr(user, key) for key in _SNAPSHOT_FIELDS}


def _log_admin_action(
    session: Session,
    *,
    actor_fid: int,
    action_type: str,
    target_table: str,
    target_id: str | None,
    before: dict | None,
    after: dict | None,
    reason: str | None = None,
) -> None:
    """Insert a row into admin_log within the current transaction."""
    session.add(AdminLog(
        actor_fid=actor_fid,
        action_type=action_type,
        target_table=target_table,
        target_id=target_id,
        before_snapshot=before,
        after_snapshot=after,
        reason=reason,
    ))


def require_admin(policy: AdminPolicy, admin_fid: int | None) -> None:
    if not policy.is_admin(admin_fid):
        logger.warning("Admin access refused for fid=%s", admin_fid)
        raise Forbidden("Unauthorized")


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------
def list_pending(session: Session, policy: AdminPolicy, admin_fid: int | None) -> list[User]:
    """Pending applicants, oldest first, with their referrer loaded."""
    require_admin(policy, admin_fid)
    return list(session.scalars(
        select(User)
        .where(User.artist_status == ArtistStatus.PENDING_ARTIST.value)
        .options(selectinload(User.referrer))
        .order_by(User.created_at, User.id)
    ))


def review_application(
    engine: Engine,
    cfg: ArtClapsConfig,
    policy: AdminPolicy,
    *,
    admin_fid: int | None,
    artist_id: int,
    approve: bool,
    admin_notes: str | None = None,
    seed_codes: bool = True,
    now: datetime | None = None,
    choice: Callable[[str], str] | None = None,
) -> ReviewResult:
    """Approve or reject a pending applicant.

    Applicants no longer in ``pending_artist`` are reported as not found,
    so replaying a decision changes nothing.
    """
    require_admin(policy, admin_fid)
    now = ensure_utc(now or utc_now())

    with get_session(engine) as session:
        artist = session.scalar(
            select(User).where(
                User.id == artist_id,
                User.artist_status == ArtistStatus.PENDING_ARTIST.value,
            )
        )
        if artist is None:
            raise NotFound("Artist not found or not pending")

        before = _snapshot(artist)
        verb = "Approved" if approve else "Rejected"
        notes = (admin_notes or "").strip() or f"{verb} by admin on {now.isoformat()}"
        artist.artist_status = (
            ArtistStatus.VERIFIED_ARTIST.value if approve else ArtistStatus.SUPPORTER.value
        )
        artist.verification_notes = notes
        session.flush()

        result = ReviewResult(artist=artist, approved=approve)
        if approve and seed_codes:
            for _ in range(cfg.approval_seed_codes):
                row = mint_code(
                    session, artist, attempts=cfg.referral_code_attempts, choice=choice
                )
                result.referral_codes.append(row.code)

        _log_admin_action(
            session,
            actor_fid=admin_fid,
            action_type="APPROVE_ARTIST" if approve else "REJECT_ARTIST",
            target_table="users",
            target_id=str(artist.id),
            before=before,
            after=_snapshot(artist),
            reason=notes,
        )

    logger.info(
        "Admin fid=%s %s artist id=%s (%d codes seeded)",
        admin_fid, verb.lower(), artist_id, len(result.referral_codes),
    )
    return result
