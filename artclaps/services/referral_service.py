"""
artclaps.services.referral_service — Referral & Artist Application
====================================================================

Artist status moves through::

    supporter ──apply(no code)──▶ pending_artist ──admin──▶ verified_artist
        │                                  └──────admin──▶ supporter
        └──apply(valid code)──────────────────────────────▶ verified_artist

Codes are single use.  Redemption is a conditional
``UPDATE … WHERE used = false`` so two applicants racing for the same
code cannot both win.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from artclaps.database.engine import get_session
from artclaps.database.models import ActivityType, ArtistStatus, ReferralCode, User
from artclaps.engine.calendar import ensure_utc, utc_now
from artclaps.engine.referral_codes import generate_referral_code
from artclaps.errors import (
    Conflict,
    Forbidden,
    NotFound,
    ReferralCodeGenerationError,
    ValidationFailed,
)
from artclaps.schemas import parse_url
from artclaps.services.points_service import append_activity, get_user_by_fid, lock_user
from artclaps.services.user_service import ProfileInput, upsert_user

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from artclaps.config import ArtClapsConfig
    from artclaps.engine.authorization import AdminPolicy

logger = logging.getLogger(__name__)


@dataclass
class ApplicationResult:
    user: User
    verified: bool
    message: str
    referrer: User | None = None


@dataclass
class CodeListing:
    user: User
    codes: list[ReferralCode] = field(default_factory=list)

    @property
    def total_codes(self) -> int:
        return len(self.codes)

    @property
    def used_codes(self) -> int:
        return sum(1 for c in self.codes if c.used)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
def normalize_code(code: str) -> str:
    return code.strip().upper()


def find_code(session: Session, code: str) -> ReferralCode | None:
    """Case-insensitive lookup."""
    return session.scalar(
        select(ReferralCode)
        .where(func.upper(ReferralCode.code) == normalize_code(code))
        .options(selectinload(ReferralCode.creator))
    )


def count_unused_codes(session: Session, creator_id: int) -> int:
    return session.scalar(
        select(func.count())
        .select_from(ReferralCode)
        .where(ReferralCode.created_by_id == creator_id, ReferralCode.used.is_(False))
    ) or 0


# ---------------------------------------------------------------------------
# Minting
# ---------------------------------------------------------------------------
def mint_code(
    session: Session,
    creator: User,
    *,
    attempts: int = 10,
    choice: Callable[[str], str] | None = None,
) -> ReferralCode:
    """Insert one fresh code for *creator*, retrying on collision.

    A candidate that slips past the lookup but hits the case-insensitive
    unique index counts as a collision too.  Authorization and the
    unused-code cap are the caller's concern.
    """
    for _ in range(attempts):
        if choice is None:
            candidate = generate_referral_code(creator.username)
        else:
            candidate = generate_referral_code(creator.username, choice=choice)
        if find_code(session, candidate) is not None:
            continue
        row = ReferralCode(code=candidate, created_by_id=creator.id, used=False)
        try:
            with session.begin_nested():
                session.add(row)
                session.flush()
        except IntegrityError:
            logger.debug("Referral code %s taken concurrently, retrying", candidate)
            continue
        return row
    raise ReferralCodeGenerationError("Failed to generate unique code. Please try again.")


def generate_code(
    engine: Engine,
    cfg: ArtClapsConfig,
    policy: AdminPolicy,
    user_fid: int,
    choice: Callable[[str], str] | None = None,
) -> ReferralCode:
    """Mint a referral code for a verified artist or administrator.

    Raises ``NotFound`` (unknown fid), ``Forbidden`` (not allowed to
    refer), ``ValidationFailed`` (cap of unused codes reached) and
    ``ReferralCodeGenerationError`` (no free candidate found).
    """
    with get_session(engine) as session:
        user = get_user_by_fid(session, user_fid)
        if user is None:
            raise NotFound("User not found")
        if not policy.can_refer(user):
            logger.warning("Referral code request refused for fid=%s", user_fid)
            raise Forbidden("Only verified artists can generate referral codes")

        lock_user(session, user.id)
        cap = cfg.max_unused_referral_codes
        if count_unused_codes(session, user.id) >= cap:
            raise ValidationFailed(f"Maximum number of unused codes reached ({cap})")

        row = mint_code(
            session, user, attempts=cfg.referral_code_attempts, choice=choice
        )

    logger.info("Referral code %s minted for fid=%s", row.code, user_fid)
    return row


def list_codes(session: Session, policy: AdminPolicy, fid: int) -> CodeListing:
    """A creator's codes, newest first, with their redeemers loaded."""
    user = get_user_by_fid(session, fid)
    if user is None:
        raise NotFound("User not found")
    if not policy.can_refer(user):
        raise Forbidden("Only verified artists can access referral codes")

    codes = session.scalars(
        select(ReferralCode)
        .where(ReferralCode.created_by_id == user.id)
        .options(selectinload(ReferralCode.used_by))
        .order_by(ReferralCode.created_at.desc(), ReferralCode.id.desc())
    ).all()
    return CodeListing(user=user, codes=list(codes))


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
def _redeem(
    session: Session,
    policy: AdminPolicy,
    applicant: User,
    raw_code: str,
    now: datetime,
) -> User:
    """Consume *raw_code* for *applicant* and return the code's creator."""
    code = find_code(session, raw_code)
    if code is None:
        raise NotFound("Invalid referral code")
    if code.used:
        raise Conflict("Referral code has already been used")
    creator = code.creator
    if creator.id == applicant.id:
        raise ValidationFailed("You cannot redeem your own referral code")
    if not policy.can_refer(creator):
        raise ValidationFailed("Referral code is no longer valid")

    claimed = session.execute(
        update(ReferralCode)
        .where(ReferralCode.id == code.id, ReferralCode.used.is_(False))
        .values(used=True, used_by_id=applicant.id, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        raise Conflict("Referral code has already been used")

    applicant.artist_status = ArtistStatus.VERIFIED_ARTIST.value
    applicant.referred_by_id = creator.id
    applicant.verification_notes = f"Verified via referral code {code.code}"
    session.flush()

    # Discovery credit is recorded for the trail only; it carries no points.
    append_activity(
        session,
        user_id=applicant.id,
        activity_type=ActivityType.ARTIST_DISCOVERY,
        points=0,
        target_user_id=creator.id,
        metadata={
            "referralCode": code.code,
            "referrerFid": creator.fid,
        },
        now=now,
    )
    return creator


def apply_as_artist(
    engine: Engine,
    policy: AdminPolicy,
    profile: ProfileInput,
    *,
    referral_code: str | None = None,
    application_message: str | None = None,
    portfolio_url: str | None = None,
    now: datetime | None = None,
) -> ApplicationResult:
    """Submit an artist application, verifying instantly with a valid code.

    The applicant's profile is upserted first so first-time visitors can
    apply in one step.  Everything happens in a single transaction: a bad
    code leaves no trace, not even the profile upsert.
    """
    now = ensure_utc(now or utc_now())
    if portfolio_url:
        portfolio_url = parse_url(portfolio_url)

    with get_session(engine) as session:
        existing = get_user_by_fid(session, profile.fid)
        if existing is not None:
            if existing.artist_status == ArtistStatus.VERIFIED_ARTIST.value:
                raise Conflict("You are already a verified artist")
            if existing.artist_status == ArtistStatus.PENDING_ARTIST.value:
                raise Conflict("Your application is already pending review")

        applicant = upsert_user(session, profile)
        if portfolio_url:
            links = [
                link for link in (applicant.artist_links or [])
                if link.get("url") != portfolio_url
            ]
            applicant.artist_links = [{"label": "Portfolio", "url": portfolio_url}, *links]

        code = (referral_code or "").strip()
        if code:
            referrer = _redeem(session, policy, applicant, code, now)
            result = ApplicationResult(
                user=applicant,
                verified=True,
                referrer=referrer,
                message=(
                    "Congratulations! You are now a verified artist, "
                    f"referred by @{referrer.username}."
                ),
            )
        else:
            applicant.artist_status = ArtistStatus.PENDING_ARTIST.value
            applicant.verification_notes = (application_message or "").strip() or None
            result = ApplicationResult(
                user=applicant,
                verified=False,
                message="Application submitted! An admin will review it soon.",
            )
        session.flush()

    logger.info(
        "Artist application: fid=%s → %s", profile.fid, result.user.artist_status
    )
    return result
