"""
artclaps.api.routes.admin — Artist review queue (admin fid gated)
==================================================================
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from artclaps.api.deps import get_admin_policy, get_config, get_engine, get_read_session
from artclaps.api.serializers import iso
from artclaps.config import ArtClapsConfig
from artclaps.constants import avatar_for
from artclaps.engine.authorization import AdminPolicy
from artclaps.schemas import CamelModel
from artclaps.services import admin_service
from artclaps.services.admin_service import ReviewResult

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class ReviewAction(CamelModel):
    artist_id: int
    action: Literal["approve", "reject"]
    admin_fid: int
    admin_notes: str | None = None
    seed_referral_codes: bool = True


class ApprovalDecision(CamelModel):
    artist_id: int
    approved: bool
    admin_fid: int
    admin_notes: str | None = None
    seed_referral_codes: bool = True


def _review_response(result: ReviewResult) -> dict:
    return {
        "success": True,
        "message": result.message,
        "artistId": result.artist.id,
        "artistStatus": result.artist.artist_status,
        "referralCodes": result.referral_codes,
    }


# ---------------------------------------------------------------------------
# /admin/pending-artists
# ---------------------------------------------------------------------------
@router.get("/pending-artists")
def pending_artists(
    admin_fid: int | None = Query(None, alias="adminFid"),
    session: Session = Depends(get_read_session),
    policy: AdminPolicy = Depends(get_admin_policy),
):
    """Applicants awaiting review, oldest first."""
    rows = admin_service.list_pending(session, policy, admin_fid)
    return {
        "success": True,
        "artists": [
            {
                "id": u.id,
                "farcasterFid": u.fid,
                "username": u.username,
                "displayName": u.display_name or u.username,
                "pfpUrl": avatar_for(u.username, u.pfp_url),
                "bio": u.bio or "",
                "verificationNotes": u.verification_notes or "",
                "artistLinks": u.artist_links or [],
                "createdAt": iso(u.created_at),
                "referredBy": (
                    {
                        "username": u.referrer.username,
                        "displayName": u.referrer.display_name or u.referrer.username,
                    }
                    if u.referrer is not None else None
                ),
            }
            for u in rows
        ],
    }


@router.post("/pending-artists")
def review_pending_artist(
    body: ReviewAction,
    engine: Engine = Depends(get_engine),
    cfg: ArtClapsConfig = Depends(get_config),
    policy: AdminPolicy = Depends(get_admin_policy),
):
    result = admin_service.review_application(
        engine,
        cfg,
        policy,
        admin_fid=body.admin_fid,
        artist_id=body.artist_id,
        approve=body.action == "approve",
        admin_notes=body.admin_notes,
        seed_codes=body.seed_referral_codes,
    )
    return _review_response(result)


# ---------------------------------------------------------------------------
# /admin/approve-artist
# ---------------------------------------------------------------------------
@router.post("/approve-artist")
def approve_artist(
    body: ApprovalDecision,
    engine: Engine = Depends(get_engine),
    cfg: ArtClapsConfig = Depends(get_config),
    policy: AdminPolicy = Depends(get_admin_policy),
):
    result = admin_service.review_application(
        engine,
        cfg,
        policy,
        admin_fid=body.admin_fid,
        artist_id=body.artist_id,
        approve=body.approved,
        admin_notes=body.admin_notes,
        seed_codes=body.seed_referral_codes,
    )
    return _review_response(result)
