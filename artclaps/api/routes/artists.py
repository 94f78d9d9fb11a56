"""
artclaps.api.routes.artists — Artist directory and applications
================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import HttpUrl
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from artclaps.api.deps import get_admin_policy, get_engine, get_read_session
from artclaps.api.serializers import artist_card_dict, pagination, user_dict
from artclaps.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from artclaps.engine.authorization import AdminPolicy
from artclaps.schemas import ArtistLink, CamelModel
from artclaps.services import artist_service, referral_service, user_service
from artclaps.services.user_service import ProfileInput

router = APIRouter(tags=["artists"])


class ApplicationBody(CamelModel):
    farcaster_fid: int
    username: str
    display_name: str | None = None
    pfp_url: str | None = None
    bio: str | None = None
    portfolio_url: HttpUrl | None = None
    referral_code: str | None = None
    application_message: str | None = None


class ArtistPageUpdate(CamelModel):
    user_fid: int
    extended_bio: str | None = None
    artist_links: list[ArtistLink] | None = None


# ---------------------------------------------------------------------------
# /artists
# ---------------------------------------------------------------------------
@router.get("/artists")
def get_artists(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user_fid: int | None = Query(None, alias="currentUserFid"),
    session: Session = Depends(get_read_session),
):
    """Verified artists, hottest this week first."""
    cards, total = artist_service.list_artists(
        session, limit=limit, offset=offset, current_user_fid=current_user_fid
    )
    return {
        "success": True,
        "artists": [artist_card_dict(c) for c in cards],
        "pagination": pagination(total, limit, offset),
    }


@router.post("/artists")
def apply_as_artist(
    body: ApplicationBody,
    engine: Engine = Depends(get_engine),
    policy: AdminPolicy = Depends(get_admin_policy),
):
    result = referral_service.apply_as_artist(
        engine,
        policy,
        ProfileInput(
            fid=body.farcaster_fid,
            username=body.username,
            display_name=body.display_name,
            pfp_url=body.pfp_url,
            bio=body.bio,
        ),
        referral_code=body.referral_code,
        application_message=body.application_message,
        portfolio_url=str(body.portfolio_url) if body.portfolio_url else None,
    )
    return {
        "success": True,
        "message": result.message,
        "verified": result.verified,
        "user": user_dict(result.user),
    }


# ---------------------------------------------------------------------------
# /artist
# ---------------------------------------------------------------------------
def _artist_response(session: Session, username: str, current_user_fid: int | None) -> dict:
    card = artist_service.get_artist(session, username, current_user_fid=current_user_fid)
    return {
        "success": True,
        "artist": artist_card_dict(card),
        "alreadyClappedToday": card.already_clapped_today,
    }


@router.get("/artist")
def get_artist_by_query(
    username: str = Query(..., min_length=1),
    current_user_fid: int | None = Query(None, alias="currentUserFid"),
    session: Session = Depends(get_read_session),
):
    return _artist_response(session, username, current_user_fid)


@router.get("/artist/{username}")
def get_artist(
    username: str,
    current_user_fid: int | None = Query(None, alias="currentUserFid"),
    session: Session = Depends(get_read_session),
):
    return _artist_response(session, username, current_user_fid)


@router.put("/artist/{username}")
def update_artist(
    username: str,
    body: ArtistPageUpdate,
    engine: Engine = Depends(get_engine),
):
    """Owner-only update of extended bio and links."""
    changed = user_service.update_artist_profile(
        engine,
        username,
        body.user_fid,
        extended_bio=body.extended_bio,
        artist_links=body.artist_links,
    )
    return {"success": True, "message": "Profile updated successfully", "updated": changed}
