"""
artclaps.api.routes.users — Profiles, stats and Farcaster sync
===============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import field_validator
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from artclaps.api.deps import get_config, get_engine, get_read_session
from artclaps.api.serializers import activity_dict, user_dict
from artclaps.config import ArtClapsConfig
from artclaps.schemas import ArtistLink, CamelModel, drop_blank_links
from artclaps.services import farcaster_sync, user_service
from artclaps.services.user_service import ProfileInput

router = APIRouter(tags=["users"])


class UserBody(CamelModel):
    farcaster_fid: int
    username: str
    display_name: str | None = None
    pfp_url: str | None = None
    bio: str | None = None


class ProfileEdit(CamelModel):
    fid: int
    extended_bio: str | None = None
    artist_links: list[ArtistLink] | None = None

    @field_validator("artist_links", mode="before")
    @classmethod
    def _skip_blank_rows(cls, value):
        return drop_blank_links(value)


class SyncBody(CamelModel):
    user_fid: int


# ---------------------------------------------------------------------------
# /user
# ---------------------------------------------------------------------------
@router.post("/user")
def upsert_user(body: UserBody, engine: Engine = Depends(get_engine)):
    """Create or refresh a profile after sign-in."""
    user = user_service.save_user(
        engine,
        ProfileInput(
            fid=body.farcaster_fid,
            username=body.username,
            display_name=body.display_name,
            pfp_url=body.pfp_url,
            bio=body.bio,
        ),
    )
    return {"success": True, "user": user_dict(user)}


@router.get("/user")
def get_user(fid: int = Query(...), session: Session = Depends(get_read_session)):
    detail = user_service.get_user_detail(session, fid)
    return {
        "success": True,
        "user": {
            **user_dict(detail.user),
            "recentActivitiesGiven": [activity_dict(a) for a in detail.recent_given],
            "recentActivitiesReceived": [activity_dict(a) for a in detail.recent_received],
        },
    }


@router.get("/user/stats")
def get_user_stats(fid: int = Query(...), session: Session = Depends(get_read_session)):
    return {"success": True, "stats": user_service.user_stats(session, fid)}


# ---------------------------------------------------------------------------
# /profile/edit
# ---------------------------------------------------------------------------
@router.post("/profile/edit")
def edit_profile(body: ProfileEdit, engine: Engine = Depends(get_engine)):
    changed = user_service.update_profile(
        engine,
        body.fid,
        extended_bio=body.extended_bio,
        artist_links=body.artist_links,
    )
    return {"success": True, "message": "Profile updated successfully", "updated": changed}


# ---------------------------------------------------------------------------
# /sync-farcaster
# ---------------------------------------------------------------------------
@router.post("/sync-farcaster")
async def sync_farcaster(
    body: SyncBody,
    engine: Engine = Depends(get_engine),
    cfg: ArtClapsConfig = Depends(get_config),
):
    user = await farcaster_sync.sync_user(engine, cfg, body.user_fid)
    return {
        "success": True,
        "message": f"Synced @{user.username} from Farcaster",
        "user": user_dict(user),
    }
