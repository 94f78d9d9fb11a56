"""
artclaps.services.farcaster_sync — Profile Refresh from a Farcaster Indexer
============================================================================

Pulls handle, display name, avatar and bio for one fid from a
Neynar-compatible ``/v2/farcaster/user/bulk`` endpoint and writes them
onto the local :class:`User`.  Local counters are left alone; follower
numbers here come from the in-app follow graph, not from Farcaster.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

import httpx

from artclaps.database.engine import get_session, run_db
from artclaps.engine.calendar import ensure_utc, utc_now
from artclaps.errors import NotConfigured, NotFound, UpstreamUnavailable
from artclaps.services.points_service import get_user_by_fid
from artclaps.services.user_service import ProfileInput, upsert_user

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from artclaps.config import ArtClapsConfig
    from artclaps.database.models import User

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10


@dataclass
class FarcasterProfile:
    fid: int
    username: str
    display_name: str | None
    pfp_url: str | None
    bio: str | None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> FarcasterProfile:
        bio = (payload.get("profile") or {}).get("bio") or {}
        return cls(
            fid=int(payload["fid"]),
            username=payload["username"],
            display_name=payload.get("display_name"),
            pfp_url=payload.get("pfp_url"),
            bio=bio.get("text") if isinstance(bio, dict) else None,
        )


def _api_key(explicit: str | None) -> str:
    key = explicit or os.getenv("NEYNAR_API_KEY", "")
    if not key:
        raise NotConfigured("Farcaster sync is not configured")
    return key


async def fetch_profile(
    api_url: str,
    api_key: str,
    fid: int,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FarcasterProfile | None:
    """Fetch one profile; ``None`` if the indexer doesn't know the fid."""
    async with httpx.AsyncClient(
        base_url=api_url, timeout=REQUEST_TIMEOUT, transport=transport
    ) as client:
        try:
            resp = await client.get(
                "/v2/farcaster/user/bulk",
                params={"fids": str(fid)},
                headers={"accept": "application/json", "x-api-key": api_key},
            )
        except httpx.HTTPError as exc:
            logger.warning("Farcaster indexer unreachable for fid=%s: %s", fid, exc)
            raise UpstreamUnavailable("Farcaster API request failed") from exc

    if resp.status_code == 404:
        return None
    if resp.status_code != 200:
        logger.warning(
            "Farcaster indexer answered %s for fid=%s", resp.status_code, fid
        )
        raise UpstreamUnavailable("Farcaster API request failed")

    try:
        users = resp.json().get("users") or []
        return FarcasterProfile.from_api(users[0]) if users else None
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        raise UpstreamUnavailable("Unexpected response from Farcaster API") from exc


def _user_exists(engine: Engine, fid: int) -> bool:
    with get_session(engine) as session:
        return get_user_by_fid(session, fid) is not None


def apply_profile_sync(
    engine: Engine,
    profile: FarcasterProfile,
    now: datetime | None = None,
) -> User:
    with get_session(engine) as session:
        user = upsert_user(
            session,
            ProfileInput(
                fid=profile.fid,
                username=profile.username,
                display_name=profile.display_name,
                pfp_url=profile.pfp_url,
                bio=profile.bio,
            ),
        )
        user.last_sync_at = ensure_utc(now or utc_now())
        session.flush()
        return user


async def sync_user(
    engine: Engine,
    cfg: ArtClapsConfig,
    fid: int,
    *,
    api_key: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    now: datetime | None = None,
) -> User:
    """Refresh the local profile of *fid* from Farcaster."""
    key = _api_key(api_key)
    if not await run_db(_user_exists, engine, fid):
        raise NotFound("User not found")

    profile = await fetch_profile(cfg.farcaster_api_url, key, fid, transport=transport)
    if profile is None or profile.fid != fid:
        raise NotFound("Farcaster user not found")

    user = await run_db(apply_profile_sync, engine, profile, now)
    logger.info("Synced fid=%s from Farcaster (@%s)", fid, user.username)
    return user
