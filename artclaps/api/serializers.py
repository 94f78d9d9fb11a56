"""
artclaps.api.serializers — ORM → JSON projections shared by the routers
========================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from artclaps.constants import avatar_for, default_artist_bio
from artclaps.database.models import Activity, ArtistStatus, ReferralCode, User
from artclaps.engine.calendar import ensure_utc
from artclaps.services.artist_service import ArtistCard


def iso(value: datetime | None) -> str | None:
    return ensure_utc(value).isoformat() if value else None


def pagination(total: int, limit: int, offset: int) -> dict[str, Any]:
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "hasMore": offset + limit < total,
    }


def user_ref(u: User | None) -> dict[str, Any] | None:
    """Small projection embedded in other objects."""
    if u is None:
        return None
    return {
        "username": u.username,
        "displayName": u.display_name or u.username,
        "pfpUrl": avatar_for(u.username, u.pfp_url),
    }


def user_dict(u: User) -> dict[str, Any]:
    return {
        "id": u.id,
        "farcasterFid": u.fid,
        "username": u.username,
        "displayName": u.display_name or u.username,
        "pfpUrl": u.pfp_url,
        "bio": u.bio,
        "extendedBio": u.extended_bio,
        "artistLinks": u.artist_links or [],
        "artistStatus": u.artist_status,
        "verifiedArtist": u.artist_status == ArtistStatus.VERIFIED_ARTIST.value,
        "totalPoints": u.total_points,
        "weeklyPoints": u.weekly_points,
        "monthlyPoints": u.monthly_points,
        "supportGiven": u.support_given,
        "supportReceived": u.support_received,
        "followerCount": u.follower_count,
        "followingCount": u.following_count,
        "lastSyncAt": iso(u.last_sync_at),
        "createdAt": iso(u.created_at),
    }


def activity_dict(a: Activity) -> dict[str, Any]:
    return {
        "id": a.id,
        "type": a.activity_type,
        "pointsEarned": a.points_earned,
        "targetUserId": a.target_user_id,
        "castHash": a.cast_hash,
        "metadata": a.metadata_ or {},
        "createdAt": iso(a.created_at),
    }


def artist_card_dict(card: ArtistCard) -> dict[str, Any]:
    u = card.user
    return {
        "id": u.id,
        "fid": u.fid,
        "farcasterFid": u.fid,
        "username": u.username,
        "displayName": u.display_name or u.username,
        "pfpUrl": avatar_for(u.username, u.pfp_url),
        "bio": u.bio or default_artist_bio(u.username),
        "extendedBio": u.extended_bio,
        "artistLinks": u.artist_links or [],
        "verifiedArtist": u.artist_status == ArtistStatus.VERIFIED_ARTIST.value,
        "claps": card.claps,
        "connections": card.connections,
        "totalActivities": card.total_activities,
        "supportReceived": u.support_received,
        "weeklyPoints": u.weekly_points,
        "totalPoints": u.total_points,
        "joinedAt": iso(u.created_at),
        "alreadyClappedToday": card.already_clapped_today,
    }


def referral_code_dict(code: ReferralCode, used_by: User | None = None) -> dict[str, Any]:
    return {
        "id": code.id,
        "code": code.code,
        "used": code.used,
        "createdAt": iso(code.created_at),
        "usedBy": (
            {"username": used_by.username, "displayName": used_by.display_name or used_by.username}
            if used_by is not None else None
        ),
    }
