"""
artclaps.constants — Shared Constants & Helpers
================================================

Presentation fallbacks and pagination limits used across the API.
"""

from __future__ import annotations

from urllib.parse import quote

# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
LEADERBOARD_PAGE_SIZE = 50


# ---------------------------------------------------------------------------
# Avatar / bio fallbacks
# ---------------------------------------------------------------------------
AVATAR_FALLBACK_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"


def default_avatar_url(username: str) -> str:
    """Generated avatar for users without a Farcaster profile picture."""
    return AVATAR_FALLBACK_URL.format(seed=quote(username or "", safe=""))


def avatar_for(username: str, pfp_url: str | None) -> str:
    return pfp_url or default_avatar_url(username)


def default_artist_bio(username: str) -> str:
    return f"Artist on Farcaster • @{username}"
