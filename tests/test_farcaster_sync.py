"""
tests/test_farcaster_sync.py — Farcaster Profile Refresh Tests
===============================================================
The indexer is replaced by an ``httpx.MockTransport``; no network.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import httpx
import pytest

from artclaps.errors import NotConfigured, NotFound, UpstreamUnavailable
from artclaps.services import farcaster_sync

NOW = datetime(2024, 6, 1, 12, tzinfo=UTC)


# Helper to run async tests without pytest-asyncio
def run_async(coro):
    return asyncio.run(coro)


def _indexer(status: int = 200, users: list[dict] | None = None, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json={"users": users or []})

    return httpx.MockTransport(handler)


NEYNAR_USER = {
    "fid": 1,
    "username": "alice_new",
    "display_name": "Alice N.",
    "pfp_url": "https://img.example/a.png",
    "profile": {"bio": {"text": "Watercolours"}},
    "follower_count": 12345,
}


def _sync(engine, config, fid=1, **kwargs):
    kwargs.setdefault("api_key", "k")
    kwargs.setdefault("now", NOW)
    return run_async(farcaster_sync.sync_user(engine, config, fid, **kwargs))


class TestFromApi:
    def test_reads_nested_bio(self):
        profile = farcaster_sync.FarcasterProfile.from_api(NEYNAR_USER)
        assert profile.username == "alice_new"
        assert profile.bio == "Watercolours"

    def test_missing_profile_block(self):
        profile = farcaster_sync.FarcasterProfile.from_api({"fid": 2, "username": "b"})
        assert profile.bio is None
        assert profile.display_name is None


class TestSyncUser:
    def test_updates_identity_and_stamp(self, db_engine, config, make_user, reload_user):
        make_user(1, "alice", follower_count=3)
        seen: list[httpx.Request] = []

        user = _sync(db_engine, config, transport=_indexer(users=[NEYNAR_USER], seen=seen))

        assert user.username == "alice_new"
        stored = reload_user(1)
        assert stored.display_name == "Alice N."
        assert stored.pfp_url == "https://img.example/a.png"
        assert stored.bio == "Watercolours"
        assert stored.last_sync_at is not None
        # Local follow graph counts are not overwritten
        assert stored.follower_count == 3

        (request,) = seen
        assert request.url.path == "/v2/farcaster/user/bulk"
        assert request.url.params["fids"] == "1"
        assert request.headers["x-api-key"] == "k"

    def test_missing_api_key(self, db_engine, config, make_user, monkeypatch):
        monkeypatch.delenv("NEYNAR_API_KEY", raising=False)
        make_user(1, "alice")
        with pytest.raises(NotConfigured) as exc:
            _sync(db_engine, config, api_key=None, transport=_indexer())
        assert exc.value.status_code == 503

    def test_api_key_from_env(self, db_engine, config, make_user, monkeypatch):
        monkeypatch.setenv("NEYNAR_API_KEY", "env-key")
        make_user(1, "alice")
        seen: list[httpx.Request] = []
        _sync(db_engine, config, api_key=None, transport=_indexer(users=[NEYNAR_USER], seen=seen))
        assert seen[0].headers["x-api-key"] == "env-key"

    def test_unknown_local_user(self, db_engine, config):
        with pytest.raises(NotFound, match="User not found"):
            _sync(db_engine, config, transport=_indexer(users=[NEYNAR_USER]))

    def test_unknown_on_farcaster(self, db_engine, config, make_user):
        make_user(1, "alice")
        with pytest.raises(NotFound, match="Farcaster"):
            _sync(db_engine, config, transport=_indexer(users=[]))

    def test_indexer_404(self, db_engine, config, make_user):
        make_user(1, "alice")
        with pytest.raises(NotFound):
            _sync(db_engine, config, transport=_indexer(status=404))

    def test_indexer_error(self, db_engine, config, make_user, reload_user):
        make_user(1, "alice")
        with pytest.raises(UpstreamUnavailable) as exc:
            _sync(db_engine, config, transport=_indexer(status=500))
        assert exc.value.status_code == 502
        assert reload_user(1).last_sync_at is None

    def test_indexer_unreachable(self, db_engine, config, make_user):
        make_user(1, "alice")

        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamUnavailable):
            _sync(db_engine, config, transport=httpx.MockTransport(boom))
