"""
tests/test_user_service.py — User Directory Tests
==================================================
Upsert on sign-in, detail view, computed stats and profile editing.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy.orm import Session

from artclaps.database.models import ArtistStatus
from artclaps.errors import Conflict, Forbidden, NotFound, ValidationFailed
from artclaps.services import user_service
from artclaps.services.clap_service import clap
from artclaps.services.points_service import record_activity
from artclaps.services.user_service import ProfileInput


def at(*parts: int) -> datetime:
    return datetime(*parts, tzinfo=UTC)


@pytest.fixture
def engine(db_engine):
    return db_engine


# ---------------------------------------------------------------------------
# Upsert
# ---------------------------------------------------------------------------
class TestSaveUser:
    def test_creates_with_display_name_fallback(self, engine, reload_user):
        user = user_service.save_user(engine, ProfileInput(fid=9, username="  wren "))
        assert user.username == "wren"
        assert user.display_name == "wren"
        assert user.artist_status == ArtistStatus.SUPPORTER.value
        assert reload_user(9).total_points == 0

    def test_refreshes_identity_but_not_counters(self, engine, make_user, reload_user):
        make_user(9, "wren", total_points=50)
        user_service.save_user(
            engine,
            ProfileInput(fid=9, username="wren_art", display_name="Wren", bio="birds"),
        )
        user = reload_user(9)
        assert user.username == "wren_art"
        assert user.display_name == "Wren"
        assert user.bio == "birds"
        assert user.total_points == 50

    def test_username_owned_by_other_fid(self, engine, make_user):
        make_user(1, "wren")
        with pytest.raises(Conflict, match="already taken"):
            user_service.save_user(engine, ProfileInput(fid=2, username="wren"))

    def test_blank_username(self, engine):
        with pytest.raises(ValidationFailed):
            user_service.save_user(engine, ProfileInput(fid=2, username="   "))


# ---------------------------------------------------------------------------
# Detail
# ---------------------------------------------------------------------------
class TestUserDetail:
    def test_recent_activity_is_capped_and_newest_first(self, engine, make_user):
        make_user(1, "alice")
        make_user(2, "bob")
        for day in range(1, 13):
            record_activity(
                engine, user_fid=1, activity_type="QUALITY_REPLY", target_fid=2,
                now=at(2024, 3, day),
            )

        with Session(engine) as session:
            alice = user_service.get_user_detail(session, 1)
            bob = user_service.get_user_detail(session, 2)
            assert len(alice.recent_given) == 10
            assert alice.recent_received == []
            assert alice.recent_given[0].created_at.day == 12
            assert len(bob.recent_received) == 10

    def test_unknown(self, engine):
        with Session(engine) as session, pytest.raises(NotFound):
            user_service.get_user_detail(session, 404)


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------
class TestUserStats:
    NOW = at(2024, 6, 3, 12)

    @pytest.fixture
    def history(self, engine, make_user):
        make_user(1, "alice")
        make_user(2, "bob")
        make_user(3, "carol")
        clap(engine, 1, 2, now=at(2024, 6, 1, 10))
        clap(engine, 1, 2, now=at(2024, 6, 2, 10))
        clap(engine, 1, 2, now=at(2024, 6, 3, 9))
        clap(engine, 1, 3, now=at(2024, 6, 3, 9, 30))
        return engine

    def test_actor_numbers(self, history):
        with Session(history) as session:
            stats = user_service.user_stats(session, 1, now=self.NOW)
        assert stats["totalPoints"] == 20
        assert stats["todaysPoints"] == 10
        assert stats["rank"] == 1
        assert stats["totalUsers"] == 3
        assert stats["percentile"] == 100
        assert stats["supportGiven"] == 4
        assert stats["supportReceived"] == 0
        # No support received: ratio falls back to support given
        assert stats["supportRatio"] == 4.0
        assert stats["artistsSupported"] == 2
        assert stats["connections"] == 0
        assert stats["activitiesCount"] == 4
        assert stats["streakDays"] == 3

    def test_receiver_numbers(self, history):
        with Session(history) as session:
            stats = user_service.user_stats(session, 2, now=self.NOW)
        assert stats["totalPoints"] == 0
        assert stats["rank"] == 2
        assert stats["percentile"] == 67
        assert stats["supportReceived"] == 3
        assert stats["supportRatio"] == 0.0
        assert stats["connections"] == 1
        assert stats["streakDays"] == 0

    def test_streak_survives_until_end_of_next_day(self, history):
        with Session(history) as session:
            stats = user_service.user_stats(session, 1, now=at(2024, 6, 4, 23))
        assert stats["streakDays"] == 3
        assert stats["todaysPoints"] == 0

    def test_streak_broken_after_a_missed_day(self, history):
        with Session(history) as session:
            stats = user_service.user_stats(session, 1, now=at(2024, 6, 5, 8))
        assert stats["streakDays"] == 0

    def test_ratio_rounds_to_two_places(self, engine, make_user):
        make_user(1, "alice", support_given=2, support_received=3)
        with Session(engine) as session:
            assert user_service.user_stats(session, 1)["supportRatio"] == 0.67

    def test_unknown(self, engine):
        with Session(engine) as session, pytest.raises(NotFound):
            user_service.user_stats(session, 404)


# ---------------------------------------------------------------------------
# Link validation
# ---------------------------------------------------------------------------
class TestLinks:
    def test_valid_links_keep_platform(self):
        links = user_service.normalize_links([
            {"label": " Shop ", "url": "https://shop.example/me", "platform": "shopify"},
        ])
        assert links == [
            {"label": "Shop", "url": "https://shop.example/me", "platform": "shopify"}
        ]

    @pytest.mark.parametrize("url", [
        "example.com",
        "not a url",
        "https://",
        "mailto:me@example.com",
        "javascript://alert(1)",
        "ftp://files.example/art.zip",
        "foo://bar",
    ])
    def test_non_http_or_malformed_urls(self, url):
        with pytest.raises(ValidationFailed, match="Invalid URL"):
            user_service.normalize_links([{"label": "Site", "url": url}])

    def test_blank_platform_is_omitted(self):
        links = user_service.normalize_links([
            {"label": "Site", "url": "https://alice.art/work", "platform": "  "},
        ])
        assert links == [{"label": "Site", "url": "https://alice.art/work"}]

    def test_not_a_list(self):
        with pytest.raises(ValidationFailed, match="array"):
            user_service.normalize_links({"label": "x", "url": "https://x.y"})

    @pytest.mark.parametrize("item", [
        {"url": "https://x.y"},
        {"label": "  ", "url": "https://x.y"},
        {"label": "Site", "url": ""},
        "https://x.y",
    ])
    def test_missing_label_or_url(self, item):
        with pytest.raises(ValidationFailed, match="label and URL"):
            user_service.normalize_links([item])


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------
class TestUpdateProfile:
    def test_blank_rows_dropped(self, engine, make_user, reload_user):
        make_user(1, "alice")
        changed = user_service.update_profile(
            engine, 1,
            extended_bio="  Ink and paper.  ",
            artist_links=[
                {"label": "Site", "url": "https://alice.art"},
                {"label": "", "url": ""},
            ],
        )
        assert changed == ["extendedBio", "artistLinks"]
        user = reload_user(1)
        assert user.extended_bio == "Ink and paper."
        # Bare hosts gain the root path
        assert user.artist_links == [{"label": "Site", "url": "https://alice.art/"}]

    def test_omitted_fields_untouched(self, engine, make_user, reload_user):
        make_user(1, "alice", extended_bio="old")
        assert user_service.update_profile(engine, 1) == []
        assert reload_user(1).extended_bio == "old"

    def test_invalid_url_rejected(self, engine, make_user, reload_user):
        make_user(1, "alice")
        with pytest.raises(ValidationFailed):
            user_service.update_profile(
                engine, 1, artist_links=[{"label": "Site", "url": "alice.art"}]
            )
        assert reload_user(1).artist_links == []

    def test_links_must_be_array(self, engine, make_user):
        make_user(1, "alice")
        with pytest.raises(ValidationFailed):
            user_service.update_profile(engine, 1, artist_links="https://alice.art")

    def test_unknown_user(self, engine):
        with pytest.raises(NotFound):
            user_service.update_profile(engine, 404, extended_bio="hi")


class TestUpdateArtistProfile:
    def test_owner_can_edit(self, engine, make_user, reload_user):
        make_user(1, "alice", status=ArtistStatus.VERIFIED_ARTIST)
        user_service.update_artist_profile(engine, "alice", 1, extended_bio="New bio")
        assert reload_user(1).extended_bio == "New bio"

    def test_other_fid_forbidden(self, engine, make_user):
        make_user(1, "alice", status=ArtistStatus.VERIFIED_ARTIST)
        make_user(2, "mallory")
        with pytest.raises(Forbidden, match="Unauthorized"):
            user_service.update_artist_profile(engine, "alice", 2, extended_bio="pwned")

    def test_supporter_forbidden(self, engine, make_user):
        make_user(1, "alice")
        with pytest.raises(Forbidden, match="verified"):
            user_service.update_artist_profile(engine, "alice", 1, extended_bio="x")

    def test_blank_links_are_errors_here(self, engine, make_user):
        make_user(1, "alice", status=ArtistStatus.VERIFIED_ARTIST)
        with pytest.raises(ValidationFailed):
            user_service.update_artist_profile(
                engine, "alice", 1, artist_links=[{"label": "", "url": ""}]
            )
