"""
tests/test_artist_service.py — Artist Directory Tests
======================================================
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy.orm import Session

from artclaps.database.models import ArtistStatus
from artclaps.errors import NotFound
from artclaps.services import artist_service
from artclaps.services.clap_service import clap

NOW = datetime(2024, 6, 1, 15, tzinfo=UTC)
VERIFIED = ArtistStatus.VERIFIED_ARTIST


@pytest.fixture
def directory(make_user, db_engine):
    make_user(1, "fan")
    make_user(10, "quiet", status=VERIFIED)
    make_user(11, "popular", status=VERIFIED, weekly_points=40)
    make_user(12, "loved", status=VERIFIED, weekly_points=40, support_received=9)
    make_user(13, "hopeful", status=ArtistStatus.PENDING_ARTIST, weekly_points=99)
    return db_engine


class TestListArtists:
    def test_verified_only_in_weekly_then_support_order(self, directory):
        with Session(directory) as session:
            cards, total = artist_service.list_artists(session)
        assert [c.user.username for c in cards] == ["loved", "popular", "quiet"]
        assert total == 3

    def test_paging(self, directory):
        with Session(directory) as session:
            cards, total = artist_service.list_artists(session, limit=1, offset=1)
        assert [c.user.username for c in cards] == ["popular"]
        assert total == 3

    def test_viewer_clap_flags_and_counts(self, directory):
        clap(directory, 1, 10, now=NOW)
        clap(directory, 1, 11, now=datetime(2024, 5, 31, 9, tzinfo=UTC))

        with Session(directory) as session:
            cards, _ = artist_service.list_artists(session, current_user_fid=1, now=NOW)
        by_name = {c.user.username: c for c in cards}
        assert by_name["quiet"].already_clapped_today is True
        assert by_name["popular"].already_clapped_today is False
        assert by_name["quiet"].claps == 1
        assert by_name["quiet"].connections == 1
        assert by_name["popular"].total_activities == 1
        assert by_name["loved"].claps == 0

    def test_anonymous_viewer_never_flagged(self, directory):
        clap(directory, 1, 10, now=NOW)
        with Session(directory) as session:
            cards, _ = artist_service.list_artists(session, now=NOW)
        assert not any(c.already_clapped_today for c in cards)

    def test_empty_directory(self, db_engine):
        with Session(db_engine) as session:
            assert artist_service.list_artists(session) == ([], 0)


class TestGetArtist:
    def test_by_handle_with_or_without_at(self, directory):
        with Session(directory) as session:
            assert artist_service.get_artist(session, "@loved").user.fid == 12
            assert artist_service.get_artist(session, "loved").user.fid == 12

    @pytest.mark.parametrize("handle", ["hopeful", "fan", "nobody"])
    def test_non_artists_not_found(self, directory, handle):
        with Session(directory) as session, pytest.raises(NotFound):
            artist_service.get_artist(session, handle)
