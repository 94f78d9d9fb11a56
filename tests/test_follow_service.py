"""
tests/test_follow_service.py — Follow Graph Tests
==================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from artclaps.database.models import Activity, ActivityType, Follow
from artclaps.errors import NotFound, ValidationFailed
from artclaps.services import follow_service


@pytest.fixture
def engine(db_engine):
    return db_engine


@pytest.fixture
def users(make_user):
    return make_user(1, "alice"), make_user(2, "bob", display_name="Bob Ross")


class TestToggleFollow:
    def test_follow_awards_points_and_counts(self, engine, users, reload_user):
        result = follow_service.toggle_follow(engine, 1, 2)

        assert result.is_following is True
        assert result.action == "followed"
        assert result.points_earned == 10
        assert result.target_name == "Bob Ross"

        alice, bob = reload_user(1), reload_user(2)
        assert alice.following_count == 1
        assert bob.follower_count == 1
        assert alice.total_points == 10
        assert alice.support_given == 1
        assert bob.support_received == 1

        with Session(engine) as session:
            types = session.scalars(select(Activity.activity_type)).all()
        assert types == [ActivityType.FOLLOW_NEW_ARTIST.value]

    def test_unfollow_restores_counters_but_keeps_points(self, engine, users, reload_user):
        follow_service.toggle_follow(engine, 1, 2)
        result = follow_service.toggle_follow(engine, 1, 2)

        assert result.is_following is False
        assert result.action == "unfollowed"
        assert result.points_earned == 0

        alice, bob = reload_user(1), reload_user(2)
        assert alice.following_count == 0
        assert bob.follower_count == 0
        assert alice.total_points == 10

        with Session(engine) as session:
            assert session.scalar(select(func.count()).select_from(Follow)) == 0

    def test_refollow_awards_again(self, engine, users, reload_user):
        for _ in range(3):
            follow_service.toggle_follow(engine, 1, 2)
        assert reload_user(1).total_points == 20
        assert reload_user(2).follower_count == 1

    def test_unfollow_floors_counters_at_zero(self, engine, users, db_engine, reload_user):
        # A follow row without the matching counters (e.g. imported data)
        with Session(db_engine) as session:
            session.add(Follow(follower_id=users[0].id, following_id=users[1].id))
            session.commit()

        follow_service.toggle_follow(engine, 1, 2)
        assert reload_user(1).following_count == 0
        assert reload_user(2).follower_count == 0

    def test_self_follow_rejected(self, engine, users):
        with pytest.raises(ValidationFailed):
            follow_service.toggle_follow(engine, 1, 1)

    def test_unknown_user(self, engine, users):
        with pytest.raises(NotFound):
            follow_service.toggle_follow(engine, 1, 404)


class TestIsFollowing:
    def test_reflects_state_without_mutation(self, engine, users, reload_user):
        with Session(engine) as session:
            assert follow_service.is_following(session, 1, 2) is False
        follow_service.toggle_follow(engine, 1, 2)
        with Session(engine) as session:
            assert follow_service.is_following(session, 1, 2) is True
            assert follow_service.is_following(session, 2, 1) is False
        assert reload_user(2).follower_count == 1

    def test_unknown_user_is_not_found(self, engine, users):
        with Session(engine) as session, pytest.raises(NotFound, match="User not found"):
            follow_service.is_following(session, 5, 2)

    def test_unknown_target_is_not_found(self, engine, users):
        with Session(engine) as session, pytest.raises(NotFound, match="Target"):
            follow_service.is_following(session, 1, 6)
