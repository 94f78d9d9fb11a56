"""
tests/test_admin_service.py — Artist Review Queue Tests
========================================================
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from artclaps.config import ArtClapsConfig
from artclaps.database.models import AdminLog, ArtistStatus, ReferralCode
from artclaps.engine.authorization import AdminPolicy
from artclaps.errors import Forbidden, NotFound
from artclaps.services import admin_service

ADMIN_FID = 7418


@pytest.fixture
def engine(db_engine):
    return db_engine


@pytest.fixture
def applicant(make_user):
    return make_user(
        50, "sculptor", status=ArtistStatus.PENDING_ARTIST, verification_notes="clay"
    )


def _review(engine, config, policy, artist_id, approve=True, admin_fid=ADMIN_FID, **kwargs):
    return admin_service.review_application(
        engine, config, policy, admin_fid=admin_fid, artist_id=artist_id, approve=approve, **kwargs
    )


class TestPolicy:
    def test_admin_set_comes_from_config(self):
        policy = AdminPolicy.from_config(
            ArtClapsConfig(app_name="x", admin_fids=frozenset({1, 2}))
        )
        assert policy.is_admin(1)
        assert not policy.is_admin(3)
        assert not policy.is_admin(None)

    def test_no_admins_configured(self):
        policy = AdminPolicy.from_config(ArtClapsConfig(app_name="x"))
        assert not policy.is_admin(7418)


class TestReview:
    def test_approve_seeds_codes_and_audits(self, engine, config, policy, applicant, reload_user):
        result = _review(
            engine, config, policy, applicant.id, now=datetime(2024, 2, 2, tzinfo=UTC)
        )

        assert result.approved is True
        assert len(result.referral_codes) == 3
        assert "approved" in result.message
        user = reload_user(50)
        assert user.artist_status == ArtistStatus.VERIFIED_ARTIST.value
        assert user.verification_notes == "Approved by admin on 2024-02-02T00:00:00+00:00"

        with Session(engine) as session:
            codes = session.scalars(select(ReferralCode.code)).all()
            assert sorted(codes) == sorted(result.referral_codes)
            log = session.scalar(select(AdminLog))
            assert log.actor_fid == ADMIN_FID
            assert log.action_type == "APPROVE_ARTIST"
            assert log.target_id == str(applicant.id)
            assert log.before_snapshot["artist_status"] == "pending_artist"
            assert log.after_snapshot["artist_status"] == "verified_artist"

    def test_approve_without_seeding(self, engine, config, policy, applicant):
        result = _review(engine, config, policy, applicant.id, seed_codes=False)
        assert result.referral_codes == []
        with Session(engine) as session:
            assert session.scalar(select(func.count()).select_from(ReferralCode)) == 0

    def test_reject_returns_to_supporter_with_notes(
        self, engine, config, policy, applicant, reload_user
    ):
        result = _review(
            engine, config, policy, applicant.id, approve=False, admin_notes="No portfolio yet"
        )
        assert result.approved is False
        user = reload_user(50)
        assert user.artist_status == ArtistStatus.SUPPORTER.value
        assert user.verification_notes == "No portfolio yet"

    def test_replay_is_not_found(self, engine, config, policy, applicant):
        _review(engine, config, policy, applicant.id)
        with pytest.raises(NotFound):
            _review(engine, config, policy, applicant.id, approve=False)

    def test_non_pending_user_not_found(self, engine, config, policy, make_user):
        supporter = make_user(60, "fan")
        with pytest.raises(NotFound):
            _review(engine, config, policy, supporter.id)

    def test_non_admin_forbidden(self, engine, config, policy, applicant, reload_user):
        with pytest.raises(Forbidden):
            _review(engine, config, policy, applicant.id, admin_fid=1234)
        assert reload_user(50).artist_status == ArtistStatus.PENDING_ARTIST.value
        with Session(engine) as session:
            assert session.scalar(select(func.count()).select_from(AdminLog)) == 0


class TestListPending:
    def test_oldest_first_with_referrer(self, engine, policy, make_user):
        mentor = make_user(1, "mentor", status=ArtistStatus.VERIFIED_ARTIST)
        make_user(
            2, "early", status=ArtistStatus.PENDING_ARTIST,
            created_at=datetime(2024, 1, 1, tzinfo=UTC), referred_by_id=mentor.id,
        )
        make_user(
            3, "late", status=ArtistStatus.PENDING_ARTIST,
            created_at=datetime(2024, 3, 1, tzinfo=UTC),
        )
        make_user(4, "fan")

        with Session(engine) as session:
            rows = admin_service.list_pending(session, policy, ADMIN_FID)
            assert [u.username for u in rows] == ["early", "late"]
            assert rows[0].referrer.username == "mentor"
            assert rows[1].referrer is None

    def test_requires_admin(self, engine, policy):
        with Session(engine) as session, pytest.raises(Forbidden):
            admin_service.list_pending(session, policy, None)
