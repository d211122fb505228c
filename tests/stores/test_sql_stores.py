"""
Tests for the SQLAlchemy stores against an in-memory SQLite database.
"""
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy import exc

from exceptions import (
    DuplicateReferralCodeError,
    ReferralCodeAlreadyActiveError,
    ReferralCodeNotFoundError,
    StoreError,
    StoreTimeoutError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from models import ReferralCode
from stores.sql import SqlCodeStore, SqlUserStore
from utils import utcnow


@pytest.fixture
def users(db_session):
    return SqlUserStore(db_session)


@pytest.fixture
def codes(db_session):
    return SqlCodeStore(db_session)


@pytest.fixture
def alice(users):
    return users.create_user("alice@x.com", "hash")


class TestSqlUserStore:
    def test_create_and_fetch(self, users):
        created = users.create_user("alice@x.com", "hash")

        fetched = users.get_user_by_email("alice@x.com")

        assert fetched == created
        assert fetched.created_at is not None

    def test_duplicate_email(self, users, alice):
        with pytest.raises(UserAlreadyExistsError):
            users.create_user("alice@x.com", "other")
        # session is usable again after the rollback
        assert users.get_user_by_email("alice@x.com").id == alice.id

    def test_missing_user(self, users):
        with pytest.raises(UserNotFoundError):
            users.get_user_by_email("nobody@x.com")


class TestSqlCodeStore:
    def test_create_code(self, codes, alice):
        now = utcnow()
        record = codes.create_code("ABCDEFGH", now + timedelta(days=1), alice.id, now)

        assert record.code == "ABCDEFGH"
        assert codes.get_active_code_by_referrer_id(alice.id, now) == record
        assert codes.get_code_id_and_expiration("ABCDEFGH") == (record.id, record.expires_at)
        assert codes.get_referrer_id_by_code("ABCDEFGH") == alice.id

    def test_second_active_code_rejected(self, codes, alice):
        now = utcnow()
        codes.create_code("ABCDEFGH", now + timedelta(days=1), alice.id, now)

        with pytest.raises(ReferralCodeAlreadyActiveError):
            codes.create_code("HGFEDCBA", now + timedelta(days=1), alice.id, now)

    def test_expired_code_does_not_block(self, codes, alice, db_session):
        now = utcnow()
        codes.create_code("OLDCODE1", now + timedelta(hours=1), alice.id, now)
        later = now + timedelta(hours=2)

        codes.create_code("NEWCODE1", later + timedelta(days=1), alice.id, later)

        assert codes.get_active_code_by_referrer_id(alice.id, later).code == "NEWCODE1"
        assert db_session.query(ReferralCode).count() == 2

    def test_duplicate_code_string(self, codes, users, alice):
        bob = users.create_user("bob@x.com", "hash")
        now = utcnow()
        codes.create_code("ABCDEFGH", now + timedelta(days=1), alice.id, now)

        with pytest.raises(DuplicateReferralCodeError):
            codes.create_code("ABCDEFGH", now + timedelta(days=1), bob.id, now)

    def test_code_for_unknown_referrer(self, codes):
        now = utcnow()
        with pytest.raises(UserNotFoundError):
            codes.create_code("ABCDEFGH", now + timedelta(days=1), 999, now)

    def test_delete_code_by_id(self, codes, alice):
        now = utcnow()
        record = codes.create_code("ABCDEFGH", now + timedelta(days=1), alice.id, now)

        assert codes.delete_code_by_id(record.id) == 1
        assert codes.delete_code_by_id(record.id) == 0
        with pytest.raises(ReferralCodeNotFoundError):
            codes.get_active_code_by_referrer_id(alice.id, now)

    def test_unknown_code_lookups(self, codes):
        with pytest.raises(ReferralCodeNotFoundError):
            codes.get_code_id_and_expiration("NOPE1234")
        with pytest.raises(ReferralCodeNotFoundError):
            codes.get_referrer_id_by_code("NOPE1234")

    def test_referrals_listed_oldest_first(self, codes, alice):
        now = utcnow()
        record = codes.create_code("ABCDEFGH", now + timedelta(days=1), alice.id, now)

        codes.create_referral("bob@x.com", record.id, alice.id)
        codes.create_referral("carol@x.com", record.id, alice.id)

        listed = codes.list_referrals_by_referrer_id(alice.id)
        assert [r.email for r in listed] == ["bob@x.com", "carol@x.com"]
        assert all(r.referral_code_id == record.id for r in listed)
        assert codes.list_referrals_by_referrer_id(alice.id + 1) == []


class TestErrorTranslation:
    class _QueryCanceled(Exception):
        pgcode = "57014"

    def test_statement_timeout_becomes_store_timeout(self):
        session = MagicMock()
        session.query.side_effect = exc.OperationalError("SELECT 1", {}, self._QueryCanceled("canceling statement"))

        with pytest.raises(StoreTimeoutError):
            SqlUserStore(session).get_user_by_email("alice@x.com")
        session.rollback.assert_called_once()

    def test_pool_timeout_becomes_store_timeout(self):
        session = MagicMock()
        session.query.side_effect = exc.TimeoutError("QueuePool limit reached")

        with pytest.raises(StoreTimeoutError):
            SqlCodeStore(session).get_referrer_id_by_code("ABCDEFGH")

    def test_other_database_errors_become_store_error(self):
        session = MagicMock()
        session.query.side_effect = exc.OperationalError("SELECT 1", {}, Exception("connection refused"))

        with pytest.raises(StoreError) as exc_info:
            SqlCodeStore(session).list_referrals_by_referrer_id(1)
        assert not isinstance(exc_info.value, StoreTimeoutError)
        session.rollback.assert_called_once()
