"""Unit tests for the in-memory session store."""

from datetime import datetime, timedelta, timezone

import pytest

from walletauth.exceptions import InvalidTokenError, SessionExpiredError
from walletauth.services.session_service import SessionStore

WALLET = "0xABCDEFabcdefABCDEFabcdefABCDEFabcdefABCD"


class FakeUtcClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def utc_clock():
    return FakeUtcClock()


@pytest.fixture
def sessions(utc_clock):
    return SessionStore(ttl_seconds=3_600, expiring_soon_seconds=600, clock=utc_clock)


class TestSessionStore:
    """Tests for SessionStore."""

    def test_create_session(self, sessions, utc_clock):
        session = sessions.create_session(WALLET)

        assert session.wallet_address == WALLET.lower()
        assert session.expires_at == utc_clock.now + timedelta(hours=1)
        assert session.expires_in == 3_600
        assert len(session.token) >= 32

    def test_tokens_are_unique(self, sessions):
        tokens = {sessions.create_session(WALLET).token for _ in range(10)}
        assert len(tokens) == 10

    def test_validate_session(self, sessions):
        session = sessions.create_session(WALLET)

        user = sessions.validate_session(session.token)

        assert user.wallet_address == WALLET.lower()
        assert user.token == session.token
        assert user.expiring_soon is False

    def test_validate_reports_expiring_soon(self, sessions, utc_clock):
        session = sessions.create_session(WALLET)
        utc_clock.now += timedelta(minutes=55)

        assert sessions.validate_session(session.token).expiring_soon is True

    @pytest.mark.parametrize("token", ["", "unknown-token"])
    def test_validate_invalid_token(self, sessions, token):
        with pytest.raises(InvalidTokenError):
            sessions.validate_session(token)

    def test_validate_expired_token_removes_session(self, sessions, utc_clock):
        session = sessions.create_session(WALLET)
        utc_clock.now += timedelta(hours=1)

        with pytest.raises(SessionExpiredError):
            sessions.validate_session(session.token)
        with pytest.raises(InvalidTokenError):
            sessions.validate_session(session.token)

    def test_refresh_rotates_token(self, sessions, utc_clock):
        old = sessions.create_session(WALLET)
        utc_clock.now += timedelta(minutes=30)

        new = sessions.refresh_session(old.token)

        assert new.token != old.token
        assert new.wallet_address == old.wallet_address
        assert new.expires_at == utc_clock.now + timedelta(hours=1)
        with pytest.raises(InvalidTokenError):
            sessions.validate_session(old.token)
        assert sessions.validate_session(new.token).wallet_address == WALLET.lower()

    def test_refresh_expired_token_fails(self, sessions, utc_clock):
        session = sessions.create_session(WALLET)
        utc_clock.now += timedelta(hours=2)

        with pytest.raises(SessionExpiredError):
            sessions.refresh_session(session.token)

    def test_delete_session(self, sessions):
        session = sessions.create_session(WALLET)

        assert sessions.delete_session(session.token) is True
        assert sessions.delete_session(session.token) is False
        with pytest.raises(InvalidTokenError):
            sessions.validate_session(session.token)

    def test_cleanup_expired(self, sessions, utc_clock):
        sessions.create_session(WALLET)
        sessions.create_session(WALLET)
        utc_clock.now += timedelta(hours=2)

        assert sessions.cleanup_expired() == 2
        assert len(sessions) == 0

    def test_create_session_sweeps_expired(self, utc_clock):
        """Sessions that are never presented again do not accumulate."""
        sessions = SessionStore(ttl_seconds=1, expiring_soon_seconds=0, clock=utc_clock)

        for _ in range(100):
            sessions.create_session(WALLET)
            utc_clock.now += timedelta(seconds=10)

        assert len(sessions) == 1
