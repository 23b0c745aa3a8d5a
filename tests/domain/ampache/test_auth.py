"""Tests for handshake checks and token validation."""

import pytest

from ampache_minion.domain.ampache.auth import Authenticator, parse_timestamp, passphrase
from ampache_minion.domain.ampache.errors import InvalidLogin
from ampache_minion.domain.ampache.sessions import SessionStore, UserKeyStore, hash_password


@pytest.fixture
def authenticator(seeded_db, clock):
    return Authenticator(SessionStore(seeded_db), UserKeyStore(seeded_db), clock=clock)


def test_parse_timestamp():
    assert parse_timestamp("1700000000") == 1700000000
    assert parse_timestamp(" 12 ") == 12
    assert parse_timestamp("abc") == 0
    assert parse_timestamp(None) == 0


class TestTimestamp:
    @pytest.mark.parametrize("delta", [-5999, 0, 599])
    def test_accepted(self, authenticator, now, delta):
        authenticator.check_handshake_timestamp(str(now + delta), now)

    @pytest.mark.parametrize("delta", [-6001, 601])
    def test_out_of_bounds(self, authenticator, now, delta):
        with pytest.raises(InvalidLogin):
            authenticator.check_handshake_timestamp(str(now + delta), now)

    @pytest.mark.parametrize("timestamp", ["0", "", "yesterday", None])
    def test_unparseable(self, authenticator, now, timestamp):
        with pytest.raises(InvalidLogin):
            authenticator.check_handshake_timestamp(timestamp, now)

    def test_message_does_not_reveal_reason(self, authenticator, now):
        with pytest.raises(InvalidLogin) as stale:
            authenticator.check_handshake_timestamp(str(now - 10_000), now)
        with pytest.raises(InvalidLogin) as future:
            authenticator.check_handshake_timestamp(str(now + 10_000), now)
        assert stale.value.message == future.value.message
        assert stale.value.code == 401


class TestPassphrase:
    def test_matching_key(self, authenticator, now):
        auth = passphrase(str(now), hash_password("secret"))
        authenticator.check_handshake_authentication("alice", str(now), auth)

    def test_any_of_several_keys(self, authenticator, seeded_db, now):
        UserKeyStore(seeded_db).add_key("alice", "second")
        auth = passphrase(str(now), hash_password("second"))
        authenticator.check_handshake_authentication("alice", str(now), auth)

    def test_wrong_password(self, authenticator, now):
        auth = passphrase(str(now), hash_password("wrong"))
        with pytest.raises(InvalidLogin):
            authenticator.check_handshake_authentication("alice", str(now), auth)

    @pytest.mark.parametrize("auth", [None, "", "\u00e9" * 64])
    def test_missing_or_malformed_auth(self, authenticator, now, auth):
        with pytest.raises(InvalidLogin):
            authenticator.check_handshake_authentication("alice", str(now), auth)

    def test_user_without_keys(self, authenticator, now):
        auth = passphrase(str(now), hash_password("secret"))
        with pytest.raises(InvalidLogin):
            authenticator.check_handshake_authentication("bob", str(now), auth)

    def test_missing_user(self, authenticator, now):
        with pytest.raises(InvalidLogin):
            authenticator.check_handshake_authentication(None, str(now), "x")


class TestAuthenticate:
    def test_valid_session(self, authenticator, seeded_db, now):
        token = SessionStore(seeded_db).create("alice", now + 10)
        assert authenticator.authenticate(token).user_id == "alice"

    def test_expired_session(self, authenticator, seeded_db, now):
        token = SessionStore(seeded_db).create("alice", now - 1)
        with pytest.raises(InvalidLogin):
            authenticator.authenticate(token)

    def test_session_valid_until_expiry(self, authenticator, seeded_db, now):
        token = SessionStore(seeded_db).create("alice", now)
        assert authenticator.authenticate(token).user_id == "alice"

    def test_unknown_token(self, authenticator):
        with pytest.raises(InvalidLogin):
            authenticator.authenticate("nope")
