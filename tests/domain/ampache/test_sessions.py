"""Tests for the session store and API keys."""

import hashlib

import pytest

from ampache_minion.domain.ampache.sessions import SessionStore, UserKeyStore
from ampache_minion.domain.library.exceptions import NotFoundError


class TestSessionStore:
    def test_create_and_find(self, db_conn):
        store = SessionStore(db_conn)
        token = store.create("alice", 2000)

        session = store.find_by_token(token)
        assert session.user_id == "alice"
        assert session.expiry == 2000

    def test_tokens_are_unique(self, db_conn):
        store = SessionStore(db_conn)
        tokens = {store.create("alice", 2000) for _ in range(20)}
        assert len(tokens) == 20

    def test_unknown_token(self, db_conn):
        with pytest.raises(NotFoundError):
            SessionStore(db_conn).find_by_token("nope")

    def test_empty_token(self, db_conn):
        with pytest.raises(NotFoundError):
            SessionStore(db_conn).find_by_token(None)

    def test_delete(self, db_conn):
        store = SessionStore(db_conn)
        session = store.find_by_token(store.create("alice", 2000))
        store.delete(session)
        with pytest.raises(NotFoundError):
            store.find_by_token(session.token)

    def test_delete_twice_is_harmless(self, db_conn):
        store = SessionStore(db_conn)
        session = store.find_by_token(store.create("alice", 2000))
        store.delete(session)
        store.delete(session)

    def test_store_does_not_evict_expired_sessions(self, db_conn):
        store = SessionStore(db_conn)
        token = store.create("alice", 1)
        assert store.find_by_token(token).expiry == 1

    def test_cleanup_expired(self, db_conn):
        store = SessionStore(db_conn)
        old = store.create("alice", 100)
        fresh = store.create("alice", 300)

        assert store.cleanup_expired(200) == 1
        with pytest.raises(NotFoundError):
            store.find_by_token(old)
        assert store.find_by_token(fresh).user_id == "alice"


class TestUserKeyStore:
    def test_hashes_are_sha256_of_password(self, db_conn):
        keys = UserKeyStore(db_conn)
        keys.add_key("alice", "secret")
        assert keys.get_password_hashes("alice") == [hashlib.sha256(b"secret").hexdigest()]

    def test_keys_are_per_user(self, db_conn):
        keys = UserKeyStore(db_conn)
        keys.add_key("alice", "one")
        keys.add_key("alice", "two", "phone")
        keys.add_key("bob", "three")

        listed = keys.list_keys("alice")
        assert [k.description for k in listed] == [None, "phone"]
        assert len(keys.get_password_hashes("bob")) == 1

    def test_remove_key(self, db_conn):
        keys = UserKeyStore(db_conn)
        key_id = keys.add_key("alice", "secret")

        assert keys.remove_key("bob", key_id) is False
        assert keys.remove_key("alice", key_id) is True
        assert keys.get_password_hashes("alice") == []
