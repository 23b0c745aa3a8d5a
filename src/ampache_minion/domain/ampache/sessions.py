"""
Ampache sessions and API keys.

Sessions are created by a successful handshake and looked up by token on
every later request. Expiry is stored but not enforced here; callers compare
it against the current time.
"""

import hashlib
import secrets
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from ampache_minion.domain.library.exceptions import NotFoundError


@dataclass(frozen=True)
class Session:
    token: str
    user_id: str
    expiry: int  # unix timestamp


@dataclass(frozen=True)
class UserKey:
    id: int
    user_id: str
    description: Optional[str]
    created: Optional[str]


class SessionStore:
    """Persists session tokens in the ampache_sessions table."""

    def __init__(self, conn):
        self.conn = conn

    def create(self, user_id: str, expiry: int) -> str:
        token = secrets.token_hex(16)
        self.conn.execute(
            "INSERT OR REPLACE INTO ampache_sessions (token, user_id, expiry) VALUES (?, ?, ?)",
            (token, user_id, expiry),
        )
        self.conn.commit()
        return token

    def find_by_token(self, token: Optional[str]) -> Session:
        if not token:
            raise NotFoundError("session", message="No session token given")
        row = self.conn.execute(
            "SELECT token, user_id, expiry FROM ampache_sessions WHERE token = ?",
            (token,),
        ).fetchone()
        if row is None:
            raise NotFoundError("session", message="Session not found")
        return Session(token=row["token"], user_id=row["user_id"], expiry=row["expiry"])

    def delete(self, session: Session) -> None:
        self.conn.execute("DELETE FROM ampache_sessions WHERE token = ?", (session.token,))
        self.conn.commit()

    def cleanup_expired(self, now: int) -> int:
        """Delete sessions whose expiry has passed. Returns the number removed."""
        cursor = self.conn.execute("DELETE FROM ampache_sessions WHERE expiry < ?", (now,))
        self.conn.commit()
        if cursor.rowcount:
            logger.debug(f"Removed {cursor.rowcount} expired Ampache session(s)")
        return cursor.rowcount


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class UserKeyStore:
    """Per-user API keys. Only sha256 digests of the passwords are stored."""

    def __init__(self, conn):
        self.conn = conn

    def add_key(self, user_id: str, password: str, description: Optional[str] = None) -> int:
        cursor = self.conn.execute(
            "INSERT INTO ampache_user_keys (user_id, hash, description) VALUES (?, ?, ?)",
            (user_id, hash_password(password), description),
        )
        self.conn.commit()
        logger.info(f"Added Ampache API key {cursor.lastrowid} for {user_id}")
        return cursor.lastrowid

    def get_password_hashes(self, user_id: str) -> list[str]:
        rows = self.conn.execute(
            "SELECT hash FROM ampache_user_keys WHERE user_id = ?", (user_id,)
        ).fetchall()
        return [row["hash"] for row in rows]

    def list_keys(self, user_id: str) -> list[UserKey]:
        rows = self.conn.execute(
            "SELECT id, user_id, description, created FROM ampache_user_keys "
            "WHERE user_id = ? ORDER BY id",
            (user_id,),
        ).fetchall()
        return [
            UserKey(
                id=row["id"],
                user_id=row["user_id"],
                description=row["description"],
                created=row["created"],
            )
            for row in rows
        ]

    def remove_key(self, user_id: str, key_id: int) -> bool:
        cursor = self.conn.execute(
            "DELETE FROM ampache_user_keys WHERE id = ? AND user_id = ?", (key_id, user_id)
        )
        self.conn.commit()
        return cursor.rowcount > 0
