"""
Ampache authentication: the handshake checks and per-request token validation.

Clients only ever see a generic "Invalid Login"; the specific reason is logged.
"""

import hashlib
import hmac
import time
from typing import Callable, Optional

from loguru import logger

from ampache_minion.domain.library.exceptions import NotFoundError

from .errors import InvalidLogin
from .sessions import Session, SessionStore, UserKeyStore


def parse_timestamp(timestamp: Optional[str]) -> int:
    """Integer value of a client timestamp; 0 when it cannot be parsed."""
    try:
        return int(str(timestamp).strip())
    except (TypeError, ValueError):
        return 0


def passphrase(timestamp: str, password_hash: str) -> str:
    """The auth value a client sends for a given timestamp and key."""
    return hashlib.sha256(f"{timestamp}{password_hash}".encode("utf-8")).hexdigest()


class Authenticator:
    def __init__(
        self,
        sessions: SessionStore,
        keys: UserKeyStore,
        session_expiry: int = 6000,
        clock_skew: int = 600,
        clock: Callable[[], float] = time.time,
    ):
        self.sessions = sessions
        self.keys = keys
        self.session_expiry = session_expiry
        self.clock_skew = clock_skew
        self.clock = clock

    def now(self) -> int:
        return int(self.clock())

    def check_handshake_timestamp(self, timestamp: Optional[str], current_time: int) -> None:
        provided_time = parse_timestamp(timestamp)

        if provided_time == 0:
            reason = "cannot parse time"
        elif provided_time < current_time - self.session_expiry:
            reason = "session is outdated"
        # The client clock may run ahead of ours by up to clock_skew seconds
        elif provided_time > current_time + self.clock_skew:
            reason = "timestamp is in future"
        else:
            return

        logger.info(f"Ampache handshake rejected: {reason} (timestamp={timestamp!r})")
        raise InvalidLogin()

    def check_handshake_authentication(
        self, user: Optional[str], timestamp: str, auth: Optional[str]
    ) -> None:
        hashes = self.keys.get_password_hashes(user) if user else []
        supplied = (auth or "").encode("utf-8")
        for password_hash in hashes:
            expected = passphrase(timestamp, password_hash).encode("utf-8")
            if hmac.compare_digest(expected, supplied):
                return

        logger.info(f"Ampache handshake rejected: passphrase does not match (user={user!r})")
        raise InvalidLogin()

    def authenticate(self, token: Optional[str]) -> Session:
        """Resolve the session of a non-handshake request."""
        try:
            session = self.sessions.find_by_token(token)
        except NotFoundError:
            logger.info("Ampache request rejected: unknown session token")
            raise InvalidLogin() from None

        if self.now() > session.expiry:
            logger.info(f"Ampache request rejected: session of {session.user_id} expired")
            raise InvalidLogin()
        return session
