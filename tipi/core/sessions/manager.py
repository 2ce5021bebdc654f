"""
Session liveness on the Ephemeral Cache

A session is a cache entry "session:<id>" -> user id with a TTL. Rotation
(refresh) creates a second entry for the new session and re-arms the old
one with a short TTL instead of deleting it, so requests that captured
the old session just before rotation still resolve for a few seconds.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ulid import ULID

from tipi.core.cache import ICache

logger = logging.getLogger(__name__)

SESSION_PREFIX = "session:"

TokenSigner = Callable[[str, str], str]


@dataclass(frozen=True)
class SessionGrant:
    """A live session; token is set only when a signer is configured"""

    session_id: str
    user_id: str
    token: Optional[str] = None


class SessionManager:
    """Creates, resolves, rotates and revokes sessions"""

    def __init__(
        self,
        cache: ICache,
        session_ttl_seconds: int = 86400,
        grace_seconds: int = 6,
        token_signer: Optional[TokenSigner] = None,
    ):
        """
        Args:
            cache: Backing TTL cache
            session_ttl_seconds: Lifetime of a fresh session
            grace_seconds: How long a rotated-out session stays valid
            token_signer: (user_id, session_id) -> token, minted externally
        """
        self.cache = cache
        self.session_ttl_seconds = session_ttl_seconds
        self.grace_seconds = grace_seconds
        self.token_signer = token_signer

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{SESSION_PREFIX}{session_id}"

    def create_session(self, user_id: str) -> SessionGrant:
        session_id = str(ULID())
        self.cache.set(self._key(session_id), str(user_id), self.session_ttl_seconds)
        logger.info(f"Session created for user {user_id}")
        return self._grant(session_id, str(user_id))

    def get_user(self, session_id: str) -> Optional[str]:
        """User id bound to session_id, or None if absent/expired"""
        if not session_id:
            return None
        return self.cache.get(self._key(session_id))

    def refresh(self, session_id: str) -> Optional[SessionGrant]:
        """
        Rotate a session

        Returns:
            New grant for the same user, or None if session_id is not live
        """
        user_id = self.get_user(session_id)
        if user_id is None:
            return None

        self.cache.set(self._key(session_id), user_id, self.grace_seconds)
        grant = self.create_session(user_id)
        logger.info(f"Session rotated for user {user_id} (old session valid {self.grace_seconds}s)")
        return grant

    def logout(self, session_id: str) -> bool:
        """Revoke a session; returns whether it was live"""
        was_live = self.get_user(session_id) is not None
        self.cache.delete(self._key(session_id))
        return was_live

    def _grant(self, session_id: str, user_id: str) -> SessionGrant:
        token = self.token_signer(user_id, session_id) if self.token_signer else None
        return SessionGrant(session_id=session_id, user_id=user_id, token=token)
