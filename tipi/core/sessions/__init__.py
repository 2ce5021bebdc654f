"""Session liveness and rotation."""

from .manager import SESSION_PREFIX, SessionGrant, SessionManager, TokenSigner

__all__ = ["SESSION_PREFIX", "SessionGrant", "SessionManager", "TokenSigner"]
