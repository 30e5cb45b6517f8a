"""Per-request session context: who is calling, if anyone."""

import logging
from dataclasses import dataclass

from feedboard.services.auth import InvalidTokenError, TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Identity derived from the request's bearer token.

    An anonymous context is a normal outcome, not a failure. Each operation
    decides for itself whether it needs an identity.
    """

    user_id: str | None = None
    email: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls()


def resolve_session_context(token: str | None, token_service: TokenService) -> SessionContext:
    """Build the session context for a request. Never raises."""
    if not token:
        return SessionContext.anonymous()
    try:
        claims = token_service.verify(token)
    except InvalidTokenError as e:
        logger.debug(f"Treating request as anonymous: {e}")
        return SessionContext.anonymous()
    return SessionContext(user_id=claims.user_id, email=claims.email)
