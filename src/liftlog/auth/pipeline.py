"""Two-stage auth pipeline.

Learn: Every request goes through stage 1; protected routes add stage 2.

  Unresolved ──resolve()──▶ Anonymous | Authenticated ──enforce()──▶ Rejected | Passed

Stage 1 never fails the request. A missing, malformed, unknown, expired,
or mis-scoped token all degrade to ANONYMOUS. Stage 2 turns ANONYMOUS into
a 401 on routes that need a user.
"""

from typing import Optional

import structlog

from liftlog.auth.identity import (
    ANONYMOUS,
    Authenticated,
    Identity,
    require_authenticated,
)
from liftlog.auth.tokens import TokenService
from liftlog.config import settings
from liftlog.errors import TokenError

logger = structlog.get_logger()


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an Authorization header, or None if malformed."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


class AuthPipeline:
    """Resolve and enforce caller identity."""

    def __init__(self, tokens: TokenService, scope: Optional[str] = None):
        self.tokens = tokens
        self.scope = scope or settings.token_scope

    async def resolve(self, authorization: Optional[str]) -> Identity:
        """Stage 1: Authorization header → Identity."""
        token = parse_bearer(authorization)
        if token is None:
            if authorization:
                logger.debug("liftlog.auth_header_malformed")
            return ANONYMOUS

        try:
            user = await self.tokens.validate_token(token, self.scope)
        except TokenError as e:
            logger.debug("liftlog.token_rejected", reason=type(e).__name__)
            return ANONYMOUS

        return Authenticated(user=user)

    @staticmethod
    def enforce(identity: Identity) -> Authenticated:
        """Stage 2: reject anonymous callers on protected operations."""
        return require_authenticated(identity)

    async def run(self, authorization: Optional[str], protected: bool) -> Identity:
        identity = await self.resolve(authorization)
        if protected:
            return self.enforce(identity)
        return identity
