"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. The resolved
identity is a plain parameter of the handler. There is no request.state
or global lookup. FastAPI caches a dependency per request, so both
functions below share one resolution.

- get_identity: stage 1, always succeeds (may be ANONYMOUS)
- get_current_user: stage 2, 401 unless Authenticated
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from liftlog.auth.identity import Authenticated, Identity
from liftlog.auth.pipeline import AuthPipeline
from liftlog.auth.tokens import TokenService
from liftlog.db.engine import get_db


async def get_identity(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Identity:
    """Resolve the caller (optional auth — never raises for bad tokens)."""
    pipeline = AuthPipeline(TokenService(db))
    return await pipeline.resolve(authorization)


async def get_current_user(
    identity: Identity = Depends(get_identity),
) -> Authenticated:
    """Require an authenticated caller (401 otherwise)."""
    return AuthPipeline.enforce(identity)
