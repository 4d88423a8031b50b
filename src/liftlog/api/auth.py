"""Auth API — registration, login, current user.

Learn: Routes for the user/token lifecycle:
- POST /users → create a new user account
- POST /tokens/authentication → username/password → bearer token (shown once!)
- GET /users/me → current user info (protected)
"""

import asyncio
from datetime import timedelta

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from liftlog.auth.credentials import CredentialVerifier
from liftlog.auth.dependencies import get_current_user
from liftlog.auth.identity import Authenticated
from liftlog.auth.password import hash_password
from liftlog.auth.tokens import TokenService
from liftlog.config import settings
from liftlog.db.engine import get_db
from liftlog.schemas.user import (
    AuthToken,
    AuthTokenEnvelope,
    TokenRequest,
    UserCreate,
    UserEnvelope,
)
from liftlog.stores.user_store import UserStore

logger = structlog.get_logger()

router = APIRouter()


# ─── Register ────────────────────────────────────────────


@router.post("/users", response_model=UserEnvelope, status_code=201)
async def register(body: UserCreate, db: AsyncSession = Depends(get_db)):
    """Create a new user account. 409 if username or email is taken."""
    user = await UserStore(db).create(
        username=body.username,
        email=body.email,
        password_hash=await asyncio.to_thread(hash_password, body.password),
        bio=body.bio,
    )
    return {"user": user}


# ─── Login ───────────────────────────────────────────────


@router.post(
    "/tokens/authentication", response_model=AuthTokenEnvelope, status_code=201
)
async def create_authentication_token(
    body: TokenRequest, db: AsyncSession = Depends(get_db)
):
    """Exchange username/password for a bearer token.

    Learn: The plaintext token is in this response and nowhere else;
    only its hash is stored. Lose it and you log in again.
    """
    users = UserStore(db)
    user = await CredentialVerifier(users).verify_credentials(
        body.username, body.password
    )

    plaintext, record = await TokenService(db, users=users).issue_token(
        user.id,
        ttl=timedelta(hours=settings.token_ttl_hours),
        scope=settings.token_scope,
    )
    return {
        "auth_token": AuthToken(
            token=plaintext,
            expiry=record.expiry,
            scope=record.scope,
        )
    }


# ─── Current user ───────────────────────────────────────


@router.get("/users/me", response_model=UserEnvelope)
async def get_me(caller: Authenticated = Depends(get_current_user)):
    """Get the current authenticated user's info."""
    return {"user": caller.user}
