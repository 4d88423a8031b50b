"""Pydantic schemas for users and auth tokens."""

from datetime import datetime

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=72)
    bio: str = Field(default="", max_length=2000)


class UserRead(BaseModel):
    id: int
    username: str
    email: str
    bio: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserEnvelope(BaseModel):
    user: UserRead


class TokenRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AuthToken(BaseModel):
    """Returned once at issuance. The token is not retrievable later."""
    token: str
    expiry: datetime
    scope: str
    token_type: str = "bearer"


class AuthTokenEnvelope(BaseModel):
    auth_token: AuthToken
