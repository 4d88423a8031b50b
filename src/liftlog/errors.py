"""Error taxonomy shared by the auth, store, and API layers.

Each error carries the HTTP status it maps to and a generic public message.
The exception text (str(exc)) is for logs only; responses use
``public_message`` so query text and internal state never reach a client.

Token failures all share one public message, so callers cannot tell a
missing token from an expired or mis-scoped one.
"""

from typing import Optional


class LiftlogError(Exception):
    """Base class for all application errors."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str = "", *, public_message: Optional[str] = None):
        super().__init__(message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class ValidationError(LiftlogError):
    """Malformed input."""

    status_code = 400
    public_message = "Invalid request"


class AuthenticationError(LiftlogError):
    """Bad credentials or an unusable token."""

    status_code = 401
    public_message = "Invalid authentication credentials"


class TokenError(AuthenticationError):
    """Base for token validation failures."""

    public_message = "Invalid or missing authentication token"


class TokenNotFoundError(TokenError):
    """No stored token matches the presented value's hash."""


class TokenExpiredError(TokenError):
    """The token's expiry has passed."""


class ScopeMismatchError(TokenError):
    """The token was issued for a different scope."""


class OrphanedTokenError(TokenError):
    """The token's user no longer exists."""


class AuthorizationError(LiftlogError):
    """Valid identity, insufficient ownership."""

    status_code = 403
    public_message = "You are not authorized to perform this action"


class UnauthenticatedError(AuthorizationError):
    """Anonymous caller on a protected operation."""

    status_code = 401
    public_message = "You must be logged in"


class NotFoundError(LiftlogError):
    status_code = 404
    public_message = "Resource not found"


class ConflictError(LiftlogError):
    status_code = 409
    public_message = "Resource already exists"


class StorageError(LiftlogError):
    """Transaction or connection failure.

    ``transient`` marks lock contention, deadlocks, and serialization
    failures, which callers may retry.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "",
        *,
        transient: bool = False,
        public_message: Optional[str] = None,
    ):
        super().__init__(message, public_message=public_message)
        self.transient = transient
