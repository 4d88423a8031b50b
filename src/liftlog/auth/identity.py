"""Caller identity — a tagged variant resolved once per request.

Learn: Identity is either ANONYMOUS or Authenticated(user). Both are
frozen, so nothing downstream can swap the caller mid-request. Code
checks the variant with isinstance() or is_authenticated, never
`is None` and never by comparing objects for identity.
"""

from dataclasses import dataclass
from typing import ClassVar, Union

from liftlog.db.models import User
from liftlog.errors import UnauthenticatedError


@dataclass(frozen=True)
class Anonymous:
    """No usable credential was presented."""

    is_authenticated: ClassVar[bool] = False


@dataclass(frozen=True)
class Authenticated:
    """A caller whose bearer token resolved to a user."""

    user: User
    is_authenticated: ClassVar[bool] = True

    @property
    def user_id(self) -> int:
        return self.user.id


Identity = Union[Anonymous, Authenticated]

# The one Anonymous value; equality (not identity) is what matters
ANONYMOUS = Anonymous()


def require_authenticated(identity: Identity) -> Authenticated:
    """Return the Authenticated variant or raise UnauthenticatedError."""
    if isinstance(identity, Authenticated):
        return identity
    if isinstance(identity, Anonymous):
        raise UnauthenticatedError("anonymous caller on protected operation")
    raise TypeError(f"unknown identity variant: {type(identity).__name__}")
