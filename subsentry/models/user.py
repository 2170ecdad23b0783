"""User directory and session models."""

from datetime import datetime
from uuid import uuid4

from pydantic import Field

from subsentry.models.base import CamelModel, utc_now


class User(CamelModel):
    """
    A registered user.

    The email is the identity key (exact, case-sensitive match); id is an
    opaque handle used to build the user's storage key.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
    )
    email: str = Field(
        ...,
        min_length=1,
        max_length=320,
    )
    password_hash: str = Field(
        ...,
        min_length=1,
        description="Unsalted SHA-256 hex digest"
    )
    created_at: datetime = Field(default_factory=utc_now)

    def profile(self) -> "UserProfile":
        """The user as shown to the UI, without the password hash."""
        return UserProfile(id=self.id, email=self.email, created_at=self.created_at)


class UserProfile(CamelModel):
    """Public view of a User."""

    id: str
    email: str
    created_at: datetime


class Session(CamelModel):
    """The single active (user_id, token) pair for this process."""

    user_id: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=utc_now)
