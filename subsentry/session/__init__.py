"""Session management package."""

from subsentry.session.manager import (
    DuplicateEmailError,
    InvalidCredentialsError,
    MissingCredentialsError,
    SessionError,
    SessionManager,
    SessionState,
    hash_password,
)

__all__ = [
    "DuplicateEmailError",
    "InvalidCredentialsError",
    "MissingCredentialsError",
    "SessionError",
    "SessionManager",
    "SessionState",
    "hash_password",
]
