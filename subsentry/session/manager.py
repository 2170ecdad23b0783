"""
Session Manager

Maps an email/password to a User in the directory stored under "users",
and keeps the single active session token under "session".

States:
    anonymous -> authenticating -> authenticated -> anonymous (logout)
                 authenticating -> anonymous (failure)

NOTE: Password hashing here is deliberately naive (unsalted SHA-256).
Authentication security is out of scope for this app.
"""

import hashlib
import hmac
import json
import secrets
from enum import Enum
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from subsentry.audit import AuditLogger
from subsentry.models.user import Session, User
from subsentry.services.storage import (
    SESSION_KEY,
    USERS_KEY,
    CorruptDataError,
    KeyValueStore,
    StorageError,
)


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class SessionError(Exception):
    """Base exception for session operations."""
    pass


class MissingCredentialsError(SessionError):
    """Email or password left blank."""

    def __init__(self):
        super().__init__("Email and password are required.")


class DuplicateEmailError(SessionError):
    """An account with this email already exists."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"An account with {email} already exists.")


class InvalidCredentialsError(SessionError):
    """No user matches this email + password."""

    def __init__(self):
        super().__init__("Invalid email or password.")


def hash_password(password: str) -> str:
    """Naive unsalted SHA-256 hex digest."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class SessionManager:
    """
    Signup / login / restore / logout against the stored user directory.

    At most one session is active per process. Any failure during an
    auth operation leaves the manager anonymous.
    """

    def __init__(
        self,
        store: KeyValueStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._state = SessionState.ANONYMOUS
        self._user: Optional[User] = None
        self._session: Optional[Session] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._state == SessionState.AUTHENTICATED

    # =========================================================================
    # AUTH OPERATIONS
    # =========================================================================

    async def signup(self, email: str, password: str) -> User:
        """
        Create an account and log it in. Any current session is logged
        out first.

        Raises:
            MissingCredentialsError: blank email or password
            DuplicateEmailError: email already registered (directory untouched)
            StorageError: directory or session could not be persisted
        """
        email = self._require_credentials(email, password)
        await self._end_current_session()
        self._begin()
        try:
            users = await self._load_users()
            if any(user.email == email for user in users):
                if self._audit_logger:
                    self._audit_logger.log_signup_rejected(email, "duplicate email")
                raise DuplicateEmailError(email)

            user = User(email=email, password_hash=hash_password(password))
            await self._write(USERS_KEY, self._encode_users(users + [user]))
            await self._start_session(user)
        except Exception:
            self._reset()
            raise

        if self._audit_logger:
            self._audit_logger.log_signed_up(user.id, user.email)
        return user

    async def login(self, email: str, password: str) -> User:
        """
        Raises:
            MissingCredentialsError: blank email or password
            InvalidCredentialsError: no user matches email + password
            StorageError: directory unreadable or session not persisted
        """
        email = self._require_credentials(email, password)
        await self._end_current_session()
        self._begin()
        try:
            users = await self._load_users()
            password_hash = hash_password(password)
            user = next(
                (
                    u for u in users
                    if u.email == email and hmac.compare_digest(u.password_hash, password_hash)
                ),
                None,
            )
            if user is None:
                if self._audit_logger:
                    self._audit_logger.log_login_failed(email)
                raise InvalidCredentialsError()

            await self._start_session(user)
        except Exception:
            self._reset()
            raise

        if self._audit_logger:
            self._audit_logger.log_logged_in(user.id, user.email)
        return user

    async def restore_session(self) -> Optional[User]:
        """
        Resume the session persisted by a previous run, if any.

        The password is not re-checked. A token that is malformed or points
        at an unknown user is ignored (anonymous, no exception).

        Raises:
            StorageError: the store could not be read; the in-memory session
                is discarded
        """
        self._begin()
        try:
            raw = await self._read(SESSION_KEY)
            if not raw:
                self._reset()
                return None

            try:
                session = Session.model_validate_json(raw)
            except PydanticValidationError:
                self._discard("session token is malformed")
                return None

            users = await self._load_users()
        except Exception:
            self._reset()
            raise

        user = next((u for u in users if u.id == session.user_id), None)
        if user is None:
            self._discard("session token refers to an unknown user")
            return None

        self._session = session
        self._user = user
        self._state = SessionState.AUTHENTICATED
        if self._audit_logger:
            self._audit_logger.log_session_restored(user.id)
        return user

    async def logout(self) -> None:
        """
        Delete the session token and go anonymous.

        Interactive confirmation is the caller's job. If the delete fails
        the session stays active and StorageError propagates.
        """
        user = self._user
        try:
            await self._store.delete(SESSION_KEY)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete session: {e}") from e

        self._reset()
        if self._audit_logger and user is not None:
            self._audit_logger.log_logged_out(user.id)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @staticmethod
    def _require_credentials(email: str, password: str) -> str:
        email = (email or "").strip()
        if not email or not password:
            raise MissingCredentialsError()
        return email

    async def _end_current_session(self) -> None:
        """
        Log out an already authenticated user before signup/login.

        The stored token is deleted first, so a failed attempt can never
        leave the previous user's token behind for restore_session().
        """
        if self._state == SessionState.AUTHENTICATED:
            await self.logout()

    def _begin(self) -> None:
        self._state = SessionState.AUTHENTICATING
        self._user = None
        self._session = None

    def _reset(self) -> None:
        self._state = SessionState.ANONYMOUS
        self._user = None
        self._session = None

    def _discard(self, reason: str) -> None:
        self._reset()
        if self._audit_logger:
            self._audit_logger.log_session_discarded(reason)

    async def _start_session(self, user: User) -> None:
        session = Session(user_id=user.id, token=secrets.token_urlsafe(32))
        await self._write(SESSION_KEY, json.dumps(session.to_storage_dict()))
        self._session = session
        self._user = user
        self._state = SessionState.AUTHENTICATED

    async def _load_users(self) -> list[User]:
        raw = await self._read(USERS_KEY)
        if not raw:
            return []
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("expected a JSON list")
            return [User.model_validate(item) for item in items]
        except ValueError as e:
            raise CorruptDataError(f"Stored user directory is unreadable: {e}")

    @staticmethod
    def _encode_users(users: list[User]) -> str:
        return json.dumps([user.to_storage_dict() for user in users], ensure_ascii=False)

    async def _read(self, key: str) -> Optional[str]:
        try:
            return await self._store.get(key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e

    async def _write(self, key: str, value: str) -> None:
        try:
            await self._store.set(key, value)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write '{key}': {e}") from e
