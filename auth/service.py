"""
auth/service.py -- Register / login / logout and session resolution.

AuthService is the only component that writes sessions. Route handlers pass it
the raw cookie token and get typed results back; they never see stores.

Error policy:
  Domain failures raise core.errors exceptions (ValidationError, ConflictError,
  AuthError). Storage failures in register/login/resolve propagate to the
  catch-all handler (generic 500). logout() converts them to InternalError;
  current_session() never raises at all.

Layer rule: no imports from api/, web/, or gallery/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from auth.models import AuthenticatedUser, Role, Session, SessionState, User
from auth.store import SessionStore, UserStore
from auth.tokens import authenticate_user, hash_password
from core.errors import AuthError, ConflictError, InternalError, ValidationError

logger = logging.getLogger("gallery.auth")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30

_MISSING_CREDENTIALS = "Username and password are required."


class AuthService:
    def __init__(self, user_store: UserStore, session_store: SessionStore, session_ttl_seconds: int) -> None:
        self.user_store = user_store
        self.session_store = session_store
        self.session_ttl_seconds = session_ttl_seconds

    def register(self, username: str | None, password: str | None) -> tuple[AuthenticatedUser, Session]:
        """Create a role=user account and log it in.

        Raises:
            ValidationError: username or password missing, or username length
                outside 3..30 after trimming.
            ConflictError: the username is already registered.
        """
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError(_MISSING_CREDENTIALS)
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            raise ValidationError(
                f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters."
            )
        if self.user_store.get_by_username(username) is not None:
            raise ConflictError()

        user_id = self.user_store.create_user(
            User(username=username, hashed_password=hash_password(password), role=Role.user)
        )
        if user_id is None:
            # Lost a race against a concurrent registration for the same name.
            raise ConflictError()

        logger.info("Registered user %s (id=%d)", username, user_id)
        identity = AuthenticatedUser(id=user_id, username=username, role=Role.user)
        return identity, self._open_session(identity)

    def login(self, username: str | None, password: str | None) -> tuple[AuthenticatedUser, Session]:
        """Verify credentials and open a new session.

        Raises:
            ValidationError: username or password missing.
            AuthError: unknown username or wrong password (indistinguishable).
        """
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError(_MISSING_CREDENTIALS)
        user = authenticate_user(self.user_store, username, password)
        if user is None:
            logger.info("Failed login for %r", username)
            raise AuthError()
        identity = AuthenticatedUser(id=user.id, username=user.username, role=user.role)
        return identity, self._open_session(identity)

    def logout(self, token: str | None) -> str:
        """Destroy the session behind token. Idempotent.

        Returns a confirmation message; a missing session is not an error.
        """
        if not token:
            return "No active session."
        try:
            removed = self.session_store.delete(token)
        except SQLAlchemyError as exc:
            logger.exception("Failed to destroy session")
            raise InternalError("Failed to log out.") from exc
        return "Logged out successfully." if removed else "No active session."

    def resolve_session(self, token: str | None) -> Session | None:
        """Return the live Session for token, or None."""
        if not token:
            return None
        return self.session_store.get(token)

    def current_session(self, token: str | None) -> SessionState:
        try:
            session = self.resolve_session(token)
        except SQLAlchemyError:
            logger.exception("Session lookup failed; reporting unauthenticated")
            session = None
        if session is None:
            return SessionState(is_authenticated=False)
        return SessionState(
            is_authenticated=True,
            user_id=session.user_id,
            username=session.username,
            role=session.role,
        )

    def _open_session(self, identity: AuthenticatedUser) -> Session:
        return self.session_store.create(
            user_id=identity.id,
            username=identity.username,
            role=identity.role,
            ttl_seconds=self.session_ttl_seconds,
        )
