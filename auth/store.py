"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
UserStore (the credential store) and SessionStore are the repositories;
_row_to_user / _row_to_session are the mappers. Service and dependency code
never touches SQL directly.

Both stores receive the Engine from their caller rather than building one, so
the API lifespan, the CLI, and the tests each decide which database is used.

Security:
  All queries use bound parameters. No f-strings in SQL.
  The sessions table stores only the HMAC of each token (see auth/tokens.py).

Duplicate usernames are reported as a return value (create_user -> None), not
as an IntegrityError crossing into the service layer.

Layer rule: no imports from api/, web/, or gallery/.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Role, Session, User
from auth.tokens import generate_session_token, hash_session_token
from core.db import metadata

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

users_table = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(30), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(10), nullable=False, server_default=Role.user.value),
    Column("created_at", String(32), nullable=False),
)

sessions_table = Table(
    "sessions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("token_hash", String(64), nullable=False, unique=True),  # HMAC-SHA256 hex
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("username", String(30), nullable=False),
    Column("role", String(10), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("expires_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _now_iso() -> str:
    return _now().isoformat()


# ---------------------------------------------------------------------------
# Credential store
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore(create_db_engine("sqlite:///gallery.db"))
        user_id = store.create_user(User(username="alice", hashed_password=hash_password("pw")))
        user = store.get_by_username("alice")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    def create_user(self, user: User) -> int | None:
        """Insert a new user and return its assigned id.

        Returns None when the username is already taken. The unique index is
        the final arbiter, so two concurrent registrations for the same name
        cannot both succeed.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    users_table.insert().values(
                        username=user.username,
                        hashed_password=user.hashed_password,
                        role=user.role.value,
                        created_at=user.created_at or _now_iso(),
                    )
                )
                conn.commit()
        except IntegrityError:
            return None
        return result.inserted_primary_key[0]

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(users_table.select().where(users_table.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(users_table.select().where(users_table.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(users_table)).scalar()
        return result or 0


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


class SessionStore:
    """Repository for server-side sessions keyed by (hashed) opaque token.

    Expiry is enforced on read: get() deletes an expired row and reports no
    session. purge_expired() trims rows nobody asked for again.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    def create(self, user_id: int, username: str, role: Role, ttl_seconds: int) -> Session:
        """Persist a new session for the user and return it with its raw token.

        The raw token is not recoverable after this call returns.
        """
        token = generate_session_token()
        now = _now()
        expires_at = now + timedelta(seconds=ttl_seconds)
        with self.engine.connect() as conn:
            conn.execute(
                sessions_table.insert().values(
                    token_hash=hash_session_token(token),
                    user_id=user_id,
                    username=username,
                    role=role.value,
                    created_at=now.isoformat(),
                    expires_at=expires_at.isoformat(),
                )
            )
            conn.commit()
        return Session(token=token, user_id=user_id, username=username, role=role, expires_at=expires_at)

    def get(self, token: str) -> Session | None:
        """Return the live session for token, or None if unknown or expired."""
        token_hash = hash_session_token(token)
        with self.engine.connect() as conn:
            row = conn.execute(sessions_table.select().where(sessions_table.c.token_hash == token_hash)).fetchone()
        if row is None:
            return None
        session = _row_to_session(row, token)
        if session.expires_at <= _now():
            self._delete_hash(token_hash)
            return None
        return session

    def delete(self, token: str) -> bool:
        """Destroy the session for token. Returns True if a row was removed."""
        return self._delete_hash(hash_session_token(token))

    def purge_expired(self) -> int:
        """Delete all expired sessions. Returns number of rows removed.

        ISO-8601 UTC strings with identical offsets sort chronologically, so a
        string comparison is a time comparison here.
        """
        with self.engine.connect() as conn:
            result = conn.execute(sessions_table.delete().where(sessions_table.c.expires_at <= _now_iso()))
            conn.commit()
        return result.rowcount

    def _delete_hash(self, token_hash: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(sessions_table.delete().where(sessions_table.c.token_hash == token_hash))
            conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        role=Role(row.role),
        created_at=row.created_at,
    )


def _row_to_session(row, token: str) -> Session:
    return Session(
        token=token,
        user_id=row.user_id,
        username=row.username,
        role=Role(row.role),
        expires_at=datetime.fromisoformat(row.expires_at),
    )
