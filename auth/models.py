"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; these only fix the shape.

Layer rule: no imports from api/, web/, or gallery/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Closed set of roles. Authorization code branches on it explicitly."""

    user = "user"
    admin = "admin"


@dataclass
class User:
    """A registered account.

    hashed_password is a bcrypt hash and never leaves the auth layer --
    AuthenticatedUser is the shape returned to callers.
    """

    username: str
    hashed_password: str
    role: Role = Role.user
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class AuthenticatedUser:
    """Public identity returned by register and login."""

    id: int
    username: str
    role: Role


@dataclass(frozen=True)
class Session:
    """Server-held proof that a user is authenticated.

    token is the raw opaque value carried by the client cookie. Only its HMAC
    is persisted, so the raw token exists solely in memory for the duration of
    one request (or once, in the response that sets the cookie).
    """

    token: str
    user_id: int
    username: str
    role: Role
    expires_at: datetime


@dataclass(frozen=True)
class SessionState:
    """Answer to "who is calling?" -- never an error, possibly anonymous."""

    is_authenticated: bool
    user_id: int | None = None
    username: str | None = None
    role: Role | None = None
