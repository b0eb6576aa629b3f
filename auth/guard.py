"""
auth/guard.py -- The authorization gate for every mutating operation.

Pure functions over the typed Session. They raise core.errors exceptions and
know nothing about HTTP, so the same checks back the FastAPI dependencies,
the gallery service, and the unit tests.

Every ownership decision in the codebase goes through require_owner_or_admin()
or ownership_scope(); create/update/delete paths never compare ids inline.

Layer rule: no imports from api/, web/, or gallery/.
"""

from __future__ import annotations

from auth.models import Role, Session
from core.errors import Forbidden, Unauthorized


def require_authenticated(session: Session | None) -> Session:
    """Return the session, or raise Unauthorized if there is none."""
    if session is None:
        raise Unauthorized()
    return session


def require_role(session: Session | None, role: Role) -> Session:
    """Require an authenticated session holding exactly `role`."""
    session = require_authenticated(session)
    if session.role is not role:
        raise Forbidden(f"Insufficient permissions. Required role: {role.value}")
    return session


def is_owner_or_admin(session: Session, owner_id: int) -> bool:
    if session.role is Role.admin:
        return True
    return session.user_id == owner_id


def require_owner_or_admin(session: Session | None, owner_id: int) -> Session:
    """Allow admins, and users acting on a resource they own."""
    session = require_authenticated(session)
    if not is_owner_or_admin(session, owner_id):
        raise Forbidden()
    return session


def ownership_scope(session: Session) -> int | None:
    """Return the owner id a conditional write must be restricted to.

    None means unrestricted (admin). Stores append `AND user_id = :scope` when
    a scope is given, so the ownership predicate and the write are a single
    statement.
    """
    if session.role is Role.admin:
        return None
    return session.user_id
