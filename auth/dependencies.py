"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The session is resolved from one place only: the opaque token in the session
cookie, looked up through AuthService on app.state.

try_get_current_session() is the soft variant (returns None when anonymous).
get_current_session() wraps it and raises Unauthorized (401).
require_admin() wraps get_current_session() and raises Forbidden (403).

The decisions themselves live in auth/guard.py; this module only adapts them
to FastAPI's dependency injection.

Layer rule: no imports from api/, web/, or gallery/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.guard import require_authenticated, require_role
from auth.models import Role, Session
from auth.service import AuthService
from auth.tokens import read_session_cookie


def try_get_current_session(request: Request) -> Session | None:
    """Return the caller's live Session, or None when anonymous.

    Storage failures propagate -- a broken session store must surface as a
    500, not silently downgrade the caller to anonymous.
    """
    auth_service: AuthService = request.app.state.auth_service
    return auth_service.resolve_session(read_session_cookie(request))


def get_current_session(request: Request) -> Session:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.post("/protected")
        def route(session: Session = Depends(get_current_session)): ...
    """
    return require_authenticated(try_get_current_session(request))


def require_admin(request: Request) -> Session:
    """Require the admin role. 401 if unauthenticated, 403 if not admin."""
    return require_role(try_get_current_session(request), Role.admin)
