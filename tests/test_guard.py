"""Unit tests for auth/guard.py -- the authorization predicates.

Pure functions over Session; no database or HTTP involved.
"""

from datetime import datetime, timedelta, timezone

import pytest

from auth.guard import (
    is_owner_or_admin,
    ownership_scope,
    require_authenticated,
    require_owner_or_admin,
    require_role,
)
from auth.models import Role, Session
from core.errors import Forbidden, Unauthorized


def _session(user_id: int, role: Role = Role.user) -> Session:
    return Session(
        token="t",
        user_id=user_id,
        username=f"user{user_id}",
        role=role,
        expires_at=datetime.now(timezone.utc) + timedelta(days=1),
    )


def test_require_authenticated_rejects_none():
    with pytest.raises(Unauthorized):
        require_authenticated(None)


def test_require_authenticated_returns_session():
    s = _session(1)
    assert require_authenticated(s) is s


def test_require_role():
    assert require_role(_session(1, Role.admin), Role.admin).user_id == 1
    with pytest.raises(Forbidden):
        require_role(_session(1), Role.admin)
    with pytest.raises(Unauthorized):
        require_role(None, Role.admin)


@pytest.mark.parametrize(
    "session, owner_id, allowed",
    [
        (_session(1), 1, True),
        (_session(1), 2, False),
        (_session(9, Role.admin), 2, True),
        (_session(2, Role.admin), 2, True),
    ],
)
def test_owner_or_admin(session, owner_id, allowed):
    assert is_owner_or_admin(session, owner_id) is allowed
    if allowed:
        assert require_owner_or_admin(session, owner_id) is session
    else:
        with pytest.raises(Forbidden):
            require_owner_or_admin(session, owner_id)


def test_owner_or_admin_requires_session():
    with pytest.raises(Unauthorized):
        require_owner_or_admin(None, 1)


def test_ownership_scope():
    assert ownership_scope(_session(5)) == 5
    assert ownership_scope(_session(5, Role.admin)) is None
