"""Unit tests for gallery/service.py -- the picture mutation protocol.

Exercises the paths the HTTP tests cannot reach deterministically:
- ownership changing between the authorization read and the write
- storage failures surfacing as a generic InternalError
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from auth.models import Role, Session
from auth.store import UserStore
from conftest import make_user
from core.errors import Forbidden, InternalError, NotFound, Unauthorized, ValidationError
from gallery.models import Picture
from gallery.service import GalleryService
from gallery.store import GalleryStore


def _session(user_id: int, username: str, role: Role = Role.user) -> Session:
    return Session(
        token="t",
        user_id=user_id,
        username=username,
        role=role,
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )


@pytest.fixture
def service(gallery_store: GalleryStore) -> GalleryService:
    return GalleryService(gallery_store)


@pytest.fixture
def alice(user_store: UserStore) -> Session:
    return _session(make_user(user_store, "alice"), "alice")


@pytest.fixture
def bob(user_store: UserStore) -> Session:
    return _session(make_user(user_store, "bob"), "bob")


def test_create_requires_session(service: GalleryService, gallery_store: GalleryStore):
    with pytest.raises(Unauthorized):
        service.create_picture(None, {"title": "T", "image_url": "http://x"})
    assert gallery_store.count_pictures() == 0


def test_create_sets_owner_and_ignores_unknown_keys(service: GalleryService, alice: Session):
    detail = service.create_picture(alice, {"title": "T", "image_url": "http://x", "user_id": 999, "bogus": 1})
    assert detail.picture.user_id == alice.user_id
    assert detail.owner_username == "alice"


def test_create_negative_price(service: GalleryService, alice: Session):
    with pytest.raises(ValidationError):
        service.create_picture(alice, {"title": "T", "image_url": "http://x", "price": -0.01})


def test_update_order_of_checks(service: GalleryService, alice: Session, bob: Session):
    pid = service.create_picture(alice, {"title": "T", "image_url": "http://x"}).picture.id
    with pytest.raises(Unauthorized):
        service.update_picture(None, pid, {"title": "x"})
    with pytest.raises(NotFound):
        service.update_picture(bob, pid + 1000, {"title": "x"})
    with pytest.raises(Forbidden):
        service.update_picture(bob, pid, {"title": ""})


def test_ownership_change_between_read_and_write_is_not_found(
    service: GalleryService, gallery_store: GalleryStore, alice: Session, bob: Session, monkeypatch
):
    pid = service.create_picture(alice, {"title": "T", "image_url": "http://x"}).picture.id
    # The authorization read sees a stale row claiming bob owns the picture;
    # the conditional write still checks the real owner and matches nothing.
    stale = Picture(id=pid, title="T", image_url="http://x", user_id=bob.user_id)
    monkeypatch.setattr(gallery_store, "get_picture", lambda picture_id: stale)

    with pytest.raises(NotFound):
        service.update_picture(bob, pid, {"title": "Stolen"})
    with pytest.raises(NotFound):
        service.delete_picture(bob, pid)
    assert gallery_store.get_picture_detail(pid).picture.title == "T"


def test_admin_write_is_unscoped(service: GalleryService, user_store: UserStore, alice: Session):
    admin = _session(make_user(user_store, "curator", role=Role.admin), "curator", Role.admin)
    pid = service.create_picture(alice, {"title": "T", "image_url": "http://x"}).picture.id
    detail = service.update_picture(admin, pid, {"title": "Curated"})
    assert detail.picture.title == "Curated"
    assert detail.picture.user_id == alice.user_id
    assert service.delete_picture(admin, pid) == "Picture deleted successfully."


def test_storage_failure_is_generic_internal_error(alice: Session):
    store = MagicMock()
    store.list_picture_details.side_effect = OperationalError("SELECT", {}, Exception("no such table: pictures"))
    store.create_picture.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))
    store.get_artist.return_value = None
    service = GalleryService(store)

    with pytest.raises(InternalError) as exc:
        service.list_pictures()
    assert exc.value.message == "Internal server error"
    assert "pictures" not in exc.value.message

    with pytest.raises(InternalError):
        service.create_picture(alice, {"title": "T", "image_url": "http://x"})
