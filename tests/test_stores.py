"""Unit tests for auth/store.py and gallery/store.py.

Covers:
- UserStore duplicate usernames reported as None
- SessionStore expiry on read, delete, purge_expired, token hashing at rest
- GalleryStore conditional (owner-scoped) update/delete
- exhibitions keep picture order; deleting a picture drops its links
- user summaries with picture counts
"""

import pytest
from sqlalchemy import text

from auth.models import Role, User
from auth.store import SessionStore, UserStore
from conftest import make_user
from gallery.models import Artist, Exhibition, Picture
from gallery.store import GalleryStore

# ---------------------------------------------------------------------------
# Credential store
# ---------------------------------------------------------------------------


def test_create_user_duplicate_returns_none(user_store: UserStore):
    first = user_store.create_user(User(username="alice", hashed_password="h"))
    assert isinstance(first, int)
    assert user_store.create_user(User(username="alice", hashed_password="h2")) is None
    assert user_store.count_users() == 1


def test_user_lookup(user_store: UserStore):
    uid = make_user(user_store, "curator", role=Role.admin)
    by_name = user_store.get_by_username("curator")
    assert by_name.id == uid
    assert by_name.role is Role.admin
    assert user_store.get_by_id(uid).username == "curator"
    assert user_store.get_by_username("Curator") is None
    assert user_store.get_by_id(999) is None


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


def test_session_roundtrip_and_delete(user_store: UserStore, session_store: SessionStore):
    uid = make_user(user_store, "alice")
    session = session_store.create(uid, "alice", Role.user, ttl_seconds=3600)
    loaded = session_store.get(session.token)
    assert loaded == session
    assert session_store.delete(session.token) is True
    assert session_store.get(session.token) is None
    assert session_store.delete(session.token) is False


def test_raw_token_is_not_stored(engine, user_store: UserStore, session_store: SessionStore):
    uid = make_user(user_store, "alice")
    session = session_store.create(uid, "alice", Role.user, ttl_seconds=3600)
    with engine.connect() as conn:
        stored = conn.execute(text("SELECT token_hash FROM sessions")).scalar_one()
    assert stored != session.token
    assert len(stored) == 64


def test_expired_session_is_removed_on_read(engine, user_store: UserStore, session_store: SessionStore):
    uid = make_user(user_store, "alice")
    session = session_store.create(uid, "alice", Role.user, ttl_seconds=-1)
    assert session_store.get(session.token) is None
    with engine.connect() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM sessions")).scalar_one() == 0


def test_purge_expired(user_store: UserStore, session_store: SessionStore):
    uid = make_user(user_store, "alice")
    live = session_store.create(uid, "alice", Role.user, ttl_seconds=3600)
    session_store.create(uid, "alice", Role.user, ttl_seconds=-1)
    session_store.create(uid, "alice", Role.user, ttl_seconds=-10)
    assert session_store.purge_expired() == 2
    assert session_store.get(live.token) is not None


# ---------------------------------------------------------------------------
# Gallery store
# ---------------------------------------------------------------------------


@pytest.fixture
def owners(user_store: UserStore) -> tuple[int, int]:
    return make_user(user_store, "alice"), make_user(user_store, "bob")


def _picture(gallery_store: GalleryStore, user_id: int, title: str = "Untitled", **kw) -> int:
    picture = Picture(title=title, image_url="http://example.com/p.jpg", user_id=user_id, **kw)
    return gallery_store.create_picture(picture)


def test_picture_detail_enrichment(gallery_store: GalleryStore, owners):
    alice, _ = owners
    artist_id = gallery_store.create_artist(Artist(name="Claude Monet", nationality="French"))
    pid = _picture(gallery_store, alice, artist_id=artist_id, price=10.0)

    detail = gallery_store.get_picture_detail(pid)
    assert detail.picture.id == pid
    assert detail.picture.created_at
    assert detail.artist_info.name == "Claude Monet"
    assert detail.owner_username == "alice"
    assert gallery_store.get_picture_detail(999) is None


def test_conditional_update_respects_owner_scope(gallery_store: GalleryStore, owners):
    alice, bob = owners
    pid = _picture(gallery_store, alice)

    assert gallery_store.update_picture(pid, {"title": "By Bob"}, owner_scope=bob) is False
    assert gallery_store.get_picture(pid).title == "Untitled"

    assert gallery_store.update_picture(pid, {"title": "By Alice"}, owner_scope=alice) is True
    assert gallery_store.update_picture(pid, {"title": "By Admin"}, owner_scope=None) is True
    assert gallery_store.get_picture(pid).title == "By Admin"
    assert gallery_store.update_picture(999, {"title": "x"}) is False


def test_update_rejects_unknown_or_owner_fields(gallery_store: GalleryStore, owners):
    alice, bob = owners
    pid = _picture(gallery_store, alice)
    with pytest.raises(ValueError):
        gallery_store.update_picture(pid, {"user_id": bob})
    assert gallery_store.get_picture(pid).user_id == alice


def test_conditional_delete_respects_owner_scope(gallery_store: GalleryStore, owners):
    alice, bob = owners
    pid = _picture(gallery_store, alice)
    assert gallery_store.delete_picture(pid, owner_scope=bob) is False
    assert gallery_store.get_picture(pid) is not None
    assert gallery_store.delete_picture(pid, owner_scope=alice) is True
    assert gallery_store.get_picture(pid) is None
    assert gallery_store.delete_picture(pid) is False


def test_exhibition_keeps_order_and_drops_deleted_pictures(gallery_store: GalleryStore, owners):
    alice, _ = owners
    first = _picture(gallery_store, alice, "First")
    second = _picture(gallery_store, alice, "Second")
    third = _picture(gallery_store, alice, "Third")
    ex_id = gallery_store.create_exhibition(
        Exhibition(
            title="Spring Show",
            start_date="2026-03-01",
            end_date="2026-05-31",
            location="Hall A",
            picture_ids=[third, first, second],
        )
    )

    exhibition = gallery_store.get_exhibition(ex_id)
    assert exhibition.title == "Spring Show"
    assert exhibition.picture_ids == [third, first, second]

    gallery_store.delete_picture(first)
    assert gallery_store.get_exhibition(ex_id).picture_ids == [third, second]
    assert gallery_store.get_exhibition(999) is None


def test_artists_sorted_and_looked_up_by_name(gallery_store: GalleryStore):
    for name in ("Pablo Picasso", "Claude Monet"):
        gallery_store.create_artist(Artist(name=name))
    assert [a.name for a in gallery_store.list_artists()] == ["Claude Monet", "Pablo Picasso"]
    assert gallery_store.get_artist_by_name("Pablo Picasso") is not None
    assert gallery_store.get_artist_by_name("Frida Kahlo") is None
    assert gallery_store.count_artists() == 2


def test_user_summaries(gallery_store: GalleryStore, owners):
    alice, bob = owners
    _picture(gallery_store, bob)
    _picture(gallery_store, bob)
    summaries = gallery_store.list_user_summaries()
    assert [(s.id, s.username, s.picture_count) for s in summaries] == [(alice, "alice", 0), (bob, "bob", 2)]
