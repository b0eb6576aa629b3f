"""Unit tests for gallery/seed.py -- idempotent baseline data."""

from auth.models import Role
from auth.store import UserStore
from auth.tokens import verify_password
from conftest import make_user
from gallery.seed import seed_initial_data
from gallery.store import GalleryStore


def test_first_run_creates_everything(user_store: UserStore, gallery_store: GalleryStore):
    report = seed_initial_data(user_store, gallery_store, admin_username="Admin", admin_password="s3cret-pass")
    assert report.artists_created == 3
    assert report.admin_created is True
    assert report.pictures_created == 3

    admin = user_store.get_by_username("Admin")
    assert admin.role is Role.admin
    assert verify_password("s3cret-pass", admin.hashed_password)

    details = gallery_store.list_picture_details()
    assert {d.picture.title for d in details} == {"The Starry Night", "Mona Lisa", "Les Demoiselles d'Avignon"}
    for d in details:
        assert d.owner_username == "Admin"
        assert d.artist_info is not None
        assert d.artist_info.name == d.picture.artist


def test_second_run_creates_nothing(user_store: UserStore, gallery_store: GalleryStore):
    seed_initial_data(user_store, gallery_store, admin_username="Admin", admin_password="pw")
    report = seed_initial_data(user_store, gallery_store, admin_username="Admin", admin_password="pw")
    assert report.changed is False
    assert gallery_store.count_artists() == 3
    assert gallery_store.count_pictures() == 3
    assert user_store.count_users() == 1


def test_existing_admin_and_pictures_are_respected(user_store: UserStore, gallery_store: GalleryStore):
    owner = make_user(user_store, "Admin", role=Role.admin)
    report = seed_initial_data(user_store, gallery_store, admin_username="Admin")
    assert report.admin_created is False
    assert all(d.picture.user_id == owner for d in gallery_store.list_picture_details())


def test_generated_password_when_none_given(user_store: UserStore, gallery_store: GalleryStore, caplog):
    with caplog.at_level("WARNING", logger="gallery.seed"):
        seed_initial_data(user_store, gallery_store, admin_username="Admin", admin_password="")
    assert "Generated password for seeded admin" in caplog.text
    assert user_store.get_by_username("Admin") is not None


def test_non_admin_account_under_admin_name_gets_no_pictures(
    user_store: UserStore, gallery_store: GalleryStore, caplog
):
    make_user(user_store, "Admin", role=Role.user)
    with caplog.at_level("WARNING", logger="gallery.seed"):
        report = seed_initial_data(user_store, gallery_store, admin_username="Admin", admin_password="pw")
    assert report.admin_created is False
    assert report.pictures_created == 0
    assert gallery_store.count_pictures() == 0
    assert user_store.get_by_username("Admin").role is Role.user
    assert "seed pictures are not assigned" in caplog.text
