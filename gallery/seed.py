"""
gallery/seed.py -- One-time population of baseline catalog data.

seed_initial_data() is idempotent; each group is gated on what already exists:
  artists  -- inserted only when no artist with the same name exists
  admin    -- inserted only when the admin username is not registered
  pictures -- inserted only when the pictures table is empty

Called from the API lifespan (SEED_ON_STARTUP) and from `python main.py seed`.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass

from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import hash_password
from gallery.models import Artist, Picture
from gallery.store import GalleryStore

logger = logging.getLogger("gallery.seed")

# ---------------------------------------------------------------------------
# Baseline data
# ---------------------------------------------------------------------------

SEED_ARTISTS = (
    Artist(
        name="Vincent van Gogh",
        bio="Dutch Post-Impressionist painter",
        birth_date="1853-03-30",
        death_date="1890-07-29",
        nationality="Dutch",
    ),
    Artist(
        name="Leonardo da Vinci",
        bio="Italian painter, scientist and inventor",
        birth_date="1452-04-15",
        death_date="1519-05-02",
        nationality="Italian",
    ),
    Artist(
        name="Pablo Picasso",
        bio="Spanish painter, sculptor, printmaker, ceramicist and designer",
        birth_date="1881-10-25",
        death_date="1973-04-08",
        nationality="Spanish",
    ),
)

# (artist name, picture fields). user_id and artist_id are resolved at seed time.
SEED_PICTURES = (
    (
        "Vincent van Gogh",
        dict(
            title="The Starry Night",
            year=1889,
            description="The view from the east-facing window of his asylum room at Saint-Remy-de-Provence",
            image_url=(
                "https://upload.wikimedia.org/wikipedia/commons/thumb/e/ea/"
                "Van_Gogh_-_Starry_Night_-_Google_Art_Project.jpg/"
                "800px-Van_Gogh_-_Starry_Night_-_Google_Art_Project.jpg"
            ),
            style="Post-Impressionism",
            price=1000000.00,
            size="73.7 x 92.1 cm",
        ),
    ),
    (
        "Leonardo da Vinci",
        dict(
            title="Mona Lisa",
            year=1503,
            description="Portrait of Lisa del Giocondo",
            image_url=(
                "https://upload.wikimedia.org/wikipedia/commons/thumb/e/ec/"
                "Mona_Lisa%2C_by_Leonardo_da_Vinci%2C_from_C2RMF_retouched.jpg/"
                "800px-Mona_Lisa%2C_by_Leonardo_da_Vinci%2C_from_C2RMF_retouched.jpg"
            ),
            style="Renaissance",
            price=8600000.00,
            size="77 x 53 cm",
        ),
    ),
    (
        "Pablo Picasso",
        dict(
            title="Les Demoiselles d'Avignon",
            year=1907,
            description="A key work in the development of Cubism",
            image_url=(
                "https://upload.wikimedia.org/wikipedia/en/thumb/4/4c/"
                "Les_Demoiselles_d%27Avignon.jpg/800px-Les_Demoiselles_d%27Avignon.jpg"
            ),
            style="Cubism",
            price=3500000.00,
            size="243.9 x 233.7 cm",
        ),
    ),
)


@dataclass(frozen=True)
class SeedReport:
    artists_created: int
    admin_created: bool
    pictures_created: int

    @property
    def changed(self) -> bool:
        return bool(self.artists_created or self.admin_created or self.pictures_created)


def seed_initial_data(
    user_store: UserStore,
    gallery_store: GalleryStore,
    admin_username: str,
    admin_password: str = "",
) -> SeedReport:
    """Insert the baseline artists, admin account and pictures where missing.

    If admin_password is empty and the admin has to be created, a random
    password is generated and logged once at WARNING level.

    An existing non-admin account under admin_username is left alone and the
    seed pictures are skipped, with a warning.

    Storage errors propagate; callers decide whether startup continues.
    """
    artist_ids: dict[str, int] = {}
    artists_created = 0
    for artist in SEED_ARTISTS:
        existing = gallery_store.get_artist_by_name(artist.name)
        if existing is not None:
            artist_ids[artist.name] = existing.id
            continue
        artist_ids[artist.name] = gallery_store.create_artist(artist)
        artists_created += 1

    admin_created = False
    admin = user_store.get_by_username(admin_username)
    if admin is None:
        password = admin_password
        if not password:
            password = secrets.token_urlsafe(12)
            logger.warning("Generated password for seeded admin %r: %s", admin_username, password)
        admin_id = user_store.create_user(
            User(username=admin_username, hashed_password=hash_password(password), role=Role.admin)
        )
        if admin_id is None:
            # Registered concurrently under the same name.
            admin = user_store.get_by_username(admin_username)
            admin_id = admin.id
        else:
            admin_created = True
            logger.info("Seeded admin account %r", admin_username)
    else:
        admin_id = admin.id

    if admin is not None and admin.role is not Role.admin:
        logger.warning(
            "Seed admin %r exists with role %r; seed pictures are not assigned to it",
            admin_username,
            admin.role.value,
        )
        admin_id = None

    pictures_created = 0
    if admin_id is not None and gallery_store.count_pictures() == 0:
        for artist_name, fields in SEED_PICTURES:
            gallery_store.create_picture(
                Picture(
                    artist=artist_name,
                    artist_id=artist_ids[artist_name],
                    user_id=admin_id,
                    **fields,
                )
            )
            pictures_created += 1

    report = SeedReport(
        artists_created=artists_created,
        admin_created=admin_created,
        pictures_created=pictures_created,
    )
    if report.changed:
        logger.info(
            "Seed complete: %d artists, admin %s, %d pictures",
            artists_created,
            "created" if admin_created else "existing",
            pictures_created,
        )
    else:
        logger.info("Seed data already present, nothing to do")
    return report
