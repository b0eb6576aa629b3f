"""
gallery/store.py -- SQLAlchemy-backed persistence for artists, pictures, and exhibitions.

Uses SQLAlchemy Core (not ORM) so the dataclasses in gallery/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. GalleryStore is the repository; the
_row_to_* functions are the mappers. Services never touch SQL directly.

Ownership-scoped writes:
  update_picture() and delete_picture() take an owner_scope. When it is not
  None the statement carries `AND user_id = :owner_scope`, so the ownership
  predicate is evaluated by the database in the same statement as the write.
  The return value says whether a row was affected; the caller decides what
  an unaffected row means.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = GalleryStore(create_db_engine("sqlite:///gallery.db"))
    artist_id = store.create_artist(Artist(name="Vincent van Gogh"))
    picture_id = store.create_picture(Picture(title="...", image_url="...", user_id=1))
    detail = store.get_picture_detail(picture_id)
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    func,
    select,
)
from sqlalchemy.engine import Engine

from auth.store import users_table
from core.db import metadata
from gallery.models import Artist, Exhibition, Picture, PictureDetail, UserSummary

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_artists = Table(
    "artists",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("bio", Text, nullable=False, server_default=""),
    Column("birth_date", String(10)),  # YYYY-MM-DD
    Column("death_date", String(10)),  # YYYY-MM-DD
    Column("nationality", String(100), nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_pictures = Table(
    "pictures",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("artist", String(255), nullable=False, server_default=""),
    Column("artist_id", Integer, ForeignKey("artists.id")),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("year", Integer),
    Column("description", Text, nullable=False, server_default=""),
    Column("image_url", Text, nullable=False),
    Column("style", String(100), nullable=False, server_default=""),
    Column("price", Float),
    Column("size", String(100), nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    CheckConstraint("price IS NULL OR price >= 0", name="ck_pictures_price_non_negative"),
)

_exhibitions = Table(
    "exhibitions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("start_date", String(10), nullable=False),
    Column("end_date", String(10), nullable=False),
    Column("location", String(255), nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
)

_exhibition_pictures = Table(
    "exhibition_pictures",
    metadata,
    Column("exhibition_id", Integer, ForeignKey("exhibitions.id", ondelete="CASCADE"), primary_key=True),
    Column("picture_id", Integer, ForeignKey("pictures.id", ondelete="CASCADE"), primary_key=True),
    Column("position", Integer, nullable=False),
)

# Columns a picture update may touch. user_id is deliberately absent.
_UPDATABLE_PICTURE_FIELDS = frozenset(
    {"title", "artist", "artist_id", "year", "description", "image_url", "style", "price", "size"}
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _picture_detail_query():
    """SELECT pictures + artist (a_* labels) + owner username.

    Artist columns are labelled with an a_ prefix because pictures already has
    id/created_at/updated_at and an artist_id column of its own.
    """
    return select(
        _pictures,
        _artists.c.id.label("a_id"),
        _artists.c.name.label("a_name"),
        _artists.c.bio.label("a_bio"),
        _artists.c.birth_date.label("a_birth_date"),
        _artists.c.death_date.label("a_death_date"),
        _artists.c.nationality.label("a_nationality"),
        _artists.c.created_at.label("a_created_at"),
        _artists.c.updated_at.label("a_updated_at"),
        users_table.c.username.label("owner_username"),
    ).select_from(
        _pictures.outerjoin(_artists, _pictures.c.artist_id == _artists.c.id).outerjoin(
            users_table, _pictures.c.user_id == users_table.c.id
        )
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class GalleryStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Artists
    # ------------------------------------------------------------------

    def create_artist(self, artist: Artist) -> int:
        """Insert a new artist and return its assigned database ID."""
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _artists.insert().values(
                    name=artist.name,
                    bio=artist.bio,
                    birth_date=artist.birth_date,
                    death_date=artist.death_date,
                    nationality=artist.nationality,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_artist(self, artist_id: int) -> Optional[Artist]:
        with self.engine.connect() as conn:
            row = conn.execute(_artists.select().where(_artists.c.id == artist_id)).fetchone()
        return _row_to_artist(row) if row is not None else None

    def get_artist_by_name(self, name: str) -> Optional[Artist]:
        """Return the first artist with exactly this name, if any."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _artists.select().where(_artists.c.name == name).order_by(_artists.c.id).limit(1)
            ).fetchone()
        return _row_to_artist(row) if row is not None else None

    def list_artists(self) -> list[Artist]:
        """Return all artists ordered by name (ties broken by id)."""
        with self.engine.connect() as conn:
            rows = conn.execute(_artists.select().order_by(_artists.c.name, _artists.c.id)).fetchall()
        return [_row_to_artist(r) for r in rows]

    def count_artists(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(_artists)).scalar() or 0

    # ------------------------------------------------------------------
    # Pictures
    # ------------------------------------------------------------------

    def create_picture(self, picture: Picture) -> int:
        """Insert a new picture and return its assigned database ID.

        created_at and updated_at are set here; any values on the dataclass
        are ignored.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _pictures.insert().values(
                    title=picture.title,
                    artist=picture.artist,
                    artist_id=picture.artist_id,
                    user_id=picture.user_id,
                    year=picture.year,
                    description=picture.description,
                    image_url=picture.image_url,
                    style=picture.style,
                    price=picture.price,
                    size=picture.size,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_picture(self, picture_id: int) -> Optional[Picture]:
        """Return the bare picture record (no enrichment), or None."""
        with self.engine.connect() as conn:
            row = conn.execute(_pictures.select().where(_pictures.c.id == picture_id)).fetchone()
        return _row_to_picture(row) if row is not None else None

    def get_picture_detail(self, picture_id: int) -> Optional[PictureDetail]:
        """Return the picture with its artist and owner username resolved, or None."""
        with self.engine.connect() as conn:
            row = conn.execute(_picture_detail_query().where(_pictures.c.id == picture_id)).fetchone()
        return _row_to_picture_detail(row) if row is not None else None

    def list_picture_details(self, artist_id: Optional[int] = None) -> list[PictureDetail]:
        """Return enriched pictures ordered by id, optionally only one artist's."""
        query = _picture_detail_query().order_by(_pictures.c.id)
        if artist_id is not None:
            query = query.where(_pictures.c.artist_id == artist_id)
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_picture_detail(r) for r in rows]

    def count_pictures(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(_pictures)).scalar() or 0

    def update_picture(self, picture_id: int, fields: dict, owner_scope: Optional[int] = None) -> bool:
        """Write `fields` to one picture in a single conditional UPDATE.

        Only keys in _UPDATABLE_PICTURE_FIELDS are accepted. Unknown keys
        (including user_id) raise ValueError rather than being silently
        ignored. An empty `fields` still bumps updated_at.

        Returns True if the row was updated, False if no row matched the id
        (and owner_scope, when given).
        """
        unknown = set(fields) - _UPDATABLE_PICTURE_FIELDS
        if unknown:
            raise ValueError(f"Unknown picture fields: {unknown!r}")
        stmt = _pictures.update().where(_pictures.c.id == picture_id)
        if owner_scope is not None:
            stmt = stmt.where(_pictures.c.user_id == owner_scope)
        with self.engine.connect() as conn:
            result = conn.execute(stmt.values(**fields, updated_at=_now_iso()))
            conn.commit()
        return result.rowcount > 0

    def delete_picture(self, picture_id: int, owner_scope: Optional[int] = None) -> bool:
        """Delete one picture (and its exhibition links) in a single transaction.

        Returns True if the picture was deleted, False if no row matched the id
        (and owner_scope, when given). Links are removed explicitly as well as
        by ON DELETE CASCADE, for databases that do not enforce foreign keys.
        """
        stmt = _pictures.delete().where(_pictures.c.id == picture_id)
        if owner_scope is not None:
            stmt = stmt.where(_pictures.c.user_id == owner_scope)
        with self.engine.begin() as conn:
            result = conn.execute(stmt)
            if result.rowcount == 0:
                return False
            conn.execute(_exhibition_pictures.delete().where(_exhibition_pictures.c.picture_id == picture_id))
        return True

    # ------------------------------------------------------------------
    # Exhibitions
    # ------------------------------------------------------------------

    def create_exhibition(self, exhibition: Exhibition) -> int:
        """Insert an exhibition and its ordered picture references."""
        with self.engine.begin() as conn:
            result = conn.execute(
                _exhibitions.insert().values(
                    title=exhibition.title,
                    description=exhibition.description,
                    start_date=exhibition.start_date,
                    end_date=exhibition.end_date,
                    location=exhibition.location,
                    created_at=_now_iso(),
                )
            )
            exhibition_id = result.inserted_primary_key[0]
            if exhibition.picture_ids:
                conn.execute(
                    _exhibition_pictures.insert(),
                    [
                        {"exhibition_id": exhibition_id, "picture_id": pid, "position": pos}
                        for pos, pid in enumerate(dict.fromkeys(exhibition.picture_ids))
                    ],
                )
        return exhibition_id

    def get_exhibition(self, exhibition_id: int) -> Optional[Exhibition]:
        with self.engine.connect() as conn:
            row = conn.execute(_exhibitions.select().where(_exhibitions.c.id == exhibition_id)).fetchone()
            if row is None:
                return None
            picture_ids = (
                conn.execute(
                    select(_exhibition_pictures.c.picture_id)
                    .where(_exhibition_pictures.c.exhibition_id == exhibition_id)
                    .order_by(_exhibition_pictures.c.position)
                )
                .scalars()
                .all()
            )
        return Exhibition(
            id=row.id,
            title=row.title,
            description=row.description,
            start_date=row.start_date,
            end_date=row.end_date,
            location=row.location,
            picture_ids=list(picture_ids),
            created_at=row.created_at,
        )

    # ------------------------------------------------------------------
    # Admin aggregates
    # ------------------------------------------------------------------

    def list_user_summaries(self) -> list[UserSummary]:
        """Return every user with the number of pictures they own, ordered by id."""
        picture_count = func.count(_pictures.c.id).label("picture_count")
        query = (
            select(
                users_table.c.id,
                users_table.c.username,
                users_table.c.role,
                users_table.c.created_at,
                picture_count,
            )
            .select_from(users_table.outerjoin(_pictures, _pictures.c.user_id == users_table.c.id))
            .group_by(users_table.c.id, users_table.c.username, users_table.c.role, users_table.c.created_at)
            .order_by(users_table.c.id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [
            UserSummary(
                id=r.id,
                username=r.username,
                role=r.role,
                created_at=r.created_at,
                picture_count=r.picture_count,
            )
            for r in rows
        ]


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_artist(row) -> Artist:
    return Artist(
        id=row.id,
        name=row.name,
        bio=row.bio or "",
        birth_date=row.birth_date,
        death_date=row.death_date,
        nationality=row.nationality or "",
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_picture(row) -> Picture:
    return Picture(
        id=row.id,
        title=row.title,
        artist=row.artist or "",
        artist_id=row.artist_id,
        user_id=row.user_id,
        year=row.year,
        description=row.description or "",
        image_url=row.image_url,
        style=row.style or "",
        price=row.price,
        size=row.size or "",
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_picture_detail(row) -> PictureDetail:
    artist_info = None
    if row.a_id is not None:
        artist_info = Artist(
            id=row.a_id,
            name=row.a_name,
            bio=row.a_bio or "",
            birth_date=row.a_birth_date,
            death_date=row.a_death_date,
            nationality=row.a_nationality or "",
            created_at=row.a_created_at,
            updated_at=row.a_updated_at,
        )
    return PictureDetail(
        picture=_row_to_picture(row),
        artist_info=artist_info,
        owner_username=row.owner_username,
    )
