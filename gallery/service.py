"""
gallery/service.py -- Picture mutation protocol and catalog reads.

Every mutating call follows the same fixed sequence:
  1. require a session (Unauthorized)
  2. create: owner := session.user_id
     update/delete: load the picture (NotFound), then require_owner_or_admin
     against the loaded owner (Forbidden)
  3. validate the payload (ValidationError) -- before storage is written
  4. perform ONE conditional write scoped by ownership_scope(session); a write
     that matches no row means the picture vanished or changed hands in
     between, reported as NotFound
  5. re-read the enriched PictureDetail for the response

Storage failures (SQLAlchemyError) are logged with context and re-raised as
InternalError with a generic message. Nothing from the database reaches the
caller.

Layer rule: gallery/ imports from auth/ and core/; never from api/ or web/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from auth.guard import ownership_scope, require_authenticated, require_owner_or_admin
from auth.models import Session
from core.errors import InternalError, NotFound, ValidationError
from gallery.models import Artist, Picture, PictureDetail, UserSummary
from gallery.store import GalleryStore

logger = logging.getLogger("gallery.service")

_PICTURE_NOT_FOUND = "Picture not found"
_ARTIST_NOT_FOUND = "Artist not found"
_REQUIRED_FIELDS = "Title and image URL are required."

EDITABLE_FIELDS = frozenset(
    {"title", "artist", "artist_id", "year", "description", "image_url", "style", "price", "size"}
)
_TEXT_FIELDS = ("artist", "description", "style", "size")


@contextmanager
def _storage(action: str) -> Iterator[None]:
    """Convert storage failures inside the block into InternalError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while %s", action)
        raise InternalError() from exc


class GalleryService:
    def __init__(self, store: GalleryStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Reads (public)
    # ------------------------------------------------------------------

    def list_pictures(self) -> list[PictureDetail]:
        with _storage("listing pictures"):
            return self.store.list_picture_details()

    def get_picture(self, picture_id: int) -> PictureDetail:
        with _storage(f"loading picture {picture_id}"):
            detail = self.store.get_picture_detail(picture_id)
        if detail is None:
            raise NotFound(_PICTURE_NOT_FOUND)
        return detail

    def list_artists(self) -> list[Artist]:
        with _storage("listing artists"):
            return self.store.list_artists()

    def get_artist(self, artist_id: int) -> Artist:
        with _storage(f"loading artist {artist_id}"):
            artist = self.store.get_artist(artist_id)
        if artist is None:
            raise NotFound(_ARTIST_NOT_FOUND)
        return artist

    def list_artist_pictures(self, artist_id: int) -> list[PictureDetail]:
        """Pictures linked to artist_id. Unknown artists simply have none."""
        with _storage(f"listing pictures for artist {artist_id}"):
            return self.store.list_picture_details(artist_id=artist_id)

    def list_user_summaries(self) -> list[UserSummary]:
        """Admin listing. Callers are expected to have checked the admin role."""
        with _storage("listing users"):
            return self.store.list_user_summaries()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def authorize_picture_write(self, session: Session | None, picture_id: int) -> Picture:
        """Load a picture and check the caller may modify it.

        Raises Unauthorized, NotFound or Forbidden, in that order.
        """
        session = require_authenticated(session)
        with _storage(f"loading picture {picture_id}"):
            picture = self.store.get_picture(picture_id)
        if picture is None:
            raise NotFound(_PICTURE_NOT_FOUND)
        require_owner_or_admin(session, picture.user_id)
        return picture

    def create_picture(self, session: Session | None, fields: dict[str, Any]) -> PictureDetail:
        session = require_authenticated(session)
        values = self._clean_fields(fields)
        if not values.get("title") or not values.get("image_url"):
            raise ValidationError(_REQUIRED_FIELDS)

        with _storage("creating picture"):
            self._fill_artist_name(values.get("artist", ""), values.get("artist_id"), values)
            picture_id = self.store.create_picture(Picture(user_id=session.user_id, **values))
            detail = self.store.get_picture_detail(picture_id)

        logger.info("User %s created picture %d", session.username, picture_id)
        return detail

    def update_picture(self, session: Session | None, picture_id: int, fields: dict[str, Any]) -> PictureDetail:
        """Apply a partial update. Only keys present in fields are written."""
        session = require_authenticated(session)
        current = self.authorize_picture_write(session, picture_id)
        values = self._clean_fields(fields)
        if ("title" in values and not values["title"]) or ("image_url" in values and not values["image_url"]):
            raise ValidationError(_REQUIRED_FIELDS)

        with _storage(f"updating picture {picture_id}"):
            self._fill_artist_name(
                values.get("artist", current.artist),
                values.get("artist_id", current.artist_id),
                values,
            )
            updated = self.store.update_picture(picture_id, values, owner_scope=ownership_scope(session))
            if not updated:
                raise NotFound(_PICTURE_NOT_FOUND)
            detail = self.store.get_picture_detail(picture_id)

        logger.info("User %s updated picture %d (%s)", session.username, picture_id, ", ".join(sorted(values)))
        return detail

    def delete_picture(self, session: Session | None, picture_id: int) -> str:
        session = require_authenticated(session)
        self.authorize_picture_write(session, picture_id)
        with _storage(f"deleting picture {picture_id}"):
            deleted = self.store.delete_picture(picture_id, owner_scope=ownership_scope(session))
        if not deleted:
            raise NotFound(_PICTURE_NOT_FOUND)
        logger.info("User %s deleted picture %d", session.username, picture_id)
        return "Picture deleted successfully."

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _clean_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Drop unknown keys, trim strings, and reject impossible values.

        A None for a free-text column becomes "" (those columns are NOT NULL).
        Title and image URL keep None so the caller can tell "blank" apart.
        """
        values: dict[str, Any] = {}
        for key, value in fields.items():
            if key not in EDITABLE_FIELDS:
                continue
            if isinstance(value, str):
                value = value.strip()
            if key in _TEXT_FIELDS and value is None:
                value = ""
            values[key] = value

        price = values.get("price")
        if price is not None and price < 0:
            raise ValidationError("Price must be a non-negative number.")
        return values

    def _fill_artist_name(self, artist_text: str, artist_id: int | None, values: dict[str, Any]) -> None:
        """Validate artist_id and default blank artist text to the artist's name.

        Mutates values in place. Must run inside a _storage() block.
        """
        if artist_id is None:
            return
        artist = self.store.get_artist(artist_id)
        if artist is None:
            raise ValidationError("Unknown artist.")
        if not artist_text:
            values["artist"] = artist.name
