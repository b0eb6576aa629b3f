"""
gallery/models.py -- Domain dataclasses for the art gallery catalog.

These are pure data containers with zero logic. Persistence lives in
gallery/store.py; the mutation protocol lives in gallery/service.py.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Artist:
    """A catalogued artist. Read-only from the HTTP surface.

    Dates are YYYY-MM-DD strings; either may be None when unknown.
    id is None before the record is written to the database.
    """

    name: str
    bio: str = ""
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    nationality: str = ""
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


@dataclass
class Picture:
    """A picture record owned by exactly one user.

    artist is free text shown to visitors; artist_id optionally links a
    catalogued Artist. user_id is fixed at creation -- no write path
    changes it.
    """

    title: str
    image_url: str
    user_id: int
    artist: str = ""
    artist_id: Optional[int] = None
    year: Optional[int] = None
    description: str = ""
    style: str = ""
    price: Optional[float] = None
    size: str = ""
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class PictureDetail:
    """A Picture with its related entities resolved (enrichment).

    artist_info is None when artist_id is unset or dangling. Only the owner's
    username is carried over from the user record.
    """

    picture: Picture
    artist_info: Optional[Artist] = None
    owner_username: Optional[str] = None


@dataclass
class Exhibition:
    """A dated exhibition referencing pictures by id, in display order."""

    title: str
    start_date: str  # YYYY-MM-DD
    end_date: str  # YYYY-MM-DD
    description: str = ""
    location: str = ""
    picture_ids: list[int] = field(default_factory=list)
    id: Optional[int] = None
    created_at: str = ""


@dataclass
class UserSummary:
    """Admin listing row: a user with the number of pictures they own."""

    id: int
    username: str
    role: str
    created_at: str
    picture_count: int
