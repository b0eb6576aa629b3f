"""
API request and response models for the gallery REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
gallery/models.py, which own the internal domain representation. Route
handlers map between the two through the from_* factory classmethods below.

Field names are snake_case in Python and camelCase on the wire (imageUrl,
artistId, createdAt, ...). populate_by_name lets tests and internal callers
use either spelling when constructing a model.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import AuthenticatedUser, Role, SessionState
from gallery.models import Artist, PictureDetail, UserSummary

# Shared model configs. Request models trim whitespace; response models are
# immutable once built.
_REQUEST_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)
_RESPONSE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Request body for POST /api/auth/register and /api/auth/login.

    Both fields are optional at the schema level so that a missing field is
    reported by the auth service as "Username and password are required."
    rather than as a generic schema error. bcrypt only considers the first
    72 bytes of a password, so longer input is rejected outright. Passwords
    are taken verbatim: no whitespace stripping here.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    username: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=72)


class AuthUserResponse(BaseModel):
    """Identity returned by register and login."""

    model_config = _RESPONSE_CONFIG

    id: int
    username: str
    role: Role

    @classmethod
    def from_identity(cls, identity: AuthenticatedUser) -> "AuthUserResponse":
        return cls(id=identity.id, username=identity.username, role=identity.role)


class SessionResponse(BaseModel):
    """GET /api/auth/session. Anonymous callers get only isAuthenticated=false."""

    model_config = _RESPONSE_CONFIG

    is_authenticated: bool
    user_id: Optional[int] = None
    username: Optional[str] = None
    role: Optional[Role] = None

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionResponse":
        return cls(
            is_authenticated=state.is_authenticated,
            user_id=state.user_id,
            username=state.username,
            role=state.role,
        )


class MessageResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    message: str


# ---------------------------------------------------------------------------
# Artists
# ---------------------------------------------------------------------------


class ArtistResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    id: int
    name: str
    bio: str
    birth_date: Optional[str]
    death_date: Optional[str]
    nationality: str
    created_at: str
    updated_at: str

    @classmethod
    def from_artist(cls, artist: Artist) -> "ArtistResponse":
        return cls(
            id=artist.id,
            name=artist.name,
            bio=artist.bio,
            birth_date=artist.birth_date,
            death_date=artist.death_date,
            nationality=artist.nationality,
            created_at=artist.created_at,
            updated_at=artist.updated_at,
        )


# ---------------------------------------------------------------------------
# Pictures
# ---------------------------------------------------------------------------


class OwnerResponse(BaseModel):
    """The only user fields a picture response ever exposes."""

    model_config = _RESPONSE_CONFIG

    id: int
    username: str


class PictureResponse(BaseModel):
    """An enriched picture: stored fields plus artistInfo and owner."""

    model_config = _RESPONSE_CONFIG

    id: int
    title: str
    artist: str
    artist_id: Optional[int]
    user_id: int
    year: Optional[int]
    description: str
    image_url: str
    style: str
    price: Optional[float]
    size: str
    created_at: str
    updated_at: str
    artist_info: Optional[ArtistResponse] = None
    owner: Optional[OwnerResponse] = None

    @classmethod
    def from_detail(cls, detail: PictureDetail) -> "PictureResponse":
        """Build a PictureResponse from a gallery PictureDetail.

        owner is None only when the owning user row is missing, which the
        users foreign key normally prevents.
        """
        picture = detail.picture
        owner = None
        if detail.owner_username is not None:
            owner = OwnerResponse(id=picture.user_id, username=detail.owner_username)
        return cls(
            id=picture.id,
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
            created_at=picture.created_at,
            updated_at=picture.updated_at,
            artist_info=ArtistResponse.from_artist(detail.artist_info) if detail.artist_info else None,
            owner=owner,
        )


class PictureCreate(BaseModel):
    """Request body for POST /api/pictures.

    title and imageUrl are required, but presence is checked by the gallery
    service so the client receives "Title and image URL are required."
    """

    model_config = _REQUEST_CONFIG

    title: Optional[str] = Field(default=None, max_length=255)
    artist: Optional[str] = Field(default=None, max_length=255)
    artist_id: Optional[int] = None
    year: Optional[int] = None
    description: Optional[str] = Field(default=None, max_length=5000)
    image_url: Optional[str] = Field(default=None, max_length=2048)
    style: Optional[str] = Field(default=None, max_length=100)
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    size: Optional[str] = Field(default=None, max_length=100)


class PictureUpdate(PictureCreate):
    """Request body for PUT /api/pictures/{id}.

    Same fields as PictureCreate; only fields present in the body are written
    (the route dumps with exclude_unset=True). userId is not accepted.
    """


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class AdminUserResponse(BaseModel):
    """Row in GET /api/admin/users. Never carries the password hash."""

    model_config = _RESPONSE_CONFIG

    id: int
    username: str
    role: Role
    created_at: str
    picture_count: int

    @classmethod
    def from_summary(cls, summary: UserSummary) -> "AdminUserResponse":
        return cls(
            id=summary.id,
            username=summary.username,
            role=Role(summary.role),
            created_at=summary.created_at,
            picture_count=summary.picture_count,
        )


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Single error envelope for every failed request.

    path is set only by the unmatched /api/* handler.
    """

    model_config = ConfigDict(frozen=True)

    error: str
    path: Optional[str] = None


class HealthResponse(BaseModel):
    """Response body for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
