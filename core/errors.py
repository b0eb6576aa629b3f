"""
core/errors.py -- Domain error taxonomy shared by auth/ and gallery/.

Services raise these; api/main.py renders every subclass with one exception
handler as {"error": message} and the class's status code. Nothing here knows
about HTTP frameworks -- status_code is plain data.
"""

from __future__ import annotations


class GalleryError(Exception):
    """Base class for errors that map to a client-visible response."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(GalleryError):
    """Missing or malformed input, rejected before storage is touched."""

    status_code = 400
    default_message = "Invalid request"


class AuthError(GalleryError):
    """Bad credentials. Same message whether the username or password was wrong."""

    status_code = 401
    default_message = "Invalid username or password."


class Unauthorized(GalleryError):
    status_code = 401
    default_message = "Authentication required. Please log in."


class Forbidden(GalleryError):
    status_code = 403
    default_message = "You do not have permission to perform this action."


class NotFound(GalleryError):
    status_code = 404
    default_message = "Not found"


class ConflictError(GalleryError):
    status_code = 409
    default_message = "A user with that username already exists."


class InternalError(GalleryError):
    """Unexpected storage or runtime failure. Message is always generic."""

    status_code = 500
