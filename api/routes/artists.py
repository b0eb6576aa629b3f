"""
api/routes/artists.py -- Read-only artist endpoints.

Routes:
  GET /api/artists                -- all artists sorted by name
  GET /api/artists/{id}           -- one artist; 404 if unknown
  GET /api/artists/{id}/pictures  -- that artist's pictures, enriched
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from api.models import ArtistResponse, PictureResponse
from gallery.service import GalleryService

# Auth policy: all routes public.
router = APIRouter()


def _gallery(request: Request) -> GalleryService:
    return request.app.state.gallery_service


@router.get("/artists", response_model=list[ArtistResponse])
def list_artists(request: Request) -> list[ArtistResponse]:
    return [ArtistResponse.from_artist(a) for a in _gallery(request).list_artists()]


@router.get("/artists/{artist_id}", response_model=ArtistResponse)
def get_artist(artist_id: int, request: Request) -> ArtistResponse:
    return ArtistResponse.from_artist(_gallery(request).get_artist(artist_id))


@router.get("/artists/{artist_id}/pictures", response_model=list[PictureResponse])
def list_artist_pictures(artist_id: int, request: Request) -> list[PictureResponse]:
    """Pictures linked to the artist by artistId. An unknown artist yields []."""
    return [PictureResponse.from_detail(d) for d in _gallery(request).list_artist_pictures(artist_id)]
