"""
api/routes/pictures.py -- Picture catalog REST endpoints.

Routes:
  GET    /api/pictures       -- list all pictures, enriched (public)
  POST   /api/pictures       -- create; caller becomes owner (requires auth); 201
  GET    /api/pictures/{id}  -- one enriched picture (public)
  PUT    /api/pictures/{id}  -- partial update (owner or admin)
  DELETE /api/pictures/{id}  -- delete (owner or admin)

Handlers stay thin: GalleryService runs the mutation protocol (session,
load, ownership, validation, conditional write) and raises core.errors
exceptions that api/main.py renders.

PUT and DELETE declare the ownership check as a route dependency. Request
bodies are not handler parameters: they are read and validated by the last
dependency in each signature, after the session and ownership checks. A
caller who may not touch the picture gets 401/404/403 whatever payload they
sent, malformed JSON included.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from api.models import MessageResponse, PictureCreate, PictureResponse, PictureUpdate
from auth.dependencies import get_current_session
from auth.models import Session
from core.errors import ValidationError
from gallery.service import GalleryService

# Auth policy:
# - GET    /api/pictures, /api/pictures/{id}: public
# - POST   /api/pictures:                     requires auth (get_current_session)
# - PUT    /api/pictures/{id}:                owner or admin (authorize_write)
# - DELETE /api/pictures/{id}:                owner or admin (authorize_write)
router = APIRouter()


def _gallery(request: Request) -> GalleryService:
    return request.app.state.gallery_service


def authorize_write(picture_id: int, request: Request, session: Session = Depends(get_current_session)) -> None:
    _gallery(request).authorize_picture_write(session, picture_id)


# ---------------------------------------------------------------------------
# Body dependencies
#
# Declared after the auth dependencies so the body is only read once the
# caller has been allowed through.
# ---------------------------------------------------------------------------


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise ValidationError("Malformed JSON body") from None


def _validate(model: type[BaseModel], payload: Any) -> Any:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False), body=payload) from None


async def picture_create_body(request: Request) -> PictureCreate:
    return _validate(PictureCreate, await _read_json(request))


async def picture_update_body(request: Request) -> PictureUpdate:
    return _validate(PictureUpdate, await _read_json(request))


@router.get("/pictures", response_model=list[PictureResponse])
def list_pictures(request: Request) -> list[PictureResponse]:
    return [PictureResponse.from_detail(d) for d in _gallery(request).list_pictures()]


@router.post("/pictures", response_model=PictureResponse, status_code=201)
def create_picture(
    request: Request,
    session: Session = Depends(get_current_session),
    body: PictureCreate = Depends(picture_create_body),
) -> PictureResponse:
    """Create a picture owned by the caller.

    title and imageUrl are required; any userId in the body is ignored.
    """
    detail = _gallery(request).create_picture(session, body.model_dump())
    return PictureResponse.from_detail(detail)


@router.get("/pictures/{picture_id}", response_model=PictureResponse)
def get_picture(picture_id: int, request: Request) -> PictureResponse:
    return PictureResponse.from_detail(_gallery(request).get_picture(picture_id))


@router.put("/pictures/{picture_id}", response_model=PictureResponse, dependencies=[Depends(authorize_write)])
def update_picture(
    picture_id: int,
    request: Request,
    session: Session = Depends(get_current_session),
    body: PictureUpdate = Depends(picture_update_body),
) -> PictureResponse:
    """Update only the fields present in the request body."""
    detail = _gallery(request).update_picture(session, picture_id, body.model_dump(exclude_unset=True))
    return PictureResponse.from_detail(detail)


@router.delete("/pictures/{picture_id}", response_model=MessageResponse, dependencies=[Depends(authorize_write)])
def delete_picture(
    picture_id: int,
    request: Request,
    session: Session = Depends(get_current_session),
) -> MessageResponse:
    return MessageResponse(message=_gallery(request).delete_picture(session, picture_id))
