"""
api/routes/admin.py -- Administrative endpoints.

Routes:
  GET /api/admin/users -- every user with their picture count, ordered by id

require_admin answers 401 for anonymous callers and 403 for role=user.
Password hashes are never selected, so they cannot leak through here.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import AdminUserResponse
from auth.dependencies import require_admin
from gallery.service import GalleryService

# Auth policy: every route requires admin (require_admin).
router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/admin/users", response_model=list[AdminUserResponse])
def list_users(request: Request) -> list[AdminUserResponse]:
    gallery: GalleryService = request.app.state.gallery_service
    return [AdminUserResponse.from_summary(s) for s in gallery.list_user_summaries()]
