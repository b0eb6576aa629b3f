"""
web/routes.py -- Static single-page-app delivery for the gallery UI.

The browser UI is a prebuilt SPA living in STATIC_DIR (default ./public).
This router serves it without knowing anything about the API:

  GET /{path}  -- the file at STATIC_DIR/path when it exists inside STATIC_DIR,
                  otherwise STATIC_DIR/index.html so client-side routes
                  (/pictures/3, /login, ...) load the app shell.

No index.html at all yields a plain 404 page.

Route registration order matters: asgi.py includes this router after the API,
and api/main.py claims every /api/ path itself, so unknown API URLs get a
JSON 404 rather than the app shell.

STATIC_DIR is read per request so tests can point it at a temporary directory.
"""

import logging
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse, HTMLResponse

from core.config import get_settings

logger = logging.getLogger("gallery.web")

router = APIRouter()

_NOT_FOUND_PAGE = "<!doctype html><title>Not Found</title><h1>Not Found</h1>"


def _resolve_static(root: Path, full_path: str) -> Path | None:
    """Return the file for full_path under root, or None.

    Paths that resolve outside root (../ segments, symlinks) are refused.
    """
    if not full_path:
        return None
    candidate = (root / full_path).resolve()
    if not candidate.is_relative_to(root):
        logger.warning("Refused static path outside %s: %r", root, full_path)
        return None
    return candidate if candidate.is_file() else None


@router.get("/{full_path:path}", include_in_schema=False)
def spa_fallback(full_path: str):
    root = Path(get_settings().static_dir).resolve()

    static_file = _resolve_static(root, full_path)
    if static_file is not None:
        return FileResponse(static_file)

    index = root / "index.html"
    if index.is_file():
        return FileResponse(index)
    return HTMLResponse(_NOT_FOUND_PAGE, status_code=404)
