"""
api/main.py -- FastAPI application entry point for the gallery service.

Exposes the picture catalog, artist lookups, authentication and the admin
user listing as a JSON API under /api. The SPA fallback is mounted separately
by asgi.py.

Run with:      python main.py serve
               uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. log_requests       -- one access-log line per request, rate-limited or not
  2. SlowAPIMiddleware  -- enforces per-route rate limits from api.limiter
  3. CORSMiddleware     -- adds CORS headers for allowed browser origins

Lifespan handles startup (engine, stores, services, seed data, session purge
task) and shutdown (cancel purge task, dispose engine) symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.artists import router as artists_router
from api.routes.auth import router as auth_router
from api.routes.pictures import router as pictures_router
from auth.service import AuthService
from auth.store import SessionStore, UserStore
from core.config import get_settings
from core.db import create_db_engine, ping
from core.errors import GalleryError
from gallery.seed import seed_initial_data
from gallery.service import GalleryService
from gallery.store import GalleryStore

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("gallery.api")


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def wire_app_state(app: FastAPI, engine: Engine) -> None:
    """Build stores and services on one engine and attach them to app.state.

    Route handlers and dependencies reach everything through app.state, so
    the lifespan, the tests, and any alternative entry point only have to
    decide which Engine to pass in.
    """
    settings = get_settings()
    app.state.engine = engine
    app.state.user_store = UserStore(engine)
    app.state.session_store = SessionStore(engine)
    app.state.gallery_store = GalleryStore(engine)
    app.state.auth_service = AuthService(
        app.state.user_store,
        app.state.session_store,
        session_ttl_seconds=settings.session_max_age_seconds,
    )
    app.state.gallery_service = GalleryService(app.state.gallery_store)


# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI, interval_seconds: int) -> None:
    """Delete expired sessions every interval_seconds.

    Expired sessions are already rejected on read; this only keeps the table
    from growing. CancelledError from task.cancel() during shutdown
    propagates out of asyncio.sleep and unwinds the coroutine cleanly.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = app.state.session_store.purge_expired()
        except SQLAlchemyError:
            logger.exception("Session purge failed; retrying next interval")
            continue
        if removed:
            logger.info("Purged %d expired sessions", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters:
      1. Engine and stores -- every later step reads app.state.
      2. Seed data -- needs the stores; a failure is logged and startup
         continues so the API still serves whatever the database holds.
      3. Purge task last -- references app.state.session_store.
    """
    settings = get_settings()
    logger.info("Gallery API starting up")
    engine = create_db_engine(settings.database_url)
    wire_app_state(app, engine)
    logger.info("Database ready (%s)", engine.url.render_as_string(hide_password=True))

    if settings.seed_on_startup:
        try:
            seed_initial_data(
                app.state.user_store,
                app.state.gallery_store,
                admin_username=settings.seed_admin_username,
                admin_password=settings.seed_admin_password,
            )
        except SQLAlchemyError:
            logger.exception("Seeding initial data failed; continuing startup")

    app.state.purge_task = asyncio.create_task(_purge_loop(app, settings.session_purge_interval_seconds))

    yield

    app.state.purge_task.cancel()
    engine.dispose()
    logger.info("Gallery API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Art Gallery API",
    description="Art gallery catalog: pictures, artists, and user accounts.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Starlette wraps each newly added middleware around the existing stack, so
# the last one registered (log_requests below) sees the request first.
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,  # the SPA sends the session cookie
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler; latency is measured around call_next.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(pictures_router, prefix="/api", tags=["Pictures"])
app.include_router(artists_router, prefix="/api", tags=["Artists"])
app.include_router(admin_router, prefix="/api", tags=["Admin"])
# SPA fallback router is mounted by asgi.py, not here.
# api/ and web/ are independent layers -- only the top-level asgi.py imports both.


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same {"error": message} envelope so clients parse
# failures uniformly. Nothing internal (stack traces, SQL) is ever included.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(exclude_none=True),
    )


@app.exception_handler(GalleryError)
async def gallery_error_handler(request: Request, exc: GalleryError) -> JSONResponse:
    """Render any domain error with its mapped status code."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when a rate limit is exceeded.

    Retry-After tells clients how many seconds to wait before retrying.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "Too many requests. Please try again later.")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 naming the first field that failed validation."""
    errors = exc.errors()
    if not errors:
        return _error(400, "Invalid request")
    first = errors[0]
    if first.get("type") == "json_invalid":
        return _error(400, "Malformed JSON body")
    # Integer loc parts are list indexes or JSON decode offsets, not field names.
    field = ".".join(
        part for part in first.get("loc", ()) if isinstance(part, str) and part not in ("body", "path", "query")
    )
    message = first.get("msg", "invalid value")
    return _error(400, f"Invalid {field}: {message}" if field else f"Invalid request: {message}")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (405 and friends) in the same envelope."""
    response = _error(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No rate limit applied.
# ---------------------------------------------------------------------------


@app.get("/api/health", response_model=HealthResponse, tags=["Health"])
def health(request: Request) -> JSONResponse:
    """Return API liveness, version, and database reachability.

    503 with status "degraded" when the database does not answer.
    """
    db_ok = ping(request.app.state.engine)
    body = HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=API_VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
    return JSONResponse(status_code=200 if db_ok else 503, content=body.model_dump())


# ---------------------------------------------------------------------------
# Unmatched API paths
#
# Registered last among the /api routes. Any method on an unknown /api/ path
# gets a JSON 404 instead of falling through to the SPA.
# ---------------------------------------------------------------------------


def _original_url(request: Request) -> str:
    """Path plus query string, as the client sent it."""
    path = request.url.path
    return f"{path}?{request.url.query}" if request.url.query else path


@app.api_route(
    "/api/{unmatched:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def api_not_found(request: Request, unmatched: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(error="API endpoint not found", path=_original_url(request)).model_dump(),
    )
