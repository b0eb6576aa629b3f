"""
api/routes/auth.py -- Registration, login, logout and session introspection.

Routes:
  POST /api/auth/register  -- create a role=user account; sets session cookie; 201
  POST /api/auth/login     -- password login; sets session cookie
  POST /api/auth/logout    -- destroys the server-side session; clears cookie
  GET  /api/auth/session   -- {isAuthenticated, userId, username, role}; never errors

Security:
  register and login are rate-limited per client IP (LOGIN_RATE_LIMIT).
  AuthService.login() goes through authenticate_user(), which equalizes timing
  between unknown usernames and wrong passwords.
  Cache-Control: no-store on responses that set a session cookie.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import LOGIN_LIMIT, limiter
from api.models import AuthUserResponse, CredentialsRequest, MessageResponse, SessionResponse
from auth.service import AuthService
from auth.tokens import clear_session_cookie, read_session_cookie, set_session_cookie

# Auth policy: every route here is public. Identity is established by them.
router = APIRouter()


def _auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _session_response(status_code: int, body: AuthUserResponse, token: str) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, mode="json"))
    set_session_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@limiter.limit(LOGIN_LIMIT)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", response_model=AuthUserResponse, status_code=201)
def register(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Create an account with role "user" and log it in immediately."""
    identity, session = _auth_service(request).register(body.username, body.password)
    return _session_response(201, AuthUserResponse.from_identity(identity), session.token)


@limiter.limit(LOGIN_LIMIT)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=AuthUserResponse)
def login(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Authenticate with username and password; set the session cookie.

    Wrong username and wrong password produce the same 401 body.
    """
    identity, session = _auth_service(request).login(body.username, body.password)
    return _session_response(200, AuthUserResponse.from_identity(identity), session.token)


@router.post("/auth/logout", response_model=MessageResponse)
def logout(request: Request) -> JSONResponse:
    """Destroy the current session. Calling it without a session is not an error."""
    message = _auth_service(request).logout(read_session_cookie(request))
    resp = JSONResponse(content=MessageResponse(message=message).model_dump(by_alias=True))
    clear_session_cookie(resp)
    return resp


@router.get("/auth/session", response_model=SessionResponse, response_model_exclude_none=True)
def current_session(request: Request) -> SessionResponse:
    state = _auth_service(request).current_session(read_session_cookie(request))
    return SessionResponse.from_state(state)
