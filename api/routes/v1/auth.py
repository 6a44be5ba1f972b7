"""
api/routes/v1/auth.py -- Account and session REST endpoints.

Routes:
  POST   /api/v1/auth/register   -- create account + profile; sets sat/srt cookies
  POST   /api/v1/auth/login      -- password login; sets sat/srt cookies
  POST   /api/v1/auth/logout     -- revoke refresh token; clears cookies
  POST   /api/v1/auth/refresh    -- new access token from the srt cookie
  PATCH  /api/v1/auth/email      -- change email (requires auth)
  PATCH  /api/v1/auth/password   -- change password (requires auth)
  DELETE /api/v1/auth/account    -- delete account + profile; clears cookies

All business rules live in auth.service.AuthService. Handlers only move
tokens between cookies and the service. AuthError subclasses raised by the
service are rendered by the handler in api/main.py.

Handlers are plain `def`: Argon2 and the SQLAlchemy stores block, so FastAPI
runs them in its thread pool instead of on the event loop.

Security:
  [H2] register and login are rate-limited per IP (LOGIN_RATE_LIMIT).
  [M5] Cache-Control: no-store on every response that sets a token cookie.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.cookies import clear_session_cookies, set_access_cookie, set_session_cookies
from api.limiter import limiter, login_rate_limit
from api.models import AuthResponse, EmailUpdate, LoginRequest, PasswordUpdate, RegisterRequest
from auth.dependencies import get_access_token, get_auth_service, get_refresh_token
from auth.service import AuthService

# Auth policy:
# - POST   /auth/register:  public, rate limited
# - POST   /auth/login:     public, rate limited
# - POST   /auth/refresh:   requires srt cookie
# - POST   /auth/logout:    requires access token
# - PATCH  /auth/email:     requires access token
# - PATCH  /auth/password:  requires access token
# - DELETE /auth/account:   requires access token
router = APIRouter()


def _no_store(resp: Response) -> Response:
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
@limiter.limit(login_rate_limit)  # [H2]
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create a credential record and its community profile, then sign in."""
    service: AuthService = get_auth_service(request)
    tokens = service.register(body.email, body.password, username=body.username, avatar=body.avatar)
    resp = JSONResponse(
        status_code=201,
        content=AuthResponse(success=True, message="Successfully created new user. Welcome!").model_dump(),
    )
    set_session_cookies(resp, tokens)
    return _no_store(resp)


@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit(login_rate_limit)  # [H2]
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set both session cookies.

    Unknown email, wrong password and malformed input all produce the same
    400 bad_credentials response.
    """
    service: AuthService = get_auth_service(request)
    tokens = service.login(body.email, body.password)
    resp = JSONResponse(
        status_code=200,
        content=AuthResponse(success=True, message="Successful login. Welcome!").model_dump(),
    )
    set_session_cookies(resp, tokens)
    return _no_store(resp)


@router.post("/auth/refresh", response_model=AuthResponse)
def refresh(request: Request, refresh_token: str = Depends(get_refresh_token)) -> JSONResponse:
    """Exchange the srt cookie for a new sat cookie. 403 if the token is stale."""
    service: AuthService = get_auth_service(request)
    access_token = service.refresh(refresh_token)
    resp = JSONResponse(content=AuthResponse(success=True).model_dump())
    set_access_cookie(resp, access_token)
    return _no_store(resp)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/logout", response_model=AuthResponse)
def logout(request: Request, access_token: str = Depends(get_access_token)) -> JSONResponse:
    """Revoke the stored refresh token and clear both cookies."""
    get_auth_service(request).logout(access_token)
    resp = JSONResponse(content=AuthResponse(success=True, message="Logged out.").model_dump())
    clear_session_cookies(resp)
    return resp


@router.patch("/auth/email", response_model=AuthResponse)
def update_email(
    request: Request,
    body: EmailUpdate,
    access_token: str = Depends(get_access_token),
) -> AuthResponse:
    get_auth_service(request).update_email(access_token, body.email)
    return AuthResponse(success=True, message="Email updated.")


@router.patch("/auth/password", response_model=AuthResponse)
def update_password(
    request: Request,
    body: PasswordUpdate,
    access_token: str = Depends(get_access_token),
) -> AuthResponse:
    get_auth_service(request).update_password(access_token, body.password)
    return AuthResponse(success=True, message="Password updated.")


@router.delete("/auth/account", status_code=204)
def delete_account(request: Request, access_token: str = Depends(get_access_token)) -> Response:
    """Permanently delete the account and its profile; clear both cookies."""
    get_auth_service(request).delete_account(access_token)
    resp = Response(status_code=204)
    clear_session_cookies(resp)
    return resp
