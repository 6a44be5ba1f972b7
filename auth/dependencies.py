"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The access token is looked up in priority order:
  1. "sat" cookie -- set by register / login / refresh.
  2. Authorization: Bearer <token> header -- non-browser API clients.

Both converge on AuthService.authenticate(), which verifies the token and
confirms the account still exists.

The refresh token is read only from the "srt" cookie.

get_access_token() raises UnauthorizedError when no token is present at all.
get_current_subject() additionally verifies it and returns the subject id --
the identity every user-scoped route (profiles, future content creation)
acts on.

Layer rule: no imports from api/ or community/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import UnauthorizedError
from auth.service import AuthService

ACCESS_COOKIE = "sat"
REFRESH_COOKIE = "srt"


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def try_get_access_token(request: Request) -> str | None:
    """Return the raw access token from cookie or Bearer header, or None."""
    token: str | None = request.cookies.get(ACCESS_COOKIE)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
    return token or None


def get_access_token(request: Request) -> str:
    """Require a token to be present. Verification is the service's job."""
    token = try_get_access_token(request)
    if token is None:
        raise UnauthorizedError()
    return token


def get_refresh_token(request: Request) -> str:
    """Require the refresh cookie. Refresh tokens are never read from headers."""
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise UnauthorizedError()
    return token


def get_current_subject(request: Request) -> str:
    """Require a valid access token for an existing account; return its subject id.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(subject_id: str = Depends(get_current_subject)): ...
    """
    return get_auth_service(request).authenticate(get_access_token(request))
