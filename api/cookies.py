"""
api/cookies.py -- Session transport: tokens in, cookies out.

Cookie names:
  sat -- access token, max_age 1 day
  srt -- refresh token, max_age 14 days

Both cookies are:
  httponly=True: JS cannot read the token (XSS mitigation).
  samesite="strict": never sent on cross-site requests (CSRF mitigation).
  secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
  max_age: matches the token expiry so cookie and token expire together.

The refresh cookie is scoped to the whole API rather than /auth/refresh so
logout and account deletion can clear it with a plain delete_cookie().
"""

from __future__ import annotations

from starlette.responses import Response

from auth.dependencies import ACCESS_COOKIE, REFRESH_COOKIE
from auth.models import TokenPair
from auth.tokens import ACCESS_TOKEN_TTL, REFRESH_TOKEN_TTL
from core.config import get_settings


def _set_cookie(response: Response, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        name,
        value=value,
        httponly=True,
        samesite="strict",
        secure=get_settings().secure_cookies,
        max_age=max_age,
    )


def set_access_cookie(response: Response, access_token: str) -> None:
    _set_cookie(response, ACCESS_COOKIE, access_token, int(ACCESS_TOKEN_TTL.total_seconds()))


def set_session_cookies(response: Response, tokens: TokenPair) -> None:
    """Write both the access and refresh cookies."""
    set_access_cookie(response, tokens.access_token)
    _set_cookie(response, REFRESH_COOKIE, tokens.refresh_token, int(REFRESH_TOKEN_TTL.total_seconds()))


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE, httponly=True, samesite="strict")
    response.delete_cookie(REFRESH_COOKIE, httponly=True, samesite="strict")
