"""
auth/tokens.py -- Signed access and refresh tokens.

Security design decisions:
  JWT: python-jose with HS256. Access tokens and refresh tokens are signed
       with DIFFERENT secrets, so a refresh token can never be replayed as an
       access token (and vice versa) even though both carry the same claim
       shape {aud, iss, iat, exp, sub}.

  Expiry: access tokens live 1 day, refresh tokens 14 days. The cookie
       max-age in api/cookies.py uses the same constants so cookie and token
       expire together.

  Verification collapses every failure -- bad signature, wrong audience or
       issuer, expired, malformed, missing claim -- into one InvalidTokenError.
       Callers cannot distinguish reasons, so the API cannot be used as an
       oracle for which part of a forged token was wrong.

  Refresh tokens carry a random jti. Two logins in the same second would
       otherwise mint byte-identical tokens, which would defeat the stored
       token equality check on the refresh path.

  Secrets: sourced from core.config.get_settings() through from_settings().
       The Settings validator guarantees both are present, distinct and at
       least 32 characters long.

Tokens are opaque strings to every other module. Only TokenManager encodes
or decodes them.

Layer rule: no imports from api/ or community/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.errors import InvalidTokenError, ServerError
from auth.models import TokenClaims
from core.config import Settings, get_settings

logger = logging.getLogger("spade.auth")

_ALGORITHM = "HS256"

ACCESS_TOKEN_TTL = timedelta(days=1)
REFRESH_TOKEN_TTL = timedelta(days=14)

# Every claim of the wire format must be present before the subject is trusted.
_DECODE_OPTIONS = {
    "require_aud": True,
    "require_iss": True,
    "require_iat": True,
    "require_exp": True,
    "require_sub": True,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenManager:
    """Issue and decode signed tokens bound to a subject identifier.

    Usage:
        tokens = TokenManager.from_settings()
        access = tokens.issue_access(subject_id)
        claims = tokens.decode_access(access)
        claims.subject == subject_id

    clock is injectable so tests can mint tokens whose expiry sits at a
    precise distance from the real wall clock. Decoding always validates
    against the real time.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        issuer: str,
        audience: str,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not access_secret or not refresh_secret:
            raise ValueError("Token secrets cannot be empty")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh secrets must differ")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.issuer = issuer
        self.audience = audience
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> TokenManager:
        settings = settings or get_settings()
        return cls(
            access_secret=settings.access_token_secret,
            refresh_secret=settings.refresh_token_secret,
            issuer=settings.token_issuer,
            audience=settings.token_audience,
        )

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue_access(self, subject_id: str) -> str:
        """Return a 1-day access token whose subject is subject_id."""
        return self._encode(subject_id, ACCESS_TOKEN_TTL, self._access_secret)

    def issue_refresh(self, subject_id: str) -> str:
        """Return a 14-day refresh token whose subject is subject_id."""
        return self._encode(subject_id, REFRESH_TOKEN_TTL, self._refresh_secret, token_id=uuid.uuid4().hex)

    def _encode(self, subject_id: str, ttl: timedelta, secret: str, token_id: str | None = None) -> str:
        issued_at = int(self._clock().timestamp())
        payload = {
            "aud": self.audience,
            "iss": self.issuer,
            "iat": issued_at,
            "exp": issued_at + int(ttl.total_seconds()),
            "sub": subject_id,
        }
        if token_id is not None:
            payload["jti"] = token_id
        try:
            return jwt.encode(payload, secret, algorithm=_ALGORITHM)
        except JWTError as exc:
            logger.error("Token signing failed")
            raise ServerError() from exc

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    def decode_access(self, token: str) -> TokenClaims:
        return self._decode(token, self._access_secret)

    def decode_refresh(self, token: str) -> TokenClaims:
        return self._decode(token, self._refresh_secret)

    def _decode(self, token: str, secret: str) -> TokenClaims:
        """Validate signature, audience, issuer and expiry in one pass.

        Returns the verified claims or raises InvalidTokenError. The reason
        for a failure is logged at DEBUG only and never surfaced.
        """
        if not isinstance(token, str) or not token:
            raise InvalidTokenError()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[_ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                options=_DECODE_OPTIONS,
            )
            return TokenClaims(
                subject=str(payload["sub"]),
                issuer=payload["iss"],
                audience=payload["aud"],
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                token_id=payload.get("jti"),
            )
        except (JWTError, KeyError, TypeError, ValueError) as exc:
            logger.debug("Token rejected: %s", type(exc).__name__)
            raise InvalidTokenError() from exc
