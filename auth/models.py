"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the
service do the work; these only carry shape.

Layer rule: no imports from api/, core/, or community/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple

from auth.values import Email


@dataclass
class Credential:
    """One row of the authentication store.

    id is the internal account identity and is the subject of refresh
    tokens. subject_id is the externally visible identity: it is the subject
    of access tokens and the key of the profile record in the community
    store. Keeping the two apart means an access token never exposes the
    internal id.

    refresh_token is the single currently-valid refresh token. An empty
    string means the account is logged out.
    """

    id: str
    email: Email
    hash: str
    subject_id: str
    refresh_token: str = ""
    created_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Decoded, verified claims of an access or refresh token."""

    subject: str
    issuer: str
    audience: str
    issued_at: datetime
    expires_at: datetime
    token_id: str | None = None  # jti, refresh tokens only


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str
