"""
API request and response models for SPADE REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
community/models.py, which own the internal domain representation. Route
handlers map between the two.

Email and password fields are plain strings here on purpose: the only gate
for credential shape is auth.values (Email.parse / Password.parse). Validating
them twice would mean two policies that can drift apart, and would answer a
bad login with a 422 instead of the generic bad_credentials error.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from community.models import Profile

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    email: str = Field(max_length=255)
    password: str = Field(max_length=255)
    username: str = Field(min_length=1, max_length=64)
    avatar: str = Field(default="", max_length=2048)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str = Field(max_length=255)
    password: str = Field(max_length=255)


class EmailUpdate(BaseModel):
    email: str = Field(max_length=255)


class PasswordUpdate(BaseModel):
    password: str = Field(max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AuthResponse(BaseModel):
    """Envelope for every auth mutation. Tokens travel in cookies, never here."""

    success: bool
    message: Optional[str] = None


class ProfileResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    avatar: str
    created_at: str

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            id=profile.id,
            username=profile.username,
            avatar=profile.avatar,
            created_at=profile.created_at,
        )


class ErrorDetail(BaseModel):
    """Structured error detail included in all error responses.

    code is a stable machine-readable identifier (e.g. "bad_credentials").
    message is the fixed human-readable text for that code.
    """

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned by all exception handlers."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Liveness response. components maps each store to "ok" or "error"."""

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
