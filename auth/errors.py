"""
auth/errors.py -- Error taxonomy for the authentication core.

Every failure the core reports is an AuthError subclass carrying a stable
machine-readable code, an HTTP-equivalent status, and a fixed user-facing
message. The API layer renders these three fields and nothing else, so no
stack trace, SQL text, or driver message ever reaches a caller.

Login failures are deliberately indistinguishable: BadRequestError and
VerificationError share one code and one message so a caller cannot tell
"no such email" from "wrong password".

Layer rule: no imports from api/, core/, or community/.
"""

from __future__ import annotations

_GENERIC_CREDENTIALS = "Please enter a valid email or password."
_GENERIC_SERVER = "Server error. Please try again."


class AuthError(Exception):
    """Base class for all authentication errors."""

    code: str = "auth_error"
    status_code: int = 400
    message: str = "Authentication or authorization error."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AuthError):
    """Malformed email or password. User-correctable."""

    code = "validation_error"
    status_code = 400
    message = _GENERIC_CREDENTIALS


class DuplicateUserError(AuthError):
    code = "duplicate_user"
    status_code = 409
    message = "User already exists."


class BadRequestError(AuthError):
    """Generic login failure. Never says which half of the credential was wrong."""

    code = "bad_credentials"
    status_code = 400
    message = _GENERIC_CREDENTIALS


class VerificationError(BadRequestError):
    """Password did not match the stored hash."""


class UnauthorizedError(AuthError):
    code = "unauthorized"
    status_code = 401
    message = "Please log in to continue."


class InvalidTokenError(UnauthorizedError):
    """Bad signature, wrong audience/issuer, malformed, or expired -- one error for all."""

    code = "invalid_token"
    message = "Invalid token."


class ForbiddenError(AuthError):
    code = "forbidden"
    status_code = 403
    message = "Forbidden."


class ServerError(AuthError):
    """Hashing failure, store unavailable, or any unexpected fault."""

    code = "internal_error"
    status_code = 500
    message = _GENERIC_SERVER
