"""
auth/values.py -- Email and Password value objects.

Parse, don't validate: an Email or Password can only be obtained through
parse(), which either returns a fully valid value or raises ValidationError.
Every store and service method downstream takes these types, never raw
strings, so an unvalidated credential cannot reach the database.

Passwords: argon2-cffi PasswordHasher (Argon2id). Argon2 is memory-hard, so
GPU/ASIC brute force of a leaked hash table is expensive. The library draws a
fresh random salt on every hash() call and embeds it in the encoded string,
so two hashes of the same password never compare equal.

Layer rule: no imports from api/, core/, or community/.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError
from argon2.exceptions import VerificationError as Argon2VerificationError

from auth.errors import ServerError, ValidationError, VerificationError

logger = logging.getLogger("spade.auth")

# local@label.label.tld -- the final label needs at least two characters.
# Applied with fullmatch(): "$" would also accept a trailing newline.
# ASCII only: the lower-cased form of an accepted address must re-parse.
_EMAIL_RE = re.compile(r"[\w\-.]+@([\w-]+\.)+[\w-]{2,}", re.ASCII)

# 8-24 chars with at least one lowercase, uppercase, digit and symbol.
_PASSWORD_RE = re.compile(r"(?=.*[a-z])(?=.*[A-Z])(?=.*[0-9])(?=.*[!@#$%]).{8,24}")

_hasher = PasswordHasher()


@dataclass(frozen=True)
class Email:
    """A syntactically valid, lower-cased email address.

    Construction runs the same check as parse(), so Email("Foo@Bar.com")
    and Email.parse("Foo@Bar.com") are equivalent and equal.
    """

    value: str

    def __post_init__(self) -> None:
        raw = self.value
        if not isinstance(raw, str) or not raw:
            raise ValidationError()
        normalized = raw.lower()
        if _EMAIL_RE.fullmatch(normalized) is None:
            raise ValidationError()
        object.__setattr__(self, "value", normalized)

    @classmethod
    def parse(cls, raw: str) -> Email:
        return cls(raw)

    def as_str(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class Password:
    """A raw password that satisfied the complexity policy at construction.

    The raw value lives only in memory for the duration of a request. It is
    hidden from repr() so it cannot leak into logs or tracebacks.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: str) -> None:
        if not isinstance(raw, str) or _PASSWORD_RE.fullmatch(raw) is None:
            raise ValidationError()
        self._raw = raw

    @classmethod
    def parse(cls, raw: str) -> Password:
        return cls(raw)

    def hash(self) -> str:
        """Return an Argon2id encoded hash with a freshly generated salt.

        Hashing failure is a server fault, not a validation fault.
        """
        try:
            return _hasher.hash(self._raw)
        except HashingError as exc:
            logger.error("Password hashing failed")
            raise ServerError() from exc

    def verify(self, candidate_hash: str) -> None:
        """Raise VerificationError unless this password produced candidate_hash.

        A malformed stored hash is treated as a mismatch rather than a crash.
        """
        try:
            _hasher.verify(candidate_hash, self._raw)
        except (Argon2VerificationError, InvalidHashError) as exc:
            raise VerificationError() from exc

    def __repr__(self) -> str:
        return "Password('********')"


# Timing equalization dummy hash. Computed once at module load so the first
# login attempt is not measurably slower than later ones. Login verifies
# against this when the email is unknown, so response time does not reveal
# whether an account exists.
DUMMY_HASH: str = _hasher.hash("spade-timing-Dummy-1!")
