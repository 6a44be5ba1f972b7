"""Unit tests for auth/tokens.py -- TokenManager.

Covers:
- Access and refresh tokens decode to the subject they were issued for
- Claims carry issuer, audience, and the 1-day / 14-day expiry windows
- Access and refresh secrets are not interchangeable
- Wrong audience, wrong issuer, tampering and garbage all raise InvalidTokenError
- Expiry boundary: just past expiry fails, just before expiry succeeds
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.errors import InvalidTokenError
from auth.tokens import ACCESS_TOKEN_TTL, REFRESH_TOKEN_TTL, TokenManager
from conftest import TEST_ACCESS_SECRET, TEST_REFRESH_SECRET


def _manager_at(moment: datetime, **overrides) -> TokenManager:
    """TokenManager whose clock is frozen at moment (issuance only)."""
    kwargs = {
        "access_secret": TEST_ACCESS_SECRET,
        "refresh_secret": TEST_REFRESH_SECRET,
        "issuer": "auth.test",
        "audience": "test",
        "clock": lambda: moment,
    }
    kwargs.update(overrides)
    return TokenManager(**kwargs)


class TestIssueAndDecode:
    def test_access_round_trip(self, token_manager: TokenManager) -> None:
        claims = token_manager.decode_access(token_manager.issue_access("subject-1"))
        assert claims.subject == "subject-1"
        assert claims.issuer == "auth.test"
        assert claims.audience == "test"
        assert claims.expires_at - claims.issued_at == ACCESS_TOKEN_TTL

    def test_refresh_round_trip(self, token_manager: TokenManager) -> None:
        claims = token_manager.decode_refresh(token_manager.issue_refresh("account-1"))
        assert claims.subject == "account-1"
        assert claims.expires_at - claims.issued_at == REFRESH_TOKEN_TTL
        assert claims.token_id

    def test_refresh_tokens_are_unique_within_one_second(self) -> None:
        manager = _manager_at(datetime.now(timezone.utc))
        assert manager.issue_refresh("account-1") != manager.issue_refresh("account-1")

    def test_wire_format_claims(self, token_manager: TokenManager) -> None:
        payload = jwt.get_unverified_claims(token_manager.issue_access("subject-1"))
        assert set(payload) == {"aud", "iss", "iat", "exp", "sub"}
        assert jwt.get_unverified_header(token_manager.issue_access("s"))["alg"] == "HS256"


class TestRejection:
    def test_refresh_token_is_not_an_access_token(self, token_manager: TokenManager) -> None:
        with pytest.raises(InvalidTokenError):
            token_manager.decode_access(token_manager.issue_refresh("account-1"))

    def test_access_token_is_not_a_refresh_token(self, token_manager: TokenManager) -> None:
        with pytest.raises(InvalidTokenError):
            token_manager.decode_refresh(token_manager.issue_access("subject-1"))

    def test_wrong_audience(self, token_manager: TokenManager) -> None:
        other = _manager_at(datetime.now(timezone.utc), audience="someone-else")
        with pytest.raises(InvalidTokenError):
            token_manager.decode_access(other.issue_access("subject-1"))

    def test_wrong_issuer(self, token_manager: TokenManager) -> None:
        other = _manager_at(datetime.now(timezone.utc), issuer="evil.test")
        with pytest.raises(InvalidTokenError):
            token_manager.decode_access(other.issue_access("subject-1"))

    def test_tampered_payload(self, token_manager: TokenManager) -> None:
        header, _payload, signature = token_manager.issue_access("subject-1").split(".")
        forged_payload = jwt.encode({"sub": "admin"}, "x" * 40, algorithm="HS256").split(".")[1]
        with pytest.raises(InvalidTokenError):
            token_manager.decode_access(f"{header}.{forged_payload}.{signature}")

    def test_missing_subject(self, token_manager: TokenManager) -> None:
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"aud": "test", "iss": "auth.test", "iat": now, "exp": now + 60},
            TEST_ACCESS_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            token_manager.decode_access(token)

    @pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c", None])
    def test_garbage(self, token_manager: TokenManager, garbage) -> None:
        with pytest.raises(InvalidTokenError):
            token_manager.decode_access(garbage)


class TestExpiryBoundary:
    def test_expired_access_token(self, token_manager: TokenManager) -> None:
        issued = datetime.now(timezone.utc) - ACCESS_TOKEN_TTL - timedelta(seconds=1)
        token = _manager_at(issued).issue_access("subject-1")
        with pytest.raises(InvalidTokenError):
            token_manager.decode_access(token)

    def test_access_token_just_before_expiry(self, token_manager: TokenManager) -> None:
        issued = datetime.now(timezone.utc) - ACCESS_TOKEN_TTL + timedelta(seconds=1)
        token = _manager_at(issued).issue_access("subject-1")
        assert token_manager.decode_access(token).subject == "subject-1"

    def test_expired_refresh_token(self, token_manager: TokenManager) -> None:
        issued = datetime.now(timezone.utc) - REFRESH_TOKEN_TTL - timedelta(seconds=1)
        token = _manager_at(issued).issue_refresh("account-1")
        with pytest.raises(InvalidTokenError):
            token_manager.decode_refresh(token)

    def test_refresh_token_just_before_expiry(self, token_manager: TokenManager) -> None:
        issued = datetime.now(timezone.utc) - REFRESH_TOKEN_TTL + timedelta(seconds=1)
        token = _manager_at(issued).issue_refresh("account-1")
        assert token_manager.decode_refresh(token).subject == "account-1"


class TestConstruction:
    def test_rejects_shared_secret(self) -> None:
        with pytest.raises(ValueError):
            TokenManager(TEST_ACCESS_SECRET, TEST_ACCESS_SECRET, issuer="i", audience="a")

    def test_rejects_empty_secret(self) -> None:
        with pytest.raises(ValueError):
            TokenManager("", TEST_REFRESH_SECRET, issuer="i", audience="a")
