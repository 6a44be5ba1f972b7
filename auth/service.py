"""
auth/service.py -- Orchestration of the account and session lifecycle.

AuthService composes the value objects, the token manager, the credential
store and the profile provisioning collaborator. It is the only component
that reasons across the two stores.

Cross-store consistency [X1]:
  Invariant: a credential record exists iff a profile record exists for the
  same subject. The stores are separate databases, so registration and
  deletion run as sagas (auth/saga.py) with explicit compensation instead of
  a distributed transaction:
    register: insert credential  -> create profile
              undo: delete the credential just inserted
    delete:   delete credential  -> delete profile
              undo: re-insert the credential snapshot (best effort)

Single active refresh token [R1]:
  The credential record stores the one refresh token that is currently
  valid. Login overwrites it, logout clears it, and the refresh path rejects
  any presented token that does not equal the stored one. Logging out
  therefore revokes every previously issued refresh token, not just the
  cookie in one browser.

Enumeration resistance [C1]:
  Login returns one generic BadRequestError for unknown email, wrong
  password, and malformed input. An unknown email still pays for a full
  Argon2 verification against DUMMY_HASH so timing does not leak existence.

Error boundary:
  Store failures (SQLAlchemyError) are logged here and re-raised as
  ServerError. Nothing from the driver reaches the caller.

Layer rule: no imports from api/ or community/. The profile store is reached
only through the ProfileProvisioner protocol.
"""

from __future__ import annotations

import hmac
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager, suppress
from typing import Any, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import (
    BadRequestError,
    DuplicateUserError,
    ForbiddenError,
    InvalidTokenError,
    ServerError,
    UnauthorizedError,
    ValidationError,
    VerificationError,
)
from auth.models import Credential, TokenPair
from auth.saga import Saga
from auth.store import CredentialStore
from auth.tokens import TokenManager
from auth.values import DUMMY_HASH, Email, Password

logger = logging.getLogger("spade.auth")


class ProfileProvisioner(Protocol):
    """The slice of the community store the auth service depends on."""

    def create(self, subject_id: str, username: str, avatar: str = "") -> Any: ...

    def delete(self, subject_id: str) -> bool: ...


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate unexpected store failures into ServerError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Credential store failure during %s", operation)
        raise ServerError() from exc


class AuthService:
    """Registration, login, logout, refresh, credential updates and deletion.

    Usage:
        service = AuthService(CredentialStore(url), ProfileStore(url2), TokenManager.from_settings())
        tokens = service.register("a@b.com", "Abcdef1!", username="sam")
        subject_id = service.authenticate(tokens.access_token)
    """

    def __init__(self, credentials: CredentialStore, profiles: ProfileProvisioner, tokens: TokenManager) -> None:
        self._credentials = credentials
        self._profiles = profiles
        self._tokens = tokens

    # ------------------------------------------------------------------
    # Registration [X1]
    # ------------------------------------------------------------------

    def register(self, raw_email: str, raw_password: str, username: str, avatar: str = "") -> TokenPair:
        """Create a credential record and its profile; return fresh tokens.

        Raises ValidationError before touching any store, DuplicateUserError
        if the email is taken, and ServerError if either store fails. A
        profile failure deletes the just-inserted credential before the error
        is reported.
        """
        email = Email.parse(raw_email)
        password = Password.parse(raw_password)

        with _store_errors("registration lookup"):
            if self._credentials.email_exists(email):
                raise DuplicateUserError()

        account_id = str(uuid.uuid4())
        subject_id = str(uuid.uuid4())
        # Refresh tokens re-derive identity through the stored record, so they
        # are bound to the internal id. Access tokens carry the external one.
        refresh_token = self._tokens.issue_refresh(account_id)
        access_token = self._tokens.issue_access(subject_id)
        record = Credential(
            id=account_id,
            email=email,
            hash=password.hash(),
            subject_id=subject_id,
            refresh_token=refresh_token,
        )

        (
            Saga("register")
            .step(
                "insert credential",
                lambda: self._insert_credential(record),
                lambda: self._credentials.delete_by_id(account_id),
            )
            .step(
                "create profile",
                lambda: self._create_profile(subject_id, username, avatar),
            )
            .run()
        )

        logger.info("Account registered: subject %s", subject_id)
        return TokenPair(access_token, refresh_token)

    def _insert_credential(self, record: Credential) -> Credential:
        try:
            return self._credentials.insert(record)
        except IntegrityError as exc:
            # Lost the race against a concurrent registration of the same email.
            raise DuplicateUserError() from exc
        except SQLAlchemyError as exc:
            logger.exception("Credential insert failed")
            raise ServerError() from exc

    def _create_profile(self, subject_id: str, username: str, avatar: str) -> Any:
        try:
            return self._profiles.create(subject_id, username=username, avatar=avatar)
        except Exception as exc:
            logger.exception("Profile provisioning failed for subject %s", subject_id)
            raise ServerError("There was an issue creating the user profile. Please try again.") from exc

    # ------------------------------------------------------------------
    # Sessions [C1][R1]
    # ------------------------------------------------------------------

    def login(self, raw_email: str, raw_password: str) -> TokenPair:
        """Verify credentials, rotate the stored refresh token, return tokens."""
        try:
            email = Email.parse(raw_email)
            password = Password.parse(raw_password)
        except ValidationError as exc:
            raise BadRequestError() from exc

        with _store_errors("login lookup"):
            record = self._credentials.get_by_email(email)
        if record is None:
            # Equalize timing -- do NOT return before running Argon2 [C1]
            with suppress(VerificationError):
                password.verify(DUMMY_HASH)
            raise BadRequestError()
        try:
            password.verify(record.hash)
        except VerificationError as exc:
            raise BadRequestError() from exc

        access_token = self._tokens.issue_access(record.subject_id)
        refresh_token = self._tokens.issue_refresh(record.id)
        with _store_errors("login"):
            self._credentials.set_refresh_token(record.subject_id, refresh_token)

        logger.info("Login: subject %s", record.subject_id)
        return TokenPair(access_token, refresh_token)

    def logout(self, access_token: str) -> None:
        """Clear the stored refresh token for the token's subject.

        InvalidTokenError propagates. Access tokens already issued stay valid
        until their own expiry. Logging out twice is not an error.
        """
        claims = self._tokens.decode_access(access_token)
        with _store_errors("logout"):
            cleared = self._credentials.clear_refresh_token(claims.subject)
        if not cleared:
            logger.info("Logout for unknown subject %s", claims.subject)
            return
        logger.info("Logout: subject %s", claims.subject)

    def refresh(self, refresh_token: str) -> str:
        """Return a new access token for a valid, current refresh token [R1].

        Every failure is ForbiddenError: bad or expired token, unknown account,
        or a token that is no longer the stored one (logged out, or superseded
        by a later login). The refresh token itself is not rotated.
        """
        try:
            claims = self._tokens.decode_refresh(refresh_token)
        except InvalidTokenError as exc:
            raise ForbiddenError() from exc

        with _store_errors("refresh"):
            record = self._credentials.get_by_id(claims.subject)
        if record is None:
            raise ForbiddenError()
        if not record.refresh_token or not hmac.compare_digest(
            record.refresh_token.encode("utf-8"), refresh_token.encode("utf-8")
        ):
            logger.warning("Refresh rejected: stale token for subject %s", record.subject_id)
            raise ForbiddenError()

        return self._tokens.issue_access(record.subject_id)

    def authenticate(self, access_token: str) -> str:
        """Resolve an access token to the subject id of an existing account.

        This is the single interface point for anything that acts on behalf of
        a user (profile reads, content creation). Any failure is
        UnauthorizedError.
        """
        claims = self._tokens.decode_access(access_token)
        with _store_errors("authenticate"):
            record = self._credentials.get_by_subject(claims.subject)
        if record is None:
            raise UnauthorizedError()
        return record.subject_id

    # ------------------------------------------------------------------
    # Credential updates
    # ------------------------------------------------------------------

    def update_email(self, access_token: str, raw_email: str) -> None:
        email = Email.parse(raw_email)
        claims = self._tokens.decode_access(access_token)
        try:
            updated = self._credentials.update_email(claims.subject, email)
        except IntegrityError as exc:
            raise DuplicateUserError() from exc
        except SQLAlchemyError as exc:
            logger.exception("Credential store failure during email update")
            raise ServerError() from exc
        if not updated:
            raise UnauthorizedError()
        logger.info("Email updated: subject %s", claims.subject)

    def update_password(self, access_token: str, raw_password: str) -> None:
        password = Password.parse(raw_password)
        claims = self._tokens.decode_access(access_token)
        password_hash = password.hash()
        with _store_errors("password update"):
            updated = self._credentials.update_hash(claims.subject, password_hash)
        if not updated:
            raise UnauthorizedError()
        logger.info("Password updated: subject %s", claims.subject)

    # ------------------------------------------------------------------
    # Deletion [X1]
    # ------------------------------------------------------------------

    def delete_account(self, access_token: str) -> None:
        """Delete the credential record and the profile of the token's subject.

        Both must succeed. If the profile delete fails, the credential record
        is re-inserted from a snapshot (best effort) and ServerError is
        reported. Deleting a profile that is already gone is not a failure.
        """
        claims = self._tokens.decode_access(access_token)
        subject_id = claims.subject
        with _store_errors("deletion lookup"):
            snapshot = self._credentials.get_by_subject(subject_id)
        if snapshot is None:
            raise UnauthorizedError()

        saga = (
            Saga("delete account")
            .step(
                "delete credential",
                lambda: self._credentials.delete_by_subject(subject_id),
                lambda: self._restore(snapshot),
            )
            .step("delete profile", lambda: self._profiles.delete(subject_id))
        )
        try:
            saga.run()
        except Exception as exc:
            logger.exception("Account deletion failed for subject %s", subject_id)
            raise ServerError() from exc

        logger.info("Account deleted: subject %s", subject_id)

    def _restore(self, snapshot: Credential) -> None:
        """Undo a credential delete. A record that is still present is left alone."""
        if self._credentials.get_by_subject(snapshot.subject_id) is None:
            self._credentials.insert(snapshot)
