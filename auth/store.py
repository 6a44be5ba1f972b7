"""
auth/store.py -- SQLAlchemy Core persistence layer for credential records.

Pattern: Repository + Data Mapper (same as community/store.py).
CredentialStore is the repository; _row_to_credential is the mapper.
The service never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Only the Argon2 hash is stored. The raw password never reaches this module:
  methods take validated Email values and pre-computed hash strings.

Transactions:
  Every write runs in its own single-store transaction via engine.begin().
  insert() reads the row back inside the same transaction so the caller gets
  exactly what was committed. Cross-store consistency with the profile store
  is NOT handled here -- see auth/service.py.

DB URL: AUTH_DB_URL (default spade_auth.db at the repository root).

Layer rule: no imports from api/ or community/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, select, text
from sqlalchemy.engine import Engine

from auth.models import Credential
from auth.values import Email

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_auths = Table(
    "auths",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hash", Text, nullable=False),
    Column("subject_id", String(36), nullable=False, unique=True),
    Column("refresh_token", Text, nullable=False, server_default=""),  # "" = logged out
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for Credential records in the authentication store.

    Usage:
        store = CredentialStore("sqlite:///:memory:")
        store.insert(Credential(id=..., email=Email.parse("a@b.com"), hash=..., subject_id=...))
        record = store.get_by_email(Email.parse("a@b.com"))
        store.close()

    Lookups return None when nothing matches. Mutations return True if a row
    was affected. Deletes are idempotent: deleting a missing row returns
    False, it does not raise.
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def email_exists(self, email: Email) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(select(_auths.c.id).where(_auths.c.email == email.as_str())).first()
        return row is not None

    def get_by_email(self, email: Email) -> Credential | None:
        with self.engine.connect() as conn:
            row = conn.execute(_auths.select().where(_auths.c.email == email.as_str())).first()
        return _row_to_credential(row) if row is not None else None

    def get_by_id(self, account_id: str) -> Credential | None:
        """Look up by the internal account id (the refresh token subject)."""
        with self.engine.connect() as conn:
            row = conn.execute(_auths.select().where(_auths.c.id == account_id)).first()
        return _row_to_credential(row) if row is not None else None

    def get_by_subject(self, subject_id: str) -> Credential | None:
        """Look up by the external subject id (the access token subject)."""
        with self.engine.connect() as conn:
            row = conn.execute(_auths.select().where(_auths.c.subject_id == subject_id)).first()
        return _row_to_credential(row) if row is not None else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, record: Credential) -> Credential:
        """Insert a credential record and return it as committed.

        Raises sqlalchemy.exc.IntegrityError if the email or subject_id is
        already taken. The service turns that into DuplicateUserError -- it is
        the signal that a concurrent registration won the race after the
        existence check.

        created_at is preserved when set, so a compensating re-insert restores
        the original record unchanged.
        """
        with self.engine.begin() as conn:
            conn.execute(
                _auths.insert().values(
                    id=record.id,
                    email=record.email.as_str(),
                    hash=record.hash,
                    subject_id=record.subject_id,
                    refresh_token=record.refresh_token,
                    created_at=record.created_at or _now_iso(),
                )
            )
            row = conn.execute(_auths.select().where(_auths.c.id == record.id)).one()
        return _row_to_credential(row)

    def set_refresh_token(self, subject_id: str, refresh_token: str) -> bool:
        """Replace the stored refresh token. Any previous token stops working."""
        return self._update(subject_id, refresh_token=refresh_token)

    def clear_refresh_token(self, subject_id: str) -> bool:
        return self._update(subject_id, refresh_token="")

    def update_email(self, subject_id: str, email: Email) -> bool:
        """Raises IntegrityError if another account already uses the email."""
        return self._update(subject_id, email=email.as_str())

    def update_hash(self, subject_id: str, password_hash: str) -> bool:
        return self._update(subject_id, hash=password_hash)

    def _update(self, subject_id: str, **fields) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(_auths.update().where(_auths.c.subject_id == subject_id).values(**fields))
        return result.rowcount > 0

    def delete_by_id(self, account_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(_auths.delete().where(_auths.c.id == account_id))
        return result.rowcount > 0

    def delete_by_subject(self, subject_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(_auths.delete().where(_auths.c.subject_id == subject_id))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the store answers a trivial query. Used by /health."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_credential(row) -> Credential:
    return Credential(
        id=row.id,
        email=Email(row.email),
        hash=row.hash,
        subject_id=row.subject_id,
        refresh_token=row.refresh_token or "",
        created_at=row.created_at,
    )
