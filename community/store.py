"""
community/store.py -- SQLAlchemy-backed persistence layer for user profiles.

Uses SQLAlchemy Core (not ORM) so the dataclass in community/models.py
remains the authoritative domain representation.

This store is the profile provisioning collaborator of the auth service. It
satisfies auth.service.ProfileProvisioner structurally -- auth/ never imports
from community/, the app wires the two together in api/main.py.

Contract:
  create(subject_id, username=..., avatar=...) -> Profile
      Raises DuplicateProfileError if a profile already exists for the id.
  delete(subject_id) -> bool
      False when there was nothing to delete. Never raises for a missing row,
      so the auth service can retry or compensate safely.
  get(subject_id) -> Profile | None

Security: all queries use bound parameters. No f-strings in SQL.

DB URL: COMMUNITY_DB_URL (default spade_community.db at the repository root).
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from community.models import Profile

logger = logging.getLogger("spade.community")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_profiles = Table(
    "user_profiles",
    _metadata,
    Column("id", String(36), primary_key=True),  # subject_id from the auth store
    Column("username", String(64), nullable=False),
    Column("avatar", Text, nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
)


class DuplicateProfileError(Exception):
    """A profile already exists for this subject id."""


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ProfileStore:
    """Repository for Profile records in the community store.

    Usage:
        store = ProfileStore("sqlite:///:memory:")
        store.create(subject_id, username="sam")
        store.get(subject_id)
        store.delete(subject_id)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def exists(self, subject_id: str) -> bool:
        return self.get(subject_id) is not None

    def create(self, subject_id: str, username: str, avatar: str = "") -> Profile:
        """Insert a new profile and return it.

        The primary key enforces one profile per subject; a concurrent
        duplicate insert surfaces as DuplicateProfileError, not IntegrityError.
        """
        created_at = datetime.now(timezone.utc).isoformat()
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    _profiles.insert().values(
                        id=subject_id,
                        username=username,
                        avatar=avatar,
                        created_at=created_at,
                    )
                )
        except IntegrityError as exc:
            raise DuplicateProfileError(subject_id) from exc
        logger.info("Profile created for subject %s", subject_id)
        return Profile(id=subject_id, username=username, avatar=avatar, created_at=created_at)

    def get(self, subject_id: str) -> Optional[Profile]:
        with self.engine.connect() as conn:
            row = conn.execute(_profiles.select().where(_profiles.c.id == subject_id)).first()
        return _row_to_profile(row) if row is not None else None

    def delete(self, subject_id: str) -> bool:
        """Delete the profile for subject_id. Returns False if there was none."""
        with self.engine.begin() as conn:
            result = conn.execute(_profiles.delete().where(_profiles.c.id == subject_id))
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Profile deleted for subject %s", subject_id)
        return deleted

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_profile(row) -> Profile:
    return Profile(
        id=row.id,
        username=row.username,
        avatar=row.avatar or "",
        created_at=row.created_at,
    )
