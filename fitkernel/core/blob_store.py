"""Blob store: one JSON payload per named store.

Table ``store_blobs``: name (PK), payload (TEXT, JSON), updated_at (ISO-8601).
Each domain store owns exactly one row, so writing one store never touches
another store's row.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import text
from sqlalchemy.orm import Session, sessionmaker

from fitkernel.core.models import utc_now


class BlobStore(Protocol):
    def get(self, name: str) -> str | None: ...

    def put(self, name: str, payload: str) -> None: ...


class MemoryBlobStore:
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.blobs: dict[str, str] = dict(initial or {})
        self.writes: list[str] = []

    def get(self, name: str) -> str | None:
        return self.blobs.get(name)

    def put(self, name: str, payload: str) -> None:
        self.blobs[name] = payload
        self.writes.append(name)


def fetch_blob(session: Session, name: str) -> str | None:
    """Payload for ``name`` or None when the store was never written."""
    result = session.execute(
        text("SELECT payload FROM store_blobs WHERE name = :name"),
        {"name": name},
    )
    row = result.fetchone()
    if row is None:
        return None
    return row[0]


def upsert_blob(session: Session, name: str, payload: str) -> None:
    session.execute(
        text(
            "INSERT INTO store_blobs (name, payload, updated_at) "
            "VALUES (:name, :payload, :updated_at) "
            "ON CONFLICT (name) DO UPDATE SET "
            "payload = excluded.payload, updated_at = excluded.updated_at"
        ),
        {"name": name, "payload": payload, "updated_at": utc_now().isoformat()},
    )


class SqlBlobStore:
    """SQLAlchemy-backed store; every ``put`` commits its own transaction."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get(self, name: str) -> str | None:
        with self._session_factory() as session:
            return fetch_blob(session, name)

    def put(self, name: str, payload: str) -> None:
        with self._session_factory() as session, session.begin():
            upsert_blob(session, name, payload)
