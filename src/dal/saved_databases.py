"""Library of named database schemas kept alongside the live session."""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from dal.config import DEFAULT_SAVED_DATABASES_KEY
from dal.storage import KeyValueStore
from dal.util.timeouts import run_with_timeout

logger = logging.getLogger(__name__)


def new_database_id() -> str:
    return f"db_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class SavedTable(BaseModel):
    """One table of a saved database, with the DDL that creates it."""

    name: str
    sql: str


class SavedDatabase(BaseModel):
    """A named, reloadable database schema.

    Serialized with the camelCase keys used by exported database files
    (`schema`, `tableCount`, `createdAt`, `updatedAt`).
    """

    id: str = Field(default_factory=new_database_id)
    name: str
    description: str = ""
    schema_sql: str = Field(alias="schema")
    tables: List[SavedTable] = Field(default_factory=list)
    table_count: int = Field(default=0, alias="tableCount")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    model_config = {"populate_by_name": True}

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class SavedDatabaseStore:
    """CRUD over the saved-database library, stored as one JSON document."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DEFAULT_SAVED_DATABASES_KEY,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._store = store
        self._key = key
        self._timeout_seconds = timeout_seconds

    async def _load(self) -> List[SavedDatabase]:
        raw = await run_with_timeout(
            lambda: self._store.get(self._key),
            self._timeout_seconds,
            backend=type(self._store).__name__,
            operation_name="get",
        )
        if not raw:
            return []
        return [SavedDatabase.model_validate(item) for item in json.loads(raw)]

    async def _dump(self, databases: List[SavedDatabase]) -> None:
        payload = json.dumps([db.model_dump(mode="json", by_alias=True) for db in databases])
        await run_with_timeout(
            lambda: self._store.put(self._key, payload.encode("utf-8")),
            self._timeout_seconds,
            backend=type(self._store).__name__,
            operation_name="put",
        )

    async def list(self) -> List[SavedDatabase]:
        """Return every saved database in insertion order."""
        return await self._load()

    async def get(self, database_id: str) -> Optional[SavedDatabase]:
        return next((db for db in await self._load() if db.id == database_id), None)

    async def save(self, database: SavedDatabase) -> SavedDatabase:
        """Insert or replace by id; stamps `created_at` on insert and `updated_at` always."""
        databases = await self._load()
        now = datetime.now(timezone.utc)
        for index, existing in enumerate(databases):
            if existing.id == database.id:
                stored = database.model_copy(
                    update={
                        "created_at": database.created_at or existing.created_at,
                        "updated_at": now,
                    }
                )
                databases[index] = stored
                break
        else:
            stored = database.model_copy(update={"created_at": now, "updated_at": now})
            databases.append(stored)

        await self._dump(databases)
        logger.info(
            "saved_database_stored",
            extra={"event": "saved_database_stored", "database_id": stored.id},
        )
        return stored

    async def delete(self, database_id: str) -> bool:
        """Remove a saved database; returns False when the id is unknown."""
        databases = await self._load()
        remaining = [db for db in databases if db.id != database_id]
        if len(remaining) == len(databases):
            return False
        await self._dump(remaining)
        return True

    @staticmethod
    def export_json(database: SavedDatabase) -> str:
        return database.to_json()

    async def import_json(self, text: str) -> SavedDatabase:
        """Store a database from an exported file under a fresh id."""
        try:
            database = SavedDatabase.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError, TypeError) as exc:
            raise ValueError("Invalid database file") from exc
        return await self.save(database.model_copy(update={"id": new_database_id()}))
