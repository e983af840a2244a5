"""Query session: owns the embedded engine handle and its persisted image."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import Any, List, Optional

import aiosqlite

from dal.config import SessionConfig
from dal.errors import SessionClosedError
from dal.executor import StatementExecutor, StatementResult, quote_identifier
from dal.saved_databases import SavedDatabase, SavedTable
from dal.storage import KeyValueStore, store_from_config
from dal.util.timeouts import run_with_timeout
from dialect.type_mapper import storage_class
from generation.response import prepare_script
from schema import ColumnDef, ForeignKeyRef, TableDef, TableRows

logger = logging.getLogger(__name__)

EXPORT_HEADER = "-- SchemaCraft AI Database Export\n\n"

_TABLES_QUERY = """
    SELECT name, sql
    FROM sqlite_master
    WHERE type = 'table'
    AND name NOT LIKE 'sqlite_%'
"""


def _connector(image: Optional[bytes]):
    def _connect() -> sqlite3.Connection:
        conn = sqlite3.connect(":memory:", isolation_level=None, check_same_thread=False)
        if image:
            conn.deserialize(image)
        return conn

    return _connect


def _sql_literal(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"X'{bytes(value).hex().upper()}'"
    return str(value)


class QuerySession:
    """One embedded database, opened lazily from the persisted image.

    Sessions are independent: each owns its own connection and executor.
    Every mutating call persists the engine image after it commits.

    Example:
        async with QuerySession(store=InMemoryKeyValueStore()) as session:
            await session.execute("CREATE TABLE users (id INT PRIMARY KEY)")
            await session.list_tables()  # ["users"]
    """

    def __init__(
        self, store: Optional[KeyValueStore] = None, config: Optional[SessionConfig] = None
    ) -> None:
        self.config = config or SessionConfig.from_env()
        self.store = store if store is not None else store_from_config(self.config)
        self._executor: Optional[StatementExecutor] = None
        self._open_lock = asyncio.Lock()
        self._closed = False

    async def __aenter__(self) -> "QuerySession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._executor is not None and not self._closed

    async def _storage_call(self, operation_name: str, operation, timeout: Optional[float] = None):
        return await run_with_timeout(
            operation,
            timeout if timeout is not None else self.config.storage_timeout_seconds,
            backend=type(self.store).__name__,
            operation_name=operation_name,
        )

    async def _connect(self, image: Optional[bytes]) -> aiosqlite.Connection:
        conn = aiosqlite.Connection(_connector(image), iter_chunk_size=64)
        await conn
        return conn

    async def open(self, timeout: Optional[float] = None) -> StatementExecutor:
        """Open the engine, restoring the persisted image when one exists."""
        if self._closed:
            raise SessionClosedError("Query session is closed.")
        if self._executor is not None:
            return self._executor
        async with self._open_lock:
            if self._executor is None:
                image = await self._storage_call(
                    "get", lambda: self.store.get(self.config.storage_key), timeout
                )
                conn = await self._connect(image)
                self._executor = StatementExecutor(
                    conn,
                    persist=self.persist,
                    tokenized_split=self.config.tokenized_statement_split,
                )
                logger.info(
                    "dal_session_opened",
                    extra={"event": "dal_session_opened", "restored": bool(image)},
                )
        return self._executor

    async def _export_image(self) -> bytes:
        target = sqlite3.connect(":memory:", check_same_thread=False)
        try:
            await self._executor.connection.backup(target)
            return target.serialize()
        finally:
            target.close()

    async def persist(self, timeout: Optional[float] = None) -> None:
        """Write the current engine image to storage.

        Called with the executor lock held, after a commit.
        """
        image = await self._export_image()
        await self._storage_call(
            "put", lambda: self.store.put(self.config.storage_key, image), timeout
        )
        logger.debug(
            "dal_image_persisted", extra={"event": "dal_image_persisted", "bytes": len(image)}
        )

    async def _fetch(self, sql: str, params: tuple = ()) -> tuple[List[str], List[List[Any]]]:
        executor = await self.open()
        async with executor.lock:
            async with executor.connection.execute(sql, params) as cursor:
                columns = [column[0] for column in cursor.description or []]
                rows = [list(row) for row in await cursor.fetchall()]
        return columns, rows

    async def _tables(self, order_by: str) -> List[List[Any]]:
        _, rows = await self._fetch(f"{_TABLES_QUERY} ORDER BY {order_by}")
        return rows

    async def list_tables(self) -> List[str]:
        """Return user table names, sorted by name."""
        return [name for name, _ in await self._tables("name")]

    async def table_exists(self, table_name: str) -> bool:
        """Return True when a user table exists; names match case-insensitively."""
        _, rows = await self._fetch(f"{_TABLES_QUERY} AND name = ? COLLATE NOCASE", (table_name,))
        return bool(rows)

    async def table_columns(self, table_name: str) -> List[ColumnDef]:
        """Return column definitions; empty for an unknown table."""
        table = await self.table_def(table_name)
        return table.columns if table else []

    async def table_def(self, table_name: str) -> Optional[TableDef]:
        """Return the table definition with its foreign keys, or None if it does not exist."""
        safe_table = quote_identifier(table_name)
        _, col_rows = await self._fetch(f"PRAGMA table_info({safe_table})")
        if not col_rows:
            return None
        _, fk_rows = await self._fetch(f"PRAGMA foreign_key_list({safe_table})")

        foreign_keys = [
            ForeignKeyRef(from_column=row[3], to_table=row[2], to_column=row[4] or "")
            for row in fk_rows
        ]
        fk_columns = {fk.from_column.lower() for fk in foreign_keys}
        pk_count = sum(1 for row in col_rows if row[5])

        columns = []
        for _cid, name, raw_type, notnull, default, pk in col_rows:
            constraints = []
            if pk and pk_count == 1:
                constraints.append("PRIMARY KEY")
            if notnull:
                constraints.append("NOT NULL")
            if default is not None:
                constraints.append(f"DEFAULT {default}")
            columns.append(
                ColumnDef(
                    name=name,
                    raw_type=raw_type or "",
                    mapped_type=storage_class(raw_type or ""),
                    constraints=constraints,
                    is_primary_key=bool(pk),
                    is_foreign_key=name.lower() in fk_columns,
                )
            )
        return TableDef(name=table_name, columns=columns, foreign_keys=foreign_keys)

    async def table_rows(self, table_name: str, limit: Optional[int] = None) -> Optional[TableRows]:
        """Return up to `limit` rows, or None if the table does not exist."""
        if not await self.table_exists(table_name):
            return None
        limit = self.config.table_rows_limit if limit is None else limit
        columns, rows = await self._fetch(
            f"SELECT * FROM {quote_identifier(table_name)} LIMIT ?", (limit,)
        )
        return TableRows(columns=columns, rows=rows)

    async def drop_table(self, table_name: str) -> bool:
        """Drop a table and persist; returns False when it does not exist."""
        if not await self.table_exists(table_name):
            return False
        executor = await self.open()
        await executor.execute_statements([f"DROP TABLE IF EXISTS {quote_identifier(table_name)}"])
        return True

    async def clear_all(self, timeout: Optional[float] = None) -> None:
        """Replace the engine with an empty one and delete the persisted image."""
        executor = await self.open()
        async with executor.lock:
            old = executor.connection
            executor.connection = await self._connect(None)
            await old.close()
            await self._storage_call(
                "delete", lambda: self.store.delete(self.config.storage_key), timeout
            )
        logger.info("dal_session_cleared", extra={"event": "dal_session_cleared"})

    async def export_as_sql(self) -> str:
        """Export every table's DDL and rows, in creation order."""
        parts = [EXPORT_HEADER]
        for name, ddl in await self._tables("rowid"):
            parts.append(f"{ddl};\n\n")
            data = await self.table_rows(name, self.config.export_rows_limit)
            if data and data.rows:
                target = quote_identifier(name)
                for row in data.rows:
                    values = ", ".join(_sql_literal(value) for value in row)
                    parts.append(f"INSERT INTO {target} VALUES ({values});\n")
                parts.append("\n")
        return "".join(parts)

    async def execute(self, sql: str) -> List[StatementResult]:
        """Rewrite and run `sql` atomically; see `StatementExecutor`."""
        executor = await self.open()
        return await executor.execute(sql)

    async def execute_generated(self, text: str) -> List[StatementResult]:
        """Run text returned by schema generation (SQL, DBML or both)."""
        return await self.execute(prepare_script(text))

    async def snapshot(
        self, name: str, description: str = "", database_id: Optional[str] = None
    ) -> SavedDatabase:
        """Capture the current schema as a `SavedDatabase`."""
        tables = [SavedTable(name=table, sql=ddl) for table, ddl in await self._tables("rowid")]
        if not tables:
            raise ValueError("No tables to save. Create some tables first.")
        values = dict(
            name=name,
            description=description,
            schema_sql=";\n\n".join(table.sql for table in tables) + ";",
            tables=tables,
            table_count=len(tables),
        )
        if database_id:
            values["id"] = database_id
        return SavedDatabase(**values)

    async def load_saved(self, database: SavedDatabase) -> List[StatementResult]:
        """Replace every current table with the saved schema, atomically."""
        # Children were created after their parents; drop them first.
        current = [name for name, _ in await self._tables("rowid")]
        drops = [f"DROP TABLE IF EXISTS {quote_identifier(name)}" for name in reversed(current)]
        return await self.execute(";\n".join([*drops, database.schema_sql]))

    async def close(self) -> None:
        """Close the engine connection; the session cannot be reused."""
        if self._closed:
            return
        self._closed = True
        if self._executor is not None:
            async with self._executor.lock:
                await self._executor.connection.close()
            self._executor = None
        logger.info("dal_session_closed", extra={"event": "dal_session_closed"})
