"""Transactional execution of SQL scripts against the session's engine handle."""

from __future__ import annotations

import asyncio
import logging
import re
import sqlite3
from typing import Any, Awaitable, Callable, List, Optional

import aiosqlite
from pydantic import BaseModel, Field

from dal.error_classification import build_execution_error, emit_classified_error
from dal.errors import StatementExecutionError
from dal.statements import split_statements
from dal.tracing import trace_batch_operation
from dialect.rewriter import rewrite

logger = logging.getLogger(__name__)

PROVIDER = "sqlite"

_TRANSACTION_CONTROL = re.compile(
    r"^(?:BEGIN(?:\s+(?:DEFERRED|IMMEDIATE|EXCLUSIVE))?|COMMIT|END|ROLLBACK)"
    r"(?:\s+TRANSACTION)?$",
    re.IGNORECASE,
)
_CREATE_TABLE_NAME = re.compile(
    r"^CREATE\s+(?:(?:TEMP|TEMPORARY)\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?"
    r'(?:(?:"[^"]+"|\w+)\.)?(?P<name>"(?:[^"]|"")+"|\w+)',
    re.IGNORECASE,
)


class StatementResult(BaseModel):
    """Outcome of one statement in a committed batch."""

    statement: str
    columns: List[str] = Field(default_factory=list)
    rows: List[List[Any]] = Field(default_factory=list)
    success: bool = True


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _unquote_identifier(name: str) -> str:
    if name.startswith('"') and name.endswith('"'):
        return name[1:-1].replace('""', '"')
    return name


class StatementExecutor:
    """Runs statement batches atomically against one aiosqlite connection.

    Every batch runs inside a single transaction: the first failing statement
    rolls back the whole batch and raises a classified
    `StatementExecutionError`. After a commit, `persist` (if given) is awaited
    so the stored image always reflects a completed transaction.

    `lock` serializes batches; callers that read or swap the connection take
    it too.
    """

    def __init__(
        self,
        connection: aiosqlite.Connection,
        persist: Optional[Callable[[], Awaitable[None]]] = None,
        tokenized_split: bool = False,
    ) -> None:
        self.connection = connection
        self.lock = asyncio.Lock()
        self._persist = persist
        self._tokenized_split = tokenized_split

    async def execute(self, sql: str) -> List[StatementResult]:
        """Rewrite, split and run `sql` as one atomic batch."""
        rewritten = rewrite(sql)
        statements = split_statements(rewritten, tokenized=self._tokenized_split)
        return await self.execute_statements(statements, sql=rewritten)

    async def execute_statements(
        self, statements: List[str], sql: Optional[str] = None
    ) -> List[StatementResult]:
        """Run already-prepared statements as one atomic batch."""
        batch = []
        for statement in statements:
            if _TRANSACTION_CONTROL.match(statement.strip()):
                logger.debug(
                    "dal_transaction_control_skipped",
                    extra={"event": "dal_transaction_control_skipped"},
                )
                continue
            batch.append(statement)
        if not batch:
            return []

        async with self.lock:
            return await trace_batch_operation(
                "dal.batch.execute",
                provider=PROVIDER,
                sql=sql if sql is not None else ";\n".join(batch),
                statement_count=len(batch),
                operation=self._run_shielded(batch),
            )

    async def _run_shielded(self, statements: List[str]) -> List[StatementResult]:
        # A cancelled caller must not leave the engine mid-transaction.
        task = asyncio.ensure_future(self._run_batch(statements))
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            await asyncio.wait({task})
            raise

    async def _run_batch(self, statements: List[str]) -> List[StatementResult]:
        conn = self.connection
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("BEGIN")
        results: List[StatementResult] = []
        try:
            for statement in statements:
                results.append(await self._run_statement(conn, statement))
        except StatementExecutionError as error:
            await self._rollback(conn)
            emit_classified_error(PROVIDER, "execute", error)
            raise
        except BaseException:
            await self._rollback(conn)
            raise

        await conn.execute("COMMIT")
        logger.info(
            "dal_batch_committed",
            extra={"event": "dal_batch_committed", "statement_count": len(results)},
        )
        if self._persist is not None:
            await self._persist()
        return results

    async def _rollback(self, conn: aiosqlite.Connection) -> None:
        if conn.in_transaction:
            await conn.execute("ROLLBACK")
        logger.info("dal_batch_rolled_back", extra={"event": "dal_batch_rolled_back"})

    async def _run_statement(self, conn: aiosqlite.Connection, statement: str) -> StatementResult:
        try:
            cursor = await conn.execute(statement)
            try:
                description = cursor.description
                rows = await cursor.fetchall() if description else []
            finally:
                await cursor.close()
        except sqlite3.Error as exc:
            raise build_execution_error(statement, str(exc)) from exc

        match = _CREATE_TABLE_NAME.match(statement)
        if match:
            await self._verify_parent_tables(
                conn, statement, _unquote_identifier(match.group("name"))
            )

        return StatementResult(
            statement=statement,
            columns=[column[0] for column in description or []],
            rows=[list(row) for row in rows],
        )

    async def _verify_parent_tables(
        self, conn: aiosqlite.Connection, statement: str, table: str
    ) -> None:
        # The engine accepts REFERENCES to a missing table at CREATE time.
        async with conn.execute(f"PRAGMA foreign_key_list({quote_identifier(table)})") as cursor:
            parents = {row[2] for row in await cursor.fetchall()}
        for parent in sorted(parents):
            async with conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ? COLLATE NOCASE",
                (parent,),
            ) as cursor:
                found = await cursor.fetchone()
            if found is None:
                raise build_execution_error(
                    statement,
                    f"foreign key on table '{table}' references missing table '{parent}'",
                )
