"""Data Abstraction Layer (DAL) for the embedded SQLite session.

This package exposes the query session, the statement executor it drives, the
typed execution errors and the storage backends the engine image lives in.
"""

from dal.config import SessionConfig
from dal.errors import (
    ColumnNotFoundError,
    ExecutionErrorCategory,
    ForeignKeyViolationError,
    ObjectAlreadyExistsError,
    SessionClosedError,
    SqlSyntaxError,
    StatementExecutionError,
    UnknownExecutionError,
)
from dal.executor import StatementExecutor, StatementResult
from dal.saved_databases import SavedDatabase, SavedDatabaseStore, SavedTable
from dal.session import QuerySession
from dal.statements import split_statements
from dal.storage import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore, store_from_config
from dal.util.timeouts import StorageTimeoutError

__all__ = [
    "ColumnNotFoundError",
    "ExecutionErrorCategory",
    "FileKeyValueStore",
    "ForeignKeyViolationError",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "ObjectAlreadyExistsError",
    "QuerySession",
    "SavedDatabase",
    "SavedDatabaseStore",
    "SavedTable",
    "SessionClosedError",
    "SessionConfig",
    "SqlSyntaxError",
    "StatementExecutionError",
    "StatementExecutor",
    "StatementResult",
    "StorageTimeoutError",
    "UnknownExecutionError",
    "split_statements",
    "store_from_config",
]
