"""Unit test environment helpers."""

import pytest

from dal.config import SessionConfig
from dal.storage import InMemoryKeyValueStore

_ENV_VARS = (
    "DAL_TRACE_QUERIES",
    "DAL_CLASSIFIED_ERROR_TELEMETRY",
    "DAL_STORAGE_TIMEOUT_SECS",
    "DAL_TABLE_ROWS_LIMIT",
    "DAL_EXPORT_ROWS_LIMIT",
    "DAL_TOKENIZED_STATEMENT_SPLIT",
    "DBML_STRICT_PARSE",
    "OTEL_DISABLE_EXPORTER",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
    "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
    "OTEL_TRACES_EXPORTER",
    "SCHEMACRAFT_STORAGE_KEY",
    "SCHEMACRAFT_SAVED_DATABASES_KEY",
    "SCHEMACRAFT_STORAGE_DIR",
)


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Run unit tests without telemetry export or a local .env leaking in."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def memory_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def session_config() -> SessionConfig:
    """Session config with small row limits and no storage deadline."""
    return SessionConfig(storage_timeout_seconds=0, table_rows_limit=50, export_rows_limit=500)
