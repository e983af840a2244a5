import hashlib
from unittest.mock import patch

import aiosqlite
import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from dal.errors import ForeignKeyViolationError
from dal.executor import StatementExecutor
from dal.tracing import trace_batch_operation, trace_enabled


def _provider() -> tuple[TracerProvider, InMemorySpanExporter]:
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider, exporter


def test_trace_enabled_defaults_true_when_otel_exporter_configured(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """DAL tracing should default to enabled when OTEL exporter is configured."""
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://otel-collector:4317")

    assert trace_enabled() is True


def test_trace_enabled_respects_explicit_false_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Explicit DAL_TRACE_QUERIES=false should disable tracing despite exporter config."""
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://otel-collector:4317")
    monkeypatch.setenv("DAL_TRACE_QUERIES", "false")

    assert trace_enabled() is False


@pytest.mark.asyncio
async def test_trace_disabled_runs_operation_without_span() -> None:
    """With tracing off the operation simply runs."""

    async def _operation() -> str:
        return "ok"

    with patch("opentelemetry.trace.get_tracer") as mock_get_tracer:
        result = await trace_batch_operation(
            "dal.batch.execute", "sqlite", "SELECT 1", 1, _operation()
        )

    assert result == "ok"
    mock_get_tracer.assert_not_called()


@pytest.mark.asyncio
async def test_batch_span_records_hash_not_sql(monkeypatch: pytest.MonkeyPatch) -> None:
    """A committed batch emits one span with hashed SQL and statement count."""
    monkeypatch.setenv("DAL_TRACE_QUERIES", "true")
    provider, exporter = _provider()

    with patch("opentelemetry.trace.get_tracer") as mock_get_tracer:
        mock_get_tracer.side_effect = lambda name: provider.get_tracer(name)
        async with aiosqlite.connect(":memory:", isolation_level=None) as conn:
            await StatementExecutor(conn).execute("CREATE TABLE a (x INTEGER); SELECT 1;")

    spans = exporter.get_finished_spans()
    assert len(spans) == 1
    span = spans[0]
    rewritten = "CREATE TABLE IF NOT EXISTS a (x INTEGER); SELECT 1;"
    assert span.name == "dal.batch.execute"
    assert span.attributes["db.provider"] == "sqlite"
    assert span.attributes["db.statement_count"] == 2
    assert (
        span.attributes["db.statement_hash"]
        == hashlib.sha256(rewritten.encode("utf-8")).hexdigest()
    )
    assert span.attributes["db.status"] == "ok"
    assert "db.statement" not in span.attributes


@pytest.mark.asyncio
async def test_failed_batch_span_is_classified(monkeypatch: pytest.MonkeyPatch) -> None:
    """A failing batch marks the span as errored with its classification."""
    monkeypatch.setenv("DAL_TRACE_QUERIES", "true")
    provider, exporter = _provider()

    with patch("opentelemetry.trace.get_tracer") as mock_get_tracer:
        mock_get_tracer.side_effect = lambda name: provider.get_tracer(name)
        async with aiosqlite.connect(":memory:", isolation_level=None) as conn:
            with pytest.raises(ForeignKeyViolationError):
                await StatementExecutor(conn).execute(
                    "CREATE TABLE c (id INTEGER PRIMARY KEY, p INTEGER REFERENCES parent(id))"
                )

    span = exporter.get_finished_spans()[0]
    assert span.attributes["db.status"] == "error"
    assert span.attributes["error.classification.category"] == "foreign_key_violation"
    assert span.attributes["error.classification.operation"] == "execute"
