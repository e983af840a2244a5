"""OpenTelemetry spans around executed statement batches.

Spans carry a sha256 of the batch SQL, never the SQL text itself.
"""

import hashlib
from typing import Awaitable, Optional, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from common.observability.otel import is_telemetry_enabled

T = TypeVar("T")


def trace_enabled() -> bool:
    """Return True when DAL batch tracing is enabled or OTEL exporter defaults apply."""
    return is_telemetry_enabled("DAL_TRACE_QUERIES")


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


async def trace_batch_operation(
    name: str,
    provider: str,
    sql: Optional[str],
    statement_count: int,
    operation: Awaitable[T],
) -> T:
    """Await `operation` inside a span named `name` when tracing is enabled."""
    if not trace_enabled():
        return await operation

    with trace.get_tracer("dal").start_as_current_span(name) as span:
        span.set_attribute("db.provider", provider)
        span.set_attribute("db.statement_count", statement_count)
        if sql:
            span.set_attribute("db.statement_hash", _hash_sql(sql))
        try:
            result = await operation
        except Exception as exc:
            span.set_attribute("db.status", "error")
            span.set_status(Status(StatusCode.ERROR, type(exc).__name__))
            raise
        span.set_attribute("db.status", "ok")
        return result
