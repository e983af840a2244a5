from __future__ import annotations

import logging
from typing import Dict, Type

from opentelemetry import trace

from common.config.env import get_env_bool
from dal.errors import (
    ColumnNotFoundError,
    ExecutionErrorCategory,
    ForeignKeyViolationError,
    ObjectAlreadyExistsError,
    SqlSyntaxError,
    StatementExecutionError,
    UnknownExecutionError,
)

logger = logging.getLogger(__name__)

# Checked in order; the first category with a matching fragment wins.
_CATEGORY_FRAGMENTS: tuple[tuple[ExecutionErrorCategory, tuple[str, ...]], ...] = (
    (ExecutionErrorCategory.FOREIGN_KEY_VIOLATION, ("foreign key",)),
    (ExecutionErrorCategory.OBJECT_ALREADY_EXISTS, ("already exists",)),
    (
        ExecutionErrorCategory.SYNTAX_ERROR,
        ("syntax error", "incomplete input", "unrecognized token"),
    ),
    (ExecutionErrorCategory.COLUMN_NOT_FOUND, ("no such column", "has no column named")),
)

_ERROR_TYPES: Dict[ExecutionErrorCategory, Type[StatementExecutionError]] = {
    ExecutionErrorCategory.FOREIGN_KEY_VIOLATION: ForeignKeyViolationError,
    ExecutionErrorCategory.OBJECT_ALREADY_EXISTS: ObjectAlreadyExistsError,
    ExecutionErrorCategory.SYNTAX_ERROR: SqlSyntaxError,
    ExecutionErrorCategory.COLUMN_NOT_FOUND: ColumnNotFoundError,
    ExecutionErrorCategory.UNKNOWN: UnknownExecutionError,
}

# Recovery hints for each error category
RECOVERY_HINTS: dict[str, str] = {
    ExecutionErrorCategory.FOREIGN_KEY_VIOLATION.value: "Make sure referenced tables exist first.",
    ExecutionErrorCategory.OBJECT_ALREADY_EXISTS.value: (
        "Use DROP TABLE first or modify the CREATE statement."
    ),
    ExecutionErrorCategory.SYNTAX_ERROR.value: (
        "Check your query syntax for SQLite compatibility."
    ),
    ExecutionErrorCategory.COLUMN_NOT_FOUND.value: (
        "This usually means the table schema doesn't match your INSERT statement. "
        "Try clearing the database first."
    ),
    ExecutionErrorCategory.UNKNOWN.value: "",
}


def classify_engine_error(message: str) -> ExecutionErrorCategory:
    """Classify an engine error message by substring match."""
    lowered = (message or "").lower()
    for category, fragments in _CATEGORY_FRAGMENTS:
        if any(fragment in lowered for fragment in fragments):
            return category
    return ExecutionErrorCategory.UNKNOWN


def build_execution_error(statement: str, engine_message: str) -> StatementExecutionError:
    """Return the typed exception for a failed statement."""
    category = classify_engine_error(engine_message)
    return _ERROR_TYPES[category](
        statement=statement,
        engine_message=engine_message,
        hint=RECOVERY_HINTS[category.value],
    )


def emit_classified_error(provider: str, operation: str, error: StatementExecutionError) -> None:
    """Emit structured telemetry for classified errors when enabled.

    Sets error.classification.* span attributes for observability dashboards.
    """
    if not get_env_bool("DAL_CLASSIFIED_ERROR_TELEMETRY", True):
        return

    category = error.category.value
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute("error.classification.category", category)
        span.set_attribute("error.classification.provider", provider)
        span.set_attribute("error.classification.operation", operation)
        span.set_attribute("error.classification.recovery_hint", error.hint)
        span.add_event(
            "dal.error.classified",
            {"provider": provider, "category": category, "operation": operation},
        )

    logger.error(
        "dal_error_classified",
        extra={
            "event": "dal_error_classified",
            "provider": provider,
            "operation": operation,
            "error_category": category,
            "error_type": error.__class__.__name__,
            "recovery_hint": error.hint,
        },
    )
