"""Typed failures raised by the statement executor and query session."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ExecutionErrorCategory(str, Enum):
    """Categories an engine failure is classified into."""

    FOREIGN_KEY_VIOLATION = "foreign_key_violation"
    OBJECT_ALREADY_EXISTS = "object_already_exists"
    SYNTAX_ERROR = "syntax_error"
    COLUMN_NOT_FOUND = "column_not_found"
    UNKNOWN = "unknown"


class StatementExecutionError(Exception):
    """A statement in a batch failed; the whole batch was rolled back.

    Attributes:
        statement: The statement as sent to the engine (after rewriting).
        engine_message: The engine's own error message.
        hint: Recovery hint for the category.
    """

    category = ExecutionErrorCategory.UNKNOWN

    def __init__(self, statement: str, engine_message: str, hint: Optional[str] = None) -> None:
        self.statement = statement
        self.engine_message = engine_message
        self.hint = hint or ""
        super().__init__(self._format())

    def _format(self) -> str:
        return self.engine_message

    @staticmethod
    def _join(*parts: str) -> str:
        return " ".join(part for part in parts if part)


class ForeignKeyViolationError(StatementExecutionError):
    category = ExecutionErrorCategory.FOREIGN_KEY_VIOLATION

    def _format(self) -> str:
        return self._join("Foreign key constraint failed.", self.hint, self.engine_message)


class ObjectAlreadyExistsError(StatementExecutionError):
    category = ExecutionErrorCategory.OBJECT_ALREADY_EXISTS

    def _format(self) -> str:
        return self._join("Table already exists.", self.hint, self.engine_message)


class SqlSyntaxError(StatementExecutionError):
    category = ExecutionErrorCategory.SYNTAX_ERROR

    def _format(self) -> str:
        message = self._join("SQL syntax error.", self.hint, self.engine_message)
        return f"{message}\nStatement: {self.statement}"


class ColumnNotFoundError(StatementExecutionError):
    category = ExecutionErrorCategory.COLUMN_NOT_FOUND

    def _format(self) -> str:
        return self._join(f"Column not found: {self.engine_message}.", self.hint)


class UnknownExecutionError(StatementExecutionError):
    """Unclassified engine failure; the message is passed through verbatim."""


class SessionClosedError(RuntimeError):
    """Raised when a closed query session is used."""
