"""Split a SQL script into individual statements."""

import logging
from typing import List

import sqlglot
from sqlglot.errors import TokenError
from sqlglot.tokens import TokenType

logger = logging.getLogger(__name__)


def _split_naive(sql: str) -> List[str]:
    return [part.strip() for part in sql.split(";") if part.strip()]


def _split_tokenized(sql: str) -> List[str]:
    statements: List[str] = []
    start = 0
    for token in sqlglot.tokenize(sql, read="sqlite"):
        if token.token_type == TokenType.SEMICOLON:
            statements.append(sql[start : token.start])
            start = token.end + 1
    statements.append(sql[start:])
    return [part.strip() for part in statements if part.strip()]


def split_statements(sql: str, tokenized: bool = False) -> List[str]:
    """Split `sql` on statement terminators, discarding empty fragments.

    The default split is purely textual, so a `;` inside a string literal
    ends a statement. With `tokenized=True` the script is tokenized first and
    only terminator tokens split; text the tokenizer rejects falls back to
    the textual split.
    """
    if not sql:
        return []
    if not tokenized:
        return _split_naive(sql)
    try:
        return _split_tokenized(sql)
    except TokenError as exc:
        logger.warning(
            "statement_tokenize_failed",
            extra={"event": "statement_tokenize_failed", "error": str(exc)},
        )
        return _split_naive(sql)
