"""Map dialect-specific column types onto the embedded engine's storage classes."""

from __future__ import annotations

import re
from typing import Union

from schema import StorageClass

_PARAM = r"\s*\(\s*\d+\s*\)"
_PRECISION_SCALE = r"\s*\(\s*\d+\s*,\s*\d+\s*\)"
_ZONE = r"(?:\s+WITH(?:OUT)?\s+TIME\s+ZONE)?"

# Ordered most-specific first: a later, shorter pattern must never claim a
# token an earlier one is meant to handle (NUMBER(p,s) before NUMBER(p) before NUMBER).
TYPE_RULES: list[tuple[str, StorageClass]] = [
    (rf"CHARACTER\s+VARYING(?:{_PARAM})?", StorageClass.TEXT),
    (r"N?VARCHAR2?\s*\(\s*(?:\d+|MAX)\s*(?:\s+(?:BYTE|CHAR))?\)", StorageClass.TEXT),
    (rf"N?CHAR(?:ACTER)?{_PARAM}", StorageClass.TEXT),
    (r"N?TEXT|N?CLOB|(?:TINY|MEDIUM|LONG)TEXT|JSONB?|UUID", StorageClass.TEXT),
    (r"ENUM\s*\([^)]*\)", StorageClass.TEXT),
    (rf"DATETIME2(?:{_PARAM})?", StorageClass.TEXT),
    (r"DATETIME(?:OFFSET)?", StorageClass.TEXT),
    (r"TIMESTAMPTZ", StorageClass.TEXT),
    (rf"TIMESTAMP(?:{_PARAM})?{_ZONE}", StorageClass.TEXT),
    (r"DATE", StorageClass.TEXT),
    (rf"TIME(?:{_PARAM})?{_ZONE}", StorageClass.TEXT),
    (rf"(?:DECIMAL|NUMERIC|NUMBER){_PRECISION_SCALE}", StorageClass.REAL),
    (rf"NUMBER{_PARAM}", StorageClass.INTEGER),
    (r"NUMBER", StorageClass.REAL),
    (r"DOUBLE\s+PRECISION", StorageClass.REAL),
    (r"DOUBLE", StorageClass.REAL),
    (rf"FLOAT(?:{_PARAM})?", StorageClass.REAL),
    (r"REAL", StorageClass.REAL),
    (r"BOOLEAN|BOOL", StorageClass.INTEGER),
    (rf"BIT(?:{_PARAM})?", StorageClass.INTEGER),
    (rf"(?:TINY|SMALL|MEDIUM|BIG)?INT(?:{_PARAM})?", StorageClass.INTEGER),
    (r"INTEGER", StorageClass.INTEGER),
    (rf"(?:VAR)?BINARY{_PARAM}|RAW{_PARAM}|BYTEA|(?:TINY|MEDIUM|LONG)?BLOB", StorageClass.BLOB),
]

# Alternation used by the rewriter to find type phrases in running text.
TYPE_PATTERN = "|".join(f"(?:{pattern})" for pattern, _ in TYPE_RULES)

_COMPILED_RULES = [
    (re.compile(pattern, re.IGNORECASE), storage) for pattern, storage in TYPE_RULES
]


def map_type(raw_type: str) -> Union[StorageClass, str]:
    """Map a column type token to its canonical storage class.

    Matching is case-insensitive and whole-token. Unrecognized tokens are
    returned unchanged (stripped), so new types pass through to the engine.
    """
    token = (raw_type or "").strip()
    for pattern, storage in _COMPILED_RULES:
        if pattern.fullmatch(token):
            return storage
    return token


def storage_class(raw_type: str) -> StorageClass:
    """Classify any type token into a storage class, falling back to affinity rules."""
    mapped = map_type(raw_type)
    if isinstance(mapped, StorageClass):
        return mapped

    upper = mapped.upper()
    if "INT" in upper:
        return StorageClass.INTEGER
    if any(marker in upper for marker in ("CHAR", "CLOB", "TEXT")):
        return StorageClass.TEXT
    if "BLOB" in upper or "BINARY" in upper:
        return StorageClass.BLOB
    if any(marker in upper for marker in ("REAL", "FLOA", "DOUB", "DEC", "NUM")):
        return StorageClass.REAL
    return StorageClass.TEXT
