"""SQL dialect handling: type mapping, dialect registry and SQLite rewriting."""

from .registry import (
    Dialect,
    DialectProfile,
    UnsupportedDialectError,
    can_execute_locally,
    convert_dialect,
    get_profile,
    list_profiles,
    normalize_dialect,
)
from .rewriter import CURRENT_DATETIME_SQL, rewrite
from .type_mapper import map_type, storage_class

__all__ = [
    "CURRENT_DATETIME_SQL",
    "Dialect",
    "DialectProfile",
    "UnsupportedDialectError",
    "can_execute_locally",
    "convert_dialect",
    "get_profile",
    "list_profiles",
    "map_type",
    "normalize_dialect",
    "rewrite",
    "storage_class",
]
