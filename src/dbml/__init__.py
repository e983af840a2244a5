"""DBML parsing and compilation to SQLite DDL."""

from .compiler import compile_dbml, compile_table, dbml_to_sql
from .detection import is_dbml
from .errors import DbmlCycleError, DbmlParseError
from .ordering import order_tables
from .parser import parse_dbml

__all__ = [
    "DbmlCycleError",
    "DbmlParseError",
    "compile_dbml",
    "compile_table",
    "dbml_to_sql",
    "is_dbml",
    "order_tables",
    "parse_dbml",
]
