"""Supported source dialects and their idiomatic spellings.

Canonical dialect IDs are lowercase (`sqlite`, `mysql`, `postgresql`,
`sqlserver`, `oracle`). User-facing aliases are case-insensitive:

    >>> normalize_dialect("Postgres")
    <Dialect.POSTGRESQL: 'postgresql'>
    >>> normalize_dialect(" MSSQL ")
    <Dialect.SQLSERVER: 'sqlserver'>
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class Dialect(str, Enum):
    """Source dialects the rewriter understands."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLSERVER = "sqlserver"
    ORACLE = "oracle"


class UnsupportedDialectError(ValueError):
    """Raised for unknown dialect names or unsupported conversion targets."""


DIALECT_ALIASES: dict[str, Dialect] = {
    "sqlite": Dialect.SQLITE,
    "sqlite3": Dialect.SQLITE,
    "mysql": Dialect.MYSQL,
    "mariadb": Dialect.MYSQL,
    "postgresql": Dialect.POSTGRESQL,
    "postgres": Dialect.POSTGRESQL,
    "pg": Dialect.POSTGRESQL,
    "sqlserver": Dialect.SQLSERVER,
    "sql server": Dialect.SQLSERVER,
    "mssql": Dialect.SQLSERVER,
    "tsql": Dialect.SQLSERVER,
    "oracle": Dialect.ORACLE,
}


@dataclass(frozen=True)
class DialectProfile:
    """Display metadata and idiomatic DDL spellings for one dialect."""

    dialect: Dialect
    display_name: str
    description: str
    can_execute: bool
    string_type: str
    date_type: str
    decimal_type: str
    bool_type: str
    auto_increment: str
    current_timestamp: str
    bool_true: str
    bool_false: str
    features: tuple[str, ...] = field(default_factory=tuple)


_PROFILES: dict[Dialect, DialectProfile] = {
    Dialect.SQLITE: DialectProfile(
        dialect=Dialect.SQLITE,
        display_name="SQLite",
        description="Lightweight, serverless database",
        can_execute=True,
        string_type="TEXT",
        date_type="TEXT",
        decimal_type="REAL",
        bool_type="INTEGER",
        auto_increment="INTEGER PRIMARY KEY AUTOINCREMENT",
        current_timestamp="(datetime('now', 'localtime'))",
        bool_true="1",
        bool_false="0",
        features=("Serverless", "Zero configuration", "Cross-platform", "ACID compliant"),
    ),
    Dialect.MYSQL: DialectProfile(
        dialect=Dialect.MYSQL,
        display_name="MySQL",
        description="Popular open-source relational database",
        can_execute=False,
        string_type="VARCHAR",
        date_type="DATETIME",
        decimal_type="DECIMAL",
        bool_type="BOOLEAN",
        auto_increment="INT AUTO_INCREMENT PRIMARY KEY",
        current_timestamp="CURRENT_TIMESTAMP",
        bool_true="TRUE",
        bool_false="FALSE",
        features=("High performance", "Replication", "ACID compliant", "Wide adoption"),
    ),
    Dialect.POSTGRESQL: DialectProfile(
        dialect=Dialect.POSTGRESQL,
        display_name="PostgreSQL",
        description="Advanced open-source relational database",
        can_execute=False,
        string_type="VARCHAR",
        date_type="TIMESTAMP",
        decimal_type="NUMERIC",
        bool_type="BOOLEAN",
        auto_increment="SERIAL PRIMARY KEY",
        current_timestamp="CURRENT_TIMESTAMP",
        bool_true="TRUE",
        bool_false="FALSE",
        features=("ACID compliant", "JSON support", "Advanced indexing", "Extensible"),
    ),
    Dialect.SQLSERVER: DialectProfile(
        dialect=Dialect.SQLSERVER,
        display_name="SQL Server",
        description="Microsoft enterprise database",
        can_execute=False,
        string_type="NVARCHAR",
        date_type="DATETIME2",
        decimal_type="DECIMAL",
        bool_type="BIT",
        auto_increment="INT IDENTITY(1,1) PRIMARY KEY",
        current_timestamp="GETDATE()",
        bool_true="1",
        bool_false="0",
        features=("Enterprise features", "Business intelligence", "High availability"),
    ),
    Dialect.ORACLE: DialectProfile(
        dialect=Dialect.ORACLE,
        display_name="Oracle Database",
        description="Enterprise-grade database system",
        can_execute=False,
        string_type="VARCHAR2",
        date_type="TIMESTAMP",
        decimal_type="NUMBER",
        bool_type="NUMBER(1)",
        auto_increment="NUMBER GENERATED ALWAYS AS IDENTITY PRIMARY KEY",
        current_timestamp="SYSTIMESTAMP",
        bool_true="1",
        bool_false="0",
        features=("Enterprise scale", "High performance", "Advanced security"),
    ),
}


def normalize_dialect(value: Union[str, Dialect, None]) -> Dialect:
    """Resolve a dialect name or alias to its canonical `Dialect`."""
    if isinstance(value, Dialect):
        return value
    cleaned = (value or "").strip().lower()
    try:
        return DIALECT_ALIASES[cleaned]
    except KeyError:
        allowed = ", ".join(d.value for d in Dialect)
        raise UnsupportedDialectError(
            f"Unknown dialect '{value}'. Allowed values: {allowed}"
        ) from None


def get_profile(dialect: Union[str, Dialect, None] = None) -> DialectProfile:
    """Return the profile for a dialect (SQLite when unspecified)."""
    if dialect is None:
        return _PROFILES[Dialect.SQLITE]
    return _PROFILES[normalize_dialect(dialect)]


def list_profiles() -> list[DialectProfile]:
    return [_PROFILES[d] for d in Dialect]


def can_execute_locally(dialect: Union[str, Dialect]) -> bool:
    """Return True when SQL in this dialect runs in the embedded engine as-is."""
    return get_profile(dialect).can_execute


def convert_dialect(
    sql: str,
    from_dialect: Union[str, Dialect],
    to_dialect: Optional[Union[str, Dialect]] = Dialect.SQLITE,
) -> str:
    """Convert SQL between dialects; SQLite is the only supported target."""
    source = normalize_dialect(from_dialect)
    target = normalize_dialect(to_dialect)
    if source == target:
        return sql
    if target != Dialect.SQLITE:
        raise UnsupportedDialectError(
            f"Cannot convert to {target.value}; only sqlite is a supported target."
        )

    from dialect.rewriter import rewrite

    return rewrite(sql)
