"""Compile a parsed DBML schema into SQLite CREATE TABLE statements."""

import logging
import re
from typing import Dict, List, Optional

from dialect.rewriter import RESERVED_WORDS
from schema import ColumnDef, DbmlSchema, RelationshipDef, StorageClass, TableDef

from .ordering import order_tables
from .parser import parse_dbml

logger = logging.getLogger(__name__)

_BARE_IDENTIFIER = re.compile(r"[A-Za-z_]\w*")


def _ident(name: str) -> str:
    if _BARE_IDENTIFIER.fullmatch(name) and name.upper() not in RESERVED_WORDS:
        return name
    return '"' + name.replace('"', '""') + '"'


def _column_sql(table: TableDef, column: ColumnDef) -> str:
    constraints: List[str] = []
    for constraint in column.constraints:
        if constraint == "AUTOINCREMENT":
            after_pk = bool(constraints) and constraints[-1] == "PRIMARY KEY"
            if not (after_pk and column.mapped_type == StorageClass.INTEGER):
                logger.warning(
                    "dbml_autoincrement_dropped",
                    extra={
                        "event": "dbml_autoincrement_dropped",
                        "table": table.name,
                        "column": column.name,
                    },
                )
                continue
        constraints.append(constraint)

    parts = [_ident(column.name), column.mapped_type.value, *constraints]
    return " ".join(parts)


def compile_table(table: TableDef, relationships: Optional[List[RelationshipDef]] = None) -> str:
    """Render one CREATE TABLE statement, with FOREIGN KEY clauses for `relationships`."""
    body = [f"  {_column_sql(table, column)}" for column in table.columns]

    pk_columns = table.primary_key_columns
    if len(pk_columns) > 1:
        body.append(f"  PRIMARY KEY ({', '.join(_ident(name) for name in pk_columns)})")

    for rel in relationships or []:
        body.append(
            f"  FOREIGN KEY ({_ident(rel.from_column)}) "
            f"REFERENCES {_ident(rel.to_table)}({_ident(rel.to_column)})"
        )

    return f"CREATE TABLE IF NOT EXISTS {_ident(table.name)} (\n" + ",\n".join(body) + "\n);"


def compile_dbml(schema: DbmlSchema, sort_by_dependency: bool = False) -> List[str]:
    """Compile every table into a CREATE TABLE statement.

    Foreign keys must be declared when a table is created, so tables that own
    relationships are compiled a second time with their FOREIGN KEY clauses and
    that statement replaces the first one by table name. Output follows
    declaration order unless `sort_by_dependency` is set.
    """
    tables = order_tables(schema) if sort_by_dependency else list(schema.tables)

    statements: Dict[str, str] = {table.name: compile_table(table) for table in tables}

    for table in tables:
        owned = schema.relationships_from(table.name)
        if owned:
            statements[table.name] = compile_table(table, owned)

    return [statements[table.name] for table in tables]


def dbml_to_sql(
    text: str, strict: Optional[bool] = None, sort_by_dependency: bool = False
) -> str:
    """Parse DBML source and return the compiled script."""
    schema = parse_dbml(text, strict=strict)
    return "\n\n".join(compile_dbml(schema, sort_by_dependency=sort_by_dependency))
