"""Line-oriented parser for the DBML subset emitted by schema generation.

Grammar handled here:

    Table <name> [as <alias>] [<settings>] {
        <column> <type>[(<params>)] [<settings>]
        Note: '...'
        indexes { ... }            // skipped, reported as a diagnostic
    }
    Ref [<name>]: <table>.<column> <op> <table>.<column>
    Ref [<name>] { <table>.<column> <op> <table>.<column> }

Braces may share a line with content, so `Table users { id int }` is three
logical lines. The left side of a `Ref` is always the table that owns the
foreign key; `<op>` is kept as a cardinality hint only.

Malformed input never aborts the parse. Every line that cannot be used is
recorded as a `ParseDiagnostic`; strict mode turns diagnostics into a
`DbmlParseError`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from common.config.env import get_env_bool
from dialect.type_mapper import storage_class
from schema import ColumnDef, DbmlSchema, ParseDiagnostic, RelationshipDef, TableDef

from .errors import DbmlParseError

logger = logging.getLogger(__name__)

_NAME = r'(?:[A-Za-z_]\w*|"[^"]+")'
_COLUMN_REF = rf"(?P<{{p}}table>{_NAME})\.(?P<{{p}}column>{_NAME})"
_OPERATOR = r"(?P<op><>|<|>|-)"
_REF_BODY = (
    _COLUMN_REF.format(p="from_")
    + rf"\s*{_OPERATOR}\s*"
    + _COLUMN_REF.format(p="to_")
    + r"(?:\s*\[[^\]]*\])?"
)

_TABLE_OPEN = re.compile(
    rf"^Table\s+(?P<name>{_NAME})(?:\s+as\s+{_NAME})?(?:\s*\[[^\]]*\])?\s*\{{$", re.I
)
_REF_LINE = re.compile(rf"^Ref(?:\s+{_NAME})?\s*:\s*{_REF_BODY}$", re.I)
_REF_BLOCK_OPEN = re.compile(rf"^Ref(?:\s+{_NAME})?\s*\{{$", re.I)
_REF_BLOCK_BODY = re.compile(rf"^{_REF_BODY}$")
_NOTE_LINE = re.compile(r"^Note\s*:", re.I)
_COLUMN = re.compile(
    rf"^(?P<name>{_NAME})\s+"
    r'(?P<type>"[^"]+"|[A-Za-z_][\w.]*(?:\s*\([^)]*\))?)'
    r"\s*(?:\[(?P<settings>.*)\])?$"
)
_INLINE_REF = re.compile(
    rf"^{_OPERATOR}\s*(?P<table>{_NAME})\.(?P<column>{_NAME})$", re.I
)

_QUOTES = "'\"`"


@dataclass
class _ColumnSpec:
    name: str
    raw_type: str
    has_settings: bool
    primary_key: bool = False
    not_null: bool = False
    unique: bool = False
    increment: bool = False
    default: Optional[str] = None


@dataclass
class _TableSpec:
    name: str
    line: int
    columns: List[_ColumnSpec] = field(default_factory=list)


def _unquote(name: str) -> str:
    if len(name) >= 2 and name[0] == name[-1] == '"':
        return name[1:-1]
    return name


def _strip_line_comment(text: str) -> str:
    quote = None
    for index, char in enumerate(text):
        if quote:
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif text.startswith("//", index):
            return text[:index]
    return text


def _logical_lines(text: str) -> Iterator[Tuple[int, str]]:
    """Yield (line number, text) segments split at braces outside quotes."""
    for number, physical in enumerate(text.splitlines(), start=1):
        line = _strip_line_comment(physical).strip()
        if not line:
            continue
        quote = None
        bracket_depth = 0
        start = 0
        for index, char in enumerate(line):
            if quote:
                if char == quote:
                    quote = None
                continue
            if char in _QUOTES:
                quote = char
            elif char == "[":
                bracket_depth += 1
            elif char == "]":
                bracket_depth = max(0, bracket_depth - 1)
            elif bracket_depth == 0 and char == "{":
                segment = line[start : index + 1].strip()
                if segment:
                    yield number, segment
                start = index + 1
            elif bracket_depth == 0 and char == "}":
                segment = line[start:index].strip()
                if segment:
                    yield number, segment
                yield number, "}"
                start = index + 1
        tail = line[start:].strip()
        if tail:
            yield number, tail


def _split_settings(settings: str) -> List[str]:
    parts: List[str] = []
    quote = None
    depth = 0
    current = []
    for char in settings:
        if quote:
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        elif char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def _default_sql(value: str) -> str:
    """Render a DBML default value as a SQL expression."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        inner = value[1:-1].replace("'", "''")
        return f"'{inner}'"
    if len(value) >= 2 and value[0] == value[-1] == "`":
        return f"({value[1:-1].strip()})"
    return value


class _Parser:
    def __init__(self) -> None:
        self.tables: List[TableDef] = []
        self.relationships: List[Tuple[int, str, RelationshipDef]] = []
        self.diagnostics: List[ParseDiagnostic] = []
        self._table: Optional[_TableSpec] = None
        self._ref_block_line: Optional[int] = None
        self._skip_depth = 0

    def diagnose(self, line: int, text: str, message: str) -> None:
        self.diagnostics.append(ParseDiagnostic(line=line, text=text, message=message))

    def feed(self, line: int, text: str) -> None:
        if self._skip_depth:
            if text.endswith("{"):
                self._skip_depth += 1
            elif text == "}":
                self._skip_depth -= 1
            return

        if self._ref_block_line is not None:
            self._feed_ref_block(line, text)
        elif self._table is not None:
            self._feed_table(line, text)
        else:
            self._feed_top_level(line, text)

    def _feed_top_level(self, line: int, text: str) -> None:
        match = _TABLE_OPEN.match(text)
        if match:
            self._table = _TableSpec(name=_unquote(match.group("name")), line=line)
            return

        match = _REF_LINE.match(text)
        if match:
            self._add_relationship(line, text, match)
        elif _REF_BLOCK_OPEN.match(text):
            self._ref_block_line = line
        elif _NOTE_LINE.match(text):
            return
        elif text.endswith("{"):
            self.diagnose(line, text, "skipped unsupported block")
            self._skip_depth = 1
        elif text == "}":
            self.diagnose(line, text, "unmatched closing brace")
        else:
            self.diagnose(line, text, "unrecognized line")

    def _feed_ref_block(self, line: int, text: str) -> None:
        if text == "}":
            self._ref_block_line = None
            return
        match = _REF_BLOCK_BODY.match(text)
        if match:
            self._add_relationship(line, text, match)
        else:
            self.diagnose(line, text, "unrecognized relationship")

    def _feed_table(self, line: int, text: str) -> None:
        table = self._table
        if text == "}":
            self._close_table()
            return
        if text.endswith("{"):
            self.diagnose(line, text, f"skipped nested block in table '{table.name}'")
            self._skip_depth = 1
            return
        if _NOTE_LINE.match(text):
            return

        match = _COLUMN.match(text)
        if not match:
            self.diagnose(line, text, f"unrecognized column definition in table '{table.name}'")
            return

        settings = match.group("settings")
        column = _ColumnSpec(
            name=_unquote(match.group("name")),
            raw_type=_unquote(match.group("type")),
            has_settings=settings is not None,
        )
        for setting in _split_settings(settings or ""):
            self._apply_setting(line, text, table, column, setting)
        table.columns.append(column)

    def _apply_setting(
        self, line: int, text: str, table: _TableSpec, column: _ColumnSpec, setting: str
    ) -> None:
        key, has_value, value = setting.partition(":")
        key = " ".join(key.lower().split())
        if has_value:
            if key == "default":
                column.default = _default_sql(value)
            elif key == "ref":
                self._add_inline_ref(line, text, table, column, value)
            return
        if key in ("pk", "primary key"):
            column.primary_key = True
        elif key == "not null":
            column.not_null = True
        elif key == "unique":
            column.unique = True
        elif key in ("increment", "autoincrement"):
            column.increment = True

    def _add_inline_ref(
        self, line: int, text: str, table: _TableSpec, column: _ColumnSpec, value: str
    ) -> None:
        match = _INLINE_REF.match(value.strip())
        if not match:
            self.diagnose(line, text, f"unrecognized inline ref '{value.strip()}'")
            return
        relationship = RelationshipDef(
            from_table=table.name,
            from_column=column.name,
            to_table=_unquote(match.group("table")),
            to_column=_unquote(match.group("column")),
            cardinality=match.group("op"),
        )
        self.relationships.append((line, text, relationship))

    def _add_relationship(self, line: int, text: str, match: re.Match) -> None:
        relationship = RelationshipDef(
            from_table=_unquote(match.group("from_table")),
            from_column=_unquote(match.group("from_column")),
            to_table=_unquote(match.group("to_table")),
            to_column=_unquote(match.group("to_column")),
            cardinality=match.group("op"),
        )
        self.relationships.append((line, text, relationship))

    def _close_table(self) -> None:
        pending = self._table
        self._table = None
        if any(existing.name == pending.name for existing in self.tables):
            self.diagnose(
                pending.line, f"Table {pending.name}", "duplicate table definition ignored"
            )
            return
        self.tables.append(_build_table(pending))

    def finish(self) -> DbmlSchema:
        if self._table is not None:
            pending = self._table
            self.diagnose(pending.line, f"Table {pending.name}", "table block is not closed")
            self._close_table()
        if self._ref_block_line is not None:
            self.diagnose(self._ref_block_line, "Ref", "relationship block is not closed")

        known = {table.name for table in self.tables}
        relationships: List[RelationshipDef] = []
        for line, text, relationship in self.relationships:
            for name in (relationship.from_table, relationship.to_table):
                if name not in known:
                    self.diagnose(line, text, f"relationship references unknown table '{name}'")
            relationships.append(relationship)

        tables = [_attach_foreign_keys(table, relationships) for table in self.tables]
        return DbmlSchema(
            tables=tables, relationships=relationships, diagnostics=self.diagnostics
        )


def _build_table(pending: _TableSpec) -> TableDef:
    explicit_pk = any(column.primary_key for column in pending.columns)
    if pending.columns and not explicit_pk:
        first = pending.columns[0]
        # Convention only: an explicit `pk` anywhere in the table disables it.
        if not first.has_settings and first.name.lower().endswith("id"):
            first.primary_key = True

    composite = sum(1 for column in pending.columns if column.primary_key) > 1
    columns = []
    for column in pending.columns:
        constraints: List[str] = []
        if column.primary_key and not composite:
            constraints.append("PRIMARY KEY")
        if column.increment:
            constraints.append("AUTOINCREMENT")
        if column.not_null:
            constraints.append("NOT NULL")
        if column.unique:
            constraints.append("UNIQUE")
        if column.default is not None:
            constraints.append(f"DEFAULT {column.default}")
        columns.append(
            ColumnDef(
                name=column.name,
                raw_type=column.raw_type,
                mapped_type=storage_class(column.raw_type),
                constraints=constraints,
                is_primary_key=column.primary_key,
            )
        )
    return TableDef(name=pending.name, columns=columns)


def _attach_foreign_keys(table: TableDef, relationships: List[RelationshipDef]) -> TableDef:
    owned = [rel for rel in relationships if rel.from_table == table.name]
    if not owned:
        return table
    fk_columns = {rel.from_column.lower() for rel in owned}
    columns = [
        col.model_copy(update={"is_foreign_key": True}) if col.name.lower() in fk_columns else col
        for col in table.columns
    ]
    return table.model_copy(
        update={"columns": columns, "foreign_keys": [rel.to_foreign_key() for rel in owned]}
    )


def parse_dbml(text: str, strict: Optional[bool] = None) -> DbmlSchema:
    """Parse DBML source into tables, relationships and diagnostics.

    Args:
        text: DBML source.
        strict: Raise `DbmlParseError` when any diagnostic is produced.
            Defaults to the `DBML_STRICT_PARSE` environment flag.
    """
    if strict is None:
        strict = get_env_bool("DBML_STRICT_PARSE", False)

    parser = _Parser()
    for line, segment in _logical_lines(text or ""):
        parser.feed(line, segment)
    schema = parser.finish()

    for diagnostic in schema.diagnostics:
        logger.warning(
            "dbml_parse_diagnostic",
            extra={
                "event": "dbml_parse_diagnostic",
                "line": diagnostic.line,
                "diagnostic": diagnostic.message,
            },
        )
    if strict and schema.diagnostics:
        raise DbmlParseError(schema.diagnostics)
    return schema
