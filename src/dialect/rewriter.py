"""Best-effort rewriting of MySQL / PostgreSQL / SQL Server / Oracle SQL into SQLite.

The rewriter is an ordered chain of regex passes with no SQL parser behind it.
Order matters: each pass assumes the earlier ones already fired (identity
columns are normalized before generic integer mapping, timestamps are folded
before `ON UPDATE <timestamp>` is dropped, whitespace is collapsed last).

Known gaps: keywords inside string literals can still be rewritten by the
boolean, timestamp and identifier-quoting passes, and semicolons inside
literals bound the DDL scan used by the type passes.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from dialect.type_mapper import TYPE_PATTERN, map_type

logger = logging.getLogger(__name__)

CURRENT_DATETIME_SQL = "(datetime('now', 'localtime'))"

_I = re.IGNORECASE

_IDENT = r'(?:[A-Za-z_]\w*|"[^"\n]+"|`[^`\n]+`|\[[^\]\n]+\])'
_COLUMN_HEAD = rf"(?P<lead>[(,]\s*|\bADD\s+(?:COLUMN\s+)?)(?P<name>{_IDENT})\s+"
_TYPE_WORD = r"[A-Za-z_]\w*(?:\s*\(\s*\d+(?:\s*,\s*\d+)?\s*\))?"
_MODIFIERS = r"(?:\s+(?:UNSIGNED|NOT\s+NULL))*"
_IDENTITY_MARKER = (
    r"(?:AUTO_INCREMENT|IDENTITY(?:\s*\(\s*\d+\s*,\s*\d+\s*\))?"
    r"|GENERATED\s+(?:ALWAYS|BY\s+DEFAULT)\s+AS\s+IDENTITY(?:\s*\([^)]*\))?)(?!\w)"
)

_COMMENT_OR_LITERAL = re.compile(
    r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|--[^\n]*|/\*.*?(?:\*/|\Z)", re.DOTALL
)
_DDL_STATEMENT = re.compile(
    r"\b(?:CREATE\s+(?:(?:TEMP|TEMPORARY)\s+)?TABLE|ALTER\s+TABLE)\b[^;]*", _I
)

_IDENTITY_PRIMARY_KEY = (
    re.compile(
        rf"{_COLUMN_HEAD}{_TYPE_WORD}{_MODIFIERS}\s+{_IDENTITY_MARKER}{_MODIFIERS}"
        r"\s+PRIMARY\s+KEY\b",
        _I,
    ),
    re.compile(
        rf"{_COLUMN_HEAD}{_TYPE_WORD}{_MODIFIERS}\s+PRIMARY\s+KEY{_MODIFIERS}"
        rf"\s+{_IDENTITY_MARKER}",
        _I,
    ),
)
_IDENTITY_COLUMN = re.compile(
    rf"{_COLUMN_HEAD}{_TYPE_WORD}(?P<mods>{_MODIFIERS})\s+{_IDENTITY_MARKER}", _I
)
_QUOTED_COLUMN_TYPE = re.compile(
    rf"{_COLUMN_HEAD}(?:\[(?P<bracket>[A-Za-z_]\w*)\]|`(?P<tick>[A-Za-z_]\w*)`)", _I
)
_SERIAL_COLUMN = re.compile(rf"{_COLUMN_HEAD}(?:SMALL|BIG)?SERIAL(?!\w)", _I)
_BARE_AUTO_INCREMENT = re.compile(r"\bAUTO_INCREMENT\b", _I)
_COLUMN_TYPE = re.compile(rf"{_COLUMN_HEAD}(?P<type>{TYPE_PATTERN})(?![\w(])", _I)

_TRUE = re.compile(r"\bTRUE\b", _I)
_FALSE = re.compile(r"\bFALSE\b", _I)
_CURRENT_DATETIME = re.compile(
    r"\bCURRENT_TIMESTAMP\b(?:\s*\(\s*\d*\s*\))?"
    r"|\bGETDATE\s*\(\s*\)"
    r"|\bSYSTIMESTAMP\b(?:\s*\(\s*\d*\s*\))?"
    r"|\bNOW\s*\(\s*\)",
    _I,
)

_ON_UPDATE = re.compile(
    r"\s+ON\s+UPDATE\s+(?:CASCADE|RESTRICT|SET\s+NULL|SET\s+DEFAULT|NO\s+ACTION|"
    + re.escape(CURRENT_DATETIME_SQL)
    + r")",
    _I,
)
_QUOTED_IDENTIFIER = re.compile(r"`([^`\n]+)`|\[([A-Za-z_][^\[\]\n]*)\]")
_BARE_IDENTIFIER = re.compile(r"[A-Za-z_]\w*")
_DEFAULT_SCHEMA = re.compile(r"\b(?:dbo|public)\.(?=[A-Za-z_\"])", _I)
_TYPE_CAST = re.compile(
    r"::\s*(?:character\s+varying|double\s+precision"
    r"|timestamp(?:\s+with(?:out)?\s+time\s+zone)?|[A-Za-z_]\w*)"
    r"(?:\s*\(\s*\d+(?:\s*,\s*\d+)?\s*\))?(?:\[\])?",
    _I,
)
_COLUMN_NOISE = re.compile(r"\s+(?:UNSIGNED|ZEROFILL)\b", _I)
_NAMED_CONSTRAINT = re.compile(r'\bCONSTRAINT\s+(?:[A-Za-z_]\w*|"[^"]+")\s+', _I)
_INLINE_INDEX = re.compile(
    r",\s*(?:FULLTEXT\s+|SPATIAL\s+)?(?:INDEX|KEY)\s+(?:[A-Za-z_]\w*\s*)?\([^)]*\)", _I
)
_UNIQUE_KEY = re.compile(r"\bUNIQUE\s+(?:INDEX|KEY)\s+(?:[A-Za-z_]\w*\s*)?\(", _I)
_TABLE_OPTIONS = re.compile(
    r"\)(?:\s*,?\s*(?:ENGINE|(?:DEFAULT\s+)?(?:CHARSET|CHARACTER\s+SET)"
    r"|(?:DEFAULT\s+)?COLLATE|AUTO_?INCREMENT|COMMENT|ROW_FORMAT)"
    r"\s*=?\s*(?:'[^']*'|\w+))+(?=\s*(?:;|$))",
    _I,
)

_CREATE_TABLE = re.compile(
    r"\bCREATE\s+(?P<temp>(?:TEMP|TEMPORARY)\s+)?TABLE\s+(?!\s|IF\s+NOT\s+EXISTS\b)", _I
)
_CREATE_INDEX = re.compile(
    r"\bCREATE\s+(?P<unique>UNIQUE\s+)?INDEX\s+(?!\s|IF\s+NOT\s+EXISTS\b)", _I
)
_LITERAL_OR_SPACE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\s+")

# Keywords SQLite refuses as bare identifiers; these stay double-quoted.
RESERVED_WORDS = frozenset(
    """
    ALL ALTER AND AS BEGIN BETWEEN BY CASE CHECK COLLATE COMMIT CONSTRAINT CREATE
    DEFAULT DELETE DISTINCT DROP ELSE END ESCAPE EXCEPT EXISTS FOREIGN FROM GROUP
    HAVING IN INDEX INSERT INTERSECT INTO IS JOIN LIKE LIMIT NOT NULL OFFSET ON OR
    ORDER PRIMARY REFERENCES ROLLBACK SELECT SET TABLE THEN TO TRANSACTION UNION
    UNIQUE UPDATE VALUES WHEN WHERE
    """.split()
)


def strip_comments(sql: str) -> str:
    """Remove `--` and `/* */` comments that sit outside quoted text."""

    def _replace(match: re.Match) -> str:
        token = match.group(0)
        if token.startswith("--"):
            return ""
        if token.startswith("/*"):
            return " "
        return token

    return _COMMENT_OR_LITERAL.sub(_replace, sql)


def _unquote_column_type(match: re.Match) -> str:
    type_name = match.group("bracket") or match.group("tick")
    if type_name.upper() in RESERVED_WORDS:
        return match.group(0)
    return f"{match.group('lead')}{match.group('name')} {type_name}"


def _in_ddl(transform: Callable[[str], str]) -> Callable[[str], str]:
    def _apply(sql: str) -> str:
        return _DDL_STATEMENT.sub(lambda m: transform(m.group(0)), sql)

    return _apply


def _normalize_identity(ddl: str) -> str:
    for pattern in _IDENTITY_PRIMARY_KEY:
        ddl = pattern.sub(r"\g<lead>\g<name> INTEGER PRIMARY KEY AUTOINCREMENT", ddl)
    ddl = _IDENTITY_COLUMN.sub(r"\g<lead>\g<name> INTEGER\g<mods>", ddl)
    return _SERIAL_COLUMN.sub(r"\g<lead>\g<name> INTEGER", ddl)


def unquote_column_types(sql: str) -> str:
    """Drop bracket and backtick quoting from column type tokens before the type passes."""
    return _in_ddl(lambda ddl: _QUOTED_COLUMN_TYPE.sub(_unquote_column_type, ddl))(sql)


def normalize_auto_increment(sql: str) -> str:
    """Step 1: identity / serial / AUTO_INCREMENT columns."""
    sql = _in_ddl(_normalize_identity)(sql)
    return _BARE_AUTO_INCREMENT.sub("AUTOINCREMENT", sql)


def _map_column_type(match: re.Match) -> str:
    mapped = map_type(match.group("type"))
    text = getattr(mapped, "value", mapped)
    return f"{match.group('lead')}{match.group('name')} {text}"


def map_column_types(sql: str) -> str:
    """Step 2: dialect column types to storage classes at column-type positions."""
    return _in_ddl(lambda ddl: _COLUMN_TYPE.sub(_map_column_type, ddl))(sql)


def fold_booleans(sql: str) -> str:
    """Step 3: TRUE/FALSE literals to 1/0."""
    return _FALSE.sub("0", _TRUE.sub("1", sql))


def fold_timestamps(sql: str) -> str:
    """Step 4: current-timestamp functions to one local datetime expression."""
    return _CURRENT_DATETIME.sub(CURRENT_DATETIME_SQL, sql)


def _unquote_identifier(match: re.Match) -> str:
    name = match.group(1) if match.group(1) is not None else match.group(2)
    if _BARE_IDENTIFIER.fullmatch(name) and name.upper() not in RESERVED_WORDS:
        return name
    return '"' + name.replace('"', '""') + '"'


def strip_dialect_noise(sql: str) -> str:
    """Step 5: drop clauses and quoting the engine does not accept."""
    sql = _ON_UPDATE.sub("", sql)
    sql = _QUOTED_IDENTIFIER.sub(_unquote_identifier, sql)
    sql = _DEFAULT_SCHEMA.sub("", sql)
    sql = _TYPE_CAST.sub("", sql)
    sql = _NAMED_CONSTRAINT.sub("", sql)
    sql = _COLUMN_NOISE.sub("", sql)
    sql = _INLINE_INDEX.sub("", sql)
    sql = _UNIQUE_KEY.sub("UNIQUE (", sql)
    return _TABLE_OPTIONS.sub(")", sql)


def add_existence_guards(sql: str) -> str:
    """Step 6: IF NOT EXISTS on CREATE TABLE / CREATE INDEX."""
    sql = _CREATE_TABLE.sub(lambda m: f"CREATE {m.group('temp') or ''}TABLE IF NOT EXISTS ", sql)
    return _CREATE_INDEX.sub(
        lambda m: f"CREATE {m.group('unique') or ''}INDEX IF NOT EXISTS ", sql
    )


def collapse_whitespace(sql: str) -> str:
    """Step 7: single spaces everywhere outside string literals and quoted identifiers."""

    def _replace(match: re.Match) -> str:
        token = match.group(0)
        return token if token[0] in "'\"" else " "

    return _LITERAL_OR_SPACE.sub(_replace, sql).strip()


REWRITE_STEPS: tuple[tuple[str, Callable[[str], str]], ...] = (
    ("strip_comments", strip_comments),
    ("quoted_types", unquote_column_types),
    ("auto_increment", normalize_auto_increment),
    ("column_types", map_column_types),
    ("booleans", fold_booleans),
    ("timestamps", fold_timestamps),
    ("dialect_noise", strip_dialect_noise),
    ("existence_guards", add_existence_guards),
    ("whitespace", collapse_whitespace),
)


def rewrite(sql: str) -> str:
    """Rewrite SQL from any supported dialect into SQLite-executable SQL.

    Idempotent: `rewrite(rewrite(s)) == rewrite(s)`.
    """
    if not sql:
        return ""
    result = sql
    for _, step in REWRITE_STEPS:
        result = step(result)
    if result != sql:
        logger.debug(
            "dialect_rewrite_applied",
            extra={"event": "dialect_rewrite_applied", "input_length": len(sql)},
        )
    return result
