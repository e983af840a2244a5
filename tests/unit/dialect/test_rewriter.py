import pytest

from dialect.rewriter import (
    CURRENT_DATETIME_SQL,
    add_existence_guards,
    collapse_whitespace,
    fold_booleans,
    fold_timestamps,
    rewrite,
    strip_comments,
)

MYSQL_ORDERS = (
    "CREATE TABLE `orders` (`id` INT UNSIGNED NOT NULL AUTO_INCREMENT, "
    "`user_id` INT NOT NULL, `status` ENUM('new','paid') DEFAULT 'new', "
    "`updated_at` TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP, "
    "PRIMARY KEY (`id`), KEY `idx_user` (`user_id`)) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;"
)
POSTGRES_ACCOUNTS = (
    "CREATE TABLE public.accounts (id BIGSERIAL PRIMARY KEY, "
    "email CHARACTER VARYING(255) UNIQUE NOT NULL, is_active BOOLEAN DEFAULT FALSE, "
    "balance NUMERIC(12,2) DEFAULT 0.00, "
    "created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW())"
)
SQLSERVER_ORDERS = (
    "CREATE TABLE [dbo].[Orders] ([OrderID] INT IDENTITY(1,1) PRIMARY KEY, "
    "[Total] DECIMAL(10,2) NOT NULL, [Created] DATETIME2 DEFAULT GETDATE())"
)
SSMS_ORDERS = (
    "CREATE TABLE [dbo].[Orders] ([OrderID] [int] IDENTITY(1,1) NOT NULL, "
    "[Name] [nvarchar](50) NULL)"
)


def test_rewrite_mysql_users_table() -> None:
    """AUTO_INCREMENT, VARCHAR and BOOLEAN defaults become SQLite equivalents."""
    sql = (
        "CREATE TABLE users (id INT AUTO_INCREMENT PRIMARY KEY, name VARCHAR(50), "
        "active BOOLEAN DEFAULT TRUE);"
    )

    assert rewrite(sql) == (
        "CREATE TABLE IF NOT EXISTS users (id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "name TEXT, active INTEGER DEFAULT 1);"
    )


def test_rewrite_mysql_table_options_and_indexes() -> None:
    """Backticks, UNSIGNED, inline KEYs, ON UPDATE and table options are dropped."""
    assert rewrite(MYSQL_ORDERS) == (
        "CREATE TABLE IF NOT EXISTS orders (id INTEGER NOT NULL, user_id INTEGER NOT NULL, "
        f"status TEXT DEFAULT 'new', updated_at TEXT DEFAULT {CURRENT_DATETIME_SQL}, "
        "PRIMARY KEY (id));"
    )


def test_rewrite_postgres_table() -> None:
    """Schema prefix, SERIAL, CHARACTER VARYING and NOW() are normalized."""
    assert rewrite(POSTGRES_ACCOUNTS) == (
        "CREATE TABLE IF NOT EXISTS accounts (id INTEGER PRIMARY KEY, "
        "email TEXT UNIQUE NOT NULL, is_active INTEGER DEFAULT 0, "
        f"balance REAL DEFAULT 0.00, created_at TEXT DEFAULT {CURRENT_DATETIME_SQL})"
    )


def test_rewrite_sqlserver_table() -> None:
    """Bracket quoting, dbo prefix, IDENTITY and GETDATE() are normalized."""
    assert rewrite(SQLSERVER_ORDERS) == (
        "CREATE TABLE IF NOT EXISTS Orders (OrderID INTEGER PRIMARY KEY AUTOINCREMENT, "
        f"Total REAL NOT NULL, Created TEXT DEFAULT {CURRENT_DATETIME_SQL})"
    )


def test_rewrite_quoted_column_types() -> None:
    """Bracketed and backticked type names are mapped like bare ones."""
    assert rewrite(SSMS_ORDERS) == (
        "CREATE TABLE IF NOT EXISTS Orders (OrderID INTEGER NOT NULL, Name TEXT NULL)"
    )
    assert rewrite("CREATE TABLE t (a `int`)") == "CREATE TABLE IF NOT EXISTS t (a INTEGER)"


@pytest.mark.parametrize(
    "sql",
    [
        MYSQL_ORDERS,
        POSTGRES_ACCOUNTS,
        SQLSERVER_ORDERS,
        SSMS_ORDERS,
        "CREATE TABLE t (a `int`)",
        "CREATE TABLE t (a INT); INSERT INTO t VALUES (TRUE); CREATE INDEX i ON t(a);",
    ],
)
def test_rewrite_is_idempotent(sql: str) -> None:
    """Rewriting already-rewritten SQL changes nothing."""
    once = rewrite(sql)
    assert rewrite(once) == once


def test_rewrite_empty_input() -> None:
    """Empty input rewrites to an empty string."""
    assert rewrite("") == ""


def test_type_mapping_respects_word_boundaries() -> None:
    """Table names that start with a type keyword are left intact."""
    assert rewrite("CREATE TABLE checkpoint (x INT)") == (
        "CREATE TABLE IF NOT EXISTS checkpoint (x INTEGER)"
    )


def test_type_mapping_skips_dml() -> None:
    """Type keywords inside DML are not treated as column types."""
    sql = "INSERT INTO notes (body) VALUES ('VARCHAR(10) INT')"
    assert rewrite(sql) == sql


def test_existence_guards_are_added_once() -> None:
    """CREATE TABLE / INDEX gain IF NOT EXISTS exactly once."""
    assert add_existence_guards("CREATE TABLE t (a TEXT)") == (
        "CREATE TABLE IF NOT EXISTS t (a TEXT)"
    )
    assert add_existence_guards("CREATE TEMP TABLE t (a TEXT)") == (
        "CREATE TEMP TABLE IF NOT EXISTS t (a TEXT)"
    )
    assert add_existence_guards("CREATE UNIQUE INDEX u ON t(a)") == (
        "CREATE UNIQUE INDEX IF NOT EXISTS u ON t(a)"
    )
    guarded = "CREATE TABLE IF NOT EXISTS t (a TEXT)"
    assert add_existence_guards(guarded) == guarded
    assert "EXISTS IF NOT" not in add_existence_guards("CREATE TABLE  IF NOT EXISTS t (a)")


def test_fold_booleans_and_timestamps() -> None:
    """Boolean literals fold to 1/0 and timestamp functions to one expression."""
    assert fold_booleans("VALUES (TRUE, false)") == "VALUES (1, 0)"
    assert fold_booleans("SELECT truely FROM t") == "SELECT truely FROM t"
    for expression in ("CURRENT_TIMESTAMP", "GETDATE()", "SYSTIMESTAMP", "NOW()"):
        assert fold_timestamps(f"DEFAULT {expression}") == f"DEFAULT {CURRENT_DATETIME_SQL}"


def test_boolean_folding_reaches_string_literals() -> None:
    """Known gap: the boolean pass is not literal-aware."""
    assert rewrite("INSERT INTO t (note) VALUES ('TRUE story')") == (
        "INSERT INTO t (note) VALUES ('1 story')"
    )


def test_strip_comments_keeps_quoted_text() -> None:
    """Line and block comments go; comment markers inside literals stay."""
    sql = "SELECT '-- keep' AS x; -- drop\n/* block */SELECT 2"
    assert collapse_whitespace(strip_comments(sql)) == "SELECT '-- keep' AS x; SELECT 2"


def test_collapse_whitespace_preserves_literals() -> None:
    """Runs of whitespace collapse outside string literals only."""
    assert collapse_whitespace("  SELECT\n\t'a   b'   AS  x  ") == "SELECT 'a   b' AS x"


def test_comment_containing_keywords_does_not_leak() -> None:
    """Comments are removed before any keyword rewriting runs."""
    sql = "CREATE TABLE t (\n  flag BOOLEAN -- defaults to TRUE\n)"
    assert rewrite(sql) == "CREATE TABLE IF NOT EXISTS t ( flag INTEGER )"


def test_collapse_whitespace_preserves_quoted_identifiers() -> None:
    """Spacing inside double-quoted identifiers is part of the name."""
    assert collapse_whitespace('SELECT  "first  name"\nFROM t') == 'SELECT "first  name" FROM t'
