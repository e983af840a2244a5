from generation import prepare_script, split_generated_response, strip_markdown_fences

THREE_PART = """```dbml
Table users {
  id int
  name varchar
}
```
---
```sql
CREATE TABLE users (id INT PRIMARY KEY, name VARCHAR(50));
```
---
```sql
INSERT INTO users (id, name) VALUES (1, 'Ada');
```"""


def test_strip_markdown_fences() -> None:
    """Language-tagged and bare fences are removed."""
    assert strip_markdown_fences("```sql\nSELECT 1;\n```") == "SELECT 1;"
    assert strip_markdown_fences("```\nSELECT 1;\n```") == "SELECT 1;"
    assert strip_markdown_fences(None) == ""


def test_split_three_part_response() -> None:
    """A three-part answer splits into DBML, DDL and DML."""
    generated = split_generated_response(THREE_PART)

    assert generated.dbml.startswith("Table users {")
    assert generated.ddl == "CREATE TABLE users (id INT PRIMARY KEY, name VARCHAR(50));"
    assert generated.dml == "INSERT INTO users (id, name) VALUES (1, 'Ada');"


def test_split_single_part_response() -> None:
    """Single-part answers land in the first slot."""
    generated = split_generated_response("SELECT 1;")

    assert generated.dbml == "SELECT 1;"
    assert generated.ddl == ""
    assert generated.raw == "SELECT 1;"


def test_prepare_script_prefers_ddl_over_dbml() -> None:
    """Three-part answers run the DDL and DML parts."""
    assert prepare_script(THREE_PART) == (
        "CREATE TABLE users (id INT PRIMARY KEY, name VARCHAR(50));\n\n"
        "INSERT INTO users (id, name) VALUES (1, 'Ada');"
    )


def test_prepare_script_compiles_dbml_when_ddl_missing() -> None:
    """An empty DDL part falls back to compiling the DBML part."""
    text = "Table users { id int }\n---\n\n---\nINSERT INTO users VALUES (1);"

    assert prepare_script(text) == (
        "CREATE TABLE IF NOT EXISTS users (\n  id INTEGER PRIMARY KEY\n);\n\n"
        "INSERT INTO users VALUES (1);"
    )


def test_prepare_script_single_part() -> None:
    """Lone DBML is compiled; lone SQL passes through."""
    assert prepare_script("```dbml\nTable tags { id int }\n```") == (
        "CREATE TABLE IF NOT EXISTS tags (\n  id INTEGER PRIMARY KEY\n);"
    )
    assert prepare_script("SELECT 1;") == "SELECT 1;"
