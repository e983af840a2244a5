"""Post-processing of schema text returned by the generation model.

A generated answer is either plain SQL, plain DBML, or the three-part form

    <DBML>
    ---
    <DDL>
    ---
    <DML>

optionally wrapped in markdown code fences.
"""

import re

from pydantic import BaseModel

from dbml import dbml_to_sql, is_dbml

_FENCE = re.compile(r"```[ \t]*(?:sql|dbml)?[ \t]*\n?", re.I)
_SEPARATOR = re.compile(r"^[ \t]*---[ \t]*$", re.M)


class GeneratedSchema(BaseModel):
    """The parts of one generated answer."""

    dbml: str = ""
    ddl: str = ""
    dml: str = ""
    raw: str = ""

    model_config = {"frozen": True}


def strip_markdown_fences(text: str) -> str:
    """Remove ```sql, ```dbml and bare ``` fences and trim the result."""
    return _FENCE.sub("", text or "").strip()


def split_generated_response(text: str) -> GeneratedSchema:
    """Split a generated answer on `---` separator lines."""
    cleaned = strip_markdown_fences(text)
    parts = [part.strip() for part in _SEPARATOR.split(cleaned)]
    parts += [""] * (3 - len(parts))
    return GeneratedSchema(dbml=parts[0], ddl=parts[1], dml=parts[2], raw=cleaned)


def prepare_script(text: str) -> str:
    """Turn a generated answer into one SQL script for the executor.

    Three-part answers run their DDL and DML; when the DDL part is missing the
    DBML part is compiled instead. Single-part answers are compiled when they
    look like DBML and passed through otherwise. The executor rewrites the
    result, so no dialect handling happens here.
    """
    generated = split_generated_response(text)
    if generated.ddl or generated.dml:
        schema_sql = generated.ddl
        if not schema_sql and is_dbml(generated.dbml):
            schema_sql = dbml_to_sql(generated.dbml)
        return "\n\n".join(part for part in (schema_sql, generated.dml) if part)
    if is_dbml(generated.raw):
        return dbml_to_sql(generated.raw)
    return generated.raw
