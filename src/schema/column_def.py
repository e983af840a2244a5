from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class StorageClass(str, Enum):
    """Native storage classes of the embedded engine."""

    INTEGER = "INTEGER"
    TEXT = "TEXT"
    REAL = "REAL"
    BLOB = "BLOB"


class ColumnDef(BaseModel):
    """Canonical representation of a table column."""

    name: str
    raw_type: str
    mapped_type: StorageClass
    constraints: List[str] = Field(default_factory=list)
    is_primary_key: bool = False
    is_foreign_key: bool = False

    model_config = {"frozen": True}
