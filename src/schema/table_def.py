from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .column_def import ColumnDef
from .foreign_key_def import ForeignKeyRef


class TableDef(BaseModel):
    """Canonical representation of a database table definition."""

    name: str
    columns: List[ColumnDef] = Field(default_factory=list)
    foreign_keys: List[ForeignKeyRef] = Field(default_factory=list)

    model_config = {"frozen": False}

    def column(self, name: str) -> Optional[ColumnDef]:
        """Return the column with the given name, case-insensitively."""
        lowered = name.lower()
        return next((col for col in self.columns if col.name.lower() == lowered), None)

    @property
    def primary_key_columns(self) -> List[str]:
        return [col.name for col in self.columns if col.is_primary_key]


class TableRows(BaseModel):
    """Rows fetched from a table together with their column names."""

    columns: List[str] = Field(default_factory=list)
    rows: List[List[Any]] = Field(default_factory=list)
