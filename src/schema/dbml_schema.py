from typing import List

from pydantic import BaseModel, Field

from .relationship_def import RelationshipDef
from .table_def import TableDef


class ParseDiagnostic(BaseModel):
    """A DBML source line the parser could not use."""

    line: int
    text: str
    message: str

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"line {self.line}: {self.message} ({self.text!r})"


class DbmlSchema(BaseModel):
    """Intermediate model produced by the DBML parser."""

    tables: List[TableDef] = Field(default_factory=list)
    relationships: List[RelationshipDef] = Field(default_factory=list)
    diagnostics: List[ParseDiagnostic] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def table(self, name: str) -> TableDef | None:
        return next((t for t in self.tables if t.name == name), None)

    def relationships_from(self, table_name: str) -> List[RelationshipDef]:
        """Return relationships whose foreign key lives on `table_name`."""
        return [rel for rel in self.relationships if rel.from_table == table_name]
