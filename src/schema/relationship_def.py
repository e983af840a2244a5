from pydantic import BaseModel

from .foreign_key_def import ForeignKeyRef


class RelationshipDef(BaseModel):
    """A DBML `Ref:` declaration between two table columns."""

    from_table: str
    from_column: str
    to_table: str
    to_column: str
    cardinality: str = ">"

    model_config = {"frozen": True}

    def to_foreign_key(self) -> ForeignKeyRef:
        """Return the foreign key the owning (from) table must declare."""
        return ForeignKeyRef(
            from_column=self.from_column,
            to_table=self.to_table,
            to_column=self.to_column,
        )
