from pydantic import BaseModel


class ForeignKeyRef(BaseModel):
    """A column-level reference to a parent table."""

    from_column: str
    to_table: str
    to_column: str

    model_config = {"frozen": True}
