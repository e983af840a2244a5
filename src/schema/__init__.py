"""Canonical schema models shared by the DBML compiler and the query session."""

from .column_def import ColumnDef, StorageClass
from .dbml_schema import DbmlSchema, ParseDiagnostic
from .foreign_key_def import ForeignKeyRef
from .relationship_def import RelationshipDef
from .table_def import TableDef, TableRows

__all__ = [
    "ColumnDef",
    "DbmlSchema",
    "ForeignKeyRef",
    "ParseDiagnostic",
    "RelationshipDef",
    "StorageClass",
    "TableDef",
    "TableRows",
]
