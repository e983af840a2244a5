"""Dependency ordering of DBML tables."""

from typing import Dict, List, Set

from schema import DbmlSchema, TableDef

from .errors import DbmlCycleError


def order_tables(schema: DbmlSchema) -> List[TableDef]:
    """Return tables with every parent before its children.

    Stable: tables without a dependency between them keep declaration order.
    Self-references and references to undeclared tables are not edges.

    Raises:
        DbmlCycleError: when the remaining tables all wait on each other.
    """
    declared = {table.name for table in schema.tables}
    parents: Dict[str, Set[str]] = {table.name: set() for table in schema.tables}
    for rel in schema.relationships:
        if rel.to_table == rel.from_table or rel.to_table not in declared:
            continue
        if rel.from_table in parents:
            parents[rel.from_table].add(rel.to_table)

    ordered: List[TableDef] = []
    emitted: Set[str] = set()
    pending = list(schema.tables)
    while pending:
        ready = next((t for t in pending if parents[t.name] <= emitted), None)
        if ready is None:
            raise DbmlCycleError([t.name for t in pending])
        ordered.append(ready)
        emitted.add(ready.name)
        pending.remove(ready)
    return ordered
