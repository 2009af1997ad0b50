"""Schema description output for ``\\d``, ``\\d <table>``, ``\\di`` and ``.schema``."""
from __future__ import annotations
from typing import List, Optional, TextIO
import sys

from vsqlite.core.engine import Engine, IndexInfo
from vsqlite.core.errors import MetadataError
from vsqlite.core.render import write_grid


def index_details(index: IndexInfo) -> str:
    if index.origin == 'pk':
        kind = "PRIMARY KEY "
    elif index.origin == 'u':
        kind = "UNIQUE CONSTRAINT "
    else:
        kind = ""
    return f"{kind}(btree: {', '.join(index.columns)})"


def describe_table(engine: Engine, table: str, out: Optional[TextIO] = None) -> None:
    """Columns, then indexes and foreign keys when the table has any."""
    out = out or sys.stdout
    columns = engine.columns(table)
    if not columns:
        raise MetadataError(f"no such table: {table}")

    out.write(f'\n\U0001F4C4 Table "{table}"\n\n')
    rows = [[c.name, c.type, "", "no" if c.notnull else "yes", c.default or ""] for c in columns]
    write_grid(["Column", "Type", "Collation", "Nullable", "Default"], rows, out)

    indexes = engine.indexes_for(table)
    if indexes:
        out.write("\n\U0001F516 Indexes\n")
        write_grid(["Index Name", "Details"], [[i.name, index_details(i)] for i in indexes], out)

    fks = engine.foreign_keys(table)
    if fks:
        out.write("\n\U0001F517 Foreign Keys\n")
        write_grid(["From", "To Table", "To Column"],
                   [[fk.column, fk.ref_table, fk.ref_column] for fk in fks], out)
    out.write("\n")


def list_relations(engine: Engine, out: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    relations = engine.relations()
    out.write("        List of relations\n")
    out.write(f" {'Name':<32} | {'Type':<6}\n")
    out.write("-" * 41 + "\n")
    for rel in relations:
        out.write(f" {rel.name:<32} | {rel.type:<6}\n")


def list_indexes(engine: Engine, out: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    entries = engine.index_entries()
    write_grid(["Index Name", "Table"], [[e.name, e.table] for e in entries], out)


def print_schema(engine: Engine, args: List[str], out: Optional[TextIO] = None) -> None:
    """``.schema`` prints every table's CREATE statement, ``.schema <name>`` just one."""
    out = out or sys.stdout
    if not args:
        for stmt in engine.table_sql():
            out.write(stmt + "\n")
        return
    stmts = engine.table_sql(args[0])
    if not stmts:
        out.write("No such table.\n")
        return
    out.write(stmts[0] + "\n")


__all__ = ['describe_table', 'list_relations', 'list_indexes', 'print_schema', 'index_details']
