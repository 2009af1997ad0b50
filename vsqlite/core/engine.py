"""Database engine adapters.

The session core only needs a handful of things from the database: run one
statement and walk its rows forward, and answer a few read-only metadata
questions (tables, columns, indexes, foreign keys, stored DDL). Both adapters
wrap driver exceptions in :class:`QueryError` / :class:`MetadataError` so the
router never has to know which driver is in use.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple
import datetime
import logging
import os
import re
import sqlite3

import duckdb

from vsqlite.core.errors import DatabaseOpenError, QueryError, MetadataError
from vsqlite.utils.constants import DUCKDB_EXTENSIONS, SUPPORTED_ENGINES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnInfo:
    cid: int
    name: str
    type: str
    notnull: bool
    default: Optional[str]
    pk: int = 0


@dataclass(frozen=True)
class IndexInfo:
    name: str
    unique: bool
    origin: str  # 'pk', 'u' or 'c'
    columns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ForeignKey:
    column: str
    ref_table: str
    ref_column: str


@dataclass(frozen=True)
class Relation:
    name: str
    type: str


@dataclass(frozen=True)
class IndexEntry:
    name: str
    table: str


class ResultSet:
    """Forward-only view over one executed statement.

    Iterating yields raw row tuples exactly once. Driver errors raised while
    fetching are re-raised as :class:`QueryError`.
    """

    def __init__(self, columns: Sequence[str], fetchone: Callable[[], Optional[Sequence[Any]]],
                 errors: Tuple[type, ...] = (), close: Optional[Callable[[], None]] = None):
        self.columns: List[str] = list(columns)
        self._fetchone = fetchone
        self._errors = errors
        self._close = close
        self._exhausted = False

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        while not self._exhausted:
            try:
                row = self._fetchone()
            except self._errors as e:
                self._exhausted = True
                raise QueryError(str(e)) from e
            if row is None:
                self._exhausted = True
                return
            yield tuple(row)

    def close(self) -> None:
        self._exhausted = True
        if self._close:
            try:
                self._close()
            except self._errors as e:
                logger.debug("Closing result failed: %s", e)

    def __enter__(self) -> "ResultSet":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @classmethod
    def from_rows(cls, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> "ResultSet":
        """In-memory result, handy for fixtures."""
        it = iter(rows)
        return cls(columns, lambda: next(it, None))


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class Engine:
    """Common surface of the database adapters."""

    name = "engine"
    # Driver exception types wrapped into QueryError / MetadataError
    driver_errors: Tuple[type, ...] = ()

    def __init__(self, path: str):
        self.path = path

    # -- statement execution -------------------------------------------------
    def execute(self, sql: str) -> ResultSet:
        raise NotImplementedError

    # -- metadata ------------------------------------------------------------
    def _meta(self, sql: str, params: Sequence[Any] = ()) -> List[Tuple[Any, ...]]:
        raise NotImplementedError

    def table_names(self) -> List[str]:
        raise NotImplementedError

    def columns(self, table: str) -> List[ColumnInfo]:
        raise NotImplementedError

    def column_names(self, table: str) -> List[str]:
        return [c.name for c in self.columns(table)]

    def indexes_for(self, table: str) -> List[IndexInfo]:
        raise NotImplementedError

    def foreign_keys(self, table: str) -> List[ForeignKey]:
        raise NotImplementedError

    def relations(self) -> List[Relation]:
        raise NotImplementedError

    def index_entries(self) -> List[IndexEntry]:
        raise NotImplementedError

    def table_sql(self, table: Optional[str] = None) -> List[str]:
        """Stored CREATE statements: one table's, or every table's when ``table`` is None."""
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------

def _convert_timestamp(raw: bytes) -> Any:
    text = raw.decode("utf-8", errors="replace")
    try:
        return datetime.datetime.fromisoformat(text)
    except ValueError:
        return text


def _convert_date(raw: bytes) -> Any:
    text = raw.decode("utf-8", errors="replace")
    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        return text


# Columns declared TIMESTAMP / DATETIME / DATE come back as datetime objects
sqlite3.register_converter("timestamp", _convert_timestamp)
sqlite3.register_converter("datetime", _convert_timestamp)
sqlite3.register_converter("date", _convert_date)


class SQLiteEngine(Engine):
    name = "sqlite"
    driver_errors = (sqlite3.Error,)

    TABLES_SQL = ("SELECT name FROM sqlite_master "
                  "WHERE type='table' AND name NOT LIKE 'sqlite_%'")
    RELATIONS_SQL = ("SELECT name, type FROM sqlite_master "
                     "WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%' "
                     "ORDER BY type DESC, name")
    INDEXES_SQL = ("SELECT name, tbl_name FROM sqlite_master "
                   "WHERE type = 'index' AND name NOT LIKE 'sqlite_%' "
                   "ORDER BY tbl_name, name")

    def __init__(self, path: str):
        super().__init__(path)
        try:
            self.conn = sqlite3.connect(path, detect_types=sqlite3.PARSE_DECLTYPES,
                                        isolation_level=None)
            # Touch the schema so "file is not a database" surfaces at startup
            self.conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
        except sqlite3.Error as e:
            raise DatabaseOpenError(f"{path}: {e}") from e
        logger.debug("Opened SQLite database %s", path)

    def execute(self, sql: str) -> ResultSet:
        try:
            cur = self.conn.execute(sql)
        except sqlite3.Error as e:
            raise QueryError(str(e)) from e
        cols = [d[0] for d in cur.description] if cur.description else []
        return ResultSet(cols, cur.fetchone, self.driver_errors, cur.close)

    def _meta(self, sql: str, params: Sequence[Any] = ()) -> List[Tuple[Any, ...]]:
        try:
            return [tuple(r) for r in self.conn.execute(sql, tuple(params)).fetchall()]
        except sqlite3.Error as e:
            raise MetadataError(str(e)) from e

    def table_names(self) -> List[str]:
        return [r[0] for r in self._meta(self.TABLES_SQL)]

    def columns(self, table: str) -> List[ColumnInfo]:
        rows = self._meta(f"PRAGMA table_info({quote_identifier(table)})")
        return [ColumnInfo(cid=r[0], name=r[1], type=r[2] or "", notnull=bool(r[3]),
                           default=None if r[4] is None else str(r[4]), pk=r[5])
                for r in rows]

    def index_columns(self, index: str) -> List[str]:
        return [r[2] for r in self._meta(f"PRAGMA index_info({quote_identifier(index)})")]

    def indexes_for(self, table: str) -> List[IndexInfo]:
        out = []
        for row in self._meta(f"PRAGMA index_list({quote_identifier(table)})"):
            # seq, name, unique, origin, partial
            name, unique, origin = row[1], row[2], row[3]
            out.append(IndexInfo(name=name, unique=bool(unique), origin=origin,
                                 columns=tuple(self.index_columns(name))))
        return out

    def foreign_keys(self, table: str) -> List[ForeignKey]:
        rows = self._meta(f"PRAGMA foreign_key_list({quote_identifier(table)})")
        # id, seq, table, from, to, on_update, on_delete, match
        return [ForeignKey(column=r[3], ref_table=r[2], ref_column=r[4] or "") for r in rows]

    def relations(self) -> List[Relation]:
        return [Relation(name=r[0], type=r[1]) for r in self._meta(self.RELATIONS_SQL)]

    def index_entries(self) -> List[IndexEntry]:
        return [IndexEntry(name=r[0], table=r[1]) for r in self._meta(self.INDEXES_SQL)]

    def table_sql(self, table: Optional[str] = None) -> List[str]:
        if table is None:
            rows = self._meta("SELECT sql FROM sqlite_master WHERE type='table'")
        else:
            rows = self._meta("SELECT sql FROM sqlite_master WHERE type='table' AND name=?", (table,))
        return [r[0] for r in rows if r[0] is not None]

    def close(self) -> None:
        self.conn.close()


# ---------------------------------------------------------------------------
# DuckDB
# ---------------------------------------------------------------------------

_INDEX_COLUMNS_RE = re.compile(r'\((.*)\)', re.DOTALL)


class DuckDBEngine(Engine):
    name = "duckdb"
    driver_errors = (duckdb.Error,)

    TABLES_SQL = "SELECT table_name FROM duckdb_tables() WHERE NOT internal"
    COLUMNS_SQL = ("SELECT column_index, column_name, data_type, NOT is_nullable, column_default "
                   "FROM duckdb_columns() WHERE table_name = ? ORDER BY column_index")
    RELATIONS_SQL = ("SELECT table_name, 'table' AS type FROM duckdb_tables() WHERE NOT internal "
                     "UNION ALL "
                     "SELECT view_name, 'view' AS type FROM duckdb_views() WHERE NOT internal "
                     "ORDER BY type DESC, 1")
    INDEXES_SQL = ("SELECT index_name, table_name FROM duckdb_indexes() "
                   "ORDER BY table_name, index_name")
    TABLE_INDEXES_SQL = ("SELECT index_name, is_unique, sql FROM duckdb_indexes() "
                         "WHERE table_name = ? ORDER BY index_name")
    CONSTRAINTS_SQL = ("SELECT constraint_type, constraint_column_names FROM duckdb_constraints() "
                       "WHERE table_name = ? AND constraint_type IN ('PRIMARY KEY', 'UNIQUE')")
    FOREIGN_KEYS_SQL = ("SELECT constraint_column_names, referenced_table, referenced_column_names "
                        "FROM duckdb_constraints() "
                        "WHERE table_name = ? AND constraint_type = 'FOREIGN KEY'")

    def __init__(self, path: str):
        super().__init__(path)
        try:
            self.con = duckdb.connect(path)
        except duckdb.Error as e:
            raise DatabaseOpenError(f"{path}: {e}") from e
        logger.debug("Opened DuckDB database %s", path)

    def execute(self, sql: str) -> ResultSet:
        try:
            cur = self.con.execute(sql)
        except duckdb.Error as e:
            raise QueryError(str(e)) from e
        cols = [d[0] for d in cur.description] if cur.description else []
        if not cols:
            return ResultSet([], lambda: None)
        return ResultSet(cols, cur.fetchone, self.driver_errors)

    def _meta(self, sql: str, params: Sequence[Any] = ()) -> List[Tuple[Any, ...]]:
        # Separate cursor so metadata lookups never disturb a pending result
        try:
            with self.con.cursor() as cur:
                return [tuple(r) for r in cur.execute(sql, list(params)).fetchall()]
        except duckdb.Error as e:
            raise MetadataError(str(e)) from e

    def table_names(self) -> List[str]:
        return [r[0] for r in self._meta(self.TABLES_SQL)]

    def columns(self, table: str) -> List[ColumnInfo]:
        return [ColumnInfo(cid=r[0], name=r[1], type=r[2] or "", notnull=bool(r[3]),
                           default=None if r[4] is None else str(r[4]))
                for r in self._meta(self.COLUMNS_SQL, (table,))]

    def indexes_for(self, table: str) -> List[IndexInfo]:
        out = []
        for ctype, cols in self._meta(self.CONSTRAINTS_SQL, (table,)):
            cols = tuple(cols or ())
            if ctype == 'PRIMARY KEY':
                out.append(IndexInfo(name=f"{table}_pkey", unique=True, origin='pk', columns=cols))
            else:
                out.append(IndexInfo(name=f"{table}_{'_'.join(cols)}_key", unique=True,
                                     origin='u', columns=cols))
        for name, unique, sql in self._meta(self.TABLE_INDEXES_SQL, (table,)):
            m = _INDEX_COLUMNS_RE.search(sql or "")
            cols = tuple(c.strip().strip('"') for c in m.group(1).split(',')) if m else ()
            out.append(IndexInfo(name=name, unique=bool(unique), origin='c', columns=cols))
        return out

    def foreign_keys(self, table: str) -> List[ForeignKey]:
        out = []
        for cols, ref_table, ref_cols in self._meta(self.FOREIGN_KEYS_SQL, (table,)):
            for col, ref_col in zip(cols or (), ref_cols or ()):
                out.append(ForeignKey(column=col, ref_table=ref_table, ref_column=ref_col))
        return out

    def relations(self) -> List[Relation]:
        return [Relation(name=r[0], type=r[1]) for r in self._meta(self.RELATIONS_SQL)]

    def index_entries(self) -> List[IndexEntry]:
        return [IndexEntry(name=r[0], table=r[1]) for r in self._meta(self.INDEXES_SQL)]

    def table_sql(self, table: Optional[str] = None) -> List[str]:
        if table is None:
            rows = self._meta("SELECT sql FROM duckdb_tables() WHERE NOT internal")
        else:
            rows = self._meta("SELECT sql FROM duckdb_tables() WHERE table_name = ?", (table,))
        return [r[0] for r in rows if r[0] is not None]

    def close(self) -> None:
        self.con.close()


_ENGINES = {
    'sqlite': SQLiteEngine,
    'duckdb': DuckDBEngine,
}


def resolve_engine_kind(path: str, kind: Optional[str] = None) -> str:
    if kind:
        if kind not in _ENGINES:
            raise DatabaseOpenError(f"Unknown engine '{kind}' (choose from {', '.join(SUPPORTED_ENGINES)})")
        return kind
    if path.lower().endswith(DUCKDB_EXTENSIONS):
        return 'duckdb'
    return 'sqlite'


def open_engine(path: str, kind: Optional[str] = None) -> Engine:
    """Open ``path`` with the requested engine, or pick one from the file extension."""
    resolved = resolve_engine_kind(path, kind)
    if path != ":memory:":
        path = os.path.expanduser(path)
    logger.info("Opening %s with %s engine", path, resolved)
    return _ENGINES[resolved](path)


__all__ = [
    'ColumnInfo', 'IndexInfo', 'ForeignKey', 'Relation', 'IndexEntry', 'ResultSet',
    'Engine', 'SQLiteEngine', 'DuckDBEngine', 'open_engine', 'resolve_engine_kind',
    'quote_identifier'
]
