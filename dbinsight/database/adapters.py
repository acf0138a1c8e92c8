"""
Database adapters for different database types
"""

import re
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple, Optional, Any

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import MetadataUnavailable, SampleUnavailable
from .models import Dialect


def format_bytes(size: int) -> str:
    """Human readable size with unit"""
    if size < 1024:
        return f"{size} bytes"
    elif size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


class DialectAdapter(ABC):
    """Read-only introspection capability for one database backend.

    Every operation returns raw rows (plain dicts) that the schema
    normalizer turns into model objects. Lookups that fail raise
    MetadataUnavailable or SampleUnavailable; callers decide whether to
    degrade or abort.
    """

    dialect: Dialect = None

    @abstractmethod
    def database_name(self) -> str:
        """Name of the inspected database"""
        pass

    @abstractmethod
    def list_entities(self) -> List[str]:
        """Table or collection names, in a stable order"""
        pass

    @abstractmethod
    def row_count(self, table: str) -> int:
        pass

    @abstractmethod
    def describe_columns(self, table: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_indexes(self, table: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_constraints(self, table: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_relationships(self, table: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def estimate_size(self, table: str) -> str:
        pass

    def is_partitioned(self, table: str) -> bool:
        """Whether the table is partitioned (or the collection sharded)"""
        return False

    @abstractmethod
    def sample_values(self, table: str, column: str, limit: int = 10) -> List[str]:
        """Up to ``limit`` distinct non-null values rendered as strings"""
        pass

    @abstractmethod
    def numeric_stats(self, table: str, column: str) -> Tuple[Optional[float], Optional[float], Optional[float]]:
        """MIN, MAX and AVG over non-null values"""
        pass

    @abstractmethod
    def distinct_count(self, table: str, column: str) -> int:
        pass

    @abstractmethod
    def null_count(self, table: str, column: str) -> int:
        pass

    def database_size(self) -> str:
        return "Unknown"

    def begin_pass(self):
        """Start a new analysis pass; adapters drop anything cached by the previous one"""
        pass


class SQLAdapter(DialectAdapter):
    """Shared implementation for relational backends reached through SQLAlchemy"""

    def __init__(self, engine: Engine, schema: Optional[str] = None):
        self.engine = engine
        self.schema = schema or self.default_schema()

    def default_schema(self) -> Optional[str]:
        return None

    def database_name(self) -> str:
        return self.engine.url.database or self.dialect.value

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        pass

    def qualified_name(self, table: str) -> str:
        return self.quote_identifier(table)

    def _fetch_all(self, query: str, params: Optional[Dict[str, Any]] = None,
                   error_cls=MetadataUnavailable) -> List[Any]:
        try:
            with self.engine.connect() as conn:
                return conn.execute(text(query), params or {}).fetchall()
        except SQLAlchemyError as e:
            raise error_cls(str(e)) from e

    def _fetch_one(self, query: str, params: Optional[Dict[str, Any]] = None,
                   error_cls=MetadataUnavailable) -> Any:
        try:
            with self.engine.connect() as conn:
                return conn.execute(text(query), params or {}).fetchone()
        except SQLAlchemyError as e:
            raise error_cls(str(e)) from e

    def row_count(self, table: str) -> int:
        row = self._fetch_one(f"SELECT COUNT(*) FROM {self.qualified_name(table)}")
        return int(row[0]) if row else 0

    def sample_values(self, table: str, column: str, limit: int = 10) -> List[str]:
        qt = self.qualified_name(table)
        qc = self.quote_identifier(column)
        rows = self._fetch_all(
            f"SELECT DISTINCT {qc} FROM {qt} WHERE {qc} IS NOT NULL LIMIT :limit",
            {"limit": limit},
            error_cls=SampleUnavailable
        )
        return [str(row[0]) for row in rows if row[0] is not None]

    def numeric_stats(self, table: str, column: str) -> Tuple[Optional[float], Optional[float], Optional[float]]:
        qt = self.qualified_name(table)
        qc = self.quote_identifier(column)
        row = self._fetch_one(
            f"SELECT MIN({qc}), MAX({qc}), AVG({qc}) FROM {qt} WHERE {qc} IS NOT NULL",
            error_cls=SampleUnavailable
        )
        if not row:
            return None, None, None
        return tuple(float(v) if v is not None else None for v in row)

    def distinct_count(self, table: str, column: str) -> int:
        qt = self.qualified_name(table)
        qc = self.quote_identifier(column)
        row = self._fetch_one(f"SELECT COUNT(DISTINCT {qc}) FROM {qt}", error_cls=SampleUnavailable)
        return int(row[0]) if row else 0

    def null_count(self, table: str, column: str) -> int:
        qt = self.qualified_name(table)
        qc = self.quote_identifier(column)
        row = self._fetch_one(f"SELECT COUNT(*) FROM {qt} WHERE {qc} IS NULL", error_cls=SampleUnavailable)
        return int(row[0]) if row else 0


class PostgreSQLAdapter(SQLAdapter):
    """PostgreSQL database adapter"""

    dialect = Dialect.POSTGRESQL

    def default_schema(self) -> str:
        return "public"

    def quote_identifier(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def list_entities(self) -> List[str]:
        rows = self._fetch_all(
            "SELECT tablename FROM pg_tables WHERE schemaname = :schema ORDER BY tablename",
            {"schema": self.schema}
        )
        return [row[0] for row in rows]

    def qualified_name(self, table: str) -> str:
        return f"{self.quote_identifier(self.schema)}.{self.quote_identifier(table)}"

    def describe_columns(self, table: str) -> List[Dict[str, Any]]:
        rows = self._fetch_all("""
            SELECT
                c.column_name, c.data_type, c.is_nullable, c.column_default,
                c.character_maximum_length, c.numeric_precision, c.numeric_scale,
                CASE WHEN c.column_name IN (
                    SELECT kcu.column_name FROM information_schema.table_constraints tc
                    JOIN information_schema.key_column_usage kcu
                        ON tc.constraint_name = kcu.constraint_name
                        AND tc.table_schema = kcu.table_schema
                    WHERE tc.table_name = :table AND tc.table_schema = :schema
                        AND tc.constraint_type = 'PRIMARY KEY'
                ) THEN 'PRI' ELSE '' END AS column_key
            FROM information_schema.columns c
            WHERE c.table_name = :table AND c.table_schema = :schema
            ORDER BY c.ordinal_position
        """, {"table": table, "schema": self.schema})

        return [{
            'name': row[0],
            'type': row[1],
            'nullable': row[2] == 'YES',
            'default': row[3],
            'max_length': row[4],
            'precision': row[5],
            'scale': row[6],
            'primary_key': row[7] == 'PRI'
        } for row in rows]

    def list_indexes(self, table: str) -> List[Dict[str, Any]]:
        rows = self._fetch_all("""
            SELECT i.relname, a.attname, ix.indisunique, am.amname,
                   array_position(ix.indkey::int2[], a.attnum) AS seq
            FROM pg_class t
            JOIN pg_namespace n ON n.oid = t.relnamespace
            JOIN pg_index ix ON ix.indrelid = t.oid
            JOIN pg_class i ON i.oid = ix.indexrelid
            JOIN pg_am am ON am.oid = i.relam
            JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = ANY(ix.indkey)
            WHERE t.relname = :table AND n.nspname = :schema
            ORDER BY i.relname, seq
        """, {"table": table, "schema": self.schema})

        return [{
            'name': row[0],
            'column': row[1],
            'unique': bool(row[2]),
            'type': row[3]
        } for row in rows]

    def list_constraints(self, table: str) -> List[Dict[str, Any]]:
        rows = self._fetch_all("""
            SELECT tc.constraint_name, tc.constraint_type, kcu.column_name,
                   ccu.table_name AS ref_table, ccu.column_name AS ref_column
            FROM information_schema.table_constraints tc
            LEFT JOIN information_schema.key_column_usage kcu
                ON tc.constraint_name = kcu.constraint_name
                AND tc.table_name = kcu.table_name
                AND tc.table_schema = kcu.table_schema
            LEFT JOIN information_schema.constraint_column_usage ccu
                ON tc.constraint_type = 'FOREIGN KEY'
                AND tc.constraint_name = ccu.constraint_name
                AND tc.constraint_schema = ccu.constraint_schema
            WHERE tc.table_name = :table AND tc.table_schema = :schema
                AND tc.constraint_name NOT LIKE '%_not_null'
            ORDER BY tc.constraint_name, kcu.ordinal_position
        """, {"table": table, "schema": self.schema})

        return [{
            'name': row[0],
            'type': row[1],
            'column': row[2],
            'ref_table': row[3],
            'ref_column': row[4]
        } for row in rows]

    def list_relationships(self, table: str) -> List[Dict[str, Any]]:
        rows = self._fetch_all("""
            SELECT kcu.column_name, ccu.table_name, ccu.column_name
            FROM information_schema.key_column_usage kcu
            JOIN information_schema.referential_constraints rc
                ON kcu.constraint_name = rc.constraint_name
                AND kcu.constraint_schema = rc.constraint_schema
            JOIN information_schema.constraint_column_usage ccu
                ON rc.unique_constraint_name = ccu.constraint_name
                AND rc.unique_constraint_schema = ccu.constraint_schema
            WHERE kcu.table_name = :table AND kcu.table_schema = :schema
            ORDER BY kcu.ordinal_position
        """, {"table": table, "schema": self.schema})

        return [{
            'column': row[0],
            'ref_table': row[1],
            'ref_column': row[2]
        } for row in rows]

    def estimate_size(self, table: str) -> str:
        qualified = self.qualified_name(table)
        row = self._fetch_one(
            "SELECT pg_size_pretty(pg_total_relation_size(CAST(:name AS regclass)))",
            {"name": qualified}
        )
        return row[0] if row and row[0] else "Unknown"

    def is_partitioned(self, table: str) -> bool:
        row = self._fetch_one("""
            SELECT c.relkind = 'p' FROM pg_class c
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE c.relname = :table AND n.nspname = :schema
        """, {"table": table, "schema": self.schema})
        return bool(row and row[0])

    def database_size(self) -> str:
        row = self._fetch_one("SELECT pg_size_pretty(pg_database_size(current_database()))")
        return row[0] if row and row[0] else "Unknown"


class MySQLAdapter(SQLAdapter):
    """MySQL database adapter"""

    dialect = Dialect.MYSQL

    def quote_identifier(self, name: str) -> str:
        return '`' + name.replace('`', '``') + '`'

    def list_entities(self) -> List[str]:
        rows = self._fetch_all("""
            SELECT TABLE_NAME FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_TYPE = 'BASE TABLE'
            ORDER BY TABLE_NAME
        """)
        return [row[0] for row in rows]

    def describe_columns(self, table: str) -> List[Dict[str, Any]]:
        rows = self._fetch_all("""
            SELECT
                COLUMN_NAME, DATA_TYPE, IS_NULLABLE, COLUMN_DEFAULT,
                CHARACTER_MAXIMUM_LENGTH, NUMERIC_PRECISION, NUMERIC_SCALE,
                COLUMN_KEY
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE TABLE_NAME = :table AND TABLE_SCHEMA = DATABASE()
            ORDER BY ORDINAL_POSITION
        """, {"table": table})

        return [{
            'name': row[0],
            'type': row[1],
            'nullable': row[2] == 'YES',
            'default': row[3],
            'max_length': row[4],
            'precision': row[5],
            'scale': row[6],
            'primary_key': row[7] == 'PRI'
        } for row in rows]

    def list_indexes(self, table: str) -> List[Dict[str, Any]]:
        rows = self._fetch_all("""
            SELECT INDEX_NAME, COLUMN_NAME, NON_UNIQUE, INDEX_TYPE
            FROM INFORMATION_SCHEMA.STATISTICS
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table
            ORDER BY INDEX_NAME, SEQ_IN_INDEX
        """, {"table": table})

        return [{
            'name': row[0],
            'column': row[1],
            'unique': int(row[2]) == 0,
            'type': (row[3] or 'btree').lower()
        } for row in rows]

    def list_constraints(self, table: str) -> List[Dict[str, Any]]:
        rows = self._fetch_all("""
            SELECT
                tc.CONSTRAINT_NAME, tc.CONSTRAINT_TYPE, kcu.COLUMN_NAME,
                kcu.REFERENCED_TABLE_NAME, kcu.REFERENCED_COLUMN_NAME
            FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
            LEFT JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu
                ON tc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
                AND tc.TABLE_NAME = kcu.TABLE_NAME
                AND tc.TABLE_SCHEMA = kcu.TABLE_SCHEMA
            WHERE tc.TABLE_NAME = :table AND tc.TABLE_SCHEMA = DATABASE()
            ORDER BY tc.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
        """, {"table": table})

        return [{
            'name': row[0],
            'type': row[1],
            'column': row[2],
            'ref_table': row[3],
            'ref_column': row[4]
        } for row in rows]

    def list_relationships(self, table: str) -> List[Dict[str, Any]]:
        rows = self._fetch_all("""
            SELECT kcu.COLUMN_NAME, kcu.REFERENCED_TABLE_NAME, kcu.REFERENCED_COLUMN_NAME
            FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu
            JOIN INFORMATION_SCHEMA.REFERENTIAL_CONSTRAINTS rc
                ON kcu.CONSTRAINT_NAME = rc.CONSTRAINT_NAME
                AND kcu.CONSTRAINT_SCHEMA = rc.CONSTRAINT_SCHEMA
            WHERE kcu.TABLE_NAME = :table
                AND kcu.REFERENCED_TABLE_NAME IS NOT NULL
                AND kcu.TABLE_SCHEMA = DATABASE()
            ORDER BY kcu.ORDINAL_POSITION
        """, {"table": table})

        return [{
            'column': row[0],
            'ref_table': row[1],
            'ref_column': row[2]
        } for row in rows]

    def estimate_size(self, table: str) -> str:
        row = self._fetch_one("""
            SELECT ROUND(((DATA_LENGTH + INDEX_LENGTH) / 1024 / 1024), 2)
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table
        """, {"table": table})
        if not row or row[0] is None:
            return "Unknown"
        return f"{float(row[0]):.2f} MB"

    def is_partitioned(self, table: str) -> bool:
        row = self._fetch_one("""
            SELECT COUNT(*) FROM INFORMATION_SCHEMA.PARTITIONS
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table
                AND PARTITION_NAME IS NOT NULL
        """, {"table": table})
        return bool(row and row[0])

    def database_size(self) -> str:
        row = self._fetch_one("""
            SELECT ROUND(SUM(DATA_LENGTH + INDEX_LENGTH) / 1024 / 1024, 2)
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA = DATABASE()
        """)
        if not row or row[0] is None:
            return "Unknown"
        return f"{float(row[0]):.2f} MB"


class SQLiteAdapter(SQLAdapter):
    """SQLite database adapter"""

    dialect = Dialect.SQLITE

    _TYPE_ARGS = re.compile(r'\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\)')

    def quote_identifier(self, name: str) -> str:
        # an unknown double-quoted name is read as a string literal by SQLite
        return '`' + name.replace('`', '``') + '`'

    def database_name(self) -> str:
        return self.engine.url.database or ":memory:"

    def list_entities(self) -> List[str]:
        rows = self._fetch_all(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row[0] for row in rows]

    def describe_columns(self, table: str) -> List[Dict[str, Any]]:
        rows = self._fetch_all(f"PRAGMA table_info({self.quote_identifier(table)})")

        columns = []
        for _cid, name, col_type, not_null, default, pk in rows:
            max_length = precision = scale = None
            match = self._TYPE_ARGS.search(col_type or '')
            if match:
                if match.group(2) is not None:
                    precision, scale = int(match.group(1)), int(match.group(2))
                elif 'char' in (col_type or '').lower():
                    max_length = int(match.group(1))
                else:
                    precision = int(match.group(1))
            columns.append({
                'name': name,
                'type': col_type or '',
                'nullable': not_null == 0 and pk == 0,
                'default': default,
                'max_length': max_length,
                'precision': precision,
                'scale': scale,
                'primary_key': pk > 0
            })
        return columns

    def list_indexes(self, table: str) -> List[Dict[str, Any]]:
        index_rows = self._fetch_all(f"PRAGMA index_list({self.quote_identifier(table)})")

        indexes = []
        for row in index_rows:
            name, unique = row[1], row[2]
            info = self._fetch_all(f"PRAGMA index_info({self.quote_identifier(name)})")
            indexes.append({
                'name': name,
                'columns': [col[2] for col in sorted(info, key=lambda r: r[0])],
                'unique': unique == 1,
                'type': 'btree'
            })
        return indexes

    def list_constraints(self, table: str) -> List[Dict[str, Any]]:
        constraints = []

        for column in self.describe_columns(table):
            if column['primary_key']:
                constraints.append({
                    'name': f"pk_{table}",
                    'type': 'PRIMARY KEY',
                    'column': column['name']
                })

        for index in self.list_indexes(table):
            if index['unique'] and index['name'].startswith('sqlite_autoindex'):
                for col in index['columns']:
                    constraints.append({'name': index['name'], 'type': 'UNIQUE', 'column': col})

        fk_rows = self._fetch_all(f"PRAGMA foreign_key_list({self.quote_identifier(table)})")
        for row in fk_rows:
            constraints.append({
                'name': f"fk_{row[0]}",
                'type': 'FOREIGN KEY',
                'column': row[3],
                'ref_table': row[2],
                'ref_column': row[4]
            })
        return constraints

    def list_relationships(self, table: str) -> List[Dict[str, Any]]:
        rows = self._fetch_all(f"PRAGMA foreign_key_list({self.quote_identifier(table)})")
        return [{
            'column': row[3],
            'ref_table': row[2],
            'ref_column': row[4]
        } for row in rows]

    def estimate_size(self, table: str) -> str:
        # dbstat is only present when SQLite is built with SQLITE_ENABLE_DBSTAT_VTAB
        row = self._fetch_one("SELECT SUM(pgsize) FROM dbstat WHERE name = :table", {"table": table})
        if not row or row[0] is None:
            return "Unknown"
        return format_bytes(int(row[0]))

    def database_size(self) -> str:
        page_count = self._fetch_one("PRAGMA page_count")
        page_size = self._fetch_one("PRAGMA page_size")
        if not page_count or not page_size:
            return "Unknown"
        return format_bytes(int(page_count[0]) * int(page_size[0]))
