import logging
from datetime import datetime
from typing import List, Optional

import pytest
from pymongo.errors import OperationFailure
from sqlalchemy import create_engine, text

from dbinsight.database.models import (
    Column, DatabaseReport, DataProfile, Index, Relationship, Table
)
from dbinsight.analysis.scoring import generate_summary

logger = logging.getLogger(__name__)


SHOP_DDL = [
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY,
        email VARCHAR(255) UNIQUE,
        name TEXT,
        pwd VARCHAR(20),
        phone VARCHAR(20),
        website TEXT
    )
    """,
    """
    CREATE TABLE orders (
        id INTEGER PRIMARY KEY,
        user_id INTEGER REFERENCES users(id),
        amount DECIMAL(10,2),
        note TEXT
    )
    """,
    "CREATE INDEX idx_orders_user ON orders(user_id)",
]

SHOP_ROWS = [
    "INSERT INTO users VALUES (1, 'alice@example.com', 'Alice', 'secret', '5551234567', 'https://alice.dev')",
    "INSERT INTO users VALUES (2, 'bob@example.com', 'Bob', 'hunter2', '5559876543', 'https://bob.dev')",
    "INSERT INTO users VALUES (3, 'carol@example.com', 'Carol', 'pa55', '5550001111', NULL)",
    "INSERT INTO orders VALUES (1, 1, 10, 'gift')",
    "INSERT INTO orders VALUES (2, 1, 20, NULL)",
    "INSERT INTO orders VALUES (3, 2, 30, NULL)",
    "INSERT INTO orders VALUES (4, 3, 40, NULL)",
]


@pytest.fixture(scope="function")
def shop_engine(tmp_path):
    """File-backed SQLite database with users and orders"""
    engine = create_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    with engine.begin() as conn:
        for statement in SHOP_DDL + SHOP_ROWS:
            conn.execute(text(statement))
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def shop_db_path(shop_engine):
    return shop_engine.url.database


class FakeCollection:
    """The subset of pymongo.collection.Collection used by the adapter"""

    def __init__(self, documents, indexes=None, fail_find=False):
        self.documents = documents
        self.indexes = indexes if indexes is not None else [{'name': '_id_', 'key': {'_id': 1}}]
        self.fail_find = fail_find

    def find(self, filter=None, limit=0):
        if self.fail_find:
            raise OperationFailure("find not allowed")
        docs = list(self.documents)
        return iter(docs[:limit] if limit else docs)

    def list_indexes(self):
        return iter(self.indexes)

    def estimated_document_count(self):
        return len(self.documents)


class FakeMongoDatabase:
    """The subset of pymongo.database.Database used by the adapter"""

    def __init__(self, name="appdb", collections=None, fail_stats=False):
        self.name = name
        self.collections = collections or {}
        self.fail_stats = fail_stats
        self.commands = []

    def list_collection_names(self):
        return list(self.collections)

    def __getitem__(self, name):
        return self.collections[name]

    def command(self, name, value=None):
        self.commands.append((name, value))
        if self.fail_stats:
            raise OperationFailure(f"{name} not authorized")
        if name == 'collStats':
            coll = self.collections[value]
            return {'count': len(coll.documents), 'size': 100 * len(coll.documents), 'sharded': False}
        if name == 'dbStats':
            return {'dataSize': 1000, 'indexSize': 24}
        raise OperationFailure(f"unknown command {name}")


USER_DOCUMENTS = [
    {'_id': 1, 'name': 'Ann', 'address': {'city': 'Oslo', 'zip': '0150'}, 'age': 30},
    {'_id': 2, 'name': 'Ben', 'age': '31', 'tags': ['a', 'b']},
    {'_id': 3, 'email': None, 'active': True},
]


@pytest.fixture(scope="function")
def mongo_db():
    return FakeMongoDatabase(collections={
        'users': FakeCollection(USER_DOCUMENTS),
        'system.views': FakeCollection([]),
        'events': FakeCollection([{'_id': i, 'kind': 'click'} for i in range(5)],
                                 indexes=[{'name': '_id_', 'key': {'_id': 1}},
                                          {'name': 'kind_ts', 'key': {'kind': 1, 'ts': -1}, 'unique': True}]),
    })


def make_table(name: str, row_count: int = 0, index_count: int = 0,
               columns: Optional[List[Column]] = None,
               relationships: Optional[List[Relationship]] = None,
               is_partitioned: bool = False) -> Table:
    return Table(
        name=name,
        row_count=row_count,
        columns=columns or [],
        indexes=[Index(name=f"idx_{name}_{i}", columns=[f"c{i}"]) for i in range(index_count)],
        relationships=relationships or [],
        is_partitioned=is_partitioned
    )


def make_column(name: str, data_type: str = "varchar", quality: float = 1.0,
                null_count: int = 0, max_length: int = 0, pattern: str = "") -> Column:
    return Column(
        name=name,
        data_type=data_type,
        max_length=max_length,
        null_count=null_count,
        data_profile=DataProfile(pattern=pattern, quality=quality)
    )


def make_report(tables: List[Table], analysis_time: Optional[datetime] = None,
                name: str = "shop") -> DatabaseReport:
    return DatabaseReport(
        database_name=name,
        database_type="postgresql",
        analysis_time=analysis_time or datetime(2024, 1, 1, 12, 0, 0),
        summary=generate_summary(tables),
        tables=tables
    )
