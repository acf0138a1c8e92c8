"""
Document store adapter (MongoDB)
"""

import threading
from typing import Dict, List, Tuple, Optional, Any

from pymongo.database import Database
from pymongo.errors import PyMongoError

from .adapters import DialectAdapter
from .errors import MetadataUnavailable, SampleUnavailable
from .models import Dialect, ValueKind
from .normalizer import classify_value, analyze_documents, get_path


class MongoDBAdapter(DialectAdapter):
    """MongoDB adapter.

    Collections play the part of tables and sampled field statistics the
    part of columns. Profiling operations work on a bounded sample of
    documents, so counts are estimates scaled to the collection size.
    """

    dialect = Dialect.MONGODB

    def __init__(self, database: Database, sample_size: int = 100):
        self.database = database
        self.sample_size = sample_size
        self._samples: Dict[str, List[Dict[str, Any]]] = {}
        self._stats: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def begin_pass(self):
        with self._lock:
            self._samples.clear()
            self._stats.clear()

    def database_name(self) -> str:
        return self.database.name

    def list_entities(self) -> List[str]:
        try:
            names = self.database.list_collection_names()
        except PyMongoError as e:
            raise MetadataUnavailable(f"failed to list collection names: {e}") from e
        return sorted(name for name in names if not name.startswith('system.'))

    def _collection_stats(self, collection: str) -> Dict[str, Any]:
        with self._lock:
            if collection in self._stats:
                return self._stats[collection]
        try:
            stats = dict(self.database.command('collStats', collection))
        except PyMongoError as e:
            raise MetadataUnavailable(f"failed to get collection stats: {e}") from e
        with self._lock:
            self._stats[collection] = stats
        return stats

    def _sample(self, collection: str) -> List[Dict[str, Any]]:
        with self._lock:
            if collection in self._samples:
                return self._samples[collection]
        try:
            docs = list(self.database[collection].find({}, limit=self.sample_size))
        except PyMongoError as e:
            raise SampleUnavailable(f"failed to get sample documents: {e}") from e
        with self._lock:
            self._samples[collection] = docs
        return docs

    def row_count(self, table: str) -> int:
        try:
            return int(self._collection_stats(table).get('count', 0))
        except MetadataUnavailable:
            try:
                return int(self.database[table].estimated_document_count())
            except PyMongoError as e:
                raise MetadataUnavailable(f"failed to count documents: {e}") from e

    def describe_columns(self, table: str) -> List[Dict[str, Any]]:
        return analyze_documents(self._sample(table))

    def list_indexes(self, table: str) -> List[Dict[str, Any]]:
        try:
            index_docs = list(self.database[table].list_indexes())
        except PyMongoError as e:
            raise MetadataUnavailable(f"failed to list indexes: {e}") from e

        return [{
            'name': doc.get('name'),
            'key': dict(doc.get('key') or {}),
            'unique': bool(doc.get('unique', False)),
            'sparse': bool(doc.get('sparse', False)),
            'partial': doc.get('partialFilterExpression') is not None,
            'type': 'btree'
        } for doc in index_docs]

    def list_constraints(self, table: str) -> List[Dict[str, Any]]:
        return []

    def list_relationships(self, table: str) -> List[Dict[str, Any]]:
        return []

    def estimate_size(self, table: str) -> str:
        size = self._collection_stats(table).get('size')
        if size is None:
            return "Unknown"
        return f"{int(size)} bytes"

    def is_partitioned(self, table: str) -> bool:
        return bool(self._collection_stats(table).get('sharded', False))

    def _values(self, table: str, column: str) -> List[Any]:
        return [get_path(doc, column) for doc in self._sample(table)]

    def sample_values(self, table: str, column: str, limit: int = 10) -> List[str]:
        samples = []
        for value in self._values(table, column):
            if value is None:
                continue
            rendered = str(value)
            if rendered not in samples:
                samples.append(rendered)
            if len(samples) >= limit:
                break
        return samples

    def numeric_stats(self, table: str, column: str) -> Tuple[Optional[float], Optional[float], Optional[float]]:
        numbers = [float(v) for v in self._values(table, column)
                   if classify_value(v) in (ValueKind.INT, ValueKind.DOUBLE)]
        if not numbers:
            return None, None, None
        return min(numbers), max(numbers), sum(numbers) / len(numbers)

    def _scale(self, table: str, sampled: int) -> int:
        docs = self._sample(table)
        if not docs:
            return 0
        try:
            total = self.row_count(table)
        except MetadataUnavailable:
            total = len(docs)
        return round(sampled / len(docs) * total)

    def distinct_count(self, table: str, column: str) -> int:
        values = {str(v) for v in self._values(table, column) if v is not None}
        return len(values)

    def null_count(self, table: str, column: str) -> int:
        missing = sum(1 for v in self._values(table, column) if v is None)
        return self._scale(table, missing)

    def database_size(self) -> str:
        try:
            stats = self.database.command('dbStats')
        except PyMongoError as e:
            raise MetadataUnavailable(f"failed to get database stats: {e}") from e
        total = int(stats.get('dataSize', 0)) + int(stats.get('indexSize', 0))
        return f"{total} bytes"
