"""
Database factory for creating appropriate database adapters
"""

from typing import Dict, Any, Optional

from pymongo import MongoClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from .adapters import DialectAdapter, PostgreSQLAdapter, MySQLAdapter, SQLiteAdapter
from .document import MongoDBAdapter
from .errors import UnsupportedDialect
from .models import Dialect


_ADAPTERS = {
    Dialect.POSTGRESQL: PostgreSQLAdapter,
    Dialect.MYSQL: MySQLAdapter,
    Dialect.SQLITE: SQLiteAdapter,
    Dialect.MONGODB: MongoDBAdapter,
}


_DRIVERS = {
    'postgres': 'postgresql+psycopg2',
    'postgresql': 'postgresql+psycopg2',
    'mysql': 'mysql+pymysql',
    'sqlite3': 'sqlite',
}


def to_sqlalchemy_url(database_url: str) -> str:
    """Rewrite plain scheme URLs (postgres://, mysql://, sqlite3://) for SQLAlchemy"""
    scheme, sep, rest = database_url.partition('://')
    if not sep:
        # bare file path
        return f"sqlite:///{database_url}"
    driver = _DRIVERS.get(scheme.lower())
    if driver is None:
        return database_url
    if driver == 'sqlite':
        rest = '/' + rest
    return f"{driver}://{rest}"


def get_engine(database_url: str, pool_size: int = 5) -> Engine:
    """Create a SQLAlchemy engine with connection pooling"""
    url = make_url(to_sqlalchemy_url(database_url))
    if url.get_backend_name() == 'sqlite':
        return create_engine(url)
    return create_engine(
        url,
        pool_size=pool_size,
        max_overflow=0,
        pool_pre_ping=True,
        echo=False
    )


class DatabaseFactory:
    """Factory class to create the adapter for a database type"""

    @staticmethod
    def create_adapter(db_type: str, connection: Any, **options) -> DialectAdapter:
        """Create adapter for an already-open connection.

        ``connection`` is a SQLAlchemy Engine for relational dialects and a
        pymongo Database for MongoDB.
        """
        dialect = Dialect.parse(db_type)
        adapter_cls = _ADAPTERS.get(dialect)
        if adapter_cls is None:
            raise UnsupportedDialect(db_type)
        return adapter_cls(connection, **options)

    @staticmethod
    def from_url(database_url: str, pool_size: int = 5, sample_size: int = 100,
                 schema: Optional[str] = None) -> DialectAdapter:
        """Open a connection from a URL and wrap it in the matching adapter"""
        dialect = Dialect.parse(DatabaseFactory.detect_type(database_url))

        if dialect is Dialect.MONGODB:
            client = MongoClient(database_url, maxPoolSize=pool_size)
            database = client.get_default_database(default='test')
            return MongoDBAdapter(database, sample_size=sample_size)

        engine = get_engine(database_url, pool_size=pool_size)
        options: Dict[str, Any] = {}
        if schema:
            options['schema'] = schema
        return DatabaseFactory.create_adapter(dialect.value, engine, **options)

    @staticmethod
    def detect_type(database_url: str) -> str:
        """Guess the database type from a connection URL"""
        url = (database_url or '').lower()
        if url.startswith('mongodb://') or url.startswith('mongodb+srv://'):
            return 'mongodb'
        if url.startswith('mysql'):
            return 'mysql'
        if url.startswith('postgres'):
            return 'postgresql'
        if url.startswith('sqlite') or url.endswith('.db'):
            return 'sqlite'
        return 'unknown'

    @staticmethod
    def get_supported_types() -> list:
        """Get list of supported database types"""
        return [dialect.value for dialect in _ADAPTERS]

    @staticmethod
    def get_required_config(db_type: str) -> list:
        """Get required configuration keys for database type"""
        configs = {
            'postgresql': ['host', 'port', 'user', 'password', 'database'],
            'mysql': ['host', 'user', 'password', 'database'],
            'sqlite': ['database'],
            'mongodb': ['host', 'database']
        }
        return configs.get(Dialect.parse(db_type).value, [])
