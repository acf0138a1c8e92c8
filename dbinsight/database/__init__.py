"""
Database adapters and schema model
"""

from .models import (
    Dialect, Severity, ValueKind, DataProfile, Column, Index, Constraint,
    Relationship, Table, DatabaseSummary, DatabaseInsight, DatabaseReport,
    DatabaseChange, ChangeSummary, ComparisonReport, MonitoringAlert,
    AlertEvaluation, LineageDependency, DataLineage, OptimizationSuggestion
)
from .errors import (
    DBInsightError, UnsupportedDialect, MetadataUnavailable, SampleUnavailable,
    AlreadyRunning, NotRunning, InvalidConfiguration
)
from .adapters import DialectAdapter, SQLAdapter, PostgreSQLAdapter, MySQLAdapter, SQLiteAdapter
from .document import MongoDBAdapter
from .factory import DatabaseFactory

__all__ = [
    'Dialect',
    'Severity',
    'ValueKind',
    'DataProfile',
    'Column',
    'Index',
    'Constraint',
    'Relationship',
    'Table',
    'DatabaseSummary',
    'DatabaseInsight',
    'DatabaseReport',
    'DatabaseChange',
    'ChangeSummary',
    'ComparisonReport',
    'MonitoringAlert',
    'AlertEvaluation',
    'LineageDependency',
    'DataLineage',
    'OptimizationSuggestion',
    'DBInsightError',
    'UnsupportedDialect',
    'MetadataUnavailable',
    'SampleUnavailable',
    'AlreadyRunning',
    'NotRunning',
    'InvalidConfiguration',
    'DialectAdapter',
    'SQLAdapter',
    'PostgreSQLAdapter',
    'MySQLAdapter',
    'SQLiteAdapter',
    'MongoDBAdapter',
    'DatabaseFactory'
]
