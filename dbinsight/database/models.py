"""
Data models for normalized database reports
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import List, Dict, Any, Optional

from .errors import UnsupportedDialect


class Dialect(Enum):
    """Supported database backends"""
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    MONGODB = "mongodb"

    @classmethod
    def parse(cls, name: str) -> "Dialect":
        """Resolve a dialect from its name or a common alias"""
        aliases = {
            'postgres': cls.POSTGRESQL,
            'postgresql': cls.POSTGRESQL,
            'mysql': cls.MYSQL,
            'sqlite': cls.SQLITE,
            'sqlite3': cls.SQLITE,
            'mongo': cls.MONGODB,
            'mongodb': cls.MONGODB,
        }
        if isinstance(name, cls):
            return name
        dialect = aliases.get(str(name or '').strip().lower())
        if dialect is None:
            raise UnsupportedDialect(name)
        return dialect

    @property
    def is_document_store(self) -> bool:
        return self is Dialect.MONGODB


class Severity(Enum):
    """Insight and alert severity, ordered from least to most urgent"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)

    def __ge__(self, other: "Severity") -> bool:
        return self.rank >= other.rank

    def __gt__(self, other: "Severity") -> bool:
        return self.rank > other.rank

    def __le__(self, other: "Severity") -> bool:
        return self.rank <= other.rank

    def __lt__(self, other: "Severity") -> bool:
        return self.rank < other.rank


class ValueKind(Enum):
    """Runtime kind of a decoded document value"""
    NULL = "null"
    STRING = "string"
    INT = "int"
    DOUBLE = "double"
    BOOL = "bool"
    ARRAY = "array"
    OBJECT = "object"
    MIXED = "mixed"


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


class _Serializable:
    """Mixin giving dataclasses a JSON-ready dict form"""

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))


@dataclass
class DataProfile(_Serializable):
    """Statistical summary of one column or field"""
    sample_data: List[str] = field(default_factory=list)
    pattern: str = ""
    min: Optional[float] = None
    max: Optional[float] = None
    avg: Optional[float] = None
    quality: float = 1.0


@dataclass
class Column(_Serializable):
    """A column of a table, or a field of a collection"""
    name: str
    data_type: str
    is_nullable: bool = True
    is_primary_key: bool = False
    default_value: Optional[str] = None
    max_length: int = 0
    precision: int = 0
    scale: int = 0
    unique_values: int = 0
    null_count: int = 0
    data_profile: DataProfile = field(default_factory=DataProfile)
    frequency: Optional[float] = None


@dataclass
class Index(_Serializable):
    """Index defined on a table or collection"""
    name: str
    columns: List[str] = field(default_factory=list)
    is_unique: bool = False
    index_type: str = "btree"


@dataclass
class Constraint(_Serializable):
    """Table constraint"""
    name: str
    constraint_type: str
    columns: List[str] = field(default_factory=list)
    ref_table: Optional[str] = None
    ref_columns: List[str] = field(default_factory=list)


@dataclass
class Relationship(_Serializable):
    """Outgoing reference from one of a table's columns"""
    source_column: str
    target_table: str
    target_column: str
    relationship_type: str = "foreign_key"


@dataclass
class Table(_Serializable):
    """Normalized description of a table or collection"""
    name: str
    row_count: int = 0
    columns: List[Column] = field(default_factory=list)
    indexes: List[Index] = field(default_factory=list)
    constraints: List[Constraint] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    size: str = "Unknown"
    last_modified: Optional[datetime] = None
    is_partitioned: bool = False


@dataclass
class DatabaseSummary(_Serializable):
    """Aggregate counts and scores for a report"""
    total_tables: int = 0
    total_columns: int = 0
    total_rows: int = 0
    total_size: str = "Unknown"
    health_score: float = 0.0
    complexity_score: float = 0.0


@dataclass
class DatabaseInsight(_Serializable):
    """A detected condition with a remediation hint"""
    category: str
    severity: Severity
    title: str
    description: str
    suggestion: str
    affected_objects: List[str] = field(default_factory=list)
    metric_value: Any = None


@dataclass
class DatabaseReport(_Serializable):
    """Result of one analysis pass"""
    database_name: str
    database_type: str
    analysis_time: datetime
    summary: DatabaseSummary
    tables: List[Table] = field(default_factory=list)
    insights: List[DatabaseInsight] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    failed_tables: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatabaseReport":
        """Rebuild a report from its to_dict() form"""
        tables = []
        for t in data.get('tables', []):
            columns = []
            for c in t.get('columns', []):
                profile = DataProfile(**c.get('data_profile', {}))
                col_fields = {k: v for k, v in c.items() if k != 'data_profile'}
                columns.append(Column(data_profile=profile, **col_fields))
            last_modified = t.get('last_modified')
            tables.append(Table(
                name=t['name'],
                row_count=t.get('row_count', 0),
                columns=columns,
                indexes=[Index(**i) for i in t.get('indexes', [])],
                constraints=[Constraint(**c) for c in t.get('constraints', [])],
                relationships=[Relationship(**r) for r in t.get('relationships', [])],
                size=t.get('size', 'Unknown'),
                last_modified=datetime.fromisoformat(last_modified) if last_modified else None,
                is_partitioned=t.get('is_partitioned', False)
            ))

        insights = []
        for i in data.get('insights', []):
            insight_fields = dict(i)
            insight_fields['severity'] = Severity(insight_fields['severity'])
            insights.append(DatabaseInsight(**insight_fields))

        return cls(
            database_name=data.get('database_name', ''),
            database_type=data.get('database_type', ''),
            analysis_time=datetime.fromisoformat(data['analysis_time']),
            summary=DatabaseSummary(**data.get('summary', {})),
            tables=tables,
            insights=insights,
            recommendations=list(data.get('recommendations', [])),
            failed_tables=dict(data.get('failed_tables', {}))
        )


@dataclass
class DatabaseChange(_Serializable):
    """One difference between two reports"""
    change_type: str
    category: str
    description: str
    impact: str
    affected_table: Optional[str] = None
    old_value: Any = None
    new_value: Any = None


@dataclass
class ChangeSummary(_Serializable):
    """Counts of changes by type and impact"""
    total_changes: int = 0
    schema_changes: int = 0
    data_changes: int = 0
    high_impact: int = 0
    medium_impact: int = 0
    low_impact: int = 0


@dataclass
class ComparisonReport(_Serializable):
    """Differences between an older and a newer report"""
    old_analysis_time: datetime
    new_analysis_time: datetime
    changes: List[DatabaseChange] = field(default_factory=list)
    summary: ChangeSummary = field(default_factory=ChangeSummary)


@dataclass
class MonitoringAlert(_Serializable):
    """Threshold alert evaluated against each report"""
    id: str
    name: str
    condition: str
    threshold: float
    severity: Severity = Severity.MEDIUM
    triggered: bool = False
    last_trigger: Optional[datetime] = None
    message: str = ""


@dataclass
class AlertEvaluation(_Serializable):
    """Outcome of evaluating one alert against one report"""
    alert_id: str
    triggered: bool
    message: str
    evaluated_at: datetime


@dataclass
class LineageDependency(_Serializable):
    """Edge of the lineage graph"""
    table_name: str
    column_name: Optional[str] = None
    dependency_type: str = "foreign_key"


@dataclass
class DataLineage(_Serializable):
    """Upstream and downstream dependencies of a table"""
    table_name: str
    upstream: List[LineageDependency] = field(default_factory=list)
    downstream: List[LineageDependency] = field(default_factory=list)
    last_updated: Optional[datetime] = None


@dataclass
class OptimizationSuggestion(_Serializable):
    """Textual suggestion for a query"""
    original_query: str
    optimized_query: str
    explanation: str
    expected_gain: str
    confidence: float
    affected_tables: List[str] = field(default_factory=list)
