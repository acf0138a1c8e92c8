"""
Rule-based insight detection over analyzed tables
"""

from typing import List, Optional

from ..config.settings import AnalysisSettings, SecuritySettings
from ..database.models import DatabaseInsight, Dialect, Severity, Table
from .security import SecurityAnalyzer


MISSING_INDEX_ROW_THRESHOLD = 10000
ISOLATED_TABLE_MIN_ROWS = 100
UNUSED_COLUMN_NULL_RATIO = 0.95


class InsightGenerator:
    """Generate performance, quality, design and security insights"""

    def __init__(self, settings: Optional[AnalysisSettings] = None,
                 security_settings: Optional[SecuritySettings] = None,
                 dialect: Dialect = Dialect.POSTGRESQL):
        self.settings = settings or AnalysisSettings()
        security_settings = security_settings or SecuritySettings()
        self.security = SecurityAnalyzer(
            pii_patterns=security_settings.pii_patterns,
            enable_pii_detection=security_settings.enable_pii_detection
        )
        self.dialect = Dialect.parse(dialect)

    def generate_insights(self, tables: List[Table]) -> List[DatabaseInsight]:
        insights = []
        insights.extend(self.analyze_large_tables(tables))
        insights.extend(self.analyze_missing_indexes(tables))
        insights.extend(self.analyze_data_quality(tables))
        if not self.dialect.is_document_store:
            insights.extend(self.analyze_relationships(tables))
        insights.extend(self.analyze_unused_columns(tables))
        insights.extend(self.security.analyze(tables))
        return insights

    def analyze_large_tables(self, tables: List[Table]) -> List[DatabaseInsight]:
        """Tables above the large-table threshold, biggest first"""
        threshold = self.settings.large_table_threshold
        insights = []

        for table in sorted(tables, key=lambda t: t.row_count, reverse=True):
            if table.row_count <= threshold:
                continue

            if self.dialect.is_document_store:
                title = "Large Collection Detected"
                description = f"Collection '{table.name}' has {table.row_count} documents, which may impact performance"
                suggestion = "Consider sharding, archiving old data, or optimizing queries"
            else:
                title = "Large Table Detected"
                description = f"Table '{table.name}' has {table.row_count} rows, which may impact performance"
                suggestion = "Consider partitioning, archiving old data, or optimizing queries"

            insights.append(DatabaseInsight(
                category="performance",
                severity=Severity.MEDIUM,
                title=title,
                description=description,
                suggestion=suggestion,
                affected_objects=[table.name],
                metric_value=table.row_count
            ))
        return insights

    def analyze_missing_indexes(self, tables: List[Table]) -> List[DatabaseInsight]:
        insights = []
        for table in tables:
            if table.row_count <= MISSING_INDEX_ROW_THRESHOLD or len(table.indexes) > 1:
                continue

            if self.dialect.is_document_store:
                title = "Missing Indexes on Large Collection"
                description = f"Collection '{table.name}' has {table.row_count} documents but only {len(table.indexes)} indexes"
                suggestion = "Consider adding indexes on frequently queried fields"
            else:
                title = "Potential Missing Indexes"
                description = f"Table '{table.name}' has {table.row_count} rows but only {len(table.indexes)} indexes"
                suggestion = "Consider adding indexes on frequently queried columns"

            insights.append(DatabaseInsight(
                category="performance",
                severity=Severity.HIGH,
                title=title,
                description=description,
                suggestion=suggestion,
                affected_objects=[table.name],
                metric_value=len(table.indexes)
            ))
        return insights

    def analyze_data_quality(self, tables: List[Table]) -> List[DatabaseInsight]:
        minimum = self.settings.quality_score_minimum
        insights = []
        for table in tables:
            for column in table.columns:
                quality = column.data_profile.quality
                if quality < minimum:
                    insights.append(DatabaseInsight(
                        category="quality",
                        severity=Severity.MEDIUM,
                        title="Poor Data Quality",
                        description=f"Column '{table.name}.{column.name}' has quality score of {quality:.2f}",
                        suggestion="Review data validation rules and consider data cleanup",
                        affected_objects=[f"{table.name}.{column.name}"],
                        metric_value=quality
                    ))
        return insights

    def analyze_relationships(self, tables: List[Table]) -> List[DatabaseInsight]:
        """Flag schemas where many populated tables reference nothing"""
        isolated = [t.name for t in tables
                    if not t.relationships and t.row_count > ISOLATED_TABLE_MIN_ROWS]

        if len(isolated) <= len(tables) // 4:
            return []

        return [DatabaseInsight(
            category="design",
            severity=Severity.MEDIUM,
            title="Many Isolated Tables",
            description=f"{len(isolated)} tables have no relationships, which may indicate poor normalization",
            suggestion="Review database design and consider establishing proper relationships",
            affected_objects=isolated,
            metric_value=len(isolated)
        )]

    def analyze_unused_columns(self, tables: List[Table]) -> List[DatabaseInsight]:
        insights = []
        for table in tables:
            if table.row_count == 0:
                continue

            for column in table.columns:
                null_ratio = column.null_count / table.row_count
                if null_ratio > UNUSED_COLUMN_NULL_RATIO:
                    insights.append(DatabaseInsight(
                        category="optimization",
                        severity=Severity.LOW,
                        title="Potentially Unused Column",
                        description=f"Column '{table.name}.{column.name}' has {null_ratio * 100:.1f}% null values",
                        suggestion="Consider removing this column if it's truly unused",
                        affected_objects=[f"{table.name}.{column.name}"],
                        metric_value=null_ratio
                    ))
        return insights
