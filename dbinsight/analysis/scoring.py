"""
Aggregate health and complexity scores, summary and recommendations
"""

from typing import List

from ..database.models import DatabaseInsight, DatabaseSummary, Dialect, Severity, Table


LOW_INDEX_ROW_THRESHOLD = 1000
UNPARTITIONED_ROW_THRESHOLD = 10000000
MANY_TABLES_THRESHOLD = 50


def calculate_health_score(tables: List[Table]) -> float:
    """Mean per-table index and partitioning hygiene in [0, 1]"""
    if not tables:
        return 0.0

    total_score = 0.0
    for table in tables:
        table_score = 1.0

        if len(table.indexes) <= 1 and table.row_count > LOW_INDEX_ROW_THRESHOLD:
            table_score -= 0.2

        if table.row_count > UNPARTITIONED_ROW_THRESHOLD and not table.is_partitioned:
            table_score -= 0.3

        total_score += max(table_score, 0.0)

    return total_score / len(tables)


def calculate_complexity_score(tables: List[Table]) -> float:
    complexity = len(tables) * 0.1
    for table in tables:
        complexity += len(table.columns) * 0.05
        complexity += len(table.indexes) * 0.1
    return complexity


def generate_summary(tables: List[Table], total_size: str = "Unknown") -> DatabaseSummary:
    return DatabaseSummary(
        total_tables=len(tables),
        total_columns=sum(len(t.columns) for t in tables),
        total_rows=sum(t.row_count for t in tables),
        total_size=total_size or "Unknown",
        health_score=calculate_health_score(tables),
        complexity_score=calculate_complexity_score(tables)
    )


def generate_recommendations(tables: List[Table], insights: List[DatabaseInsight],
                             dialect: Dialect = Dialect.POSTGRESQL) -> List[str]:
    """Priority actions from high and critical insights"""
    recommendations = []

    if len(tables) > MANY_TABLES_THRESHOLD:
        recommendations.append("Consider database normalization to reduce the number of tables")

    priority = [i for i in insights if i.severity >= Severity.HIGH]
    for insight in priority:
        recommendations.append(f"Priority: {insight.suggestion}")

    if not priority:
        if Dialect.parse(dialect).is_document_store:
            recommendations.append("MongoDB database appears healthy with no critical issues detected")
        else:
            recommendations.append("Database appears healthy with no critical issues detected")

    return recommendations
