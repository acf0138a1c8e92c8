"""
Heuristic security checks over analyzed tables
"""

from typing import List, Optional

from ..database.models import Column, DatabaseInsight, Severity, Table
from ..utils.type_utils import EMAIL_PATTERN, PHONE_PATTERN, PII_VOCABULARY, contains_any


PASSWORD_INDICATORS = ['password', 'passwd', 'pwd', 'pass']
SENSITIVE_TABLE_NAMES = ['user', 'account', 'payment', 'credit', 'admin', 'password']

# hashed and salted passwords never fit in fewer characters
MIN_HASHED_PASSWORD_LENGTH = 32


class SecurityAnalyzer:
    """Flag privacy, encryption and access-control risks from schema metadata"""

    def __init__(self, pii_patterns: Optional[List[str]] = None, enable_pii_detection: bool = True):
        self.pii_patterns = list(pii_patterns) if pii_patterns else list(PII_VOCABULARY)
        self.enable_pii_detection = enable_pii_detection

    def analyze(self, tables: List[Table]) -> List[DatabaseInsight]:
        """Run every security check"""
        insights = []
        if self.enable_pii_detection:
            insights.extend(self.check_pii_columns(tables))
        insights.extend(self.check_unindexed_tables(tables))
        insights.extend(self.detect_vulnerabilities(tables))
        return insights

    def is_potential_pii(self, column_name: str, pattern: str) -> bool:
        """Check if a column might contain personally identifiable information"""
        if contains_any(column_name, self.pii_patterns):
            return True
        return pattern in (EMAIL_PATTERN, PHONE_PATTERN)

    def is_potential_password_column(self, column: Column) -> bool:
        if not contains_any(column.name, PASSWORD_INDICATORS):
            return False
        return 0 < column.max_length < MIN_HASHED_PASSWORD_LENGTH

    def check_pii_columns(self, tables: List[Table]) -> List[DatabaseInsight]:
        insights = []
        for table in tables:
            for column in table.columns:
                if self.is_potential_pii(column.name, column.data_profile.pattern):
                    insights.append(DatabaseInsight(
                        category="privacy",
                        severity=Severity.HIGH,
                        title="Potential PII Data",
                        description=f"Column '{table.name}.{column.name}' may contain personally identifiable information",
                        suggestion="Consider encryption, masking, or access controls",
                        affected_objects=[f"{table.name}.{column.name}"]
                    ))
        return insights

    def check_unindexed_tables(self, tables: List[Table]) -> List[DatabaseInsight]:
        insights = []
        for table in tables:
            if table.row_count > 1000 and not table.indexes:
                insights.append(DatabaseInsight(
                    category="performance_security",
                    severity=Severity.MEDIUM,
                    title="Unindexed Large Table",
                    description=f"Table '{table.name}' has no indexes, making it vulnerable to performance attacks",
                    suggestion="Add appropriate indexes to prevent table scanning attacks",
                    affected_objects=[table.name],
                    metric_value=table.row_count
                ))
        return insights

    def detect_vulnerabilities(self, tables: List[Table]) -> List[DatabaseInsight]:
        """Sensitive tables without indexes and short password columns"""
        insights = []
        for table in tables:
            if contains_any(table.name, SENSITIVE_TABLE_NAMES) and not table.indexes:
                insights.append(DatabaseInsight(
                    category="access_control",
                    severity=Severity.HIGH,
                    title="Sensitive Table Without Proper Indexing",
                    description=f"Table '{table.name}' appears to contain sensitive data but lacks proper indexing",
                    suggestion="Implement proper indexing and access controls for sensitive data",
                    affected_objects=[table.name]
                ))

            for column in table.columns:
                if self.is_potential_password_column(column):
                    insights.append(DatabaseInsight(
                        category="encryption",
                        severity=Severity.CRITICAL,
                        title="Potential Plain Text Password Storage",
                        description=f"Column '{table.name}.{column.name}' might be storing passwords in plain text",
                        suggestion="Ensure passwords are properly hashed and salted",
                        affected_objects=[f"{table.name}.{column.name}"],
                        metric_value=column.max_length
                    ))
        return insights
