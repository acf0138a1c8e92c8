"""
Textual query suggestions
"""

import re
from typing import Dict, Any, List

from ..database.models import DatabaseReport, OptimizationSuggestion


VALID_STARTS = ('select', 'insert', 'update', 'delete', 'create', 'alter', 'drop')

_SELECT_STAR = re.compile(r'select\s+\*', re.IGNORECASE)
_TABLE_REF = re.compile(r'\b(?:from|join)\s+([\w."`]+)', re.IGNORECASE)


def _has_word(sql: str, word: str) -> bool:
    return re.search(rf'\b{word}\b', sql, re.IGNORECASE) is not None


class QueryOptimizer:
    """Suggest query improvements. Queries are never executed or rewritten in place."""

    def validate_query(self, sql: str):
        """Raise ValueError unless the query starts with a known SQL keyword"""
        sql = (sql or '').strip()
        if not sql:
            raise ValueError("Query cannot be empty")
        if not sql.lower().startswith(VALID_STARTS):
            raise ValueError("Query must start with a valid SQL keyword")

    def analyze_query(self, sql: str) -> OptimizationSuggestion:
        """Return the first applicable suggestion for a query"""
        self.validate_query(sql)
        query = sql.strip()
        is_select = query.lower().startswith('select')
        tables = self._extract_table_names(query)

        def suggestion(optimized, explanation, gain, confidence):
            return OptimizationSuggestion(
                original_query=sql,
                optimized_query=optimized,
                explanation=explanation,
                expected_gain=gain,
                confidence=confidence,
                affected_tables=tables
            )

        if is_select and not _has_word(query, 'where'):
            return suggestion(
                query + "\n-- Add WHERE clause to limit results",
                "Query lacks WHERE clause which may result in full table scan",
                "50-90% performance improvement",
                0.8
            )

        if _SELECT_STAR.search(query):
            return suggestion(
                _SELECT_STAR.sub("SELECT specific_columns", query, count=1),
                "SELECT * returns all columns, consider specifying only needed columns",
                "10-30% performance improvement",
                0.9
            )

        if is_select and not _has_word(query, 'limit'):
            return suggestion(
                query + "\nLIMIT 100 -- Add appropriate limit",
                "Query lacks LIMIT clause which may return excessive data",
                "20-70% performance improvement",
                0.7
            )

        if _has_word(query, 'join') and not _has_word(query, 'on'):
            return suggestion(
                query + "\n-- Ensure proper JOIN conditions are specified",
                "JOIN without proper ON conditions may result in cartesian product",
                "80-95% performance improvement",
                0.95
            )

        return suggestion(query, "Query appears to be well-structured", "No optimization needed", 0.5)

    def analyze_query_performance(self, sql: str, report: DatabaseReport) -> Dict[str, Any]:
        """Analyze query performance characteristics against a report"""
        analysis = {
            'estimated_cost': 'unknown',
            'recommendations': [],
            'potential_issues': []
        }

        if _SELECT_STAR.search(sql):
            analysis['recommendations'].append("Consider selecting only needed columns instead of SELECT *")

        if _has_word(sql, 'order by') and not _has_word(sql, 'limit'):
            analysis['recommendations'].append("Consider adding LIMIT clause when using ORDER BY")

        row_counts = {table.name.lower(): table for table in report.tables}
        referenced = [row_counts[name.lower()] for name in self._extract_table_names(sql)
                      if name.lower() in row_counts]

        for table in referenced:
            if table.row_count > 10000 and not table.indexes:
                analysis['potential_issues'].append(
                    f"Table {table.name} has {table.row_count} rows and no indexes")

        if _has_word(sql, 'join') and len(referenced) > 1:
            smallest = min(referenced, key=lambda t: t.row_count)
            analysis['recommendations'].append(f"Consider joining from smallest table ({smallest.name}) first")

        if referenced:
            analysis['estimated_cost'] = 'high' if analysis['potential_issues'] else 'low'

        return analysis

    def _extract_table_names(self, sql: str) -> List[str]:
        """Table names following FROM and JOIN"""
        tables = []
        for match in _TABLE_REF.findall(sql):
            name = match.strip('"`').split('.')[-1].strip('"`')
            if name and name not in tables:
                tables.append(name)
        return tables
