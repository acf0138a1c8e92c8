"""
Structural and volumetric diff between two database reports
"""

from typing import Any, List

from ..database.models import ChangeSummary, ComparisonReport, DatabaseChange, DatabaseReport


def calculate_impact(change_type: str, old_value: Any, new_value: Any) -> str:
    """Impact of a change in table count; other change types are medium"""
    if change_type != "table_count":
        return "medium"
    if not isinstance(old_value, int) or not isinstance(new_value, int) or old_value == 0:
        return "medium"

    change = abs(new_value - old_value) / old_value
    if change > 0.5:
        return "high"
    elif change > 0.2:
        return "medium"
    return "low"


def calculate_row_count_impact(old_count: int, new_count: int) -> str:
    if old_count == 0:
        return "high"

    change = abs(new_count - old_count) / old_count
    if change > 1.0:
        return "high"
    elif change > 0.3:
        return "medium"
    return "low"


class ComparisonEngine:
    """Compare two reports of the same database taken at different times"""

    def compare_reports(self, old_report: DatabaseReport, new_report: DatabaseReport) -> ComparisonReport:
        """Detect table count, row count, added and removed table changes.

        Changes are ordered: table count first, then changes for tables of
        the new report in its order, then removed tables in the old
        report's order.
        """
        changes: List[DatabaseChange] = []

        old_total = old_report.summary.total_tables
        new_total = new_report.summary.total_tables
        if old_total != new_total:
            changes.append(DatabaseChange(
                change_type="schema",
                category="table_count",
                description=f"Table count changed from {old_total} to {new_total}",
                impact=calculate_impact("table_count", old_total, new_total),
                old_value=old_total,
                new_value=new_total
            ))

        old_tables = {table.name: table for table in old_report.tables}

        for new_table in new_report.tables:
            old_table = old_tables.get(new_table.name)
            if old_table is None:
                changes.append(DatabaseChange(
                    change_type="schema",
                    category="new_table",
                    description=f"New table '{new_table.name}' added with {new_table.row_count} rows",
                    impact="medium",
                    affected_table=new_table.name,
                    new_value=new_table.row_count
                ))
            elif old_table.row_count != new_table.row_count:
                changes.append(DatabaseChange(
                    change_type="data",
                    category="row_count",
                    description=f"Table '{new_table.name}' row count changed from "
                                f"{old_table.row_count} to {new_table.row_count}",
                    impact=calculate_row_count_impact(old_table.row_count, new_table.row_count),
                    affected_table=new_table.name,
                    old_value=old_table.row_count,
                    new_value=new_table.row_count
                ))

        new_names = {table.name for table in new_report.tables}
        for old_table in old_report.tables:
            if old_table.name not in new_names:
                changes.append(DatabaseChange(
                    change_type="schema",
                    category="removed_table",
                    description=f"Table '{old_table.name}' was removed (had {old_table.row_count} rows)",
                    impact="high",
                    affected_table=old_table.name,
                    old_value=old_table.row_count
                ))

        return ComparisonReport(
            old_analysis_time=old_report.analysis_time,
            new_analysis_time=new_report.analysis_time,
            changes=changes,
            summary=self.generate_change_summary(changes)
        )

    def generate_change_summary(self, changes: List[DatabaseChange]) -> ChangeSummary:
        summary = ChangeSummary(total_changes=len(changes))

        for change in changes:
            if change.change_type == "schema":
                summary.schema_changes += 1
            elif change.change_type == "data":
                summary.data_changes += 1

            if change.impact == "high":
                summary.high_impact += 1
            elif change.impact == "medium":
                summary.medium_impact += 1
            elif change.impact == "low":
                summary.low_impact += 1

        return summary
