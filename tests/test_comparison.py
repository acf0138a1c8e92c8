from datetime import datetime

import pytest

from dbinsight.monitoring.comparison import (
    ComparisonEngine, calculate_impact, calculate_row_count_impact
)

from conftest import make_report, make_table


def test_added_removed_and_resized_tables():
    old = make_report([make_table("a", 10), make_table("b", 5)], datetime(2024, 1, 1))
    new = make_report([make_table("a", 15), make_table("c", 1)], datetime(2024, 1, 2))

    comparison = ComparisonEngine().compare_reports(old, new)

    assert [c.category for c in comparison.changes] == ["row_count", "new_table", "removed_table"]
    assert [c.impact for c in comparison.changes] == ["medium", "medium", "high"]
    assert [c.affected_table for c in comparison.changes] == ["a", "c", "b"]
    assert comparison.summary.total_changes == 3
    assert comparison.summary.schema_changes == 2
    assert comparison.summary.data_changes == 1
    assert comparison.summary.high_impact == 1
    assert comparison.summary.medium_impact == 2
    assert comparison.old_analysis_time == datetime(2024, 1, 1)
    assert comparison.new_analysis_time == datetime(2024, 1, 2)


def test_table_count_change_comes_first():
    old = make_report([make_table("a", 10)])
    new = make_report([make_table("a", 10), make_table("b", 1), make_table("c", 1)])

    changes = ComparisonEngine().compare_reports(old, new).changes

    assert changes[0].category == "table_count"
    assert (changes[0].old_value, changes[0].new_value) == (1, 3)
    assert changes[0].impact == "high"
    assert [c.affected_table for c in changes[1:]] == ["b", "c"]


def test_identical_reports_have_no_changes():
    report = make_report([make_table("a", 10), make_table("b", 5)])
    comparison = ComparisonEngine().compare_reports(report, report)

    assert comparison.changes == []
    assert comparison.summary.total_changes == 0


def test_added_tables_mirror_removed_tables():
    small = make_report([make_table("a", 10)])
    large = make_report([make_table("a", 10), make_table("b", 7)])
    engine = ComparisonEngine()

    forward = [c for c in engine.compare_reports(small, large).changes if c.category != "table_count"]
    backward = [c for c in engine.compare_reports(large, small).changes if c.category != "table_count"]

    assert [(c.category, c.affected_table) for c in forward] == [("new_table", "b")]
    assert [(c.category, c.affected_table) for c in backward] == [("removed_table", "b")]


@pytest.mark.parametrize("old,new,impact", [
    (10, 16, "high"),
    (10, 13, "medium"),
    (10, 12, "low"),
    (0, 4, "medium"),
])
def test_table_count_impact(old, new, impact):
    assert calculate_impact("table_count", old, new) == impact


def test_other_change_types_are_medium():
    assert calculate_impact("index_count", 1, 100) == "medium"


@pytest.mark.parametrize("old,new,impact", [
    (0, 5, "high"),
    (100, 201, "high"),
    (100, 131, "medium"),
    (100, 130, "low"),
    (100, 69, "medium"),
])
def test_row_count_impact(old, new, impact):
    assert calculate_row_count_impact(old, new) == impact
