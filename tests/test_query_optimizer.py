import pytest

from dbinsight.utils.query_optimizer import QueryOptimizer

from conftest import make_report, make_table


@pytest.fixture
def optimizer():
    return QueryOptimizer()


@pytest.mark.parametrize("sql,confidence,explanation", [
    ("SELECT * FROM users", 0.8, "Query lacks WHERE clause which may result in full table scan"),
    ("SELECT * FROM users WHERE id = 1", 0.9,
     "SELECT * returns all columns, consider specifying only needed columns"),
    ("SELECT id FROM users WHERE id > 1", 0.7, "Query lacks LIMIT clause which may return excessive data"),
    ("UPDATE users JOIN orders SET users.flag = 1 WHERE orders.total > 5", 0.95,
     "JOIN without proper ON conditions may result in cartesian product"),
    ("SELECT id FROM users WHERE id = 1 LIMIT 5", 0.5, "Query appears to be well-structured"),
    ("DELETE FROM users WHERE id = 1", 0.5, "Query appears to be well-structured"),
])
def test_first_matching_rule_wins(optimizer, sql, confidence, explanation):
    suggestion = optimizer.analyze_query(sql)

    assert suggestion.confidence == confidence
    assert suggestion.explanation == explanation
    assert suggestion.original_query == sql


def test_select_star_rewrite(optimizer):
    suggestion = optimizer.analyze_query("select * from users where id = 1")
    assert suggestion.optimized_query == "SELECT specific_columns from users where id = 1"


def test_keywords_match_whole_words(optimizer):
    # "somewhere" and "limited" must not count as WHERE and LIMIT
    suggestion = optimizer.analyze_query("SELECT somewhere, limited FROM places")
    assert suggestion.confidence == 0.8


def test_affected_tables(optimizer):
    suggestion = optimizer.analyze_query(
        "SELECT u.id FROM public.users u JOIN orders o ON o.user_id = u.id WHERE u.id = 1 LIMIT 1"
    )
    assert suggestion.affected_tables == ["users", "orders"]


@pytest.mark.parametrize("sql", ["", "   ", "EXPLAIN SELECT 1", "hello world"])
def test_invalid_queries(optimizer, sql):
    with pytest.raises(ValueError):
        optimizer.analyze_query(sql)


def test_query_performance_against_report(optimizer):
    report = make_report([make_table("users", 50000, 0), make_table("orders", 200, 2)])
    analysis = optimizer.analyze_query_performance(
        "SELECT * FROM users JOIN orders ON orders.user_id = users.id ORDER BY users.id", report
    )

    assert analysis["estimated_cost"] == "high"
    assert analysis["potential_issues"] == ["Table users has 50000 rows and no indexes"]
    assert analysis["recommendations"] == [
        "Consider selecting only needed columns instead of SELECT *",
        "Consider adding LIMIT clause when using ORDER BY",
        "Consider joining from smallest table (orders) first",
    ]


def test_query_performance_unknown_tables(optimizer):
    analysis = optimizer.analyze_query_performance("SELECT id FROM ghosts", make_report([]))
    assert analysis == {'estimated_cost': 'unknown', 'recommendations': [], 'potential_issues': []}
