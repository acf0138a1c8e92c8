import pytest

from dbinsight.database.models import Relationship
from dbinsight.utils.schema_analyzer import SchemaAnalyzer

from conftest import make_column, make_table


def fk(column, target):
    return Relationship(source_column=column, target_table=target, target_column="id")


@pytest.fixture
def shop_tables():
    return [
        make_table("users"),
        make_table("orders", relationships=[fk("user_id", "users")]),
        make_table("order_items", relationships=[fk("order_id", "orders"), fk("product_id", "products")]),
        make_table("products"),
        make_table("audit"),
        make_table("employees", relationships=[fk("manager_id", "employees")]),
    ]


def test_insertion_and_deletion_order(shop_tables):
    result = SchemaAnalyzer().analyze_schema(shop_tables)

    assert result['insertion_order'] == ['audit', 'employees', 'products', 'users', 'orders', 'order_items']
    assert result['deletion_order'] == list(reversed(result['insertion_order']))


def test_insertion_order_is_valid(shop_tables):
    analyzer = SchemaAnalyzer()
    order = analyzer.analyze_schema(shop_tables)['insertion_order']

    assert analyzer.validate_insert_order(order, shop_tables) == (True, [])

    valid, errors = analyzer.validate_insert_order(['orders', 'users'], shop_tables)
    assert not valid
    assert errors == ["Table 'orders' requires tables ['users'] to be inserted first"]


def test_cycles_fall_back_to_dependency_count():
    tables = [make_table("b", relationships=[fk("a_id", "a")]),
              make_table("a", relationships=[fk("b_id", "b")]),
              make_table("c")]
    result = SchemaAnalyzer().analyze_schema(tables)

    assert result['circular_references'] == [['a', 'b']]
    assert result['insertion_order'] == ['c', 'a', 'b']


def test_isolated_tables_and_self_references(shop_tables):
    result = SchemaAnalyzer().analyze_schema(shop_tables)

    assert result['isolated_tables'] == ['audit']
    assert result['circular_references'] == [['employees']]


def test_dependencies(shop_tables):
    dependencies = SchemaAnalyzer().table_dependencies(shop_tables)

    assert dependencies['order_items'] == ['orders', 'products']
    assert dependencies['users'] == []


def test_lineage(shop_tables):
    lineage = SchemaAnalyzer().track_lineage(shop_tables)

    assert [d.table_name for d in lineage['orders'].upstream] == ['users']
    assert [d.table_name for d in lineage['orders'].downstream] == ['order_items']
    assert [(d.table_name, d.column_name) for d in lineage['users'].downstream] == [('orders', 'user_id')]
    assert lineage['audit'].upstream == [] and lineage['audit'].downstream == []


def test_lineage_for_unknown_table(shop_tables):
    with pytest.raises(KeyError):
        SchemaAnalyzer().get_lineage_for_table('ghosts', shop_tables)


def test_implicit_relationships():
    tables = [
        make_table("customers"),
        make_table("invoices", columns=[make_column("customer_id", "integer"),
                                        make_column("invoice_id", "integer"),
                                        make_column("region_id", "integer")]),
        make_table("payments", columns=[make_column("customer_id", "integer")],
                   relationships=[fk("customer_id", "customers")]),
    ]

    implicit = SchemaAnalyzer().detect_implicit_relationships(tables)

    assert implicit == [{
        'from_table': 'invoices',
        'from_column': 'customer_id',
        'to_table': 'customers',
        'to_column': 'id',
        'type': 'implicit_foreign_key',
        'confidence': 0.8
    }]
