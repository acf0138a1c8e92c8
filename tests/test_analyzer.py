import json

import pytest

from dbinsight.analysis.analyzer import DatabaseAnalyzer
from dbinsight.config.settings import AnalysisSettings
from dbinsight.database.adapters import SQLiteAdapter
from dbinsight.database.document import MongoDBAdapter
from dbinsight.database.errors import MetadataUnavailable
from dbinsight.database.models import DatabaseReport, Severity
from dbinsight.utils.type_utils import EMAIL_PATTERN, PHONE_PATTERN, URL_PATTERN

from conftest import FakeCollection, FakeMongoDatabase


class NoIndexAdapter(SQLiteAdapter):
    def list_indexes(self, table):
        raise MetadataUnavailable("permission denied for pg_index")


class BrokenColumnsAdapter(SQLiteAdapter):
    def describe_columns(self, table):
        if table == 'orders':
            raise MetadataUnavailable("relation vanished")
        return super().describe_columns(table)


class NoCatalogAdapter(SQLiteAdapter):
    def list_entities(self):
        raise MetadataUnavailable("catalog unavailable")


def table_by_name(report, name):
    return next(t for t in report.tables if t.name == name)


def column_by_name(table, name):
    return next(c for c in table.columns if c.name == name)


class TestSQLiteAnalysis:
    def test_report_structure(self, shop_engine):
        report = DatabaseAnalyzer(SQLiteAdapter(shop_engine)).analyze_database()

        assert report.database_type == 'sqlite'
        assert [t.name for t in report.tables] == ['orders', 'users']
        assert report.failed_tables == {}
        assert report.summary.total_tables == 2
        assert report.summary.total_rows == 7
        assert report.summary.total_columns == 10
        assert report.summary.health_score == 1.0

    def test_column_profiles(self, shop_engine):
        report = DatabaseAnalyzer(SQLiteAdapter(shop_engine)).analyze_database()
        users = table_by_name(report, 'users')
        orders = table_by_name(report, 'orders')

        assert column_by_name(users, 'email').data_profile.pattern == EMAIL_PATTERN
        assert column_by_name(users, 'phone').data_profile.pattern == PHONE_PATTERN
        assert column_by_name(users, 'website').data_profile.pattern == URL_PATTERN
        assert column_by_name(users, 'website').null_count == 1
        assert column_by_name(users, 'id').is_primary_key

        amount = column_by_name(orders, 'amount').data_profile
        assert (amount.min, amount.max, amount.avg) == (10.0, 40.0, 25.0)

        note = column_by_name(orders, 'note')
        assert note.data_profile.quality == 0.25
        assert note.null_count == 3

    def test_relationships_and_indexes(self, shop_engine):
        report = DatabaseAnalyzer(SQLiteAdapter(shop_engine)).analyze_database()
        orders = table_by_name(report, 'orders')

        assert [(r.source_column, r.target_table, r.target_column) for r in orders.relationships] == [
            ('user_id', 'users', 'id')
        ]
        assert [i.name for i in orders.indexes] == ['idx_orders_user']

    def test_insights(self, shop_engine):
        report = DatabaseAnalyzer(SQLiteAdapter(shop_engine)).analyze_database()
        by_title = {}
        for insight in report.insights:
            by_title.setdefault(insight.title, []).append(insight)

        assert by_title["Poor Data Quality"][0].affected_objects == ["orders.note"]
        assert by_title["Potential Plain Text Password Storage"][0].severity is Severity.CRITICAL
        pii = {obj for i in by_title["Potential PII Data"] for obj in i.affected_objects}
        assert {"users.email", "users.name", "users.phone"} <= pii
        assert "Priority: Ensure passwords are properly hashed and salted" in report.recommendations

    def test_metadata_failures_degrade(self, shop_engine):
        report = DatabaseAnalyzer(NoIndexAdapter(shop_engine)).analyze_database()

        assert report.failed_tables == {}
        assert all(t.indexes == [] for t in report.tables)
        assert table_by_name(report, 'users').row_count == 3

    def test_column_failure_skips_the_table(self, shop_engine):
        report = DatabaseAnalyzer(BrokenColumnsAdapter(shop_engine)).analyze_database()

        assert [t.name for t in report.tables] == ['users']
        assert report.failed_tables == {'orders': 'relation vanished'}

    def test_enumeration_failure_propagates(self, shop_engine):
        with pytest.raises(MetadataUnavailable):
            DatabaseAnalyzer(NoCatalogAdapter(shop_engine)).analyze_database()

    def test_worker_count_does_not_change_the_result(self, shop_engine):
        serial = DatabaseAnalyzer(SQLiteAdapter(shop_engine), max_workers=1).analyze_database()
        parallel = DatabaseAnalyzer(SQLiteAdapter(shop_engine), max_workers=8).analyze_database()

        assert serial.tables == parallel.tables
        assert serial.insights == parallel.insights

    def test_settings_are_applied(self, shop_engine):
        settings = AnalysisSettings(large_table_threshold=3, quality_score_minimum=0.1)
        report = DatabaseAnalyzer(SQLiteAdapter(shop_engine), settings).analyze_database()
        titles = [i.title for i in report.insights]

        assert titles.count("Large Table Detected") == 1
        assert "Poor Data Quality" not in titles

    def test_report_json_round_trip(self, shop_engine):
        report = DatabaseAnalyzer(SQLiteAdapter(shop_engine)).analyze_database()
        restored = DatabaseReport.from_dict(json.loads(json.dumps(report.to_dict())))

        assert restored == report


class TestMongoAnalysis:
    def test_collections_are_analyzed(self, mongo_db):
        report = DatabaseAnalyzer(MongoDBAdapter(mongo_db)).analyze_database()

        assert report.database_type == 'mongodb'
        assert report.database_name == 'appdb'
        assert [t.name for t in report.tables] == ['events', 'users']
        assert report.summary.total_size == "1024 bytes"

    def test_fields_become_columns(self, mongo_db):
        report = DatabaseAnalyzer(MongoDBAdapter(mongo_db)).analyze_database()
        users = table_by_name(report, 'users')

        assert [c.name for c in users.columns][:4] == ['_id', 'name', 'address', 'address.city']
        assert column_by_name(users, 'age').data_type == 'mixed'
        assert column_by_name(users, 'name').frequency == pytest.approx(2 / 3)
        assert users.relationships == []

    def test_document_store_recommendation(self, mongo_db):
        report = DatabaseAnalyzer(MongoDBAdapter(mongo_db)).analyze_database()
        titles = [i.title for i in report.insights]

        assert "Many Isolated Tables" not in titles
        assert "Potential PII Data" in titles

    def test_reanalysis_sees_collection_changes(self):
        db = FakeMongoDatabase(collections={'c': FakeCollection([{'_id': 0, 'a': 1}])})
        analyzer = DatabaseAnalyzer(MongoDBAdapter(db))

        first = table_by_name(analyzer.analyze_database(), 'c')
        assert first.row_count == 1

        db.collections['c'].documents = [{'_id': i, 'a': i, 'b': str(i)} for i in range(50)]
        second = table_by_name(analyzer.analyze_database(), 'c')

        assert second.row_count == 50
        assert 'b' in [col.name for col in second.columns]

    def test_unreadable_collection_is_kept_without_columns(self):
        db = FakeMongoDatabase(collections={'c': FakeCollection([{'_id': 0}], fail_find=True)})
        report = DatabaseAnalyzer(MongoDBAdapter(db)).analyze_database()

        assert report.failed_tables == {}
        assert [t.name for t in report.tables] == ['c']
        assert table_by_name(report, 'c').row_count == 1
        assert table_by_name(report, 'c').columns == []
