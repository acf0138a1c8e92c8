import pytest

from dbinsight.database.errors import InvalidConfiguration
from dbinsight.database.models import MonitoringAlert, Severity
from dbinsight.monitoring.alerts import (
    LARGE_TABLE_FEW_INDEXES, QUALITY_BELOW, TABLE_GROWTH, AlertManager, default_alerts
)

from conftest import make_column, make_report, make_table


def ids(alerts):
    return [a.id for a in alerts]


class TestAlertManager:
    def test_default_alerts(self):
        alerts = AlertManager().get_alerts()
        assert ids(alerts) == ["large_table_growth", "data_quality_degradation", "missing_indexes"]
        assert all(not a.triggered for a in alerts)

    def test_missing_indexes_alert(self):
        manager = AlertManager()
        report = make_report([make_table("small", 10, 0), make_table("events", 20000, 1)])

        triggered = manager.check_alerts(report)

        assert ids(triggered) == ["missing_indexes"]
        assert triggered[0].severity is Severity.HIGH
        assert "events" in triggered[0].message
        assert triggered[0].last_trigger is not None

    def test_quality_alert_reports_first_matching_column(self):
        manager = AlertManager()
        table = make_table("t", 10, 2, columns=[make_column("ok"), make_column("bad", quality=0.5),
                                                make_column("worse", quality=0.1)])

        triggered = manager.check_alerts(make_report([table]))

        assert ids(triggered) == ["data_quality_degradation"]
        assert triggered[0].message == "Column t.bad has quality score 0.50"

    def test_tuned_default_alerts(self):
        tuned = default_alerts(quality_threshold=0.3, large_table_threshold=50000)
        table = make_table("events", 20000, 1, columns=[make_column("bad", quality=0.5)])
        assert AlertManager(tuned).check_alerts(make_report([table])) == []

        table = make_table("events", 60000, 1, columns=[make_column("worse", quality=0.2)])
        assert ids(AlertManager(tuned).check_alerts(make_report([table]))) == ["data_quality_degradation", "missing_indexes"]

    def test_growth_needs_a_previous_report(self):
        manager = AlertManager()
        assert manager.check_alerts(make_report([make_table("a", 100, 2)])) == []

        triggered = manager.check_alerts(make_report([make_table("a", 151, 2)]))
        assert ids(triggered) == ["large_table_growth"]
        assert "100 -> 151" in triggered[0].message

        assert manager.check_alerts(make_report([make_table("a", 160, 2)])) == []

    def test_growth_ignores_new_and_empty_tables(self):
        manager = AlertManager()
        manager.check_alerts(make_report([make_table("a", 0, 2)]))
        assert manager.check_alerts(make_report([make_table("a", 500, 2), make_table("b", 900, 2)])) == []

    def test_trigger_state_follows_latest_evaluation(self):
        manager = AlertManager()
        manager.check_alerts(make_report([make_table("events", 20000, 0)]))
        first_trigger = manager.get_alerts()[2].last_trigger

        manager.check_alerts(make_report([make_table("events", 20000, 3)]))
        alert = manager.get_alerts()[2]

        assert alert.triggered is False
        assert alert.message == ""
        assert alert.last_trigger == first_trigger
        assert [e.triggered for e in manager.get_history("missing_indexes")] == [True, False]

    def test_returned_alerts_are_copies(self):
        manager = AlertManager()
        triggered = manager.check_alerts(make_report([make_table("events", 20000, 0)]))
        triggered[0].threshold = 1

        assert manager.get_alerts()[2].threshold == 10000

        snapshot = manager.get_alerts()
        snapshot[0].name = "changed"
        assert manager.get_alerts()[0].name == "Large Table Growth"

    def test_add_and_remove_alerts(self):
        manager = AlertManager(alerts=[])
        manager.add_alert(MonitoringAlert(id="tiny", name="Tiny", condition=LARGE_TABLE_FEW_INDEXES, threshold=5))

        assert ids(manager.check_alerts(make_report([make_table("t", 6, 0)]))) == ["tiny"]

        manager.remove_alert("tiny")
        assert manager.get_alerts() == []

    def test_add_alert_rejects_duplicates_and_unknown_conditions(self):
        manager = AlertManager()

        with pytest.raises(InvalidConfiguration):
            manager.add_alert(MonitoringAlert(id="missing_indexes", name="x", condition=QUALITY_BELOW, threshold=1))
        with pytest.raises(InvalidConfiguration):
            manager.add_alert(MonitoringAlert(id="new", name="x", condition="cpu > threshold", threshold=1))

    def test_remove_unknown_alert(self):
        with pytest.raises(KeyError):
            AlertManager().remove_alert("nope")

    def test_unknown_condition_is_skipped(self):
        alert = MonitoringAlert(id="odd", name="Odd", condition="cpu > threshold", threshold=1)
        manager = AlertManager(alerts=[alert, MonitoringAlert(id="g", name="G", condition=TABLE_GROWTH, threshold=0)])

        assert manager.check_alerts(make_report([make_table("a", 1)])) == []
        assert manager.get_history("odd") == []
        assert len(manager.get_history("g")) == 1
