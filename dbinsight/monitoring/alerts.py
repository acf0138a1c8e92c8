"""
Threshold alerts evaluated against database reports
"""

import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..database.errors import InvalidConfiguration
from ..database.models import AlertEvaluation, DatabaseReport, MonitoringAlert, Severity
from ..utils.log import get_logger


TABLE_GROWTH = "table_growth_rate > threshold"
QUALITY_BELOW = "quality_score < threshold"
LARGE_TABLE_FEW_INDEXES = "table_size > threshold AND index_count <= 1"


def default_alerts(quality_threshold: float = 0.7, large_table_threshold: int = 10000) -> List[MonitoringAlert]:
    """The built-in alerts; quality and large-table thresholds can be tuned"""
    return [
        MonitoringAlert(
            id="large_table_growth",
            name="Large Table Growth",
            condition=TABLE_GROWTH,
            threshold=0.5,
            severity=Severity.HIGH
        ),
        MonitoringAlert(
            id="data_quality_degradation",
            name="Data Quality Degradation",
            condition=QUALITY_BELOW,
            threshold=quality_threshold,
            severity=Severity.MEDIUM
        ),
        MonitoringAlert(
            id="missing_indexes",
            name="Missing Indexes on Large Tables",
            condition=LARGE_TABLE_FEW_INDEXES,
            threshold=large_table_threshold,
            severity=Severity.HIGH
        ),
    ]


class AlertManager:
    """Evaluate alerts against reports and keep their evaluation history.

    Every evaluation is appended to the history of its alert and the
    stored alert's trigger state is taken from the latest record. Within
    one alert the first matching table or column wins. All operations are
    serialized by a single lock.
    """

    def __init__(self, alerts: Optional[List[MonitoringAlert]] = None):
        self._alerts: List[MonitoringAlert] = list(alerts) if alerts is not None else default_alerts()
        self._history: Dict[str, List[AlertEvaluation]] = {}
        self._previous_report: Optional[DatabaseReport] = None
        self._lock = threading.RLock()
        self.logger = get_logger(__name__)

        self._evaluators = {
            TABLE_GROWTH: self._check_table_growth,
            QUALITY_BELOW: self._check_data_quality,
            LARGE_TABLE_FEW_INDEXES: self._check_missing_indexes,
        }

    def check_alerts(self, report: DatabaseReport) -> List[MonitoringAlert]:
        """Evaluate every alert and return copies of those that triggered"""
        with self._lock:
            now = datetime.now()
            triggered = []

            for alert in self._alerts:
                evaluator = self._evaluators.get(alert.condition)
                if evaluator is None:
                    self.logger.warning(f"Alert {alert.id} has unsupported condition: {alert.condition}")
                    continue

                fired, message = evaluator(alert, report)
                evaluation = AlertEvaluation(
                    alert_id=alert.id,
                    triggered=fired,
                    message=message,
                    evaluated_at=now
                )
                self._history.setdefault(alert.id, []).append(evaluation)

                alert.triggered = evaluation.triggered
                alert.message = evaluation.message
                if evaluation.triggered:
                    alert.last_trigger = evaluation.evaluated_at
                    self.logger.info(f"Alert {alert.id} triggered: {evaluation.message}")
                    triggered.append(replace(alert))

            self._previous_report = report
            return triggered

    def _check_table_growth(self, alert: MonitoringAlert, report: DatabaseReport) -> Tuple[bool, str]:
        if self._previous_report is None:
            return False, ""

        previous = {table.name: table.row_count for table in self._previous_report.tables}
        for table in report.tables:
            old_count = previous.get(table.name)
            if not old_count:
                continue
            growth = (table.row_count - old_count) / old_count
            if growth > alert.threshold:
                return True, (f"Table {table.name} grew by {growth:.1%} "
                              f"({old_count} -> {table.row_count} rows)")
        return False, ""

    def _check_data_quality(self, alert: MonitoringAlert, report: DatabaseReport) -> Tuple[bool, str]:
        for table in report.tables:
            for column in table.columns:
                quality = column.data_profile.quality
                if quality < alert.threshold:
                    return True, f"Column {table.name}.{column.name} has quality score {quality:.2f}"
        return False, ""

    def _check_missing_indexes(self, alert: MonitoringAlert, report: DatabaseReport) -> Tuple[bool, str]:
        for table in report.tables:
            if table.row_count > alert.threshold and len(table.indexes) <= 1:
                return True, (f"Table {table.name} has {table.row_count} rows "
                              f"but only {len(table.indexes)} indexes")
        return False, ""

    def add_alert(self, alert: MonitoringAlert):
        with self._lock:
            if alert.condition not in self._evaluators:
                raise InvalidConfiguration(f"unsupported alert condition: {alert.condition}")
            if any(existing.id == alert.id for existing in self._alerts):
                raise InvalidConfiguration(f"alert with ID {alert.id} already exists")
            self._alerts.append(replace(alert))

    def remove_alert(self, alert_id: str):
        with self._lock:
            for i, alert in enumerate(self._alerts):
                if alert.id == alert_id:
                    del self._alerts[i]
                    return
            raise KeyError(f"alert with ID {alert_id} not found")

    def get_alerts(self) -> List[MonitoringAlert]:
        with self._lock:
            return [replace(alert) for alert in self._alerts]

    def get_history(self, alert_id: str) -> List[AlertEvaluation]:
        with self._lock:
            return list(self._history.get(alert_id, []))
