"""
Tests unitarios para evaluadores de alertas.

Verifica que cada evaluador genera alertas correctamente
basado en los umbrales configurados.
"""
from datetime import datetime, timezone

import pytest

from datasync.application.services.alert_evaluators import (
    DurationAnomalyAlert,
    ErrorRateAlert,
    FailureThresholdAlert,
    RecordCountAnomalyAlert,
    register_default_alerts,
)
from datasync.domain.entities.alerts import AlertContext, AlertRegistry, AlertSeverity
from datasync.domain.entities.sync import SyncExecutionResult


NOW = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


class FakeExecutions:
    """Historial de ejecuciones en memoria para las reglas estadisticas."""

    def __init__(self, failures: int = 0, fetched_counts=None):
        self.failures = failures
        self.fetched_counts = list(fetched_counts or [])
        self.calls = []

    def count_failures_since(self, schedule_id, since):
        self.calls.append(("failures", schedule_id, since))
        return self.failures

    def list_fetched_counts_since(self, schedule_id, since, exclude_execution_id=None):
        self.calls.append(("counts", schedule_id, since, exclude_execution_id))
        return self.fetched_counts


def _context(executions) -> AlertContext:
    return AlertContext(schedule_id="s-1", execution_id="e-9", now=NOW, executions=executions)


# =============================================================================
# FAILURE THRESHOLD
# =============================================================================

class TestFailureThresholdAlert:

    def test_no_alert_below_threshold(self):
        alert = FailureThresholdAlert(threshold=3).evaluate(SyncExecutionResult(success=False), _context(FakeExecutions(failures=2)))
        assert alert is None

    def test_error_at_threshold(self):
        executions = FakeExecutions(failures=3)
        alert = FailureThresholdAlert(alert_id="a-1").evaluate(SyncExecutionResult(success=False), _context(executions))

        assert alert is not None
        assert alert.alert_id == "a-1"
        assert alert.severity == AlertSeverity.ERROR
        assert alert.message == "Sync has failed 3 times in the last 24 hours"
        assert executions.calls[0][2] == datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_critical_at_critical_threshold(self):
        alert = FailureThresholdAlert().evaluate(SyncExecutionResult(success=False), _context(FakeExecutions(failures=5)))
        assert alert.severity == AlertSeverity.CRITICAL

    def test_from_config_reads_custom_window(self):
        rule = FailureThresholdAlert.from_config("a-2", {"threshold": 1, "time_window_hours": 6})
        alert = rule.evaluate(SyncExecutionResult(success=False), _context(FakeExecutions(failures=1)))
        assert alert.message == "Sync has failed 1 times in the last 6 hours"


# =============================================================================
# RECORD COUNT ANOMALY
# =============================================================================

class TestRecordCountAnomalyAlert:

    def test_needs_two_samples(self):
        rule = RecordCountAnomalyAlert()
        assert rule.evaluate(SyncExecutionResult(records_fetched=500), _context(FakeExecutions(fetched_counts=[10]))) is None

    def test_no_alert_with_zero_stddev(self):
        rule = RecordCountAnomalyAlert()
        assert rule.evaluate(SyncExecutionResult(records_fetched=500), _context(FakeExecutions(fetched_counts=[10, 10, 10]))) is None

    def test_alerts_on_large_deviation(self):
        executions = FakeExecutions(fetched_counts=[10, 12, 11, 9])
        alert = RecordCountAnomalyAlert().evaluate(SyncExecutionResult(records_fetched=30), _context(executions))

        assert alert is not None
        assert alert.severity == AlertSeverity.CRITICAL
        assert alert.message.startswith("Record count anomaly: 30 fetched (average: 10")
        assert alert.metadata["samples"] == 4
        # La corrida actual no cuenta en la estadistica
        assert executions.calls[0][3] == "e-9"

    def test_no_alert_within_deviation(self):
        alert = RecordCountAnomalyAlert().evaluate(
            SyncExecutionResult(records_fetched=11), _context(FakeExecutions(fetched_counts=[10, 12, 11, 9]))
        )
        assert alert is None


# =============================================================================
# DURATION / ERROR RATE
# =============================================================================

class TestDurationAnomalyAlert:

    def test_warning_above_max(self):
        alert = DurationAnomalyAlert(max_duration_ms=1000).evaluate(SyncExecutionResult(duration_ms=1500), _context(FakeExecutions()))
        assert alert.severity == AlertSeverity.WARNING

    def test_error_above_double(self):
        alert = DurationAnomalyAlert(max_duration_ms=1000).evaluate(SyncExecutionResult(duration_ms=3000), _context(FakeExecutions()))
        assert alert.severity == AlertSeverity.ERROR
        assert alert.message == "Sync duration anomaly: 3s (threshold: 1s)"

    def test_no_alert_under_max(self):
        assert DurationAnomalyAlert().evaluate(SyncExecutionResult(duration_ms=1000), _context(FakeExecutions())) is None


class TestErrorRateAlert:

    def test_alert_message(self):
        result = SyncExecutionResult(records_processed=10, records_failed=3)
        alert = ErrorRateAlert().evaluate(result, _context(FakeExecutions()))

        assert alert.severity == AlertSeverity.ERROR
        assert alert.message == "High error rate: 30.0% (3/10 records failed)"

    def test_zero_processed_uses_one_as_denominator(self):
        alert = ErrorRateAlert(max_error_rate=0.5).evaluate(SyncExecutionResult(records_failed=1), _context(FakeExecutions()))
        assert alert.value == pytest.approx(1.0)

    def test_no_alert_under_rate(self):
        result = SyncExecutionResult(records_processed=100, records_failed=5)
        assert ErrorRateAlert().evaluate(result, _context(FakeExecutions())) is None


# =============================================================================
# REGISTRO
# =============================================================================

def test_register_default_alerts_is_idempotent():
    register_default_alerts()
    register_default_alerts()

    assert sorted(AlertRegistry.get_registered_types()) == [
        "duration_anomaly",
        "error_rate",
        "failure_threshold",
        "record_count_anomaly",
    ]
    rule = AlertRegistry.build("a-1", "error_rate", {"max_error_rate": 0.25})
    assert isinstance(rule, ErrorRateAlert)
    assert rule.max_error_rate == 0.25
    assert AlertRegistry.build("a-2", "unknown", {}) is None
