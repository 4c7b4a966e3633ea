import pytest

from backend.app import logging_config
from backend.app.logging_config import (
    get_metrics_snapshot,
    inc_metric,
    measure,
    record_fallback,
    reset_metrics,
)


@pytest.fixture(autouse=True)
def fresh_metrics():
    reset_metrics()
    yield
    reset_metrics()


def test_record_fallback_counts_per_stage(caplog):
    with caplog.at_level("WARNING", logger="vibe-agent"):
        record_fallback("vision", "offline")
        record_fallback("vision", "offline")
    assert get_metrics_snapshot()["fallback_vision"] == 2
    assert "vision: using fallback (offline)" in caplog.text


def test_measure_records_duration():
    with measure("vibe"):
        pass
    snapshot = get_metrics_snapshot()
    assert snapshot["time_ms_last_vibe"] >= 0
    assert "failures_vibe" not in snapshot


def test_measure_counts_failures_and_reraises():
    with pytest.raises(ValueError):
        with measure("recommendations"):
            raise ValueError("boom")
    assert get_metrics_snapshot()["failures_recommendations"] == 1


def test_snapshot_is_a_copy():
    inc_metric("requests_image")
    snapshot = get_metrics_snapshot()
    snapshot["requests_image"] = 99
    assert logging_config.get_metrics_snapshot()["requests_image"] == 1
