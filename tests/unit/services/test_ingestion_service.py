"""
Unit tests for IngestionService.

Tests:
- Single-reading validation and defaults
- Health updates driven by ingestion (cadence, quality, calibration expiry)
- Bounded history eviction
- Batch ingestion with per-item isolation and ordering
- Concurrent ingestion into one sensor
"""

import threading
from datetime import timedelta

import pytest

from sensorhub.domain.exceptions import InternalError, NotFoundError, ValidationError
from sensorhub.domain.sensors.sensor_entity import MAX_SENSOR_ALERTS
from sensorhub.services.application.ingestion_service import IngestionService

# ==================== Single reading ====================


def test_ingest_applies_defaults(seed, ingestion_service, clock):
    sensor_id = seed.create_sensor()
    point = ingestion_service.ingest_one(sensor_id, 21)
    assert point.value == 21.0
    assert point.unit == "units"
    assert point.timestamp == clock.now
    assert point.quality.accuracy == 95.0
    assert point.quality.confidence == 90.0
    assert dict(point.metadata) == {}


def test_partial_quality_keeps_other_defaults(seed, ingestion_service):
    sensor_id = seed.create_sensor()
    point = ingestion_service.ingest_one(sensor_id, 1.0, quality={"accuracy": 70})
    assert point.quality.accuracy == 70
    assert point.quality.completeness == 100.0
    assert point.quality.validity is True


@pytest.mark.parametrize("value", [None, "12.5", True, float("nan"), float("inf"), 10**400])
def test_invalid_values_rejected(seed, ingestion_service, sensor_store, value):
    sensor_id = seed.create_sensor()
    with pytest.raises(ValidationError):
        ingestion_service.ingest_one(sensor_id, value)
    assert len(sensor_store.get(sensor_id).history) == 0


def test_missing_sensor_id_is_validation_error(ingestion_service):
    with pytest.raises(ValidationError):
        ingestion_service.ingest_one(None, 1.0)


def test_unknown_sensor_is_not_found(ingestion_service):
    with pytest.raises(NotFoundError) as exc:
        ingestion_service.ingest_one("sensor_missing", 1.0)
    assert exc.value.detail == {"sensorId": "sensor_missing"}


def test_malformed_timestamp_rejected(seed, ingestion_service):
    sensor_id = seed.create_sensor()
    with pytest.raises(ValidationError):
        ingestion_service.ingest_one(sensor_id, 1.0, timestamp="yesterday")


def test_payload_accepts_camel_and_snake_case(seed, ingestion_service):
    sensor_id = seed.create_sensor()
    sid, point = ingestion_service.ingest_payload(
        {"sensorId": sensor_id, "value": 3.5, "unit": "C", "quality": {"accuracy": 99}, "metadata": {"fw": "1"}}
    )
    assert sid == sensor_id
    assert point.unit == "C"
    assert point.quality.accuracy == 99
    _, snake = ingestion_service.ingest_payload({"sensor_id": sensor_id, "value": 4})
    assert snake.value == 4.0


def test_payload_rejects_non_numeric_value(seed, ingestion_service):
    sensor_id = seed.create_sensor()
    with pytest.raises(ValidationError) as exc:
        ingestion_service.ingest_payload({"sensorId": sensor_id, "value": "hot"})
    assert exc.value.detail["errors"][0]["loc"] == "value"


def test_ingest_advances_device_last_seen(seed, ingestion_service, device_store, sensor_store, clock):
    sensor_id = seed.create_sensor()
    device_id = sensor_store.get(sensor_id).device_id
    clock.advance(minutes=5)
    ingestion_service.ingest_one(sensor_id, 1.0)
    assert device_store.get(device_id).last_seen == clock.now
    # an older reading never moves lastSeen backwards
    ingestion_service.ingest_one(sensor_id, 1.0, timestamp=clock.now - timedelta(minutes=1))
    assert device_store.get(device_id).last_seen == clock.now


def test_health_failure_leaves_sensor_unchanged(seed, ingestion_service, sensor_store, monkeypatch):
    sensor_id = seed.create_sensor()

    def broken(*_args, **_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("sensorhub.services.application.ingestion_service.update_health", broken)
    with pytest.raises(InternalError):
        ingestion_service.ingest_one(sensor_id, 1.0)
    sensor = sensor_store.get(sensor_id)
    assert len(sensor.history) == 0
    assert sensor.health.last_reading is None


# ==================== Health through ingestion ====================


def test_fresh_reading_keeps_sensor_healthy(seed, ingestion_service, sensor_store):
    sensor_id = seed.create_sensor(specifications={"samplingRateHz": 1})
    ingestion_service.ingest_one(sensor_id, 23.5, quality={"accuracy": 95})
    health = sensor_store.get(sensor_id).health
    assert health.uptime == 100.0
    assert health.status.value == "healthy"


def test_stale_readings_degrade_then_recover(seed, ingestion_service, sensor_store, clock):
    sensor_id = seed.create_sensor()
    stale = clock.now - timedelta(minutes=1)
    for _ in range(3):
        ingestion_service.ingest_one(sensor_id, 1.0, timestamp=stale)
    sensor = sensor_store.get(sensor_id)
    assert sensor.health.uptime == 85.0
    assert sensor.status.value == "degraded"
    assert sensor.alerts[-1].severity.value == "medium"

    for _ in range(5):
        ingestion_service.ingest_one(sensor_id, 1.0)
    sensor = sensor_store.get(sensor_id)
    assert sensor.health.uptime == 90.0
    assert sensor.status.value == "healthy"
    assert [alert.severity.value for alert in sensor.alerts] == ["medium", "low"]


def test_flapping_sensor_keeps_bounded_alerts(seed, ingestion_service, sensor_store, clock):
    sensor_id = seed.create_sensor()
    stale = clock.now - timedelta(minutes=1)
    # uptime 100 -> 90 stays healthy
    for _ in range(2):
        ingestion_service.ingest_one(sensor_id, 1.0, timestamp=stale)
    for _ in range(120):
        ingestion_service.ingest_one(sensor_id, 1.0, timestamp=stale)
        for _ in range(5):
            ingestion_service.ingest_one(sensor_id, 1.0)

    sensor = sensor_store.get(sensor_id)
    assert sensor.status.value == "healthy"
    assert len(sensor.alerts) == MAX_SENSOR_ALERTS
    assert sensor.alerts[-1].severity.value == "low"
    assert sensor.alerts[-2].severity.value == "medium"
    assert len(sensor.to_dict()["alerts"]) == MAX_SENSOR_ALERTS


def test_history_keeps_latest_thousand_points(seed, sensor_store):
    sensor_id = seed.create_sensor()
    seed.ingest(sensor_id, *range(1001))
    data = sensor_store.get(sensor_id).history.snapshot()
    assert len(data) == 1000
    assert data[0].value == 1.0
    assert data[-1].value == 1000.0


def test_low_accuracy_readings_make_sensor_faulty(seed, sensor_store):
    sensor_id = seed.create_sensor()
    seed.ingest(sensor_id, *([10.0] * 25), quality={"accuracy": 50})
    health = sensor_store.get(sensor_id).health
    assert health.error_rate == 25.0
    assert health.error_rate > 20
    assert health.status.value == "faulty"


def test_past_calibration_makes_sensor_faulty(seed, device_service, ingestion_service, sensor_store, clock):
    sensor_id = seed.create_sensor(
        calibration={
            "lastCalibrated": (clock.now - timedelta(days=400)).isoformat(),
            "nextCalibration": (clock.now + timedelta(days=10)).isoformat(),
        }
    )
    device_service.update_sensor(
        sensor_id, {"calibration": {"nextCalibration": (clock.now - timedelta(days=1)).isoformat()}}
    )
    ingestion_service.ingest_one(sensor_id, 20.0)
    health = sensor_store.get(sensor_id).health
    assert health.calibration_status.value == "expired"
    assert health.error_rate == 0.0
    assert health.status.value == "faulty"


def test_calibration_lapsing_over_time_makes_sensor_faulty(seed, ingestion_service, sensor_store, clock):
    sensor_id = seed.create_sensor(
        calibration={
            "lastCalibrated": (clock.now - timedelta(days=300)).isoformat(),
            "nextCalibration": (clock.now + timedelta(days=1)).isoformat(),
        }
    )
    ingestion_service.ingest_one(sensor_id, 20.0)
    assert sensor_store.get(sensor_id).status.value == "healthy"
    clock.advance(days=2)
    ingestion_service.ingest_one(sensor_id, 20.0)
    sensor = sensor_store.get(sensor_id)
    assert sensor.status.value == "faulty"
    assert sensor.alerts[-1].severity.value == "critical"


# ==================== Batch ====================


def test_batch_isolates_missing_sensor(seed, ingestion_service, sensor_store):
    sensor_id = seed.create_sensor()
    items = [{"sensorId": sensor_id, "value": float(i)} for i in range(5)]
    items[2] = {"sensorId": "sensor_missing", "value": 2.0}

    summary = ingestion_service.ingest_batch(items)

    assert summary["processedCount"] == 4
    assert summary["failedCount"] == 1
    error = summary["errors"][0]
    assert error["index"] == 2
    assert error["errorType"] == "NotFoundError"
    assert error["detail"] == {"sensorId": "sensor_missing"}
    assert error["item"] == items[2]
    assert [r["index"] for r in summary["results"]] == [0, 1, 3, 4]
    assert [p.value for p in sensor_store.get(sensor_id).history] == [0.0, 1.0, 3.0, 4.0]


def test_batch_counts_sum_to_input_length(seed, ingestion_service):
    a = seed.create_sensor(name="A")
    b = seed.create_sensor(name="B")
    items = [
        {"sensorId": a, "value": 1},
        {"sensorId": b},
        "not-an-object",
        {"value": 3},
        {"sensorId": b, "value": 2, "quality": {"accuracy": 500}},
        {"sensorId": b, "value": 4},
    ]
    summary = ingestion_service.ingest_batch(items)
    assert summary["processedCount"] == 2
    assert summary["failedCount"] == 4
    assert summary["processedCount"] + summary["failedCount"] == len(items)
    assert {e["errorType"] for e in summary["errors"]} == {"ValidationError"}
    assert [e["index"] for e in summary["errors"]] == [1, 2, 3, 4]


def test_batch_keeps_per_sensor_order(seed, ingestion_service, sensor_store):
    a = seed.create_sensor(name="A")
    b = seed.create_sensor(name="B")
    items = []
    for i in range(50):
        items.append({"sensorId": a, "value": i})
        items.append({"sensorId": b, "value": -i})
    summary = ingestion_service.ingest_batch(items)
    assert summary["failedCount"] == 0
    assert [p.value for p in sensor_store.get(a).history] == [float(i) for i in range(50)]
    assert [p.value for p in sensor_store.get(b).history] == [float(-i) for i in range(50)]


def test_batch_reports_oversized_value_as_validation_error(seed, ingestion_service):
    sensor_id = seed.create_sensor()
    items = [{"sensorId": sensor_id, "value": 10**400}, {"sensorId": sensor_id, "value": 1}]
    summary = ingestion_service.ingest_batch(items)
    assert summary["processedCount"] == 1
    assert summary["errors"][0]["index"] == 0
    assert summary["errors"][0]["errorType"] == "ValidationError"


def test_empty_batch(ingestion_service):
    assert ingestion_service.ingest_batch([]) == {
        "processedCount": 0,
        "failedCount": 0,
        "results": [],
        "errors": [],
    }


def test_batch_must_be_a_list(ingestion_service):
    with pytest.raises(ValidationError):
        ingestion_service.ingest_batch({"sensorId": "x"})


def test_batch_size_limit(device_store, sensor_store, clock):
    service = IngestionService(device_store, sensor_store, clock=clock, max_batch_size=3)
    with pytest.raises(ValidationError) as exc:
        service.ingest_batch([{}] * 4)
    assert exc.value.detail == {"size": 4, "maxBatchSize": 3}


# ==================== Concurrency ====================


def test_concurrent_ingestion_loses_no_updates(seed, ingestion_service, sensor_store):
    sensor_id = seed.create_sensor()
    threads_count, per_thread = 8, 10
    barrier = threading.Barrier(threads_count)
    errors = []

    def worker(offset):
        try:
            barrier.wait()
            for i in range(per_thread):
                ingestion_service.ingest_one(sensor_id, float(offset + i), quality={"accuracy": 50})
        except Exception as exc:  # pragma: no cover - surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n * 1000,)) for n in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    sensor = sensor_store.get(sensor_id)
    values = [point.value for point in sensor.history]
    expected = [float(n * 1000 + i) for n in range(threads_count) for i in range(per_thread)]
    assert sorted(values) == expected
    # each low-accuracy reading bumped the error rate exactly once
    assert sensor.health.error_rate == 80.0
    assert sensor.health.uptime == 100.0
    for n in range(threads_count):
        own = [v for v in values if n * 1000 <= v < (n + 1) * 1000]
        assert own == sorted(own)


def test_ingestion_racing_sensor_delete(seed, ingestion_service, device_service, sensor_store):
    sensor_id = seed.create_sensor()
    outcomes = []

    def worker():
        for _ in range(100):
            try:
                ingestion_service.ingest_one(sensor_id, 1.0)
                outcomes.append("ok")
            except NotFoundError:
                outcomes.append("gone")

    thread = threading.Thread(target=worker)
    thread.start()
    device_service.delete_sensor(sensor_id)
    thread.join()

    assert len(outcomes) == 100
    # once the sensor is gone no later reading can land on it
    if "gone" in outcomes:
        first_gone = outcomes.index("gone")
        assert set(outcomes[first_gone:]) == {"gone"}
    with pytest.raises(NotFoundError):
        sensor_store.get(sensor_id)
