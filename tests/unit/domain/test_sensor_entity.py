"""Tests for the sensor value objects, bounded history and the Sensor entity."""

from datetime import datetime, timedelta, timezone

import pytest

from sensorhub.domain.exceptions import ValidationError
from sensorhub.domain.sensors import (
    BoundedHistory,
    CalibrationData,
    DataPoint,
    DataQuality,
    Sensor,
    SensorHealth,
    SensorSpecifications,
)
from sensorhub.enums import CalibrationStatus

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _point(value: float) -> DataPoint:
    return DataPoint(timestamp=NOW + timedelta(seconds=value), value=value)


# ==================== DataQuality ====================


def test_quality_defaults():
    assert DataQuality().to_dict() == {
        "accuracy": 95.0,
        "completeness": 100.0,
        "consistency": 95.0,
        "timeliness": 100.0,
        "validity": True,
        "confidence": 90.0,
    }


def test_partial_quality_fills_defaults():
    quality = DataQuality.from_mapping({"accuracy": 50, "unknown": 1})
    assert quality.accuracy == 50
    assert quality.confidence == 90.0
    assert quality.validity is True


# ==================== BoundedHistory ====================


def test_history_evicts_oldest_first():
    history = BoundedHistory(3)
    evicted = [history.append(_point(v)) for v in range(5)]
    assert evicted[:3] == [None, None, None]
    assert [p.value for p in evicted[3:]] == [0, 1]
    assert [p.value for p in history] == [2, 3, 4]
    assert history.latest().value == 4
    assert len(history) == 3


def test_history_snapshot_is_a_copy():
    history = BoundedHistory(3, [_point(1)])
    snapshot = history.snapshot()
    history.append(_point(2))
    assert len(snapshot) == 1


def test_history_rejects_zero_capacity():
    with pytest.raises(ValueError):
        BoundedHistory(0)


def test_history_keeps_most_recent_thousand():
    history = BoundedHistory(1000)
    for v in range(1001):
        history.append(_point(v))
    values = [p.value for p in history]
    assert len(values) == 1000
    assert values[0] == 1
    assert values[-1] == 1000


# ==================== Specifications / calibration ====================


def test_specification_defaults():
    spec = SensorSpecifications()
    assert spec.range == (0.0, 100.0)
    assert spec.sampling_rate_hz == 1.0
    assert spec.to_dict()["samplingRateHz"] == 1.0


@pytest.mark.parametrize("rate", [0, -1])
def test_specification_rejects_non_positive_sampling_rate(rate):
    with pytest.raises(ValidationError):
        SensorSpecifications(sampling_rate_hz=rate)


def test_specification_rejects_inverted_range():
    with pytest.raises(ValidationError):
        SensorSpecifications.from_mapping({"range": [10, 0]})


def test_calibration_defaults_to_one_year():
    calibration = CalibrationData.from_mapping(None, NOW)
    assert calibration.last_calibrated == NOW
    assert calibration.next_calibration == NOW + timedelta(days=365)
    assert calibration.certified is True
    assert calibration.status_at(NOW) == CalibrationStatus.VALID


def test_calibration_next_follows_supplied_last():
    last = NOW - timedelta(days=10)
    calibration = CalibrationData.from_mapping({"last_calibrated": last}, NOW)
    assert calibration.next_calibration == last + timedelta(days=365)


def test_calibration_rejects_next_before_last():
    with pytest.raises(ValidationError):
        CalibrationData(last_calibrated=NOW, next_calibration=NOW - timedelta(seconds=1))


def test_naive_calibration_dates_are_utc():
    calibration = CalibrationData(last_calibrated=datetime(2026, 1, 1), next_calibration=datetime(2027, 1, 1))
    assert calibration.last_calibrated.tzinfo is not None


def test_calibration_expiry():
    calibration = CalibrationData(last_calibrated=NOW - timedelta(days=20), next_calibration=NOW)
    assert calibration.status_at(NOW) == CalibrationStatus.VALID
    assert calibration.status_at(NOW + timedelta(seconds=1)) == CalibrationStatus.EXPIRED
    assert calibration.days_until_due(NOW - timedelta(days=2)) == pytest.approx(2.0)


# ==================== Sensor entity ====================


def make_sensor() -> Sensor:
    return Sensor(
        id="sensor_1",
        device_id="device_1",
        name="Temp",
        type="temperature",
        category="environmental",
        specifications=SensorSpecifications(),
        calibration=CalibrationData.default(NOW),
        created_at=NOW,
        updated_at=NOW,
        history=BoundedHistory(5),
    )


def test_patch_merges_specifications():
    sensor = make_sensor()
    sensor.apply_patch({"name": "Renamed", "specifications": {"sampling_rate_hz": 2.0}}, NOW)
    assert sensor.name == "Renamed"
    assert sensor.specifications.sampling_rate_hz == 2.0
    assert sensor.specifications.range == (0.0, 100.0)


def test_invalid_patch_leaves_sensor_unchanged():
    sensor = make_sensor()
    with pytest.raises(ValidationError):
        sensor.apply_patch(
            {"name": "Renamed", "calibration": {"next_calibration": NOW - timedelta(days=1)}},
            NOW,
        )
    assert sensor.name == "Temp"
    assert sensor.updated_at == NOW


def test_recalibration_restores_valid_status():
    sensor = make_sensor()
    sensor.health = SensorHealth(calibration_status=CalibrationStatus.EXPIRED)
    later = NOW + timedelta(days=400)
    sensor.apply_patch(
        {"calibration": {"last_calibrated": later, "next_calibration": later + timedelta(days=365)}},
        later,
    )
    assert sensor.health.calibration_status == CalibrationStatus.VALID
    assert sensor.updated_at == later


def test_to_dict_optionally_omits_data():
    sensor = make_sensor()
    sensor.record(_point(1), SensorHealth(last_reading=NOW))
    full = sensor.to_dict()
    summary = sensor.to_dict(include_data=False)
    assert len(full["data"]) == 1
    assert "data" not in summary
    assert summary["dataCount"] == 1
    assert summary["latestReading"]["value"] == 1


def test_snapshot_is_detached():
    sensor = make_sensor()
    copy = sensor.snapshot()
    sensor.record(_point(1), SensorHealth(error_rate=3.0))
    assert len(copy.history) == 0
    assert copy.health.error_rate == 0.0
