from datetime import timedelta

import pytest

from sensorhub.domain.exceptions import ValidationError


@pytest.fixture()
def two_sensors(seed):
    """Two sensors on different devices with 25 interleaved readings."""
    d1 = seed.create_device("Alpha")
    d2 = seed.create_device("Beta")
    a = seed.create_sensor(d1, "A")
    b = seed.create_sensor(d2, "B")
    for i in range(25):
        seed.ingest(a if i % 2 == 0 else b, float(i))
    return {"d1": d1, "d2": d2, "a": a, "b": b}


def test_readings_newest_first_with_context(two_sensors, query_service):
    page, metadata = query_service.list_readings(limit=3)
    assert [row["value"] for row in page.items] == [24.0, 23.0, 22.0]
    first = page.items[0]
    assert first["sensorId"] == two_sensors["a"]
    assert first["sensorName"] == "A"
    assert first["deviceId"] == two_sensors["d1"]
    assert first["deviceName"] == "Alpha"
    assert metadata["totalDataPoints"] == 25
    assert metadata["sensorsQueried"] == 2
    assert metadata["timeRange"] == {"startTime": "unlimited", "endTime": "unlimited"}


def test_default_page_size_is_100(seed, query_service):
    sensor_id = seed.create_sensor()
    seed.ingest(sensor_id, *range(120))
    page, _ = query_service.list_readings()
    assert len(page.items) == 100
    assert page.pagination_dict()["totalPages"] == 2


def test_pages_concatenate_to_full_result(two_sensors, query_service):
    full, _ = query_service.list_readings(limit=1000)
    collected = []
    page_number = 1
    while True:
        page, _ = query_service.list_readings(page=page_number, limit=7)
        collected.extend(page.items)
        if not page.has_next:
            break
        page_number += 1
    assert page_number == 4
    assert collected == full.items
    stamps = [row["timestamp"] for row in collected]
    assert stamps == sorted(stamps, reverse=True)
    assert len({(row["sensorId"], row["timestamp"]) for row in collected}) == 25


def test_filter_by_sensor_and_device(two_sensors, query_service):
    by_sensor, _ = query_service.list_readings(sensor_id=two_sensors["b"], limit=100)
    assert {row["sensorId"] for row in by_sensor.items} == {two_sensors["b"]}
    assert by_sensor.total == 12

    by_device, _ = query_service.list_readings(device_id=two_sensors["d1"], limit=100)
    assert by_device.total == 13

    mismatch, metadata = query_service.list_readings(sensor_id=two_sensors["a"], device_id=two_sensors["d2"])
    assert mismatch.total == 0
    assert metadata["sensorsQueried"] == 0


def test_unknown_sensor_yields_empty_page(query_service):
    page, metadata = query_service.list_readings(sensor_id="sensor_missing")
    assert page.items == []
    assert metadata["totalDataPoints"] == 0


def test_time_bounds_are_inclusive(seed, query_service, clock):
    start = clock.now
    sensor_id = seed.create_sensor()
    seed.ingest(sensor_id, *range(10))
    page, metadata = query_service.list_readings(
        start_time=(start + timedelta(seconds=2)).isoformat(),
        end_time=start + timedelta(seconds=5),
    )
    assert [row["value"] for row in page.items] == [5.0, 4.0, 3.0, 2.0]
    assert metadata["timeRange"]["startTime"] == (start + timedelta(seconds=2)).isoformat()


def test_invalid_time_bound(query_service):
    with pytest.raises(ValidationError):
        query_service.list_readings(start_time="not-a-date")


def test_equal_timestamps_keep_history_order(seed, ingestion_service, query_service):
    sensor_id = seed.create_sensor()
    for value in (1.0, 2.0, 3.0):
        ingestion_service.ingest_one(sensor_id, value)
    page, _ = query_service.list_readings(sensor_id=sensor_id)
    assert [row["value"] for row in page.items] == [1.0, 2.0, 3.0]
