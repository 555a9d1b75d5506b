"""
Telemetry Endpoints
===================

- POST /sensors/data           ingest one reading, or a batch under ``batchData``
- POST /sensors/data/batch     ingest a batch
- GET  /sensors/data           list readings (sensorId, deviceId, startTime,
                               endTime, page, limit), newest first
"""

from __future__ import annotations

from flask import Response

from sensorhub.blueprints.api._common import (
    get_ingestion_service,
    get_json,
    get_query_service,
    query_args,
    success,
)
from sensorhub.schemas import BatchReadingsRequest, ReadingListQuery, parse_model
from sensorhub.utils.http import safe_route
from sensorhub.utils.time import iso_now

from . import iot_api


def _ingest_batch(body) -> Response:
    request_body = parse_model(BatchReadingsRequest, body, "Invalid batch payload")
    summary = get_ingestion_service().ingest_batch(request_body.batch_data)
    return success(
        summary,
        message=f"Processed {summary['processedCount']} readings, {summary['failedCount']} failed",
        metadata={"timestamp": iso_now()},
    )


@iot_api.post("/sensors/data")
@safe_route("Failed to ingest sensor data")
def ingest_reading() -> Response:
    body = get_json()
    if isinstance(body, dict) and ("batchData" in body or "batch_data" in body):
        return _ingest_batch(body)
    sensor_id, point = get_ingestion_service().ingest_payload(body)
    return success({"sensorId": sensor_id, "dataPoint": point.to_dict()}, 201, message="Sensor data ingested")


@iot_api.post("/sensors/data/batch")
@safe_route("Failed to ingest sensor data batch")
def ingest_batch() -> Response:
    return _ingest_batch(get_json())


@iot_api.get("/sensors/data")
@safe_route("Failed to fetch sensor data")
def list_readings() -> Response:
    query = parse_model(ReadingListQuery, query_args(), "Invalid query parameters")
    page, metadata = get_query_service().list_readings(
        sensor_id=query.sensor_id,
        device_id=query.device_id,
        start_time=query.start_time,
        end_time=query.end_time,
        page=query.page,
        limit=query.limit,
    )
    return success(
        page.items,
        pagination=page.pagination_dict(),
        metadata={"timestamp": iso_now(), **metadata},
    )
