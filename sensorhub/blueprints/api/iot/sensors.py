"""
Sensor Endpoints
================

- GET    /sensors              list (deviceId, type, category, page, limit)
- POST   /sensors              register on an existing device
- GET    /sensors/<id>         sensor with its reading history
- PUT    /sensors/<id>         partial update (PATCH accepted too)
- DELETE /sensors/<id>         delete
"""

from __future__ import annotations

from flask import Response

from sensorhub.blueprints.api._common import get_device_service, get_json, query_args, success
from sensorhub.schemas import SensorListQuery, parse_model
from sensorhub.utils.http import safe_route
from sensorhub.utils.time import iso_now

from . import iot_api


@iot_api.get("/sensors")
@safe_route("Failed to fetch sensors")
def list_sensors() -> Response:
    query = parse_model(SensorListQuery, query_args(), "Invalid query parameters")
    page, metadata = get_device_service().list_sensors(
        device_id=query.device_id,
        type=query.type,
        category=query.category,
        page=query.page,
        limit=query.limit,
    )
    return success(
        [sensor.to_dict(include_data=False) for sensor in page.items],
        pagination=page.pagination_dict(),
        metadata={"timestamp": iso_now(), **metadata},
    )


@iot_api.post("/sensors")
@safe_route("Failed to register sensor")
def register_sensor() -> Response:
    sensor = get_device_service().register_sensor(get_json())
    return success(sensor.to_dict(), 201, message="Sensor registered successfully")


@iot_api.get("/sensors/<sensor_id>")
@safe_route("Failed to fetch sensor")
def get_sensor(sensor_id: str) -> Response:
    sensor = get_device_service().get_sensor(sensor_id)
    return success(sensor.to_dict(), metadata={"timestamp": iso_now(), "sensorId": sensor_id})


@iot_api.route("/sensors/<sensor_id>", methods=["PUT", "PATCH"])
@safe_route("Failed to update sensor")
def update_sensor(sensor_id: str) -> Response:
    sensor = get_device_service().update_sensor(sensor_id, get_json())
    return success(sensor.to_dict(include_data=False), message="Sensor updated successfully")


@iot_api.delete("/sensors/<sensor_id>")
@safe_route("Failed to delete sensor")
def delete_sensor(sensor_id: str) -> Response:
    sensor = get_device_service().delete_sensor(sensor_id)
    return success({"id": sensor.id, "name": sensor.name, "deviceId": sensor.device_id}, message="Sensor deleted")
