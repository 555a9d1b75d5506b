"""
Device Endpoints
================

- GET    /devices              list (type, status, sensorCategory, page, limit)
- POST   /devices              register
- GET    /devices/<id>         device with its sensors
- PUT    /devices/<id>         partial update (PATCH accepted too)
- DELETE /devices/<id>         delete with cascade to sensors
"""

from __future__ import annotations

from flask import Response

from sensorhub.blueprints.api._common import get_device_service, get_json, query_args, success
from sensorhub.schemas import DeviceListQuery, parse_model
from sensorhub.utils.http import safe_route
from sensorhub.utils.time import iso_now

from . import iot_api


@iot_api.get("/devices")
@safe_route("Failed to fetch devices")
def list_devices() -> Response:
    query = parse_model(DeviceListQuery, query_args(), "Invalid query parameters")
    page, metadata = get_device_service().list_devices(
        type=query.type,
        status=query.status,
        sensor_category=query.sensor_category,
        page=query.page,
        limit=query.limit,
    )
    return success(
        [device.to_dict() for device in page.items],
        pagination=page.pagination_dict(),
        metadata={"timestamp": iso_now(), **metadata},
    )


@iot_api.post("/devices")
@safe_route("Failed to register device")
def register_device() -> Response:
    device = get_device_service().register_device(get_json())
    return success(device.to_dict(), 201, message="Device registered successfully")


@iot_api.get("/devices/<device_id>")
@safe_route("Failed to fetch device")
def get_device(device_id: str) -> Response:
    details = get_device_service().get_device(device_id)
    return success(details, metadata={"timestamp": iso_now(), "deviceId": device_id})


@iot_api.route("/devices/<device_id>", methods=["PUT", "PATCH"])
@safe_route("Failed to update device")
def update_device(device_id: str) -> Response:
    device = get_device_service().update_device(device_id, get_json())
    return success(device.to_dict(), message="Device updated successfully")


@iot_api.delete("/devices/<device_id>")
@safe_route("Failed to delete device")
def delete_device(device_id: str) -> Response:
    deleted = get_device_service().delete_device(device_id)
    return success(deleted, message="Device and associated sensors deleted successfully")
