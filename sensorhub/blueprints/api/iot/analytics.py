"""
Analytics Endpoint
==================

GET /analytics?type=overview|device|sensor|performance|predictions
    device:      requires deviceId
    sensor:      requires sensorId
    performance: optional timeRange (1h, 24h, 7d, 30d; default 24h)
"""

from __future__ import annotations

from flask import Response

from sensorhub.blueprints.api._common import get_analytics_service, query_args, success
from sensorhub.domain.exceptions import ValidationError
from sensorhub.utils.http import safe_route
from sensorhub.utils.time import iso_now

from . import iot_api

ANALYTICS_TYPES = ("overview", "device", "sensor", "performance", "predictions")


@iot_api.get("/analytics")
@safe_route("Failed to generate analytics")
def get_analytics() -> Response:
    args = query_args()
    kind = args.get("type", "overview")
    service = get_analytics_service()
    metadata = {"timestamp": iso_now(), "analyticsType": kind}

    if kind == "overview":
        data = service.overview()
    elif kind == "device":
        data = service.device_report(args.get("deviceId"))
        metadata["deviceId"] = args.get("deviceId")
    elif kind == "sensor":
        data = service.sensor_report(args.get("sensorId"))
        metadata["sensorId"] = args.get("sensorId")
    elif kind == "performance":
        data = service.performance(args.get("timeRange"))
        metadata["timeRange"] = data["timeRange"]
    elif kind == "predictions":
        data = service.predictions()
    else:
        raise ValidationError(
            "Invalid analytics type",
            detail={"type": kind, "allowed": list(ANALYTICS_TYPES)},
        )
    return success(data, metadata=metadata)
