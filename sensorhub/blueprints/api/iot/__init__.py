"""
IoT API Blueprint
=================

Device, sensor and telemetry endpoints organized into sub-modules:
- devices.py: Device registration, listing, patching and cascading delete
- sensors.py: Sensor registration, listing, patching and delete
- readings.py: Single/batch ingestion and historical reading queries
- analytics.py: Fleet analytics views

All routes are registered under the /api/v1/iot prefix.
"""

from __future__ import annotations

import logging

from flask import Blueprint

iot_api = Blueprint("iot_api", __name__)
logger = logging.getLogger("iot_api")

# Import all sub-modules to register their routes
from . import analytics, devices, readings, sensors  # noqa: E402

_ = (analytics, devices, readings, sensors)

__all__ = ["iot_api"]
