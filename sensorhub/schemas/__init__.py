"""
Schemas Package
===============

Pydantic request models for the IoT API. Wire names are camelCase; the
snake_case attribute names are accepted as well.
"""

from sensorhub.schemas.common import (
    CamelModel,
    DeviceListQuery,
    PageQuery,
    SensorListQuery,
    parse_model,
)
from sensorhub.schemas.device import (
    CalibrationIn,
    ConnectionQualityIn,
    ConnectivityIn,
    ConnectivityPatch,
    CreateDeviceRequest,
    CreateSensorRequest,
    DeviceMetadataIn,
    SpecificationsIn,
    UpdateDeviceRequest,
    UpdateSensorRequest,
)
from sensorhub.schemas.reading import (
    BatchReadingsRequest,
    DataQualityIn,
    ReadingInput,
    ReadingListQuery,
)

__all__ = [
    "BatchReadingsRequest",
    "CalibrationIn",
    "CamelModel",
    "ConnectionQualityIn",
    "ConnectivityIn",
    "ConnectivityPatch",
    "CreateDeviceRequest",
    "CreateSensorRequest",
    "DataQualityIn",
    "DeviceListQuery",
    "DeviceMetadataIn",
    "PageQuery",
    "ReadingInput",
    "ReadingListQuery",
    "SensorListQuery",
    "SpecificationsIn",
    "UpdateDeviceRequest",
    "UpdateSensorRequest",
    "parse_model",
]
