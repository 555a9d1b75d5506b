"""
Device Schemas
==============

Pydantic models for device and sensor request validation.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator

from sensorhub.enums import DeviceStatus
from sensorhub.schemas.common import CamelModel

# ============================================================================
# Device Schemas
# ============================================================================


class ConnectionQualityIn(CamelModel):
    signal_strength: Optional[float] = Field(default=None, ge=0, le=100)
    latency: Optional[float] = Field(default=None, ge=0, description="Latency in ms")
    packet_loss: Optional[float] = Field(default=None, ge=0, le=100)
    uptime: Optional[float] = Field(default=None, ge=0, le=100)
    reliability: Optional[float] = Field(default=None, ge=0, le=100)


class ConnectivityPatch(CamelModel):
    """Partial connectivity; every field optional."""

    protocol: Optional[str] = Field(default=None, min_length=1)
    endpoint: Optional[str] = None
    authentication: Optional[str] = None
    encryption: Optional[bool] = None
    quality: Optional[ConnectionQualityIn] = None
    last_connected: Optional[datetime] = None


class ConnectivityIn(ConnectivityPatch):
    """Connectivity supplied at registration; ``protocol`` is required."""

    protocol: str = Field(..., min_length=1, description="Transport protocol, e.g. mqtt or http")


class DeviceMetadataIn(CamelModel):
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    firmware_version: Optional[str] = None
    hardware_version: Optional[str] = None
    purchase_date: Optional[datetime] = None
    warranty_expiry: Optional[datetime] = None
    configuration: Optional[dict[str, Any]] = None
    custom_attributes: Optional[dict[str, Any]] = None


class CreateDeviceRequest(CamelModel):
    """Request model for registering a device"""

    name: str = Field(..., min_length=1, max_length=200, description="Device name")
    type: str = Field(..., min_length=1, description="Device type, e.g. gateway or controller")
    category: Optional[str] = Field(default=None, description="Defaults to monitoring")
    capabilities: list[str] = Field(default_factory=list)
    location: dict[str, Any] = Field(default_factory=dict)
    connectivity: ConnectivityIn
    metadata: Optional[DeviceMetadataIn] = None


class UpdateDeviceRequest(CamelModel):
    """Partial device update; the id is never patchable."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    type: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    status: Optional[DeviceStatus] = None
    capabilities: Optional[list[str]] = None
    location: Optional[dict[str, Any]] = None
    connectivity: Optional[ConnectivityPatch] = None
    metadata: Optional[DeviceMetadataIn] = None


# ============================================================================
# Sensor Schemas
# ============================================================================


class SpecificationsIn(CamelModel):
    range: Optional[tuple[float, float]] = None
    precision: Optional[float] = None
    accuracy: Optional[float] = None
    resolution: Optional[float] = None
    response_time_ms: Optional[float] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("responseTimeMs", "responseTime", "response_time_ms"),
    )
    sampling_rate_hz: Optional[float] = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("samplingRateHz", "samplingRate", "sampling_rate_hz"),
    )
    operating_conditions: Optional[dict[str, Any]] = None
    power_requirements: Optional[dict[str, Any]] = None

    @field_validator("range")
    def _ordered_range(cls, v):
        if v is not None and v[0] > v[1]:
            raise ValueError("range minimum must not exceed range maximum")
        return v


class CalibrationIn(CamelModel):
    last_calibrated: Optional[datetime] = None
    next_calibration: Optional[datetime] = None
    method: Optional[str] = None
    standards: Optional[list[str]] = None
    coefficients: Optional[dict[str, float]] = None
    certified: Optional[bool] = None
    certification_expiry: Optional[datetime] = None


class CreateSensorRequest(CamelModel):
    """Request model for registering a sensor on a device"""

    device_id: str = Field(..., min_length=1, description="Owning device id")
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(..., min_length=1, description="Sensor type, e.g. temperature")
    category: str = Field(..., min_length=1, description="Sensor category, e.g. environmental")
    specifications: Optional[SpecificationsIn] = None
    calibration: Optional[CalibrationIn] = None


class UpdateSensorRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    type: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, min_length=1)
    specifications: Optional[SpecificationsIn] = None
    calibration: Optional[CalibrationIn] = None
