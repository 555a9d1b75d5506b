"""
Reading Schemas
===============

Pydantic models for telemetry ingestion and reading queries.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from sensorhub.schemas.common import CamelModel, PageQuery


class DataQualityIn(CamelModel):
    """Partial quality block; omitted fields take the DataQuality defaults."""

    accuracy: Optional[float] = Field(default=None, ge=0, le=100)
    completeness: Optional[float] = Field(default=None, ge=0, le=100)
    consistency: Optional[float] = Field(default=None, ge=0, le=100)
    timeliness: Optional[float] = Field(default=None, ge=0, le=100)
    validity: Optional[bool] = None
    confidence: Optional[float] = Field(default=None, ge=0, le=100)


class ReadingInput(CamelModel):
    """One reading as posted by a device."""

    sensor_id: str = Field(..., min_length=1)
    value: float = Field(..., allow_inf_nan=False)
    unit: Optional[str] = None
    quality: Optional[DataQualityIn] = None
    metadata: Optional[dict[str, Any]] = None
    timestamp: Optional[datetime] = None

    @field_validator("value", mode="before")
    def _require_number(cls, v):
        if isinstance(v, (bool, str)):
            raise ValueError("value must be a number")
        if isinstance(v, int):
            try:
                float(v)
            except OverflowError:
                raise ValueError("value must be a finite number") from None
        return v


class BatchReadingsRequest(CamelModel):
    batch_data: list[Any] = Field(..., description="Readings processed independently")


class ReadingListQuery(PageQuery):
    sensor_id: Optional[str] = None
    device_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
