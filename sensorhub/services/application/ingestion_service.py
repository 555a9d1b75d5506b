"""
Ingestion Service

Accepts telemetry readings, appends them to the owning sensor's bounded
history and advances the sensor's health record.

Per reading:
1. Validate the input and fill defaults (unit, quality, timestamp)
2. Under the sensor's lock: compute the new health record, append the point,
   commit the health record (and a transition alert, if any)
3. After releasing the lock: advance the owning device's lastSeen

Batches are fanned out over a thread pool. Readings of the same sensor stay
in input order; a failing item never affects the others.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Any, Callable, Mapping

from infrastructure.stores.base import DeviceRepository, SensorRepository
from sensorhub.domain.exceptions import InternalError, NotFoundError, SensorHubError, ValidationError
from sensorhub.domain.sensors import DEFAULT_UNIT, DataPoint, DataQuality, transition_alert, update_health
from sensorhub.schemas import DataQualityIn, ReadingInput, parse_model
from sensorhub.utils.time import coerce_datetime, ensure_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_BATCH_WORKERS = 4
DEFAULT_MAX_BATCH_SIZE = 1000


class IngestionService:
    """Single and batch ingestion of sensor readings."""

    def __init__(
        self,
        devices: DeviceRepository,
        sensors: SensorRepository,
        *,
        clock: Callable[[], datetime] = utc_now,
        batch_workers: int = DEFAULT_BATCH_WORKERS,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
    ):
        self.devices = devices
        self.sensors = sensors
        self._clock = clock
        self.batch_workers = batch_workers
        self.max_batch_size = max_batch_size

    # ------------------------------------------------------------------ #
    # Input normalisation
    # ------------------------------------------------------------------ #

    @staticmethod
    def _coerce_quality(quality: Any) -> DataQuality:
        if quality is None:
            return DataQuality()
        if isinstance(quality, DataQuality):
            return quality
        parsed = parse_model(DataQualityIn, quality, "Invalid quality block")
        return DataQuality.from_mapping(parsed.model_dump(exclude_none=True))

    @staticmethod
    def _coerce_timestamp(timestamp: Any, sensor_id: str) -> datetime | None:
        if timestamp is None:
            return None
        parsed = coerce_datetime(timestamp)
        if parsed is None:
            raise ValidationError(
                "timestamp must be an ISO-8601 datetime",
                detail={"sensorId": sensor_id, "timestamp": str(timestamp)},
            )
        return parsed

    # ------------------------------------------------------------------ #
    # Single reading
    # ------------------------------------------------------------------ #

    def ingest_one(
        self,
        sensor_id: str | None,
        value: Any,
        unit: str | None = None,
        quality: DataQuality | Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
        timestamp: datetime | str | None = None,
    ) -> DataPoint:
        """
        Ingest one reading.

        Args:
            sensor_id: Target sensor
            value: Numeric reading
            unit: Defaults to "units"
            quality: Full or partial quality block; missing fields default
            metadata: Free-form mapping stored with the point
            timestamp: Reading time (UTC); defaults to now

        Returns:
            The stored DataPoint

        Raises:
            ValidationError: Missing sensor id or value, non-numeric value,
                malformed quality or timestamp
            NotFoundError: Unknown (or concurrently deleted) sensor
            InternalError: Health computation failed; the sensor is unchanged
        """
        if not sensor_id:
            raise ValidationError("sensorId is required", detail={"field": "sensorId"})
        if value is None:
            raise ValidationError("value is required", detail={"sensorId": sensor_id, "field": "value"})
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError("value must be a finite number", detail={"sensorId": sensor_id, "value": str(value)})
        try:
            number = float(value)
        except OverflowError:
            number = math.inf
        if not math.isfinite(number):
            raise ValidationError("value must be a finite number", detail={"sensorId": sensor_id, "value": str(number)})

        point_quality = self._coerce_quality(quality)
        point_time = self._coerce_timestamp(timestamp, sensor_id)
        now = ensure_utc(self._clock())
        point = DataPoint(
            timestamp=point_time or now,
            value=number,
            unit=unit or DEFAULT_UNIT,
            quality=point_quality,
            metadata=dict(metadata or {}),
        )

        sensor = self.sensors.resolve(sensor_id)
        with self.sensors.lock_for(sensor_id):
            if sensor.retired:
                raise NotFoundError(f"Sensor {sensor_id} not found", detail={"sensorId": sensor_id})
            previous = sensor.health
            try:
                health = update_health(sensor, point, now)
                alert = transition_alert(sensor.name, previous, health, now)
            except Exception as exc:
                logger.error("Health update failed for sensor %s: %s", sensor_id, exc, exc_info=True)
                raise InternalError(
                    f"Failed to update health of sensor {sensor_id}", detail={"sensorId": sensor_id}
                ) from exc
            sensor.record(point, health, alert)
            device_id = sensor.device_id

        if alert is not None:
            logger.warning("%s (sensor %s)", alert.message, sensor_id)
        self.devices.touch(device_id, point.timestamp)
        logger.debug("Ingested %s %s for sensor %s", point.value, point.unit, sensor_id)
        return point

    def ingest_payload(self, raw: Any) -> tuple[str, DataPoint]:
        """Validate a wire payload (camelCase or snake_case) and ingest it."""
        reading = parse_model(ReadingInput, raw, "Invalid reading")
        point = self.ingest_one(
            reading.sensor_id,
            reading.value,
            unit=reading.unit,
            quality=DataQuality.from_mapping(reading.quality.model_dump(exclude_none=True)) if reading.quality else None,
            metadata=reading.metadata,
            timestamp=reading.timestamp,
        )
        return reading.sensor_id, point

    # ------------------------------------------------------------------ #
    # Batch
    # ------------------------------------------------------------------ #

    @staticmethod
    def _group_key(index: int, item: Any) -> str:
        if isinstance(item, Mapping):
            sensor_id = item.get("sensorId") or item.get("sensor_id")
            if isinstance(sensor_id, str) and sensor_id:
                return sensor_id
        return f"#{index}"

    def _run_group(self, entries: list[tuple[int, Any]]) -> list[tuple[int, Any]]:
        outcomes: list[tuple[int, Any]] = []
        for index, item in entries:
            try:
                outcomes.append((index, self.ingest_payload(item)))
            except SensorHubError as exc:
                outcomes.append((index, exc))
            except Exception as exc:
                logger.error("Unexpected failure ingesting batch item %d: %s", index, exc, exc_info=True)
                outcomes.append((index, InternalError("Failed to ingest reading")))
        return outcomes

    def ingest_batch(self, items: Any) -> dict[str, Any]:
        """
        Ingest a batch of readings with per-item isolation.

        Returns:
            dict with ``processedCount``, ``failedCount``, ``results`` and
            ``errors``; results and errors are in input order and
            processedCount + failedCount equals the batch length

        Raises:
            ValidationError: If ``items`` is not a list or exceeds
                ``max_batch_size``
        """
        if not isinstance(items, list):
            raise ValidationError("batchData must be a list of readings")
        if len(items) > self.max_batch_size:
            raise ValidationError(
                f"Batch exceeds the maximum of {self.max_batch_size} readings",
                detail={"size": len(items), "maxBatchSize": self.max_batch_size},
            )

        # One group per sensor keeps same-sensor readings in input order
        groups: dict[str, list[tuple[int, Any]]] = {}
        for index, item in enumerate(items):
            groups.setdefault(self._group_key(index, item), []).append((index, item))

        outcomes: dict[int, Any] = {}
        if groups:
            workers = max(1, min(self.batch_workers, len(groups)))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ingest") as executor:
                futures = [executor.submit(self._run_group, entries) for entries in groups.values()]
                for future in as_completed(futures):
                    outcomes.update(future.result())

        results: list[dict[str, Any]] = []
        errors: list[dict[str, Any]] = []
        for index, item in enumerate(items):
            outcome = outcomes[index]
            if isinstance(outcome, SensorHubError):
                errors.append({"index": index, "item": item, **outcome.to_dict()})
            else:
                sensor_id, point = outcome
                results.append({"index": index, "sensorId": sensor_id, "dataPoint": point.to_dict()})

        if errors:
            logger.info("Batch ingested %d readings, %d failed", len(results), len(errors))
        return {
            "processedCount": len(results),
            "failedCount": len(errors),
            "results": results,
            "errors": errors,
        }
