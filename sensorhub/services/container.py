from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from infrastructure.stores.devices import DeviceStore
from infrastructure.stores.sensors import SensorStore
from sensorhub.config import AppConfig
from sensorhub.services.application.analytics_service import AnalyticsService
from sensorhub.services.application.device_service import DeviceService
from sensorhub.services.application.ingestion_service import IngestionService
from sensorhub.services.application.query_service import ReadingQueryService
from sensorhub.utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate the stores and the services built on top of them."""

    config: AppConfig
    device_store: DeviceStore
    sensor_store: SensorStore
    device_service: DeviceService
    ingestion_service: IngestionService
    query_service: ReadingQueryService
    analytics_service: AnalyticsService

    @classmethod
    def build(cls, config: AppConfig, *, clock: Callable[[], datetime] = utc_now) -> "ServiceContainer":
        """Construct the service container with all dependencies.

        Args:
            config: Application configuration
            clock: Source of "now" shared by every service (tests pass a fixed one)
        """
        device_store = DeviceStore()
        sensor_store = SensorStore(device_store, history_capacity=config.history_capacity)
        container = cls(
            config=config,
            device_store=device_store,
            sensor_store=sensor_store,
            device_service=DeviceService(
                device_store,
                sensor_store,
                clock=clock,
                default_page_size=config.default_page_size,
                max_page_size=config.max_page_size,
            ),
            ingestion_service=IngestionService(
                device_store,
                sensor_store,
                clock=clock,
                batch_workers=config.batch_workers,
                max_batch_size=config.max_batch_size,
            ),
            query_service=ReadingQueryService(
                device_store,
                sensor_store,
                default_page_size=config.readings_page_size,
                max_page_size=config.max_page_size,
            ),
            analytics_service=AnalyticsService(device_store, sensor_store, clock=clock),
        )
        logger.info(
            "ServiceContainer built (history capacity %d, %d batch workers)",
            config.history_capacity,
            config.batch_workers,
        )
        return container
