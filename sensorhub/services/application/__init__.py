from sensorhub.services.application.analytics_service import AnalyticsService
from sensorhub.services.application.device_service import DeviceService
from sensorhub.services.application.ingestion_service import IngestionService
from sensorhub.services.application.query_service import ReadingQueryService

__all__ = ["AnalyticsService", "DeviceService", "IngestionService", "ReadingQueryService"]
