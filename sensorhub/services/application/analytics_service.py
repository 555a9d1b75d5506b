"""
Analytics Service

Read-only fleet analytics computed from the device and sensor stores:
- Overview (device status, sensor health, ingestion volume)
- Per-device and per-sensor reports
- Performance over a time window
- Predictive maintenance, calibration and data-quality insights
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Sequence

from infrastructure.stores.base import DeviceRepository, SensorRepository
from sensorhub.domain.exceptions import ValidationError
from sensorhub.domain.sensors import DataPoint, Sensor
from sensorhub.enums import DeviceStatus, SensorHealthStatus
from sensorhub.utils.time import ensure_utc, to_iso, utc_now

logger = logging.getLogger(__name__)

TIME_RANGES = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
DEFAULT_TIME_RANGE = "24h"
RECENT_WINDOW = timedelta(hours=24)
ACTIVITY_WINDOW = timedelta(minutes=5)
CALIBRATION_LOOKAHEAD_DAYS = 30
HIGH_ERROR_RATE = 15.0
ATTENTION_ERROR_RATE = 10.0
DEGRADED_SHARE = 0.3
TREND_FLAT_SLOPE = 0.01
REPORT_LIMIT = 10


def _percent(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total else 0.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def calculate_trend(values: Sequence[float]) -> dict[str, Any]:
    """Least-squares slope over the sample index."""
    n = len(values)
    if n < 2:
        return {"direction": "stable", "strength": 0.0}
    sum_x = n * (n - 1) / 2
    sum_xx = (n - 1) * n * (2 * n - 1) / 6
    sum_y = sum(values)
    sum_xy = sum(i * v for i, v in enumerate(values))
    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    if abs(slope) < TREND_FLAT_SLOPE:
        return {"direction": "stable", "strength": 0.0}
    return {
        "direction": "increasing" if slope > 0 else "decreasing",
        "strength": min(abs(slope) * 10, 100.0),
    }


def calculate_data_frequency(points: Sequence[DataPoint]) -> str:
    """Classify the mean interval between consecutive readings."""
    if len(points) < 2:
        return "insufficient_data"
    stamps = sorted(point.timestamp for point in points)
    intervals = [(b - a).total_seconds() for a, b in zip(stamps, stamps[1:])]
    average = _mean(intervals)
    if average < 60:
        return "high_frequency"
    if average < 300:
        return "medium_frequency"
    if average < 3600:
        return "low_frequency"
    return "very_low_frequency"


def _system_health(uptime: float, error_rate: float) -> str:
    if uptime > 95 and error_rate < 5:
        return "excellent"
    if uptime > 85 and error_rate < 10:
        return "good"
    return "needs_attention"


def _health_grade(score: float) -> str:
    if score >= 90:
        return "excellent"
    if score >= 75:
        return "good"
    if score >= 60:
        return "fair"
    return "poor"


class AnalyticsService:
    """Fleet statistics over consistent per-sensor snapshots."""

    def __init__(
        self,
        devices: DeviceRepository,
        sensors: SensorRepository,
        *,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.devices = devices
        self.sensors = sensors
        self._clock = clock

    def _now(self, now: datetime | None) -> datetime:
        return ensure_utc(now or self._clock())

    # ==================== Overview ====================

    def overview(self, now: datetime | None = None) -> dict[str, Any]:
        now = self._now(now)
        devices = self.devices.all()
        sensors = self.sensors.all()

        statuses = Counter(device.status for device in devices)
        health = Counter(sensor.status for sensor in sensors)
        total_points = sum(len(sensor.history) for sensor in sensors)
        cutoff = now - RECENT_WINDOW
        recent_points = sum(
            1 for sensor in sensors for point in sensor.history if point.timestamp > cutoff
        )
        average_uptime = _mean([sensor.health.uptime for sensor in sensors])
        average_error_rate = _mean([sensor.health.error_rate for sensor in sensors])

        return {
            "devices": {
                "total": len(devices),
                "online": statuses[DeviceStatus.ONLINE],
                "offline": statuses[DeviceStatus.OFFLINE],
                "maintenance": statuses[DeviceStatus.MAINTENANCE],
                "onlinePercentage": _percent(statuses[DeviceStatus.ONLINE], len(devices)),
            },
            "sensors": {
                "total": len(sensors),
                "healthy": health[SensorHealthStatus.HEALTHY],
                "degraded": health[SensorHealthStatus.DEGRADED],
                "faulty": health[SensorHealthStatus.FAULTY],
                "healthyPercentage": _percent(health[SensorHealthStatus.HEALTHY], len(sensors)),
            },
            "data": {
                "totalDataPoints": total_points,
                "recentDataPoints": recent_points,
                "dataIngestionRate": recent_points / 24,
                "averageDataPointsPerSensor": round(total_points / len(sensors), 1) if sensors else 0.0,
            },
            "health": {
                "averageUptime": round(average_uptime, 1),
                "averageErrorRate": round(average_error_rate, 2),
                "systemHealth": _system_health(average_uptime, average_error_rate),
            },
            "distribution": {
                "deviceTypes": dict(Counter(device.type for device in devices)),
                "sensorCategories": dict(Counter(sensor.category for sensor in sensors)),
            },
        }

    # ==================== Device / sensor reports ====================

    def device_report(self, device_id: str | None, now: datetime | None = None) -> dict[str, Any]:
        """
        Health report for one device.

        The overall score weighs sensor health 50%, connectivity uptime 30%
        and recent activity (a reading in the last 5 minutes) 20%.
        """
        if not device_id:
            raise ValidationError("deviceId is required", detail={"field": "deviceId"})
        now = self._now(now)
        device = self.devices.get(device_id)
        sensors = self.sensors.all(device_id)

        healthy = sum(1 for s in sensors if s.status == SensorHealthStatus.HEALTHY)
        faulty = sum(1 for s in sensors if s.status == SensorHealthStatus.FAULTY)
        total_points = sum(len(s.history) for s in sensors)
        active_since = now - ACTIVITY_WINDOW
        recent_activity = any(len(s.history) and s.history.latest().timestamp > active_since for s in sensors)
        quality = device.connectivity.quality

        sensor_score = healthy / len(sensors) * 100 if sensors else 0.0
        connectivity_score = quality.uptime
        activity_score = 100.0 if recent_activity else 0.0
        overall = sensor_score * 0.5 + connectivity_score * 0.3 + activity_score * 0.2

        return {
            "device": {
                "id": device.id,
                "name": device.name,
                "type": device.type,
                "status": device.status.value,
                "location": dict(device.location),
            },
            "sensors": {
                "total": len(sensors),
                "healthy": healthy,
                "faulty": faulty,
                "healthPercentage": _percent(healthy, len(sensors)),
            },
            "connectivity": {"protocol": device.connectivity.protocol, **quality.to_dict()},
            "performance": {
                "totalDataPoints": total_points,
                "recentActivity": recent_activity,
                "lastSeen": to_iso(device.last_seen),
            },
            "health": {
                "sensorHealth": round(sensor_score, 1),
                "connectivityScore": round(connectivity_score, 1),
                "activityScore": activity_score,
                "overallHealth": round(overall, 1),
                "healthStatus": _health_grade(overall),
            },
        }

    def sensor_report(self, sensor_id: str | None) -> dict[str, Any]:
        if not sensor_id:
            raise ValidationError("sensorId is required", detail={"field": "sensorId"})
        sensor = self.sensors.get(sensor_id)
        points = sensor.history.snapshot()
        report: dict[str, Any] = {
            "sensor": {
                "id": sensor.id,
                "name": sensor.name,
                "type": sensor.type,
                "category": sensor.category,
                "deviceId": sensor.device_id,
            },
            "specifications": sensor.specifications.to_dict(),
            "health": sensor.health.to_dict(),
        }
        if not points:
            report["statistics"] = {"totalDataPoints": 0, "message": "No data available for analysis"}
            report["recentActivity"] = {
                "lastReading": to_iso(sensor.health.last_reading),
                "dataFrequency": "none",
                "isActive": False,
            }
            return report

        values = [point.value for point in points]
        trend = calculate_trend(values)
        average_accuracy = _mean([point.quality.accuracy for point in points])
        average_confidence = _mean([point.quality.confidence for point in points])
        report["statistics"] = {
            "totalDataPoints": len(points),
            "min": min(values),
            "max": max(values),
            "average": round(_mean(values), 2),
            "trend": trend["direction"],
            "trendStrength": trend["strength"],
        }
        report["quality"] = {
            "averageAccuracy": round(average_accuracy, 1),
            "averageConfidence": round(average_confidence, 1),
            "dataQualityScore": round((average_accuracy + average_confidence) / 2, 1),
        }
        report["recentActivity"] = {
            "lastReading": to_iso(sensor.health.last_reading),
            "dataFrequency": calculate_data_frequency(points),
            "isActive": sensor.status == SensorHealthStatus.HEALTHY,
        }
        return report

    # ==================== Performance ====================

    def performance(self, time_range: str | None = None, now: datetime | None = None) -> dict[str, Any]:
        """Per-sensor activity over ``1h``, ``24h`` (default), ``7d`` or ``30d``."""
        time_range = time_range or DEFAULT_TIME_RANGE
        if time_range not in TIME_RANGES:
            raise ValidationError(
                f"Unsupported timeRange '{time_range}'",
                detail={"timeRange": time_range, "allowed": sorted(TIME_RANGES)},
            )
        cutoff = self._now(now) - TIME_RANGES[time_range]

        metrics = []
        for sensor in self.sensors.all():
            recent = [point for point in sensor.history if point.timestamp > cutoff]
            metrics.append(
                {
                    "sensorId": sensor.id,
                    "sensorName": sensor.name,
                    "deviceId": sensor.device_id,
                    "dataPointsCount": len(recent),
                    "averageAccuracy": _mean([point.quality.accuracy for point in recent]),
                    "uptime": sensor.health.uptime,
                    "errorRate": sensor.health.error_rate,
                    "healthStatus": sensor.status.value,
                }
            )

        average_accuracy = _mean([m["averageAccuracy"] for m in metrics])
        average_uptime = _mean([m["uptime"] for m in metrics])
        average_error_rate = _mean([m["errorRate"] for m in metrics])
        top = sorted(
            (m for m in metrics if m["healthStatus"] == SensorHealthStatus.HEALTHY.value),
            key=lambda m: m["averageAccuracy"] + m["uptime"],
            reverse=True,
        )
        attention = sorted(
            (
                m
                for m in metrics
                if m["healthStatus"] != SensorHealthStatus.HEALTHY.value or m["errorRate"] > ATTENTION_ERROR_RATE
            ),
            key=lambda m: m["errorRate"] + (100 - m["uptime"]),
            reverse=True,
        )
        return {
            "timeRange": time_range,
            "systemPerformance": {
                "totalDataPoints": sum(m["dataPointsCount"] for m in metrics),
                "averageAccuracy": round(average_accuracy, 1),
                "averageUptime": round(average_uptime, 1),
                "averageErrorRate": round(average_error_rate, 2),
                "performanceScore": round((average_accuracy + average_uptime) / 2 - average_error_rate, 1),
            },
            "sensorPerformance": metrics,
            "topPerformers": top[:REPORT_LIMIT],
            "needsAttention": attention[:REPORT_LIMIT],
        }

    # ==================== Predictions ====================

    def predictions(self, now: datetime | None = None) -> dict[str, Any]:
        now = self._now(now)
        devices = self.devices.all()
        sensors = self.sensors.all()
        by_device: dict[str, list[Sensor]] = {}
        for sensor in sensors:
            by_device.setdefault(sensor.device_id, []).append(sensor)

        predictions: list[dict[str, Any]] = []
        for device in devices:
            owned = by_device.get(device.id, [])
            faulty = sum(1 for s in owned if s.status == SensorHealthStatus.FAULTY)
            degraded = sum(1 for s in owned if s.status == SensorHealthStatus.DEGRADED)
            if faulty > 0 or degraded > len(owned) * DEGRADED_SHARE:
                predictions.append(
                    {
                        "type": "device_health",
                        "deviceId": device.id,
                        "deviceName": device.name,
                        "prediction": "maintenance_required",
                        "confidence": 0.8,
                        "timeframe": "7 days",
                        "reason": f"{faulty} faulty and {degraded} degraded sensors detected",
                    }
                )

        for sensor in sensors:
            days = sensor.calibration.days_until_due(now)
            if 0 < days <= CALIBRATION_LOOKAHEAD_DAYS:
                whole_days = math.ceil(days)
                predictions.append(
                    {
                        "type": "calibration",
                        "sensorId": sensor.id,
                        "sensorName": sensor.name,
                        "prediction": "calibration_due",
                        "confidence": 0.9,
                        "timeframe": f"{whole_days} days",
                        "reason": f"Calibration expires on {sensor.calibration.next_calibration.date().isoformat()}",
                    }
                )

        for sensor in sensors:
            if sensor.health.error_rate > HIGH_ERROR_RATE:
                predictions.append(
                    {
                        "type": "data_quality",
                        "sensorId": sensor.id,
                        "sensorName": sensor.name,
                        "prediction": "quality_degradation",
                        "confidence": 0.7,
                        "timeframe": "14 days",
                        "reason": f"High error rate detected: {sensor.health.error_rate:.1f}%",
                    }
                )

        return {
            "predictions": predictions,
            "summary": {
                "totalPredictions": len(predictions),
                "highPriority": sum(1 for p in predictions if p["confidence"] > 0.8),
                "mediumPriority": sum(1 for p in predictions if 0.6 < p["confidence"] <= 0.8),
                "lowPriority": sum(1 for p in predictions if p["confidence"] <= 0.6),
            },
            "recommendations": self._recommendations(predictions),
        }

    @staticmethod
    def _recommendations(predictions: list[dict[str, Any]]) -> list[str]:
        counts = Counter(p["type"] for p in predictions)
        recommendations = []
        if counts["device_health"]:
            recommendations.append(
                f"Schedule maintenance for {counts['device_health']} devices showing health issues"
            )
        if counts["calibration"]:
            recommendations.append(f"Plan calibration for {counts['calibration']} sensors expiring soon")
        if counts["data_quality"]:
            recommendations.append(f"Investigate data quality issues for {counts['data_quality']} sensors")
        if not predictions:
            recommendations.append("All systems operating within normal parameters")
        return recommendations
