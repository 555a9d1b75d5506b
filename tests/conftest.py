"""
Shared test fixtures for the SensorHub test suite.

Provides:
- A controllable clock shared by every service
- A fresh ServiceContainer per test (isolated in-memory stores)
- Service shortcuts and a Flask test client
- Helper utilities for seeding devices, sensors and readings

Usage:
    def test_example(seed, ingestion_service):
        sensor_id = seed.create_sensor()
        ingestion_service.ingest_one(sensor_id, 21.5)
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from sensorhub.config import AppConfig
from sensorhub.services.container import ServiceContainer

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("sensorhub").setLevel(logging.WARNING)

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, start: datetime = NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ========================== Core Fixtures ==================================


@pytest.fixture()
def clock():
    return FrozenClock()


@pytest.fixture()
def config():
    """Configuration with explicit values so the environment cannot leak in."""
    return AppConfig(
        environment="testing",
        history_capacity=1000,
        batch_workers=4,
        max_batch_size=1000,
        default_page_size=10,
        readings_page_size=100,
        max_page_size=1000,
    )


@pytest.fixture()
def container(config, clock):
    """Each test gets fresh stores: no cross-test contamination."""
    return ServiceContainer.build(config, clock=clock)


@pytest.fixture()
def device_store(container):
    return container.device_store


@pytest.fixture()
def sensor_store(container):
    return container.sensor_store


@pytest.fixture()
def device_service(container):
    return container.device_service


@pytest.fixture()
def ingestion_service(container):
    return container.ingestion_service


@pytest.fixture()
def query_service(container):
    return container.query_service


@pytest.fixture()
def analytics_service(container):
    return container.analytics_service


# ========================== Flask Fixtures =================================


@pytest.fixture()
def app(clock, monkeypatch):
    monkeypatch.setenv("SENSORHUB_SECRET_KEY", "test-secret")
    from sensorhub import create_app

    app = create_app({"environment": "testing"}, clock=clock)
    app.config["TESTING"] = True
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


# ========================== Seed Data Helpers ==============================


def device_payload(name: str = "Gateway 1", type: str = "gateway", **extra: Any) -> dict[str, Any]:
    payload = {"name": name, "type": type, "connectivity": {"protocol": "mqtt"}}
    payload.update(extra)
    return payload


def sensor_payload(device_id: str, name: str = "Temp 1", **extra: Any) -> dict[str, Any]:
    payload = {
        "deviceId": device_id,
        "name": name,
        "type": "temperature",
        "category": "environmental",
        "specifications": {"samplingRateHz": 1},
    }
    payload.update(extra)
    return payload


class SeedData:
    """Helper to create commonly needed test data.

    Usage in tests::

        def test_something(seed):
            device_id = seed.create_device("Gateway")
            sensor_id = seed.create_sensor(device_id=device_id)
            seed.ingest(sensor_id, 21.0, 21.5, 22.0)
    """

    def __init__(self, container: ServiceContainer, clock: FrozenClock):
        self._container = container
        self._clock = clock

    def create_device(self, name: str = "Gateway 1", type: str = "gateway", **extra: Any) -> str:
        """Register a device and return its ID."""
        return self._container.device_service.register_device(device_payload(name, type, **extra)).id

    def create_sensor(self, device_id: str | None = None, name: str = "Temp 1", **extra: Any) -> str:
        """Register a sensor (on a new device unless one is given) and return its ID."""
        if device_id is None:
            device_id = self.create_device()
        return self._container.device_service.register_sensor(sensor_payload(device_id, name, **extra)).id

    def ingest(self, sensor_id: str, *values: float, step_seconds: float = 1.0, **kwargs: Any) -> None:
        """Ingest each value at the current clock time, advancing the clock between readings."""
        for value in values:
            self._container.ingestion_service.ingest_one(sensor_id, value, **kwargs)
            self._clock.advance(seconds=step_seconds)


@pytest.fixture()
def seed(container, clock):
    return SeedData(container, clock)
