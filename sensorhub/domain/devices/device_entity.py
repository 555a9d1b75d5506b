"""
Device Domain Entity
====================
Registered device with its connectivity, metadata and health summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Iterable, Mapping

from sensorhub.enums import DeviceHealthLevel, DeviceStatus
from sensorhub.utils.time import epoch_millis, to_iso

DEFAULT_CATEGORY = "monitoring"
DEFAULT_AUTHENTICATION = "token"


def _pick(cls, raw: Mapping[str, Any] | None) -> dict[str, Any]:
    """Keep the non-null entries of ``raw`` that name a field of ``cls``."""
    if not raw:
        return {}
    return {f.name: raw[f.name] for f in fields(cls) if raw.get(f.name) is not None}


@dataclass(frozen=True)
class ConnectionQuality:
    """Link quality figures (percentages except latency in ms)."""

    signal_strength: float = 100.0
    latency: float = 0.0
    packet_loss: float = 0.0
    uptime: float = 100.0
    reliability: float = 100.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "signalStrength": self.signal_strength,
            "latency": self.latency,
            "packetLoss": self.packet_loss,
            "uptime": self.uptime,
            "reliability": self.reliability,
        }


@dataclass(frozen=True)
class Connectivity:
    """How a device reaches the hub. Only ``protocol`` is mandatory."""

    protocol: str
    last_connected: datetime
    endpoint: str = ""
    authentication: str = DEFAULT_AUTHENTICATION
    encryption: bool = False
    quality: ConnectionQuality = field(default_factory=ConnectionQuality)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], now: datetime) -> "Connectivity":
        values = _pick(cls, raw)
        values["quality"] = ConnectionQuality(**_pick(ConnectionQuality, raw.get("quality")))
        values.setdefault("last_connected", now)
        return cls(**values)

    def merged(self, changes: Mapping[str, Any]) -> "Connectivity":
        values = _pick(Connectivity, changes)
        values.pop("quality", None)
        if changes.get("quality"):
            values["quality"] = replace(self.quality, **_pick(ConnectionQuality, changes["quality"]))
        return replace(self, **values)

    def to_dict(self) -> dict[str, Any]:
        return {
            "protocol": self.protocol,
            "endpoint": self.endpoint,
            "authentication": self.authentication,
            "encryption": self.encryption,
            "quality": self.quality.to_dict(),
            "lastConnected": to_iso(self.last_connected),
        }


@dataclass(frozen=True)
class DeviceMetadata:
    """Inventory metadata; unknown values default as for unlabelled hardware."""

    serial_number: str
    purchase_date: datetime
    manufacturer: str = "Unknown"
    model: str = "Unknown"
    firmware_version: str = "1.0.0"
    hardware_version: str = "1.0.0"
    warranty_expiry: datetime | None = None
    configuration: Mapping[str, Any] = field(default_factory=dict)
    custom_attributes: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None, now: datetime) -> "DeviceMetadata":
        values = _pick(cls, raw)
        values.setdefault("serial_number", f"AUTO-{epoch_millis(now)}")
        values.setdefault("purchase_date", now)
        return cls(**values)

    def merged(self, changes: Mapping[str, Any]) -> "DeviceMetadata":
        return replace(self, **_pick(DeviceMetadata, changes))

    def to_dict(self) -> dict[str, Any]:
        return {
            "manufacturer": self.manufacturer,
            "model": self.model,
            "serialNumber": self.serial_number,
            "firmwareVersion": self.firmware_version,
            "hardwareVersion": self.hardware_version,
            "purchaseDate": to_iso(self.purchase_date),
            "warrantyExpiry": to_iso(self.warranty_expiry),
            "configuration": dict(self.configuration),
            "customAttributes": dict(self.custom_attributes),
        }


@dataclass
class DeviceHealth:
    overall: DeviceHealthLevel = DeviceHealthLevel.GOOD
    metrics: list[dict[str, Any]] = field(default_factory=list)
    alerts: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": self.overall.value,
            "metrics": [dict(metric) for metric in self.metrics],
            "alerts": [dict(alert) for alert in self.alerts],
        }


def _unique(values: Iterable[str]) -> list[str]:
    # dict keeps first-seen order
    return list(dict.fromkeys(values))


@dataclass
class Device:
    """
    Domain entity for a device.
    New devices start offline with a ``good`` health summary; ``last_seen``
    advances whenever one of its sensors ingests a newer reading.
    """

    id: str
    name: str
    type: str
    connectivity: Connectivity
    metadata: DeviceMetadata
    created_at: datetime
    updated_at: datetime
    last_seen: datetime
    category: str = DEFAULT_CATEGORY
    status: DeviceStatus = DeviceStatus.OFFLINE
    capabilities: list[str] = field(default_factory=list)
    location: dict[str, Any] = field(default_factory=dict)
    health: DeviceHealth = field(default_factory=DeviceHealth)

    def __post_init__(self):
        self.capabilities = _unique(self.capabilities)

    def apply_patch(self, changes: Mapping[str, Any], now: datetime) -> None:
        """
        Merge a partial update into the device.

        ``connectivity`` and ``metadata`` are merged field by field; other
        attributes are replaced. The id never changes.
        """
        for name in ("name", "type", "category", "location"):
            if changes.get(name) is not None:
                setattr(self, name, changes[name])
        if changes.get("status") is not None:
            self.status = DeviceStatus(changes["status"])
        if changes.get("capabilities") is not None:
            self.capabilities = _unique(changes["capabilities"])
        if changes.get("connectivity"):
            self.connectivity = self.connectivity.merged(changes["connectivity"])
        if changes.get("metadata"):
            self.metadata = self.metadata.merged(changes["metadata"])
        self.updated_at = now

    def touch(self, seen_at: datetime) -> bool:
        """Advance ``last_seen``; returns False when ``seen_at`` is not newer."""
        if seen_at <= self.last_seen:
            return False
        self.last_seen = seen_at
        return True

    def snapshot(self) -> "Device":
        return replace(
            self,
            capabilities=list(self.capabilities),
            location=dict(self.location),
            health=DeviceHealth(
                overall=self.health.overall,
                metrics=list(self.health.metrics),
                alerts=list(self.health.alerts),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "category": self.category,
            "status": self.status.value,
            "capabilities": list(self.capabilities),
            "location": dict(self.location),
            "connectivity": self.connectivity.to_dict(),
            "metadata": self.metadata.to_dict(),
            "health": self.health.to_dict(),
            "lastSeen": to_iso(self.last_seen),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }
