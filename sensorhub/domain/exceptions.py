"""Centralized exception hierarchy for SensorHub.

All domain and service exceptions inherit from :class:`SensorHubError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``sensorhub/utils/http.safe_route``) maps
these to the correct HTTP status codes automatically, and batch ingestion
records them per item via :meth:`SensorHubError.to_dict`.

Hierarchy
---------
::

    SensorHubError (base: maps to 500)
    ├── ValidationError      (400: bad input from caller)
    ├── NotFoundError        (404: referenced device/sensor does not exist)
    ├── ConflictError        (409: duplicate identifier)
    ├── InternalError        (500: unexpected failure inside the engine)
    └── ConfigurationError   (500: missing / invalid config)
"""

from __future__ import annotations

from typing import Any


class SensorHubError(Exception):
    """Base exception for all SensorHub application errors.

    Parameters
    ----------
    message:
        Human-readable description. Surfaced to callers for 4xx errors only.
    detail:
        Optional machine-readable context dict (e.g. ``{"sensorId": ...}``)
        attached to the error for structured logging and batch reports.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {"error": str(self), "errorType": self.error_type, "detail": dict(self.detail)}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(SensorHubError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400


class NotFoundError(SensorHubError):
    """Referenced entity does not exist (HTTP 404)."""

    http_status: int = 404


class ConflictError(SensorHubError):
    """Operation conflicts with existing state (HTTP 409)."""

    http_status: int = 409


# ── Server errors (5xx) ──────────────────────────────────────────────


class InternalError(SensorHubError):
    """Unexpected failure in the health engine or store internals (HTTP 500)."""

    http_status: int = 500


class ConfigurationError(SensorHubError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500


def from_pydantic(exc: Any, message: str = "Invalid payload") -> ValidationError:
    """Convert a ``pydantic.ValidationError`` into the domain ValidationError."""
    errors = [
        {"loc": ".".join(str(part) for part in err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return ValidationError(message, detail={"errors": errors})
