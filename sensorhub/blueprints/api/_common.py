"""
Blueprint Common Utilities
==========================

Shared helper functions for all API blueprints.
Import these instead of duplicating helper code in each blueprint.

Usage:
    from sensorhub.blueprints.api._common import (
        get_container, get_json, success, get_device_service, ...
    )

This module centralizes:
- Service container access
- Request JSON / query-string parsing
- Standardized response helpers
- Common service accessors
"""

from __future__ import annotations

import logging
from typing import Any

from flask import current_app, request

from sensorhub.domain.exceptions import ValidationError
from sensorhub.utils.http import success_response

logger = logging.getLogger("api._common")

# ============================================================================
# CONTAINER ACCESS
# ============================================================================


def get_container():
    """
    Get the service container from Flask app config.

    Returns:
        ServiceContainer: The application service container

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_device_service():
    return get_container().device_service


def get_ingestion_service():
    return get_container().ingestion_service


def get_query_service():
    return get_container().query_service


def get_analytics_service():
    return get_container().analytics_service


# ============================================================================
# REQUEST HELPERS
# ============================================================================


def get_json() -> Any:
    """
    Get the JSON request body.

    Raises:
        ValidationError: If the body is missing or not valid JSON
    """
    body = request.get_json(silent=True)
    if body is None:
        raise ValidationError("Request body must be valid JSON")
    return body


def query_args() -> dict[str, str]:
    """Non-empty query-string parameters (first value of each)."""
    return {key: value for key, value in request.args.items() if value != ""}


# ============================================================================
# RESPONSE HELPERS
# ============================================================================


def success(
    data: dict | list | None = None,
    status: int = 200,
    *,
    message: str | None = None,
    pagination: dict | None = None,
    metadata: dict | None = None,
):
    """
    Standard success response wrapper.

    Returns:
        Flask Response with format: {"ok": true, "data": ..., "error": null}
    """
    return success_response(data, status, message=message, pagination=pagination, metadata=metadata)
