from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from sensorhub.config import load_config, setup_logging
from sensorhub.extensions import init_extensions

V1 = "/api/v1"


def create_app(
    config_overrides: dict[str, Any] | None = None,
    *,
    clock: Callable[[], datetime] | None = None,
) -> Flask:
    config = load_config()
    if config_overrides:
        config.apply_overrides(config_overrides)

    # Configure logging early so container startup is visible in the terminal
    setup_logging(config.log_level, debug=config.DEBUG, log_file=config.log_file)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.json.sort_keys = False

    init_extensions(flask_app)

    from sensorhub.services.container import ServiceContainer

    if clock is None:
        container = ServiceContainer.build(config)
    else:
        container = ServiceContainer.build(config, clock=clock)
    flask_app.config["CONTAINER"] = container

    # Global JSON error handler for /api/ routes; domain exceptions carry
    # their own ``http_status``.
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        if not request.path.startswith("/api/"):
            if isinstance(exc, HTTPException):
                return exc
            raise exc
        from sensorhub.domain.exceptions import SensorHubError
        from sensorhub.utils.http import error_response, safe_error

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, SensorHubError):
            status = exc.http_status
            if status >= 500:
                return safe_error(exc, status, context=type(exc).__name__)
            return error_response(str(exc) or "Request failed", status, details=exc.detail or None)

        return safe_error(exc, 500, context="unhandled")

    @flask_app.errorhandler(413)
    def _handle_too_large(_exc):
        from sensorhub.utils.http import error_response

        return error_response("Request payload too large", 413)

    from sensorhub.blueprints.api.iot import iot_api

    flask_app.register_blueprint(iot_api, url_prefix=f"{V1}/iot")

    logging.getLogger(__name__).info("SensorHub API ready (environment: %s)", config.environment)
    return flask_app
