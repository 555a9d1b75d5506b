"""
Configuration for SensorHub
===========================
Runtime settings for the ingestion engine and the HTTP API, loaded from
environment variables. Sets up the logging configuration as well.
"""

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field, fields
from logging.handlers import RotatingFileHandler
from typing import Any, Mapping

from sensorhub.domain.exceptions import ConfigurationError

_DEFAULT_SECRET_KEY = "SensorHubDevSecretKey"
_CONSOLE_HANDLER = "sensorhub_console"
_FILE_HANDLER = "sensorhub_file"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be an integer.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("SENSORHUB_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("SENSORHUB_SECRET_KEY", _DEFAULT_SECRET_KEY))
    DEBUG: bool = field(default_factory=lambda: _env_bool("SENSORHUB_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("SENSORHUB_LOG_LEVEL", "INFO"))
    # Empty means console-only logging
    log_file: str = field(default_factory=lambda: os.getenv("SENSORHUB_LOG_FILE", ""))

    # Ingestion
    history_capacity: int = field(default_factory=lambda: _env_int("SENSORHUB_HISTORY_CAPACITY", 1000))
    batch_workers: int = field(default_factory=lambda: _env_int("SENSORHUB_BATCH_WORKERS", 4))
    max_batch_size: int = field(default_factory=lambda: _env_int("SENSORHUB_MAX_BATCH_SIZE", 1000))

    # Pagination
    default_page_size: int = field(default_factory=lambda: _env_int("SENSORHUB_DEFAULT_PAGE_SIZE", 10))
    readings_page_size: int = field(default_factory=lambda: _env_int("SENSORHUB_READINGS_PAGE_SIZE", 100))
    max_page_size: int = field(default_factory=lambda: _env_int("SENSORHUB_MAX_PAGE_SIZE", 1000))

    # Upload / request size limits
    max_upload_mb: int = field(default_factory=lambda: _env_int("SENSORHUB_MAX_UPLOAD_MB", 16))

    def __post_init__(self) -> None:
        self.validate()

    def apply_overrides(self, overrides: Mapping[str, Any]) -> None:
        """
        Set fields by name (case-insensitive) and re-validate.

        Raises:
            ConfigurationError: On a key that names no configuration field
        """
        names = {f.name.lower(): f.name for f in fields(self)}
        for key, value in overrides.items():
            name = names.get(key.lower())
            if name is None:
                raise ConfigurationError(f"Unknown configuration key '{key}'", detail={"key": key})
            setattr(self, name, value)
        self.validate()

    def validate(self) -> None:
        """
        Check value ranges; also re-run after overrides are applied.

        Raises:
            ConfigurationError: On an out-of-range value, or the default
                secret key in production
        """
        positive = {
            "history_capacity": self.history_capacity,
            "batch_workers": self.batch_workers,
            "max_batch_size": self.max_batch_size,
            "default_page_size": self.default_page_size,
            "readings_page_size": self.readings_page_size,
            "max_page_size": self.max_page_size,
            "max_upload_mb": self.max_upload_mb,
        }
        for name, value in positive.items():
            if not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer", detail={name: value})
        for name in ("default_page_size", "readings_page_size"):
            if getattr(self, name) > self.max_page_size:
                raise ConfigurationError(
                    f"{name} cannot exceed max_page_size ({self.max_page_size})",
                    detail={name: getattr(self, name)},
                )
        if self.environment == "production" and self.secret_key == _DEFAULT_SECRET_KEY:
            raise ConfigurationError(
                "Cannot use the default secret key in production. "
                "Set SENSORHUB_SECRET_KEY to a secure random value."
            )

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        return {
            "ENV": self.environment,
            "SECRET_KEY": self.secret_key,
            "DEBUG": self.DEBUG,
            "MAX_CONTENT_LENGTH": self.max_upload_mb * 1024 * 1024,
            "JSON_SORT_KEYS": False,
        }


def setup_logging(level: str = "INFO", *, debug: bool = False, log_file: str = "") -> None:
    """Setup logging configuration.

    Safe to call repeatedly: named handlers are added once and only have their
    level refreshed on later calls.
    """
    log_level = logging.DEBUG if debug else logging.getLevelName(str(level).upper())
    if not isinstance(log_level, int):
        raise ConfigurationError(f"Unknown log level '{level}'", detail={"logLevel": level})

    root = logging.getLogger()
    root.setLevel(log_level)

    has_console = any(getattr(h, "name", "") == _CONSOLE_HANDLER for h in root.handlers)
    has_file = any(getattr(h, "name", "") == _FILE_HANDLER for h in root.handlers)
    added_handler = False
    formatter = logging.Formatter(LOG_FORMAT)

    if not has_console:
        stream = sys.stdout
        with suppress(AttributeError, ValueError):
            stream.reconfigure(encoding="utf-8", errors="replace")
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = _CONSOLE_HANDLER
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_file and not has_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = _FILE_HANDLER
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    # Ensure handler levels follow the desired log level
    for handler in root.handlers:
        if getattr(handler, "name", "") in {_CONSOLE_HANDLER, _FILE_HANDLER}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))

    if _env_bool("SENSORHUB_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    return AppConfig()
