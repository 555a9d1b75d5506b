"""WSGI entry point for the SensorHub backend.

Provides the ``app`` object for WSGI servers and the ``sensorhub-server``
console script used in development.
"""
from __future__ import annotations

import logging
import os

from sensorhub import create_app

app = create_app()


def _env_flag_true(name: str) -> bool:
    v = os.getenv(name)
    return bool(v and v.lower() in ("1", "true", "yes", "on"))


def main() -> int:
    host = os.getenv("SENSORHUB_HOST", "0.0.0.0")
    port = int(os.getenv("SENSORHUB_PORT", "8000"))
    debug = _env_flag_true("SENSORHUB_DEBUG")

    logging.info("Starting server on %s:%s", host, port)

    try:
        app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
        logging.info("Server stopped.")
        return 0
    except KeyboardInterrupt:
        logging.info("Server stopped by user.")
        return 0
    except Exception as exc:  # pragma: no cover - top-level runtime errors
        logging.exception("ERROR: Failed to start server: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
