"""Flask Extension Instances and Initialisation."""

from flask import Flask
from flask_compress import Compress

# Flask-Compress instance: compresses JSON responses with gzip/brotli
compress = Compress()


def init_extensions(app: Flask) -> None:
    """Initialise Flask extension objects."""
    # Reading lists and sensor payloads are large, repetitive JSON
    app.config.setdefault("COMPRESS_MIMETYPES", ["application/json"])
    app.config.setdefault("COMPRESS_MIN_SIZE", 256)  # Don't compress tiny responses
    compress.init_app(app)
