"""Centralized configuration for the catalog upload service."""

import os
from pathlib import Path

from enrich.config import (
    DEFAULT_CONCURRENCY_DESCRIPTIONS,
    DEFAULT_CONCURRENCY_IMAGES,
    DEFAULT_CONCURRENCY_TRANSFORM,
)

# Determine project root (parent of 'web' directory)
_THIS_DIR = Path(__file__).parent
_PROJECT_ROOT = _THIS_DIR.parent

# Flask app settings (allow env overrides; default debug off for safety)
# Hosting platforms set PORT dynamically; fall back to FLASK_PORT or 3000 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "3000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"
FLASK_ENV = os.getenv("FLASK_ENV", "production")

APP_VERSION = "1.0.0"

# Uploads
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "50"))
TEMP_DIR = Path(os.getenv("TEMP_DIR", str(_PROJECT_ROOT / "temp")))
UPLOAD_FIELD = "csvFile"
ZIP_NAME = "productos_procesados.zip"

# Concurrency used when the form leaves a field out or sends garbage
DEFAULT_CONCURRENCY = {
    "concurrencyTransform": DEFAULT_CONCURRENCY_TRANSFORM,
    "concurrencyImages": DEFAULT_CONCURRENCY_IMAGES,
    "concurrencyDescriptions": DEFAULT_CONCURRENCY_DESCRIPTIONS,
}
