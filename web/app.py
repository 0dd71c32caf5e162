"""Flask web app for catalog processing uploads.

Accepts a supplier CSV export, enriches it and returns the generated
workbooks as a ZIP download.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv
from flask import Flask, Response, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

# Load environment variables from .env file (explicitly specify path)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Add parent directory to path to allow imports when run as script
sys.path.insert(0, str(Path(__file__).parent.parent))

from web.api import api  # noqa: E402
from web.config import (  # noqa: E402
    APP_VERSION,
    FLASK_DEBUG,
    FLASK_ENV,
    FLASK_HOST,
    FLASK_PORT,
    MAX_UPLOAD_MB,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_MB * 1024 * 1024

# Register API blueprint
app.register_blueprint(api)


# ---------- ERROR HANDLERS ----------


@app.errorhandler(RequestEntityTooLarge)
def upload_too_large(error: RequestEntityTooLarge) -> Tuple[Response, int]:
    logger.warning(f"Rejected upload over {MAX_UPLOAD_MB}MB")
    return jsonify({
        "success": False,
        "message": "File upload error",
        "error": f"File exceeds the {MAX_UPLOAD_MB}MB limit",
    }), 413


# ---------- FLASK ROUTES ----------


@app.route("/health", methods=["GET"])
def health() -> Response:
    return jsonify({
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": FLASK_ENV,
        "version": APP_VERSION,
    })


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
