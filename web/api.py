"""API endpoints for catalog processing.

POST /api/products/process takes a CSV export upload, runs the
enrichment pipeline in a throw-away session directory and answers with
a ZIP of the generated workbooks.
"""

import asyncio
import io
import logging
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

from flask import Blueprint, Response, jsonify, request, send_file
from werkzeug.datastructures import FileStorage

from enrich.config import BRANDS_FILE, CATEGORIES_FILE, PRODUCTS_FILE
from enrich.pipeline import process_catalog
from web.config import DEFAULT_CONCURRENCY, TEMP_DIR, UPLOAD_FIELD, ZIP_NAME

__all__ = ["api", "parse_concurrency", "is_csv_upload", "build_zip"]

logger = logging.getLogger(__name__)

# Create blueprint for API
api = Blueprint("products_api", __name__, url_prefix="/api/products")

# Workbooks shipped back to the client, in archive order
ZIP_MEMBERS = (PRODUCTS_FILE, BRANDS_FILE, CATEGORIES_FILE)


def _error(message: str, error: str, status: int) -> Tuple[Response, int]:
    return jsonify({"success": False, "message": message, "error": error}), status


def _parse_positive_int(raw: Optional[str], default: int) -> int:
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return max(1, int(str(raw).strip()))
    except ValueError:
        return default


def parse_concurrency(form: Mapping[str, str]) -> Dict[str, int]:
    """Read the concurrency fields of the upload form.

    Values are clamped to at least 1; missing or non-numeric values fall
    back to the defaults.
    """
    transform = _parse_positive_int(
        form.get("concurrencyTransform"), DEFAULT_CONCURRENCY["concurrencyTransform"]
    )
    images = _parse_positive_int(
        form.get("concurrencyImages"), DEFAULT_CONCURRENCY["concurrencyImages"]
    )
    descriptions = _parse_positive_int(
        form.get("concurrencyDescriptions"), DEFAULT_CONCURRENCY["concurrencyDescriptions"]
    )
    return {
        "concurrencyTransform": transform,
        "concurrencyImages": images,
        "concurrencyDescriptions": descriptions,
    }


def is_csv_upload(upload: FileStorage) -> bool:
    filename = (upload.filename or "").lower()
    return upload.mimetype == "text/csv" or filename.endswith(".csv")


def build_zip(output_dir: Union[str, Path]) -> io.BytesIO:
    """Pack whichever output workbooks exist into an in-memory ZIP."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name in ZIP_MEMBERS:
            path = Path(output_dir) / name
            if path.exists():
                archive.write(path, arcname=name)
    buffer.seek(0)
    return buffer


@api.route("/process", methods=["POST"])
def process_products():
    """Process an uploaded CSV export and return the workbooks as a ZIP.

    Request (multipart/form-data):
        csvFile: The catalog export
        concurrencyTransform, concurrencyImages, concurrencyDescriptions:
            Optional integers

    Responses:
        200: application/zip attachment
        400: Missing or non-CSV upload
        413: Upload over the size limit
        500: Processing failed
    """
    upload = request.files.get(UPLOAD_FIELD)
    if upload is None or not upload.filename:
        return _error("No CSV file provided", f"Missing '{UPLOAD_FIELD}' upload", 400)
    if not is_csv_upload(upload):
        return _error("File upload error", "Only CSV files are allowed", 400)

    concurrency = parse_concurrency(request.form)
    logger.info(f"Processing upload {upload.filename} with {concurrency}")

    TEMP_DIR.mkdir(parents=True, exist_ok=True)
    session_dir = Path(tempfile.mkdtemp(prefix="session_", dir=TEMP_DIR))
    try:
        input_path = session_dir / "input.csv"
        output_dir = session_dir / "output"
        upload.save(str(input_path))

        try:
            asyncio.run(
                process_catalog(
                    input_path,
                    output_dir,
                    concurrency_descriptions=concurrency["concurrencyDescriptions"],
                    concurrency_images=concurrency["concurrencyImages"],
                )
            )
        except Exception as e:
            logger.exception("Error processing products")
            return _error("Error processing products", str(e), 500)

        archive = build_zip(output_dir)
    finally:
        shutil.rmtree(session_dir, ignore_errors=True)

    return send_file(
        archive,
        mimetype="application/zip",
        as_attachment=True,
        download_name=ZIP_NAME,
    )


@api.route("/progress", methods=["GET"])
def processing_progress():
    """Static processing status; runs are synchronous per request."""
    return jsonify({
        "success": True,
        "status": "processing",
        "message": "Processing products...",
    })
