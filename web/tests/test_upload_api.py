"""Test the catalog upload endpoints."""

import io
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from enrich.pipeline import PipelineResult
from web.api import parse_concurrency


def _fake_pipeline(files=("productos.xlsx", "marcas.xlsx", "categorias.xlsx", "especificaciones.xlsx")):
    """Stand-in for process_catalog that writes placeholder workbooks."""
    calls = []

    async def fake(input_path, output_dir, concurrency_descriptions, concurrency_images):
        calls.append({
            "input": Path(input_path),
            "input_text": Path(input_path).read_text(encoding="utf-8"),
            "output_dir": Path(output_dir),
            "concurrency_descriptions": concurrency_descriptions,
            "concurrency_images": concurrency_images,
        })
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        for name in files:
            (out / name).write_bytes(b"xlsx")
        return PipelineResult(products_written=1)

    return calls, fake


class TestParseConcurrency:
    """Tests for the concurrency form fields."""

    def test_defaults(self):
        assert parse_concurrency({}) == {
            "concurrencyTransform": 10,
            "concurrencyImages": 20,
            "concurrencyDescriptions": 15,
        }

    def test_values_clamped_to_one(self):
        parsed = parse_concurrency({"concurrencyImages": "0", "concurrencyDescriptions": "-4"})
        assert parsed["concurrencyImages"] == 1
        assert parsed["concurrencyDescriptions"] == 1

    def test_invalid_values_fall_back(self):
        parsed = parse_concurrency({"concurrencyImages": "abc", "concurrencyTransform": "x"})
        assert parsed["concurrencyImages"] == 20
        assert parsed["concurrencyTransform"] == 10

    def test_descriptions_default_independent_of_transform(self):
        assert parse_concurrency({"concurrencyTransform": "7"})["concurrencyDescriptions"] == 15
        assert parse_concurrency({"concurrencyTransform": "x"})["concurrencyDescriptions"] == 15


class TestProcessEndpoint:
    """Test POST /api/products/process."""

    def test_missing_file_returns_400(self, client):
        response = client.post("/api/products/process", data={"concurrencyImages": "3"})
        assert response.status_code == 400
        data = response.json
        assert data["success"] is False
        assert "message" in data and "error" in data

    def test_non_csv_returns_400(self, client):
        with patch("web.api.process_catalog") as process:
            response = client.post(
                "/api/products/process",
                data={"csvFile": (io.BytesIO(b"hello"), "notes.txt", "text/plain")},
                content_type="multipart/form-data",
            )
        assert response.status_code == 400
        assert response.json["success"] is False
        process.assert_not_called()

    def test_csv_extension_accepted_with_other_mimetype(self, client, csv_upload, temp_dir):
        calls, fake = _fake_pipeline()
        with patch("web.api.process_catalog", fake):
            response = client.post(
                "/api/products/process",
                data={"csvFile": csv_upload(content_type="application/octet-stream")},
                content_type="multipart/form-data",
            )
        assert response.status_code == 200
        assert len(calls) == 1

    def test_success_returns_zip(self, client, csv_upload, temp_dir):
        calls, fake = _fake_pipeline()
        with patch("web.api.process_catalog", fake):
            response = client.post(
                "/api/products/process",
                data={
                    "csvFile": csv_upload(),
                    "concurrencyImages": "4",
                    "concurrencyDescriptions": "3",
                },
                content_type="multipart/form-data",
            )

        assert response.status_code == 200
        assert response.mimetype == "application/zip"
        assert "productos_procesados.zip" in response.headers["Content-Disposition"]

        archive = zipfile.ZipFile(io.BytesIO(response.data))
        assert archive.namelist() == ["productos.xlsx", "marcas.xlsx", "categorias.xlsx"]

        call = calls[0]
        assert call["concurrency_images"] == 4
        assert call["concurrency_descriptions"] == 3
        assert "ACTE70207W" in call["input_text"]

    def test_session_dir_removed(self, client, csv_upload, temp_dir):
        calls, fake = _fake_pipeline()
        with patch("web.api.process_catalog", fake):
            client.post(
                "/api/products/process",
                data={"csvFile": csv_upload()},
                content_type="multipart/form-data",
            )
        assert not calls[0]["input"].parent.exists()
        assert list(temp_dir.iterdir()) == []

    def test_zip_only_contains_existing_files(self, client, csv_upload, temp_dir):
        calls, fake = _fake_pipeline(files=("productos.xlsx",))
        with patch("web.api.process_catalog", fake):
            response = client.post(
                "/api/products/process",
                data={"csvFile": csv_upload()},
                content_type="multipart/form-data",
            )
        archive = zipfile.ZipFile(io.BytesIO(response.data))
        assert archive.namelist() == ["productos.xlsx"]

    def test_processing_error_returns_500(self, client, csv_upload, temp_dir):
        async def broken(*args, **kwargs):
            raise RuntimeError("pipeline exploded")

        with patch("web.api.process_catalog", broken):
            response = client.post(
                "/api/products/process",
                data={"csvFile": csv_upload()},
                content_type="multipart/form-data",
            )
        assert response.status_code == 500
        assert response.json["success"] is False
        assert response.json["error"] == "pipeline exploded"
        assert list(temp_dir.iterdir()) == []

    def test_upload_too_large_returns_413(self, client, csv_upload):
        from web.app import app

        original = app.config["MAX_CONTENT_LENGTH"]
        app.config["MAX_CONTENT_LENGTH"] = 10
        try:
            response = client.post(
                "/api/products/process",
                data={"csvFile": csv_upload()},
                content_type="multipart/form-data",
            )
        finally:
            app.config["MAX_CONTENT_LENGTH"] = original
        assert response.status_code == 413
        assert response.json["success"] is False


class TestStatusEndpoints:
    """Test the progress and health endpoints."""

    def test_progress(self, client):
        response = client.get("/api/products/progress")
        assert response.status_code == 200
        assert response.json == {
            "success": True,
            "status": "processing",
            "message": "Processing products...",
        }

    @pytest.mark.parametrize("field", ["status", "timestamp", "environment", "version"])
    def test_health_fields(self, client, field):
        response = client.get("/health")
        assert response.status_code == 200
        assert field in response.json
