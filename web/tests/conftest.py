"""Shared test fixtures for the web test suite."""

import io

import pytest

SAMPLE_CSV = (
    "ITEM,CODIGO,TECLADOS,STOCK,PRECIO,,,,MARCA\n"
    "1,ACTE70207W,Teclado USB,>20,25.50,,,,Teclado Co\n"
)


@pytest.fixture
def temp_dir(tmp_path, monkeypatch):
    """Point session directories at a per-test temp dir."""
    monkeypatch.setattr("web.api.TEMP_DIR", tmp_path)
    return tmp_path


@pytest.fixture
def client(temp_dir):
    """Create Flask test client."""
    from web.app import app
    app.config["TESTING"] = True

    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def csv_upload():
    """Build a fresh multipart CSV upload for one request."""

    def make(name: str = "catalog.csv", content: str = SAMPLE_CSV, content_type: str = "text/csv"):
        return (io.BytesIO(content.encode("utf-8")), name, content_type)

    return make
