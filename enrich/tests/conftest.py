"""Shared test fixtures for the enrich test suite."""

import pytest

from fakes import CATALOG_CSV, FakeClient


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def catalog_csv(tmp_path):
    """Write the sample catalog export and return its path."""
    path = tmp_path / "catalog.csv"
    path.write_text(CATALOG_CSV, encoding="utf-8")
    return path
