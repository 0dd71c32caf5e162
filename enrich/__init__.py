"""Supplier catalog enrichment package."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from enrich.catalog import load_catalog
from enrich.client import FetchError, SiteClient
from enrich.config import (
    DEFAULT_CONCURRENCY_DESCRIPTIONS,
    DEFAULT_CONCURRENCY_IMAGES,
    SITE_URL,
)
from enrich.html_utils import SpecFilter, extract_product_info
from enrich.images import build_image_url, resolve_image
from enrich.models import CatalogEntry, ExtractionResult, ImageResult, ProductRow
from enrich.pipeline import PipelineResult, preview_product, process_catalog
from enrich.pool import RunCache, fetch_all, run_all

__all__ = [
    # Version
    "__version__",
    # Config
    "SITE_URL",
    "DEFAULT_CONCURRENCY_DESCRIPTIONS",
    "DEFAULT_CONCURRENCY_IMAGES",
    # Models
    "CatalogEntry",
    "ExtractionResult",
    "ImageResult",
    "ProductRow",
    "PipelineResult",
    # Core functions
    "FetchError",
    "SiteClient",
    "SpecFilter",
    "RunCache",
    "run_all",
    "fetch_all",
    "load_catalog",
    "extract_product_info",
    "build_image_url",
    "resolve_image",
    "process_catalog",
    "preview_product",
]
