"""Core scraping logic: per-product fetchers and pooled fetch runs."""

import time
from typing import Dict, List, Optional, Sequence

from enrich.client import SiteClient
from enrich.config import (
    DEFAULT_CONCURRENCY_DESCRIPTIONS,
    DEFAULT_CONCURRENCY_IMAGES,
    PRODUCT_PAGE_URL,
)
from enrich.html_utils import extract_product_info
from enrich.images import build_image_url, resolve_image
from enrich.logging_config import get_logger
from enrich.models import ExtractionResult, ImageResult
from enrich.pool import RunCache, fetch_all

__all__ = [
    "get_product_info",
    "description_error_result",
    "image_error_result",
    "scrape_descriptions",
    "scrape_images",
    "measure_concurrency",
]

logger = get_logger("scraper")


async def get_product_info(product_code: str, client: SiteClient) -> ExtractionResult:
    """Fetch the product page for ``product_code`` and extract its info.

    Raises:
        FetchError: If the page cannot be fetched
    """
    url = PRODUCT_PAGE_URL.format(code=product_code)
    logger.debug(f"Fetching product page: {url}")
    html = await client.get_text(url)
    result = extract_product_info(html, product_code)
    logger.debug(f"  {product_code}: specs={'yes' if result.has_specs else 'no'}")
    return result


def description_error_result(product_code: str, error: Exception) -> ExtractionResult:
    """Placeholder stored for a product whose page could not be fetched."""
    return ExtractionResult(
        product_code=product_code,
        raw_description="",
        error=str(error),
    )


def image_error_result(product_code: str, error: Exception) -> ImageResult:
    """Placeholder stored for a product whose image could not be resolved."""
    return ImageResult(
        product_code=product_code,
        image_url=build_image_url(product_code),
        image_title=f"Error: {product_code}",
        source="error",
    )


async def scrape_descriptions(
    product_codes: Sequence[str],
    client: SiteClient,
    cache: Optional[RunCache[str, ExtractionResult]] = None,
    concurrency: int = DEFAULT_CONCURRENCY_DESCRIPTIONS,
    **pool_options,
) -> List[ExtractionResult]:
    """Fetch descriptions and specs for every code, in input order."""
    cache = cache if cache is not None else RunCache()
    return await fetch_all(
        product_codes,
        lambda code: get_product_info(code, client),
        cache,
        concurrency,
        description_error_result,
        label="descriptions",
        **pool_options,
    )


async def scrape_images(
    product_codes: Sequence[str],
    client: SiteClient,
    cache: Optional[RunCache[str, ImageResult]] = None,
    concurrency: int = DEFAULT_CONCURRENCY_IMAGES,
    **pool_options,
) -> List[ImageResult]:
    """Resolve an image for every code, in input order."""
    cache = cache if cache is not None else RunCache()
    return await fetch_all(
        product_codes,
        lambda code: resolve_image(code, client),
        cache,
        concurrency,
        image_error_result,
        label="images",
        **pool_options,
    )


async def measure_concurrency(
    product_codes: Sequence[str],
    client: SiteClient,
    levels: Sequence[int],
    images: bool = False,
) -> Dict[int, float]:
    """Time a fresh fetch run at each concurrency level.

    Returns:
        Mapping of concurrency level -> average seconds per product
    """
    timings: Dict[int, float] = {}
    scrape = scrape_images if images else scrape_descriptions

    for level in levels:
        start = time.perf_counter()
        await scrape(product_codes, client, cache=RunCache(), concurrency=level)
        elapsed = time.perf_counter() - start
        timings[level] = elapsed / max(len(product_codes), 1)
        logger.info(f"Concurrency {level}: {timings[level] * 1000:.0f}ms per product")

    return timings
