"""End-to-end catalog enrichment run.

Reads the CSV export, fetches descriptions and images for every valid
product code, merges everything into output rows and writes the
workbooks.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from enrich.catalog import load_catalog
from enrich.client import FetchError, SiteClient
from enrich.config import (
    BRANDS_FILE,
    CATEGORIES_FILE,
    DEFAULT_CONCURRENCY_DESCRIPTIONS,
    DEFAULT_CONCURRENCY_IMAGES,
    PRODUCTS_FILE,
    SPECS_FILE,
)
from enrich.descriptions import generate_description, needs_template
from enrich.images import resolve_image
from enrich.logging_config import get_logger, log_pipeline_event, run_context
from enrich.models import CatalogEntry, ExtractionResult, ImageResult, ProductRow
from enrich.pool import RunCache
from enrich.scraper import get_product_info, scrape_descriptions, scrape_images
from enrich.writer import write_id_map, write_products, write_specs

__all__ = ["PipelineResult", "build_product_rows", "process_catalog", "preview_product"]

logger = get_logger("pipeline")


@dataclass
class PipelineResult:
    """Summary of one enrichment run."""

    products_written: int = 0
    files: List[Path] = field(default_factory=list)
    failed_descriptions: List[str] = field(default_factory=list)
    failed_images: List[str] = field(default_factory=list)
    templated_descriptions: int = 0
    skipped_without_image: int = 0
    elapsed_seconds: float = 0.0
    run_id: Optional[str] = None


def build_product_rows(
    entries: List[CatalogEntry],
    categories: Dict[str, int],
    brands: Dict[str, int],
    descriptions: Dict[str, ExtractionResult],
    images: Dict[str, ImageResult],
    skip_failed_images: bool = False,
) -> Tuple[List[ProductRow], int, int]:
    """Merge catalog entries with their scrape results.

    Entries without a usable scraped description get a template one.
    With ``skip_failed_images`` entries whose image was not verified are
    dropped. Without an image result the image URL is left empty.

    Returns:
        (rows, number of template descriptions, number of rows dropped)
    """
    rows: List[ProductRow] = []
    templated = 0
    dropped = 0

    for entry in entries:
        image = images.get(entry.code)
        if skip_failed_images and image is not None and not image.has_valid_image:
            dropped += 1
            continue

        scraped = descriptions.get(entry.code)
        if scraped is None or needs_template(scraped):
            description = generate_description(entry)
            templated += 1
        else:
            description = scraped.combined_description or scraped.raw_description

        rows.append(
            ProductRow(
                title=entry.title,
                description=description,
                price=entry.price,
                category_id=categories.get(entry.category),
                brand_id=brands.get(entry.brand),
                stock=entry.stock,
                product_code=entry.code,
                image_url=image.image_url if image is not None else "",
            )
        )

    return rows, templated, dropped


async def process_catalog(
    input_path: Union[str, Path],
    output_dir: Union[str, Path],
    concurrency_descriptions: int = DEFAULT_CONCURRENCY_DESCRIPTIONS,
    concurrency_images: int = DEFAULT_CONCURRENCY_IMAGES,
    skip_images: bool = False,
    skip_failed_images: bool = False,
    write_specs_file: bool = True,
    client: Optional[SiteClient] = None,
    cache: Optional[RunCache[str, ExtractionResult]] = None,
) -> PipelineResult:
    """Run the full enrichment for one CSV export.

    Args:
        input_path: CSV catalog export
        output_dir: Directory for the output workbooks (created if missing)
        concurrency_descriptions: Simultaneous product page fetches
        concurrency_images: Simultaneous image resolutions
        skip_images: Don't resolve images; ImageUrl is left empty
        skip_failed_images: Drop products whose image could not be verified
        write_specs_file: Also write the per-product specs workbook
        client: Site client to use; one is created and closed if omitted
        cache: Description run cache shared with other calls

    Raises:
        FileNotFoundError: If the input file does not exist
        ValueError: If a concurrency level is below 1
    """
    if concurrency_descriptions < 1 or concurrency_images < 1:
        raise ValueError(
            f"concurrency must be >= 1, got {concurrency_descriptions}/{concurrency_images}"
        )

    with run_context() as run_id:
        result = await _run_pipeline(
            Path(input_path),
            Path(output_dir),
            concurrency_descriptions,
            concurrency_images,
            skip_images,
            skip_failed_images,
            write_specs_file,
            client,
            cache,
        )
        result.run_id = run_id
        return result


async def _run_pipeline(
    input_path: Path,
    out_dir: Path,
    concurrency_descriptions: int,
    concurrency_images: int,
    skip_images: bool,
    skip_failed_images: bool,
    write_specs_file: bool,
    client: Optional[SiteClient],
    cache: Optional[RunCache[str, ExtractionResult]],
) -> PipelineResult:
    start = time.perf_counter()
    catalog = load_catalog(str(input_path))
    out_dir.mkdir(parents=True, exist_ok=True)

    entries = catalog.valid_entries()
    codes: List[str] = []
    for entry in entries:
        if entry.code not in codes:
            codes.append(entry.code)

    log_pipeline_event(
        "run_start",
        {
            "input": str(input_path),
            "rows": len(catalog.entries),
            "valid_rows": len(entries),
            "codes": len(codes),
            "concurrency_descriptions": concurrency_descriptions,
            "concurrency_images": concurrency_images,
            "skip_images": skip_images,
        },
    )

    owns_client = client is None
    if client is None:
        client = SiteClient(max_workers=max(concurrency_descriptions, concurrency_images))

    try:
        logger.info(f"Fetching descriptions for {len(codes)} products...")
        description_list = await scrape_descriptions(
            codes, client, cache=cache, concurrency=concurrency_descriptions
        )

        image_list: List[ImageResult] = []
        if skip_images:
            logger.info("Skipping image resolution")
        else:
            logger.info(f"Resolving images for {len(codes)} products...")
            image_list = await scrape_images(codes, client, concurrency=concurrency_images)
    finally:
        if owns_client:
            client.close()

    descriptions = {result.product_code: result for result in description_list}
    images = {result.product_code: result for result in image_list}

    rows, templated, dropped = build_product_rows(
        entries,
        catalog.categories,
        catalog.brands,
        descriptions,
        images,
        skip_failed_images=skip_failed_images and not skip_images,
    )
    if dropped:
        logger.info(f"Dropped {dropped} products without a verified image")

    result = PipelineResult(
        products_written=len(rows),
        failed_descriptions=[r.product_code for r in description_list if r.failed],
        failed_images=[r.product_code for r in image_list if r.source == "error"],
        templated_descriptions=templated,
        skipped_without_image=dropped,
    )

    result.files.append(write_products(rows, out_dir / PRODUCTS_FILE))
    result.files.append(write_id_map(catalog.brands, out_dir / BRANDS_FILE, "Marcas"))
    result.files.append(write_id_map(catalog.categories, out_dir / CATEGORIES_FILE, "Categorias"))
    if write_specs_file:
        result.files.append(write_specs(description_list, out_dir / SPECS_FILE))

    result.elapsed_seconds = time.perf_counter() - start
    log_pipeline_event(
        "run_complete",
        {
            "products_written": result.products_written,
            "failed_descriptions": len(result.failed_descriptions),
            "failed_images": len(result.failed_images),
            "templated_descriptions": templated,
            "skipped_without_image": dropped,
            "elapsed_seconds": round(result.elapsed_seconds, 2),
        },
    )
    logger.info(
        f"Wrote {result.products_written} products in {result.elapsed_seconds:.1f}s "
        f"({templated} template descriptions, {len(result.failed_descriptions)} failed pages)"
    )
    return result


async def preview_product(
    product_code: str, client: SiteClient
) -> Tuple[Optional[ExtractionResult], ImageResult]:
    """Scrape one product without the pool or cache.

    The description is None when the product page cannot be fetched;
    the fetch error is logged.
    """
    description: Optional[ExtractionResult]
    try:
        description = await get_product_info(product_code, client)
    except FetchError as e:
        logger.error(f"Could not fetch product page for {product_code}: {e}")
        description = None

    image = await resolve_image(product_code, client)
    return description, image
