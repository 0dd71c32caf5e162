"""Command-line interface for the catalog enrichment pipeline."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

# Add parent directory to path to allow imports when run as script
sys.path.insert(0, str(Path(__file__).parent.parent))

__all__ = ["main", "parse_args", "run_preview", "run_speed_test", "print_preview"]

from enrich.client import SiteClient
from enrich.config import (
    DEFAULT_CONCURRENCY_DESCRIPTIONS,
    DEFAULT_CONCURRENCY_IMAGES,
    INPUT_CSV,
    OUTPUT_DIR,
    SAMPLE_PRODUCT_CODES,
)
from enrich.logging_config import setup_logging
from enrich.models import ExtractionResult, ImageResult
from enrich.pipeline import preview_product, process_catalog
from enrich.scraper import measure_concurrency

DESCRIPTION_SPEED_LEVELS = list(range(2, 16, 2))
IMAGE_SPEED_LEVELS = list(range(5, 26, 5))


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Enrich a supplier catalog export with scraped descriptions, specs and images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Process the default catalog export
  python -m enrich.cli

  # Process with 10 description fetches and 20 image lookups in flight
  python -m enrich.cli full 10 20 --input csv/catalog.csv

  # Preview the sample product codes
  python -m enrich.cli test

  # Preview a single product
  python -m enrich.cli ACTE70207W

  # Time the sample codes at several concurrency levels
  python -m enrich.cli test-speed
        """,
    )

    parser.add_argument(
        "mode",
        nargs="?",
        default="full",
        help="full (default), test, test-speed, or a product code to preview",
    )
    parser.add_argument(
        "concurrency_descriptions",
        nargs="?",
        type=int,
        default=DEFAULT_CONCURRENCY_DESCRIPTIONS,
        help=f"Simultaneous product page fetches (default: {DEFAULT_CONCURRENCY_DESCRIPTIONS})",
    )
    parser.add_argument(
        "concurrency_images",
        nargs="?",
        type=int,
        default=DEFAULT_CONCURRENCY_IMAGES,
        help=f"Simultaneous image lookups (default: {DEFAULT_CONCURRENCY_IMAGES})",
    )

    parser.add_argument(
        "--input",
        default=INPUT_CSV,
        help=f"CSV catalog export (default: {INPUT_CSV})",
    )
    parser.add_argument(
        "--output-dir",
        default=OUTPUT_DIR,
        help=f"Directory for the output workbooks (default: {OUTPUT_DIR})",
    )
    parser.add_argument(
        "--skip-images",
        action="store_true",
        help="Don't resolve product images",
    )
    parser.add_argument(
        "--skip-failed-images",
        action="store_true",
        help="Leave out products whose image could not be verified",
    )
    parser.add_argument(
        "--no-specs-file",
        action="store_true",
        help="Don't write the per-product specifications workbook",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug messages",
    )

    args = parser.parse_args(argv)
    if args.concurrency_descriptions < 1 or args.concurrency_images < 1:
        parser.error("concurrency levels must be >= 1")
    return args


def print_preview(
    product_code: str,
    description: Optional[ExtractionResult],
    image: ImageResult,
) -> None:
    """Print what the pipeline would produce for one product."""
    print(f"\n{'='*50}")
    print(f"Product: {product_code}")
    print(f"{'='*50}")

    if description is None:
        print("\nDescription: could not fetch product page")
    else:
        print(f"\nDescription:\n{description.raw_description}")
        if description.normalized_specs:
            print("\nSpecifications:")
            for category, values in description.normalized_specs.items():
                print(f"  {category}: {'; '.join(values)}")
        else:
            print("\nSpecifications: none found")

    print(f"\nImage ({image.source}): {image.image_url}")
    print(f"Image title: {image.image_title}")


async def run_preview(product_codes: List[str], max_workers: int) -> None:
    with SiteClient(max_workers=max_workers) as client:
        for code in product_codes:
            description, image = await preview_product(code, client)
            print_preview(code, description, image)
    print()


async def run_speed_test(product_codes: List[str]) -> None:
    max_level = max(DESCRIPTION_SPEED_LEVELS + IMAGE_SPEED_LEVELS)
    with SiteClient(max_workers=max_level) as client:
        print(f"\nTiming {len(product_codes)} products per level...")
        description_timings = await measure_concurrency(
            product_codes, client, DESCRIPTION_SPEED_LEVELS
        )
        image_timings = await measure_concurrency(
            product_codes, client, IMAGE_SPEED_LEVELS, images=True
        )

    print("\nDescriptions:")
    for level, seconds in description_timings.items():
        print(f"  concurrency {level:>2}: {seconds * 1000:.0f}ms per product")
    print("\nImages:")
    for level, seconds in image_timings.items():
        print(f"  concurrency {level:>2}: {seconds * 1000:.0f}ms per product")

    best_descriptions = min(description_timings, key=description_timings.get)  # type: ignore[arg-type]
    best_images = min(image_timings, key=image_timings.get)  # type: ignore[arg-type]
    print(f"\nFastest: descriptions={best_descriptions}, images={best_images}")
    print(f"  python -m enrich.cli full {best_descriptions} {best_images}\n")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    max_workers = max(args.concurrency_descriptions, args.concurrency_images)

    if args.mode == "test":
        asyncio.run(run_preview(SAMPLE_PRODUCT_CODES, max_workers))
        return

    if args.mode == "test-speed":
        asyncio.run(run_speed_test(SAMPLE_PRODUCT_CODES))
        return

    if args.mode != "full":
        asyncio.run(run_preview([args.mode], max_workers))
        return

    try:
        result = asyncio.run(
            process_catalog(
                args.input,
                args.output_dir,
                concurrency_descriptions=args.concurrency_descriptions,
                concurrency_images=args.concurrency_images,
                skip_images=args.skip_images,
                skip_failed_images=args.skip_failed_images,
                write_specs_file=not args.no_specs_file,
            )
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"\nProducts written: {result.products_written}")
    print(f"Template descriptions: {result.templated_descriptions}")
    if result.failed_descriptions:
        print(f"Failed product pages: {len(result.failed_descriptions)}")
    if result.skipped_without_image:
        print(f"Left out without image: {result.skipped_without_image}")
    print("\nFiles:")
    for path in result.files:
        print(f"  {path}")
    print(f"\nDone in {result.elapsed_seconds:.1f}s")


if __name__ == "__main__":
    main()
