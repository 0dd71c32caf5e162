"""Image URL resolution for product codes.

Tries the conventional image URL first (HEAD probe), then scrapes the
extended image page, and finally falls back to the conventional URL
without verification. Resolution never raises.
"""

from typing import Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from enrich.client import FetchError, SiteClient
from enrich.config import (
    IMAGE_CONTAINER_SELECTOR,
    IMAGE_PAGE_TIMEOUT,
    IMAGE_PAGE_URL,
    IMAGE_PATH_FRAGMENTS,
    IMAGE_URL_TEMPLATE,
    PROBE_TIMEOUT,
)
from enrich.logging_config import get_logger
from enrich.models import ImageResult

__all__ = ["build_image_url", "find_image_in_page", "resolve_image"]

logger = get_logger("images")


def build_image_url(product_code: str) -> str:
    """Build the conventional large-image URL for a product code.

    The path uses the first two pairs of characters of the lower-cased
    code, e.g. AB12XYZ -> .../large/ab/12/ab12xyz.jpg
    """
    code = product_code.strip().lower()
    return IMAGE_URL_TEMPLATE.format(part1=code[0:2], part2=code[2:4], code=code)


def _image_src(img: Tag) -> str:
    return str(img.get("src") or "").strip()


def find_image_in_page(
    html: str, product_code: str, page_url: Optional[str] = None
) -> Optional[Tuple[str, str]]:
    """Locate the product image on the extended image page.

    Prefers the first image inside <center> with a non-empty source;
    otherwise the first image whose source mentions the product code or
    a product image path. Relative sources are resolved against
    ``page_url`` (default: the product's image page).

    Returns:
        (absolute image URL, title) or None when no image matches
    """
    soup = BeautifulSoup(html or "", "html.parser")
    code = product_code.lower()

    img = next((c for c in soup.select(IMAGE_CONTAINER_SELECTOR) if _image_src(c)), None)
    if img is None:
        for candidate in soup.find_all("img", src=True):
            src = _image_src(candidate)
            if src and (code in src.lower() or any(fragment in src for fragment in IMAGE_PATH_FRAGMENTS)):
                img = candidate
                break

    if img is None:
        return None

    title = str(img.get("alt") or "").strip() or f"Product image {product_code}"
    return urljoin(page_url or IMAGE_PAGE_URL.format(code=product_code), _image_src(img)), title


async def resolve_image(product_code: str, client: SiteClient) -> ImageResult:
    """Resolve the image URL and title for one product code."""
    direct_url = build_image_url(product_code)
    fallback = ImageResult(
        product_code=product_code,
        image_url=direct_url,
        image_title=f"Product {product_code}",
        source="fallback",
    )

    if await client.head_ok(direct_url, timeout=PROBE_TIMEOUT):
        return ImageResult(
            product_code=product_code,
            image_url=direct_url,
            image_title=f"Product {product_code}",
            source="probe",
        )

    page_url = IMAGE_PAGE_URL.format(code=product_code)
    try:
        html = await client.get_text(page_url, timeout=IMAGE_PAGE_TIMEOUT)
    except FetchError as e:
        logger.warning(f"Image page unavailable for {product_code}, using constructed URL: {e}")
        return fallback

    found = find_image_in_page(html, product_code, page_url)
    if found is None:
        logger.debug(f"No image tag for {product_code}, using constructed URL")
        return fallback

    image_url, image_title = found
    return ImageResult(
        product_code=product_code,
        image_url=image_url,
        image_title=image_title,
        source="page",
    )
