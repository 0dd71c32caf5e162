"""Data models for catalog entries and scrape results."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from enrich.config import IMAGE_NOT_FOUND, NO_IMAGE_SUFFIX

__all__ = [
    "ExtractionResult",
    "ImageResult",
    "CatalogEntry",
    "ParsedCatalog",
    "ProductRow",
]


@dataclass(frozen=True)
class ExtractionResult:
    """Description and specification table scraped from one product page.

    ``specs`` holds the table exactly as read (raw header -> values);
    ``normalized_specs`` holds canonical categories after filtering.
    """

    product_code: str
    raw_description: str
    specs: Dict[str, List[str]] = field(default_factory=dict)
    normalized_specs: Dict[str, List[str]] = field(default_factory=dict)
    combined_description: str = ""
    has_specs: bool = False

    # Set only on placeholders produced after a permanent fetch failure
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class ImageResult:
    """Resolved image for one product code.

    ``source`` records how the URL was obtained: "probe", "page",
    "fallback" (constructed, unverified) or "error".
    """

    product_code: str
    image_url: str
    image_title: str
    source: str = "fallback"

    @property
    def has_valid_image(self) -> bool:
        if self.source not in ("probe", "page"):
            return False
        return bool(self.image_url) and self.image_url != IMAGE_NOT_FOUND and not self.image_url.endswith(
            NO_IMAGE_SUFFIX
        )


@dataclass
class CatalogEntry:
    """Raw fields of one product row in the CSV export."""

    code: str
    title: str
    full_title: str
    category: str
    brand: str
    stock: int = 0
    price: float = 0.0
    row_number: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        """Only rows with a title and a positive price make it to the output."""
        return bool(self.title) and self.price > 0


@dataclass
class ParsedCatalog:
    """Result of grouping the raw CSV rows by category."""

    entries: List[CatalogEntry] = field(default_factory=list)
    product_codes: List[str] = field(default_factory=list)
    rows_by_code: Dict[str, CatalogEntry] = field(default_factory=dict)
    categories: Dict[str, int] = field(default_factory=dict)
    brands: Dict[str, int] = field(default_factory=dict)
    skipped_rows: int = 0

    def valid_entries(self) -> List[CatalogEntry]:
        return [entry for entry in self.entries if entry.is_valid]


@dataclass
class ProductRow:
    """One enriched output row of the products workbook."""

    title: str
    description: str
    price: float
    category_id: Optional[int]
    brand_id: Optional[int]
    stock: int
    product_code: str
    image_url: str
    size: str = "S"
    featured: bool = False

    def to_record(self) -> Dict[str, Any]:
        """Column layout expected by the store import."""
        return {
            "Title": self.title,
            "Description": self.description,
            "Price": self.price,
            "CategoryID": self.category_id,
            "BrandID": self.brand_id,
            "Size": self.size,
            "Featured": self.featured,
            "Stock": self.stock,
            "ProductCode": self.product_code,
            "ImageUrl": self.image_url,
        }
