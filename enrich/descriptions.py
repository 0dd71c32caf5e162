"""Template descriptions for products the site has nothing for."""

import re
from typing import List

from enrich.config import NO_DESCRIPTION_TEXT, TITLE_FEATURES_MARKER
from enrich.models import CatalogEntry, ExtractionResult

__all__ = ["extract_features", "generate_description", "needs_template"]

MAX_FEATURES = 5
_FEATURE_SPLIT_RE = re.compile(r"[,.]\s*")


def extract_features(full_title: str) -> List[str]:
    """Split the text after the [@@@] marker into short feature phrases."""
    if TITLE_FEATURES_MARKER not in full_title:
        return []
    feature_text = full_title.split(TITLE_FEATURES_MARKER, 1)[1]
    features = [part.strip() for part in _FEATURE_SPLIT_RE.split(feature_text)]
    return [feature for feature in features if len(feature) > 3]


def _stock_sentence(stock: int) -> str:
    if stock > 20:
        return "High stock availability."
    if stock > 10:
        return "Good stock availability."
    if stock > 0:
        return f"Only {stock} units left."
    return "Temporarily out of stock."


def generate_description(entry: CatalogEntry) -> str:
    """Build a fallback description from the catalog row alone."""
    parts = [
        f"{entry.title} by {entry.brand}.",
        f"Category: {entry.category}.",
        _stock_sentence(entry.stock),
        f"Product code: {entry.code}.",
    ]

    features = extract_features(entry.full_title)[:MAX_FEATURES]
    if features:
        parts.append("Main features: " + ". ".join(features) + ".")

    return " ".join(parts)


def needs_template(result: ExtractionResult) -> bool:
    """True when the scraped result has nothing worth publishing."""
    if result.failed:
        return True
    return result.raw_description == NO_DESCRIPTION_TEXT and not result.has_specs
