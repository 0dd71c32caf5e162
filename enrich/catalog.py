"""CSV catalog export reading and row grouping.

The export is a flat sheet where a row whose second cell contains
"CODIGO" starts a new category (its third cell is the category name)
and the following rows are products of that category:

    ITEM,CODIGO,TECLADOS,...
    1,ACTE70207W,"Teclado USB [@@@] Negro, 120 teclas",>20,"25,50",,,,Teclado Co
"""

import csv
import io
import os
import re
from typing import Any, List, Optional, Sequence

from enrich.config import (
    CATEGORY_MARKER,
    COL_BRAND,
    COL_CODE,
    COL_PRICE,
    COL_STOCK,
    COL_TITLE,
    DEFAULT_BRAND,
    DEFAULT_TITLE,
    DIVIDER_MARKER,
    TITLE_FEATURES_MARKER,
)
from enrich.logging_config import get_logger
from enrich.models import CatalogEntry, ParsedCatalog

__all__ = [
    "read_raw_rows",
    "parse_rows",
    "parse_stock",
    "parse_price",
    "clean_title",
    "load_catalog",
]

logger = get_logger("catalog")

_LEADING_INT_RE = re.compile(r"^\s*>?\s*(\d+)")
_LEADING_FLOAT_RE = re.compile(r"^\s*([-+]?\d+(?:\.\d+)?)")

_ENCODINGS = ("utf-8-sig", "latin-1")


def read_raw_rows(path: str) -> List[List[str]]:
    """Read the CSV export as a list of raw rows.

    Tries UTF-8 (with BOM) first, then Latin-1. The delimiter is sniffed
    among comma, semicolon and tab.

    Raises:
        FileNotFoundError: If the input file does not exist
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Input file not found: {path}")

    text: Optional[str] = None
    for encoding in _ENCODINGS:
        try:
            with open(path, "r", newline="", encoding=encoding) as f:
                text = f.read()
            break
        except UnicodeDecodeError:
            logger.debug(f"{path} is not {encoding}, trying next encoding")

    if text is None:
        raise ValueError(f"Could not decode {path}")

    try:
        dialect = csv.Sniffer().sniff(text[:4096], delimiters=",;\t")
        delimiter = dialect.delimiter
    except csv.Error:
        delimiter = ","

    return list(csv.reader(io.StringIO(text), delimiter=delimiter))


def _cell(row: Sequence[Any], index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def parse_stock(raw: str) -> int:
    """Parse a stock cell; ">20" means 20, anything unparsable means 0."""
    match = _LEADING_INT_RE.match(raw or "")
    return int(match.group(1)) if match else 0


def parse_price(raw: str) -> float:
    """Parse a price cell that may use a decimal comma; unparsable means 0."""
    match = _LEADING_FLOAT_RE.match((raw or "").replace(",", "."))
    return float(match.group(1)) if match else 0.0


def clean_title(full_title: str) -> str:
    """Title text before the features marker."""
    return full_title.split(TITLE_FEATURES_MARKER)[0].strip()


def parse_rows(raw_rows: Sequence[Sequence[Any]]) -> ParsedCatalog:
    """Group product rows under the category header that precedes them.

    Categories and brands get sequential ids (from 1) in first-seen order.
    Short, blank and divider rows are skipped.
    """
    catalog = ParsedCatalog()
    current_category = ""

    for row_number, row in enumerate(raw_rows, start=1):
        if not row or len(row) < 3 or not _cell(row, 0):
            catalog.skipped_rows += 1
            continue

        if DIVIDER_MARKER in _cell(row, 0):
            continue

        code_cell = _cell(row, COL_CODE)

        if CATEGORY_MARKER in code_cell:
            name = _cell(row, COL_TITLE)
            if name:
                current_category = name
                catalog.categories.setdefault(name, len(catalog.categories) + 1)
            continue

        if not current_category or not code_cell:
            catalog.skipped_rows += 1
            continue

        full_title = _cell(row, COL_TITLE) or DEFAULT_TITLE
        brand = _cell(row, COL_BRAND) or DEFAULT_BRAND
        raw_stock = _cell(row, COL_STOCK)
        raw_price = _cell(row, COL_PRICE)

        stock = parse_stock(raw_stock)
        price = parse_price(raw_price)
        if raw_price and not _LEADING_FLOAT_RE.match(raw_price.replace(",", ".")):
            logger.warning(f"Row {row_number} ({code_cell}): unparsable price {raw_price!r}")
        if raw_stock and not _LEADING_INT_RE.match(raw_stock):
            logger.warning(f"Row {row_number} ({code_cell}): unparsable stock {raw_stock!r}")

        catalog.brands.setdefault(brand, len(catalog.brands) + 1)

        entry = CatalogEntry(
            code=code_cell,
            title=clean_title(full_title),
            full_title=full_title,
            category=current_category,
            brand=brand,
            stock=stock,
            price=price,
            row_number=row_number,
        )
        catalog.entries.append(entry)
        if code_cell not in catalog.rows_by_code:
            catalog.rows_by_code[code_cell] = entry
            catalog.product_codes.append(code_cell)

    logger.info(
        f"Parsed {len(catalog.entries)} product rows in {len(catalog.categories)} categories "
        f"({len(catalog.brands)} brands, {catalog.skipped_rows} rows skipped)"
    )
    return catalog


def load_catalog(path: str) -> ParsedCatalog:
    """Read and group a CSV export in one step."""
    return parse_rows(read_raw_rows(path))
