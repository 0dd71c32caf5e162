"""HTML parsing and extraction utilities for product pages."""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from enrich.config import (
    ACTIVE_PANEL_SELECTOR,
    CATEGORY_SYNONYMS,
    CONSIDERATIONS_HEADING,
    CONSIDERATIONS_PREFIX,
    NO_DESCRIPTION_TEXT,
    REFERENCE_PHOTO_MARKER,
    SPEC_HEADER_ATTR,
    SPEC_TABLE_SELECTORS,
    SPECS_HEADING,
)
from enrich.models import ExtractionResult

__all__ = [
    "SpecMap",
    "SpecFilter",
    "DEFAULT_SPEC_FILTER",
    "SPEC_STRATEGIES",
    "extract_description",
    "extract_considerations",
    "read_marked_rows",
    "read_generic_tables",
    "extract_specs",
    "normalize_category",
    "normalize_specs",
    "render_specs",
    "combine_description",
    "extract_product_info",
]

# Category name -> ordered values
SpecMap = Dict[str, List[str]]

# A strategy returns None when its table is absent, else the (possibly empty) map
SpecStrategy = Callable[[BeautifulSoup], Optional[SpecMap]]


# =============================================================================
# Description
# =============================================================================

def extract_description(soup: BeautifulSoup) -> str:
    """Extract the free-text description from the active panel.

    Takes the first paragraph of the panel, turning <br> into newlines.
    Falls back to the "Consideraciones" section, then to a fixed sentinel.
    """
    first_p = soup.select_one(f"{ACTIVE_PANEL_SELECTOR} > p")
    description = ""
    if first_p is not None:
        for br in first_p.find_all("br"):
            br.replace_with("\n")
        description = first_p.get_text().strip()

    if not description:
        description = extract_considerations(soup)

    return description or NO_DESCRIPTION_TEXT


def extract_considerations(soup: BeautifulSoup) -> str:
    """Join the paragraphs that follow the "Consideraciones" heading."""
    found_heading = False
    considerations: List[str] = []

    panel_elements = soup.select(f"{ACTIVE_PANEL_SELECTOR} > h2, {ACTIVE_PANEL_SELECTOR} > p")
    for element in panel_elements:
        if element.name == "h2":
            if CONSIDERATIONS_HEADING in element.get_text():
                found_heading = True
            continue

        if not found_heading:
            continue

        text = element.get_text().strip()
        if text and REFERENCE_PHOTO_MARKER not in text:
            considerations.append(text)

    if not considerations:
        return ""
    return CONSIDERATIONS_PREFIX + ". ".join(considerations)


# =============================================================================
# Specification table
# =============================================================================

def _cell_text(cell: Tag) -> str:
    return cell.get_text().strip()


def _row_cells(row: Tag) -> List[Tag]:
    return row.find_all(["td", "th"], recursive=False)


def _is_header_cell(cell: Tag) -> bool:
    return str(cell.get(SPEC_HEADER_ATTR, "")).strip().lower() == "y"


def _parse_rowspan(cell: Tag) -> Optional[int]:
    value = cell.get("rowspan")
    if value is None:
        return None
    try:
        return max(int(str(value).strip()), 1)
    except ValueError:
        return None


def read_marked_rows(rows: Iterable[Tag]) -> SpecMap:
    """Read spec rows whose category headers carry the marker attribute.

    Non-header cells of a row form its value. A header with rowspan=N
    owns the next N-1 header-less rows; a header without rowspan owns
    every header-less row until the next header.
    """
    specs: SpecMap = {}
    current: Optional[str] = None
    remaining: Optional[int] = None

    for row in rows:
        cells = _row_cells(row)
        header = next((cell for cell in cells if _is_header_cell(cell)), None)

        if header is not None:
            current = _cell_text(header)
            if current:
                specs.setdefault(current, [])
            rowspan = _parse_rowspan(header)
            remaining = rowspan - 1 if rowspan is not None else None
        elif not current:
            continue
        elif remaining is not None:
            if remaining <= 0:
                continue
            remaining -= 1

        if not current:
            continue

        value = " ".join(text for text in (_cell_text(c) for c in cells if c is not header) if text)
        if value:
            specs[current].append(value)
        elif header is not None and remaining is not None:
            # a header alone on its row does not use up its span
            remaining += 1

    return specs


def _marked_table_strategy(selector: str) -> SpecStrategy:
    def strategy(soup: BeautifulSoup) -> Optional[SpecMap]:
        rows = soup.select(selector)
        if not rows:
            return None
        return read_marked_rows(rows)

    strategy.__name__ = f"marked_table[{selector}]"
    return strategy


def read_generic_tables(soup: BeautifulSoup) -> Optional[SpecMap]:
    """Treat any table of more than 2 rows, all with 2+ cells, as label/value pairs."""
    specs: SpecMap = {}
    found = False

    for table in soup.find_all("table"):
        rows = table.find_all("tr")
        if len(rows) <= 2:
            continue
        cell_rows = [_row_cells(row) for row in rows]
        if any(len(cells) < 2 for cells in cell_rows):
            continue

        found = True
        for cells in cell_rows:
            label = _cell_text(cells[0])
            value = _cell_text(cells[1])
            if label and value:
                specs.setdefault(label, []).append(value)

    return specs if found else None


SPEC_STRATEGIES: Tuple[SpecStrategy, ...] = tuple(
    [_marked_table_strategy(selector) for selector in SPEC_TABLE_SELECTORS] + [read_generic_tables]
)


def extract_specs(
    soup: BeautifulSoup,
    strategies: Sequence[SpecStrategy] = SPEC_STRATEGIES,
) -> SpecMap:
    """Run the table strategies in order and return the first match."""
    for strategy in strategies:
        specs = strategy(soup)
        if specs is not None:
            return specs
    return {}


# =============================================================================
# Normalization and filtering
# =============================================================================

def _lookup_key(name: str) -> str:
    return " ".join(name.split()).upper()


def _build_synonym_index(synonyms: Mapping[str, Sequence[str]]) -> Dict[str, str]:
    index: Dict[str, str] = {}
    for canonical, spellings in synonyms.items():
        index[_lookup_key(canonical)] = canonical
        for spelling in spellings:
            index[_lookup_key(spelling)] = canonical
    return index


_SYNONYM_INDEX = _build_synonym_index(CATEGORY_SYNONYMS)


def normalize_category(
    header: str,
    synonyms: Optional[Mapping[str, Sequence[str]]] = None,
) -> str:
    """Map a raw header to its canonical category, or return it trimmed."""
    name = header.strip()
    index = _SYNONYM_INDEX if synonyms is None else _build_synonym_index(synonyms)
    return index.get(_lookup_key(name), name)


def normalize_specs(specs: Mapping[str, Sequence[str]]) -> SpecMap:
    """Rename raw headers to canonical categories, merging values in order."""
    normalized: SpecMap = {}
    for header, values in specs.items():
        name = normalize_category(header)
        if not name:
            continue
        normalized.setdefault(name, []).extend(values)
    return normalized


@dataclass(frozen=True)
class SpecFilter:
    """Drops categories and values that come from merged table cells.

    The site sometimes renders a whole table row as one header (e.g.
    "DISPOSITIVOMARCAMODELO...") or one cell holding several values;
    the thresholds below are tuned to those artifacts.
    """

    max_name_length: int = 25
    max_merged_extra: int = 5
    max_value_length: int = 100
    canonical_names: Tuple[str, ...] = tuple(CATEGORY_SYNONYMS)

    def keep_category(self, name: str) -> bool:
        if len(name) > self.max_name_length:
            return False
        upper = name.upper()
        for canonical in self.canonical_names:
            if canonical == upper or canonical not in upper:
                continue
            if len(upper) - len(canonical) > self.max_merged_extra:
                return False
        return True

    def clean_values(self, values: Iterable[str]) -> List[str]:
        cleaned: List[str] = []
        for value in values:
            value = value.strip()
            if not value or "\n" in value or len(value) > self.max_value_length:
                continue
            if value not in cleaned:
                cleaned.append(value)
        return cleaned

    def apply(self, specs: Mapping[str, Sequence[str]]) -> SpecMap:
        filtered: SpecMap = {}
        for name, values in specs.items():
            if not self.keep_category(name):
                continue
            cleaned = self.clean_values(values)
            if cleaned:
                filtered[name] = cleaned
        return filtered


DEFAULT_SPEC_FILTER = SpecFilter()


# =============================================================================
# Rendering
# =============================================================================

def render_specs(specs: Mapping[str, Sequence[str]]) -> str:
    """Render each non-empty category as a "Category:" block of "- value" lines."""
    blocks = []
    for category, values in specs.items():
        if not values:
            continue
        lines = "\n".join(f"- {value}" for value in values)
        blocks.append(f"\n\n{category}:\n{lines}")
    return "".join(blocks)


def combine_description(description: str, specs: Mapping[str, Sequence[str]]) -> Tuple[str, bool]:
    """Append the rendered specs to the description when there are any."""
    rendered = render_specs(specs)
    if not rendered:
        return description, False
    return f"{description}\n\n{SPECS_HEADING}{rendered}", True


def extract_product_info(
    html: str,
    product_code: str = "",
    spec_filter: SpecFilter = DEFAULT_SPEC_FILTER,
) -> ExtractionResult:
    """Parse a product page into an ExtractionResult.

    Missing markup degrades to the sentinel description and empty specs.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    description = extract_description(soup)
    raw_specs = extract_specs(soup)
    normalized = spec_filter.apply(normalize_specs(raw_specs))
    combined, has_specs = combine_description(description, normalized)

    return ExtractionResult(
        product_code=product_code,
        raw_description=description,
        specs=raw_specs,
        normalized_specs=normalized,
        combined_description=combined,
        has_specs=has_specs,
    )
