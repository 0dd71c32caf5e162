"""Spreadsheet export of enriched products, brands, categories and specs."""

import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from enrich.logging_config import get_logger
from enrich.models import ExtractionResult, ProductRow

__all__ = [
    "PRODUCT_COLUMNS",
    "write_rows",
    "write_products",
    "write_id_map",
    "write_specs",
    "spec_column_name",
]

logger = get_logger("writer")

PathLike = Union[str, Path]

PRODUCT_COLUMNS = [
    "Title",
    "Description",
    "Price",
    "CategoryID",
    "BrandID",
    "Size",
    "Featured",
    "Stock",
    "ProductCode",
    "ImageUrl",
]


def write_rows(
    rows: Iterable[Mapping[str, Any]],
    path: PathLike,
    sheet_name: str,
    columns: Optional[Sequence[str]] = None,
) -> Path:
    """Write flat row dicts to a single-sheet .xlsx file.

    Columns default to the keys of the rows in first-seen order.
    """
    records = [dict(row) for row in rows]
    if columns is None:
        ordered: List[str] = []
        for record in records:
            for key in record:
                if key not in ordered:
                    ordered.append(key)
        columns = ordered

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame(records, columns=list(columns))
    df.to_excel(out_path, sheet_name=sheet_name, index=False, engine="openpyxl")

    logger.info(f"Saved {len(records)} rows to {out_path}")
    return out_path


def write_products(products: Iterable[ProductRow], path: PathLike) -> Path:
    return write_rows(
        (product.to_record() for product in products),
        path,
        sheet_name="Productos",
        columns=PRODUCT_COLUMNS,
    )


def write_id_map(id_map: Mapping[str, int], path: PathLike, sheet_name: str) -> Path:
    """Write a name -> id mapping as ID/Name rows, ordered by id."""
    rows = [
        {"ID": item_id, "Name": name}
        for name, item_id in sorted(id_map.items(), key=lambda item: item[1])
    ]
    return write_rows(rows, path, sheet_name=sheet_name, columns=["ID", "Name"])


def spec_column_name(category: str) -> str:
    """Column name for a spec category, e.g. "NUMERO DE PARTE" -> "Spec_NUMERO_DE_PARTE"."""
    name = re.sub(r"\s+", "_", category.strip())
    return "Spec_" + re.sub(r"[^\w]", "", name)


def write_specs(results: Iterable[ExtractionResult], path: PathLike) -> Path:
    """Write one row per product with a column per spec category."""
    rows: List[Dict[str, Any]] = []
    for result in results:
        row: Dict[str, Any] = {
            "ProductCode": result.product_code,
            "Description": result.raw_description,
        }
        for category, values in result.normalized_specs.items():
            row[spec_column_name(category)] = "; ".join(values)
        rows.append(row)

    return write_rows(rows, path, sheet_name="Especificaciones")
