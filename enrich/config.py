"""Configuration and constants for the catalog enrichment pipeline."""

import os
from pathlib import Path
from typing import Dict, List, Tuple

from dotenv import load_dotenv

__all__ = [
    "SITE_URL",
    "IMAGE_HOST",
    "PRODUCT_PAGE_URL",
    "IMAGE_PAGE_URL",
    "IMAGE_URL_TEMPLATE",
    "HEADERS",
    "REQUEST_TIMEOUT",
    "PROBE_TIMEOUT",
    "IMAGE_PAGE_TIMEOUT",
    "MAX_RETRIES",
    "RETRY_BACKOFF_BASE",
    "BATCH_SIZE",
    "DEFAULT_CONCURRENCY_TRANSFORM",
    "DEFAULT_CONCURRENCY_DESCRIPTIONS",
    "DEFAULT_CONCURRENCY_IMAGES",
    "INPUT_CSV",
    "OUTPUT_DIR",
    "PRODUCTS_FILE",
    "BRANDS_FILE",
    "CATEGORIES_FILE",
    "SPECS_FILE",
    "ACTIVE_PANEL_SELECTOR",
    "SPEC_TABLE_SELECTORS",
    "SPEC_HEADER_ATTR",
    "CATEGORY_SYNONYMS",
    "NO_DESCRIPTION_TEXT",
    "SAMPLE_PRODUCT_CODES",
]

# Load environment variables from the project .env when present
load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env")

SITE_URL = os.getenv("SITE_URL", "https://www.deltron.com.pe")
IMAGE_HOST = os.getenv("IMAGE_HOST", "https://imagenes.deltron.com.pe")

PRODUCT_PAGE_URL = SITE_URL + "/modulos/productos/items/producto.php?item_number={code}"
IMAGE_PAGE_URL = SITE_URL + "/modulos/productos/items/image_ext.php?item={code}"
IMAGE_URL_TEMPLATE = IMAGE_HOST + "/images/productos/items/large/{part1}/{part2}/{code}.jpg"

HEADERS = {
    "User-Agent": "catalog-enricher/0.1 (+product description sync)",
}

# Request timeouts (seconds)
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))
PROBE_TIMEOUT = 2.0
IMAGE_PAGE_TIMEOUT = 5.0

# Retry settings with exponential backoff (2^attempt seconds)
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
RETRY_BACKOFF_BASE = 2.0

# Progress is logged once per batch of completed items
BATCH_SIZE = 20

# Concurrency defaults
DEFAULT_CONCURRENCY_TRANSFORM = int(os.getenv("DEFAULT_CONCURRENCY_TRANSFORM", "10"))
DEFAULT_CONCURRENCY_DESCRIPTIONS = int(
    os.getenv("DEFAULT_CONCURRENCY_DESCRIPTIONS", "15")
)
DEFAULT_CONCURRENCY_IMAGES = int(os.getenv("DEFAULT_CONCURRENCY_IMAGES", "20"))

# Input / output paths
INPUT_CSV = os.getenv("INPUT_CSV", "csv/catalog.csv")
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "output")

PRODUCTS_FILE = "productos.xlsx"
BRANDS_FILE = "marcas.xlsx"
CATEGORIES_FILE = "categorias.xlsx"
SPECS_FILE = "especificaciones.xlsx"


# =============================================================================
# Product page markup
# =============================================================================

# Container holding the primary product description
ACTIVE_PANEL_SELECTOR = "#home > div"

# Spec table row selectors, probed in order until one yields rows
SPEC_TABLE_SELECTORS: Tuple[str, ...] = (
    "#esp_tecnicas table tr",
    "#especificaciones table tr",
    "div[id*=espec] table tr",
    "table.especificaciones tr",
)

# Cells carrying this attribute (value "y") are category headers
SPEC_HEADER_ATTR = "fircol"

CONSIDERATIONS_HEADING = "Consideraciones"
REFERENCE_PHOTO_MARKER = "Foto referencial"
CONSIDERATIONS_PREFIX = "Product information: "
NO_DESCRIPTION_TEXT = "No description available for this product."
SPECS_HEADING = "TECHNICAL SPECIFICATIONS:"

# Canonical spec category -> raw header spellings seen on the site
CATEGORY_SYNONYMS: Dict[str, List[str]] = {
    "MARCA": ["MARCA", "FABRICANTE", "BRAND"],
    "MODELO": ["MODELO", "MODEL"],
    "NUMERO DE PARTE": ["NUMERO DE PARTE", "NÚMERO DE PARTE", "NRO DE PARTE", "PART NUMBER", "P/N"],
    "DISPOSITIVO": ["DISPOSITIVO", "TIPO", "TIPO DE PRODUCTO"],
    "CARACTERISTICAS": ["CARACTERISTICAS", "CARACTERÍSTICAS", "FEATURES"],
    "GARANTIA": ["GARANTIA", "GARANTÍA", "WARRANTY"],
    "DIMENSIONES": ["DIMENSIONES", "MEDIDAS", "TAMAÑO"],
    "PESO": ["PESO", "WEIGHT"],
    "COLOR": ["COLOR", "COLOUR"],
    "CONECTIVIDAD": ["CONECTIVIDAD", "CONEXION", "CONEXIÓN", "INTERFAZ"],
    "ALIMENTACION": ["ALIMENTACION", "ALIMENTACIÓN", "FUENTE DE PODER"],
    "PROCESADOR": ["PROCESADOR", "CPU"],
    "MEMORIA": ["MEMORIA", "MEMORIA RAM", "RAM"],
    "ALMACENAMIENTO": ["ALMACENAMIENTO", "DISCO DURO", "CAPACIDAD"],
    "PANTALLA": ["PANTALLA", "DISPLAY"],
}


# =============================================================================
# Image page markup
# =============================================================================

IMAGE_CONTAINER_SELECTOR = "center img"
IMAGE_PATH_FRAGMENTS = ("/productos/", "/items/")
IMAGE_NOT_FOUND = "not found"
NO_IMAGE_SUFFIX = "no_image.jpg"


# =============================================================================
# CSV catalog export
# =============================================================================

CATEGORY_MARKER = "CODIGO"
DIVIDER_MARKER = "_______________"
TITLE_FEATURES_MARKER = "[@@@]"
DEFAULT_BRAND = "Sin marca"
DEFAULT_TITLE = "Producto sin nombre"

# Column positions in the export
COL_CODE = 1
COL_TITLE = 2
COL_STOCK = 3
COL_PRICE = 4
COL_BRAND = 8

# Codes used by the CLI smoke-test and test-speed modes
SAMPLE_PRODUCT_CODES: List[str] = [
    "ZZTE8080",
    "ACTE70207W",
    "ACCFANPCCPLDEX4",
    "ACOL50962W",
    "ACTE54705W",
]
