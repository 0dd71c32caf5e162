"""Tests for reading and grouping the CSV catalog export."""

import pytest

from enrich.catalog import (
    clean_title,
    load_catalog,
    parse_price,
    parse_rows,
    parse_stock,
    read_raw_rows,
)


class TestCellParsing:
    """Tests for stock, price and title cells."""

    @pytest.mark.parametrize(
        "raw,expected",
        [(">20", 20), ("5", 5), (" > 7 ", 7), ("", 0), ("agotado", 0), ("12 und", 12)],
    )
    def test_parse_stock(self, raw, expected):
        assert parse_stock(raw) == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [("25,50", 25.5), ("40.00", 40.0), ("0", 0.0), ("", 0.0), ("consultar", 0.0)],
    )
    def test_parse_price(self, raw, expected):
        assert parse_price(raw) == expected

    def test_clean_title(self):
        assert clean_title("Teclado USB [@@@] Negro, 120 teclas") == "Teclado USB"
        assert clean_title("  Mouse optico ") == "Mouse optico"


class TestParseRows:
    """Tests for grouping product rows under category headers."""

    def test_sample_catalog(self, catalog_csv):
        catalog = load_catalog(str(catalog_csv))

        assert catalog.categories == {"TECLADOS": 1, "MOUSE": 2}
        assert catalog.brands == {"Teclado Co": 1, "Sin marca": 2, "Mouse Inc": 3}
        assert catalog.product_codes == ["ACTE70207W", "ACTE54705W", "ACTE00000X", "ACOL50962W"]
        assert len(catalog.entries) == 5
        assert catalog.skipped_rows == 0

    def test_entry_fields(self, catalog_csv):
        catalog = load_catalog(str(catalog_csv))
        entry = catalog.rows_by_code["ACTE70207W"]

        assert entry.title == "Teclado USB"
        assert entry.full_title.startswith("Teclado USB [@@@]")
        assert entry.category == "TECLADOS"
        assert entry.brand == "Teclado Co"
        assert entry.stock == 20
        assert entry.price == 25.5

    def test_duplicate_code_keeps_first_row_for_lookup(self, catalog_csv):
        catalog = load_catalog(str(catalog_csv))
        assert catalog.rows_by_code["ACTE70207W"].category == "TECLADOS"
        assert [e.code for e in catalog.entries].count("ACTE70207W") == 2

    def test_valid_entries_need_price(self, catalog_csv):
        catalog = load_catalog(str(catalog_csv))
        codes = [e.code for e in catalog.valid_entries()]
        assert "ACTE00000X" not in codes
        assert codes == ["ACTE70207W", "ACTE54705W", "ACOL50962W", "ACTE70207W"]

    def test_rows_before_first_category_are_skipped(self):
        catalog = parse_rows([
            ["1", "ORPHAN1", "Sin categoria", "1", "10"],
            ["ITEM", "CODIGO", "CABLES"],
            ["1", "CAB1", "Cable HDMI", "3", "9.90"],
        ])
        assert catalog.product_codes == ["CAB1"]
        assert catalog.skipped_rows == 1

    def test_short_and_blank_rows_are_skipped(self):
        catalog = parse_rows([
            [],
            ["x", "y"],
            ["", "CAB1", "Cable"],
            ["ITEM", "CODIGO", "CABLES"],
        ])
        assert catalog.entries == []
        assert catalog.skipped_rows == 3
        assert catalog.categories == {"CABLES": 1}

    def test_missing_title_gets_default(self):
        catalog = parse_rows([
            ["ITEM", "CODIGO", "CABLES"],
            ["1", "CAB1", "", "3", "9.90"],
        ])
        assert catalog.entries[0].title == "Producto sin nombre"
        assert catalog.entries[0].brand == "Sin marca"

    def test_repeated_category_keeps_id(self):
        catalog = parse_rows([
            ["ITEM", "CODIGO", "CABLES"],
            ["ITEM", "CODIGO", "MOUSE"],
            ["ITEM", "CODIGO", "CABLES"],
            ["1", "CAB1", "Cable", "1", "2"],
        ])
        assert catalog.categories == {"CABLES": 1, "MOUSE": 2}
        assert catalog.entries[0].category == "CABLES"


class TestReadRawRows:
    """Tests for file decoding and delimiter detection."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_raw_rows(str(tmp_path / "missing.csv"))

    def test_semicolon_delimiter(self, tmp_path):
        path = tmp_path / "semi.csv"
        path.write_text("ITEM;CODIGO;CABLES\n1;CAB1;Cable HDMI\n", encoding="utf-8")
        assert read_raw_rows(str(path)) == [
            ["ITEM", "CODIGO", "CABLES"],
            ["1", "CAB1", "Cable HDMI"],
        ]

    def test_latin1_file(self, tmp_path):
        path = tmp_path / "latin.csv"
        path.write_bytes("ITEM,CODIGO,CAMARAS\n1,CAM1,Cámara web\n".encode("latin-1"))
        rows = read_raw_rows(str(path))
        assert rows[1][2] == "Cámara web"

    def test_utf8_bom_is_stripped(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_bytes("ITEM,CODIGO,CABLES\n".encode("utf-8-sig"))
        assert read_raw_rows(str(path))[0][0] == "ITEM"
