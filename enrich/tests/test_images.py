"""Tests for image URL construction and resolution."""

import asyncio

from enrich.client import FetchError
from enrich.config import IMAGE_PAGE_URL
from enrich.images import build_image_url, find_image_in_page, resolve_image
from enrich.models import ImageResult
from fakes import IMAGE_PAGE_HTML, FakeClient


class TestBuildImageUrl:
    def test_conventional_url(self):
        assert build_image_url("AB12XYZ") == (
            "https://imagenes.deltron.com.pe/images/productos/items/large/ab/12/ab12xyz.jpg"
        )

    def test_short_code(self):
        assert build_image_url("A") == (
            "https://imagenes.deltron.com.pe/images/productos/items/large/a//a.jpg"
        )


class TestFindImageInPage:
    """Tests for picking the product image out of the image page."""

    def test_center_image_preferred(self):
        found = find_image_in_page(IMAGE_PAGE_HTML, "ACTE70207W")
        assert found == (
            "https://www.deltron.com.pe/images/productos/items/large/ac/te/acte70207w.jpg",
            "Teclado USB",
        )

    def test_image_matching_code(self):
        html = '<img src="/logo.png"><img src="https://cdn.example.com/x/acte70207w.jpg">'
        found = find_image_in_page(html, "ACTE70207W")
        assert found == ("https://cdn.example.com/x/acte70207w.jpg", "Product image ACTE70207W")

    def test_image_matching_path_fragment(self):
        html = '<img src="/logo.png"><img src="/productos/otra.jpg" alt="Otra">'
        assert find_image_in_page(html, "X") == ("https://www.deltron.com.pe/productos/otra.jpg", "Otra")

    def test_relative_source_resolved_against_image_page(self):
        html = '<center><img src="../../imgs/acte.jpg"></center>'
        url, _ = find_image_in_page(html, "ACTE")
        assert url == "https://www.deltron.com.pe/modulos/imgs/acte.jpg"

    def test_explicit_page_url(self):
        html = '<center><img src="fotos/x.jpg"></center>'
        url, _ = find_image_in_page(html, "X", "https://img.example.com/a/page.php?item=X")
        assert url == "https://img.example.com/a/fotos/x.jpg"

    def test_empty_center_source_skipped(self):
        html = '<center><img src=""><img src="/images/productos/x.jpg" alt="X"></center>'
        assert find_image_in_page(html, "X") == ("https://www.deltron.com.pe/images/productos/x.jpg", "X")

    def test_empty_center_source_falls_back_to_document_scan(self):
        html = '<center><img src="  "></center><img src=""><img src="/items/x.jpg">'
        found = find_image_in_page(html, "X")
        assert found == ("https://www.deltron.com.pe/items/x.jpg", "Product image X")

    def test_no_matching_image(self):
        assert find_image_in_page('<img src="/logo.png">', "X") is None
        assert find_image_in_page("", "X") is None


class TestResolveImage:
    """Tests for the probe -> page -> fallback chain."""

    def test_probe_success(self):
        url = build_image_url("ACTE70207W")
        client = FakeClient(head={url: True})

        result = asyncio.run(resolve_image("ACTE70207W", client))

        assert result.image_url == url
        assert result.source == "probe"
        assert result.has_valid_image
        assert client.get_calls == []

    def test_image_page_used_when_probe_fails(self):
        client = FakeClient(pages={IMAGE_PAGE_URL.format(code="ACTE70207W"): IMAGE_PAGE_HTML})

        result = asyncio.run(resolve_image("ACTE70207W", client))

        assert result.source == "page"
        assert result.image_title == "Teclado USB"
        assert result.image_url.endswith("/ac/te/acte70207w.jpg")

    def test_page_relative_source(self):
        html = '<center><img src=""><img src="fotos/ab12xyz.jpg"></center>'
        client = FakeClient(pages={IMAGE_PAGE_URL.format(code="AB12XYZ"): html})

        result = asyncio.run(resolve_image("AB12XYZ", client))

        assert result.source == "page"
        assert result.image_url == "https://www.deltron.com.pe/modulos/productos/items/fotos/ab12xyz.jpg"

    def test_fallback_when_nothing_matches(self):
        """Failing probe and no matching image still yields the constructed URL."""
        client = FakeClient(pages={IMAGE_PAGE_URL.format(code="AB12XYZ"): "<html></html>"})

        result = asyncio.run(resolve_image("AB12XYZ", client))

        assert result.image_url == (
            "https://imagenes.deltron.com.pe/images/productos/items/large/ab/12/ab12xyz.jpg"
        )
        assert result.source == "fallback"
        assert not result.has_valid_image

    def test_never_raises_on_page_error(self):
        client = FakeClient(
            pages={IMAGE_PAGE_URL.format(code="AB12XYZ"): FetchError("u", "timeout after 5.0s")}
        )

        result = asyncio.run(resolve_image("AB12XYZ", client))

        assert result.source == "fallback"
        assert result.image_url.endswith("/ab/12/ab12xyz.jpg")


class TestHasValidImage:
    def test_no_image_placeholder_is_invalid(self):
        result = ImageResult("X", "https://example.com/no_image.jpg", "t", source="page")
        assert not result.has_valid_image

    def test_error_source_is_invalid(self):
        result = ImageResult("X", "https://example.com/x.jpg", "t", source="error")
        assert not result.has_valid_image
