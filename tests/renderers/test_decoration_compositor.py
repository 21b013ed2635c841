"""Tests for headers, footers, page numbers and watermarks."""

import base64
import io

import pytest
from PIL import Image

from docpager.engine.geometry import resolve_geometry
from docpager.models import WarningCode
from docpager.options import GeneratorOptions, HeaderFooterTemplate, TemplateOptions, WatermarkOptions
from docpager.renderers.decoration_compositor import DecorationCompositor, plain_text
from docpager.renderers.field_renderer import FieldRenderer
from docpager.renderers.watermark_renderer import WatermarkRenderer, decode_image
from docpager.writer.base import ImageOverlay, TextOverlay


def compositor(**overrides):
    options = GeneratorOptions(date="2024-01-01", **overrides)
    return DecorationCompositor.from_options(resolve_geometry(), options)


def texts(overlays):
    return [o.text for o in overlays if isinstance(o, TextOverlay)]


def png_bytes(color="red"):
    buffer = io.BytesIO()
    Image.new("RGBA", (8, 8), color).save(buffer, format="PNG")
    return buffer.getvalue()


class TestDecorationCompositor:
    """Test suite for DecorationCompositor."""

    def test_no_decorations_by_default(self):
        decorations = compositor().compose(0, 1)

        assert decorations.above == []
        assert decorations.below == []

    def test_footer_template_fields(self):
        footer = HeaderFooterTemplate("Page {{pageNumber}} of {{totalPages}}")

        decorations = compositor(footer=footer).compose(1, 3)

        assert texts(decorations.above) == ["Page 2 of 3"]
        overlay = decorations.above[0]
        assert overlay.x == pytest.approx(105.0)
        assert 297 - 15 < overlay.y < 297

    def test_header_skips_first_page(self):
        comp = compositor(header=HeaderFooterTemplate("Page {{pageNumber}}", first_page=False))

        assert comp.compose(0, 2).above == []
        assert texts(comp.compose(1, 2).above) == ["Page 2"]

    def test_header_uses_title_and_date(self):
        options = GeneratorOptions.from_dict(
            {"date": "2024-01-01", "header": {"template": "{{title}} - {{date}}"}, "metadata": {"title": "Report"}}
        )
        comp = DecorationCompositor.from_options(resolve_geometry(), options)

        decorations = comp.compose(0, 1)

        assert texts(decorations.above) == ["Report - 2024-01-01"]
        assert decorations.above[0].y < 15

    def test_multi_line_header_markup(self):
        header = HeaderFooterTemplate("<b>ACME</b><br>Confidential", height=20)

        lines = texts(compositor(header=header).compose(0, 1).above)

        assert lines == ["ACME", "Confidential"]

    def test_template_context_and_conditionals(self):
        template = TemplateOptions(context={"draft": True, "owner": "ops"})
        header = HeaderFooterTemplate("{{#if draft}}DRAFT {{owner}}{{/if}}")

        assert texts(compositor(header=header, template=template).compose(0, 1).above) == ["DRAFT ops"]

    def test_page_numbers(self):
        comp = compositor(show_page_numbers=True)

        decorations = comp.compose(0, 2)

        overlay = decorations.above[0]
        assert overlay.text == "1 / 2"
        assert overlay.y == pytest.approx(297 - 5)
        assert overlay.color == "#808080"

    def test_page_numbers_in_header(self):
        overlay = compositor(show_page_numbers=True, page_number_position="header").compose(0, 1).above[0]

        assert overlay.y == pytest.approx(5)

    def test_callbacks(self):
        comp = compositor(
            header_callback=lambda page, total: f"h{page}/{total}",
            footer_callback=lambda page, total: None,
        )

        assert texts(comp.compose(2, 3).above) == ["h3/3"]

    def test_text_watermark_defaults(self):
        decorations = compositor(watermark=WatermarkOptions(text="DRAFT")).compose(0, 1)

        overlay = decorations.above[0]
        assert overlay.text == "DRAFT"
        assert overlay.rotation == 45.0
        assert overlay.opacity == pytest.approx(0.1)
        assert (overlay.x, overlay.y) == (pytest.approx(105.0), pytest.approx(148.5))

    def test_watermark_first_page_only(self):
        comp = compositor(watermark=WatermarkOptions(text="DRAFT", all_pages=False))

        assert texts(comp.compose(0, 2).above) == ["DRAFT"]
        assert comp.compose(1, 2).above == []

    def test_watermark_below_content(self):
        comp = compositor(watermark=WatermarkOptions(text="DRAFT", layer="below"))

        decorations = comp.compose(0, 1)

        assert decorations.above == []
        assert texts(decorations.below) == ["DRAFT"]

    def test_unreadable_image_watermark_is_skipped(self):
        comp = compositor(watermark=WatermarkOptions(image=b"not an image"))

        assert comp.compose(0, 1).above == []
        assert [w.code for w in comp.warnings] == [WarningCode.WATERMARK_UNAVAILABLE]


class TestWatermarkRenderer:
    def test_image_from_data_url(self):
        url = "data:image/png;base64," + base64.b64encode(png_bytes()).decode()

        renderer = WatermarkRenderer(WatermarkOptions(image=url), resolve_geometry())
        overlay = renderer.overlays(0)[0]

        assert isinstance(overlay, ImageOverlay)
        assert overlay.opacity == pytest.approx(0.15)
        assert (overlay.x, overlay.y) == (pytest.approx(80.0), pytest.approx(123.5))

    def test_corner_positions(self):
        geometry = resolve_geometry()
        image = WatermarkRenderer(WatermarkOptions(image=png_bytes(), position="bottom-right"), geometry)
        text = WatermarkRenderer(WatermarkOptions(text="X", position="top-left"), geometry)

        image_overlay = image.overlays(0)[0]
        text_overlay = text.overlays(0)[0]

        assert (image_overlay.x, image_overlay.y) == (pytest.approx(150.0), pytest.approx(237.0))
        assert text_overlay.x > 10.0
        assert text_overlay.y == pytest.approx(48 * 0.35 / 2 + 10)
        assert text_overlay.rotation == 0.0

    def test_decode_rejects_plain_data_url(self):
        with pytest.raises(ValueError):
            decode_image("data:text/plain,hello")

    def test_decode_from_path(self, tmp_path):
        path = tmp_path / "mark.png"
        path.write_bytes(png_bytes())

        assert decode_image(path).size == (8, 8)

    def test_options_validation(self):
        with pytest.raises(ValueError):
            WatermarkOptions()
        with pytest.raises(ValueError):
            WatermarkOptions(text="x", opacity=2)
        with pytest.raises(ValueError):
            WatermarkOptions(text="x", position="middle")


class TestFieldRenderer:
    def test_context(self):
        fields = FieldRenderer(date="2024-01-01", title="T", extra={"team": "ops"})

        context = fields.context(0, 4)

        assert context == {"team": "ops", "pageNumber": 1, "totalPages": 4, "date": "2024-01-01", "title": "T"}

    def test_page_out_of_range(self):
        with pytest.raises(ValueError):
            FieldRenderer(date="").context(4, 4)


def test_plain_text_unescapes_entities():
    assert plain_text("a &amp; b<br/>c") == ["a & b", "c"]
