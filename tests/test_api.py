"""Tests for the high-level generation API."""

import asyncio
import io

import pytest
from PIL import Image
from PyPDF2 import PdfReader

from docpager import (
    BatchItem,
    NewPageMode,
    PdfGenerator,
    estimate_page_count,
    generate_batch_pdf,
    generate_batch_pdf_blob,
    generate_pdf,
    generate_pdf_blob,
    sanitize_filename,
)
from docpager.api import as_batch_item, as_options
from docpager.exceptions import LayoutError
from docpager.options import DEFAULT_OPTIONS, GeneratorOptions

from tests.conftest import A4_CONTENT_WIDTH_PX, bitmap_block, solid_image


def page_count(pdf):
    return len(PdfReader(io.BytesIO(pdf)).pages)


class TestSanitizeFilename:
    def test_replaces_unsafe_characters(self):
        assert sanitize_filename("My Report: 2024!") == "My_Report_2024.pdf"

    def test_fallback(self):
        assert sanitize_filename("???") == "document.pdf"

    def test_truncates(self):
        assert sanitize_filename("x" * 80) == "x" * 50 + ".pdf"


class TestHelpers:
    def test_estimate_page_count(self):
        assert estimate_page_count(2500, 1000) == 3

    def test_estimate_needs_page_height(self):
        with pytest.raises(ValueError):
            estimate_page_count(100, 0)

    def test_options_from_dict(self):
        options = as_options({"paper_format": "letter", "margins": 5, "toc": {"enabled": True, "levels": [1]}})

        assert options.paper_format == "letter"
        assert options.margins == (5.0, 5.0, 5.0, 5.0)
        assert options.toc.levels == (1,)
        assert as_options(None) is DEFAULT_OPTIONS

    def test_unknown_option(self):
        with pytest.raises(ValueError):
            as_options({"colour": "red"})

    def test_invalid_option_values(self):
        with pytest.raises(ValueError):
            GeneratorOptions(image_format="gif")
        with pytest.raises(ValueError):
            GeneratorOptions(scale=0)

    def test_batch_item_from_dict(self):
        item = as_batch_item({"content": solid_image(10, 10), "page_count": 2, "new_page": True, "title": "Cover"})

        assert item.page_count == 2
        assert item.new_page is NewPageMode.FORCE
        assert item.title == "Cover"

    def test_new_page_flags(self):
        assert NewPageMode.from_flag(False) is NewPageMode.ALLOW
        assert NewPageMode.from_flag(None) is NewPageMode.DEFAULT_BREAK_AFTER
        assert NewPageMode.from_flag("force") is NewPageMode.FORCE

    def test_invalid_page_count(self):
        with pytest.raises(ValueError):
            BatchItem(bitmap_block(10), page_count=0)


class TestPdfGenerator:
    """End-to-end generation through the real PDF writer."""

    @pytest.mark.integration
    def test_generate_pdf_writes_file(self, tmp_path):
        target = tmp_path / "out" / "report.pdf"

        result = generate_pdf(solid_image(A4_CONTENT_WIDTH_PX, 2500), target, {"scale": 1.0})

        assert result.page_count == 3
        assert target.read_bytes() == result.pdf
        assert result.filename == str(target)
        assert page_count(result.pdf) == 3

    @pytest.mark.integration
    def test_unsafe_filename_is_sanitized(self, tmp_path):
        result = generate_pdf(solid_image(100, 100), tmp_path / "Q3: results?", {"scale": 1.0})

        assert result.filename.endswith("Q3_results.pdf")

    @pytest.mark.integration
    def test_blob(self):
        pdf = generate_pdf_blob(solid_image(200, 100), {"scale": 1.0})

        assert pdf.startswith(b"%PDF")
        assert page_count(pdf) == 1

    @pytest.mark.integration
    def test_batch_with_toc_and_bookmarks(self, tmp_path):
        from docpager.models import StructuralElement

        items = [
            {"content": bitmap_block(300, elements=[StructuralElement.heading("Intro", 1, 0, 30)]), "title": "Intro"},
            {"content": bitmap_block(300, elements=[StructuralElement.heading("Body", 1, 0, 30)]), "page_count": 2},
        ]
        options = {
            "scale": 1.0,
            "toc": {"enabled": True},
            "bookmarks": {"enabled": True},
            "show_page_numbers": True,
            "watermark": {"text": "DRAFT"},
            "metadata": {"title": "Batch"},
        }

        result = generate_batch_pdf(items, tmp_path / "batch.pdf", options)

        assert result.total_pages == 4
        assert [(i.start_page, i.end_page) for i in result.items] == [(2, 2), (3, 4)]
        reader = PdfReader(io.BytesIO(result.pdf))
        assert len(reader.pages) == 4
        assert [entry.title for entry in reader.outline] == ["Intro", "Body"]
        assert reader.metadata.title == "Batch"

    @pytest.mark.integration
    def test_batch_blob_in_png(self):
        items = [BatchItem(bitmap_block(100), new_page=NewPageMode.FORCE) for _ in range(2)]

        pdf = generate_batch_pdf_blob(items, {"scale": 1.0, "image_format": "png"})

        assert page_count(pdf) == 2

    def test_callbacks(self):
        completed, errors = [], []
        generator = PdfGenerator(
            {"scale": 1.0, "on_complete": completed.append, "on_error": errors.append},
        )

        asyncio.run(generator.generate_batch([BatchItem(bitmap_block(50))]))
        with pytest.raises(LayoutError):
            asyncio.run(generator.generate_batch([]))

        assert len(completed) == 1 and completed[0].startswith(b"%PDF")
        assert len(errors) == 1 and isinstance(errors[0], LayoutError)

    def test_update_options(self):
        generator = PdfGenerator()

        generator.update_options(paper_format="a5", scale=1.5)

        assert generator.get_config().paper_format == "a5"
        assert generator.get_config().scale == 1.5
        assert DEFAULT_OPTIONS.paper_format == "a4"

    def test_generate_from_bytes(self):
        buffer = io.BytesIO()
        Image.new("RGB", (300, 200), "white").save(buffer, format="PNG")
        generator = PdfGenerator({"scale": 1.0})

        result = asyncio.run(generator.generate(buffer.getvalue()))

        assert result.page_count == 1
        assert result.filename is None
