"""Tests for content and result models."""

import pytest

from docpager.exceptions import DocPagerError, GenerationCancelled, InvalidGeometry, GeometryError
from docpager.models import (
    ElementKind,
    HeadingEntry,
    LayoutWarning,
    OutlineNode,
    RasterizedBlock,
    StructuralElement,
    WarningCode,
    as_content_block,
)

from tests.conftest import solid_image


class TestStructuralElement:
    def test_kind_is_coerced(self):
        element = StructuralElement("table_row", 0, 10)

        assert element.kind is ElementKind.TABLE_ROW
        assert element.height == 10

    def test_inverted_geometry(self):
        with pytest.raises(ValueError):
            StructuralElement(ElementKind.GENERIC, 10, 5)

    def test_heading_factory(self):
        heading = StructuralElement.heading("Intro", 2, 0, 20)

        assert heading.tag == "h2"
        assert heading.level == 2


class TestRasterizedBlock:
    def test_natural_size_uses_pixel_ratio(self):
        block = RasterizedBlock(image=solid_image(200, 100), pixel_ratio=2.0)

        assert block.natural_size == (100.0, 50.0)
        assert not block.needs_rasterizer

    def test_unique_block_ids(self):
        first = as_content_block(solid_image(1, 1))
        second = as_content_block(solid_image(1, 1))

        assert first.block_id != second.block_id

    def test_validation(self):
        with pytest.raises(ValueError):
            RasterizedBlock()
        with pytest.raises(ValueError):
            RasterizedBlock(image=solid_image(1, 1), pixel_ratio=0)


class TestResults:
    def test_heading_resolves_once(self):
        heading = HeadingEntry("Intro", 1, "intro", 0, 0)

        assert heading.page_number is None
        heading.resolve(3)
        assert heading.page_number == 4
        with pytest.raises(ValueError):
            heading.resolve(5)

    def test_warning_text(self):
        warning = LayoutWarning(WarningCode.FORBIDDEN_RANGE_SPLIT, "split", offset=100).with_item(2)

        assert str(warning) == "[forbidden-range-split] split (item 2, offset 100px)"

    def test_outline_walk(self):
        root = OutlineNode("A", 0, 1, [OutlineNode("B", 1, 2, [OutlineNode("C", 2, 3)])])

        assert [(n.title, d) for n, d in root.walk()] == [("A", 0), ("B", 1), ("C", 2)]


class TestExceptions:
    def test_message_and_details(self):
        error = InvalidGeometry("Bad margins", "left=-1")

        assert str(error) == "Bad margins: left=-1"
        assert isinstance(error, GeometryError)
        assert isinstance(error, DocPagerError)

    def test_cancelled_default_message(self):
        assert "cancelled" in str(GenerationCancelled()).lower()
