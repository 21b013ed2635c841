"""
Pytest configuration for docpager
"""

import logging
import sys
from typing import List, Optional, Sequence

import pytest
from PIL import Image

from docpager.models import BlockLayout, RasterizableBlock, RasterizedBlock, StructuralElement
from docpager.models.results import OutlineNode
from docpager.options import DocumentMetadata, GeneratorOptions, SecurityOptions
from docpager.rasterizer import Rasterizer
from docpager.writer.base import ComposedPage, PageWriter

# Content width of A4 with 10 mm margins at 96 DPI
A4_CONTENT_WIDTH_PX = 718
# Content height of A4 with 10 mm margins at quality 1.0
A4_CONTENT_HEIGHT_PX = 1046


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


@pytest.fixture(autouse=True)
def configure_logging():
    """Configure logging for tests to avoid handlers leaking between tests."""
    package_logger = logging.getLogger("docpager")
    package_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)  # Only show warnings and errors during tests
    console_handler.setFormatter(logging.Formatter('%(name)s - %(levelname)s - %(message)s'))
    package_logger.addHandler(console_handler)
    package_logger.setLevel(logging.DEBUG)

    yield

    package_logger.handlers.clear()


def solid_image(width: int, height: int, color: str = "white", mode: str = "RGB") -> Image.Image:
    return Image.new(mode, (width, height), color)


def bitmap_block(
    height: int,
    width: int = A4_CONTENT_WIDTH_PX,
    elements: Sequence[StructuralElement] = (),
    **kwargs,
) -> RasterizedBlock:
    """A plain bitmap block that exactly fills the A4 content width at pixel ratio 1."""
    return RasterizedBlock(image=solid_image(width, height), elements=tuple(elements), **kwargs)


@pytest.fixture
def options():
    """Options at quality 1.0 so bitmap pixels equal natural pixels."""
    return GeneratorOptions(scale=1.0, date="2024-01-01")


class FakeRasterizer(Rasterizer):
    """Measures ``{"width", "height", "elements"}`` sources and renders blank bitmaps."""

    def __init__(self):
        self.measured: List[float] = []
        self.scales: List[float] = []

    def measure(self, block, viewport_width, media):
        self.measured.append(viewport_width)
        source = block.source
        return BlockLayout(source["width"], source["height"], tuple(source.get("elements", ())))

    def rasterize(self, block, scale, media):
        self.scales.append(scale)
        source = block.source
        return solid_image(max(1, round(source["width"] * scale)), max(1, round(source["height"] * scale)))


class AsyncFakeRasterizer(FakeRasterizer):
    """Same as ``FakeRasterizer`` but with coroutine methods."""

    async def measure(self, block, viewport_width, media):
        return FakeRasterizer.measure(self, block, viewport_width, media)

    async def rasterize(self, block, scale, media):
        return FakeRasterizer.rasterize(self, block, scale, media)


class FailingRasterizer(Rasterizer):
    def measure(self, block, viewport_width, media):
        raise RuntimeError("renderer crashed")

    def rasterize(self, block, scale, media):
        raise RuntimeError("renderer crashed")


def source_block(width: float, height: float, elements: Sequence[StructuralElement] = ()) -> RasterizableBlock:
    return RasterizableBlock(source={"width": width, "height": height, "elements": tuple(elements)})


class RecordingWriter(PageWriter):
    """Keeps composed pages in memory instead of producing a PDF."""

    def __init__(self):
        self.pages: List[ComposedPage] = []
        self.outline: List[OutlineNode] = []
        self.open_outline = False
        self.metadata: Optional[DocumentMetadata] = None
        self.security: Optional[SecurityOptions] = None
        self.finished = False

    def set_metadata(self, metadata):
        self.metadata = metadata

    def set_security(self, security):
        self.security = security

    def add_page(self, page):
        assert page.index == len(self.pages)
        self.pages.append(page)

    def attach_outline(self, nodes, open_by_default=False):
        self.outline = list(nodes)
        self.open_outline = open_by_default

    def finish(self):
        self.finished = True
        return b"%PDF-recorded"


@pytest.fixture
def recording_writer():
    return RecordingWriter()


@pytest.fixture
def fake_rasterizer():
    return FakeRasterizer()


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to every test not marked as integration."""
    for item in items:
        if "integration" not in item.keywords and "unit" not in item.keywords:
            item.add_marker(pytest.mark.unit)
