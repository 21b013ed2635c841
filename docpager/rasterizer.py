"""
Rasterizer contract.

A rasterizer measures a content block at a viewport width and renders it to a
Pillow image at a given scale. Either method may be a coroutine function; the
engine awaits whatever comes back.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Union

from PIL import Image

from .exceptions import RasterizationError
from .models.content import BlockLayout, ContentBlock, MediaType, RasterizedBlock

logger = logging.getLogger(__name__)


class Rasterizer(ABC):
    """Measures and renders content blocks."""

    @abstractmethod
    def measure(self, block: ContentBlock, viewport_width: float, media: MediaType) -> Union[BlockLayout, Awaitable[BlockLayout]]:
        """Return the natural size and element geometry of ``block`` laid out at ``viewport_width`` px."""

    @abstractmethod
    def rasterize(self, block: ContentBlock, scale: float, media: MediaType) -> Union[Image.Image, Awaitable[Image.Image]]:
        """Render ``block`` at ``scale`` bitmap pixels per natural pixel."""


class BitmapRasterizer(Rasterizer):
    """Resamples already-rasterized blocks with Pillow."""

    def __init__(self, resample: Image.Resampling = Image.Resampling.LANCZOS):
        self.resample = resample

    def measure(self, block: ContentBlock, viewport_width: float, media: MediaType) -> BlockLayout:
        bitmap = self._bitmap(block)
        width, height = bitmap.natural_size
        return BlockLayout(width=width, height=height, elements=tuple(bitmap.elements))

    def rasterize(self, block: ContentBlock, scale: float, media: MediaType) -> Image.Image:
        bitmap = self._bitmap(block)
        natural_width, natural_height = bitmap.natural_size
        target = (max(1, int(round(natural_width * scale))), max(1, int(round(natural_height * scale))))
        image = bitmap.image
        if image.mode not in ("RGB", "RGBA", "L"):
            image = image.convert("RGBA")
        if image.size == target:
            return image.copy()
        logger.debug(f"Resampling {block.block_id} from {image.size} to {target}")
        return image.resize(target, self.resample)

    @staticmethod
    def _bitmap(block: ContentBlock) -> RasterizedBlock:
        if not isinstance(block, RasterizedBlock):
            raise RasterizationError(
                "No rasterizer configured for content",
                f"{type(block).__name__} {block.block_id} needs a Rasterizer",
            )
        return block
