"""
Watermark overlays.

Text and image watermarks are turned into overlay instructions positioned in
page millimetres. Image watermarks accept Pillow images, raw bytes, file paths
or ``data:`` URLs.
"""

from __future__ import annotations

import base64
import io
import logging
from pathlib import Path
from typing import List, Optional

from PIL import Image
from reportlab.pdfbase.pdfmetrics import stringWidth

from ..engine.geometry import MM_TO_POINTS, PageGeometry
from ..models.results import LayoutWarning, WarningCode
from ..options import WatermarkOptions
from ..writer.base import ImageOverlay, TextOverlay

logger = logging.getLogger(__name__)

EDGE_INSET = 10.0  # mm from the page edge for corner positions
TEXT_HEIGHT_RATIO = 0.35  # approximate cap height in mm per point of font size
FONT_NAME = "Helvetica"


def decode_image(source: object) -> Image.Image:
    """Load a watermark image from any supported source."""
    if isinstance(source, Image.Image):
        return source
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
    elif isinstance(source, str) and source.startswith("data:"):
        header, _, payload = source.partition(",")
        if ";base64" not in header:
            raise ValueError("Only base64 data URLs are supported")
        data = base64.b64decode(payload, validate=True)
    elif isinstance(source, (str, Path)):
        data = Path(source).read_bytes()
    else:
        raise ValueError(f"Unsupported watermark image source: {type(source).__name__}")
    with Image.open(io.BytesIO(data)) as image:
        image.load()
        return image.copy()


class WatermarkRenderer:
    """Builds the watermark overlay for each page."""

    def __init__(self, options: WatermarkOptions, geometry: PageGeometry):
        self.options = options
        self.geometry = geometry
        self.warnings: List[LayoutWarning] = []
        self.image: Optional[Image.Image] = None
        if options.image is not None:
            try:
                self.image = decode_image(options.image)
            except (OSError, ValueError) as exc:
                message = f"Watermark image could not be loaded: {exc}"
                logger.warning(message)
                self.warnings.append(LayoutWarning(WarningCode.WATERMARK_UNAVAILABLE, message))

    def applies_to(self, page_index: int) -> bool:
        return self.options.all_pages or page_index == 0

    def overlays(self, page_index: int) -> list:
        if not self.applies_to(page_index):
            return []
        result: list = []
        if self.options.text:
            result.append(self._text_overlay())
        if self.image is not None:
            result.append(self._image_overlay())
        return result

    def _text_overlay(self) -> TextOverlay:
        opts = self.options
        width, height = self.geometry.width, self.geometry.height
        text_width = stringWidth(opts.text, FONT_NAME, opts.font_size) / MM_TO_POINTS
        text_height = opts.font_size * TEXT_HEIGHT_RATIO

        x, y = width / 2, height / 2
        position = opts.effective_position
        if position in ("top-left", "bottom-left"):
            x = text_width / 2 + EDGE_INSET
        elif position in ("top-right", "bottom-right"):
            x = width - text_width / 2 - EDGE_INSET
        if position in ("top-left", "top-right"):
            y = text_height / 2 + EDGE_INSET
        elif position in ("bottom-left", "bottom-right"):
            y = height - text_height / 2 - EDGE_INSET

        return TextOverlay(
            text=opts.text,
            x=x,
            y=y,
            font_size=opts.font_size,
            color=opts.color,
            align="center",
            rotation=opts.effective_rotation,
            opacity=opts.effective_opacity,
            font_name=FONT_NAME,
        )

    def _image_overlay(self) -> ImageOverlay:
        opts = self.options
        width, height = self.geometry.width, self.geometry.height
        image_width, image_height = opts.width, opts.height

        x, y = (width - image_width) / 2, (height - image_height) / 2
        position = opts.effective_position
        if position in ("top-left", "bottom-left"):
            x = EDGE_INSET
        elif position in ("top-right", "bottom-right"):
            x = width - image_width - EDGE_INSET
        if position in ("top-left", "top-right"):
            y = EDGE_INSET
        elif position in ("bottom-left", "bottom-right"):
            y = height - image_height - EDGE_INSET

        return ImageOverlay(
            image=self.image,
            x=x,
            y=y,
            width=image_width,
            height=image_height,
            opacity=opts.effective_opacity,
            rotation=opts.rotation or 0.0,
        )
