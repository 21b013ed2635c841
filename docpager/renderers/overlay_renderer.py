"""Draw composed-page instructions onto a ReportLab canvas."""

from __future__ import annotations

import io
import logging

from PIL import Image
from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from ..engine.geometry import mm_to_points
from ..writer.base import ImageOverlay, ImageTile, LinkArea, TextOverlay

logger = logging.getLogger(__name__)


def to_color(value: str, opacity: float = 1.0) -> colors.Color:
    """Parse ``#rrggbb`` (or a ReportLab colour name) into a colour with alpha."""
    try:
        base = colors.HexColor(value) if value.startswith("#") else colors.toColor(value)
    except (ValueError, AttributeError):
        logger.debug(f"Unknown colour {value!r}, using grey")
        base = colors.Color(0.8, 0.8, 0.8)
    return colors.Color(base.red, base.green, base.blue, alpha=opacity)


class OverlayRenderer:
    """Draws tiles, overlays and links for one page; origin conversion happens here."""

    def __init__(self, canvas: Canvas, page_height_mm: float, image_format: str = "jpeg", image_quality: float = 0.85):
        self.canvas = canvas
        self.page_height_mm = page_height_mm
        self.image_format = image_format
        self.image_quality = image_quality

    def _y(self, top_mm: float, height_mm: float = 0.0) -> float:
        """Convert a top-left based ``y`` into ReportLab's bottom-left points."""
        return mm_to_points(self.page_height_mm - top_mm - height_mm)

    def draw(self, instruction: object) -> None:
        if isinstance(instruction, TextOverlay):
            self.draw_text(instruction)
        elif isinstance(instruction, ImageOverlay):
            self.draw_image(instruction)
        else:
            raise TypeError(f"Unsupported overlay: {type(instruction).__name__}")

    def draw_tile(self, tile: ImageTile) -> None:
        self.canvas.drawImage(
            self._reader(tile.image),
            mm_to_points(tile.x),
            self._y(tile.y, tile.height),
            width=mm_to_points(tile.width),
            height=mm_to_points(tile.height),
            mask="auto" if tile.image.mode == "RGBA" and self.image_format == "png" else None,
        )

    def draw_text(self, overlay: TextOverlay) -> None:
        if not overlay.text:
            return
        canvas = self.canvas
        canvas.saveState()
        fill = to_color(overlay.color, overlay.opacity)
        canvas.setFillColor(fill)
        canvas.setStrokeColor(fill)
        canvas.setFont(overlay.font_name, overlay.font_size)
        canvas.translate(mm_to_points(overlay.x), self._y(overlay.y))
        if overlay.rotation:
            canvas.rotate(overlay.rotation)
        if overlay.align == "center":
            canvas.drawCentredString(0, 0, overlay.text)
        elif overlay.align == "right":
            canvas.drawRightString(0, 0, overlay.text)
        else:
            canvas.drawString(0, 0, overlay.text)
        canvas.restoreState()

    def draw_image(self, overlay: ImageOverlay) -> None:
        canvas = self.canvas
        canvas.saveState()
        canvas.setFillAlpha(overlay.opacity)
        width, height = mm_to_points(overlay.width), mm_to_points(overlay.height)
        # rotate around the image centre
        canvas.translate(mm_to_points(overlay.x) + width / 2, self._y(overlay.y, overlay.height) + height / 2)
        if overlay.rotation:
            canvas.rotate(overlay.rotation)
        canvas.drawImage(
            ImageReader(overlay.image),
            -width / 2,
            -height / 2,
            width=width,
            height=height,
            mask="auto" if overlay.image.mode in ("RGBA", "LA", "P") else None,
        )
        canvas.restoreState()

    def draw_link(self, link: LinkArea, destination: str) -> None:
        rect = link.rect
        self.canvas.linkAbsolute(
            "",
            destination,
            Rect=(
                mm_to_points(rect.left),
                self._y(rect.bottom),
                mm_to_points(rect.right),
                self._y(rect.top),
            ),
            thickness=0,
        )

    def _reader(self, image: Image.Image) -> ImageReader:
        if self.image_format != "jpeg":
            return ImageReader(image)
        buffer = io.BytesIO()
        self._flatten(image).save(buffer, format="JPEG", quality=int(round(self.image_quality * 100)))
        buffer.seek(0)
        return ImageReader(buffer)

    @staticmethod
    def _flatten(image: Image.Image) -> Image.Image:
        if image.mode == "RGB":
            return image
        if image.mode in ("RGBA", "LA", "P"):
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[-1])
            return background
        return image.convert("RGB")

