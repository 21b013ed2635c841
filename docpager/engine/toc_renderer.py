"""Synthesizes the table of contents as an already-rasterized block."""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from PIL import Image, ImageDraw, ImageFont

from ..models.content import ElementKind, RasterizedBlock, StructuralElement
from ..models.results import HeadingEntry
from ..options import TocOptions
from .geometry import MM_TO_PX, PageGeometry
from .placeholder_resolver import PlaceholderResolver

logger = logging.getLogger(__name__)

PT_TO_PX = 96.0 / 72.0
ROW_SPACING = 1.8
TITLE_SPACING = 2.4
NUMBER_GAP = 4  # px between leader dots and the page number
TEXT_COLOR = (0, 0, 0)
LEADER_COLOR = (128, 128, 128)


class TocRenderer:
    """
    Draws TOC pages with Pillow.

    Row heights are fixed, so the rendered height depends only on the number
    of entries, never on the page numbers printed in them.
    """

    def __init__(
        self,
        geometry: PageGeometry,
        options: TocOptions,
        quality: float = 2.0,
        interpolator: Optional[PlaceholderResolver] = None,
    ):
        self.options = options
        self.quality = quality
        self.interpolator = interpolator or PlaceholderResolver()
        self.natural_width = geometry.content_width_px(1.0)
        self.width = int(round(self.natural_width * quality))
        self.font_px = max(1, int(round(options.font_size * PT_TO_PX * quality)))
        self.title_px = max(1, int(round(options.title_font_size * PT_TO_PX * quality)))
        self.row_height = int(round(self.font_px * ROW_SPACING))
        self.title_height = int(round(self.title_px * TITLE_SPACING)) if options.title else 0
        self.indent = int(round(options.indent_per_level * MM_TO_PX * quality))
        self.font = ImageFont.load_default(size=self.font_px)
        self.title_font = ImageFont.load_default(size=self.title_px)

    def entries(self, headings: Sequence[HeadingEntry]) -> list:
        return [h for h in headings if h.level in self.options.levels]

    def height_for(self, count: int) -> int:
        return max(1, self.title_height + count * self.row_height)

    def render(
        self,
        headings: Sequence[HeadingEntry],
        page_numbers: Optional[Mapping[str, int]] = None,
    ) -> RasterizedBlock:
        """
        Render the TOC.

        Args:
            headings: Headings in document order
            page_numbers: 1-based page number per anchor id; omitted entries print no number
        """
        entries = self.entries(headings)
        page_numbers = page_numbers or {}
        height = self.height_for(len(entries))
        image = Image.new("RGB", (self.width, height), "white")
        draw = ImageDraw.Draw(image)
        elements = []

        if self.title_height:
            draw.text((0, 0), self.options.title, font=self.title_font, fill=TEXT_COLOR)
            # keep the title with the first entry
            keep_end = self.title_height + (self.row_height if entries else 0)
            elements.append(StructuralElement(ElementKind.AVOID, 0, keep_end / self.quality))

        for row, entry in enumerate(entries):
            top = self.title_height + row * self.row_height
            number = page_numbers.get(entry.anchor_id)
            self._draw_row(draw, entry, number, top)
            elements.append(
                StructuralElement(
                    ElementKind.TOC_ENTRY,
                    top / self.quality,
                    (top + self.row_height) / self.quality,
                    level=entry.level,
                    text=entry.text,
                    link_anchor=entry.anchor_id,
                )
            )
            logger.debug(f"TOC row {row}: level {entry.level} '{entry.text}' -> {number}")

        return RasterizedBlock(
            image=image,
            pixel_ratio=self.quality,
            elements=tuple(elements),
            block_id="toc",
        )

    def _draw_row(self, draw: ImageDraw.ImageDraw, entry: HeadingEntry, number: Optional[int], top: int) -> None:
        levels = sorted(self.options.levels)
        depth = levels.index(entry.level) if entry.level in levels else 0
        x = depth * self.indent
        y = top + (self.row_height - self.font_px) // 2
        text = self.interpolator.interpolate(
            self.options.entry_template,
            {"text": entry.text, "level": entry.level, "pageNumber": number, "anchor": entry.anchor_id},
        )
        draw.text((x, y), text, font=self.font, fill=TEXT_COLOR)
        if not self.options.include_page_numbers or number is None:
            return

        label = str(number)
        label_width = draw.textlength(label, font=self.font)
        label_x = self.width - label_width
        draw.text((label_x, y), label, font=self.font, fill=TEXT_COLOR)

        text_end = x + draw.textlength(text, font=self.font) + NUMBER_GAP
        dot_width = draw.textlength(". ", font=self.font)
        space = label_x - NUMBER_GAP - text_end
        if dot_width > 0 and space > dot_width:
            leaders = ". " * int(space // dot_width)
            draw.text((label_x - NUMBER_GAP - draw.textlength(leaders, font=self.font), y), leaders, font=self.font, fill=LEADER_COLOR)
