"""
Per-page decorations: headers, footers, page numbers and watermarks.

Decorations are overlay instructions layered above or below the content tiles.
They never change the page geometry, so pagination is final before this runs.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..engine.geometry import PageGeometry
from ..engine.placeholder_resolver import PlaceholderResolver
from ..models.results import LayoutWarning
from ..options import GeneratorOptions, HeaderFooterTemplate
from ..writer.base import TextOverlay
from .field_renderer import FieldRenderer
from .watermark_renderer import WatermarkRenderer

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(r"<[^>]+>")
LINE_HEIGHT = 1.2
PT_TO_MM = 25.4 / 72.0

PAGE_NUMBER_FONT_SIZE = 10.0
PAGE_NUMBER_COLOR = "#808080"
PAGE_NUMBER_INSET = 5.0
CALLBACK_INSET = 7.0
CALLBACK_COLOR = "#404040"


@dataclass(slots=True)
class PageDecorations:
    below: List[object] = field(default_factory=list)
    above: List[object] = field(default_factory=list)


def plain_text(template_output: str) -> List[str]:
    """Strip markup and split into non-empty lines."""
    text = TAG_PATTERN.sub("", template_output.replace("<br>", "\n").replace("<br/>", "\n"))
    return [line.strip() for line in html.unescape(text).splitlines() if line.strip()]


class DecorationCompositor:
    """Builds the overlay instructions for one page at a time."""

    def __init__(
        self,
        geometry: PageGeometry,
        header: Optional[HeaderFooterTemplate] = None,
        footer: Optional[HeaderFooterTemplate] = None,
        watermark: Optional[WatermarkRenderer] = None,
        fields: Optional[FieldRenderer] = None,
        interpolator: Optional[PlaceholderResolver] = None,
        show_page_numbers: bool = False,
        page_number_position: str = "footer",
        header_callback: Optional[Callable[[int, int], Optional[str]]] = None,
        footer_callback: Optional[Callable[[int, int], Optional[str]]] = None,
        watermark_below: bool = False,
    ):
        self.geometry = geometry
        self.header = header
        self.footer = footer
        self.watermark = watermark
        self.fields = fields or FieldRenderer(date="")
        self.interpolator = interpolator or PlaceholderResolver()
        self.show_page_numbers = show_page_numbers
        self.page_number_position = page_number_position
        self.header_callback = header_callback
        self.footer_callback = footer_callback
        self.watermark_below = watermark_below

    @classmethod
    def from_options(cls, geometry: PageGeometry, options: GeneratorOptions) -> "DecorationCompositor":
        watermark = WatermarkRenderer(options.watermark, geometry) if options.watermark else None
        fields = FieldRenderer(
            date=options.date_text(),
            title=options.metadata.title,
            extra=options.template.context,
        )
        interpolator = PlaceholderResolver(
            enable_loops=options.template.enable_loops,
            enable_conditionals=options.template.enable_conditionals,
        )
        return cls(
            geometry,
            header=options.header,
            footer=options.footer,
            watermark=watermark,
            fields=fields,
            interpolator=interpolator,
            show_page_numbers=options.show_page_numbers,
            page_number_position=options.page_number_position,
            header_callback=options.header_callback,
            footer_callback=options.footer_callback,
            watermark_below=bool(options.watermark and options.watermark.layer == "below"),
        )

    @property
    def warnings(self) -> List[LayoutWarning]:
        return list(self.watermark.warnings) if self.watermark else []

    def compose(self, page_index: int, total_pages: int) -> PageDecorations:
        decorations = PageDecorations()
        context = self.fields.context(page_index, total_pages)

        if self.header and (page_index > 0 or self.header.first_page):
            decorations.above.extend(self._band(self.header, context, at_top=True))
        if self.footer and (page_index > 0 or self.footer.first_page):
            decorations.above.extend(self._band(self.footer, context, at_top=False))

        for callback, at_top in ((self.header_callback, True), (self.footer_callback, False)):
            if callback is None:
                continue
            text = callback(page_index + 1, total_pages)
            if text:
                y = CALLBACK_INSET if at_top else self.geometry.height - CALLBACK_INSET
                decorations.above.append(self._centered(text, y, PAGE_NUMBER_FONT_SIZE, CALLBACK_COLOR))

        if self.show_page_numbers:
            label = self.fields.page_label(page_index, total_pages)
            if self.page_number_position == "header":
                y = PAGE_NUMBER_INSET
            else:
                y = self.geometry.height - PAGE_NUMBER_INSET
            decorations.above.append(self._centered(label, y, PAGE_NUMBER_FONT_SIZE, PAGE_NUMBER_COLOR))

        if self.watermark:
            overlays = self.watermark.overlays(page_index)
            if self.watermark_below:
                decorations.below.extend(overlays)
            else:
                decorations.above.extend(overlays)

        logger.debug(
            f"Page {page_index + 1}/{total_pages}: {len(decorations.above)} overlay(s) above, "
            f"{len(decorations.below)} below"
        )
        return decorations

    def _band(self, spec: HeaderFooterTemplate, context: dict, at_top: bool) -> List[TextOverlay]:
        lines = plain_text(self.interpolator.interpolate(spec.template, context))
        if not lines:
            return []
        line_height = spec.font_size * PT_TO_MM * LINE_HEIGHT
        block_height = line_height * len(lines)
        band_top = 0.0 if at_top else self.geometry.height - spec.height
        # first baseline so the block is vertically centred in the band
        first = band_top + (spec.height - block_height) / 2 + spec.font_size * PT_TO_MM
        return [
            self._centered(line, first + i * line_height, spec.font_size, spec.color)
            for i, line in enumerate(lines)
        ]

    def _centered(self, text: str, y: float, font_size: float, color: str) -> TextOverlay:
        rect = self.geometry.content_rect
        return TextOverlay(
            text=text,
            x=rect.left + rect.width / 2,
            y=y,
            font_size=font_size,
            color=color,
            align="center",
        )
