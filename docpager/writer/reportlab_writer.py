"""PDF page writer built on ReportLab's canvas."""

from __future__ import annotations

import io
import logging
from typing import Optional, Sequence

from reportlab.lib.pdfencrypt import StandardEncryption
from reportlab.pdfgen.canvas import Canvas

from ..engine.geometry import mm_to_points
from ..exceptions import WriterError
from ..models.results import OutlineNode
from ..options import DocumentMetadata, SecurityOptions
from ..renderers.overlay_renderer import OverlayRenderer
from .base import ComposedPage, PageWriter

logger = logging.getLogger(__name__)


def page_key(page_index: int) -> str:
    return f"page-{page_index}"


class ReportLabPageWriter(PageWriter):
    """
    Writes composed pages to a PDF.

    The canvas is created with the first page so that security settings given
    before it can still be applied.
    """

    def __init__(self, image_format: str = "jpeg", image_quality: float = 0.85, compress: bool = True):
        self.image_format = image_format
        self.image_quality = image_quality
        self.compress = compress
        self._buffer = io.BytesIO()
        self._canvas: Optional[Canvas] = None
        self._metadata: Optional[DocumentMetadata] = None
        self._encrypt: Optional[StandardEncryption] = None
        self._page_count = 0
        self._finished = False

    @property
    def page_count(self) -> int:
        return self._page_count

    def set_metadata(self, metadata: DocumentMetadata) -> None:
        self._metadata = metadata
        if self._canvas is not None:
            self._apply_metadata(self._canvas)

    def set_security(self, security: SecurityOptions) -> None:
        if not security.enabled:
            return
        if self._canvas is not None:
            raise WriterError("Security must be configured before the first page")
        permissions = security.permissions
        kwargs = dict(
            userPassword=security.user_password or "",
            ownerPassword=security.owner_password or None,
            canPrint=0 if permissions.printing == "none" else 1,
            canModify=int(permissions.modifying),
            canCopy=int(permissions.copying),
            canAnnotate=int(permissions.annotating),
        )
        try:
            self._encrypt = StandardEncryption(strength=security.encryption_strength, **kwargs)
        except ValueError as exc:
            logger.warning(f"Encryption strength {security.encryption_strength} unsupported ({exc}); using 128-bit")
            self._encrypt = StandardEncryption(strength=128, **kwargs)

    def _ensure_canvas(self, page: ComposedPage) -> Canvas:
        if self._finished:
            raise WriterError("Writer already finished")
        if self._canvas is None:
            size = (mm_to_points(page.geometry.width), mm_to_points(page.geometry.height))
            self._canvas = Canvas(
                self._buffer,
                pagesize=size,
                pageCompression=1 if self.compress else 0,
                encrypt=self._encrypt,
            )
            if self._metadata is not None:
                self._apply_metadata(self._canvas)
        return self._canvas

    def _apply_metadata(self, canvas: Canvas) -> None:
        metadata = self._metadata
        if metadata.title:
            canvas.setTitle(metadata.title)
        if metadata.author:
            canvas.setAuthor(metadata.author)
        if metadata.subject:
            canvas.setSubject(metadata.subject)
        if metadata.keywords:
            canvas.setKeywords(", ".join(metadata.keywords))
        if metadata.creator:
            canvas.setCreator(metadata.creator)
        if metadata.producer:
            canvas.setProducer(metadata.producer)

    def add_page(self, page: ComposedPage) -> None:
        if page.index != self._page_count:
            raise WriterError("Pages must be added in order", f"expected {self._page_count}, got {page.index}")
        canvas = self._ensure_canvas(page)
        geometry = page.geometry
        canvas.setPageSize((mm_to_points(geometry.width), mm_to_points(geometry.height)))
        canvas.bookmarkPage(page_key(page.index))

        renderer = OverlayRenderer(canvas, geometry.height, self.image_format, self.image_quality)
        for overlay in page.below:
            renderer.draw(overlay)
        for tile in page.tiles:
            renderer.draw_tile(tile)
        for overlay in page.above:
            renderer.draw(overlay)
        for link in page.links:
            renderer.draw_link(link, page_key(link.target_page_index))

        canvas.showPage()
        self._page_count += 1
        logger.debug(f"Wrote page {page.number}: {len(page.tiles)} tile(s), {len(page.above) + len(page.below)} overlay(s)")

    def attach_outline(self, nodes: Sequence[OutlineNode], open_by_default: bool = False) -> None:
        if self._canvas is None:
            raise WriterError("Outline needs at least one page")
        for root in nodes:
            self._add_outline_node(root, 0)
        if open_by_default:
            self._canvas.showOutline()

    def _add_outline_node(self, node: OutlineNode, depth: int) -> None:
        if not 0 <= node.page_index < self._page_count:
            logger.warning(f"Outline entry '{node.title}' points outside the document; skipped with its children")
            return
        self._canvas.addOutlineEntry(node.title, page_key(node.page_index), level=depth, closed=None)
        for child in node.children:
            self._add_outline_node(child, depth + 1)

    def finish(self) -> bytes:
        if self._canvas is None:
            raise WriterError("Cannot finish a document without pages")
        if not self._finished:
            self._canvas.save()
            self._finished = True
        return self._buffer.getvalue()
