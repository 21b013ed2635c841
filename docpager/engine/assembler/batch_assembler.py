"""
Batch assembler.

Runs one generation call end to end:
1. prepare every item (measure, scale, rasterize, constrain)
2. resolve TOC and outline (dry pass over the same items)
3. plan absolute pages honouring each item's new-page mode
4. compose decorations per page and hand pages to the writer in order
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Callable, Dict, List, Optional, Sequence

from ...exceptions import DocPagerError, GenerationCancelled, LayoutError, WriterError
from ...models.content import BatchItem, NewPageMode
from ...models.results import BatchResult, ItemResult, LayoutWarning, WarningCode
from ...options import GeneratorOptions
from ...rasterizer import Rasterizer
from ...renderers.decoration_compositor import DecorationCompositor
from ...writer.base import ComposedPage, ImageTile, LinkArea, PageWriter
from ...writer.reportlab_writer import ReportLabPageWriter
from ..geometry import MM_TO_PX, PageGeometry, Rect
from ..layout_pipeline import ItemPreparer, PreparedItem
from ..page_breaker import PageBreakEngine
from ..placeholder_resolver import PlaceholderResolver
from ..scaling import ScalingResolver
from ..toc_renderer import TocRenderer
from ..toc_resolver import Resolution, TocResolver
from ..unified_layout import LayoutPage, UnifiedLayout

logger = logging.getLogger(__name__)

WriterFactory = Callable[[], PageWriter]


class CancellationToken:
    """Cooperative cancellation, checked between items."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self, where: str = "") -> None:
        if self._cancelled:
            raise GenerationCancelled(details=where or None)


def needs_boundary(previous: Optional[PreparedItem], current: PreparedItem) -> bool:
    """Whether a page boundary must separate ``previous`` from ``current``."""
    if previous is None:
        return False
    return current.mode is NewPageMode.FORCE or previous.mode is NewPageMode.DEFAULT_BREAK_AFTER


class BatchAssembler:
    """Paginates and writes a batch of items with one shared page geometry."""

    def __init__(
        self,
        geometry: PageGeometry,
        options: GeneratorOptions,
        rasterizer: Optional[Rasterizer] = None,
        writer_factory: Optional[WriterFactory] = None,
        breaker: Optional[PageBreakEngine] = None,
        scaling: Optional[ScalingResolver] = None,
    ):
        self.geometry = geometry
        self.options = options
        self.preparer = ItemPreparer(geometry, options, rasterizer, scaling)
        self.breaker = breaker or PageBreakEngine()
        self.page_height = self.preparer.page_height_px
        self.quality = options.scale
        self.writer_factory = writer_factory or (
            lambda: ReportLabPageWriter(options.image_format, options.image_quality, options.compress)
        )

    def plan(self, items: Sequence[PreparedItem]) -> UnifiedLayout:
        """Assign every segment of every item to an absolute page."""
        layout = UnifiedLayout(self.page_height)
        previous: Optional[PreparedItem] = None
        for position, item in enumerate(items):
            capacity: Optional[int] = None
            base = layout.page_count
            last = layout.last_page
            if previous is not None and not needs_boundary(previous, item) and last is not None:
                if last.remaining > 0:
                    capacity = last.remaining
                    base = last.index

            plan = self.breaker.paginate(
                item.height,
                self.page_height,
                item.constraint,
                first_page_capacity=capacity,
                block_id=item.block_id,
                scale_factor=item.decision.scale,
            )
            for segment in plan.segments:
                layout.place(position, dataclasses.replace(segment, page_index=base + segment.page_index))
            layout.warnings.extend(w.with_item(item.index) for w in plan.warnings)
            previous = item
        return layout

    async def prepare(self, items: Sequence[BatchItem], cancel: Optional[CancellationToken] = None) -> List[PreparedItem]:
        prepared = []
        for index, item in enumerate(items):
            if cancel is not None:
                cancel.raise_if_cancelled(f"before item {index}")
            prepared.append(await self.preparer.prepare(item, index))
        return prepared

    def _resolver(self) -> TocResolver:
        options = self.options
        renderer = None
        if options.toc.enabled:
            renderer = TocRenderer(
                self.geometry,
                options.toc,
                self.quality,
                PlaceholderResolver(options.template.enable_loops, options.template.enable_conditionals),
            )
        return TocResolver(self, self.preparer, options.toc, options.bookmarks, renderer)

    async def generate(
        self,
        items: Sequence[BatchItem],
        cancel: Optional[CancellationToken] = None,
    ) -> BatchResult:
        """
        Generate one document from ``items``.

        Raises:
            LayoutError: if ``items`` is empty
            GenerationCancelled: if ``cancel`` fires between items
            RasterizationError, WriterError: on collaborator failures
        """
        if not items:
            raise LayoutError("Batch generation requires at least one content item")
        started = time.perf_counter()
        total_items = len(items)
        logger.info(f"Generating {total_items} item(s) on {self.geometry.format_name} {self.geometry.width}x{self.geometry.height}mm")

        prepared = await self.prepare(items, cancel)

        resolver = self._resolver()
        if resolver.active:
            resolution = await resolver.run(prepared)
        else:
            resolution = Resolution(items=prepared)

        layout = self.plan(resolution.items)
        total_pages = layout.page_count
        offset = 1 if resolution.toc_position == 0 else 0

        compositor = DecorationCompositor.from_options(self.geometry, self.options)
        anchors = resolution.anchors if self.options.toc.enable_links else {}

        # caller item index completed once this page is written
        completes_at: Dict[int, List[int]] = {}
        for index in range(total_items):
            _, last = layout.item_pages[index + offset]
            completes_at.setdefault(last, []).append(index)

        writer = self.writer_factory()
        self._write(writer.set_metadata, self.options.metadata)
        self._write(writer.set_security, self.options.security)

        completed = 0
        for page in layout.pages:
            composed = self.compose_page(page, resolution.items, compositor, total_pages, anchors)
            self._write(writer.add_page, composed)
            for index in completes_at.get(page.index, ()):
                completed += 1
                self._report_progress(completed, total_items)
                if cancel is not None and completed < total_items:
                    cancel.raise_if_cancelled(f"after item {index}")

        if resolution.outline:
            self._write(writer.attach_outline, resolution.outline, self.options.bookmarks.open_by_default)
        pdf = self._write(writer.finish)

        results, warnings = self._collect(items, resolution, layout, offset, compositor)
        elapsed = (time.perf_counter() - started) * 1000.0
        logger.info(f"Generated {total_pages} page(s), {len(pdf)} bytes in {elapsed:.0f}ms with {len(warnings)} warning(s)")

        return BatchResult(
            pdf=pdf,
            total_pages=total_pages,
            items=results,
            file_size=len(pdf),
            generation_time_ms=elapsed,
            warnings=warnings,
            outline=resolution.outline,
            headings=resolution.headings,
        )

    def compose_page(
        self,
        page: LayoutPage,
        items: Sequence[PreparedItem],
        compositor: DecorationCompositor,
        total_pages: int,
        anchors: Dict[str, int],
    ) -> ComposedPage:
        """
        Cut the page's segments out of their bitmaps and add decorations.

        A segment that continues a table gets the table header tile drawn above it.
        """
        composed = ComposedPage(index=page.index, geometry=self.geometry)
        rect = self.geometry.content_rect
        px_per_mm = MM_TO_PX * self.quality
        max_width = self.geometry.content_width_px(self.quality)

        for placement in page.placements:
            item = items[placement.item_position]
            segment = placement.segment
            if segment.height <= 0 or item.bitmap is None:
                continue
            crop_width = min(item.width, max_width)
            tile_top = rect.top + segment.dest_top / px_per_mm
            tile_width = crop_width / px_per_mm
            if segment.repeated_header is not None:
                header_top, header_bottom = segment.repeated_header
                header_height = (header_bottom - header_top) / px_per_mm
                composed.tiles.append(
                    ImageTile(
                        image=item.bitmap.crop((0, header_top, crop_width, header_bottom)),
                        x=rect.left,
                        y=tile_top - header_height,
                        width=tile_width,
                        height=header_height,
                        source_block_id=segment.source_block_id,
                    )
                )
            composed.tiles.append(
                ImageTile(
                    image=item.bitmap.crop((0, segment.top, crop_width, segment.bottom)),
                    x=rect.left,
                    y=tile_top,
                    width=tile_width,
                    height=segment.height / px_per_mm,
                    source_block_id=segment.source_block_id,
                )
            )
            for element in item.elements:
                target = anchors.get(element.link_anchor) if element.link_anchor else None
                if target is None:
                    continue
                top = max(item.offset_px(element.top), segment.top)
                bottom = min(item.offset_px(element.bottom), segment.bottom)
                if bottom <= top:
                    continue
                composed.links.append(
                    LinkArea(
                        rect=Rect(
                            rect.left,
                            tile_top + (top - segment.top) / px_per_mm,
                            tile_width,
                            (bottom - top) / px_per_mm,
                        ),
                        target_page_index=target,
                    )
                )

        decorations = compositor.compose(page.index, total_pages)
        composed.below.extend(decorations.below)
        composed.above.extend(decorations.above)
        return composed

    def _collect(
        self,
        items: Sequence[BatchItem],
        resolution: Resolution,
        layout: UnifiedLayout,
        offset: int,
        compositor: DecorationCompositor,
    ):
        results: List[ItemResult] = []
        warnings: List[LayoutWarning] = []
        for prepared in resolution.items:
            warnings.extend(prepared.warnings)
        warnings.extend(layout.warnings)
        warnings.extend(compositor.warnings)

        for index, item in enumerate(items):
            prepared = resolution.items[index + offset]
            first, last = layout.item_pages[index + offset]
            count = last - first + 1
            if item.page_count is not None and count != item.page_count:
                message = f"Item {index} requested {item.page_count} page(s) but occupies {count}"
                logger.warning(message)
                warnings.append(
                    LayoutWarning(WarningCode.PAGE_COUNT_MISMATCH, message, item_index=index, block_id=item.block.block_id)
                )
            results.append(
                ItemResult(
                    title=prepared.title,
                    start_page=first + 1,
                    end_page=last + 1,
                    page_count=count,
                    scale_factor=prepared.decision.scale,
                    target_page_count=item.page_count,
                    low_confidence=prepared.decision.low_confidence,
                )
            )
        return results, warnings

    def _report_progress(self, completed: int, total: int) -> None:
        progress = int(completed * 100 / total)
        logger.debug(f"Progress {progress}% ({completed}/{total})")
        if self.options.on_progress is not None:
            self.options.on_progress(progress)

    @staticmethod
    def _write(action: Callable, *args):
        try:
            return action(*args)
        except DocPagerError:
            raise
        except Exception as exc:
            name = getattr(action, "__name__", "write")
            raise WriterError(f"Page writer failed in {name}", str(exc), cause=exc) from exc
