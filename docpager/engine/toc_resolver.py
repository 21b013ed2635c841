"""
Two-pass table of contents and outline resolution.

Page numbers of headings are only known after pagination, but the TOC itself
occupies pages. The resolver walks an explicit state machine:

1. SCAN: collect headings in document order
2. DRY_PAGINATE: paginate all items with the same scaling and break engine
   that the real pass uses and record each heading's page
3. MATERIALIZE: render the TOC block, insert it, shift heading pages by the
   TOC page count when it sits at the start, build the outline
4. DONE: dry-pass data discarded
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple

from ..exceptions import LayoutError
from ..models.content import BatchItem, ElementKind, NewPageMode
from ..models.results import HeadingEntry, OutlineNode
from ..options import BookmarkEntry, BookmarkOptions, TocOptions
from .layout_pipeline import ItemPreparer, PreparedItem
from .toc_renderer import TocRenderer
from .unified_layout import UnifiedLayout

if TYPE_CHECKING:
    from .assembler.batch_assembler import BatchAssembler

logger = logging.getLogger(__name__)


class ResolverState(Enum):
    SCAN = "scan"
    DRY_PAGINATE = "dry_paginate"
    MATERIALIZE = "materialize"
    DONE = "done"


@dataclass(slots=True)
class Resolution:
    items: List[PreparedItem]
    headings: Tuple[HeadingEntry, ...] = ()
    outline: List[OutlineNode] = field(default_factory=list)
    toc_position: Optional[int] = None
    toc_page_count: int = 0

    @property
    def anchors(self) -> Dict[str, int]:
        return {h.anchor_id: h.resolved_page_index for h in self.headings if h.resolved_page_index is not None}


def build_outline(entries: Iterable[Tuple[str, int, int]]) -> List[OutlineNode]:
    """
    Nest ``(title, level, page_index)`` entries by level.

    An entry becomes a child of the nearest preceding entry with a smaller
    level; skipped levels are not rejected.
    """
    roots: List[OutlineNode] = []
    stack: List[OutlineNode] = []
    for title, level, page_index in entries:
        node = OutlineNode(title=title, page_index=page_index, level=level)
        while stack and stack[-1].level >= level:
            stack.pop()
        if stack:
            stack[-1].children.append(node)
        else:
            roots.append(node)
        stack.append(node)
    return roots


def custom_outline(entries: Sequence[BookmarkEntry]) -> List[OutlineNode]:
    return [
        OutlineNode(
            title=entry.title,
            page_index=entry.page - 1,
            level=entry.level,
            children=custom_outline(entry.children),
        )
        for entry in entries
    ]


def locate(layout: UnifiedLayout, item_position: int, offset: int) -> int:
    """Page index holding ``offset`` of the item at ``item_position``."""
    segments = layout.segments_for(item_position)
    if not segments:
        raise LayoutError("Item has no segments", f"item position {item_position}")
    for segment in segments:
        if segment.top <= offset < segment.bottom:
            return segment.page_index
    return segments[-1].page_index if offset >= segments[-1].top else segments[0].page_index


class TocResolver:
    """Resolves heading pages, the TOC block and the outline for one call."""

    def __init__(
        self,
        assembler: "BatchAssembler",
        preparer: ItemPreparer,
        toc: TocOptions,
        bookmarks: BookmarkOptions,
        renderer: Optional[TocRenderer] = None,
    ):
        self.assembler = assembler
        self.preparer = preparer
        self.toc = toc
        self.bookmarks = bookmarks
        self.renderer = renderer
        if toc.enabled and renderer is None:
            raise ValueError("A TocRenderer is required when the TOC is enabled")
        self.state = ResolverState.SCAN
        self._items: List[PreparedItem] = []
        self._headings: List[HeadingEntry] = []
        self._dry_pages: Dict[str, int] = {}

    @property
    def active(self) -> bool:
        return self.toc.enabled or (self.bookmarks.enabled and (self.bookmarks.auto_generate or bool(self.bookmarks.custom)))

    @property
    def max_level(self) -> int:
        levels = []
        if self.toc.enabled:
            levels.extend(self.toc.levels)
        if self.bookmarks.enabled and self.bookmarks.auto_generate:
            levels.extend(self.bookmarks.levels)
        return max(levels, default=0)

    def _advance(self, expected: ResolverState, following: ResolverState) -> None:
        if self.state is not expected:
            raise LayoutError(
                "TOC resolver used out of order",
                f"expected {expected.value}, currently {self.state.value}",
            )
        self.state = following

    def scan(self, items: Sequence[PreparedItem]) -> List[HeadingEntry]:
        self._advance(ResolverState.SCAN, ResolverState.DRY_PAGINATE)
        self._items = list(items)
        max_level = self.max_level
        counter = 0
        for position, item in enumerate(self._items):
            headings = sorted(
                (e for e in item.elements if e.kind is ElementKind.HEADING and e.level and e.level <= max_level),
                key=lambda e: e.top,
            )
            for element in headings:
                counter += 1
                self._headings.append(
                    HeadingEntry(
                        text=element.text or "",
                        level=element.level,
                        anchor_id=element.anchor_id or f"heading-{counter}",
                        item_index=position,
                        anchor_offset=item.offset_px(element.top),
                    )
                )
        logger.debug(f"Scanned {len(self._headings)} heading(s) up to level {max_level}")
        return list(self._headings)

    def dry_paginate(self) -> Dict[str, int]:
        self._advance(ResolverState.DRY_PAGINATE, ResolverState.MATERIALIZE)
        if not self._headings:
            return {}
        layout = self.assembler.plan(self._items)
        for heading in self._headings:
            self._dry_pages[heading.anchor_id] = locate(layout, heading.item_index, heading.anchor_offset)
        logger.debug(f"Dry pass: {layout.page_count} page(s)")
        return dict(self._dry_pages)

    async def materialize(self) -> Resolution:
        self._advance(ResolverState.MATERIALIZE, ResolverState.DONE)
        items = list(self._items)
        shift = 0
        toc_position: Optional[int] = None
        toc_pages = 0

        if self.toc.enabled:
            at_start = self.toc.position == "start"
            mode = NewPageMode.DEFAULT_BREAK_AFTER if at_start else NewPageMode.FORCE
            draft = await self._prepare_toc(self.renderer.render(self._headings), mode)
            toc_pages = self.assembler.plan([draft]).page_count
            if at_start:
                shift = toc_pages

        for heading in self._headings:
            heading.resolve(self._dry_pages[heading.anchor_id] + shift)

        if self.toc.enabled:
            numbers = {h.anchor_id: h.resolved_page_index + 1 for h in self._headings}
            final = await self._prepare_toc(self.renderer.render(self._headings, numbers), mode)
            if final.height != draft.height:
                raise LayoutError("TOC height changed between passes", f"{draft.height} != {final.height}px")
            if at_start:
                items.insert(0, final)
                toc_position = 0
            else:
                items.append(final)
                toc_position = len(items) - 1
            logger.info(f"Table of contents: {len(self.renderer.entries(self._headings))} entries on {toc_pages} page(s)")

        outline: List[OutlineNode] = []
        if self.bookmarks.enabled:
            if self.bookmarks.auto_generate:
                outline.extend(
                    build_outline(
                        (h.text, h.level, h.resolved_page_index)
                        for h in self._headings
                        if h.level in self.bookmarks.levels
                    )
                )
            outline.extend(custom_outline(self.bookmarks.custom))

        return Resolution(
            items=items,
            headings=tuple(self._headings),
            outline=outline,
            toc_position=toc_position,
            toc_page_count=toc_pages,
        )

    def finish(self) -> None:
        if self.state is not ResolverState.DONE:
            raise LayoutError("TOC resolver finished before materializing", self.state.value)
        self._dry_pages.clear()
        self._items = []

    async def run(self, items: Sequence[PreparedItem]) -> Resolution:
        self.scan(items)
        self.dry_paginate()
        resolution = await self.materialize()
        self.finish()
        return resolution

    async def _prepare_toc(self, block, mode: NewPageMode) -> PreparedItem:
        item = BatchItem(block, new_page=mode, title=self.toc.title)
        return await self.preparer.prepare(item, None)
