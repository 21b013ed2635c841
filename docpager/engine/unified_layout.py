"""
Unified layout: the paginated document before decorations are applied.

Each page holds the bitmap segments placed on it, in placement order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..models.results import LayoutWarning, PageSegment


@dataclass(slots=True)
class PlacedSegment:
    """A segment together with the item it belongs to."""

    item_position: int
    segment: PageSegment

    @property
    def used_height(self) -> int:
        return self.segment.dest_top + self.segment.height


@dataclass(slots=True)
class LayoutPage:
    index: int
    content_height: int
    placements: List[PlacedSegment] = field(default_factory=list)

    @property
    def number(self) -> int:
        return self.index + 1

    @property
    def used_height(self) -> int:
        if not self.placements:
            return 0
        return max(p.used_height for p in self.placements)

    @property
    def remaining(self) -> int:
        return max(0, self.content_height - self.used_height)

    def add(self, placement: PlacedSegment) -> None:
        self.placements.append(placement)


@dataclass
class UnifiedLayout:
    """All pages of one generation call plus the page range of every item."""

    content_height: int
    pages: List[LayoutPage] = field(default_factory=list)
    item_pages: Dict[int, Tuple[int, int]] = field(default_factory=dict)
    warnings: List[LayoutWarning] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def last_page(self) -> Optional[LayoutPage]:
        return self.pages[-1] if self.pages else None

    def new_page(self) -> LayoutPage:
        page = LayoutPage(index=len(self.pages), content_height=self.content_height)
        self.pages.append(page)
        return page

    def page(self, index: int) -> LayoutPage:
        while len(self.pages) <= index:
            self.new_page()
        return self.pages[index]

    def place(self, item_position: int, segment: PageSegment) -> None:
        self.page(segment.page_index).add(PlacedSegment(item_position, segment))
        first, last = self.item_pages.get(item_position, (segment.page_index, segment.page_index))
        self.item_pages[item_position] = (min(first, segment.page_index), max(last, segment.page_index))

    def segments_for(self, item_position: int) -> List[PageSegment]:
        return [
            placement.segment
            for page in self.pages
            for placement in page.placements
            if placement.item_position == item_position
        ]
