"""Records produced by pagination and generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class WarningCode(str, Enum):
    FORCED_BREAK_OVERRIDES_CONSTRAINT = "forced-break-overrides-constraint"
    FORBIDDEN_RANGE_SPLIT = "forbidden-range-split"
    LOW_CONFIDENCE_SCALE = "low-confidence-scale"
    PAGE_COUNT_MISMATCH = "page-count-mismatch"
    WATERMARK_UNAVAILABLE = "watermark-unavailable"
    TABLE_HEADER_NOT_REPEATED = "table-header-not-repeated"


@dataclass(slots=True, frozen=True)
class LayoutWarning:
    """A non-fatal layout compromise. Collected and returned, never raised."""

    code: WarningCode
    message: str
    item_index: Optional[int] = None
    block_id: Optional[str] = None
    offset: Optional[int] = None

    def with_item(self, item_index: Optional[int]) -> "LayoutWarning":
        return LayoutWarning(self.code, self.message, item_index, self.block_id, self.offset)

    def __str__(self) -> str:
        where = []
        if self.item_index is not None:
            where.append(f"item {self.item_index}")
        if self.offset is not None:
            where.append(f"offset {self.offset}px")
        suffix = f" ({', '.join(where)})" if where else ""
        return f"[{self.code.value}] {self.message}{suffix}"


@dataclass(slots=True, frozen=True)
class PageSegment:
    """
    A vertical slice ``[top, bottom)`` of one block's bitmap placed on a page.

    ``repeated_header`` is the ``[top, bottom)`` slice of a table header drawn
    above the segment when it continues a table from the previous page.
    """

    source_block_id: str
    top: int
    bottom: int
    page_index: int
    scale_factor: float = 1.0
    dest_top: int = 0
    repeated_header: Optional[Tuple[int, int]] = None

    @property
    def height(self) -> int:
        return self.bottom - self.top


@dataclass(slots=True)
class HeadingEntry:
    """A heading found in the content; its page is assigned once after the dry pass."""

    text: str
    level: int
    anchor_id: str
    item_index: int
    anchor_offset: int
    resolved_page_index: Optional[int] = None

    def resolve(self, page_index: int) -> None:
        if self.resolved_page_index is not None:
            raise ValueError(f"Heading {self.anchor_id!r} already resolved to page {self.resolved_page_index}")
        self.resolved_page_index = page_index

    @property
    def page_number(self) -> Optional[int]:
        if self.resolved_page_index is None:
            return None
        return self.resolved_page_index + 1


@dataclass(slots=True)
class OutlineNode:
    title: str
    page_index: int
    level: int
    children: List["OutlineNode"] = field(default_factory=list)

    def walk(self, depth: int = 0):
        """Yield ``(node, depth)`` pairs in document order."""
        yield self, depth
        for child in self.children:
            yield from child.walk(depth + 1)


@dataclass(slots=True, frozen=True)
class ItemResult:
    title: str
    start_page: int
    end_page: int
    page_count: int
    scale_factor: float
    target_page_count: Optional[int] = None
    low_confidence: bool = False


@dataclass(slots=True)
class BatchResult:
    pdf: bytes
    total_pages: int
    items: List[ItemResult]
    file_size: int
    generation_time_ms: float
    warnings: List[LayoutWarning] = field(default_factory=list)
    outline: List[OutlineNode] = field(default_factory=list)
    headings: Tuple[HeadingEntry, ...] = ()
    filename: Optional[str] = None


@dataclass(slots=True)
class GenerationResult:
    pdf: bytes
    page_count: int
    file_size: int
    generation_time_ms: float
    warnings: List[LayoutWarning] = field(default_factory=list)
    filename: Optional[str] = None
