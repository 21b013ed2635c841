"""
Break constraints derived from structural elements.

Element geometry arrives in natural pixels; constraints are expressed in the
scaled bitmap's integer pixel space. A forbidden range ``(start, end)`` rejects
every boundary ``b`` with ``start < b < end``; a forced offset is a mandatory
boundary. A table header is recorded with its table's extent so it can be
redrawn on continuation pages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..models.content import ElementKind, StructuralElement
from ..models.results import LayoutWarning, WarningCode
from ..options import BreakOptions

logger = logging.getLogger(__name__)

_ROW_KINDS = {ElementKind.TABLE_ROW, ElementKind.TABLE_HEADER}
_AVOID_KINDS = {ElementKind.AVOID, ElementKind.TOC_ENTRY}


@dataclass(slots=True, frozen=True)
class RepeatedHeader:
    """A table header slice redrawn on every page the table continues onto."""

    top: int
    bottom: int
    table_bottom: int

    @property
    def height(self) -> int:
        return self.bottom - self.top

    def continues_at(self, offset: int) -> bool:
        return self.bottom <= offset < self.table_bottom


@dataclass(slots=True, frozen=True)
class BreakConstraint:
    forbidden: Tuple[Tuple[int, int], ...] = ()
    forced: Tuple[int, ...] = ()
    headers: Tuple[RepeatedHeader, ...] = ()

    def containing(self, offset: int) -> List[Tuple[int, int]]:
        return [r for r in self.forbidden if r[0] < offset < r[1]]

    def is_safe(self, offset: int) -> bool:
        return not any(start < offset < end for start, end in self.forbidden)

    def header_at(self, offset: int) -> Optional[RepeatedHeader]:
        """Innermost table header to repeat when a page starts at ``offset``."""
        matches = [h for h in self.headers if h.continues_at(offset)]
        return max(matches, key=lambda h: h.top) if matches else None


@dataclass(slots=True)
class ConstraintSet:
    """Mutable builder for a ``BreakConstraint``."""

    height: int
    block_id: Optional[str] = None
    forbidden: List[Tuple[int, int]] = field(default_factory=list)
    forced: List[int] = field(default_factory=list)
    headers: List[RepeatedHeader] = field(default_factory=list)

    def forbid(self, start: int, end: int) -> None:
        start, end = max(0, start), min(self.height, end)
        if end - start > 1:
            self.forbidden.append((start, end))

    def force(self, offset: int) -> None:
        if 0 < offset < self.height:
            self.forced.append(offset)

    def repeat_header(self, top: int, bottom: int, table_bottom: int) -> None:
        table_bottom = min(self.height, table_bottom)
        if bottom > top and table_bottom > bottom:
            self.headers.append(RepeatedHeader(top, bottom, table_bottom))

    def normalize(self) -> Tuple[BreakConstraint, List[LayoutWarning]]:
        """Drop forbidden ranges that straddle a forced break; one warning per drop."""
        forced = tuple(sorted(set(self.forced)))
        kept: List[Tuple[int, int]] = []
        warnings: List[LayoutWarning] = []
        for start, end in sorted(set(self.forbidden)):
            clash = next((f for f in forced if start < f < end), None)
            if clash is None:
                kept.append((start, end))
                continue
            message = f"Forced break at {clash}px overrides keep-together range {start}-{end}px"
            logger.warning(message)
            warnings.append(
                LayoutWarning(
                    WarningCode.FORCED_BREAK_OVERRIDES_CONSTRAINT,
                    message,
                    block_id=self.block_id,
                    offset=clash,
                )
            )
        return BreakConstraint(forbidden=tuple(kept), forced=forced, headers=tuple(self.headers)), warnings


def build_constraints(
    elements: Sequence[StructuralElement],
    factor: float,
    height: int,
    options: Optional[BreakOptions] = None,
    block_id: Optional[str] = None,
) -> Tuple[BreakConstraint, List[LayoutWarning]]:
    """
    Translate element geometry into break constraints.

    Args:
        elements: Elements in natural pixels
        factor: Bitmap pixels per natural pixel
        height: Bitmap height in pixels
        options: Which rules apply
        block_id: Block the constraints belong to (for warnings)

    Returns:
        ``(constraint, warnings)``
    """
    options = options or BreakOptions()
    builder = ConstraintSet(height=height, block_id=block_id)

    def px(value: float) -> int:
        return int(round(value * factor))

    ordered = sorted(elements, key=lambda e: (e.top, -e.bottom))
    avoid_tags = {t.lower() for t in options.avoid_break_inside}
    before_tags = {t.lower() for t in options.break_before}
    after_tags = {t.lower() for t in options.break_after}

    for index, element in enumerate(ordered):
        tag = (element.tag or "").lower()

        if element.kind in _ROW_KINDS and options.avoid_table_row_split:
            builder.forbid(px(element.top), px(element.bottom))
        elif element.kind in _AVOID_KINDS or element.break_inside == "avoid":
            builder.forbid(px(element.top), px(element.bottom))
        elif tag and tag in avoid_tags and element.kind is not ElementKind.TABLE:
            builder.forbid(px(element.top), px(element.bottom))

        if element.kind is ElementKind.HEADING and options.prevent_orphaned_headings:
            follower = _next_content(ordered, index)
            if follower is not None and follower.top - element.bottom < options.orphan_gap:
                guard_end = min(follower.bottom, follower.top + options.orphan_guard)
                builder.forbid(px(element.top), px(guard_end))

        if options.respect_css_page_breaks:
            if element.break_before == "page" or (tag and tag in before_tags):
                builder.force(px(element.top))
            if element.break_after == "page" or (tag and tag in after_tags):
                builder.force(px(element.bottom))

        if element.kind is ElementKind.TABLE_HEADER and options.repeat_table_headers:
            table_bottom = _table_bottom(ordered, index)
            if table_bottom is not None:
                builder.repeat_header(px(element.top), px(element.bottom), px(table_bottom))

    return builder.normalize()


def _table_bottom(ordered: Sequence[StructuralElement], index: int) -> Optional[float]:
    """Bottom of the table a header belongs to: its enclosing table, else its run of rows."""
    header = ordered[index]
    tables = [
        e for e in ordered
        if e.kind is ElementKind.TABLE and e.top <= header.top and e.bottom >= header.bottom
    ]
    if tables:
        return min(tables, key=lambda e: e.height).bottom
    bottom = None
    for candidate in ordered[index + 1:]:
        if candidate.kind in (ElementKind.TABLE_HEADER, ElementKind.TABLE):
            break
        if candidate.kind is ElementKind.TABLE_ROW and candidate.top >= header.bottom:
            bottom = candidate.bottom
    return bottom


def _next_content(ordered: Sequence[StructuralElement], index: int) -> Optional[StructuralElement]:
    heading = ordered[index]
    for candidate in ordered[index + 1:]:
        if candidate.top >= heading.bottom:
            return candidate
    return None

