"""
Page-break decision engine.

Slices one scaled bitmap into page-sized segments. Boundaries move backward,
never forward, to avoid cutting through keep-together ranges; forced breaks
always win. A page that continues a table starts with the table header
redrawn, and the header height comes out of that page's stride. When no safe
boundary exists inside a stride the ideal boundary is used and a warning is
recorded, so pagination never fails on an imperfect layout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..models.results import LayoutWarning, PageSegment, WarningCode
from .break_constraints import BreakConstraint, RepeatedHeader

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BreakPlan:
    segments: List[PageSegment] = field(default_factory=list)
    warnings: List[LayoutWarning] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        if not self.segments:
            return 0
        return self.segments[-1].page_index + 1

    @property
    def boundaries(self) -> List[int]:
        return [segment.bottom for segment in self.segments[:-1]]


class PageBreakEngine:
    """Decides where page boundaries fall inside one block."""

    def paginate(
        self,
        height: int,
        page_height: int,
        constraint: Optional[BreakConstraint] = None,
        first_page_capacity: Optional[int] = None,
        block_id: str = "",
        scale_factor: float = 1.0,
    ) -> BreakPlan:
        """
        Split ``[0, height)`` into segments.

        Args:
            height: Bitmap height in pixels
            page_height: Content height of a full page in pixels
            constraint: Forbidden ranges and forced breaks
            first_page_capacity: Space left on a page shared with earlier content;
                segments on it are relative page 0, fresh pages follow
            block_id: Identifier copied onto the segments
            scale_factor: Scale copied onto the segments

        Returns:
            BreakPlan with segments ordered by ``top``; ``page_index`` is relative
        """
        if page_height <= 0:
            raise ValueError("page_height must be positive")
        constraint = constraint or BreakConstraint()
        shared = first_page_capacity is not None and 0 < first_page_capacity < page_height
        capacity = first_page_capacity if shared else page_height
        dest_top = page_height - capacity

        plan = BreakPlan()
        if height <= 0:
            plan.segments.append(PageSegment(block_id, 0, 0, 0, scale_factor, dest_top))
            return plan

        cursor = 0
        page = 0
        while cursor < height:
            header = self._repeated_header(cursor, capacity, constraint, block_id, plan) if cursor > 0 else None
            reserved = header.height if header is not None else 0
            limit = cursor + capacity - reserved
            forced = next((f for f in constraint.forced if cursor < f <= limit), None)

            if forced is not None:
                boundary = forced
            elif limit >= height:
                boundary = height
            else:
                boundary = self._safe_boundary(limit, cursor, constraint)
                if boundary is None:
                    if page == 0 and dest_top > 0:
                        # nothing fits safely on the shared page; start on a fresh one
                        page, capacity, dest_top = 1, page_height, 0
                        continue
                    boundary = limit
                    message = f"No safe break between {cursor}px and {limit}px; splitting keep-together content"
                    logger.warning(message)
                    plan.warnings.append(
                        LayoutWarning(
                            WarningCode.FORBIDDEN_RANGE_SPLIT,
                            message,
                            block_id=block_id or None,
                            offset=limit,
                        )
                    )

            plan.segments.append(
                PageSegment(
                    block_id,
                    cursor,
                    boundary,
                    page,
                    scale_factor,
                    dest_top + reserved,
                    (header.top, header.bottom) if header is not None else None,
                )
            )
            logger.debug(f"Segment {cursor}-{boundary}px on relative page {page}")
            cursor = boundary
            page += 1
            capacity, dest_top = page_height, 0

        return plan

    @staticmethod
    def _repeated_header(
        cursor: int,
        capacity: int,
        constraint: BreakConstraint,
        block_id: str,
        plan: BreakPlan,
    ) -> Optional[RepeatedHeader]:
        """Table header to redraw above a page starting at ``cursor``; at most half a page."""
        header = constraint.header_at(cursor)
        if header is None or header.height * 2 <= capacity:
            return header
        message = f"Table header of {header.height}px is too tall to repeat on a {capacity}px page"
        logger.warning(message)
        plan.warnings.append(
            LayoutWarning(
                WarningCode.TABLE_HEADER_NOT_REPEATED,
                message,
                block_id=block_id or None,
                offset=cursor,
            )
        )
        return None

    @staticmethod
    def _safe_boundary(ideal: int, cursor: int, constraint: BreakConstraint) -> Optional[int]:
        """Walk ``ideal`` back to the outermost range start still past ``cursor``."""
        boundary = ideal
        while not constraint.is_safe(boundary):
            viable = sorted(start for start, _ in constraint.containing(boundary) if start > cursor)
            if not viable:
                return None
            boundary = viable[0]
        return boundary
