"""
Per-item scale resolution.

Given an item's height and the height of the page content area, both in
bitmap pixels at scale 1, the resolver picks the scale ``S`` such that
``ceil(round(height * S) / content_height)`` equals the requested page count,
and no smaller scale does. One page has no smallest scale: the natural scale is
kept when it fits, otherwise the largest fitting scale is used and flagged.
Scales live on a fixed grid (``precision``) so the same inputs always give the
same scale.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ScaleDecision:
    scale: float
    target_pages: Optional[int]
    expected_pages: int
    low_confidence: bool = False
    reason: Optional[str] = None


def pages_for(height: float, content_height: float, scale: float) -> int:
    """Pages needed for ``height`` at ``scale``, counted in whole pixels; an empty block still takes one page."""
    pixels = round(height * scale)
    if pixels <= 0:
        return 1
    return max(1, math.ceil(pixels / content_height - 1e-9))


class ScalingResolver:
    """Chooses per-item scale factors."""

    def __init__(
        self,
        natural_scale: float = 1.0,
        min_legible_scale: float = 0.5,
        max_scale: float = 4.0,
        precision: float = 1e-4,
    ):
        if natural_scale <= 0:
            raise ValueError("natural_scale must be positive")
        if precision <= 0:
            raise ValueError("precision must be positive")
        self.natural_scale = natural_scale
        self.min_legible_scale = min_legible_scale
        self.max_scale = max_scale
        self.precision = precision

    def resolve(
        self,
        natural_height: float,
        content_height: float,
        target_pages: Optional[int] = None,
    ) -> ScaleDecision:
        """
        Resolve the scale for one item.

        Args:
            natural_height: Item height at scale 1, in bitmap pixels
            content_height: Page content height in bitmap pixels
            target_pages: Requested page count, or None to keep the natural scale

        Returns:
            ScaleDecision; ``low_confidence`` marks scales outside the legible range
            and content shrunk to fit a single page
        """
        if content_height <= 0:
            raise ValueError("content_height must be positive")
        if target_pages is not None and target_pages < 1:
            raise ValueError(f"target_pages must be at least 1, got {target_pages}")

        if target_pages is None or natural_height <= 0:
            scale = self.natural_scale
            expected = pages_for(natural_height, content_height, scale)
            return ScaleDecision(
                scale=scale,
                target_pages=target_pages,
                expected_pages=expected,
                low_confidence=False,
                reason=None,
            )

        step = self._grid_index(self.natural_scale)
        natural_pages = pages_for(natural_height, content_height, self._at(step))

        fallback = None
        if target_pages > 1:
            index = self._smallest_index(natural_height, content_height, target_pages)
        elif natural_pages == 1:
            index = step
        else:
            # any scale fits one page from below; shrink as little as possible
            index = self._largest_index(natural_height, content_height, target_pages)
            fallback = f"content shrunk to scale {self._at(index):.4f} to fit one page"

        scale = self._at(index)
        expected = pages_for(natural_height, content_height, scale)

        reason = None
        if scale < self.min_legible_scale:
            reason = f"scale {scale:.4f} below legible minimum {self.min_legible_scale}"
        elif scale > self.max_scale:
            reason = f"scale {scale:.4f} above maximum {self.max_scale}"
        elif fallback:
            reason = fallback

        if reason:
            logger.warning(f"Low-confidence scale for {target_pages} page(s): {reason}")
        else:
            logger.debug(f"Scale {scale:.4f} fits {natural_height:.1f} into {target_pages} page(s)")

        return ScaleDecision(
            scale=scale,
            target_pages=target_pages,
            expected_pages=expected,
            low_confidence=reason is not None,
            reason=reason,
        )

    def _at(self, index: int) -> float:
        return round(index * self.precision, 10)

    def _grid_index(self, scale: float) -> int:
        return max(1, int(round(scale / self.precision)))

    def _largest_index(self, height: float, content: float, target: int) -> int:
        """Largest grid scale that still fits ``target`` pages (content shrinks)."""
        index = max(1, int(math.floor(target * content / height / self.precision)))
        while index > 1 and pages_for(height, content, self._at(index)) > target:
            index -= 1
        while pages_for(height, content, self._at(index + 1)) <= target:
            index += 1
        return index

    def _smallest_index(self, height: float, content: float, target: int) -> int:
        """Smallest grid scale that needs ``target`` pages (content grows)."""
        index = max(1, int(math.floor((target - 1) * content / height / self.precision)))
        while pages_for(height, content, self._at(index)) < target:
            index += 1
        while index > 1 and pages_for(height, content, self._at(index - 1)) >= target:
            index -= 1
        return index
