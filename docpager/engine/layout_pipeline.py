"""
Item preparation pipeline.

Flow per batch item:
1. measure the block at the content width (rasterizer or bitmap)
2. fit the natural width to the content width
3. resolve the item scale against the page content height
4. rasterize at scale x quality
5. build break constraints in bitmap pixels
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

from PIL import Image

from ..exceptions import DocPagerError, RasterizationError
from ..models.content import BatchItem, BlockLayout, ContentBlock, NewPageMode, StructuralElement
from ..models.results import LayoutWarning, WarningCode
from ..options import GeneratorOptions
from ..rasterizer import BitmapRasterizer, Rasterizer
from .break_constraints import BreakConstraint, build_constraints
from .geometry import PageGeometry
from .scaling import ScaleDecision, ScalingResolver

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PreparedItem:
    """An item rasterized and constrained, ready to be paginated."""

    index: Optional[int]
    item: BatchItem
    title: str
    bitmap: Optional[Image.Image]
    width: int
    height: int
    natural_height: float
    decision: ScaleDecision
    constraint: BreakConstraint
    elements: Tuple[StructuralElement, ...] = ()
    warnings: List[LayoutWarning] = field(default_factory=list)

    @property
    def block_id(self) -> str:
        return self.item.block.block_id

    @property
    def mode(self) -> NewPageMode:
        return self.item.new_page

    @property
    def factor(self) -> float:
        """Bitmap pixels per natural pixel."""
        if self.natural_height <= 0:
            return 0.0
        return self.height / self.natural_height

    def offset_px(self, natural_offset: float) -> int:
        return min(self.height, max(0, int(round(natural_offset * self.factor))))


async def resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ItemPreparer:
    """Turns batch items into prepared bitmaps using shared scaling and break rules."""

    def __init__(
        self,
        geometry: PageGeometry,
        options: GeneratorOptions,
        rasterizer: Optional[Rasterizer] = None,
        scaling: Optional[ScalingResolver] = None,
    ):
        self.geometry = geometry
        self.options = options
        self.rasterizer = rasterizer
        self.bitmap_rasterizer = BitmapRasterizer()
        self.quality = options.scale
        self.page_height_px = geometry.content_height_px(self.quality)
        self.viewport_width = float(geometry.content_width_px(1.0))
        self.scaling = scaling or ScalingResolver(
            natural_scale=options.scaling.natural_scale,
            min_legible_scale=options.scaling.min_legible_scale,
            max_scale=options.scaling.max_scale,
            precision=options.scaling.precision,
        )

    def _rasterizer_for(self, block: ContentBlock) -> Rasterizer:
        if not block.needs_rasterizer:
            return self.bitmap_rasterizer
        if self.rasterizer is None:
            raise RasterizationError(
                "No rasterizer configured for content",
                f"{type(block).__name__} {block.block_id} needs a Rasterizer",
            )
        return self.rasterizer

    async def _call(self, action: str, fn: Callable, *args) -> Any:
        try:
            return await resolve(fn(*args))
        except DocPagerError:
            raise
        except Exception as exc:
            raise RasterizationError(f"Rasterizer failed to {action} content", str(exc), cause=exc) from exc

    async def prepare(self, item: BatchItem, index: Optional[int]) -> PreparedItem:
        """Prepare one item; ``index`` is None for blocks the engine synthesizes, such as the TOC."""
        block = item.block
        media = self.options.emulate_media_type
        rasterizer = self._rasterizer_for(block)
        title = item.title or (f"Item {index + 1}" if index is not None else block.block_id)

        layout = await self._call("measure", rasterizer.measure, block, self.viewport_width, media)
        if not isinstance(layout, BlockLayout):
            raise RasterizationError("Rasterizer returned no layout", f"item {index} ({block.block_id})")

        natural_width, natural_height = float(layout.width), float(layout.height)
        fit = 1.0
        if self.options.fit_to_width and natural_width > 0:
            fit = self.viewport_width / natural_width

        decision = self.scaling.resolve(natural_height * fit * self.quality, self.page_height_px, item.page_count)
        factor = decision.scale * fit * self.quality

        warnings: List[LayoutWarning] = []
        if decision.low_confidence:
            warnings.append(
                LayoutWarning(
                    WarningCode.LOW_CONFIDENCE_SCALE,
                    decision.reason or "scale outside the legible range",
                    item_index=index,
                    block_id=block.block_id,
                )
            )

        bitmap: Optional[Image.Image] = None
        width = height = 0
        if int(round(natural_height * factor)) > 0:
            bitmap = await self._call("rasterize", rasterizer.rasterize, block, factor, media)
            if not isinstance(bitmap, Image.Image):
                raise RasterizationError("Rasterizer returned no image", f"item {index} ({block.block_id})")
            width, height = bitmap.size
            if width == 0 or height == 0:
                raise RasterizationError("Rasterized content is empty", f"item {index} ({block.block_id})")

        constraint, constraint_warnings = build_constraints(
            layout.elements,
            height / natural_height if natural_height > 0 else 0.0,
            height,
            self.options.breaks,
            block_id=block.block_id,
        )
        warnings.extend(w.with_item(index) for w in constraint_warnings)

        logger.debug(
            f"Prepared item {index} '{title}': natural {natural_width:.0f}x{natural_height:.0f}, "
            f"scale {decision.scale:.4f}, bitmap {width}x{height}"
        )
        return PreparedItem(
            index=index,
            item=item,
            title=title,
            bitmap=bitmap,
            width=width,
            height=height,
            natural_height=natural_height,
            decision=decision,
            constraint=constraint,
            elements=tuple(layout.elements),
            warnings=warnings,
        )
