"""
Content models handed to the engine by callers.

A content block is either rasterizable (a rasterizer measures and renders it)
or already rasterized (a Pillow bitmap plus the element geometry recorded when
it was captured).
"""

from __future__ import annotations

import io
import itertools
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from PIL import Image

_block_ids = itertools.count(1)


def _next_block_id() -> str:
    return f"block-{next(_block_ids)}"


class ElementKind(str, Enum):
    HEADING = "heading"
    TABLE = "table"
    TABLE_ROW = "table_row"
    TABLE_HEADER = "table_header"
    FIGURE = "figure"
    AVOID = "avoid"
    PARAGRAPH = "paragraph"
    TOC_ENTRY = "toc_entry"
    GENERIC = "generic"


class MediaType(str, Enum):
    SCREEN = "screen"
    PRINT = "print"


@dataclass(slots=True, frozen=True)
class StructuralElement:
    """Element geometry in the block's natural pixel space."""

    kind: ElementKind
    top: float
    bottom: float
    tag: Optional[str] = None
    level: Optional[int] = None
    text: Optional[str] = None
    anchor_id: Optional[str] = None
    break_before: Optional[str] = None
    break_after: Optional[str] = None
    break_inside: Optional[str] = None
    link_anchor: Optional[str] = None

    def __post_init__(self):
        if self.bottom < self.top:
            raise ValueError(f"Element bottom {self.bottom} is above its top {self.top}")
        if not isinstance(self.kind, ElementKind):
            object.__setattr__(self, "kind", ElementKind(self.kind))

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @classmethod
    def heading(cls, text: str, level: int, top: float, bottom: float, **kwargs) -> "StructuralElement":
        return cls(ElementKind.HEADING, top, bottom, tag=f"h{level}", level=level, text=text, **kwargs)

    @classmethod
    def table_row(cls, top: float, bottom: float, **kwargs) -> "StructuralElement":
        return cls(ElementKind.TABLE_ROW, top, bottom, tag="tr", **kwargs)

    @classmethod
    def table_header(cls, top: float, bottom: float, **kwargs) -> "StructuralElement":
        return cls(ElementKind.TABLE_HEADER, top, bottom, tag="thead", **kwargs)


@dataclass(slots=True, frozen=True)
class BlockLayout:
    """Natural size and element geometry reported by a rasterizer."""

    width: float
    height: float
    elements: Tuple[StructuralElement, ...] = ()


@dataclass(frozen=True, eq=False)
class ContentBlock:
    block_id: str = field(default_factory=_next_block_id, kw_only=True)

    @property
    def needs_rasterizer(self) -> bool:
        return True


@dataclass(frozen=True, eq=False)
class RasterizableBlock(ContentBlock):
    """Content a rasterizer knows how to measure and render (HTML, a widget, ...)."""

    source: Any = None


@dataclass(frozen=True, eq=False)
class RasterizedBlock(ContentBlock):
    """
    An already-rendered bitmap.

    ``pixel_ratio`` is the number of bitmap pixels per natural pixel; element
    geometry is given in natural pixels.
    """

    image: Image.Image = None
    pixel_ratio: float = 1.0
    elements: Tuple[StructuralElement, ...] = ()

    def __post_init__(self):
        if self.image is None:
            raise ValueError("RasterizedBlock requires an image")
        if self.pixel_ratio <= 0:
            raise ValueError("pixel_ratio must be positive")

    @property
    def needs_rasterizer(self) -> bool:
        return False

    @property
    def natural_size(self) -> Tuple[float, float]:
        width, height = self.image.size
        return width / self.pixel_ratio, height / self.pixel_ratio

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs) -> "RasterizedBlock":
        with Image.open(path) as image:
            image.load()
            return cls(image=image.copy(), **kwargs)

    @classmethod
    def from_bytes(cls, data: bytes, **kwargs) -> "RasterizedBlock":
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return cls(image=image.copy(), **kwargs)


class NewPageMode(Enum):
    """How an item relates to the page boundary around it."""

    FORCE = "force"
    ALLOW = "allow"
    DEFAULT_BREAK_AFTER = "default"

    @classmethod
    def from_flag(cls, value: Union["NewPageMode", bool, str, None]) -> "NewPageMode":
        """Map the ``True | False | None`` flag onto a mode."""
        if isinstance(value, NewPageMode):
            return value
        if value is None:
            return cls.DEFAULT_BREAK_AFTER
        if isinstance(value, bool):
            return cls.FORCE if value else cls.ALLOW
        return cls(value.lower())


@dataclass(frozen=True)
class BatchItem:
    block: ContentBlock
    page_count: Optional[int] = None
    new_page: NewPageMode = NewPageMode.DEFAULT_BREAK_AFTER
    title: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.new_page, NewPageMode):
            object.__setattr__(self, "new_page", NewPageMode.from_flag(self.new_page))
        if self.page_count is not None and self.page_count < 1:
            raise ValueError(f"page_count must be at least 1, got {self.page_count}")


ContentLike = Union[ContentBlock, Image.Image, bytes, str, Path]


def as_content_block(content: ContentLike) -> ContentBlock:
    """Coerce images, image bytes and image paths into content blocks."""
    if isinstance(content, ContentBlock):
        return content
    if isinstance(content, Image.Image):
        return RasterizedBlock(image=content)
    if isinstance(content, (bytes, bytearray)):
        return RasterizedBlock.from_bytes(bytes(content))
    if isinstance(content, (str, Path)):
        return RasterizedBlock.from_file(content)
    return RasterizableBlock(source=content)
