"""Geometry primitives and page geometry resolution."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple, Union

from ..exceptions import InvalidGeometry


MM_TO_PX = 3.7795  # CSS pixels per millimetre at 96 DPI
MM_TO_POINTS = 72.0 / 25.4


class Orientation(Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class PaperFormat(Enum):
    """Named paper sizes in millimetres (portrait)."""

    A3 = (297.0, 420.0)
    A4 = (210.0, 297.0)
    A5 = (148.0, 210.0)
    LETTER = (215.9, 279.4)
    LEGAL = (215.9, 355.6)

    @property
    def width(self) -> float:
        return self.value[0]

    @property
    def height(self) -> float:
        return self.value[1]

    @classmethod
    def from_name(cls, name: str) -> "PaperFormat":
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise InvalidGeometry(
                "Unknown paper format",
                f"{name!r}; expected one of {', '.join(f.name.lower() for f in cls)}",
            ) from None


@dataclass(slots=True, frozen=True)
class Size:
    width: float
    height: float


@dataclass(slots=True, frozen=True)
class Margins:
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    @classmethod
    def uniform(cls, value: float) -> "Margins":
        return cls(value, value, value, value)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "Margins":
        """Build margins from ``(top, right, bottom, left)``."""
        if len(values) != 4:
            raise InvalidGeometry("Margins need four values", f"got {len(values)}")
        top, right, bottom, left = (float(v) for v in values)
        return cls(top=top, right=right, bottom=bottom, left=left)


@dataclass(slots=True, frozen=True)
class Rect:
    """Rectangle in page coordinates, origin at the top-left corner."""

    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(slots=True, frozen=True)
class ContentRect:
    """Edges of the usable area, measured from the page's top-left corner."""

    top: float
    right: float
    bottom: float
    left: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def as_rect(self) -> Rect:
        return Rect(self.left, self.top, self.width, self.height)


@dataclass(slots=True, frozen=True)
class PageGeometry:
    width: float
    height: float
    content_rect: ContentRect
    orientation: Orientation = Orientation.PORTRAIT
    format_name: str = "custom"

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    @property
    def margins(self) -> Margins:
        rect = self.content_rect
        return Margins(
            top=rect.top,
            right=self.width - rect.right,
            bottom=self.height - rect.bottom,
            left=rect.left,
        )

    @property
    def content_width(self) -> float:
        return self.content_rect.width

    @property
    def content_height(self) -> float:
        return self.content_rect.height

    def content_width_px(self, quality: float = 1.0) -> int:
        return max(1, int(round(mm_to_px(self.content_width) * quality)))

    def content_height_px(self, quality: float = 1.0) -> int:
        return max(1, int(math.floor(mm_to_px(self.content_height) * quality)))


FormatSpec = Union[str, PaperFormat, Tuple[float, float], Size]


def resolve_geometry(
    paper_format: FormatSpec = PaperFormat.A4,
    orientation: Union[Orientation, str] = Orientation.PORTRAIT,
    margins: Union[Margins, Sequence[float], float] = Margins.uniform(10.0),
) -> PageGeometry:
    """
    Resolve a paper format, orientation and margins into a page geometry.

    Args:
        paper_format: Preset name, ``PaperFormat``, or ``(width, height)`` in mm
        orientation: Portrait or landscape; landscape swaps width and height
        margins: ``Margins``, ``(top, right, bottom, left)`` or one uniform value (mm)

    Returns:
        PageGeometry with the content rectangle inside the page

    Raises:
        InvalidGeometry: if the page is empty or margins leave no content area
    """
    if isinstance(orientation, str):
        try:
            orientation = Orientation(orientation.lower())
        except ValueError:
            raise InvalidGeometry("Unknown orientation", repr(orientation)) from None

    if isinstance(paper_format, str):
        paper_format = PaperFormat.from_name(paper_format)

    if isinstance(paper_format, PaperFormat):
        width, height = paper_format.width, paper_format.height
        format_name = paper_format.name.lower()
    elif isinstance(paper_format, Size):
        width, height = paper_format.width, paper_format.height
        format_name = "custom"
    else:
        width, height = (float(v) for v in paper_format)
        format_name = "custom"

    if width <= 0 or height <= 0:
        raise InvalidGeometry("Page size must be positive", f"{width}x{height} mm")

    if orientation is Orientation.LANDSCAPE:
        width, height = height, width

    if isinstance(margins, (int, float)):
        margins = Margins.uniform(float(margins))
    elif not isinstance(margins, Margins):
        margins = Margins.from_sequence(margins)

    for side in ("top", "right", "bottom", "left"):
        if getattr(margins, side) < 0:
            raise InvalidGeometry("Margins must be non-negative", f"{side}={getattr(margins, side)}")

    if margins.left + margins.right >= width:
        raise InvalidGeometry(
            "Horizontal margins exceed page width",
            f"{margins.left} + {margins.right} >= {width} mm",
        )
    if margins.top + margins.bottom >= height:
        raise InvalidGeometry(
            "Vertical margins exceed page height",
            f"{margins.top} + {margins.bottom} >= {height} mm",
        )

    content_rect = ContentRect(
        top=margins.top,
        right=width - margins.right,
        bottom=height - margins.bottom,
        left=margins.left,
    )
    return PageGeometry(
        width=width,
        height=height,
        content_rect=content_rect,
        orientation=orientation,
        format_name=format_name,
    )


def mm_to_px(value: float | None) -> float:
    if value is None:
        return 0.0
    return float(value) * MM_TO_PX


def px_to_mm(value: float | None, quality: float = 1.0) -> float:
    if value is None:
        return 0.0
    return float(value) / (MM_TO_PX * quality)


def mm_to_points(value: float | None) -> float:
    if value is None:
        return 0.0
    return float(value) * MM_TO_POINTS
