"""
Page writer contract.

Pages reach the writer fully composed: bitmap tiles for the content area plus
simple text/image overlay instructions. All coordinates are millimetres from the
page's top-left corner; text ``y`` is the baseline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from PIL import Image

from ..engine.geometry import PageGeometry, Rect
from ..models.results import OutlineNode
from ..options import DocumentMetadata, SecurityOptions


@dataclass(slots=True, frozen=True)
class ImageTile:
    image: Image.Image
    x: float
    y: float
    width: float
    height: float
    source_block_id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class TextOverlay:
    text: str
    x: float
    y: float
    font_size: float = 10.0
    color: str = "#000000"
    align: str = "center"
    rotation: float = 0.0
    opacity: float = 1.0
    font_name: str = "Helvetica"


@dataclass(slots=True, frozen=True)
class ImageOverlay:
    image: Image.Image
    x: float
    y: float
    width: float
    height: float
    opacity: float = 1.0
    rotation: float = 0.0


@dataclass(slots=True, frozen=True)
class LinkArea:
    """Clickable rectangle pointing at another page of the document."""

    rect: Rect
    target_page_index: int


@dataclass(slots=True)
class ComposedPage:
    index: int
    geometry: PageGeometry
    tiles: List[ImageTile] = field(default_factory=list)
    below: List[object] = field(default_factory=list)
    above: List[object] = field(default_factory=list)
    links: List[LinkArea] = field(default_factory=list)

    @property
    def number(self) -> int:
        return self.index + 1


class PageWriter(ABC):
    """Consumes composed pages in order and produces the output bytes."""

    def set_metadata(self, metadata: DocumentMetadata) -> None:
        pass

    def set_security(self, security: SecurityOptions) -> None:
        pass

    @abstractmethod
    def add_page(self, page: ComposedPage) -> None:
        """Append one page. Called once per page, in page order."""

    def attach_outline(self, nodes: Sequence[OutlineNode], open_by_default: bool = False) -> None:
        pass

    @abstractmethod
    def finish(self) -> bytes:
        """Close the document and return its bytes."""
