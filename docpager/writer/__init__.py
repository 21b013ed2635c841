"""Page writers."""

from .base import ComposedPage, ImageOverlay, ImageTile, LinkArea, PageWriter, TextOverlay
from .reportlab_writer import ReportLabPageWriter

__all__ = [
    "ComposedPage",
    "ImageOverlay",
    "ImageTile",
    "LinkArea",
    "PageWriter",
    "ReportLabPageWriter",
    "TextOverlay",
]
