"""Page decorations and ReportLab drawing helpers."""

from .decoration_compositor import DecorationCompositor, PageDecorations
from .field_renderer import FieldRenderer
from .overlay_renderer import OverlayRenderer
from .watermark_renderer import WatermarkRenderer

__all__ = [
    "DecorationCompositor",
    "FieldRenderer",
    "OverlayRenderer",
    "PageDecorations",
    "WatermarkRenderer",
]
