"""
Pagination engine.

Geometry, scale resolution, break decisions, TOC resolution and batch
assembly. Submodules are imported directly (``docpager.engine.page_breaker``,
``docpager.engine.assembler``); only the option-independent primitives are
re-exported here.
"""

from .geometry import (
    ContentRect,
    Margins,
    Orientation,
    PageGeometry,
    PaperFormat,
    Rect,
    Size,
    resolve_geometry,
)
from .scaling import ScaleDecision, ScalingResolver

__all__ = [
    "ContentRect",
    "Margins",
    "Orientation",
    "PageGeometry",
    "PaperFormat",
    "Rect",
    "ScaleDecision",
    "ScalingResolver",
    "Size",
    "resolve_geometry",
]
