"""Data models shared by the engine, renderers and writers."""

from .content import (
    BatchItem,
    BlockLayout,
    ContentBlock,
    ElementKind,
    MediaType,
    NewPageMode,
    RasterizableBlock,
    RasterizedBlock,
    StructuralElement,
    as_content_block,
)
from .results import (
    BatchResult,
    GenerationResult,
    HeadingEntry,
    ItemResult,
    LayoutWarning,
    OutlineNode,
    PageSegment,
    WarningCode,
)

__all__ = [
    "BatchItem",
    "BatchResult",
    "BlockLayout",
    "ContentBlock",
    "ElementKind",
    "GenerationResult",
    "HeadingEntry",
    "ItemResult",
    "LayoutWarning",
    "MediaType",
    "NewPageMode",
    "OutlineNode",
    "PageSegment",
    "RasterizableBlock",
    "RasterizedBlock",
    "StructuralElement",
    "WarningCode",
    "as_content_block",
]
