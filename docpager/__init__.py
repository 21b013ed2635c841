"""
docpager - pagination and compositing engine for rasterized content.

Turns one or more rendered content blocks into paged PDF output:

- Page geometry from paper presets, orientation and margins
- Per-item scaling to hit a requested page count
- Page breaks that keep table rows and headings together and honour forced breaks
- Headers, footers, page numbers and watermarks
- Table of contents and PDF outline with page numbers resolved after pagination
- Batch assembly with force / allow / break-after page modes

Main Components:
- PdfGenerator: async generation API, with sync wrappers below
- BatchAssembler: end-to-end pagination for one call
- PageBreakEngine, ScalingResolver: layout decisions
- DecorationCompositor: per-page overlays
- ReportLabPageWriter: PDF output
"""

from .version import __version__

from .exceptions import (
    DocPagerError,
    GenerationCancelled,
    GeometryError,
    InvalidGeometry,
    LayoutError,
    RasterizationError,
    TemplateError,
    WriterError,
)
from .models import (
    BatchItem,
    BatchResult,
    BlockLayout,
    ContentBlock,
    ElementKind,
    GenerationResult,
    HeadingEntry,
    ItemResult,
    LayoutWarning,
    MediaType,
    NewPageMode,
    OutlineNode,
    PageSegment,
    RasterizableBlock,
    RasterizedBlock,
    StructuralElement,
    WarningCode,
)
from .options import (
    DEFAULT_OPTIONS,
    BookmarkEntry,
    BookmarkOptions,
    BreakOptions,
    DocumentMetadata,
    GeneratorOptions,
    HeaderFooterTemplate,
    PermissionOptions,
    ScalingOptions,
    SecurityOptions,
    TemplateOptions,
    TocOptions,
    WatermarkOptions,
)
from .engine.geometry import Orientation, PageGeometry, PaperFormat, resolve_geometry
from .engine.scaling import ScalingResolver
from .engine.page_breaker import PageBreakEngine
from .engine.assembler import BatchAssembler, CancellationToken
from .rasterizer import BitmapRasterizer, Rasterizer
from .renderers.decoration_compositor import DecorationCompositor
from .writer import PageWriter, ReportLabPageWriter
from .api import (
    PdfGenerator,
    estimate_page_count,
    generate_batch_pdf,
    generate_batch_pdf_blob,
    generate_pdf,
    generate_pdf_blob,
    sanitize_filename,
)
from .utils.logger import configure_logging

__all__ = [
    "__version__",
    # Exceptions
    "DocPagerError",
    "GenerationCancelled",
    "GeometryError",
    "InvalidGeometry",
    "LayoutError",
    "RasterizationError",
    "TemplateError",
    "WriterError",
    # Models
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
    # Options
    "DEFAULT_OPTIONS",
    "BookmarkEntry",
    "BookmarkOptions",
    "BreakOptions",
    "DocumentMetadata",
    "GeneratorOptions",
    "HeaderFooterTemplate",
    "PermissionOptions",
    "ScalingOptions",
    "SecurityOptions",
    "TemplateOptions",
    "TocOptions",
    "WatermarkOptions",
    # Engine
    "BatchAssembler",
    "CancellationToken",
    "DecorationCompositor",
    "Orientation",
    "PageBreakEngine",
    "PageGeometry",
    "PaperFormat",
    "ScalingResolver",
    "resolve_geometry",
    # Rasterizers and writers
    "BitmapRasterizer",
    "PageWriter",
    "Rasterizer",
    "ReportLabPageWriter",
    # API
    "PdfGenerator",
    "estimate_page_count",
    "generate_batch_pdf",
    "generate_batch_pdf_blob",
    "generate_pdf",
    "generate_pdf_blob",
    "sanitize_filename",
    # Logging
    "configure_logging",
]
