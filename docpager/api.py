"""
High-level API.

Example:
    >>> from PIL import Image
    >>> from docpager import generate_batch_pdf, BatchItem, RasterizedBlock
    >>>
    >>> items = [
    ...     BatchItem(RasterizedBlock(image=Image.open("cover.png")), page_count=1, title="Cover"),
    ...     BatchItem(RasterizedBlock(image=Image.open("report.png")), title="Report"),
    ... ]
    >>> result = generate_batch_pdf(items, "report.pdf", {"paper_format": "a4"})
    >>> [(i.title, i.start_page, i.end_page) for i in result.items]
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
import time
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from .engine.assembler import BatchAssembler, CancellationToken
from .engine.assembler.batch_assembler import WriterFactory
from .models.content import BatchItem, ContentLike, NewPageMode, as_content_block
from .models.results import BatchResult, GenerationResult
from .options import DEFAULT_OPTIONS, GeneratorOptions
from .rasterizer import Rasterizer

logger = logging.getLogger(__name__)

__all__ = [
    "PdfGenerator",
    "generate_pdf",
    "generate_pdf_blob",
    "generate_batch_pdf",
    "generate_batch_pdf_blob",
    "sanitize_filename",
    "estimate_page_count",
]

OptionsLike = Union[GeneratorOptions, Mapping[str, Any], None]
BatchLike = Union[BatchItem, Mapping[str, Any]]

_UNSAFE = re.compile(r"[^\w\s-]", re.UNICODE)
_SPACES = re.compile(r"\s+")


def sanitize_filename(name: str, extension: str = "pdf") -> str:
    """Make ``name`` safe for the file system; falls back to ``document.<ext>``."""
    cleaned = _SPACES.sub("_", _UNSAFE.sub(" ", name.strip())).strip("_")[:50]
    return f"{cleaned}.{extension}" if cleaned else f"document.{extension}"


def estimate_page_count(content_height: float, page_height: float) -> int:
    if page_height <= 0:
        raise ValueError("page_height must be positive")
    return math.ceil(content_height / page_height)


def as_options(options: OptionsLike) -> GeneratorOptions:
    if options is None:
        return DEFAULT_OPTIONS
    if isinstance(options, GeneratorOptions):
        return options
    return GeneratorOptions.from_dict(options)


def as_batch_item(item: BatchLike) -> BatchItem:
    """Accept ``BatchItem`` or ``{"content", "page_count", "new_page", "title"}`` dicts."""
    if isinstance(item, BatchItem):
        return item
    return BatchItem(
        block=as_content_block(item["content"]),
        page_count=item.get("page_count"),
        new_page=NewPageMode.from_flag(item.get("new_page")),
        title=item.get("title"),
    )


class PdfGenerator:
    """
    Paginated PDF generation.

    Each call builds its own assembler, so one generator can serve calls
    sequentially with different content.
    """

    def __init__(
        self,
        options: OptionsLike = None,
        rasterizer: Optional[Rasterizer] = None,
        writer_factory: Optional[WriterFactory] = None,
    ):
        self.options = as_options(options)
        self.rasterizer = rasterizer
        self.writer_factory = writer_factory

    def update_options(self, **overrides: Any) -> None:
        self.options = self.options.merge(**overrides)

    def get_config(self) -> GeneratorOptions:
        return self.options

    def _assembler(self) -> BatchAssembler:
        return BatchAssembler(
            self.options.resolve_geometry(),
            self.options,
            rasterizer=self.rasterizer,
            writer_factory=self.writer_factory,
        )

    async def generate_batch(
        self,
        items: Sequence[BatchLike],
        filename: Optional[Union[str, Path]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> BatchResult:
        try:
            batch = [as_batch_item(item) for item in items]
            result = await self._assembler().generate(batch, cancel)
            if filename is not None:
                result.filename = str(self._save(result.pdf, filename))
        except Exception as exc:
            logger.error(f"PDF generation failed: {exc}")
            if self.options.on_error is not None:
                self.options.on_error(exc)
            raise
        if self.options.on_complete is not None:
            self.options.on_complete(result.pdf)
        return result

    async def generate(
        self,
        content: ContentLike,
        filename: Optional[Union[str, Path]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> GenerationResult:
        """Paginate a single content block at its natural scale."""
        started = time.perf_counter()
        batch = await self.generate_batch([BatchItem(as_content_block(content))], filename, cancel)
        return GenerationResult(
            pdf=batch.pdf,
            page_count=batch.total_pages,
            file_size=batch.file_size,
            generation_time_ms=(time.perf_counter() - started) * 1000.0,
            warnings=batch.warnings,
            filename=batch.filename,
        )

    async def generate_blob(self, content: ContentLike) -> bytes:
        return (await self.generate(content)).pdf

    async def generate_batch_blob(self, items: Sequence[BatchLike]) -> bytes:
        return (await self.generate_batch(items)).pdf

    @staticmethod
    def _save(pdf: bytes, filename: Union[str, Path]) -> Path:
        path = Path(filename)
        if path.suffix.lower() != ".pdf":
            path = path.with_name(sanitize_filename(path.name))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(pdf)
        logger.info(f"Saved {len(pdf)} bytes to {path}")
        return path


def generate_pdf(
    content: ContentLike,
    filename: Optional[Union[str, Path]] = "document.pdf",
    options: OptionsLike = None,
    rasterizer: Optional[Rasterizer] = None,
) -> GenerationResult:
    """Synchronous wrapper around ``PdfGenerator.generate``."""
    return asyncio.run(PdfGenerator(options, rasterizer).generate(content, filename))


def generate_pdf_blob(
    content: ContentLike,
    options: OptionsLike = None,
    rasterizer: Optional[Rasterizer] = None,
) -> bytes:
    return asyncio.run(PdfGenerator(options, rasterizer).generate_blob(content))


def generate_batch_pdf(
    items: Sequence[BatchLike],
    filename: Optional[Union[str, Path]] = "document.pdf",
    options: OptionsLike = None,
    rasterizer: Optional[Rasterizer] = None,
    cancel: Optional[CancellationToken] = None,
) -> BatchResult:
    """Synchronous wrapper around ``PdfGenerator.generate_batch``."""
    return asyncio.run(PdfGenerator(options, rasterizer).generate_batch(items, filename, cancel))


def generate_batch_pdf_blob(
    items: Sequence[BatchLike],
    options: OptionsLike = None,
    rasterizer: Optional[Rasterizer] = None,
) -> bytes:
    return asyncio.run(PdfGenerator(options, rasterizer).generate_batch_blob(items))
