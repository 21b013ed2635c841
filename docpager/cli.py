"""
Command line interface.

Usage:
    docpager render page1.png page2.png -o out.pdf --page-count 1 --new-page force
    docpager version
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .api import generate_batch_pdf
from .exceptions import DocPagerError
from .models.content import BatchItem, NewPageMode, RasterizedBlock, StructuralElement
from .options import (
    BookmarkOptions,
    DocumentMetadata,
    GeneratorOptions,
    HeaderFooterTemplate,
    TocOptions,
    WatermarkOptions,
)
from .utils.logger import configure_logging

logger = logging.getLogger(__name__)

NEW_PAGE_CHOICES = {
    "force": NewPageMode.FORCE,
    "allow": NewPageMode.ALLOW,
    "default": NewPageMode.DEFAULT_BREAK_AFTER,
}


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docpager",
        description="Paginate rasterized content into PDF documents",
    )
    parser.add_argument("--log-level", default="WARNING", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--log-file", help="Also write logs to this file")
    subparsers = parser.add_subparsers(dest="command")

    render = subparsers.add_parser("render", help="Paginate image files into one PDF")
    render.add_argument("images", nargs="+", type=Path, help="Image files, one batch item each")
    render.add_argument("-o", "--output", type=Path, default=Path("document.pdf"), help="Output PDF path")
    render.add_argument("--format", default="a4", help="Paper format (a3, a4, a5, letter, legal)")
    render.add_argument("--orientation", choices=["portrait", "landscape"], default="portrait")
    render.add_argument(
        "--margins", type=float, nargs=4, metavar=("TOP", "RIGHT", "BOTTOM", "LEFT"),
        default=[10.0, 10.0, 10.0, 10.0], help="Margins in millimetres",
    )
    render.add_argument("--page-count", type=int, help="Target page count for every item")
    render.add_argument("--new-page", choices=sorted(NEW_PAGE_CHOICES), default="default")
    render.add_argument("--pixel-ratio", type=float, default=1.0, help="Image pixels per natural pixel")
    render.add_argument("--quality", type=float, default=2.0, help="Raster quality scale")
    render.add_argument("--png", action="store_true", help="Store tiles losslessly instead of JPEG")
    render.add_argument("--header", help="Header template, e.g. '{{title}}'")
    render.add_argument("--footer", help="Footer template, e.g. 'Page {{pageNumber}} of {{totalPages}}'")
    render.add_argument("--page-numbers", action="store_true", help="Print 'n / total' in the footer")
    render.add_argument("--watermark", help="Watermark text")
    render.add_argument("--title", help="Document title")
    render.add_argument("--author", help="Document author")
    render.add_argument("--bookmarks", action="store_true", help="Add one bookmark per image")
    render.add_argument("--toc", action="store_true", help="Add a table of contents listing every image")

    subparsers.add_parser("version", help="Print the version")
    return parser


def build_options(args: argparse.Namespace) -> GeneratorOptions:
    return GeneratorOptions(
        paper_format=args.format,
        orientation=args.orientation,
        margins=tuple(args.margins),
        scale=args.quality,
        image_format="png" if args.png else "jpeg",
        header=HeaderFooterTemplate(args.header) if args.header else None,
        footer=HeaderFooterTemplate(args.footer) if args.footer else None,
        show_page_numbers=args.page_numbers,
        watermark=WatermarkOptions(text=args.watermark) if args.watermark else None,
        metadata=DocumentMetadata(title=args.title, author=args.author, creator="docpager"),
        toc=TocOptions(enabled=args.toc, levels=(1,)),
        bookmarks=BookmarkOptions(enabled=args.bookmarks, levels=(1,)),
    )


def build_items(args: argparse.Namespace) -> List[BatchItem]:
    titled = args.bookmarks or args.toc
    return [
        BatchItem(
            RasterizedBlock.from_file(
                path,
                pixel_ratio=args.pixel_ratio,
                # a zero-height heading at the top names the image in the TOC and outline
                elements=(StructuralElement.heading(path.stem, 1, 0, 0),) if titled else (),
            ),
            page_count=args.page_count,
            new_page=NEW_PAGE_CHOICES[args.new_page],
            title=path.stem,
        )
        for path in args.images
    ]


def render(args: argparse.Namespace) -> int:
    options = build_options(args)
    items = build_items(args)
    logger.debug(f"Rendering {len(items)} image(s) to {args.output}")
    result = generate_batch_pdf(items, args.output, options)
    print(f"✅ {result.filename}: {result.total_pages} page(s), {result.file_size} bytes")
    for item in result.items:
        print(f"   {item.title}: pages {item.start_page}-{item.end_page} (scale {item.scale_factor:.3f})")
    for warning in result.warnings:
        print(f"⚠️  {warning}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    if args.command == "version":
        print(__version__)
        return 0
    if args.command != "render":
        parser.print_help()
        return 1

    try:
        return render(args)
    except (DocPagerError, OSError, ValueError) as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
