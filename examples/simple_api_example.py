#!/usr/bin/env python3
"""
Example of the high-level API.

Draws a small report with Pillow, records where its headings and table rows
are, and paginates it together with a cover page into one PDF with a table of
contents, bookmarks, page numbers and a watermark.
"""

from pathlib import Path

from PIL import Image, ImageDraw

from docpager import (
    BatchItem,
    NewPageMode,
    RasterizedBlock,
    StructuralElement,
    configure_logging,
    generate_batch_pdf,
)
from docpager.options import BookmarkOptions, GeneratorOptions, HeaderFooterTemplate, TocOptions, WatermarkOptions

WIDTH = 718
ROW_HEIGHT = 40


def draw_cover() -> RasterizedBlock:
    image = Image.new("RGB", (WIDTH, 400), "white")
    draw = ImageDraw.Draw(image)
    draw.text((40, 180), "Quarterly report", fill="black")
    return RasterizedBlock(image=image, elements=(StructuralElement.heading("Cover", 1, 0, 0),))


def draw_report(rows: int = 80) -> RasterizedBlock:
    """A heading followed by a long table; rows must not be split across pages."""
    height = 80 + (rows + 1) * ROW_HEIGHT
    image = Image.new("RGB", (WIDTH, height), "white")
    draw = ImageDraw.Draw(image)
    elements = [StructuralElement.heading("Sales by region", 1, 20, 60)]
    draw.text((20, 30), "Sales by region", fill="black")
    draw.rectangle((20, 80, WIDTH - 20, 80 + ROW_HEIGHT), fill="lightgrey", outline="grey")
    draw.text((30, 92), "Region", fill="black")
    # the header row is redrawn on every page the table continues onto
    elements.append(StructuralElement.table_header(80, 80 + ROW_HEIGHT))
    for row in range(rows):
        top = 80 + (row + 1) * ROW_HEIGHT
        draw.rectangle((20, top, WIDTH - 20, top + ROW_HEIGHT), outline="grey")
        draw.text((30, top + 12), f"Region {row + 1}", fill="black")
        elements.append(StructuralElement.table_row(top, top + ROW_HEIGHT))
    return RasterizedBlock(image=image, elements=tuple(elements))


def main():
    """Generate output/simple_api_example.pdf."""
    configure_logging("INFO")

    options = GeneratorOptions(
        footer=HeaderFooterTemplate("Page {{pageNumber}} of {{totalPages}}", first_page=False),
        watermark=WatermarkOptions(text="DRAFT"),
        toc=TocOptions(enabled=True),
        bookmarks=BookmarkOptions(enabled=True),
    )
    items = [
        BatchItem(draw_cover(), page_count=1, new_page=NewPageMode.FORCE, title="Cover"),
        BatchItem(draw_report(), title="Sales"),
    ]

    print("📄 Generating PDF...")
    result = generate_batch_pdf(items, "output/simple_api_example.pdf", options)
    print(f"   ✅ PDF saved: {result.filename} ({result.total_pages} pages)")
    for item in result.items:
        print(f"   {item.title}: pages {item.start_page}-{item.end_page}")
    for warning in result.warnings:
        print(f"   ⚠️  {warning}")


if __name__ == "__main__":
    Path('output').mkdir(exist_ok=True)

    main()
