"""
Generator options.

``DEFAULT_OPTIONS`` holds the library defaults and is never mutated; callers
derive their own copies with ``DEFAULT_OPTIONS.merge(...)`` or
``GeneratorOptions.from_dict(...)``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from .engine.geometry import Margins, PageGeometry, resolve_geometry
from .models.content import MediaType

DEFAULT_AVOID_BREAK_INSIDE: Tuple[str, ...] = (
    "table", "figure", "img", "svg", "pre", "code", "blockquote", "ul", "ol", "dl",
)
WATERMARK_POSITIONS = ("center", "diagonal", "top-left", "top-right", "bottom-left", "bottom-right")


@dataclass(frozen=True)
class WatermarkOptions:
    text: Optional[str] = None
    image: Any = None
    opacity: Optional[float] = None
    position: Optional[str] = None
    rotation: Optional[float] = None
    font_size: float = 48.0
    color: str = "#cccccc"
    all_pages: bool = True
    width: float = 50.0
    height: float = 50.0
    layer: str = "above"

    def __post_init__(self):
        if self.text is None and self.image is None:
            raise ValueError("Watermark needs text or an image")
        if self.opacity is not None and not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"Watermark opacity must be within 0..1, got {self.opacity}")
        if self.layer not in ("above", "below"):
            raise ValueError(f"Watermark layer must be 'above' or 'below', got {self.layer!r}")
        if self.position is not None and self.position not in WATERMARK_POSITIONS:
            raise ValueError(f"Unknown watermark position: {self.position!r}")

    @property
    def effective_opacity(self) -> float:
        if self.opacity is not None:
            return self.opacity
        return 0.1 if self.text is not None else 0.15

    @property
    def effective_position(self) -> str:
        if self.position is not None:
            return self.position
        return "diagonal" if self.text is not None else "center"

    @property
    def effective_rotation(self) -> float:
        if self.rotation is not None:
            return self.rotation
        return 45.0 if self.effective_position == "diagonal" else 0.0


@dataclass(frozen=True)
class HeaderFooterTemplate:
    """Header or footer band. ``first_page=False`` leaves page 1 bare."""

    template: str
    height: float = 15.0
    first_page: bool = True
    font_size: float = 10.0
    color: str = "#404040"


@dataclass(frozen=True)
class DocumentMetadata:
    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    creator: Optional[str] = None
    producer: Optional[str] = None
    creation_date: Optional[datetime] = None


@dataclass(frozen=True)
class TocOptions:
    enabled: bool = False
    title: str = "Table of Contents"
    levels: Tuple[int, ...] = (1, 2, 3)
    position: str = "start"
    include_page_numbers: bool = True
    indent_per_level: float = 5.0
    enable_links: bool = True
    entry_template: str = "{{text}}"
    font_size: float = 11.0
    title_font_size: float = 18.0

    def __post_init__(self):
        if self.position not in ("start", "end"):
            raise ValueError(f"TOC position must be 'start' or 'end', got {self.position!r}")


@dataclass(frozen=True)
class BookmarkEntry:
    """A caller-supplied outline entry; ``page`` is a 1-based output page."""

    title: str
    page: int
    level: int = 1
    children: Tuple["BookmarkEntry", ...] = ()


@dataclass(frozen=True)
class BookmarkOptions:
    enabled: bool = False
    auto_generate: bool = True
    levels: Tuple[int, ...] = (1, 2, 3)
    custom: Tuple[BookmarkEntry, ...] = ()
    open_by_default: bool = False


@dataclass(frozen=True)
class PermissionOptions:
    printing: str = "highResolution"
    modifying: bool = True
    copying: bool = True
    annotating: bool = True
    filling_forms: bool = True
    content_accessibility: bool = True
    document_assembly: bool = True


@dataclass(frozen=True)
class SecurityOptions:
    """Carried through to the page writer untouched."""

    enabled: bool = False
    user_password: Optional[str] = None
    owner_password: Optional[str] = None
    permissions: PermissionOptions = field(default_factory=PermissionOptions)
    encryption_strength: int = 128


@dataclass(frozen=True)
class TemplateOptions:
    context: Mapping[str, Any] = field(default_factory=dict)
    enable_loops: bool = True
    enable_conditionals: bool = True


@dataclass(frozen=True)
class BreakOptions:
    avoid_table_row_split: bool = True
    prevent_orphaned_headings: bool = True
    respect_css_page_breaks: bool = True
    avoid_break_inside: Tuple[str, ...] = DEFAULT_AVOID_BREAK_INSIDE
    break_before: Tuple[str, ...] = ()
    break_after: Tuple[str, ...] = ()
    orphan_gap: float = 50.0
    orphan_guard: float = 48.0
    repeat_table_headers: bool = True


@dataclass(frozen=True)
class ScalingOptions:
    natural_scale: float = 1.0
    min_legible_scale: float = 0.5
    max_scale: float = 4.0
    precision: float = 1e-4


@dataclass(frozen=True)
class GeneratorOptions:
    paper_format: Union[str, Tuple[float, float]] = "a4"
    orientation: str = "portrait"
    margins: Tuple[float, float, float, float] = (10.0, 10.0, 10.0, 10.0)
    scale: float = 2.0
    image_quality: float = 0.85
    image_format: str = "jpeg"
    compress: bool = True
    fit_to_width: bool = True
    emulate_media_type: MediaType = MediaType.SCREEN
    header: Optional[HeaderFooterTemplate] = None
    footer: Optional[HeaderFooterTemplate] = None
    header_callback: Optional[Callable[[int, int], Optional[str]]] = None
    footer_callback: Optional[Callable[[int, int], Optional[str]]] = None
    show_page_numbers: bool = False
    page_number_position: str = "footer"
    watermark: Optional[WatermarkOptions] = None
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    toc: TocOptions = field(default_factory=TocOptions)
    bookmarks: BookmarkOptions = field(default_factory=BookmarkOptions)
    security: SecurityOptions = field(default_factory=SecurityOptions)
    template: TemplateOptions = field(default_factory=TemplateOptions)
    breaks: BreakOptions = field(default_factory=BreakOptions)
    scaling: ScalingOptions = field(default_factory=ScalingOptions)
    date: Optional[str] = None
    date_format: str = "%Y-%m-%d"
    clock: Callable[[], datetime] = datetime.now
    on_progress: Optional[Callable[[int], None]] = None
    on_complete: Optional[Callable[[bytes], None]] = None
    on_error: Optional[Callable[[BaseException], None]] = None

    def __post_init__(self):
        if self.scale <= 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        if not 0.0 < self.image_quality <= 1.0:
            raise ValueError(f"image_quality must be within (0, 1], got {self.image_quality}")
        if self.image_format not in ("jpeg", "png"):
            raise ValueError(f"image_format must be 'jpeg' or 'png', got {self.image_format!r}")
        if self.page_number_position not in ("header", "footer"):
            raise ValueError(f"page_number_position must be 'header' or 'footer', got {self.page_number_position!r}")
        if not isinstance(self.emulate_media_type, MediaType):
            object.__setattr__(self, "emulate_media_type", MediaType(self.emulate_media_type))

    def resolve_geometry(self) -> PageGeometry:
        return resolve_geometry(self.paper_format, self.orientation, Margins.from_sequence(self.margins))

    def merge(self, **overrides: Any) -> "GeneratorOptions":
        return dataclasses.replace(self, **overrides)

    def date_text(self) -> str:
        if self.date is not None:
            return self.date
        return self.clock().strftime(self.date_format)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base: Optional["GeneratorOptions"] = None) -> "GeneratorOptions":
        """
        Build options from plain dictionaries.

        Nested sections (``header``, ``footer``, ``watermark``, ``metadata``,
        ``toc``, ``bookmarks``, ``security``, ``template``, ``breaks``,
        ``scaling``) may be given as dicts; everything else is passed through.
        """
        base = base or DEFAULT_OPTIONS
        sections: Dict[str, type] = {
            "header": HeaderFooterTemplate,
            "footer": HeaderFooterTemplate,
            "watermark": WatermarkOptions,
            "metadata": DocumentMetadata,
            "toc": TocOptions,
            "bookmarks": BookmarkOptions,
            "security": SecurityOptions,
            "template": TemplateOptions,
            "breaks": BreakOptions,
            "scaling": ScalingOptions,
        }
        known = {f.name for f in dataclasses.fields(cls)}
        overrides: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                raise ValueError(f"Unknown option: {key}")
            section = sections.get(key)
            if section is not None and isinstance(value, Mapping):
                value = _build_section(section, value)
            elif key == "margins" and isinstance(value, (int, float)):
                value = (float(value),) * 4
            elif isinstance(value, list):
                value = tuple(value)
            overrides[key] = value
        return dataclasses.replace(base, **overrides)


def _build_section(section: type, value: Mapping[str, Any]) -> Any:
    kwargs: Dict[str, Any] = {}
    for key, item in value.items():
        if section is SecurityOptions and key == "permissions" and isinstance(item, Mapping):
            item = PermissionOptions(**item)
        elif section is BookmarkOptions and key == "custom":
            item = tuple(_bookmark(entry) for entry in item)
        elif isinstance(item, list):
            item = tuple(item)
        kwargs[key] = item
    return section(**kwargs)


def _bookmark(entry: Union[BookmarkEntry, Mapping[str, Any]]) -> BookmarkEntry:
    if isinstance(entry, BookmarkEntry):
        return entry
    children = tuple(_bookmark(child) for child in entry.get("children", ()))
    return BookmarkEntry(
        title=entry["title"],
        page=int(entry["page"]),
        level=int(entry.get("level", 1)),
        children=children,
    )


DEFAULT_OPTIONS = GeneratorOptions()
