"""
Field context for page decorations.

Builds the variables available to header/footer templates on a given page.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class FieldRenderer:
    """
    Supplies ``pageNumber``, ``totalPages``, ``date`` and ``title`` to templates.

    ``date`` is injected by the caller so output stays reproducible.
    """

    def __init__(self, date: str, title: Optional[str] = None, extra: Optional[Mapping[str, Any]] = None):
        self.date = date
        self.title = title or ""
        self.extra = dict(extra or {})

    def context(self, page_index: int, total_pages: int) -> Dict[str, Any]:
        if not 0 <= page_index < max(total_pages, 1):
            raise ValueError(f"Page index {page_index} outside document of {total_pages} page(s)")
        context = dict(self.extra)
        context.update(
            pageNumber=page_index + 1,
            totalPages=total_pages,
            date=self.date,
            title=self.title,
        )
        return context

    @staticmethod
    def page_label(page_index: int, total_pages: int) -> str:
        return f"{page_index + 1} / {total_pages}"
