"""
Template interpolation for headers, footers and TOC entries.

Supported syntax:
- ``{{ name }}`` and dotted paths ``{{ meta.title }}``
- ``{{#each items}}...{{/each}}`` with ``{{this}}``, ``{{@index}}`` and item keys
- ``{{#if name}}...{{else}}...{{/if}}``

Unknown variables render as empty strings.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional

from ..exceptions import TemplateError

logger = logging.getLogger(__name__)


class PlaceholderResolver:
    """``{{variable}}`` interpolator with optional loops and conditionals."""

    VARIABLE_PATTERN = re.compile(r"\{\{\s*(?P<name>[@\w.]+)\s*\}\}")
    EACH_PATTERN = re.compile(
        r"\{\{#each\s+(?P<name>[\w.]+)\s*\}\}(?P<body>.*?)\{\{/each\}\}", re.DOTALL
    )
    IF_PATTERN = re.compile(
        r"\{\{#if\s+(?P<name>[@\w.]+)\s*\}\}(?P<body>.*?)(?:\{\{else\}\}(?P<alt>.*?))?\{\{/if\}\}",
        re.DOTALL,
    )

    def __init__(self, enable_loops: bool = True, enable_conditionals: bool = True):
        self.enable_loops = enable_loops
        self.enable_conditionals = enable_conditionals

    def interpolate(self, template: str, context: Mapping[str, Any]) -> str:
        if not template:
            return ""
        text = template
        if self.enable_loops:
            text = self.EACH_PATTERN.sub(lambda m: self._render_each(m, context), text)
        if self.enable_conditionals:
            text = self.IF_PATTERN.sub(lambda m: self._render_if(m, context), text)
        if (self.enable_loops and "{{#each" in text) or (self.enable_conditionals and "{{#if" in text):
            raise TemplateError("Unclosed block in template", template)
        return self.VARIABLE_PATTERN.sub(lambda m: self._format(self.lookup(context, m.group("name"))), text)

    def _render_each(self, match: re.Match, context: Mapping[str, Any]) -> str:
        items = self.lookup(context, match.group("name"))
        if not items:
            return ""
        if isinstance(items, (str, bytes)) or not hasattr(items, "__iter__"):
            raise TemplateError("#each needs a sequence", match.group("name"))
        parts = []
        for index, item in enumerate(items):
            scope = dict(context)
            if isinstance(item, Mapping):
                scope.update(item)
            scope["this"] = item
            scope["@index"] = index
            parts.append(self.interpolate(match.group("body"), scope))
        return "".join(parts)

    def _render_if(self, match: re.Match, context: Mapping[str, Any]) -> str:
        if self.lookup(context, match.group("name")):
            return match.group("body")
        return match.group("alt") or ""

    @staticmethod
    def lookup(context: Mapping[str, Any], name: str) -> Optional[Any]:
        if name in context:
            return context[name]
        value: Any = context
        for part in name.split("."):
            if isinstance(value, Mapping):
                value = value.get(part)
            else:
                value = getattr(value, part, None)
            if value is None:
                return None
        return value

    @staticmethod
    def _format(value: Any) -> str:
        if value is None:
            return ""
        return str(value)
