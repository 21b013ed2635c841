"""Custom exceptions for docpager."""

from typing import Optional


class DocPagerError(Exception):
    """Base exception for docpager errors."""

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        self.cause = cause

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class GeometryError(DocPagerError):
    """Exception raised during geometry calculations."""

    pass


class InvalidGeometry(GeometryError):
    """Page size or margins leave no usable content area."""

    pass


class RasterizationError(DocPagerError):
    """Exception raised when a content block cannot be measured or rasterized."""

    pass


class WriterError(DocPagerError):
    """Exception raised by the page writer."""

    pass


class LayoutError(DocPagerError):
    """Exception raised during layout calculation."""

    pass


class TemplateError(DocPagerError):
    """Exception raised while interpolating a template."""

    pass


class GenerationCancelled(DocPagerError):
    """Raised when a generation call is cancelled between items."""

    def __init__(self, message: str = "Generation cancelled", details: Optional[str] = None):
        super().__init__(message, details)
