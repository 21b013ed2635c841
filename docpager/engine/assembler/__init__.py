"""Batch assembly: planning pages across items and writing them out."""

from .batch_assembler import BatchAssembler, CancellationToken, needs_boundary

__all__ = ["BatchAssembler", "CancellationToken", "needs_boundary"]
