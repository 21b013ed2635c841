"""Tests for docpager.renderers."""
