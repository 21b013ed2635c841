"""Tests for docpager.engine."""
