"""Tests for docpager.writer."""
