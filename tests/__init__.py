"""
Test suite for the docpager project.

This module contains all unit tests for the docpager package.
"""
