# tests/fixtures/__init__.py
"""Builders and test converters shared across the flowgen test suite."""
