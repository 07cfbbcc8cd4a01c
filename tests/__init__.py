"""Test suite for the prosperity engine.

This package contains tests for the engine including:
- Unit tests for individual modules
- Integration tests for complete ingest and query workflows
"""
