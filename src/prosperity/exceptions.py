"""
Custom exceptions for the prosperity engine.

This module defines a hierarchy of exceptions to provide more
precise error handling across ingestion and reconciliation.
"""

from typing import Iterable, Optional


class EngineBaseError(Exception):
    """
    Base exception for all engine-related errors.

    All custom exceptions in the engine should inherit from this class.
    Provides a common base for catching and handling engine-specific errors.
    """

    pass


class ConfigurationError(EngineBaseError):
    """
    Raised when there are configuration-related issues.

    This exception is used when:
    - Configuration values are invalid (non-numeric, out of range)
    - Environment setup is incorrect
    """

    pass


class IngestError(EngineBaseError):
    """
    Raised when a whole indicator table cannot be loaded.

    Failures are local to the table that produced them; other
    independent loads continue.
    """

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        super().__init__(message)


class SourceUnavailableError(IngestError):
    """
    Raised when retrieval returned nothing for a source.

    Covers missing files, HTTP failures, S3 errors and
    unparseable JSON payloads.
    """

    pass


class SchemaMismatchError(IngestError):
    """
    Raised when required logical columns cannot be resolved.

    The ``missing`` attribute lists the logical columns (code, year,
    value, name) that no alias matched.
    """

    def __init__(
        self,
        message: str,
        missing: Iterable[str] = (),
        source: Optional[str] = None,
    ):
        self.missing = tuple(missing)
        super().__init__(message, source=source)


class NoDataParsedError(IngestError):
    """
    Raised when a table parsed but yielded zero valid observations.
    """

    pass
