# docimporter/core/functions/errors.py
"""
Errors - Importer Exception Types

Fatal errors only. Encoding problems and unusable handler options are
recovered where they happen and are only visible in the logs.

- ImporterError: Base class for all importer errors
- ConfigurationError: Invalid handler or pipeline configuration (raised at build time)
- StreamFailure: Reading the document or writing its output failed (aborts the document)
"""
from typing import Optional


class ImporterError(Exception):
    """Base class for importer errors."""


class ConfigurationError(ImporterError, ValueError):
    """Raised when a handler or pipeline cannot be built from its configuration."""


class StreamFailure(ImporterError):
    """Raised when a document stream cannot be read or its output cannot be written.

    Attributes:
        reference: Reference of the document being processed (if known)
    """

    def __init__(self, message: str, reference: Optional[str] = None):
        super().__init__(message)
        self.reference = reference


__all__ = ["ImporterError", "ConfigurationError", "StreamFailure"]
