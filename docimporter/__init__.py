# docimporter/__init__.py
"""
DocImporter Library

A pluggable handler runtime transforming document content and metadata.

Package Structure:
- core: Handler runtime
    - HandlerPipeline: Runs an ordered list of handlers against documents
    - document: ImporterDocument and ImporterMetadata types
    - processor: Handler base class, built-in handlers and registry
    - functions: Restrictions, charset resolution, bounded stream buffer

Usage:
    from docimporter import HandlerPipeline, ImporterDocument

    pipeline = HandlerPipeline.from_config([
        {"kind": "force_single_value", "single_value": {"author": "keepFirst"}},
    ])
    pipeline.import_document(ImporterDocument.from_text("doc-1", text, metadata))
"""

__version__ = "0.1.0"

# Expose core classes at top level
from docimporter.core import (
    HandlerPipeline,
    HandlerEntry,
    ImportResult,
    ImporterDocument,
    ImporterMetadata,
)
from docimporter.core.functions.errors import (
    ImporterError,
    ConfigurationError,
    StreamFailure,
)

# Explicit subpackages
from docimporter import core

__all__ = [
    "__version__",
    # Core classes
    "HandlerPipeline",
    "HandlerEntry",
    "ImportResult",
    "ImporterDocument",
    "ImporterMetadata",
    # Errors
    "ImporterError",
    "ConfigurationError",
    "StreamFailure",
    # Subpackages
    "core",
]
