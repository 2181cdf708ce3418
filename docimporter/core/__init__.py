# docimporter/core/__init__.py
"""
Core - Handler Runtime Module

Module Components:
- handler_pipeline: HandlerPipeline, HandlerEntry, ImportResult
- document: ImporterDocument, ImporterMetadata
- processor: Handlers and handler registry
- functions: Restrictions, charset resolution, stream buffer, errors
"""

from docimporter.core.document import ImporterDocument, ImporterMetadata
from docimporter.core.handler_pipeline import HandlerEntry, HandlerPipeline, ImportResult

__all__ = [
    "HandlerPipeline",
    "HandlerEntry",
    "ImportResult",
    "ImporterDocument",
    "ImporterMetadata",
]
