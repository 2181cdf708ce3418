# docimporter/core/processor/__init__.py
"""
Processor - Document Handler Module

Provides the handler base class, the built-in handlers and the registry
used to build handlers from configuration records.

Handler List:
- keep_only_tagger: Keep only whitelisted metadata fields
- force_single_value_tagger: Collapse multi-valued metadata fields
- strip_before_transformer: Strip content before a regex match

Usage Example:
    from docimporter.core.processor import create_handler

    handler = create_handler({
        "kind": "keep_only",
        "restrict_to": [{"field": "document.contentType", "pattern": "^text/.*$"}],
        "fields": ["title"],
    })
"""
from typing import Any, Dict, Mapping, Type

from docimporter.core.functions.errors import ConfigurationError
from docimporter.core.processor.base_handler import BaseHandler, HandlerType

# === Taggers ===
from docimporter.core.processor.keep_only_tagger import KeepOnlyTagger
from docimporter.core.processor.force_single_value_tagger import ForceSingleValueTagger

# === Transformers ===
from docimporter.core.processor.strip_before_transformer import StripBeforeTransformer

HANDLER_REGISTRY: Dict[str, Type[BaseHandler]] = {
    KeepOnlyTagger.kind: KeepOnlyTagger,
    ForceSingleValueTagger.kind: ForceSingleValueTagger,
    StripBeforeTransformer.kind: StripBeforeTransformer,
}


def register_handler(handler_class: Type[BaseHandler]) -> Type[BaseHandler]:
    """Register a handler class under its kind. Usable as a class decorator."""
    if not handler_class.kind:
        raise ConfigurationError(f"{handler_class.__name__} has no kind.")
    HANDLER_REGISTRY[handler_class.kind] = handler_class
    return handler_class


def create_handler(record: Mapping[str, Any]) -> BaseHandler:
    """
    Build a handler from a configuration record.

    Args:
        record: Dict with "kind", optional "restrict_to" and handler options

    Returns:
        Handler instance

    Raises:
        ConfigurationError: Missing or unknown kind, invalid restriction or option
    """
    kind = record.get("kind")
    if not kind:
        raise ConfigurationError(f"Handler configuration is missing 'kind': {dict(record)}")
    handler_class = HANDLER_REGISTRY.get(kind)
    if handler_class is None:
        available = ", ".join(sorted(HANDLER_REGISTRY))
        raise ConfigurationError(f"Unknown handler kind '{kind}'. Available: {available}")
    return handler_class(config=dict(record))


__all__ = [
    "BaseHandler",
    "HandlerType",
    "KeepOnlyTagger",
    "ForceSingleValueTagger",
    "StripBeforeTransformer",
    "HANDLER_REGISTRY",
    "register_handler",
    "create_handler",
]
