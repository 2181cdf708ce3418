# docimporter/core/functions/__init__.py
"""
Functions - Handler Runtime Building Blocks

Module Components:
- restriction: RestrictionRule, RestrictionSet, ApplicabilityGate
- encoding: CharsetResolver and charset helpers
- stream_buffer: BoundedStreamBuffer and TransformBuffer
- errors: Importer exception types
- utils: Configuration value helpers

Usage Example:
    from docimporter.core.functions import ApplicabilityGate, CharsetResolver
    from docimporter.core.functions.stream_buffer import BoundedStreamBuffer
"""

from docimporter.core.functions.errors import (
    ImporterError,
    ConfigurationError,
    StreamFailure,
)

# Configuration helpers
from docimporter.core.functions.utils import to_bool

# Restriction module
from docimporter.core.functions.restriction import (
    RestrictionRule,
    RestrictionSet,
    ApplicabilityGate,
)

# Encoding module
from docimporter.core.functions.encoding import (
    UTF_8,
    EncodingConfig,
    CharsetProvenance,
    CharsetDecision,
    CharsetResolver,
    canonicalize_charset,
)

# Stream buffer module
from docimporter.core.functions.stream_buffer import (
    BufferConfig,
    TransformBuffer,
    BoundedStreamBuffer,
    available_memory,
)

__all__ = [
    # Errors
    "ImporterError",
    "ConfigurationError",
    "StreamFailure",
    # Configuration helpers
    "to_bool",
    # Restriction
    "RestrictionRule",
    "RestrictionSet",
    "ApplicabilityGate",
    # Encoding
    "UTF_8",
    "EncodingConfig",
    "CharsetProvenance",
    "CharsetDecision",
    "CharsetResolver",
    "canonicalize_charset",
    # Stream buffer
    "BufferConfig",
    "TransformBuffer",
    "BoundedStreamBuffer",
    "available_memory",
]
