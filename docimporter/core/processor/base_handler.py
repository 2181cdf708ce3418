# docimporter/core/processor/base_handler.py
"""
BaseHandler - Abstract base class for document handlers

Defines the capability every handler registered in a pipeline exposes:
its restrictions, plus one of two entry points:

- TAGGER handlers implement tag_document() and mutate metadata only
- TRANSFORMER handlers implement transform_string_content() and rewrite
  a text chunk in place (and may also edit metadata)

Restriction evaluation and charset resolution are not inherited; the
pipeline passes each handler its shared ApplicabilityGate and
CharsetResolver.

Usage Example:
    class UppercaseTransformer(BaseHandler):
        handler_type = HandlerType.TRANSFORMER

        def transform_string_content(self, reference, content, metadata, parsed, partial_content):
            content.set(content.getvalue().upper())
"""
import logging
from abc import ABC
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, TYPE_CHECKING

from docimporter.core.functions.restriction import RestrictionRule, RestrictionSet

if TYPE_CHECKING:
    from docimporter.core.document import ImporterMetadata
    from docimporter.core.functions.stream_buffer import TransformBuffer

logger = logging.getLogger("docimporter")


class HandlerType(Enum):
    """Entry point a handler implements."""
    TAGGER = "tagger"
    TRANSFORMER = "transformer"


class BaseHandler(ABC):
    """
    Abstract base class for document handlers.

    config is the declarative record the handler was built from. Subclasses
    read their options from it in _load_config() and write them back in
    _save_config(), so that to_config() round-trips through create_handler().

    Attributes:
        kind: Registry key of the handler
        handler_type: Entry point the handler implements
        restrictions: Rules deciding whether the handler applies to a document
        charset: Explicit charset for TRANSFORMER handlers (blank = resolve)
        config: Configuration record
        logger: Logging instance
    """

    kind: str = ""
    handler_type: HandlerType = HandlerType.TAGGER

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        restrictions: Optional[Iterable[RestrictionRule]] = None
    ):
        """
        Initialize BaseHandler.

        Args:
            config: Configuration record (handler options and "restrict_to")
            restrictions: Initial restriction rules (added after those in config)

        Raises:
            ConfigurationError: A restriction or option in config is invalid
        """
        self._config = dict(config or {})
        self._restrictions = RestrictionSet()
        self._logger = logging.getLogger(f"docimporter.{self.__class__.__name__}")
        self.charset: Optional[str] = self._config.get("charset")

        restrict_to = self._config.get("restrict_to") or []
        if isinstance(restrict_to, Mapping):
            restrict_to = [restrict_to]
        self._restrictions.replace(RestrictionRule.from_config(r) for r in restrict_to)
        self._restrictions.add_all(restrictions)
        self._load_config(self._config)

    @property
    def config(self) -> Dict[str, Any]:
        """Configuration record."""
        return self._config

    @property
    def restrictions(self) -> RestrictionSet:
        """Restriction rules."""
        return self._restrictions

    @property
    def logger(self) -> logging.Logger:
        """Logger instance."""
        return self._logger

    # =========================================================================
    # Restriction shortcuts
    # =========================================================================

    def add_restriction(self, field: str, regex: str, case_sensitive: bool = False) -> RestrictionRule:
        return self._restrictions.add(field, regex, case_sensitive)

    def remove_restriction(self, field: str) -> int:
        return self._restrictions.remove_field(field)

    def clear_restrictions(self) -> None:
        self._restrictions.clear()

    # =========================================================================
    # Entry points
    # =========================================================================

    def tag_document(self, reference: str, metadata: "ImporterMetadata", parsed: bool) -> None:
        """
        Mutate document metadata. Implemented by TAGGER handlers.

        Args:
            reference: Document reference
            metadata: Shared metadata (edits are visible to later handlers)
            parsed: Whether the document was already parsed
        """
        raise NotImplementedError(f"{type(self).__name__} is not a metadata tagger")

    def transform_string_content(
        self,
        reference: str,
        content: "TransformBuffer",
        metadata: "ImporterMetadata",
        parsed: bool,
        partial_content: bool
    ) -> None:
        """
        Rewrite a chunk of document text in place. Implemented by TRANSFORMER handlers.

        Args:
            reference: Document reference
            content: Text chunk; edit it in place
            metadata: Shared metadata
            parsed: Whether the document was already parsed
            partial_content: True when more chunks of the same document will follow
        """
        raise NotImplementedError(f"{type(self).__name__} is not a string transformer")

    # =========================================================================
    # Configuration
    # =========================================================================

    def _load_config(self, config: Dict[str, Any]) -> None:
        """Read handler-specific options. Raise ConfigurationError when unusable."""

    def _save_config(self, config: Dict[str, Any]) -> None:
        """Write handler-specific options."""

    def to_config(self) -> Dict[str, Any]:
        """Return a configuration record that rebuilds an equal handler."""
        record: Dict[str, Any] = {"kind": self.kind}
        rules = self._restrictions.snapshot()
        if rules:
            record["restrict_to"] = [rule.to_config() for rule in rules]
        if self.charset:
            record["charset"] = self.charset
        self._save_config(record)
        return record

    def _options(self) -> Dict[str, Any]:
        options = self.to_config()
        options.pop("kind", None)
        options.pop("restrict_to", None)
        return options

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self._restrictions == other._restrictions and self._options() == other._options()

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(restrictions={self._restrictions.snapshot()!r}, "
            f"options={self._options()!r})"
        )


__all__ = ["HandlerType", "BaseHandler"]
