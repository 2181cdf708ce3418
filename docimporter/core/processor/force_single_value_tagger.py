# docimporter/core/processor/force_single_value_tagger.py
"""
ForceSingleValue Tagger - Collapse Multi-Valued Fields

Reduces configured multi-valued metadata fields to a single value.

Actions (case-insensitive):
- keepFirst: Keep the first value
- keepLast: Keep the last value
- mergeWith:<separator>: Join all values with <separator>
- (none or anything else): Join all values with ","

Configuration Example:
    {
        "kind": "force_single_value",
        "single_value": {"author": "mergeWith:;", "title": "keepFirst"}
    }
"""
from typing import Any, Dict, Optional

from docimporter.core.processor.base_handler import BaseHandler, HandlerType

DEFAULT_SEPARATOR = ","

KEEP_FIRST = "keepfirst"
KEEP_LAST = "keeplast"
MERGE_WITH = "mergewith"


class ForceSingleValueTagger(BaseHandler):
    """Metadata tagger forcing fields to a single value."""

    kind = "force_single_value"
    handler_type = HandlerType.TAGGER

    def _load_config(self, config: Dict[str, Any]) -> None:
        self.single_value_fields: Dict[str, Optional[str]] = {}
        for field, action in (config.get("single_value") or {}).items():
            self.add_single_value_field(field, action)

    def _save_config(self, config: Dict[str, Any]) -> None:
        if self.single_value_fields:
            config["single_value"] = dict(self.single_value_fields)

    def add_single_value_field(self, field: str, action: Optional[str] = None) -> None:
        if field:
            self.single_value_fields[field] = action

    def remove_single_value_field(self, field: str) -> None:
        self.single_value_fields.pop(field, None)

    def tag_document(self, reference, metadata, parsed) -> None:
        for field, action in self.single_value_fields.items():
            values = metadata.get(field)
            if not values:
                continue
            metadata.set_string(field, self._single_value(field, values, action, reference))

    def _single_value(self, field, values, action, reference) -> str:
        keyword = (action or "").strip().lower()
        if keyword == KEEP_FIRST:
            return values[0]
        if keyword == KEEP_LAST:
            return values[-1]
        if keyword.startswith(MERGE_WITH):
            _, _, separator = action.partition(":")
            return separator.join(values)
        if keyword:
            self.logger.debug(
                f"Unknown single value action '{action}' for field '{field}' "
                f"on {reference}; joining values with '{DEFAULT_SEPARATOR}'.",
                extra={"event": "handler_noop", "handler": type(self).__name__,
                       "reference": reference},
            )
        return DEFAULT_SEPARATOR.join(values)
