# docimporter/core/processor/keep_only_tagger.py
"""
KeepOnly Tagger - Metadata Field Whitelist

Keeps only the configured metadata fields and removes all others.
"""
import re
from typing import Any, Dict, List, Optional

from docimporter.core.functions.errors import ConfigurationError
from docimporter.core.processor.base_handler import BaseHandler, HandlerType


class KeepOnlyTagger(BaseHandler):
    """
    Metadata tagger removing every field not explicitly kept.

    Options:
        fields: Field names to keep (list or comma-separated string).
                Compared trimmed and case-insensitively.
        fields_regex: Regex kept field names must fully match

    When neither option is set, ALL metadata is removed.
    """

    kind = "keep_only"
    handler_type = HandlerType.TAGGER

    def _load_config(self, config: Dict[str, Any]) -> None:
        fields = config.get("fields") or []
        if isinstance(fields, str):
            fields = fields.split(",")
        self.fields: List[str] = [f.strip() for f in fields if f and f.strip()]
        self.fields_regex: Optional[str] = None
        self._fields_pattern = None
        self.set_fields_regex(config.get("fields_regex"))

    def _save_config(self, config: Dict[str, Any]) -> None:
        if self.fields:
            config["fields"] = list(self.fields)
        if self.fields_regex:
            config["fields_regex"] = self.fields_regex

    def add_field(self, field: str) -> None:
        self.fields.append(field.strip())

    def remove_field(self, field: str) -> None:
        if field in self.fields:
            self.fields.remove(field)

    def set_fields_regex(self, regex: Optional[str]) -> None:
        if regex is not None and not regex.strip():
            regex = None
        try:
            self._fields_pattern = re.compile(regex) if regex else None
        except re.error as e:
            raise ConfigurationError(f"Invalid fields_regex {regex!r}: {e}") from e
        self.fields_regex = regex

    def tag_document(self, reference, metadata, parsed) -> None:
        if not self.fields and self._fields_pattern is None:
            self.logger.debug(f"Clear all metadata from {reference}")
            metadata.clear()
            return

        removed = [name for name in metadata if not self._must_keep(name)]
        for name in removed:
            del metadata[name]
        if removed:
            self.logger.debug(f"Removed metadata fields \"{','.join(removed)}\" from {reference}")

    def _must_keep(self, field: str) -> bool:
        wanted = field.strip().lower()
        if any(f.lower() == wanted for f in self.fields):
            return True
        return bool(self._fields_pattern and self._fields_pattern.fullmatch(field))
