# docimporter/core/processor/strip_before_transformer.py
"""
StripBefore Transformer - Remove Leading Content

Strips the document content found before the first match of a regular
expression. The match itself is also stripped when inclusive.

The expression is applied to each text chunk separately; on documents big
enough to be split (see stream_buffer), every chunk containing a match is
stripped.
"""
import re
from typing import Any, Dict, Optional

from docimporter.core.functions.errors import ConfigurationError
from docimporter.core.functions.utils import to_bool
from docimporter.core.processor.base_handler import BaseHandler, HandlerType


class StripBeforeTransformer(BaseHandler):
    """
    String transformer stripping content before a regex match.

    Options:
        strip_before_regex: Regular expression (DOTALL)
        inclusive: Also strip the matched text (default False)
        case_sensitive: Case-sensitive matching (default False)
    """

    kind = "strip_before"
    handler_type = HandlerType.TRANSFORMER

    def _load_config(self, config: Dict[str, Any]) -> None:
        self.inclusive = to_bool(config.get("inclusive"), option="inclusive")
        self.case_sensitive = to_bool(config.get("case_sensitive"), option="case_sensitive")
        self.strip_before_regex: Optional[str] = None
        self._pattern = None
        self.set_strip_before_regex(config.get("strip_before_regex"))

    def _save_config(self, config: Dict[str, Any]) -> None:
        config["inclusive"] = self.inclusive
        config["case_sensitive"] = self.case_sensitive
        if self.strip_before_regex:
            config["strip_before_regex"] = self.strip_before_regex

    def set_strip_before_regex(self, regex: Optional[str]) -> None:
        self.strip_before_regex = regex or None
        self._pattern = self._compile()

    def set_case_sensitive(self, case_sensitive: bool) -> None:
        self.case_sensitive = case_sensitive
        self._pattern = self._compile()

    def _compile(self):
        if not self.strip_before_regex:
            return None
        flags = re.DOTALL
        if not self.case_sensitive:
            flags |= re.IGNORECASE
        try:
            return re.compile(self.strip_before_regex, flags)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid strip_before_regex {self.strip_before_regex!r}: {e}"
            ) from e

    def transform_string_content(self, reference, content, metadata, parsed, partial_content) -> None:
        if self._pattern is None:
            self.logger.error(
                "No regular expression provided.",
                extra={"event": "handler_noop", "handler": type(self).__name__,
                       "reference": reference},
            )
            return
        match = self._pattern.search(content.getvalue())
        if match:
            content.delete(0, match.end() if self.inclusive else match.start())
