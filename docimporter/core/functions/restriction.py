# docimporter/core/functions/restriction.py
"""
Restriction - Handler Applicability Rules

Decides whether a handler applies to a document, based on the document
metadata and the handler's restriction rules.

Module Components:
- RestrictionRule: Immutable (field, regex, case sensitivity) rule
- RestrictionSet: Ordered, lock-guarded collection of rules owned by a handler
- ApplicabilityGate: Evaluates a RestrictionSet against document metadata

Matching Rules:
    - No rules: the handler always applies
    - One or more rules: the handler applies if ANY rule matches
    - A rule matches if at least one value of its field fully matches its regex

Consistency:
    RestrictionSet may be mutated from another thread while evaluate() runs.
    Each mutation and each snapshot is taken under one lock, but an evaluation
    that races a mutation sees either the old or the new rule list, never a
    mix guaranteed to be consistent with the caller's intent.

Usage Example:
    from docimporter.core.functions.restriction import ApplicabilityGate, RestrictionSet

    restrictions = RestrictionSet()
    restrictions.add("document.contentType", "^text/.*$")
    ApplicabilityGate().evaluate(metadata, restrictions)
"""
import logging
import re
import threading
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from docimporter.core.functions.errors import ConfigurationError
from docimporter.core.functions.utils import to_bool

logger = logging.getLogger("docimporter")


def _as_values(values) -> List[str]:
    # Plain mappings may hold a single string instead of a list
    if not values:
        return []
    if isinstance(values, str):
        return [values]
    return list(values)


class RestrictionRule:
    """
    Immutable metadata restriction rule.

    Attributes:
        field: Metadata field name to look up
        regex: Regular expression every candidate value is fully matched against
        case_sensitive: Whether value matching is case sensitive
        ignore_field_case: Whether the field name lookup ignores case
    """

    __slots__ = ("_field", "_regex", "_case_sensitive", "_ignore_field_case", "_pattern")

    def __init__(
        self,
        field: str,
        regex: str,
        case_sensitive: bool = False,
        ignore_field_case: bool = False
    ):
        if not field or not field.strip():
            raise ConfigurationError("Restriction field name cannot be empty.")
        if regex is None:
            raise ConfigurationError(f"Restriction on field '{field}' has no regular expression.")
        flags = 0 if case_sensitive else re.IGNORECASE
        try:
            pattern = re.compile(regex, flags)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid restriction regex for field '{field}': {regex!r} ({e})"
            ) from e
        self._field = field
        self._regex = regex
        self._case_sensitive = bool(case_sensitive)
        self._ignore_field_case = bool(ignore_field_case)
        self._pattern = pattern

    @property
    def field(self) -> str:
        return self._field

    @property
    def regex(self) -> str:
        return self._regex

    @property
    def case_sensitive(self) -> bool:
        return self._case_sensitive

    @property
    def ignore_field_case(self) -> bool:
        return self._ignore_field_case

    def matches(self, metadata: Mapping[str, Sequence[str]]) -> bool:
        """Return True if any value of the rule's field fully matches the regex."""
        for value in self._field_values(metadata):
            if value is not None and self._pattern.fullmatch(value):
                return True
        return False

    def matches_field(self, field: str) -> bool:
        """Compare a field name to this rule's field using the rule's case sensitivity."""
        if self._case_sensitive:
            return self._field == field
        return self._field.lower() == (field or "").lower()

    def _field_values(self, metadata: Mapping[str, Sequence[str]]) -> List[str]:
        if not self._ignore_field_case:
            return _as_values(metadata.get(self._field))
        wanted = self._field.lower()
        values: List[str] = []
        for key, key_values in metadata.items():
            if key.lower() == wanted:
                values.extend(_as_values(key_values))
        return values

    def to_config(self) -> Dict[str, Any]:
        record = {
            "field": self._field,
            "pattern": self._regex,
            "case_sensitive": self._case_sensitive,
        }
        if self._ignore_field_case:
            record["ignore_field_case"] = True
        return record

    @classmethod
    def from_config(cls, record: Mapping[str, Any]) -> "RestrictionRule":
        """Build a rule from a {field, pattern, case_sensitive} record."""
        if "field" not in record:
            raise ConfigurationError(f"Restriction is missing 'field': {dict(record)}")
        return cls(
            record["field"],
            record.get("pattern", record.get("regex")),
            case_sensitive=to_bool(record.get("case_sensitive"), option="case_sensitive"),
            ignore_field_case=to_bool(record.get("ignore_field_case"), option="ignore_field_case"),
        )

    def _key(self):
        return (self._field, self._regex, self._case_sensitive, self._ignore_field_case)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RestrictionRule):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return (
            f"RestrictionRule(field={self._field!r}, regex={self._regex!r}, "
            f"case_sensitive={self._case_sensitive}, ignore_field_case={self._ignore_field_case})"
        )


class RestrictionSet:
    """
    Ordered collection of restriction rules, safe to mutate while evaluated.

    Iteration order is insertion order. Duplicate rules are allowed, as they
    are harmless for OR matching.
    """

    def __init__(self, rules: Optional[Iterable[RestrictionRule]] = None):
        self._lock = threading.Lock()
        self._rules: List[RestrictionRule] = list(rules or [])

    def add(self, field: str, regex: str, case_sensitive: bool = False) -> RestrictionRule:
        """Create and add a rule. Invalid regexes raise ConfigurationError."""
        rule = RestrictionRule(field, regex, case_sensitive)
        with self._lock:
            self._rules.append(rule)
        return rule

    def add_rule(self, *rules: RestrictionRule) -> None:
        with self._lock:
            self._rules.extend(rules)

    def add_all(self, rules: Optional[Iterable[RestrictionRule]]) -> None:
        if rules is None:
            return
        rules = list(rules)
        with self._lock:
            self._rules.extend(rules)

    def remove_field(self, field: str) -> int:
        """
        Remove all rules on a field.

        Each rule compares the field name with its own case sensitivity, so a
        case-insensitive rule on "Title" is removed by "title" while a
        case-sensitive one is not.

        Returns:
            Number of rules removed
        """
        with self._lock:
            kept = [r for r in self._rules if not r.matches_field(field)]
            removed = len(self._rules) - len(kept)
            self._rules = kept
        return removed

    def remove(self, rule: RestrictionRule) -> bool:
        """Remove the first rule equal to the given one. Returns True if found."""
        with self._lock:
            try:
                self._rules.remove(rule)
            except ValueError:
                return False
        return True

    def clear(self) -> None:
        with self._lock:
            self._rules = []

    def replace(self, rules: Iterable[RestrictionRule]) -> None:
        rules = list(rules)
        with self._lock:
            self._rules = rules

    def snapshot(self) -> List[RestrictionRule]:
        with self._lock:
            return list(self._rules)

    def __iter__(self) -> Iterator[RestrictionRule]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)

    def __bool__(self) -> bool:
        return len(self) > 0

    def __contains__(self, rule: object) -> bool:
        with self._lock:
            return rule in self._rules

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RestrictionSet):
            return NotImplemented
        return self.snapshot() == other.snapshot()

    __hash__ = None

    def __repr__(self) -> str:
        return f"RestrictionSet({self.snapshot()!r})"


class ApplicabilityGate:
    """
    Decides whether a handler applies to a document.

    The gate holds no state of its own; one instance is shared by every
    handler of a pipeline.
    """

    def evaluate(
        self,
        metadata: Mapping[str, Sequence[str]],
        restrictions: Optional[Iterable[RestrictionRule]],
        reference: str = "",
        parsed: bool = False,
        handler: Optional[object] = None
    ) -> bool:
        """
        Evaluate restrictions against document metadata.

        Args:
            metadata: Document metadata
            restrictions: RestrictionSet or any iterable of rules (None = no rules)
            reference: Document reference (for logging)
            parsed: Whether the document was already parsed (for logging)
            handler: Handler being evaluated (for logging)

        Returns:
            True if the handler applies to the document
        """
        rules = restrictions.snapshot() if isinstance(restrictions, RestrictionSet) \
            else list(restrictions or [])
        if not rules:
            return True
        for rule in rules:
            if rule.matches(metadata):
                return True

        handler_name = type(handler).__name__ if handler is not None else "unknown"
        logger.debug(
            f"{handler_name} handler does not apply to: {reference} (parsed={parsed}).",
            extra={
                "event": "handler_rejected",
                "handler": handler_name,
                "reference": reference,
                "parsed": parsed,
            },
        )
        return False


__all__ = ["RestrictionRule", "RestrictionSet", "ApplicabilityGate"]
