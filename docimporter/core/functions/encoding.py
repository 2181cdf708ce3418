# docimporter/core/functions/encoding.py
"""
Encoding - Charset Resolution Module

Decides which character encoding a text handler uses to decode a document
before reading it.

Module Components:
- EncodingConfig: Configuration dataclass for charset resolution
- CharsetProvenance: Which decision path produced a charset
- CharsetDecision: Resolved charset and its provenance
- canonicalize_charset(): Normalize charset aliases, case and punctuation
- CharsetResolver: Resolution entry point

Resolution Order (first applicable wins):
    1. Document already parsed  -> utf-8 (extraction always outputs UTF-8)
    2. Explicit charset given   -> canonical form of it
    3. chardet over a prefix sample, using the declared encoding as a hint
    4. Detection failed/empty   -> utf-8 (logged, never raised)
    5. Anything not canonical   -> utf-8

Sampling never consumes the stream: seekable streams are rewound, buffered
streams are peeked, and other streams should be wrapped with
CharsetResolver.lookahead() before being handed to readers.

Usage Example:
    from docimporter.core.functions.encoding import CharsetResolver

    resolver = CharsetResolver()
    stream = resolver.lookahead(stream)
    charset = resolver.resolve("", "windows-1252", stream, parsed=False)
"""
import codecs
import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Optional

import chardet

logger = logging.getLogger("docimporter")

UTF_8 = "utf-8"

# Default prefix sample used for detection
DEFAULT_SAMPLE_SIZE = 64 * 1024


@dataclass
class EncodingConfig:
    """Configuration for charset resolution.

    Attributes:
        sample_size: Maximum number of bytes sampled for detection
        use_chardet: Whether to run statistical detection at all
        chardet_confidence_threshold: Below this confidence a valid declared encoding wins
        fallback_encoding: Encoding used when nothing else can be resolved
    """
    sample_size: int = DEFAULT_SAMPLE_SIZE
    use_chardet: bool = True
    chardet_confidence_threshold: float = 0.5
    fallback_encoding: str = UTF_8


class CharsetProvenance(Enum):
    """Decision path that produced a charset."""
    PARSED = "parsed"
    EXPLICIT = "explicit"
    DECLARED = "declared"
    DETECTED = "detected"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class CharsetDecision:
    """Resolved charset. Only used for logging, never persisted."""
    charset: str
    provenance: CharsetProvenance

    def __str__(self) -> str:
        return f"{self.charset} ({self.provenance.value})"


def canonicalize_charset(name: Optional[str]) -> Optional[str]:
    """
    Normalize a charset name.

    Aliases, case and punctuation are folded into Python's codec name, so
    "ISO-8859-1", "latin_1" and "Latin1" all become "iso8859-1".

    Args:
        name: Charset name as found in configuration, metadata or detection

    Returns:
        Canonical codec name, or None if blank or unknown
    """
    if name is None:
        return None
    cleaned = name.strip().strip("\"'").strip()
    # Content-Type style values: "text/html; charset=UTF-8"
    if "charset=" in cleaned.lower():
        cleaned = cleaned[cleaned.lower().rindex("charset=") + len("charset="):]
        cleaned = cleaned.split(";")[0].strip().strip("\"'")
    if not cleaned:
        return None
    try:
        return codecs.lookup(cleaned).name
    except LookupError:
        logger.debug(f"Unknown charset name: {name!r}")
        return None


class CharsetResolver:
    """
    Resolves the charset of a document before text handlers decode it.

    Never raises for a missing, unknown or undetectable encoding; those
    cases degrade to UTF-8.
    """

    def __init__(self, config: Optional[EncodingConfig] = None):
        self.config = config or EncodingConfig()

    def resolve(
        self,
        explicit_charset: Optional[str],
        declared_encoding: Optional[str],
        sample_stream: Optional[BinaryIO],
        parsed: bool,
        reference: str = ""
    ) -> str:
        """Resolve and return a canonical, non-blank charset name."""
        return self.resolve_decision(
            explicit_charset, declared_encoding, sample_stream, parsed, reference
        ).charset

    def resolve_decision(
        self,
        explicit_charset: Optional[str],
        declared_encoding: Optional[str],
        sample_stream: Optional[BinaryIO],
        parsed: bool,
        reference: str = ""
    ) -> CharsetDecision:
        """
        Resolve a charset and report how it was obtained.

        Args:
            explicit_charset: Charset configured on the handler (may be blank)
            declared_encoding: Encoding declared in the document metadata (hint only)
            sample_stream: Binary content stream to sample
            parsed: Whether the content was already normalized to UTF-8
            reference: Document reference (for logging)

        Returns:
            CharsetDecision with a canonical charset name
        """
        if parsed:
            logger.debug(f"Document already parsed, assuming UTF-8 charset: {reference}")
            return CharsetDecision(UTF_8, CharsetProvenance.PARSED)

        if explicit_charset and explicit_charset.strip():
            charset = canonicalize_charset(explicit_charset)
            if charset:
                return CharsetDecision(charset, CharsetProvenance.EXPLICIT)
            return self._fallback(reference, f"unknown explicit charset {explicit_charset!r}")

        declared = canonicalize_charset(declared_encoding)
        try:
            decision = self._detect(sample_stream, declared, reference)
        except (OSError, ValueError) as e:
            # ValueError: stream already closed
            return self._fallback(reference, f"problem detecting encoding ({e})")

        if decision is None:
            return self._fallback(reference, "cannot detect source encoding")
        charset = canonicalize_charset(decision.charset)
        if not charset:
            return self._fallback(reference, f"detected unknown charset {decision.charset!r}")
        return CharsetDecision(charset, decision.provenance)

    def lookahead(self, stream: BinaryIO) -> BinaryIO:
        """
        Make a stream safe to sample.

        Seekable and already-buffered streams are returned as is. Others are
        wrapped in a BufferedReader large enough to hold the detection sample,
        so the first byte peeked is still the first byte read afterwards.
        Objects that only provide read() are adapted first.

        Raises:
            ValueError: The object cannot be read from
        """
        if _is_seekable(stream) or hasattr(stream, "peek"):
            return stream
        if not callable(getattr(stream, "read", None)):
            raise ValueError(f"not a readable stream: {type(stream).__name__}")
        if not (hasattr(stream, "readinto") and hasattr(stream, "readable")):
            stream = _ReadAdapter(stream)
        return io.BufferedReader(stream, buffer_size=max(self.config.sample_size, io.DEFAULT_BUFFER_SIZE))

    # =========================================================================
    # Internal
    # =========================================================================

    def _detect(
        self,
        stream: Optional[BinaryIO],
        declared: Optional[str],
        reference: str
    ) -> Optional[CharsetDecision]:
        if not self.config.use_chardet or stream is None:
            return CharsetDecision(declared, CharsetProvenance.DECLARED) if declared else None

        sample = self._sample(stream)
        if sample is None:
            logger.debug(f"Stream cannot be sampled without consuming it: {reference}")
            return CharsetDecision(declared, CharsetProvenance.DECLARED) if declared else None
        if not sample:
            return CharsetDecision(declared, CharsetProvenance.DECLARED) if declared else None

        result = chardet.detect(sample) or {}
        detected = canonicalize_charset(result.get("encoding"))
        confidence = result.get("confidence") or 0.0
        logger.debug(
            f"Detected charset for {reference}: {detected} "
            f"(confidence={confidence:.2f}, declared={declared})",
            extra={"event": "charset_detected", "reference": reference,
                   "charset": detected, "declared": declared},
        )

        if declared and _decodes(sample, declared):
            # A declared encoding that fits the sample wins over weak or
            # ASCII-only detections, which it is a superset of.
            if detected is None or detected == "ascii" \
                    or confidence < self.config.chardet_confidence_threshold:
                return CharsetDecision(declared, CharsetProvenance.DECLARED)
        if detected:
            return CharsetDecision(detected, CharsetProvenance.DETECTED)
        if declared:
            return CharsetDecision(declared, CharsetProvenance.DECLARED)
        return None

    def _sample(self, stream: BinaryIO) -> Optional[bytes]:
        size = self.config.sample_size
        if _is_seekable(stream):
            position = stream.tell()
            try:
                return stream.read(size)
            finally:
                stream.seek(position)
        if hasattr(stream, "peek"):
            return stream.peek(size)[:size]
        return None

    def _fallback(self, reference: str, reason: str) -> CharsetDecision:
        charset = canonicalize_charset(self.config.fallback_encoding) or UTF_8
        logger.debug(
            f"{reason.capitalize()}; {charset} will be assumed for: {reference}",
            extra={"event": "charset_fallback", "reference": reference, "charset": charset},
        )
        return CharsetDecision(charset, CharsetProvenance.FALLBACK)


class _ReadAdapter(io.RawIOBase):
    """Raw stream view of an object that only has read(size)."""

    def __init__(self, source):
        self._source = source

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> Optional[int]:
        data = self._source.read(len(b))
        if data is None:
            return None
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ValueError(f"read() returned {type(data).__name__}, expected bytes")
        b[:len(data)] = data
        return len(data)


def _is_seekable(stream: BinaryIO) -> bool:
    seekable = getattr(stream, "seekable", None)
    return bool(seekable and seekable())


def _decodes(sample: bytes, charset: str) -> bool:
    # A multibyte sequence may be cut at the end of the sample
    decoder = codecs.getincrementaldecoder(charset)()
    try:
        decoder.decode(sample, final=False)
        return True
    except UnicodeDecodeError:
        return False


# Default configuration instance
DEFAULT_ENCODING_CONFIG = EncodingConfig()


__all__ = [
    "UTF_8",
    "EncodingConfig",
    "CharsetProvenance",
    "CharsetDecision",
    "CharsetResolver",
    "canonicalize_charset",
    "DEFAULT_ENCODING_CONFIG",
]
