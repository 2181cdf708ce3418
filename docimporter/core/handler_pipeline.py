# docimporter/core/handler_pipeline.py
"""HandlerPipeline - Document Handler Orchestration

Runs an ordered list of handlers against documents. This class is the
recommended entry point when using the library.

For each handler, in order:
    1. ApplicabilityGate decides whether the handler applies (skip if not)
    2. TAGGER handlers edit the shared metadata directly
    3. TRANSFORMER handlers get the content decoded with the resolved
       charset and streamed through a fresh BoundedStreamBuffer
       into a fresh output stream (spooled to a temporary file once large)

Metadata edits are visible to every later handler of the same pass. The
list of handlers cannot change while a document is being processed.

Usage Example:
    from docimporter import HandlerPipeline

    pipeline = HandlerPipeline.from_config([
        {"kind": "strip_before", "strip_before_regex": "<body>", "inclusive": True},
        {"kind": "keep_only", "fields": ["title", "document.contentType"]},
    ])
    pipeline.import_document(document)
    results = pipeline.import_documents(documents)
"""

import io
import logging
import tempfile
from typing import IO, Any, Callable, Iterable, List, Mapping, Optional, Tuple, Union

from docimporter.core.document import DOC_CONTENT_ENCODING, ImporterDocument, is_text_stream
from docimporter.core.functions.encoding import CharsetResolver, EncodingConfig
from docimporter.core.functions.errors import ConfigurationError, ImporterError, StreamFailure
from docimporter.core.functions.restriction import ApplicabilityGate, RestrictionSet
from docimporter.core.functions.stream_buffer import BoundedStreamBuffer, BufferConfig
from docimporter.core.processor import BaseHandler, HandlerType, create_handler

logger = logging.getLogger("docimporter")


class HandlerEntry:
    """
    A handler and the restrictions deciding whether it applies.

    Attributes:
        restrictions: Restriction rules (the handler's own by default)
        handler: Handler instance
    """

    __slots__ = ("restrictions", "handler")

    def __init__(self, handler: BaseHandler, restrictions: Optional[RestrictionSet] = None):
        self.handler = handler
        self.restrictions = handler.restrictions if restrictions is None else restrictions

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HandlerEntry):
            return NotImplemented
        return self.handler == other.handler and self.restrictions == other.restrictions

    __hash__ = None

    def __repr__(self) -> str:
        return f"HandlerEntry(handler={self.handler!r})"


class ImportResult:
    """
    Outcome of importing one document.

    Attributes:
        reference: Document reference
        document: The imported document (None when failed)
        error: Fatal error that aborted the document (None when successful)
    """

    def __init__(
        self,
        reference: str,
        document: Optional[ImporterDocument] = None,
        error: Optional[ImporterError] = None
    ):
        self.reference = reference
        self.document = document
        self.error = error

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> Optional[str]:
        """Name of the fatal error type, e.g. "StreamFailure"."""
        return type(self.error).__name__ if self.error is not None else None

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        if self.success:
            return f"ImportResult(reference={self.reference!r}, success=True)"
        return f"ImportResult(reference={self.reference!r}, error_kind={self.error_kind!r})"


class HandlerPipeline:
    """
    Ordered handler runner.

    Use one pipeline per thread; a document and its streams must stay on
    the thread processing it.

    Attributes:
        entries: Ordered handler entries
        gate: Shared ApplicabilityGate
        charset_resolver: Shared CharsetResolver
    """

    def __init__(
        self,
        handlers: Iterable[Union[BaseHandler, HandlerEntry]] = (),
        *,
        gate: Optional[ApplicabilityGate] = None,
        charset_resolver: Optional[CharsetResolver] = None,
        encoding_config: Optional[EncodingConfig] = None,
        buffer_config: Optional[BufferConfig] = None,
        memory_budget: Optional[Callable[[], int]] = None,
        output_factory: Optional[Callable[[str], IO]] = None
    ):
        """
        Initialize HandlerPipeline.

        Args:
            handlers: Handlers or HandlerEntry instances, in execution order
            gate: ApplicabilityGate (default: new instance)
            charset_resolver: CharsetResolver (default: built from encoding_config)
            encoding_config: Charset resolution settings
            buffer_config: Stream buffer settings
            memory_budget: Callable returning available memory in bytes
                   - Default: system available memory (psutil)
                   - Tests inject a constant to simulate memory pressure
            output_factory: Callable taking a file mode ("w+b" or "w+") and
                   returning the stream transformed content is written to
                   - Default: SpooledTemporaryFile spilling to disk past
                     buffer_config.spool_max_size
        """
        entries = []
        for handler in handlers:
            if isinstance(handler, HandlerEntry):
                entries.append(handler)
            elif isinstance(handler, BaseHandler):
                entries.append(HandlerEntry(handler))
            else:
                raise ConfigurationError(f"Not a handler: {handler!r}")
        self._entries: Tuple[HandlerEntry, ...] = tuple(entries)
        self._gate = gate or ApplicabilityGate()
        self._charset_resolver = charset_resolver or CharsetResolver(encoding_config)
        self._buffer_config = buffer_config or BufferConfig()
        self._memory_budget = memory_budget
        self._output_factory = output_factory or self._spooled_output
        self._logger = logging.getLogger("docimporter.pipeline")

    @classmethod
    def from_config(cls, records: Iterable[Mapping[str, Any]], **kwargs) -> "HandlerPipeline":
        """
        Build a pipeline from handler configuration records.

        Raises:
            ConfigurationError: Any record is invalid (the pipeline is not built)
        """
        return cls([create_handler(record) for record in records], **kwargs)

    # =========================================================================
    # Public Properties
    # =========================================================================

    @property
    def entries(self) -> Tuple[HandlerEntry, ...]:
        return self._entries

    @property
    def handlers(self) -> List[BaseHandler]:
        return [entry.handler for entry in self._entries]

    @property
    def gate(self) -> ApplicabilityGate:
        return self._gate

    @property
    def charset_resolver(self) -> CharsetResolver:
        return self._charset_resolver

    def to_config(self) -> List[dict]:
        return [entry.handler.to_config() for entry in self._entries]

    # =========================================================================
    # Public Methods
    # =========================================================================

    def import_document(self, document: ImporterDocument) -> ImporterDocument:
        """
        Run all applicable handlers on a document, in order.

        Args:
            document: Document to process (mutated in place)

        Returns:
            The same document

        Raises:
            StreamFailure: Content could not be read or written
        """
        reference = document.reference
        self._logger.info(f"Importing {reference} ({len(self._entries)} handlers)")
        try:
            for entry in self._entries:
                self._run_entry(entry, document)
        except ImporterError as e:
            self._logger.error(f"Import failed for {reference}: {type(e).__name__}: {e}")
            raise
        self._logger.info(f"Import completed: {reference}")
        return document

    def import_documents(self, documents: Iterable[ImporterDocument]) -> List[ImportResult]:
        """
        Import several documents. A fatal error only fails its own document.

        Returns:
            One ImportResult per document, in input order
        """
        results = []
        for document in documents:
            try:
                results.append(ImportResult(document.reference, document=self.import_document(document)))
            except ImporterError as e:
                results.append(ImportResult(document.reference, error=e))
        return results

    # =========================================================================
    # Private Methods
    # =========================================================================

    def _run_entry(self, entry: HandlerEntry, document: ImporterDocument) -> None:
        handler = entry.handler
        if not self._gate.evaluate(
            document.metadata, entry.restrictions,
            reference=document.reference, parsed=document.parsed, handler=handler
        ):
            return
        if handler.handler_type == HandlerType.TRANSFORMER:
            self._transform(handler, document)
        else:
            handler.tag_document(document.reference, document.metadata, document.parsed)

    def _transform(self, handler: BaseHandler, document: ImporterDocument) -> None:
        reference = document.reference
        metadata = document.metadata
        parsed = document.parsed

        def callback(content, partial_content):
            handler.transform_string_content(reference, content, metadata, parsed, partial_content)

        buffer = BoundedStreamBuffer(self._memory_budget, self._buffer_config, reference)

        if is_text_stream(document.content):
            # Already decoded: no charset to resolve
            output = self._open_output(reference, "w+")
            buffer.transform(document.content, output, callback)
            output.seek(0)
            document.content = output
            return

        try:
            stream = self._charset_resolver.lookahead(document.content)
        except (OSError, ValueError) as e:
            raise StreamFailure(f"Could not open content of {reference}: {e}", reference) from e

        decision = self._charset_resolver.resolve_decision(
            handler.charset, metadata.get_string(DOC_CONTENT_ENCODING), stream, parsed, reference
        )
        charset = decision.charset
        handler.logger.debug(f"Transforming {reference} using charset {decision}")

        reader = io.TextIOWrapper(stream, encoding=charset, errors="replace", newline="")
        output = self._open_output(reference, "w+b")
        writer = io.TextIOWrapper(output, encoding=charset, errors="replace", newline="")
        try:
            buffer.transform(reader, writer, callback)
        finally:
            # Keep the wrappers from closing the streams they wrap
            if not reader.closed:
                reader.detach()
        writer.detach()
        output.seek(0)
        document.content = output

    def _open_output(self, reference: str, mode: str) -> IO:
        try:
            return self._output_factory(mode)
        except OSError as e:
            raise StreamFailure(f"Could not open output of {reference}: {e}", reference) from e

    def _spooled_output(self, mode: str) -> IO:
        """Default output: in memory up to spool_max_size, then a temporary file."""
        if "b" in mode:
            return tempfile.SpooledTemporaryFile(max_size=self._buffer_config.spool_max_size, mode=mode)
        return tempfile.SpooledTemporaryFile(
            max_size=self._buffer_config.spool_max_size, mode=mode, encoding="utf-8", newline=""
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"HandlerPipeline(handlers={[type(h).__name__ for h in self.handlers]})"


__all__ = ["HandlerEntry", "ImportResult", "HandlerPipeline"]
