# docimporter/core/document.py
"""
Document - Importer Document and Metadata Types

The content extraction collaborator hands documents to the pipeline as
ImporterDocument instances. Handlers receive the document by reference and
may mutate its metadata and content in place.

Module Components:
- ImporterMetadata: Multi-valued metadata mapping (field name -> ordered values)
- ImporterDocument: Reference, content stream, metadata and parsed flag

Usage Example:
    from docimporter.core.document import ImporterDocument, ImporterMetadata

    metadata = ImporterMetadata({"document.contentType": ["text/html"]})
    doc = ImporterDocument.from_text("doc-1", "<html>...</html>", metadata)
"""
import io
from typing import IO, Dict, Iterable, List, Optional, Union

# Well-known metadata fields
DOC_REFERENCE = "document.reference"
DOC_CONTENT_TYPE = "document.contentType"
DOC_CONTENT_ENCODING = "document.contentEncoding"

MetadataValues = Union[str, Iterable[str]]


def _to_values(values: MetadataValues) -> List[str]:
    if isinstance(values, str):
        return [values]
    return [str(v) for v in values]


def is_text_stream(stream) -> bool:
    """Return True if the stream yields str rather than bytes."""
    if isinstance(stream, io.TextIOBase):
        return True
    mode = getattr(stream, "mode", None)
    return isinstance(mode, str) and "b" not in mode


class ImporterMetadata(dict):
    """
    Metadata mapping from field name to an ordered list of string values.

    Field names are unique and never empty. A field may hold several values;
    their order is preserved.
    """

    def __init__(self, data: Optional[Dict[str, MetadataValues]] = None, **kwargs):
        super().__init__()
        if data:
            self.update(data)
        if kwargs:
            self.update(kwargs)

    def __setitem__(self, key: str, values: MetadataValues) -> None:
        if not key or not str(key).strip():
            raise ValueError("Metadata field name cannot be empty.")
        super().__setitem__(key, _to_values(values))

    def update(self, *args, **kwargs) -> None:
        for key, values in dict(*args, **kwargs).items():
            self[key] = values

    def setdefault(self, key: str, default: MetadataValues = ()) -> List[str]:
        if key not in self:
            self[key] = default
        return self[key]

    def copy(self) -> "ImporterMetadata":
        return ImporterMetadata({k: list(v) for k, v in self.items()})

    @classmethod
    def fromkeys(cls, keys: Iterable[str], values: MetadataValues = ()) -> "ImporterMetadata":
        metadata = cls()
        for key in keys:
            metadata[key] = values
        return metadata

    def __ior__(self, other) -> "ImporterMetadata":
        self.update(other)
        return self

    def __or__(self, other) -> "ImporterMetadata":
        if not isinstance(other, dict):
            return NotImplemented
        merged = self.copy()
        merged.update(other)
        return merged

    def __ror__(self, other) -> "ImporterMetadata":
        if not isinstance(other, dict):
            return NotImplemented
        merged = ImporterMetadata(other)
        merged.update(self)
        return merged

    def get_strings(self, field: str, ignore_case: bool = False) -> List[str]:
        """
        Get all values of a field.

        Args:
            field: Field name
            ignore_case: Match the field name case-insensitively

        Returns:
            List of values (empty if the field is absent). With ignore_case,
            values of every field whose name matches are returned in key order.
        """
        if not ignore_case:
            return list(self.get(field, []))
        wanted = field.lower()
        values: List[str] = []
        for key, key_values in self.items():
            if key.lower() == wanted:
                values.extend(key_values)
        return values

    def get_string(self, field: str) -> Optional[str]:
        """Get the first value of a field, or None."""
        values = self.get(field)
        return values[0] if values else None

    def set_string(self, field: str, value: str) -> None:
        """Replace all values of a field with a single value."""
        self[field] = [value]

    def add_string(self, field: str, *values: str) -> None:
        """Append values to a field, creating it if needed."""
        current = list(self.get(field, []))
        current.extend(values)
        self[field] = current

    def __repr__(self) -> str:
        return f"ImporterMetadata({dict.__repr__(self)})"


class ImporterDocument:
    """
    A document travelling through a handler pipeline.

    Attributes:
        reference: Opaque document identifier
        content: Readable stream of the document content. Usually binary;
                 a text stream is taken as already decoded
        metadata: Shared mutable metadata
        parsed: True when upstream extraction already normalized the content to UTF-8
    """

    def __init__(
        self,
        reference: str,
        content: IO,
        metadata: Optional[ImporterMetadata] = None,
        parsed: bool = False
    ):
        self.reference = reference
        self.content = content
        if metadata is None:
            metadata = ImporterMetadata()
        elif not isinstance(metadata, ImporterMetadata):
            metadata = ImporterMetadata(metadata)
        self.metadata = metadata
        self.parsed = parsed

    @classmethod
    def from_bytes(
        cls,
        reference: str,
        data: bytes,
        metadata: Optional[ImporterMetadata] = None,
        parsed: bool = False
    ) -> "ImporterDocument":
        return cls(reference, io.BytesIO(data), metadata, parsed)

    @classmethod
    def from_text(
        cls,
        reference: str,
        text: str,
        metadata: Optional[ImporterMetadata] = None
    ) -> "ImporterDocument":
        """Create an already-parsed document from UTF-8 text."""
        return cls(reference, io.BytesIO(text.encode("utf-8")), metadata, parsed=True)

    def read_bytes(self) -> Union[bytes, str]:
        """
        Read the whole content. Seekable streams are rewound before and after.
        Text content is returned as str.

        Intended for tests and small documents only.
        """
        if self.content.seekable():
            self.content.seek(0)
        data = self.content.read()
        if self.content.seekable():
            self.content.seek(0)
        return data

    def __repr__(self) -> str:
        return (
            f"ImporterDocument(reference={self.reference!r}, "
            f"parsed={self.parsed}, fields={list(self.metadata.keys())})"
        )


__all__ = [
    "DOC_REFERENCE",
    "DOC_CONTENT_TYPE",
    "DOC_CONTENT_ENCODING",
    "ImporterMetadata",
    "ImporterDocument",
    "is_text_stream",
]
