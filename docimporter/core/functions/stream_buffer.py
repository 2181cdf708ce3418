# docimporter/core/functions/stream_buffer.py
"""
Stream Buffer - Memory-Bounded String Transformation

Lets string transformers work on text of any size while keeping the amount
of buffered text under a fraction of the available memory.

================================================================================
PROCESSING FLOW
================================================================================

BoundedStreamBuffer.transform(reader, writer, callback)
│
├─ read text into the TransformBuffer
│   └─ every check interval (100 KiB of buffered text, 2 bytes per char):
│       └─ buffer > half of available memory?
│           ├─ callback(buffer, partial_content=True)
│           ├─ write buffer to writer
│           └─ reset buffer (new accounting epoch)
│
└─ end of input, buffer not empty?
    ├─ callback(buffer, partial_content=False)
    └─ write buffer to writer

================================================================================
LIMITATION
================================================================================

When a document is large enough to be split, the callback only sees one
chunk at a time. A pattern spanning a split point will not match. Each split
is logged as a warning.

Usage Example:
    from docimporter.core.functions.stream_buffer import BoundedStreamBuffer

    def upper(buffer, partial_content):
        buffer.set(buffer.getvalue().upper())

    BoundedStreamBuffer(memory_budget=lambda: 64 * 1024 * 1024).transform(reader, writer, upper)
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, TextIO

import psutil

from docimporter.core.functions.errors import StreamFailure

logger = logging.getLogger("docimporter")

# Amount of buffered text (in bytes) between two memory checks
READ_CHUNK_SIZE = 100 * 1024

# Initial capacity is this fraction of the available memory
INITIAL_MEMORY_FRACTION = 0.25

# Transformed output kept in memory before it spills to a temporary file
SPOOL_MAX_SIZE = 1024 * 1024

BYTES_PER_CHAR = 2


def available_memory() -> int:
    """Default memory budget provider: memory currently available to the system."""
    return psutil.virtual_memory().available


@dataclass
class BufferConfig:
    """Configuration for BoundedStreamBuffer.

    Attributes:
        initial_fraction: Fraction of the memory budget used to size the initial capacity
        check_interval_bytes: Buffered bytes between two memory checks
        bytes_per_char: Accounting unit for one buffered character
        spool_max_size: Output bytes held in memory before spilling to disk
    """
    initial_fraction: float = INITIAL_MEMORY_FRACTION
    check_interval_bytes: int = READ_CHUNK_SIZE
    bytes_per_char: int = BYTES_PER_CHAR
    spool_max_size: int = SPOOL_MAX_SIZE


class TransformBuffer:
    """
    Mutable character store handed to string transformers.

    Appends are cheap; the content is joined lazily when read. The tracked
    length always equals the number of characters currently held.
    """

    def __init__(self, capacity: int = 0):
        self._parts: List[str] = []
        self._length = 0
        self.capacity = capacity

    @property
    def length(self) -> int:
        return self._length

    def __len__(self) -> int:
        return self._length

    def append(self, text: str) -> None:
        if text:
            self._parts.append(text)
            self._length += len(text)
            if self._length > self.capacity:
                self.capacity = self._length

    def getvalue(self) -> str:
        if len(self._parts) > 1:
            self._parts = ["".join(self._parts)]
        return self._parts[0] if self._parts else ""

    def set(self, text: str) -> None:
        """Replace the whole content."""
        self._parts = [text] if text else []
        self._length = len(text)

    def delete(self, start: int, end: Optional[int] = None) -> None:
        """Delete characters in [start, end)."""
        value = self.getvalue()
        end = self._length if end is None else end
        self.set(value[:start] + value[end:])

    def insert(self, index: int, text: str) -> None:
        value = self.getvalue()
        self.set(value[:index] + text + value[index:])

    def clear(self) -> None:
        self._parts = []
        self._length = 0

    def __str__(self) -> str:
        return self.getvalue()

    def __repr__(self) -> str:
        return f"TransformBuffer(length={self._length}, capacity={self.capacity})"


TransformCallback = Callable[[TransformBuffer, bool], None]


class BoundedStreamBuffer:
    """
    Drives a read -> transform -> flush loop under a memory ceiling.

    One instance handles one transformation; it is not shared between
    threads.

    Args:
        memory_budget: Callable returning the currently available memory in bytes
        config: Buffer configuration
        reference: Document reference (for logging and errors)
    """

    def __init__(
        self,
        memory_budget: Optional[Callable[[], int]] = None,
        config: Optional[BufferConfig] = None,
        reference: str = ""
    ):
        self._memory_budget = memory_budget or available_memory
        self.config = config or BufferConfig()
        self.reference = reference
        self._chars_per_check = max(1, self.config.check_interval_bytes // self.config.bytes_per_char)

    def initial_capacity(self) -> int:
        """Initial buffer capacity, in characters."""
        return max(0, int(self._memory_budget() * self.config.initial_fraction))

    def transform(self, reader: TextIO, writer: TextIO, callback: TransformCallback) -> int:
        """
        Transform all text from reader into writer.

        Text is accumulated one character at a time; reads are sized to stop
        exactly at the next memory check so the check points are the same.

        Args:
            reader: Text input
            writer: Text output
            callback: Called with (buffer, partial_content); may rewrite the buffer in place

        Returns:
            Number of callback invocations

        Raises:
            StreamFailure: Reading or writing failed (nothing more is written)
        """
        buffer = TransformBuffer(capacity=self.initial_capacity())
        invocations = 0
        while True:
            wanted = self._chars_per_check - (len(buffer) % self._chars_per_check)
            text = self._read(reader, wanted)
            if not text:
                break
            buffer.append(text)
            if len(buffer) % self._chars_per_check == 0 and self._is_taking_too_much_memory(buffer):
                callback(buffer, True)
                invocations += 1
                self._flush(buffer, writer)

        if len(buffer) > 0:
            callback(buffer, False)
            invocations += 1
            self._flush(buffer, writer)
        buffer.clear()
        return invocations

    def _is_taking_too_much_memory(self, buffer: TransformBuffer) -> bool:
        # Buffer must never grow beyond half the available memory
        max_mem = self._memory_budget() // 2
        buf_mem = len(buffer) * self.config.bytes_per_char
        busted = buf_mem > max_mem
        if busted:
            logger.warning(
                f"Text document {self.reference} is too big for the remaining memory "
                f"({buf_mem} bytes buffered, {max_mem} bytes allowed). It was split in "
                f"text chunks and the transformation is applied to each chunk, which "
                f"may sometimes give unexpected results (e.g. a pattern spanning two "
                f"chunks will not match). Give the process more memory or reduce the "
                f"number of concurrent documents to avoid this.",
                extra={"event": "buffer_split", "reference": self.reference,
                       "buffered_chars": len(buffer), "memory_budget": max_mem * 2},
            )
        return busted

    def _read(self, reader: TextIO, size: int) -> str:
        try:
            return reader.read(size)
        except (OSError, ValueError) as e:
            raise StreamFailure(f"Could not read content of {self.reference}: {e}", self.reference) from e

    def _flush(self, buffer: TransformBuffer, writer: TextIO) -> None:
        try:
            writer.write(buffer.getvalue())
            writer.flush()
        except (OSError, ValueError) as e:
            raise StreamFailure(f"Could not write content of {self.reference}: {e}", self.reference) from e
        buffer.clear()


__all__ = [
    "READ_CHUNK_SIZE",
    "BufferConfig",
    "TransformBuffer",
    "TransformCallback",
    "BoundedStreamBuffer",
    "available_memory",
]
