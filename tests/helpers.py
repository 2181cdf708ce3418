"""
Test helpers: handlers and streams used across test modules.
"""
import io

from docimporter.core.processor.base_handler import BaseHandler, HandlerType


class NoOpTransformer(BaseHandler):
    """Transformer leaving content untouched, recording each call."""

    kind = "test_noop"
    handler_type = HandlerType.TRANSFORMER

    def _load_config(self, config):
        self.calls = []

    def transform_string_content(self, reference, content, metadata, parsed, partial_content):
        self.calls.append((len(content), partial_content))


class UpperCaseTransformer(BaseHandler):
    kind = "test_upper"
    handler_type = HandlerType.TRANSFORMER

    def transform_string_content(self, reference, content, metadata, parsed, partial_content):
        content.set(content.getvalue().upper())


class FailingRawStream(io.RawIOBase):
    """Non-seekable raw stream whose reads always fail."""

    def readable(self):
        return True

    def readinto(self, b):
        raise OSError("simulated read failure")


class FailingSeekableStream(io.BytesIO):
    def read(self, size=-1):
        raise OSError("simulated read failure")


class NonSeekableStream(io.RawIOBase):
    """Non-seekable raw stream over in-memory bytes."""

    def __init__(self, data: bytes):
        self._data = io.BytesIO(data)

    def readable(self):
        return True

    def readinto(self, b):
        chunk = self._data.read(len(b))
        b[:len(chunk)] = chunk
        return len(chunk)


class ReadOnlyStream:
    """Object exposing nothing but read(size)."""

    def __init__(self, data):
        self._data = data
        self._pos = 0

    def read(self, size=-1):
        end = len(self._data) if size is None or size < 0 else self._pos + size
        chunk = self._data[self._pos:end]
        self._pos += len(chunk)
        return chunk


class RecordingOutput(io.BytesIO):
    """In-memory output sink recording the size of every write."""

    def __init__(self):
        super().__init__()
        self.writes = []

    def write(self, data):
        self.writes.append(len(data))
        return super().write(data)
