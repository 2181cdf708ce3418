"""
Tests for ImporterMetadata and ImporterDocument.
"""
import io
import tempfile

import pytest

from docimporter.core.document import ImporterDocument, ImporterMetadata, is_text_stream


class TestImporterMetadata:

    def test_single_string_becomes_list(self):
        metadata = ImporterMetadata({"title": "T"})
        assert metadata["title"] == ["T"]

    @pytest.mark.parametrize("key", ["", "   "])
    def test_empty_key_is_rejected(self, key):
        metadata = ImporterMetadata()
        with pytest.raises(ValueError):
            metadata[key] = ["x"]
        with pytest.raises(ValueError):
            metadata.update({key: ["x"]})
        with pytest.raises(ValueError):
            metadata.setdefault(key)

    def test_in_place_merge_checks_keys(self):
        metadata = ImporterMetadata({"title": ["T"]})
        with pytest.raises(ValueError):
            metadata |= {"": ["x"]}
        metadata |= {"author": "A"}
        assert metadata == {"title": ["T"], "author": ["A"]}
        assert isinstance(metadata, ImporterMetadata)

    def test_merge_returns_metadata(self):
        merged = ImporterMetadata({"title": ["T"]}) | {"author": "A"}
        assert isinstance(merged, ImporterMetadata)
        assert merged == {"title": ["T"], "author": ["A"]}

        merged = {"author": "A"} | ImporterMetadata({"title": ["T"]})
        assert isinstance(merged, ImporterMetadata)
        assert merged["author"] == ["A"]

        with pytest.raises(ValueError):
            ImporterMetadata() | {"": "x"}

    def test_fromkeys(self):
        metadata = ImporterMetadata.fromkeys(["a", "b"], "v")
        assert isinstance(metadata, ImporterMetadata)
        assert metadata == {"a": ["v"], "b": ["v"]}
        with pytest.raises(ValueError):
            ImporterMetadata.fromkeys(["a", ""])

    def test_copy_is_independent(self):
        metadata = ImporterMetadata({"title": ["T"]})
        copy = metadata.copy()
        copy.add_string("title", "U")
        assert metadata["title"] == ["T"]

    def test_get_strings_ignoring_case(self):
        metadata = ImporterMetadata({"Title": ["A"], "title": ["B"]})
        assert metadata.get_strings("TITLE", ignore_case=True) == ["A", "B"]
        assert metadata.get_strings("TITLE") == []


class TestImporterDocument:

    def test_plain_dict_metadata_is_converted(self):
        document = ImporterDocument("doc-1", io.BytesIO(b""), {"title": "T"})
        assert isinstance(document.metadata, ImporterMetadata)
        assert document.metadata["title"] == ["T"]

    def test_read_bytes_rewinds(self):
        document = ImporterDocument.from_bytes("doc-1", b"abc")
        assert document.read_bytes() == b"abc"
        assert document.read_bytes() == b"abc"

    def test_from_text_is_parsed_utf8(self):
        document = ImporterDocument.from_text("doc-1", "café")
        assert document.parsed
        assert document.read_bytes() == "café".encode("utf-8")


@pytest.mark.parametrize("stream, expected", [
    (io.StringIO("x"), True),
    (io.BytesIO(b"x"), False),
    (tempfile.SpooledTemporaryFile(mode="w+"), True),
    (tempfile.SpooledTemporaryFile(mode="w+b"), False),
    (object(), False),
])
def test_is_text_stream(stream, expected):
    assert is_text_stream(stream) is expected
