"""
Shared fixtures for docimporter tests.
"""
import pytest

from docimporter.core.document import ImporterDocument, ImporterMetadata


@pytest.fixture
def html_metadata():
    return ImporterMetadata({"document.contentType": ["text/html"]})


@pytest.fixture
def pdf_metadata():
    return ImporterMetadata({"document.contentType": ["application/pdf"]})


@pytest.fixture
def make_document():
    def _make(text="", metadata=None, reference="doc-1"):
        return ImporterDocument.from_text(reference, text, metadata or ImporterMetadata())
    return _make
