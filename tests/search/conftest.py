"""Shared fixtures for search module tests."""

import tempfile
from pathlib import Path

import pytest

from booksearch.search.backends.memory import MemoryGateway


@pytest.fixture
def temp_index_dir():
    """Temporary directory for search index files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_gateway(sample_books) -> MemoryGateway:
    """Memory gateway holding the sample corpus."""
    gateway = MemoryGateway()
    gateway.index_batch([book.to_fields() for book in sample_books])
    gateway.commit()
    return gateway
