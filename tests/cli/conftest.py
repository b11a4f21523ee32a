"""Pytest configuration and fixtures for CLI tests."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from booksearch.search.backends.memory import MemoryGateway


@pytest.fixture
def cli_gateway(sample_books):
    """Memory gateway shared by every command of one test."""
    gateway = MemoryGateway()
    gateway.index_batch([book.to_fields() for book in sample_books])
    return gateway


@pytest.fixture
def cli_runner(cli_gateway):
    """Click CLI test runner wired to the test gateway."""

    class BookSearchCliRunner(CliRunner):
        def invoke(self, args, **kwargs):  # type: ignore
            from booksearch.cli.main import cli

            with patch("booksearch.cli.main.create_gateway", return_value=cli_gateway):
                return super().invoke(cli, args, **kwargs)

    return BookSearchCliRunner()


@pytest.fixture
def books_file(tmp_path):
    """JSON array of books to index."""
    path = tmp_path / "books.json"
    path.write_text(
        json.dumps(
            [
                {"id": "n1", "title": "Harbor Lights", "content": "quiet harbor lights"},
                {
                    "id": "n2",
                    "title": "Grey Fleet",
                    "content": "the grey fleet sails",
                    "released_at": "2019-06-01T00:00:00Z",
                },
            ]
        )
    )
    return path


@pytest.fixture
def config_file(tmp_path):
    """Config file with fast connection retries."""
    path = tmp_path / "booksearch-test.yaml"
    path.write_text("backend: memory\nconnect_retries: 2\nconnect_interval: 0\n")
    return path
