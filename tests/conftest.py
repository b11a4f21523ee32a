"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timezone

import pytest

from booksearch.core.models import Book


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Isolate environment variables for each test.

    Configuration is read from XDG directories, environment variables,
    and the working directory, so all three point into ``tmp_path``.
    """
    original_env = os.environ.copy()

    for name in list(os.environ):
        if name.startswith("BOOKSEARCH_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def sample_books() -> list[Book]:
    """Small corpus with overlapping phrases for proximity tests."""
    return [
        Book(
            id="hemingway1952",
            title="The Old Man and the Sea",
            author="Ernest Hemingway",
            released_at=datetime(1952, 9, 1, tzinfo=timezone.utc),
            content="The old man and the sea fought for three days.",
        ),
        Book(
            id="river1990",
            title="Down by the River",
            author="Anne Walker",
            released_at=datetime(1990, 5, 12, tzinfo=timezone.utc),
            content="An old man walked slowly along the river bank.",
        ),
        Book(
            id="calm2001",
            title="Calm Waters",
            author="Mary Stone",
            released_at=datetime(2001, 1, 20, tzinfo=timezone.utc),
            content="The sea was calm that morning and the gulls were quiet.",
        ),
        Book(
            id="atlas2015",
            title="Atlas of Birds",
            author="Tom Reed",
            content="Gulls and terns nest on rocky coastal cliffs.",
        ),
    ]
