"""CLI commands module."""

from . import books, search

__all__ = ["books", "search"]
