"""Book search CLI.

Command-line interface for searching and maintaining the book index.
Built with Click and Rich.
"""

from booksearch.cli.main import cli

__all__ = ["cli"]
