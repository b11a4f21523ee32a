"""Core data models."""

from .models import Book, ScoredBook, SearchResponse

__all__ = ["Book", "ScoredBook", "SearchResponse"]
