"""Full-text book search with ordered-proximity ranking."""

__version__ = "0.1.0"
