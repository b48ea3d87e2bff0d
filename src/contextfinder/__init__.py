"""ContextFinder: chunk and index Markdown knowledge bases for semantic search."""

__version__ = "0.1.0"
