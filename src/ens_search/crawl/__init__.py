"""Gateway crawling and per-document token extraction."""
