from .store import DocumentStore, InvertedIndex, SearchIndex

__all__ = ["DocumentStore", "InvertedIndex", "SearchIndex"]
