from __future__ import annotations

import threading
from collections.abc import Iterable

from ens_search.crawl.extract import Extraction
from ens_search.models import Occurrence

# word -> occurrences across all documents
InvertedIndex = dict[str, set[Occurrence]]
# content id -> tokens in original order
DocumentStore = dict[str, list[str]]


class SearchIndex:
    """Inverted index plus document store, owned by whoever built or loaded it.

    All mutation goes through `merge`, which holds one lock across both
    structures so a document never appears half-merged.
    """

    def __init__(self, index: InvertedIndex | None = None, docs: DocumentStore | None = None):
        self.index: InvertedIndex = index if index is not None else {}
        self.docs: DocumentStore = docs if docs is not None else {}
        self._lock = threading.Lock()

    def merge(self, extraction: Extraction) -> None:
        with self._lock:
            for word, occurrences in extraction.occurrences.items():
                existing = self.index.get(word)
                if existing is None:
                    self.index[word] = set(occurrences)
                else:
                    existing |= occurrences
            self.docs[extraction.content_id] = list(extraction.tokens)

    def merge_all(self, extractions: Iterable[Extraction]) -> None:
        for extraction in extractions:
            self.merge(extraction)

    def lookup(self, word: str) -> set[Occurrence]:
        return self.index.get(word, set())

    def document(self, content_id: str) -> list[str] | None:
        return self.docs.get(content_id)

    def __len__(self) -> int:
        return len(self.index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SearchIndex):
            return NotImplemented
        return self.index == other.index and self.docs == other.docs
