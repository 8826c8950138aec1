"""JSON persistence for the index, the document store and the identifier cache."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from ens_search.errors import StorageError
from ens_search.index.store import DocumentStore, InvertedIndex, SearchIndex
from ens_search.models import Occurrence

logger = logging.getLogger(__name__)

_INDEX_ADAPTER = TypeAdapter(dict[str, list[Occurrence]])
_DOCS_ADAPTER = TypeAdapter(dict[str, list[str]])


def _occurrence_key(occ: Occurrence) -> tuple[str, int, str]:
    return (occ.content_id, occ.position, occ.source_name)


def _write(path: Path, payload: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
    except OSError as e:
        raise StorageError(f"could not write {path}: {e}") from e


def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise StorageError(f"could not read {path}: {e}") from e


def save_index(path: Path, index: InvertedIndex) -> None:
    logger.info("Saving index with %d entries to %s", len(index), path)
    ordered = {word: sorted(index[word], key=_occurrence_key) for word in sorted(index)}
    _write(path, _INDEX_ADAPTER.dump_json(ordered))


def load_index(path: Path) -> InvertedIndex:
    logger.info("Loading index from %s", path)
    try:
        raw = _INDEX_ADAPTER.validate_json(_read(path))
    except ValidationError as e:
        raise StorageError(f"corrupt index file {path}: {e}") from e
    return {word: set(occurrences) for word, occurrences in raw.items()}


def save_docs(path: Path, docs: DocumentStore) -> None:
    logger.info("Saving %d documents to %s", len(docs), path)
    ordered = {cid: docs[cid] for cid in sorted(docs)}
    _write(path, _DOCS_ADAPTER.dump_json(ordered))


def load_docs(path: Path) -> DocumentStore:
    logger.info("Loading docs from %s", path)
    try:
        return _DOCS_ADAPTER.validate_json(_read(path))
    except ValidationError as e:
        raise StorageError(f"corrupt docs file {path}: {e}") from e


def save_snapshot(search_index: SearchIndex, index_path: Path, docs_path: Path) -> None:
    save_index(index_path, search_index.index)
    save_docs(docs_path, search_index.docs)


def load_snapshot(index_path: Path, docs_path: Path) -> SearchIndex | None:
    """Load both blobs, or return None when either is missing."""
    if not (index_path.exists() and docs_path.exists()):
        return None
    return SearchIndex(load_index(index_path), load_docs(docs_path))


def load_identifier_cache(path: Path) -> set[str] | None:
    if not path.exists():
        logger.info("Could not find identifier cache %s", path)
        return None
    try:
        text = _read(path).decode("utf-8")
    except UnicodeDecodeError as e:
        raise StorageError(f"corrupt identifier cache {path}: {e}") from e
    return {line.strip() for line in text.splitlines() if line.strip()}


def save_identifier_cache(path: Path, identifiers: Iterable[str]) -> None:
    lines = "".join(f"{cid}\n" for cid in sorted(set(identifiers)))
    _write(path, lines.encode("utf-8"))
