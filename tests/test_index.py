"""
Tests for the shared index: merging and persistence.
"""

import itertools
from concurrent.futures import ThreadPoolExecutor

import pytest

from ens_search.errors import StorageError
from ens_search.index.storage import (
    load_identifier_cache,
    load_snapshot,
    save_identifier_cache,
    save_snapshot,
)
from ens_search.index.store import SearchIndex
from ens_search.models import Occurrence

from conftest import plain


class TestMerge:
    def test_shared_words_are_unioned(self):
        index = SearchIndex()
        index.merge(plain("QmA", "ens names"))
        index.merge(plain("QmB", "ipfs names"))

        assert {o.content_id for o in index.lookup("names")} == {"QmA", "QmB"}
        assert index.document("QmA") == ["ens", "names"]
        assert index.document("QmB") == ["ipfs", "names"]

    def test_duplicate_occurrences_collapse(self):
        index = SearchIndex()
        index.merge(plain("QmA", "ens ens"))
        index.merge(plain("QmA", "ens ens"))

        assert len(index.lookup("ens")) == 2

    def test_lookup_miss_is_empty(self):
        assert SearchIndex().lookup("zebra") == set()

    def test_merge_order_does_not_matter(self):
        extractions = [
            plain("QmA", "alpha beta gamma"),
            plain("QmB", "beta gamma delta"),
            plain("QmC", "gamma alpha alpha"),
        ]
        built = []
        for order in itertools.permutations(extractions):
            index = SearchIndex()
            index.merge_all(order)
            built.append(index)

        assert all(index == built[0] for index in built)

    def test_concurrent_merges_lose_nothing(self):
        index = SearchIndex()
        extractions = [plain(f"Qm{i}", f"shared word{i} shared") for i in range(200)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(index.merge, extractions))

        assert len(index.docs) == 200
        assert len(index.lookup("shared")) == 400
        assert all(f"word{i}" in index.index for i in range(200))


class TestStorage:
    def test_snapshot_round_trip(self, tmp_path, corpus_index):
        index_path, docs_path = tmp_path / "index.json", tmp_path / "docs.json"
        save_snapshot(corpus_index, index_path, docs_path)

        loaded = load_snapshot(index_path, docs_path)

        assert loaded == corpus_index

    def test_saved_files_are_stable(self, tmp_path):
        first, second = SearchIndex(), SearchIndex()
        first.merge_all([plain("QmA", "a b"), plain("QmB", "b c")])
        second.merge_all([plain("QmB", "b c"), plain("QmA", "a b")])

        save_snapshot(first, tmp_path / "i1.json", tmp_path / "d1.json")
        save_snapshot(second, tmp_path / "i2.json", tmp_path / "d2.json")

        assert (tmp_path / "i1.json").read_bytes() == (tmp_path / "i2.json").read_bytes()
        assert (tmp_path / "d1.json").read_bytes() == (tmp_path / "d2.json").read_bytes()

    def test_missing_blob_returns_none(self, tmp_path, corpus_index):
        save_snapshot(corpus_index, tmp_path / "index.json", tmp_path / "docs.json")
        (tmp_path / "docs.json").unlink()

        assert load_snapshot(tmp_path / "index.json", tmp_path / "docs.json") is None

    def test_corrupt_blob_raises(self, tmp_path):
        (tmp_path / "index.json").write_text("{not json")
        (tmp_path / "docs.json").write_text("{}")

        with pytest.raises(StorageError):
            load_snapshot(tmp_path / "index.json", tmp_path / "docs.json")

    def test_occurrence_fields_survive(self, tmp_path):
        index = SearchIndex()
        index.merge(plain("QmA", "x y"))
        save_snapshot(index, tmp_path / "index.json", tmp_path / "docs.json")

        loaded = load_snapshot(tmp_path / "index.json", tmp_path / "docs.json")

        assert loaded.lookup("y") == {Occurrence(content_id="QmA", position=1)}

    def test_identifier_cache(self, tmp_path):
        path = tmp_path / "cids.txt"
        assert load_identifier_cache(path) is None

        save_identifier_cache(path, ["QmB", "QmA", "QmB"])

        assert path.read_text() == "QmA\nQmB\n"
        assert load_identifier_cache(path) == {"QmA", "QmB"}

    def test_corrupt_identifier_cache_raises(self, tmp_path):
        path = tmp_path / "cids.txt"
        path.write_bytes(b"Qm\xff\xfe\xfa\n")

        with pytest.raises(StorageError):
            load_identifier_cache(path)
