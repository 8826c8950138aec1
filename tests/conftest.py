from __future__ import annotations

import pytest

from ens_search.crawl.extract import Extraction, extract_document
from ens_search.index.store import SearchIndex
from ens_search.settings import SearchSettings

QUICK_FOX_CID = "QmQuickFox"


def plain(content_id: str, text: str) -> Extraction:
    extraction = extract_document(content_id, "text/plain", text)
    assert extraction is not None
    return extraction


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every requested delay."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def quick_fox_index() -> SearchIndex:
    index = SearchIndex()
    index.merge(plain(QUICK_FOX_CID, "the quick brown fox"))
    return index


@pytest.fixture
def corpus_index() -> SearchIndex:
    index = SearchIndex()
    index.merge(plain("QmAlpha", "ipfs stores content by hash and ens names point at it"))
    index.merge(plain("QmBeta", "the ens registry maps names to resolvers"))
    index.merge(plain("QmGamma", "content addressing makes ipfs links permanent"))
    return index


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def tmp_settings(tmp_path) -> SearchSettings:
    return SearchSettings(
        gateway_url="https://gateway.test/ipfs",
        index_path=str(tmp_path / "index.json"),
        docs_path=str(tmp_path / "docs.json"),
        identifiers_path=str(tmp_path / "cids.txt"),
        rpc_url="https://rpc.test",
        max_concurrent_requests=4,
    )
