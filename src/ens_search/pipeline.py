from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

import httpx

from ens_search.chain.ledger import load_identifiers
from ens_search.crawl.crawler import Crawler
from ens_search.errors import StorageError
from ens_search.http import Sleep
from ens_search.index.storage import load_snapshot, save_snapshot
from ens_search.index.store import SearchIndex
from ens_search.settings import SearchSettings

logger = logging.getLogger(__name__)


async def build_index(
    cfg: SearchSettings,
    identifiers: Iterable[str],
    *,
    client: httpx.AsyncClient | None = None,
    sleep: Sleep = asyncio.sleep,
) -> SearchIndex:
    """Crawl every identifier into a fresh index and persist it."""
    ids = sorted(set(identifiers))
    logger.info("Building index from %d identifiers", len(ids))
    index = SearchIndex()
    crawler = Crawler(
        index,
        gateway_url=cfg.gateway_url,
        max_concurrent_requests=cfg.max_concurrent_requests,
        max_attempts=cfg.max_attempts,
        client=client,
        sleep=sleep,
    )
    await crawler.crawl(ids)
    save_snapshot(index, Path(cfg.index_path), Path(cfg.docs_path))
    return index


async def load_or_build(
    cfg: SearchSettings,
    *,
    force_rebuild: bool = False,
    ledger_client: httpx.AsyncClient | None = None,
    gateway_client: httpx.AsyncClient | None = None,
    sleep: Sleep = asyncio.sleep,
) -> SearchIndex:
    if not force_rebuild:
        try:
            index = load_snapshot(Path(cfg.index_path), Path(cfg.docs_path))
        except StorageError as e:
            logger.warning("Could not load saved index, rebuilding: %s", e)
            index = None
        if index is not None:
            logger.info("Loaded index with %d entries and %d documents", len(index), len(index.docs))
            return index

    identifiers = await load_identifiers(cfg, client=ledger_client)
    return await build_index(cfg, identifiers, client=gateway_client, sleep=sleep)
