from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

import httpx

from ens_search.crawl.extract import extract_document
from ens_search.errors import FetchError, RateLimited
from ens_search.http import HttpClientFactory, Sleep, rate_limit_retrying
from ens_search.index.store import SearchIndex

logger = logging.getLogger(__name__)

Outcome = Literal["indexed", "skipped", "failed"]

MAX_CONCURRENT_REQUESTS = 10
MAX_ATTEMPTS = 5


@dataclass
class CrawlStats:
    requested: int = 0
    indexed: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: Outcome) -> None:
        setattr(self, outcome, getattr(self, outcome) + 1)


def check_status(response: httpx.Response) -> None:
    """Raise for anything but 2xx; 429 is the only retryable status."""
    if response.is_success:
        return
    url = str(response.request.url)
    if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
        raise RateLimited(url, response.status_code, response.reason_phrase)
    raise FetchError(url, response.status_code, response.reason_phrase)


class Crawler:
    """Fetches identifiers through an IPFS gateway and merges them into an index.

    At most `max_concurrent_requests` fetches are in flight. A permit stays
    held while an identifier sleeps through its rate-limit backoff.
    """

    def __init__(
        self,
        index: SearchIndex,
        *,
        gateway_url: str,
        max_concurrent_requests: int = MAX_CONCURRENT_REQUESTS,
        max_attempts: int = MAX_ATTEMPTS,
        client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.index = index
        self.gateway_url = gateway_url.rstrip("/")
        self.max_concurrent_requests = max_concurrent_requests
        self.max_attempts = max_attempts
        self._client = client
        self._sleep = sleep

    def url_for(self, content_id: str) -> str:
        return f"{self.gateway_url}/{content_id}"

    async def crawl(self, content_ids: Iterable[str]) -> CrawlStats:
        ids = list(content_ids)
        stats = CrawlStats(requested=len(ids))
        semaphore = asyncio.Semaphore(self.max_concurrent_requests)

        client = self._client or HttpClientFactory.client()
        try:
            outcomes = await asyncio.gather(
                *(self._crawl_one(client, semaphore, cid, i, len(ids)) for i, cid in enumerate(ids))
            )
        finally:
            if self._client is None:
                await client.aclose()

        for outcome in outcomes:
            stats.record(outcome)
        logger.info(
            "Crawl finished: %d requested, %d indexed, %d skipped, %d failed",
            stats.requested,
            stats.indexed,
            stats.skipped,
            stats.failed,
        )
        return stats

    async def fetch(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        async for attempt in rate_limit_retrying(self.max_attempts, sleep=self._sleep):
            with attempt:
                response = await client.get(url)
                check_status(response)
        return response

    async def _crawl_one(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        content_id: str,
        position: int,
        total: int,
    ) -> Outcome:
        url = self.url_for(content_id)
        async with semaphore:
            logger.debug("Requesting %d/%d: %s", position + 1, total, url)
            try:
                response = await self.fetch(client, url)
                extraction = extract_document(
                    content_id, response.headers.get("content-type"), response.text
                )
            except RateLimited as e:
                logger.warning("Giving up on %s after %d attempts: %s", content_id, self.max_attempts, e)
                return "failed"
            except (FetchError, httpx.HTTPError) as e:
                logger.warning("Failed to fetch %s: %s", content_id, e)
                return "failed"
            except Exception:
                logger.exception("Unexpected error while crawling %s", content_id)
                return "failed"

        if extraction is None:
            return "skipped"
        self.index.merge(extraction)
        logger.debug("Indexed %s (%d tokens)", content_id, len(extraction.tokens))
        return "indexed"
