from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import httpx

from ens_search.chain.codec import decode_event_payload
from ens_search.errors import InvalidContentHash, LedgerUnavailable
from ens_search.http import HttpClientFactory, transient_retry
from ens_search.index.storage import load_identifier_cache, save_identifier_cache
from ens_search.settings import SearchSettings

logger = logging.getLogger(__name__)


class LedgerClient:
    """Minimal Ethereum JSON-RPC client for resolver content hash events."""

    def __init__(
        self,
        rpc_url: str,
        *,
        resolver_address: str,
        topic: str,
        from_block: int = 0,
        client: httpx.AsyncClient | None = None,
    ):
        self.rpc_url = rpc_url
        self.resolver_address = resolver_address
        self.topic = topic
        self.from_block = from_block
        self._owns_client = client is None
        self._client = client or HttpClientFactory.client()
        self._next_id = 0

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    @transient_retry()
    async def _call(self, method: str, params: list[Any]) -> Any:
        self._next_id += 1
        r = await self._client.post(
            self.rpc_url,
            json={"jsonrpc": "2.0", "id": self._next_id, "method": method, "params": params},
        )
        r.raise_for_status()
        body = r.json()
        if not isinstance(body, dict):
            raise LedgerUnavailable(f"{method} returned a non-object reply: {body!r}")
        if body.get("error"):
            raise LedgerUnavailable(f"{method} failed: {body['error']}")
        return body.get("result")

    async def fetch_payloads(self) -> list[str]:
        """Return the hex `data` of every matching resolver log."""
        try:
            latest = await self._call("eth_blockNumber", [])
            logger.info(
                "Filtering logs for topic %s from block %d to %s",
                self.topic,
                self.from_block,
                latest,
            )
            logs = await self._call(
                "eth_getLogs",
                [
                    {
                        "address": self.resolver_address,
                        "fromBlock": hex(self.from_block),
                        "toBlock": latest,
                        "topics": [self.topic],
                    }
                ],
            )
        except (httpx.HTTPError, ValueError) as e:
            raise LedgerUnavailable(f"ledger request to {self.rpc_url} failed: {e}") from e
        logs = logs or []
        if not isinstance(logs, list) or not all(isinstance(log, dict) for log in logs):
            raise LedgerUnavailable(f"eth_getLogs returned malformed logs: {logs!r}")
        logger.info("Acquired %d logs", len(logs))
        return [log.get("data") or "" for log in logs]


def collect_identifiers(payloads: Iterable[str]) -> set[str]:
    identifiers: set[str] = set()
    for payload in payloads:
        try:
            cid = decode_event_payload(payload)
        except InvalidContentHash as e:
            logger.warning("Skipping malformed content hash payload: %s", e)
            continue
        if cid is not None:
            identifiers.add(cid)
    return identifiers


async def load_identifiers(
    cfg: SearchSettings, *, client: httpx.AsyncClient | None = None
) -> set[str]:
    """Identifiers from the on-disk cache, or from the ledger when there is none."""
    cache_path = Path(cfg.identifiers_path)
    cached = load_identifier_cache(cache_path)
    if cached is not None:
        logger.info("Loaded %d identifiers from %s", len(cached), cache_path)
        return cached

    if not cfg.rpc_url:
        raise LedgerUnavailable(
            f"no identifier cache at {cache_path} and ENS_SEARCH_RPC_URL is not set"
        )

    ledger = LedgerClient(
        cfg.rpc_url,
        resolver_address=cfg.resolver_address,
        topic=cfg.contenthash_topic,
        from_block=cfg.from_block,
        client=client,
    )
    try:
        payloads = await ledger.fetch_payloads()
    finally:
        await ledger.aclose()

    identifiers = collect_identifiers(payloads)
    save_identifier_cache(cache_path, identifiers)
    return identifiers
