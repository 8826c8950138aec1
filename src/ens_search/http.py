from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_exponential_jitter,
    wait_fixed,
)

from ens_search.errors import RateLimited

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def default_timeout() -> httpx.Timeout:
    return httpx.Timeout(connect=10.0, read=60.0, write=20.0, pool=10.0)


def default_limits() -> httpx.Limits:
    return httpx.Limits(max_connections=100, max_keepalive_connections=20)


class HttpClientFactory:
    """Creates shared httpx clients with sane defaults.

    Keep one client per crawl or ledger session; do not create per-request.
    """

    @staticmethod
    def client(base_url: str | None = None, headers: dict | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=base_url or "",
            headers=headers,
            timeout=default_timeout(),
            limits=default_limits(),
            follow_redirects=True,
        )


TransientHttpError = (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)


def transient_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(5),
        wait=wait_exponential_jitter(multiplier=0.5, max=10.0),
        retry=retry_if_exception_type(TransientHttpError),
    )


def backoff_wait():
    """Delay before retry i (0-based) is 1 + 2**i seconds: 2, 3, 5, 9, ..."""
    return wait_fixed(1) + wait_exponential(multiplier=1, exp_base=2)


def _log_backoff(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        "Rate limited (attempt %d): %s; retrying in %.0f seconds",
        retry_state.attempt_number,
        exc,
        delay,
    )


def rate_limit_retrying(max_attempts: int, sleep: Sleep = asyncio.sleep) -> AsyncRetrying:
    """Retry only 429 responses; the last RateLimited is re-raised when the budget runs out."""
    return AsyncRetrying(
        reraise=True,
        stop=stop_after_attempt(max_attempts),
        wait=backoff_wait(),
        retry=retry_if_exception_type(RateLimited),
        before_sleep=_log_backoff,
        sleep=sleep,
    )
