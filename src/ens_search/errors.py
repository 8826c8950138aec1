from __future__ import annotations


class SearchError(Exception):
    """Base class for ens-search failures."""


class InvalidContentHash(SearchError):
    """Raw address bytes do not form a content hash we can render."""


class FetchError(SearchError):
    """A gateway request ended in a terminal non-2xx status."""

    def __init__(self, url: str, status_code: int, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        label = f"HTTP {status_code} {reason}" if reason else f"HTTP {status_code}"
        super().__init__(f"{label} for {url}")


class RateLimited(FetchError):
    """The gateway answered 429; retried with backoff."""


class LedgerUnavailable(SearchError):
    """Content identifiers could not be obtained from the ledger."""


class StorageError(SearchError):
    """Reading or writing a persisted index blob failed."""


class QuerySyntaxError(SearchError):
    """The query string cannot be turned into a query tree."""
