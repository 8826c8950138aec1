from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchSettings(BaseSettings):
    """Unified configuration for ens-search.

    Environment variables are prefixed with ENS_SEARCH_.
    """

    model_config = SettingsConfigDict(env_prefix="ENS_SEARCH_", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")

    # --- Crawler ---
    gateway_url: str = Field(default="https://ipfs.io/ipfs")
    max_concurrent_requests: int = Field(default=10, ge=1)
    max_attempts: int = Field(default=5, ge=1, description="Attempts per identifier on 429")

    # --- Query ---
    context_window: int = Field(default=5, ge=0, description="Snippet tokens each side")
    max_results: int = Field(default=20, ge=1)

    # --- Persistence ---
    index_path: str = Field(default="index.json")
    docs_path: str = Field(default="docs.json")
    identifiers_path: str = Field(default="cids.txt")

    # --- Ledger ---
    rpc_url: str | None = Field(default=None, description="Ethereum JSON-RPC endpoint")
    resolver_address: str = Field(default="0x231b0ee14048e9dccd1d247744d114a4eb5e8e63")
    # keccak("ContenthashChanged(bytes32,bytes)")
    contenthash_topic: str = Field(
        default="0xe379c1624ed7e714cc0937528a32359d69d5281337765313dba4e081b72d7578"
    )
    from_block: int = Field(default=0, ge=0)


settings = SearchSettings()
