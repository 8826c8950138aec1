"""Discovery of content identifiers from ENS resolver events."""

from .codec import cid_to_string, decode_event_payload
from .ledger import LedgerClient, collect_identifiers, load_identifiers

__all__ = [
    "LedgerClient",
    "cid_to_string",
    "collect_identifiers",
    "decode_event_payload",
    "load_identifiers",
]
