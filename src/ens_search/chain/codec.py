"""Decode IPFS content hashes out of ENS `ContenthashChanged` log data.

The resolver emits the content hash as EIP-1577 bytes: the `ipfs-ns`
multicodec (0xe3 0x01) followed by a binary CIDv1. In the ABI-encoded log
data the record is preceded by its length byte (0x26 = 38), which gives a
stable marker to search for.
"""

from __future__ import annotations

import logging

import base58

from ens_search.errors import InvalidContentHash

logger = logging.getLogger(__name__)

# length prefix (38) + ipfs-ns multicodec varint
CONTENTHASH_MARKER = bytes.fromhex("26e301")
# CIDv1 version + dag-pb codec + sha2-256 multihash header + 32 byte digest
ADDRESS_LENGTH = 36

CID_VERSION_1 = 0x01
DAG_PB = 0x70
SHA2_256 = 0x12
SHA2_256_LENGTH = 32


def _read_varint(data: bytes, offset: int) -> tuple[int, int]:
    value = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise InvalidContentHash("truncated varint")
        byte = data[offset]
        offset += 1
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return value, offset
        shift += 7
        if shift > 63:
            raise InvalidContentHash("varint too long")


def cid_to_string(raw: bytes) -> str:
    """Render binary CIDv1 bytes in base58.

    dag-pb/sha2-256 CIDs are rendered in their CIDv0 form (`Qm...`), which
    every gateway accepts. Anything else is rendered as a base58btc
    multibase CIDv1 (`z...`).
    """
    version, offset = _read_varint(raw, 0)
    if version != CID_VERSION_1:
        raise InvalidContentHash(f"unsupported CID version {version}")
    codec, offset = _read_varint(raw, offset)
    multihash = raw[offset:]
    hash_fn, offset = _read_varint(raw, offset)
    digest_length, offset = _read_varint(raw, offset)
    if digest_length != len(raw) - offset:
        raise InvalidContentHash(
            f"digest length {digest_length} does not match {len(raw) - offset} remaining bytes"
        )
    if codec == DAG_PB and hash_fn == SHA2_256 and digest_length == SHA2_256_LENGTH:
        return base58.b58encode(multihash).decode("ascii")
    return "z" + base58.b58encode(raw).decode("ascii")


def decode_event_payload(payload_hex: str) -> str | None:
    """Return the content identifier embedded in one log payload.

    Returns None when the payload carries no IPFS content hash or carries
    more than one candidate. Raises InvalidContentHash when the marker is
    found but the bytes after it are not a valid CID.
    """
    hex_text = payload_hex[2:] if payload_hex.startswith("0x") else payload_hex
    try:
        data = bytes.fromhex(hex_text)
    except ValueError as e:
        raise InvalidContentHash(f"payload is not hex: {e}") from e

    count = data.count(CONTENTHASH_MARKER)
    if count == 0:
        logger.info("Unrecognized content hash payload: %s", hex_text)
        return None
    if count > 1:
        logger.warning("Ambiguous content hash payload (%d markers): %s", count, hex_text)
        return None

    start = data.index(CONTENTHASH_MARKER) + len(CONTENTHASH_MARKER)
    raw = data[start : start + ADDRESS_LENGTH]
    if len(raw) != ADDRESS_LENGTH:
        raise InvalidContentHash(f"expected {ADDRESS_LENGTH} address bytes, got {len(raw)}")
    return cid_to_string(raw)
