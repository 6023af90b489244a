"""
Builders for test payloads: Bytewords/UR encoding and CBOR account records.

The library only decodes these formats, so tests build their inputs here.
Well-formed CBOR comes from cbor2; malformed bytes are written by hand in
the tests that need them.
"""

import zlib

from coldsign.ur.bytewords import MINIMAL_WORDS, STANDARD_WORDS


def bytewords_raw(data: bytes, minimal: bool = True) -> str:
    """Render bytes as Bytewords without appending a checksum."""
    if minimal:
        return "".join(MINIMAL_WORDS[b] for b in data)
    return "-".join(STANDARD_WORDS[b] for b in data)


def encode_bytewords(payload: bytes, minimal: bool = True) -> str:
    """Render payload plus its big-endian CRC32."""
    checksum = zlib.crc32(payload).to_bytes(4, "big")
    return bytewords_raw(payload + checksum, minimal=minimal)


def make_ur(ur_type: str, payload: bytes, minimal: bool = True) -> str:
    return f"ur:{ur_type}/{encode_bytewords(payload, minimal=minimal)}"


def account_map(viewing_key=None, index=None, label=None, extra=None) -> dict:
    """Account record keyed 1 (viewing key), 2 (index), 3 (label), ready for ``cbor2.dumps``."""
    entry = {}
    if viewing_key is not None:
        entry[1] = viewing_key
    if index is not None:
        entry[2] = index
    if label is not None:
        entry[3] = label
    entry.update(extra or {})
    return entry


def signature_block(signatures) -> bytes:
    return len(signatures).to_bytes(2, "little") + b"".join(signatures)
