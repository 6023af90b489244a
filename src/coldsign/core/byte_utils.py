"""
Byte helpers shared by the QR frame codecs.

Hex conversion, little-endian integers and a bounds-checked forward reader.
Every read that would run past the buffer raises TruncatedError.
"""

from __future__ import annotations

import re

from coldsign.core.airgap_exceptions import FormatError, TruncatedError, ValidationError

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def hex_to_bytes(hex_string: str) -> bytes:
    """Convert a hex string (optional ``0x`` prefix) to bytes.

    Raises:
        FormatError: odd length or non-hex characters.
    """
    clean = hex_string.strip()
    if clean[:2].lower() == "0x":
        clean = clean[2:]
    if len(clean) % 2 != 0:
        raise FormatError(f"invalid hex: odd length ({len(clean)})")
    if not _HEX_RE.match(clean):
        raise FormatError("invalid hex: contains non-hex characters")
    return bytes.fromhex(clean)


def bytes_to_hex(data: bytes) -> str:
    """Lowercase hex without prefix."""
    return data.hex()


def uint16_le(value: int) -> bytes:
    if not 0 <= value <= 0xFFFF:
        raise ValidationError(f"value {value} does not fit in 2 bytes")
    return value.to_bytes(2, "little")


def uint32_le(value: int) -> bytes:
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValidationError(f"value {value} does not fit in 4 bytes")
    return value.to_bytes(4, "little")


class ByteReader:
    """Forward-only reader over a fixed buffer.

    The offset never passes the end of the buffer: a read that would do so
    raises TruncatedError naming the field being read.
    """

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def read(self, count: int, field: str = "data") -> bytes:
        if count < 0 or count > self.remaining:
            raise TruncatedError(
                f"truncated {field}: need {count} bytes at offset {self._offset}, have {self.remaining}",
                details={"field": field, "offset": self._offset, "needed": count, "available": self.remaining},
            )
        chunk = self._data[self._offset:self._offset + count]
        self._offset += count
        return chunk

    def read_u8(self, field: str = "byte") -> int:
        return self.read(1, field)[0]

    def read_u16_le(self, field: str = "uint16") -> int:
        return int.from_bytes(self.read(2, field), "little")

    def read_u32_le(self, field: str = "uint32") -> int:
        return int.from_bytes(self.read(4, field), "little")

    def skip(self, count: int, field: str = "data") -> None:
        self.read(count, field)
