"""
Minimal CBOR reader for the UR schemas exported by Zigner.

Supports exactly: unsigned integers, byte strings, UTF-8 text strings, array
and map headers, and tags, with inline lengths or 1/2/4-byte big-endian
extensions. Everything else (negative integers, floats, simple values,
8-byte lengths, indefinite lengths) is rejected.

The reader is a forward-only cursor. The only lookahead is
``peek_major_type``; there is no other backtracking.
"""

from __future__ import annotations

from enum import IntEnum

from coldsign.core import config
from coldsign.core.airgap_exceptions import (
    InvalidPayloadError,
    SchemaError,
    TruncatedError,
    UnsupportedTypeError,
)


class MajorType(IntEnum):
    UNSIGNED_INT = 0
    NEGATIVE_INT = 1
    BYTE_STRING = 2
    TEXT_STRING = 3
    ARRAY = 4
    MAP = 5
    TAG = 6
    SIMPLE = 7


_SUPPORTED_MAJOR_TYPES = frozenset(
    {
        MajorType.UNSIGNED_INT,
        MajorType.BYTE_STRING,
        MajorType.TEXT_STRING,
        MajorType.ARRAY,
        MajorType.MAP,
        MajorType.TAG,
    }
)

# additional info -> number of big-endian bytes that follow
_EXTENDED_LENGTHS = {24: 1, 25: 2, 26: 4}


class CborReader:
    """Cursor over a single CBOR buffer."""

    def __init__(self, data: bytes, max_depth: int | None = None) -> None:
        self._data = bytes(data)
        self._offset = 0
        self._max_depth = config.CBOR_MAX_DEPTH if max_depth is None else max_depth

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def has_more(self) -> bool:
        return self._offset < len(self._data)

    # ------------------------------------------------------------------
    # Primitive reads

    def _read_byte(self) -> int:
        if self._offset >= len(self._data):
            raise TruncatedError("cbor: unexpected end of data", details={"offset": self._offset})
        value = self._data[self._offset]
        self._offset += 1
        return value

    def _read_bytes(self, count: int) -> bytes:
        if count > self.remaining:
            raise TruncatedError(
                f"cbor: need {count} bytes at offset {self._offset}, have {self.remaining}",
                details={"offset": self._offset, "needed": count, "available": self.remaining},
            )
        chunk = self._data[self._offset:self._offset + count]
        self._offset += count
        return chunk

    def _read_argument(self, additional_info: int) -> int:
        if additional_info < 24:
            return additional_info
        width = _EXTENDED_LENGTHS.get(additional_info)
        if width is None:
            if additional_info == 31:
                raise UnsupportedTypeError("cbor: indefinite-length items are not supported")
            raise UnsupportedTypeError(f"cbor: unsupported length encoding {additional_info}")
        return int.from_bytes(self._read_bytes(width), "big")

    def _read_head(self, expected: MajorType) -> int:
        major = self.peek_major_type()
        if major != expected:
            raise UnsupportedTypeError(
                f"cbor: expected {expected.name.lower()}, got major type {int(major)}",
                details={"offset": self._offset, "expected": int(expected), "actual": int(major)},
            )
        return self._read_argument(self._read_byte() & 0x1F)

    # ------------------------------------------------------------------
    # Public API

    def peek_major_type(self) -> MajorType:
        """Major type of the next item, without consuming it."""
        if self._offset >= len(self._data):
            raise TruncatedError("cbor: unexpected end of data", details={"offset": self._offset})
        return MajorType(self._data[self._offset] >> 5)

    def read_uint(self) -> int:
        return self._read_head(MajorType.UNSIGNED_INT)

    def read_byte_string(self) -> bytes:
        return self._read_bytes(self._read_head(MajorType.BYTE_STRING))

    def read_text_string(self) -> str:
        raw = self._read_bytes(self._read_head(MajorType.TEXT_STRING))
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidPayloadError(f"cbor: text string is not valid UTF-8: {exc}") from exc

    def read_array_header(self) -> int:
        """Declared element count; the caller must then read that many items."""
        return self._read_head(MajorType.ARRAY)

    def read_map_header(self) -> int:
        """Declared key count; the caller must then read that many key/value pairs."""
        return self._read_head(MajorType.MAP)

    def read_tag(self) -> int:
        """Tag number; the tagged item follows and is left for the caller."""
        return self._read_head(MajorType.TAG)

    def skip_optional_tag(self) -> int | None:
        """Consume a tag if one comes next; return its number or None."""
        if self.has_more() and self.peek_major_type() == MajorType.TAG:
            return self.read_tag()
        return None

    def skip_value(self) -> None:
        """Consume exactly one data item of any supported type."""
        self._skip(depth=0)

    def _skip(self, depth: int) -> None:
        if depth > self._max_depth:
            raise SchemaError(
                f"cbor: nesting deeper than {self._max_depth} levels",
                details={"offset": self._offset},
            )
        major = self.peek_major_type()
        if major not in _SUPPORTED_MAJOR_TYPES:
            raise UnsupportedTypeError(
                f"cbor: unsupported major type {int(major)}",
                details={"offset": self._offset, "actual": int(major)},
            )

        if major == MajorType.UNSIGNED_INT:
            self.read_uint()
        elif major == MajorType.BYTE_STRING:
            self.read_byte_string()
        elif major == MajorType.TEXT_STRING:
            self._read_bytes(self._read_head(MajorType.TEXT_STRING))
        elif major == MajorType.ARRAY:
            for _ in range(self.read_array_header()):
                self._skip(depth + 1)
        elif major == MajorType.MAP:
            for _ in range(self.read_map_header()):
                self._skip(depth + 1)
                self._skip(depth + 1)
        else:
            self.read_tag()
            self._skip(depth + 1)
