"""
Legacy binary Zcash viewing-key import.

Zigner firmware that predates ``ur:zcash-accounts`` exports Zcash keys as a
flag-driven binary frame::

    [0x53][0x04][0x01]            prelude (substrate compat, zcash, fvk export)
    [flags:1]                     bit 0 mainnet, bit 1 orchard, bit 2 transparent, bit 3 address
    [account index:4 LE]
    [label length:1]
    [label:label length]          utf-8, absent when length is 0
    [orchard fvk:96]              if bit 1
    [xpub length:1][xpub]         if bit 2
    [address length:2 LE][addr]   if bit 3, utf-8 unified address
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from coldsign.core import config
from coldsign.core.airgap_exceptions import AirgapError, FormatError
from coldsign.core.byte_utils import ByteReader, hex_to_bytes
from coldsign.wallet.fvk_import import check_fvk_prelude
from coldsign.wallet.qr_protocol import PRELUDE_SIZE, SUBSTRATE_COMPAT, ChainId, QrType

logger = logging.getLogger(__name__)

FLAG_MAINNET = 0x01
FLAG_ORCHARD = 0x02
FLAG_TRANSPARENT = 0x04
FLAG_ADDRESS = 0x08

ORCHARD_FVK_SIZE = 96
MIN_FRAME_SIZE = PRELUDE_SIZE + 1 + 4 + 1  # 9

_CONTEXT = "Zcash FVK QR"


@dataclass(frozen=True)
class ZcashFvkExport:
    """Data extracted from a legacy Zcash FVK export QR code."""

    account_index: int
    label: Optional[str]
    mainnet: bool
    orchard_fvk: Optional[bytes] = field(default=None, repr=False)
    transparent_xpub: Optional[bytes] = field(default=None, repr=False)
    address: Optional[str] = None


@dataclass(frozen=True)
class ZcashWalletImport:
    """Watch-only Zcash wallet record handed to wallet storage."""

    label: str
    orchard_fvk: Optional[bytes] = field(repr=False)
    account_index: int
    mainnet: bool
    address: Optional[str]


def _decode_utf8(raw: bytes, name: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FormatError(f"invalid {_CONTEXT}: {name} is not valid UTF-8") from exc


def parse_zcash_fvk_bytes(data: bytes) -> ZcashFvkExport:
    """Decode a raw Zcash FVK frame.

    Raises:
        FormatError: too short, wrong prelude, chain id or type byte, text
            that is not UTF-8, or any flagged field running past the end.
    """
    if len(data) < MIN_FRAME_SIZE:
        raise FormatError(
            f"invalid {_CONTEXT}: too short ({len(data)} bytes, need at least {MIN_FRAME_SIZE})",
            details={"length": len(data)},
        )
    check_fvk_prelude(data, ChainId.ZCASH, _CONTEXT)

    reader = ByteReader(data)
    reader.skip(PRELUDE_SIZE, "prelude")
    orchard_fvk = transparent_xpub = address_bytes = None
    try:
        flags = reader.read_u8("flags")
        account_index = reader.read_u32_le("account index")
        label_bytes = reader.read(reader.read_u8("label length"), "label")
        if flags & FLAG_ORCHARD:
            orchard_fvk = reader.read(ORCHARD_FVK_SIZE, "orchard fvk")
        if flags & FLAG_TRANSPARENT:
            transparent_xpub = reader.read(reader.read_u8("transparent xpub length"), "transparent xpub")
        if flags & FLAG_ADDRESS:
            address_bytes = reader.read(reader.read_u16_le("address length"), "address")
    except AirgapError as exc:
        raise FormatError(f"invalid {_CONTEXT}: {exc.message}", details=exc.details) from exc

    if reader.remaining:
        logger.debug(
            "Zcash FVK frame has %d trailing bytes",
            reader.remaining,
            extra={"event": "zcash_fvk.trailing_bytes", "trailing_bytes": reader.remaining},
        )

    return ZcashFvkExport(
        account_index=account_index,
        label=_decode_utf8(label_bytes, "label") if label_bytes else None,
        mainnet=bool(flags & FLAG_MAINNET),
        orchard_fvk=orchard_fvk,
        transparent_xpub=transparent_xpub,
        address=_decode_utf8(address_bytes, "address") if address_bytes is not None else None,
    )


def parse_zcash_fvk_qr(hex_string: str) -> ZcashFvkExport:
    """Decode the hex string scanned from a Zcash FVK export QR."""
    return parse_zcash_fvk_bytes(hex_to_bytes(hex_string))


def is_zcash_fvk_qr(hex_string: str) -> bool:
    """Cheap routing check on length and prelude; never raises."""
    try:
        data = hex_to_bytes(hex_string)
    except FormatError:
        return False
    return (
        len(data) >= MIN_FRAME_SIZE
        and data[0] == SUBSTRATE_COMPAT
        and data[1] == ChainId.ZCASH
        and data[2] == QrType.FVK_EXPORT
    )


def create_zcash_wallet_import(export: ZcashFvkExport, default_label: Optional[str] = None) -> ZcashWalletImport:
    return ZcashWalletImport(
        label=export.label or default_label or config.DEFAULT_ZCASH_WALLET_LABEL,
        orchard_fvk=export.orchard_fvk,
        account_index=export.account_index,
        mainnet=export.mainnet,
        address=export.address,
    )
