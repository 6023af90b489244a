"""
Legacy binary full-viewing-key import.

Older Zigner firmware exports the Penumbra viewing key as a fixed-offset
binary frame instead of a UR::

    [0x53][0x03][0x01]            prelude (substrate compat, penumbra, fvk export)
    [account index:4 LE]
    [label length:1]
    [label:label length]          utf-8, absent when length is 0
    [full viewing key:64]         ak || nk
    [wallet id:32]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from coldsign.core import config
from coldsign.core.airgap_exceptions import AirgapError, FormatError
from coldsign.core.byte_utils import ByteReader, hex_to_bytes
from coldsign.wallet.qr_protocol import PRELUDE_SIZE, SUBSTRATE_COMPAT, ChainId, QrType

logger = logging.getLogger(__name__)

FVK_SIZE = 64
WALLET_ID_SIZE = 32
MIN_FRAME_SIZE = PRELUDE_SIZE + 4 + 1 + FVK_SIZE + WALLET_ID_SIZE  # 104


@dataclass(frozen=True)
class LegacyFvkExport:
    """Data extracted from a legacy FVK export QR code."""

    account_index: int
    label: Optional[str]
    fvk_bytes: bytes = field(repr=False)
    wallet_id_bytes: bytes


@dataclass(frozen=True)
class WalletImport:
    """Parsed cold wallet ready to be stored as a watch-only wallet."""

    label: str
    fvk_bytes: bytes = field(repr=False)
    wallet_id_bytes: bytes
    account_index: int


def check_fvk_prelude(data: bytes, chain_id: ChainId = ChainId.PENUMBRA, context: str = "FVK QR") -> None:
    """Raise FormatError unless ``data`` starts with the FVK export prelude for ``chain_id``."""
    expected = (
        ("prelude", SUBSTRATE_COMPAT),
        ("chain id", chain_id),
        ("message type", QrType.FVK_EXPORT),
    )
    for position, (name, value) in enumerate(expected):
        if data[position] != value:
            raise FormatError(
                f"invalid {context}: expected {name} 0x{int(value):02x}, got 0x{data[position]:02x}",
                details={"position": position},
            )


def parse_legacy_fvk_bytes(data: bytes) -> LegacyFvkExport:
    """Decode a raw legacy FVK frame.

    Raises:
        FormatError: too short, wrong prelude, chain id or type byte, a label
            that is not UTF-8, or fields running past the end.
    """
    if len(data) < MIN_FRAME_SIZE:
        raise FormatError(
            f"invalid FVK QR: too short ({len(data)} bytes, need at least {MIN_FRAME_SIZE})",
            details={"length": len(data)},
        )
    check_fvk_prelude(data)

    reader = ByteReader(data)
    reader.skip(PRELUDE_SIZE, "prelude")
    try:
        account_index = reader.read_u32_le("account index")
        label_len = reader.read_u8("label length")
        label_bytes = reader.read(label_len, "label")
        fvk_bytes = reader.read(FVK_SIZE, "full viewing key")
        wallet_id_bytes = reader.read(WALLET_ID_SIZE, "wallet id")
    except AirgapError as exc:
        raise FormatError(f"invalid FVK QR: {exc.message}", details=exc.details) from exc

    label: Optional[str] = None
    if label_bytes:
        try:
            label = label_bytes.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FormatError("invalid FVK QR: label is not valid UTF-8") from exc

    if reader.remaining:
        logger.debug(
            "Legacy FVK frame has %d trailing bytes",
            reader.remaining,
            extra={"event": "fvk.trailing_bytes", "trailing_bytes": reader.remaining},
        )

    return LegacyFvkExport(
        account_index=account_index,
        label=label,
        fvk_bytes=fvk_bytes,
        wallet_id_bytes=wallet_id_bytes,
    )


def parse_legacy_fvk_qr(hex_string: str) -> LegacyFvkExport:
    """Decode the hex string scanned from a legacy FVK export QR."""
    return parse_legacy_fvk_bytes(hex_to_bytes(hex_string))


def is_legacy_fvk_qr(hex_string: str) -> bool:
    """Cheap check used to route a scanned QR; never raises."""
    try:
        data = hex_to_bytes(hex_string)
    except FormatError:
        return False
    return (
        len(data) >= MIN_FRAME_SIZE
        and data[0] == SUBSTRATE_COMPAT
        and data[1] == ChainId.PENUMBRA
        and data[2] == QrType.FVK_EXPORT
    )


def create_wallet_import(export: LegacyFvkExport, default_label: Optional[str] = None) -> WalletImport:
    """Convert parsed export data into the record handed to wallet storage."""
    return WalletImport(
        label=export.label or default_label or config.DEFAULT_WALLET_LABEL,
        fvk_bytes=export.fvk_bytes,
        wallet_id_bytes=export.wallet_id_bytes,
        account_index=export.account_index,
    )
