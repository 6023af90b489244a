"""
QR prelude constants and frame detection.

Request-family frames (hot wallet -> signer, and FVK exports) start with a
three-byte prelude ``[0x53][chain id][message type]``. The 0x53 byte keeps
the frames compatible with Substrate-style signer apps.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Optional

from coldsign.core.airgap_exceptions import FormatError
from coldsign.core.byte_utils import hex_to_bytes

SUBSTRATE_COMPAT = 0x53
PRELUDE_SIZE = 3


class ChainId(IntEnum):
    SUBSTRATE_SR25519 = 0x00
    SUBSTRATE_ED25519 = 0x01
    SUBSTRATE_ECDSA = 0x02
    PENUMBRA = 0x03
    ZCASH = 0x04


class QrType(IntEnum):
    FVK_EXPORT = 0x01
    SIGN_REQUEST = 0x02
    SIGNATURES = 0x03
    TRANSACTION = 0x10


_NETWORKS = {
    ChainId.PENUMBRA: "penumbra",
    ChainId.ZCASH: "zcash",
    ChainId.SUBSTRATE_SR25519: "polkadot",
    ChainId.SUBSTRATE_ED25519: "polkadot",
    ChainId.SUBSTRATE_ECDSA: "polkadot",
}

_QR_TYPE_NAMES = {
    QrType.FVK_EXPORT: "fvk_export",
    QrType.SIGN_REQUEST: "sign_request",
    QrType.SIGNATURES: "signatures",
    QrType.TRANSACTION: "transaction",
}


def create_prelude(chain_id: int, qr_type: int) -> bytes:
    """Build the 3-byte request prelude."""
    if not 0 <= chain_id <= 0xFF or not 0 <= qr_type <= 0xFF:
        raise FormatError(f"prelude bytes out of range: chain {chain_id}, type {qr_type}")
    return bytes((SUBSTRATE_COMPAT, chain_id, qr_type))


def _read_prelude(hex_string: str) -> Optional[bytes]:
    try:
        data = hex_to_bytes(hex_string)
    except FormatError:
        return None
    if len(data) < PRELUDE_SIZE or data[0] != SUBSTRATE_COMPAT:
        return None
    return data[:PRELUDE_SIZE]


def detect_network(hex_string: str) -> Optional[str]:
    """Network named by a request-family frame, or None."""
    prelude = _read_prelude(hex_string)
    if prelude is None:
        return None
    return _NETWORKS.get(prelude[1])


def detect_qr_type(hex_string: str) -> Optional[str]:
    """Message type of a request-family frame, or None.

    Authorization responses carry no prelude and are never detected here.
    """
    prelude = _read_prelude(hex_string)
    if prelude is None:
        return None
    return _QR_TYPE_NAMES.get(prelude[2])
