"""
Zcash sign request / signature response frames.

Sign request (hot wallet -> signer)::

    [0x53][0x04][0x02]
    [flags:1]                     bit 0 = mainnet
    [account index:4 LE]
    [sighash:32]
    [action count:2 LE] { [alpha:32] }*
    [summary length:2 LE][summary utf-8]

Signature response (signer -> hot wallet)::

    [0x53][0x04][0x03]
    [sighash:32]
    [transparent count:2 LE] { [sig length:2 LE][sig] }*
    [orchard count:2 LE]     { [sig:64] }*
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from coldsign.core.airgap_exceptions import FormatError, ValidationError
from coldsign.core.byte_utils import ByteReader, bytes_to_hex, hex_to_bytes, uint16_le, uint32_le
from coldsign.wallet.qr_protocol import PRELUDE_SIZE, ChainId, QrType, create_prelude

SIGHASH_SIZE = 32
ALPHA_SIZE = 32
ORCHARD_SIGNATURE_SIZE = 64
_FLAG_MAINNET = 0x01


@dataclass(frozen=True)
class ZcashSignRequest:
    account_index: int
    sighash: bytes
    orchard_alphas: Sequence[bytes] = field(repr=False)
    summary: str
    mainnet: bool = True


@dataclass(frozen=True)
class ZcashSignatureResponse:
    sighash: bytes
    transparent_sigs: tuple[bytes, ...] = field(repr=False)
    orchard_sigs: tuple[bytes, ...] = field(repr=False)


def encode_zcash_sign_request(request: ZcashSignRequest) -> str:
    """Encode a sign request as the lowercase hex shown in the QR."""
    if len(request.sighash) != SIGHASH_SIZE:
        raise ValidationError(f"sighash must be {SIGHASH_SIZE} bytes, got {len(request.sighash)}")
    for index, alpha in enumerate(request.orchard_alphas):
        if len(alpha) != ALPHA_SIZE:
            raise ValidationError(f"orchard alpha {index} must be {ALPHA_SIZE} bytes, got {len(alpha)}")

    summary = request.summary.encode("utf-8")
    payload = b"".join(
        (
            create_prelude(ChainId.ZCASH, QrType.SIGN_REQUEST),
            bytes((_FLAG_MAINNET if request.mainnet else 0x00,)),
            uint32_le(request.account_index),
            request.sighash,
            uint16_le(len(request.orchard_alphas)),
            b"".join(request.orchard_alphas),
            uint16_le(len(summary)),
            summary,
        )
    )
    return bytes_to_hex(payload)


def parse_zcash_signature_response(hex_string: str) -> ZcashSignatureResponse:
    """Decode a Zcash signature response QR.

    Raises:
        FormatError: bad prelude or trailing bytes.
        TruncatedError: a declared field runs past the end.
    """
    reader = ByteReader(hex_to_bytes(hex_string))
    prelude = reader.read(PRELUDE_SIZE, "prelude")
    if prelude != create_prelude(ChainId.ZCASH, QrType.SIGNATURES):
        raise FormatError(f"invalid Zcash signature response: bad prelude {prelude.hex()}")

    sighash = reader.read(SIGHASH_SIZE, "sighash")

    transparent = []
    for i in range(reader.read_u16_le("transparent signature count")):
        sig_len = reader.read_u16_le(f"transparent signature {i} length")
        transparent.append(reader.read(sig_len, f"transparent signature {i}"))

    orchard = tuple(
        reader.read(ORCHARD_SIGNATURE_SIZE, f"orchard signature {i}")
        for i in range(reader.read_u16_le("orchard signature count"))
    )

    if reader.remaining:
        raise FormatError(f"invalid Zcash signature response: {reader.remaining} trailing bytes")

    return ZcashSignatureResponse(
        sighash=sighash,
        transparent_sigs=tuple(transparent),
        orchard_sigs=orchard,
    )
