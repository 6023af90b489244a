"""
Transaction request QR encoder (hot wallet -> air-gapped signer).

The frame carries the serialized plan, the effect hash the signer must
reproduce, and the per-action randomizers it needs to produce spend and
delegator-vote signatures.

Frame layout (little-endian integers)::

    [0x53][chain id][message type]              prelude
    [name count:1] { [len:1][utf-8 name] }*     asset name hints
    [plan length:4][plan bytes]
    [effect hash:64]
    [spend count:2]  { [randomizer:32] }*
    [vote count:2]   { [randomizer:32] }*
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from coldsign.core import config
from coldsign.core.airgap_exceptions import (
    BadEffectHashLengthError,
    MissingRandomizerError,
    ValidationError,
)
from coldsign.core.byte_utils import bytes_to_hex, uint16_le, uint32_le
from coldsign.core.transaction_plan import RANDOMIZER_SIZE, SignatureSlot, TransactionPlan
from coldsign.wallet.qr_protocol import ChainId, QrType, create_prelude

logger = logging.getLogger(__name__)

EFFECT_HASH_SIZE = 64
PLACEHOLDER_ASSET_NAMES = ("penumbra",)
_MAX_NAME_COUNT = 0xFF
_MAX_NAME_BYTES = 0xFF


def require_effect_hash(effect_hash: bytes) -> bytes:
    """Return the hash unchanged if it is exactly 64 bytes."""
    if len(effect_hash) != EFFECT_HASH_SIZE:
        raise BadEffectHashLengthError(len(effect_hash))
    return bytes(effect_hash)


def extract_randomizers(plan: TransactionPlan) -> tuple[list[bytes], list[bytes]]:
    """Collect spend and delegator-vote randomizers in plan order.

    Raises:
        MissingRandomizerError: a spend or vote action has no randomizer, or
            one that is not 32 bytes. Skipping it would leave the frame's
            randomizer lists out of step with the signable actions.
    """
    spend_randomizers: list[bytes] = []
    vote_randomizers: list[bytes] = []
    slots = {
        SignatureSlot.SPEND: spend_randomizers,
        SignatureSlot.DELEGATOR_VOTE: vote_randomizers,
    }

    for index, action in enumerate(plan.actions):
        slot = action.kind.signature_slot
        if slot is None:
            continue
        randomizer = action.randomizer
        if randomizer is None or len(randomizer) != RANDOMIZER_SIZE:
            raise MissingRandomizerError(
                index,
                action.kind.value,
                details={"length": None if randomizer is None else len(randomizer)},
            )
        slots[slot].append(bytes(randomizer))

    return spend_randomizers, vote_randomizers


def extract_asset_names(plan: TransactionPlan) -> list[str]:
    """Distinct asset names in plan order, or the placeholder list."""
    names: list[str] = []
    for action in plan.actions:
        if action.asset_name and action.asset_name not in names:
            names.append(action.asset_name)
    return names or list(PLACEHOLDER_ASSET_NAMES)


def encode_asset_names(names: Sequence[str]) -> bytes:
    """Count byte followed by length-prefixed UTF-8 names."""
    if len(names) > _MAX_NAME_COUNT:
        raise ValidationError(f"too many asset names: {len(names)} (max {_MAX_NAME_COUNT})")
    encoded = bytearray([len(names)])
    for name in names:
        raw = name.encode("utf-8")
        if len(raw) > _MAX_NAME_BYTES:
            raise ValidationError(f"asset name longer than {_MAX_NAME_BYTES} bytes: {name[:32]!r}...")
        encoded.append(len(raw))
        encoded += raw
    return bytes(encoded)


def _encode_randomizers(randomizers: Sequence[bytes]) -> bytes:
    return uint16_le(len(randomizers)) + b"".join(randomizers)


def estimate_qr_code_count(size: int, frame_capacity: Optional[int] = None) -> int:
    """Number of QR frames a payload of ``size`` bytes would need."""
    capacity = frame_capacity or config.QR_FRAME_CAPACITY
    return max(1, math.ceil(size / capacity))


def encode_plan_to_bytes(
    plan: TransactionPlan,
    effect_hash: bytes,
    *,
    chain_id: int = ChainId.PENUMBRA,
    message_type: int = QrType.TRANSACTION,
    asset_names: Optional[Sequence[str]] = None,
) -> bytes:
    """Build the raw transaction request frame. See module docstring for layout."""
    effect_hash = require_effect_hash(effect_hash)
    spend_randomizers, vote_randomizers = extract_randomizers(plan)
    names = list(asset_names) if asset_names is not None else extract_asset_names(plan)
    plan_bytes = plan.to_bytes()

    payload = b"".join(
        (
            create_prelude(chain_id, message_type),
            encode_asset_names(names),
            uint32_le(len(plan_bytes)),
            plan_bytes,
            effect_hash,
            _encode_randomizers(spend_randomizers),
            _encode_randomizers(vote_randomizers),
        )
    )

    if len(payload) > config.QR_FRAME_CAPACITY:
        logger.warning(
            "Transaction QR payload is %d bytes, above the %d byte single-frame capacity",
            len(payload),
            config.QR_FRAME_CAPACITY,
            extra={
                "event": "qr.frame_oversize",
                "payload_bytes": len(payload),
                "estimated_frames": estimate_qr_code_count(len(payload)),
            },
        )

    logger.debug(
        "Encoded transaction QR",
        extra={
            "event": "qr.transaction_encoded",
            "payload_bytes": len(payload),
            "spend_count": len(spend_randomizers),
            "vote_count": len(vote_randomizers),
        },
    )
    return payload


def encode_plan_to_qr(
    plan: TransactionPlan,
    effect_hash: bytes,
    *,
    chain_id: int = ChainId.PENUMBRA,
    message_type: int = QrType.TRANSACTION,
    asset_names: Optional[Sequence[str]] = None,
) -> str:
    """Encode a plan as the lowercase hex string shown in the transaction QR."""
    return bytes_to_hex(
        encode_plan_to_bytes(
            plan,
            effect_hash,
            chain_id=chain_id,
            message_type=message_type,
            asset_names=asset_names,
        )
    )
