"""
Authorization response decoding and validation (air-gapped signer -> hot wallet).

The response frame has no prelude, unlike the request frame::

    [effect hash:64]
    [spend sig count:2] { [signature:64] }*
    [vote sig count:2]  { [signature:64] }*
    [lqt sig count:2]   { [signature:64] }*     optional, newer firmware

Liquidity-tournament vote signatures have no destination in
AuthorizationData; the block is consumed and dropped. Validation binds the
decoded signatures to one exact plan through the effect hash.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from coldsign.core.airgap_exceptions import (
    EffectHashMismatchError,
    FormatError,
    SpendCountMismatchError,
    VoteCountMismatchError,
)
from coldsign.core.byte_utils import ByteReader, hex_to_bytes
from coldsign.core.transaction_plan import SignatureSlot, TransactionPlan, count_signature_slots, summarize_plan
from coldsign.wallet.transaction_qr import EFFECT_HASH_SIZE, encode_plan_to_qr, require_effect_hash

logger = logging.getLogger(__name__)

SIGNATURE_SIZE = 64


@dataclass(frozen=True)
class AuthorizationData:
    """Effect hash plus ordered signature lists from the cold signer."""

    effect_hash: bytes
    spend_auths: tuple[bytes, ...] = field(default=(), repr=False)
    delegator_vote_auths: tuple[bytes, ...] = field(default=(), repr=False)


def _read_signatures(reader: ByteReader, label: str) -> tuple[bytes, ...]:
    count = reader.read_u16_le(f"{label} signature count")
    return tuple(reader.read(SIGNATURE_SIZE, f"{label} signature {i}") for i in range(count))


def parse_authorization_bytes(data: bytes) -> AuthorizationData:
    """Decode a raw authorization response frame.

    Raises:
        TruncatedError: any field runs past the end of the buffer.
        FormatError: bytes remain after the last known block.
    """
    reader = ByteReader(data)
    effect_hash = reader.read(EFFECT_HASH_SIZE, "effect hash")
    spend_auths = _read_signatures(reader, "spend")
    vote_auths = _read_signatures(reader, "vote")

    if reader.remaining:
        lqt_count = reader.read_u16_le("lqt signature count")
        reader.skip(lqt_count * SIGNATURE_SIZE, "lqt signatures")
        logger.warning(
            "Authorization carries %d liquidity-tournament signatures that are not used",
            lqt_count,
            extra={"event": "auth.lqt_block_skipped", "lqt_count": lqt_count},
        )

    if reader.remaining:
        raise FormatError(
            f"authorization QR has {reader.remaining} unexpected trailing bytes",
            details={"trailing_bytes": reader.remaining},
        )

    return AuthorizationData(
        effect_hash=effect_hash,
        spend_auths=spend_auths,
        delegator_vote_auths=vote_auths,
    )


def parse_authorization_qr(hex_string: str) -> AuthorizationData:
    """Decode the hex string scanned from the signer's response QR."""
    return parse_authorization_bytes(hex_to_bytes(hex_string))


def validate_authorization(
    plan: TransactionPlan,
    auth: AuthorizationData,
    expected_effect_hash: bytes,
) -> None:
    """
    Check that ``auth`` authorizes exactly ``plan``.

    ``expected_effect_hash`` must be computed independently from the plan by
    the caller; it is the only link between the signatures and the
    transaction the user approved.

    Raises:
        BadEffectHashLengthError: expected hash is not 64 bytes.
        EffectHashMismatchError: any byte of the effect hash differs.
        SpendCountMismatchError: spend signatures != spend actions.
        VoteCountMismatchError: vote signatures != delegator-vote actions.
    """
    expected = require_effect_hash(expected_effect_hash)
    if len(auth.effect_hash) != EFFECT_HASH_SIZE or not hmac.compare_digest(auth.effect_hash, expected):
        raise EffectHashMismatchError("effect hash mismatch: signatures do not match transaction plan")

    counts = count_signature_slots(plan)
    if len(auth.spend_auths) != counts[SignatureSlot.SPEND]:
        raise SpendCountMismatchError(counts[SignatureSlot.SPEND], len(auth.spend_auths))
    if len(auth.delegator_vote_auths) != counts[SignatureSlot.DELEGATOR_VOTE]:
        raise VoteCountMismatchError(counts[SignatureSlot.DELEGATOR_VOTE], len(auth.delegator_vote_auths))

    logger.debug(
        "Authorization validated",
        extra={
            "event": "auth.validated",
            "spend_count": len(auth.spend_auths),
            "vote_count": len(auth.delegator_vote_auths),
        },
    )


class ColdSignerTransport(Protocol):
    """The display/scan side of the QR exchange, provided by the UI layer."""

    def show_transaction_qr(self, qr_hex: str, plan_summary: str) -> None:
        ...

    def scan_signature_qr(self) -> str:
        ...


def authorize_with_cold_wallet(
    plan: TransactionPlan,
    effect_hash: bytes,
    transport: ColdSignerTransport,
    *,
    asset_names: Sequence[str] | None = None,
) -> AuthorizationData:
    """
    Run one signing round trip through the air gap.

    Flow:
        1. Encode the plan into the transaction QR
        2. Show it together with a summary for the user to scan
        3. Scan the signer's response QR
        4. Decode and validate it against the plan and ``effect_hash``

    Errors propagate unchanged; whether to ask for another scan is the
    caller's decision.
    """
    qr_hex = encode_plan_to_qr(plan, effect_hash, asset_names=asset_names)
    transport.show_transaction_qr(qr_hex, summarize_plan(plan))
    auth = parse_authorization_qr(transport.scan_signature_qr())
    validate_authorization(plan, auth, effect_hash)
    return auth
