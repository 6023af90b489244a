"""
Transaction plan model consumed by the QR codec.

Plan construction and serialization belong to the plan's owner; the QR codec
only needs the serialized bytes and the ordered list of typed actions. Each
action kind maps to at most one signature slot, and that mapping is the single
place where spend and delegator-vote actions are told apart.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Sequence, runtime_checkable

RANDOMIZER_SIZE = 32


class SignatureSlot(Enum):
    """Signature list an action's authorization lands in."""

    SPEND = "spend"
    DELEGATOR_VOTE = "delegator_vote"


class ActionKind(Enum):
    SPEND = "spend"
    OUTPUT = "output"
    SWAP = "swap"
    SWAP_CLAIM = "swap_claim"
    DELEGATE = "delegate"
    UNDELEGATE = "undelegate"
    UNDELEGATE_CLAIM = "undelegate_claim"
    DELEGATOR_VOTE = "delegator_vote"
    VALIDATOR_DEFINITION = "validator_definition"
    VALIDATOR_VOTE = "validator_vote"
    PROPOSAL_SUBMIT = "proposal_submit"
    PROPOSAL_WITHDRAW = "proposal_withdraw"
    PROPOSAL_DEPOSIT_CLAIM = "proposal_deposit_claim"
    POSITION_OPEN = "position_open"
    POSITION_CLOSE = "position_close"
    POSITION_WITHDRAW = "position_withdraw"
    ICS20_WITHDRAWAL = "ics20_withdrawal"
    IBC_RELAY = "ibc_relay"
    COMMUNITY_POOL_SPEND = "community_pool_spend"
    COMMUNITY_POOL_OUTPUT = "community_pool_output"
    COMMUNITY_POOL_DEPOSIT = "community_pool_deposit"
    LIQUIDITY_TOURNAMENT_VOTE = "liquidity_tournament_vote"

    @property
    def signature_slot(self) -> Optional[SignatureSlot]:
        """Which signature list authorizes this action, if any."""
        return _SIGNATURE_SLOTS.get(self)

    @property
    def requires_randomizer(self) -> bool:
        return self.signature_slot is not None


# Liquidity-tournament votes are signed by newer firmware into a trailing
# block the decoder skips; they do not occupy a slot here.
_SIGNATURE_SLOTS = {
    ActionKind.SPEND: SignatureSlot.SPEND,
    ActionKind.DELEGATOR_VOTE: SignatureSlot.DELEGATOR_VOTE,
}


@dataclass(frozen=True)
class PlanAction:
    """One action of a transaction plan."""

    kind: ActionKind
    randomizer: Optional[bytes] = field(default=None, repr=False)
    asset_name: Optional[str] = None


@runtime_checkable
class TransactionPlan(Protocol):
    """What the QR codec needs from a plan."""

    @property
    def actions(self) -> Sequence[PlanAction]:
        ...

    def to_bytes(self) -> bytes:
        ...


@dataclass(frozen=True)
class SerializedPlan:
    """A plan already serialized by its owner, plus its typed action list."""

    plan_bytes: bytes = field(repr=False)
    actions: tuple[PlanAction, ...] = ()

    def to_bytes(self) -> bytes:
        return self.plan_bytes

    @classmethod
    def from_dict(cls, data: dict) -> "SerializedPlan":
        """Build from ``{"plan": hex, "actions": [{"kind", "randomizer"?, "asset_name"?}]}``.

        Raises:
            ValueError: wrong shape, unknown action kind or malformed hex.
        """
        if not isinstance(data, dict):
            raise ValueError(f"plan must be a JSON object, got {type(data).__name__}")
        plan_hex = data.get("plan", "")
        entries = data.get("actions", [])
        if not isinstance(entries, list):
            raise ValueError(f"actions must be a list, got {type(entries).__name__}")
        actions = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ValueError(f"action {index} must be an object, got {type(entry).__name__}")
            randomizer_hex = entry.get("randomizer")
            actions.append(
                PlanAction(
                    kind=ActionKind(entry["kind"]),
                    randomizer=bytes.fromhex(randomizer_hex) if randomizer_hex else None,
                    asset_name=entry.get("asset_name"),
                )
            )
        return cls(plan_bytes=bytes.fromhex(plan_hex), actions=tuple(actions))


def count_signature_slots(plan: TransactionPlan) -> Counter:
    """Count actions per signature slot, in a Counter keyed by SignatureSlot."""
    counts: Counter = Counter()
    for action in plan.actions:
        slot = action.kind.signature_slot
        if slot is not None:
            counts[slot] += 1
    return counts


_SUMMARY_LABELS = (
    (ActionKind.SWAP, "swap(s)"),
    (ActionKind.DELEGATE, "delegation(s)"),
    (ActionKind.UNDELEGATE, "undelegation(s)"),
    (ActionKind.DELEGATOR_VOTE, "vote(s)"),
)


def summarize_plan(plan: TransactionPlan) -> str:
    """Human-readable summary shown next to the transaction QR."""
    kinds = Counter(action.kind for action in plan.actions)
    parts = []

    spends = kinds[ActionKind.SPEND]
    outputs = kinds[ActionKind.OUTPUT]
    if spends or outputs:
        parts.append(f"{spends} spend(s), {outputs} output(s)")
    for kind, label in _SUMMARY_LABELS:
        if kinds[kind]:
            parts.append(f"{kinds[kind]} {label}")

    return ", ".join(parts) if parts else "Transaction"
