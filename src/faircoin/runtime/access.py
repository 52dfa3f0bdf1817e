# src/faircoin/runtime/access.py
from __future__ import annotations

"""Founder identity checks and the Active/Paused lifecycle gate.

Pausing halts claims and swaps only. Transfers, approvals and donations keep
working while paused.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet

from faircoin.ledger.address import normalize_address
from faircoin.runtime.errors import ContractError

Json = Dict[str, Any]


class Lifecycle(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"


GATED_OPERATIONS: FrozenSet[str] = frozenset({"claim", "buy", "sell"})


def lifecycle(state: Json) -> Lifecycle:
    raw = state.get("lifecycle", Lifecycle.ACTIVE.value)
    try:
        return Lifecycle(str(raw))
    except ValueError:
        # Fail closed on a corrupted flag.
        raise ContractError("invalid_state", "bad_lifecycle", {"lifecycle": raw})


def require_available(state: Json, operation: str) -> None:
    if operation not in GATED_OPERATIONS:
        return

    current = lifecycle(state)
    if current is Lifecycle.ACTIVE:
        return
    if current is Lifecycle.PAUSED:
        raise ContractError("unavailable", "operation_unavailable", {"operation": operation})
    raise ContractError("invalid_state", "bad_lifecycle", {"lifecycle": current.value})


def require_founder(founder: str, caller: str) -> None:
    if normalize_address(caller) != normalize_address(founder):
        raise ContractError("forbidden", "not_founder", {"caller": normalize_address(caller)})


def transition(state: Json, target: Lifecycle) -> None:
    """Active -> Paused and Paused -> Active are the only transitions."""
    current = lifecycle(state)
    if current is target:
        reason = "already_paused" if target is Lifecycle.PAUSED else "not_paused"
        raise ContractError("invalid_state", reason, {"lifecycle": current.value})
    state["lifecycle"] = target.value


__all__ = ["GATED_OPERATIONS", "Lifecycle", "lifecycle", "require_available", "require_founder", "transition"]
