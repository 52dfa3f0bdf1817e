# src/faircoin/runtime/state_invariants.py
from __future__ import annotations

"""State normalization and invariant checks.

FairCoin state is a nested JSON-like dict mutated only by the contract's
entry points. This module is the single place that:

  - validates the state is dict-like and creates the core containers
  - checks the cross-cutting invariants after an operation:
      total_supply == sum(balances) <= MAX_SUPPLY
      reserves.asset == token balance of the contract address
      reserves.value == native balance of the contract address
"""

from collections.abc import MutableMapping
from typing import Any, Dict

from faircoin.ledger.constants import MAX_SUPPLY
from faircoin.ledger.token import balance_of, total_supply
from faircoin.runtime.access import Lifecycle
from faircoin.runtime.errors import ContractError
from faircoin.runtime.native import native_balance

Json = Dict[str, Any]


def ensure_state(st: Any) -> Json:
    """Ensure `st` is a dict and contains the core containers.

    Raises:
        TypeError: if st (or one of its containers) has the wrong type
    """
    if not isinstance(st, MutableMapping):
        raise TypeError(f"state must be MutableMapping, got {type(st)}")

    tok = st.get("token")
    if tok is None:
        st["token"] = {"balances": {}, "allowances": {}, "total_supply": 0}
    elif not isinstance(tok, dict):
        raise TypeError(f"state['token'] must be dict, got {type(tok)}")

    nat = st.get("native")
    if nat is None:
        st["native"] = {"balances": {}}
    elif not isinstance(nat, dict):
        raise TypeError(f"state['native'] must be dict, got {type(nat)}")

    claimed = st.get("claimed")
    if claimed is None:
        st["claimed"] = {}
    elif not isinstance(claimed, dict):
        raise TypeError(f"state['claimed'] must be dict, got {type(claimed)}")

    res = st.get("reserves")
    if res is None:
        st["reserves"] = {"asset": 0, "value": 0}
    elif not isinstance(res, dict):
        raise TypeError(f"state['reserves'] must be dict, got {type(res)}")

    st.setdefault("lifecycle", Lifecycle.ACTIVE.value)
    return st  # type: ignore[return-value]


def check_invariants(st: Json, pool_address: str) -> None:
    """Raise ContractError(invalid_state, ...) if any invariant has drifted."""
    supply = total_supply(st)
    summed = sum(int(v) for v in st["token"]["balances"].values())
    if supply != summed:
        raise ContractError("invalid_state", "supply_mismatch", {"total_supply": supply, "sum_balances": summed})
    if supply > MAX_SUPPLY:
        raise ContractError("invalid_state", "supply_ceiling_exceeded", {"total_supply": supply})

    res = st["reserves"]
    asset = balance_of(st, pool_address)
    value = native_balance(st, pool_address)
    if int(res.get("asset", 0)) != asset or int(res.get("value", 0)) != value:
        raise ContractError(
            "invalid_state",
            "reserve_drift",
            {"reserves": dict(res), "asset": asset, "value": value},
        )


__all__ = ["check_invariants", "ensure_state"]
