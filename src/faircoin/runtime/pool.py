# src/faircoin/runtime/pool.py
from __future__ import annotations

"""Constant-product pricing and reserve bookkeeping.

Reserves are a cache of two ground-truth quantities:
  - asset: the contract address's FAIR balance
  - value: the contract address's native balance

They are never adjusted incrementally. sync() recomputes both from source and
runs as the last step of every operation that can move either quantity.
Pricing reads the cached reserves, i.e. the snapshot taken at the end of the
previous operation.
"""

from typing import Any, Dict, List, Tuple

from faircoin.ledger.constants import FEE_DENOMINATOR, MIN_FEE
from faircoin.ledger.token import balance_of
from faircoin.runtime.events import Event, Sync
from faircoin.runtime.native import native_balance

Json = Dict[str, Any]


def quote_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Output of a trade against (reserve_in, reserve_out); rounds toward the pool."""
    if amount_in == 0 or reserve_in == 0 or reserve_out == 0:
        return 0
    # Floor the output itself so the pool keeps the remainder: k never shrinks.
    return (reserve_out * amount_in) // (reserve_in + amount_in)


def fee_for(amount_in: int) -> int:
    fee = amount_in // FEE_DENOMINATOR
    if fee == 0 and amount_in > 0:
        fee = MIN_FEE
    return fee


def _ensure_reserves(state: Json) -> Json:
    res = state.get("reserves")
    if not isinstance(res, dict):
        res = {}
        state["reserves"] = res
    res.setdefault("asset", 0)
    res.setdefault("value", 0)
    return res


def reserves(state: Json) -> Tuple[int, int]:
    res = _ensure_reserves(state)
    return int(res["asset"]), int(res["value"])


def sync(state: Json, pool_address: str, events: List[Event]) -> Tuple[int, int]:
    res = _ensure_reserves(state)
    res["asset"] = balance_of(state, pool_address)
    res["value"] = native_balance(state, pool_address)
    events.append(Sync(reserve_asset=int(res["asset"]), reserve_value=int(res["value"])))
    return int(res["asset"]), int(res["value"])


__all__ = ["fee_for", "quote_out", "reserves", "sync"]
