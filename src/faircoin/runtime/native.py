# src/faircoin/runtime/native.py
from __future__ import annotations

"""Native value ("ETH") balances held alongside the token ledger.

The contract's own address holds the pool's native reserve. Keeping these
balances inside the contract state dict means a rolled-back operation also
rolls back every value movement it made.
"""

from typing import Any, Dict

from faircoin.ledger.address import normalize_address
from faircoin.ledger.token import checked_add, require_amount
from faircoin.runtime.errors import ContractError

Json = Dict[str, Any]


def _ensure_native(state: Json) -> Dict[str, int]:
    nat = state.get("native")
    if not isinstance(nat, dict):
        nat = {}
        state["native"] = nat
    bals = nat.get("balances")
    if not isinstance(bals, dict):
        bals = {}
        nat["balances"] = bals
    return bals


def native_balance(state: Json, account: str) -> int:
    return int(_ensure_native(state).get(normalize_address(account), 0))


def credit(state: Json, account: str, amount: Any) -> None:
    """Create native value out of thin air (genesis allocation / faucet)."""
    a = normalize_address(account)
    amt = require_amount(amount)
    bals = _ensure_native(state)
    bals[a] = checked_add(int(bals.get(a, 0)), amt)


def move_value(state: Json, frm: str, to: str, amount: Any) -> None:
    frm_n = normalize_address(frm)
    to_n = normalize_address(to)
    amt = require_amount(amount)
    if amt == 0:
        return

    bals = _ensure_native(state)
    fb = int(bals.get(frm_n, 0))
    if fb < amt:
        raise ContractError("forbidden", "insufficient_value", {"account": frm_n, "balance": fb, "amount": amt})

    bals[frm_n] = fb - amt
    bals[to_n] = checked_add(int(bals.get(to_n, 0)), amt)


__all__ = ["credit", "move_value", "native_balance"]
