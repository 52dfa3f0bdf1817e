# src/faircoin/ledger/token.py
from __future__ import annotations

"""FAIR token ledger: balances, allowances and total supply.

All functions operate on the contract state dict in place and append their
event records to `events`. Callers are responsible for running them inside a
transaction frame; a raised ContractError leaves the frame to be discarded.

Arithmetic is uint256 and fails closed: amounts outside [0, UINT256_MAX] are
rejected, additions that would overflow are rejected, and subtractions only
happen after an explicit sufficiency check.
"""

from typing import Any, Dict, List

from faircoin.ledger.address import NULL_ADDRESS, normalize_address
from faircoin.ledger.constants import MAX_SUPPLY, UINT256_MAX
from faircoin.runtime.errors import ContractError
from faircoin.runtime.events import Approval, Event, Transfer

Json = Dict[str, Any]


def require_amount(v: Any) -> int:
    # bool is an int subclass; never accept it as an amount.
    if isinstance(v, bool) or not isinstance(v, int):
        raise ContractError("invalid_payload", "bad_amount", {"amount": repr(v)})
    if v < 0 or v > UINT256_MAX:
        raise ContractError("invalid_payload", "bad_amount", {"amount": v})
    return v


def checked_add(a: int, b: int) -> int:
    out = int(a) + int(b)
    if out > UINT256_MAX:
        raise ContractError("invalid_state", "overflow", {"a": a, "b": b})
    return out


def _ensure_token(state: Json) -> Json:
    tok = state.get("token")
    if not isinstance(tok, dict):
        tok = {}
        state["token"] = tok
    if not isinstance(tok.get("balances"), dict):
        tok["balances"] = {}
    if not isinstance(tok.get("allowances"), dict):
        tok["allowances"] = {}
    tok.setdefault("total_supply", 0)
    return tok


def balance_of(state: Json, account: str) -> int:
    tok = _ensure_token(state)
    return int(tok["balances"].get(normalize_address(account), 0))


def allowance_of(state: Json, owner: str, spender: str) -> int:
    tok = _ensure_token(state)
    per_owner = tok["allowances"].get(normalize_address(owner))
    if not isinstance(per_owner, dict):
        return 0
    return int(per_owner.get(normalize_address(spender), 0))


def total_supply(state: Json) -> int:
    return int(_ensure_token(state)["total_supply"])


def mint(state: Json, to: str, amount: Any, events: List[Event]) -> None:
    to_n = normalize_address(to)
    amt = require_amount(amount)
    if to_n == NULL_ADDRESS:
        raise ContractError("invalid_payload", "zero_address", {"to": to_n})

    tok = _ensure_token(state)
    supply = int(tok["total_supply"])
    new_supply = checked_add(supply, amt)
    if new_supply > MAX_SUPPLY:
        raise ContractError(
            "invalid_state",
            "supply_ceiling_exceeded",
            {"total_supply": supply, "amount": amt, "max_supply": MAX_SUPPLY},
        )

    bal = int(tok["balances"].get(to_n, 0))
    # total_supply bounds every balance, so this cannot overflow once the supply check passed.
    tok["balances"][to_n] = bal + amt
    tok["total_supply"] = new_supply
    events.append(Transfer(frm=NULL_ADDRESS, to=to_n, amount=amt))


def transfer(state: Json, frm: str, to: str, amount: Any, events: List[Event]) -> None:
    frm_n = normalize_address(frm)
    to_n = normalize_address(to)
    amt = require_amount(amount)
    if to_n == NULL_ADDRESS:
        raise ContractError("invalid_payload", "zero_address", {"to": to_n})

    tok = _ensure_token(state)
    balances = tok["balances"]
    fb = int(balances.get(frm_n, 0))
    if fb < amt:
        raise ContractError("forbidden", "insufficient_balance", {"account": frm_n, "balance": fb, "amount": amt})

    balances[frm_n] = fb - amt
    balances[to_n] = int(balances.get(to_n, 0)) + amt
    events.append(Transfer(frm=frm_n, to=to_n, amount=amt))


def approve(state: Json, owner: str, spender: str, amount: Any, events: List[Event]) -> None:
    owner_n = normalize_address(owner)
    spender_n = normalize_address(spender)
    amt = require_amount(amount)
    if spender_n == NULL_ADDRESS:
        raise ContractError("invalid_payload", "zero_spender", {"spender": spender_n})

    tok = _ensure_token(state)
    per_owner = tok["allowances"].get(owner_n)
    if not isinstance(per_owner, dict):
        per_owner = {}
        tok["allowances"][owner_n] = per_owner

    # Set, never add.
    per_owner[spender_n] = amt
    events.append(Approval(owner=owner_n, spender=spender_n, amount=amt))


def transfer_from(state: Json, spender: str, frm: str, to: str, amount: Any, events: List[Event]) -> None:
    spender_n = normalize_address(spender)
    frm_n = normalize_address(frm)
    amt = require_amount(amount)

    current = allowance_of(state, frm_n, spender_n)
    if current < amt:
        raise ContractError(
            "forbidden",
            "insufficient_allowance",
            {"owner": frm_n, "spender": spender_n, "allowance": current, "amount": amt},
        )

    _ensure_token(state)["allowances"].setdefault(frm_n, {})[spender_n] = current - amt
    transfer(state, frm_n, to, amt, events)


__all__ = [
    "allowance_of",
    "approve",
    "balance_of",
    "checked_add",
    "mint",
    "require_amount",
    "total_supply",
    "transfer",
    "transfer_from",
]
