# src/faircoin/runtime/contract.py
from __future__ import annotations

"""The FairCoin contract: token ledger + allowlist claim + constant-product pool.

Every entry point is fail-atomic. Work happens on a deep copy of the current
state (a transaction frame); the copy replaces the parent state only when the
operation returns normally. On ContractError the copy and its pending events
are dropped, so a rejected call leaves every observable quantity untouched.

Frames nest. A payout receiver invoked during sell() runs while the sell frame
is open, so anything it does (a plain transfer, a rejected re-entrant buy)
lands in, or is discarded with, the outer operation.

Value-moving entry points (claim, donate, buy, sell, receive) hold the
ReentrancyGuard for their whole duration. Claim and the two swaps additionally
require the Active lifecycle.
"""

import copy
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from faircoin.crypto.merkle import verify
from faircoin.ledger import token
from faircoin.ledger.address import normalize_address
from faircoin.ledger.constants import CLAIM_AMOUNT, CLAIM_POOL_SHARE, CLAIM_USER_SHARE, MAX_SUPPLY
from faircoin.ledger.state import LedgerView
from faircoin.runtime.access import Lifecycle, lifecycle, require_available, require_founder, transition
from faircoin.runtime.contract_config import ContractConfig
from faircoin.runtime.errors import ContractError
from faircoin.runtime.events import (
    Buy,
    Claimed,
    Donation,
    EthReceived,
    Event,
    EventLog,
    Paused,
    Sell,
    Unpaused,
)
from faircoin.runtime.guard import ReentrancyGuard
from faircoin.runtime.native import credit, move_value, native_balance
from faircoin.runtime.pool import fee_for, quote_out, reserves, sync
from faircoin.runtime.runtime_logging import log_event
from faircoin.runtime.state_invariants import check_invariants, ensure_state

Json = Dict[str, Any]

# receiver(contract, sender, amount) -> None/True accepts, False rejects; raising rejects.
Receiver = Callable[["FairCoin", str, int], Optional[bool]]


def _now_s() -> int:
    return int(time.time())


class FairCoin:
    def __init__(
        self,
        config: ContractConfig,
        *,
        clock: Optional[Callable[[], int]] = None,
        event_log: Optional[EventLog] = None,
        state: Optional[Json] = None,
    ) -> None:
        self.config = config
        self.events = event_log if event_log is not None else EventLog()
        self._clock = clock or _now_s
        self._guard = ReentrancyGuard()
        self._frames: List[Tuple[Json, List[Event]]] = []
        self._receivers: Dict[str, Receiver] = {}
        self._logger = logging.getLogger("faircoin.contract")

        self.state: Json = ensure_state(copy.deepcopy(state) if state is not None else {})
        # Fail closed on a restored state that does not hold together.
        check_invariants(self.state, self.address)

    # ----------------------------
    # Identity
    # ----------------------------

    @property
    def address(self) -> str:
        return self.config.address

    @property
    def founder(self) -> str:
        return self.config.founder

    @property
    def merkle_root(self) -> bytes:
        return self.config.merkle_root

    # ----------------------------
    # Transaction frames
    # ----------------------------

    def _current(self) -> Json:
        return self._frames[-1][0] if self._frames else self.state

    @contextmanager
    def _transaction(self, op: str, caller: str) -> Iterator[Tuple[Json, List[Event]]]:
        parent = self._current()
        working = copy.deepcopy(parent)
        pending: List[Event] = []
        self._frames.append((working, pending))
        try:
            yield working, pending
        except ContractError as e:
            log_event(
                self._logger,
                "contract_op_rejected",
                level=logging.WARNING,
                op=op,
                caller=caller,
                code=e.code,
                reason=e.reason,
                depth=len(self._frames),
            )
            raise
        finally:
            self._frames.pop()

        if not self._frames:
            # Reserves may legitimately lag inside an open outer frame; only
            # a top-level commit has to hold every invariant.
            check_invariants(working, self.address)

        parent.clear()
        parent.update(working)
        if self._frames:
            self._frames[-1][1].extend(pending)
        else:
            self.events.extend(pending)

        log_event(
            self._logger,
            "contract_op",
            op=op,
            caller=caller,
            events=[e.name for e in pending],
            depth=len(self._frames),
        )

    def _check_deadline(self, deadline: Any) -> None:
        if isinstance(deadline, bool) or not isinstance(deadline, int):
            raise ContractError("invalid_payload", "bad_deadline", {"deadline": repr(deadline)})
        now = int(self._clock())
        if now > deadline:
            raise ContractError("forbidden", "expired", {"now": now, "deadline": deadline})

    def _pay(self, st: Json, to: str, amount: int) -> None:
        """Deliver native value from the contract, then let the recipient react."""
        move_value(st, self.address, to, amount)

        fn = self._receivers.get(to)
        if fn is None:
            return
        try:
            accepted = fn(self, self.address, amount)
        except Exception as e:
            raise ContractError("invalid_state", "payout_failed", {"to": to, "amount": amount, "error": str(e)}) from e
        if accepted is False:
            raise ContractError("invalid_state", "payout_failed", {"to": to, "amount": amount, "error": "rejected"})

    # ----------------------------
    # Receivers
    # ----------------------------

    def set_receiver(self, account: str, fn: Receiver) -> None:
        self._receivers[normalize_address(account)] = fn

    def clear_receiver(self, account: str) -> None:
        self._receivers.pop(normalize_address(account), None)

    # ----------------------------
    # Readers
    # ----------------------------

    def balance_of(self, account: str) -> int:
        return token.balance_of(self._current(), account)

    def allowance(self, owner: str, spender: str) -> int:
        return token.allowance_of(self._current(), owner, spender)

    def total_supply(self) -> int:
        return token.total_supply(self._current())

    def native_balance(self, account: str) -> int:
        return native_balance(self._current(), account)

    def reserves(self) -> Tuple[int, int]:
        """(reserve_asset, reserve_value)"""
        return reserves(self._current())

    def has_claimed(self, account: str) -> bool:
        return bool(self._current()["claimed"].get(normalize_address(account), False))

    def lifecycle(self) -> Lifecycle:
        return lifecycle(self._current())

    def snapshot(self) -> LedgerView:
        return LedgerView.from_state(self._current())

    # ----------------------------
    # Token entry points (not pause-gated)
    # ----------------------------

    def transfer(self, caller: str, to: str, amount: int) -> None:
        c = normalize_address(caller)
        with self._transaction("transfer", c) as (st, ev):
            token.transfer(st, c, to, amount, ev)
            if self.address in (c, normalize_address(to)):
                sync(st, self.address, ev)

    def approve(self, caller: str, spender: str, amount: int) -> None:
        c = normalize_address(caller)
        with self._transaction("approve", c) as (st, ev):
            token.approve(st, c, spender, amount, ev)

    def transfer_from(self, caller: str, frm: str, to: str, amount: int) -> None:
        c = normalize_address(caller)
        with self._transaction("transfer_from", c) as (st, ev):
            token.transfer_from(st, c, frm, to, amount, ev)
            if self.address in (normalize_address(frm), normalize_address(to)):
                sync(st, self.address, ev)

    # ----------------------------
    # Allowlist claim
    # ----------------------------

    def claim(self, caller: str, proof: Sequence[Any]) -> None:
        c = normalize_address(caller)
        with self._guard("claim"), self._transaction("claim", c) as (st, ev):
            require_available(st, "claim")

            if st["claimed"].get(c):
                raise ContractError("invalid_state", "already_claimed", {"account": c})
            if not verify(self.merkle_root, proof, c):
                raise ContractError("forbidden", "invalid_proof", {"account": c})

            supply = token.total_supply(st)
            if supply + CLAIM_AMOUNT > MAX_SUPPLY:
                raise ContractError(
                    "invalid_state",
                    "supply_ceiling_exceeded",
                    {"total_supply": supply, "amount": CLAIM_AMOUNT, "max_supply": MAX_SUPPLY},
                )

            st["claimed"][c] = True
            token.mint(st, c, CLAIM_USER_SHARE, ev)
            token.mint(st, self.address, CLAIM_POOL_SHARE, ev)
            ev.append(Claimed(account=c, user_amount=CLAIM_USER_SHARE, pool_amount=CLAIM_POOL_SHARE))
            sync(st, self.address, ev)

    # ----------------------------
    # Pool entry points
    # ----------------------------

    def donate(self, caller: str, asset_amount: int, value: int = 0) -> None:
        c = normalize_address(caller)
        with self._guard("donate"), self._transaction("donate", c) as (st, ev):
            amt = token.require_amount(asset_amount)
            val = token.require_amount(value)
            if amt == 0 and val == 0:
                raise ContractError("invalid_payload", "nothing_donated", {"donor": c})

            move_value(st, c, self.address, val)
            if amt > 0:
                token.transfer(st, c, self.address, amt, ev)
            ev.append(Donation(donor=c, asset_amount=amt, value=val))
            sync(st, self.address, ev)

    def buy(self, caller: str, value: int, min_asset_out: int, deadline: int) -> int:
        c = normalize_address(caller)
        with self._guard("buy"), self._transaction("buy", c) as (st, ev):
            require_available(st, "buy")
            val = token.require_amount(value)
            min_out = token.require_amount(min_asset_out)
            self._check_deadline(deadline)
            if val == 0:
                raise ContractError("invalid_payload", "zero_input", {"value": val})

            reserve_asset, reserve_value = reserves(st)
            move_value(st, c, self.address, val)

            asset_out = quote_out(val, reserve_value, reserve_asset)
            if asset_out == 0:
                raise ContractError("invalid_state", "no_liquidity", {"reserve_asset": reserve_asset, "reserve_value": reserve_value})
            if asset_out < min_out:
                raise ContractError("forbidden", "slippage_exceeded", {"out": asset_out, "min_out": min_out})

            token.transfer(st, self.address, c, asset_out, ev)
            ev.append(Buy(buyer=c, value_in=val, asset_out=asset_out))
            sync(st, self.address, ev)
            return asset_out

    def sell(self, caller: str, amount: int, min_value_out: int, deadline: int) -> int:
        c = normalize_address(caller)
        with self._guard("sell"), self._transaction("sell", c) as (st, ev):
            require_available(st, "sell")
            amt = token.require_amount(amount)
            min_out = token.require_amount(min_value_out)
            self._check_deadline(deadline)
            if amt == 0:
                raise ContractError("invalid_payload", "zero_input", {"amount": amt})

            reserve_asset, reserve_value = reserves(st)
            token.transfer(st, c, self.address, amt, ev)

            fee = fee_for(amt)
            token.transfer(st, self.address, self.founder, fee, ev)

            value_out = quote_out(amt - fee, reserve_asset, reserve_value)
            if value_out == 0:
                raise ContractError("invalid_state", "no_liquidity", {"reserve_asset": reserve_asset, "reserve_value": reserve_value})
            if value_out < min_out:
                raise ContractError("forbidden", "slippage_exceeded", {"out": value_out, "min_out": min_out})

            held = native_balance(st, self.address)
            if value_out > held:
                raise ContractError("invalid_state", "insufficient_reserve", {"value_out": value_out, "held": held})

            self._pay(st, c, value_out)
            ev.append(Sell(seller=c, asset_in=amt, fee=fee, value_out=value_out))
            sync(st, self.address, ev)
            return value_out

    def receive(self, caller: str, value: int) -> None:
        """Bare native-value deposit: no pricing, always resyncs."""
        c = normalize_address(caller)
        with self._guard("receive"), self._transaction("receive", c) as (st, ev):
            val = token.require_amount(value)
            move_value(st, c, self.address, val)
            if val > 0:
                ev.append(EthReceived(sender=c, amount=val))
            sync(st, self.address, ev)

    # ----------------------------
    # Founder controls
    # ----------------------------

    def pause(self, caller: str) -> None:
        c = normalize_address(caller)
        with self._transaction("pause", c) as (st, ev):
            require_founder(self.founder, c)
            transition(st, Lifecycle.PAUSED)
            ev.append(Paused(account=c))

    def unpause(self, caller: str) -> None:
        c = normalize_address(caller)
        with self._transaction("unpause", c) as (st, ev):
            require_founder(self.founder, c)
            transition(st, Lifecycle.ACTIVE)
            ev.append(Unpaused(account=c))

    # ----------------------------
    # Genesis / faucet
    # ----------------------------

    def credit_native(self, account: str, amount: int) -> None:
        """Allocate native value to an account (genesis funding, tests)."""
        a = normalize_address(account)
        with self._transaction("credit_native", a) as (st, ev):
            credit(st, a, amount)
            if a == self.address:
                sync(st, self.address, ev)


__all__ = ["FairCoin", "Receiver"]
