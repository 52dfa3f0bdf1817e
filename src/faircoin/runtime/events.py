# src/faircoin/runtime/events.py
from __future__ import annotations

"""Event records emitted by contract operations.

Every operation appends its records to a pending list; the contract forwards
that list to the EventLog only when the operation commits. A rejected
operation therefore never leaves records behind.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Iterator, List, Type

from faircoin.runtime.runtime_logging import log_event

Json = Dict[str, Any]

_log = logging.getLogger("faircoin.events")


@dataclass(frozen=True, slots=True)
class Event:
    @property
    def name(self) -> str:
        return type(self).__name__

    def to_json(self) -> Json:
        out: Json = {"event": self.name}
        out.update(asdict(self))
        return out


@dataclass(frozen=True, slots=True)
class Transfer(Event):
    frm: str
    to: str
    amount: int


@dataclass(frozen=True, slots=True)
class Approval(Event):
    owner: str
    spender: str
    amount: int


@dataclass(frozen=True, slots=True)
class Claimed(Event):
    account: str
    user_amount: int
    pool_amount: int


@dataclass(frozen=True, slots=True)
class Donation(Event):
    donor: str
    asset_amount: int
    value: int


@dataclass(frozen=True, slots=True)
class Buy(Event):
    buyer: str
    value_in: int
    asset_out: int


@dataclass(frozen=True, slots=True)
class Sell(Event):
    seller: str
    asset_in: int
    fee: int
    value_out: int


@dataclass(frozen=True, slots=True)
class Paused(Event):
    account: str


@dataclass(frozen=True, slots=True)
class Unpaused(Event):
    account: str


@dataclass(frozen=True, slots=True)
class EthReceived(Event):
    sender: str
    amount: int


@dataclass(frozen=True, slots=True)
class Sync(Event):
    reserve_asset: int
    reserve_value: int


Observer = Callable[[Event], None]


class EventLog:
    """Ordered, append-only record of committed events plus observers."""

    def __init__(self) -> None:
        self._records: List[Event] = []
        self._observers: List[Observer] = []

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def extend(self, records: List[Event]) -> None:
        """Append a committed batch, then notify observers.

        The whole batch lands before any observer runs. An observer that raises
        is logged and skipped; the operation it watches has already committed.
        """
        batch = list(records)
        self._records.extend(batch)
        observers = list(self._observers)
        for rec in batch:
            for obs in observers:
                try:
                    obs(rec)
                except Exception as e:
                    log_event(
                        _log,
                        "event_observer_failed",
                        level=logging.WARNING,
                        record=rec.name,
                        observer=getattr(obs, "__qualname__", repr(obs)),
                        error=str(e),
                    )

    def of_type(self, kind: Type[Event]) -> List[Event]:
        return [r for r in self._records if isinstance(r, kind)]

    def names(self) -> List[str]:
        return [r.name for r in self._records]

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._records))

    def __getitem__(self, idx: int) -> Event:
        return self._records[idx]


__all__ = [
    "Approval",
    "Buy",
    "Claimed",
    "Donation",
    "EthReceived",
    "Event",
    "EventLog",
    "Observer",
    "Paused",
    "Sell",
    "Sync",
    "Transfer",
    "Unpaused",
]
