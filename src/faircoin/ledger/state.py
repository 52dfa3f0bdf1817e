from __future__ import annotations

from dataclasses import dataclass, field
import copy
from typing import Any, Dict, List


Json = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class LedgerView:
    """
    Immutable read-only view of contract state used by callers and tests.

    Two views compare equal iff every observable quantity (balances,
    allowances, supply, native balances, claim registry, reserves, lifecycle)
    is identical.
    """

    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[str, Dict[str, int]] = field(default_factory=dict)
    total_supply: int = 0
    native: Dict[str, int] = field(default_factory=dict)
    claimed: Dict[str, bool] = field(default_factory=dict)
    reserve_asset: int = 0
    reserve_value: int = 0
    lifecycle: str = "active"

    @classmethod
    def from_state(cls, state: Dict[str, Any]) -> "LedgerView":
        tok = state.get("token") if isinstance(state.get("token"), dict) else {}
        nat = state.get("native") if isinstance(state.get("native"), dict) else {}
        res = state.get("reserves") if isinstance(state.get("reserves"), dict) else {}
        return cls(
            balances=copy.deepcopy(tok.get("balances", {})),
            allowances=copy.deepcopy(tok.get("allowances", {})),
            total_supply=int(tok.get("total_supply", 0) or 0),
            native=copy.deepcopy(nat.get("balances", {})),
            claimed=copy.deepcopy(state.get("claimed", {})) if isinstance(state.get("claimed"), dict) else {},
            reserve_asset=int(res.get("asset", 0) or 0),
            reserve_value=int(res.get("value", 0) or 0),
            lifecycle=str(state.get("lifecycle") or "active"),
        )

    def to_state(self) -> Dict[str, Any]:
        return {
            "token": {
                "balances": copy.deepcopy(self.balances),
                "allowances": copy.deepcopy(self.allowances),
                "total_supply": int(self.total_supply),
            },
            "native": {"balances": copy.deepcopy(self.native)},
            "claimed": copy.deepcopy(self.claimed),
            "reserves": {"asset": int(self.reserve_asset), "value": int(self.reserve_value)},
            "lifecycle": self.lifecycle,
        }

    def balance_of(self, account: str) -> int:
        return int(self.balances.get(account.lower(), 0))

    def native_of(self, account: str) -> int:
        return int(self.native.get(account.lower(), 0))

    def has_claimed(self, account: str) -> bool:
        return bool(self.claimed.get(account.lower(), False))

    def holders(self) -> List[str]:
        """Accounts with a nonzero FAIR balance, sorted."""
        return sorted(a for a, b in self.balances.items() if int(b) > 0)
