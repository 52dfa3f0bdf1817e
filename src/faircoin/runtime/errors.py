from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ContractError(Exception):
    """Canonical error type for every rejected contract operation.

    `code` is the coarse category (forbidden, invalid_payload, invalid_state,
    unavailable, invalid_config); `reason` names the precise failure kind.
    """

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"
