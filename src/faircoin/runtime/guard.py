from __future__ import annotations

from types import TracebackType
from typing import Optional, Type

from faircoin.runtime.errors import ContractError


class ReentrancyGuard:
    """
    Single-acquisition lock for value-moving entry points.
    Use as a context manager so the lock is released on every exit path.
    """

    def __init__(self) -> None:
        self._held = False
        self._holder = ""

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self, operation: str = "") -> None:
        if self._held:
            raise ContractError(
                "forbidden",
                "reentrancy",
                {"operation": operation, "held_by": self._holder},
            )
        self._held = True
        self._holder = operation

    def release(self) -> None:
        self._held = False
        self._holder = ""

    def __call__(self, operation: str) -> "_Scope":
        return _Scope(self, operation)

    def __enter__(self) -> "ReentrancyGuard":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.release()


class _Scope:
    def __init__(self, guard: ReentrancyGuard, operation: str) -> None:
        self._guard = guard
        self._operation = operation

    def __enter__(self) -> ReentrancyGuard:
        self._guard.acquire(self._operation)
        return self._guard

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self._guard.release()
