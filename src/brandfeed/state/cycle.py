"""Refresh cycle cancellation."""

from __future__ import annotations

from brandfeed.exceptions import RefreshCancelledError


class CancellationToken:
    """Cooperative cancellation flag for one refresh cycle.

    The store hands a token to every fetch adapter of a cycle. Adapters check
    it around their I/O; the store checks it before applying results, so an
    abandoned cycle never writes state.
    """

    __slots__ = ("_cancelled", "cycle")

    def __init__(self, cycle: int = 0) -> None:
        self.cycle = cycle
        self._cancelled = False

    def __repr__(self) -> str:
        return f"CancellationToken(cycle={self.cycle}, cancelled={self._cancelled})"

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RefreshCancelledError(f"refresh cycle {self.cycle} was cancelled")
