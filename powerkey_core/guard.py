# powerkey_core/guard.py
from __future__ import annotations
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import StaleAbort
from .session import SessionContext, SessionSnapshot

T = TypeVar("T")


class StalenessGuard:
    """
    Checkpoints for one in-flight operation.

    The guard holds the snapshot and vault address captured at admission and
    compares them against the live session on every call. Nothing is cached
    between checkpoints.
    """

    def __init__(self, session: SessionContext, label: str):
        self.session = session
        self.label = label
        self.snapshot: SessionSnapshot = session.snapshot()
        self.address: Optional[str] = session.descriptor.address

    def is_stale(self) -> bool:
        return (
            self.address != self.session.descriptor.address
            or not self.session.is_current(self.snapshot)
        )

    def checkpoint(self) -> None:
        if self.is_stale():
            raise StaleAbort(f"Ignore {self.label} - stale")

    async def step(self, continuation: Callable[[], Awaitable[T]]) -> T:
        """Await one suspension point, then re-check the session."""
        result = await continuation()
        self.checkpoint()
        return result
