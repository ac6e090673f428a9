from __future__ import annotations
from abc import ABC, abstractmethod

from powerkey_core.errors import PowerKeyError, RemoteUnavailable
from powerkey_core.models import LedgerOperation, Receipt, TransactionHandle

# Substrings wallet RPCs use when the node cannot be reached
UNREACHABLE_MARKERS = ("Failed to fetch", '"code": -32603', "code=-32603")


class LedgerClient(ABC):
    """
    Async contract interface to the energy vault.

    Every method suspends at the network boundary; callers must re-check
    their session after each await.
    """
    name: str = "base"

    @abstractmethod
    async def submit_write(self, address: str, sender: str, operation: LedgerOperation,
                           source: str, handle: str, proof: bytes) -> TransactionHandle:
        ...

    @abstractmethod
    async def await_confirmation(self, tx: TransactionHandle) -> Receipt:
        """Resolve once mined; raise RemoteRejection if the write failed."""

    @abstractmethod
    async def read_encrypted_value(self, address: str, record_id: str) -> str:
        ...

    def close(self) -> None:
        return


def classify_remote_error(exc: BaseException) -> PowerKeyError:
    """Map an arbitrary adapter failure onto the coordinator taxonomy."""
    if isinstance(exc, PowerKeyError):
        return exc
    text = str(exc)
    if isinstance(exc, (ConnectionError, TimeoutError)) or any(m in text for m in UNREACHABLE_MARKERS):
        return RemoteUnavailable()
    return PowerKeyError(text or exc.__class__.__name__)
