# powerkey_core/flight.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from .session import SessionSnapshot


class OperationKind(str, Enum):
    CREATE = "create"
    DECRYPT = "decrypt"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Running:
    kind: OperationKind
    snapshot: SessionSnapshot
    subject: Optional[str] = None   # e.g. the record id being decrypted


PendingOperation = Union[Idle, Running]

IDLE = Idle()


class SingleFlight:
    """
    One {Idle, Running} slot per operation kind.

    Kinds are independent. There is no queue: an acquisition against a
    Running slot fails immediately.
    """

    def __init__(self):
        self._slots: Dict[OperationKind, PendingOperation] = {k: IDLE for k in OperationKind}

    def state(self, kind: OperationKind) -> PendingOperation:
        return self._slots[kind]

    def is_running(self, kind: OperationKind) -> bool:
        return isinstance(self._slots[kind], Running)

    def try_acquire(self, kind: OperationKind, snapshot: SessionSnapshot,
                    subject: Optional[str] = None) -> bool:
        if self.is_running(kind):
            return False
        self._slots[kind] = Running(kind=kind, snapshot=snapshot, subject=subject)
        return True

    def release(self, kind: OperationKind) -> None:
        # Total: releasing an Idle slot is a no-op
        self._slots[kind] = IDLE
