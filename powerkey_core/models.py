# powerkey_core/models.py
from __future__ import annotations
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .constants import SECONDS_PER_DAY
from .utils import now_epoch


class RecordKind(str, Enum):
    GENERATION = "generation"
    CONSUMPTION = "consumption"


class LedgerOperation(str, Enum):
    """Write and read methods exposed by the vault contract."""
    CREATE_GENERATION = "createGenerationRecord"
    CREATE_CONSUMPTION = "createConsumptionRecord"
    READ_ENCRYPTED_VALUE = "getRecordEncryptedValue"

    @classmethod
    def create_for(cls, kind: RecordKind) -> "LedgerOperation":
        if kind is RecordKind.GENERATION:
            return cls.CREATE_GENERATION
        return cls.CREATE_CONSUMPTION


@dataclass(frozen=True)
class EncryptedInput:
    handle: str   # 32-byte hex handle
    proof: bytes


@dataclass(frozen=True)
class TransactionHandle:
    tx_hash: str


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    record_id: str


def authorization_key(resources: Sequence[str], identity_id: str) -> str:
    """Storage key for a cached authorization: sorted resources + identity."""
    parts = sorted(r.lower() for r in resources)
    return f"{identity_id.lower()}:{','.join(parts)}"


@dataclass
class DecryptionAuthorization:
    """
    A time-bounded, identity-signed credential that lets the holder of
    `private_key` recover plaintexts for the handles of `authorized_resources`.
    """
    private_key: str      # base64 X25519 re-encryption private key
    public_key: str       # base64 X25519 re-encryption public key
    signature: str        # base64 signer blob (see signer.py)
    authorized_resources: List[str]
    identity_id: str
    valid_from: int       # epoch seconds
    valid_duration_days: int

    @property
    def valid_until(self) -> int:
        return self.valid_from + self.valid_duration_days * SECONDS_PER_DAY

    def is_time_valid(self, now: Optional[int] = None) -> bool:
        now = now_epoch() if now is None else now
        return self.valid_from <= now <= self.valid_until

    def covers(self, resources: Sequence[str]) -> bool:
        # same set, order independent
        return {r.lower() for r in self.authorized_resources} == {r.lower() for r in resources}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DecryptionAuthorization":
        return cls(
            private_key=data["private_key"],
            public_key=data["public_key"],
            signature=data["signature"],
            authorized_resources=list(data.get("authorized_resources", [])),
            identity_id=data["identity_id"],
            valid_from=int(data["valid_from"]),
            valid_duration_days=int(data["valid_duration_days"]),
        )


@dataclass
class Record:
    """Caller-side view of one energy record."""
    id: str
    kind: RecordKind
    source: str
    value: Optional[Decimal] = None  # None until decrypted
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    encrypted: bool = True
