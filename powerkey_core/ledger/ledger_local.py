# powerkey_core/ledger/ledger_local.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict
import asyncio, itertools

from powerkey_core.engine import LocalVaultEngine
from powerkey_core.errors import RemoteRejection
from powerkey_core.logger import get_logger
from powerkey_core.models import LedgerOperation, Receipt, RecordKind, TransactionHandle
from powerkey_core.utils import canonical_json, now_epoch, sha256
from .ledger_base import LedgerClient

log = get_logger("powerkey.ledger.local")

_CREATE_KINDS = {
    LedgerOperation.CREATE_GENERATION: RecordKind.GENERATION,
    LedgerOperation.CREATE_CONSUMPTION: RecordKind.CONSUMPTION,
}


@dataclass
class StoredRecord:
    record_id: str
    kind: RecordKind
    source: str
    handle: str
    owner: str
    created_at: int


class LocalLedger(LedgerClient):
    """
    In-process vault contract for development chains.

    Writes are verified against the engine's input proofs, held pending
    until await_confirmation() mines them, and then readable by id.
    Confirming the same transaction twice returns the same receipt.
    """
    name = "local"

    def __init__(self, engine: LocalVaultEngine, latency: float = 0.0):
        self.engine = engine
        self.latency = latency
        self._ids = itertools.count(1)
        self._nonce = itertools.count()
        self._pending: Dict[str, dict] = {}
        self._receipts: Dict[str, Receipt] = {}
        self.records: Dict[str, Dict[str, StoredRecord]] = {}

    async def submit_write(self, address, sender, operation, source, handle, proof):
        operation = LedgerOperation(operation)
        if operation not in _CREATE_KINDS:
            raise RemoteRejection(f"{operation.value} is not a write method")
        if self.latency:
            await asyncio.sleep(self.latency)
        if not self.engine.verify_input(handle, proof, address, sender):
            raise RemoteRejection("Invalid input proof")

        tx_hash = "0x" + sha256(canonical_json({
            "address": address.lower(), "sender": sender.lower(), "handle": handle, "n": next(self._nonce),
        }))
        self._pending[tx_hash] = {
            "address": address.lower(), "sender": sender, "kind": _CREATE_KINDS[operation],
            "source": source, "handle": handle,
        }
        log.info(f"[LEDGER] submitted {operation.value} tx={tx_hash}")
        return TransactionHandle(tx_hash=tx_hash)

    async def await_confirmation(self, tx):
        if self.latency:
            await asyncio.sleep(self.latency)
        if tx.tx_hash in self._receipts:
            return self._receipts[tx.tx_hash]

        pending = self._pending.pop(tx.tx_hash, None)
        if pending is None:
            raise RemoteRejection(f"Unknown transaction {tx.tx_hash}")

        record_id = str(next(self._ids))
        self.records.setdefault(pending["address"], {})[record_id] = StoredRecord(
            record_id=record_id,
            kind=pending["kind"],
            source=pending["source"],
            handle=pending["handle"],
            owner=pending["sender"],
            created_at=now_epoch(),
        )
        self.engine.allow(pending["handle"], pending["sender"])

        receipt = Receipt(tx_hash=tx.tx_hash, record_id=record_id)
        self._receipts[tx.tx_hash] = receipt
        log.info(f"[LEDGER] mined tx={tx.tx_hash} record={record_id}")
        return receipt

    async def read_encrypted_value(self, address, record_id):
        if self.latency:
            await asyncio.sleep(self.latency)
        rec = self.records.get(address.lower(), {}).get(str(record_id))
        if rec is None:
            raise RemoteRejection(f"Record {record_id} not found")
        return rec.handle
