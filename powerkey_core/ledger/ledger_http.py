# powerkey_core/ledger/ledger_http.py
import requests, asyncio, itertools
from powerkey_core.errors import RemoteRejection, RemoteUnavailable
from powerkey_core.logger import get_logger
from powerkey_core.models import LedgerOperation, Receipt, TransactionHandle
from powerkey_core.utils import b64e
from .ledger_base import LedgerClient

log = get_logger("powerkey.ledger.http")

# JSON-RPC "internal error": wallet relays use it when the node is unreachable
RPC_INTERNAL_ERROR = -32603


class HTTPLedger(LedgerClient):
    """
    JSON-RPC adapter for a vault relay.

    Blocking requests calls run in a worker thread so the event loop keeps
    scheduling other operations while a call is outstanding.
    """
    name = "http"

    def __init__(self, base_url: str, timeout: float = 10.0, poll_interval: float = 1.0,
                 max_polls: int = 120, session: requests.Session = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.http = session or requests.Session()
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # JSON-RPC plumbing
    # ------------------------------------------------------------------
    def _call(self, method: str, params: list):
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        log.debug(f"[HTTP RPC] → {self.base_url} | method={method}")
        try:
            res = self.http.post(self.base_url, json=body, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            log.error(f"[HTTP RPC] {method} unreachable: {e}")
            raise RemoteUnavailable() from e

        if res.status_code >= 500:
            log.error(f"[HTTP RPC] {res.status_code}: {res.text}")
            raise RemoteUnavailable()
        if not res.ok:
            raise RemoteRejection(f"{res.status_code}: {res.text}")

        data = res.json()
        err = data.get("error")
        if err:
            log.error(f"[HTTP RPC] {method} error {err}")
            if err.get("code") == RPC_INTERNAL_ERROR:
                raise RemoteUnavailable()
            raise RemoteRejection(err.get("message") or str(err))
        return data.get("result")

    async def _rpc(self, method: str, *params):
        return await asyncio.to_thread(self._call, method, list(params))

    # ------------------------------------------------------------------
    # LedgerClient
    # ------------------------------------------------------------------
    async def submit_write(self, address, sender, operation, source, handle, proof):
        operation = LedgerOperation(operation)
        tx_hash = await self._rpc("vault_sendTransaction", {
            "to": address,
            "from": sender,
            "method": operation.value,
            "args": [source, handle, b64e(proof)],
        })
        return TransactionHandle(tx_hash=tx_hash)

    async def await_confirmation(self, tx):
        for _ in range(self.max_polls):
            receipt = await self._rpc("vault_getTransactionReceipt", tx.tx_hash)
            if receipt:
                if int(receipt.get("status", 0)) != 1:
                    raise RemoteRejection(f"Transaction {tx.tx_hash} reverted")
                return Receipt(tx_hash=tx.tx_hash, record_id=str(receipt["recordId"]))
            await asyncio.sleep(self.poll_interval)
        raise RemoteUnavailable(f"Timed out waiting for {tx.tx_hash}")

    async def read_encrypted_value(self, address, record_id):
        return await self._rpc("vault_call", {
            "to": address,
            "method": LedgerOperation.READ_ENCRYPTED_VALUE.value,
            "args": [str(record_id)],
        })

    def close(self):
        self.http.close()
