# powerkey_core/ledger/__init__.py
import os
from powerkey_core.engine import LocalVaultEngine
from powerkey_core.ledger.ledger_base import LedgerClient, classify_remote_error
from powerkey_core.ledger.ledger_http import HTTPLedger
from powerkey_core.ledger.ledger_local import LocalLedger


def ledger_factory(engine: LocalVaultEngine | None = None) -> LedgerClient:
    """
    POWERKEY_LEDGER:
      - "local" → in-process vault (needs the LocalVaultEngine that seals inputs)
      - "http"  → JSON-RPC relay at POWERKEY_RPC_URL
    """
    mode = os.getenv("POWERKEY_LEDGER", "local").lower()

    if mode == "http":
        return HTTPLedger(os.getenv("POWERKEY_RPC_URL", "http://localhost:8545"))

    if mode == "local":
        return LocalLedger(engine or LocalVaultEngine())

    raise ValueError(f"Unknown ledger mode: {mode}")


__all__ = ["LedgerClient", "LocalLedger", "HTTPLedger", "ledger_factory", "classify_remote_error"]
