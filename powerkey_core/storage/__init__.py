# powerkey_core/storage/__init__.py

from .provider import SignatureStore
from .providers.memory_provider import InMemorySignatureStore
from .providers.sqlite_provider import SQLiteSignatureStore
import os


def load_signature_store(config: dict | None = None) -> SignatureStore:
    """
    Factory resolver for the decryption signature cache.

        - memory (default, matches a browser session)
        - sqlite
    """
    config = config or {}
    provider = config.get("provider") or os.getenv("POWERKEY_SIGNATURE_STORE", "memory")

    if provider == "memory":
        return InMemorySignatureStore()

    if provider == "sqlite":
        db_path = config.get("sqlite_path") or os.getenv("POWERKEY_DB_PATH", "db/powerkey_signatures.db")
        return SQLiteSignatureStore(db_path)

    raise ValueError(f"Unknown signature store provider: {provider}")


__all__ = [
    "SignatureStore",
    "InMemorySignatureStore",
    "SQLiteSignatureStore",
    "load_signature_store",
]
