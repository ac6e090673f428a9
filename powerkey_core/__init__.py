"""
PowerKey Core Package
=====================
Client-side operation coordinator for confidential energy records kept on a
ledger vault.

Provides:
- Session context tracking and staleness guards
- Single-flight admission per operation kind
- Encrypted record submission and authorization-based decryption
- Pluggable signature stores (memory, SQLite) and ledger adapters (local, HTTP)
"""

from .coordinator import EnergyVaultCoordinator, Notifier, scale_value
from .models import DecryptionAuthorization, EncryptedInput, Record, RecordKind
from .session import SessionContext, SessionSnapshot, get_session, init_session
from .signature import DecryptionSignatureManager

__all__ = [
    "EnergyVaultCoordinator",
    "Notifier",
    "scale_value",
    "DecryptionAuthorization",
    "EncryptedInput",
    "Record",
    "RecordKind",
    "SessionContext",
    "SessionSnapshot",
    "get_session",
    "init_session",
    "DecryptionSignatureManager",
]
