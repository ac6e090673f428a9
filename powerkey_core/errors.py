"""
powerkey_core.errors
--------------------
Failure taxonomy for coordinator operations.

Every error carries a short user-facing message. StaleAbort is the one
outcome that is never reported to the user: it marks work computed for a
session context that is no longer live.
"""

from __future__ import annotations


class PowerKeyError(Exception):
    user_message = "Operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class ValidationError(PowerKeyError):
    user_message = "Invalid value"


class NotReadyError(PowerKeyError):
    user_message = "Wallet not connected or contract not deployed"


class StaleAbort(PowerKeyError):
    user_message = "Session changed"


class RemoteUnavailable(PowerKeyError):
    user_message = "Wallet RPC unreachable. Please check your network."


class AuthorizationError(PowerKeyError):
    user_message = "Unable to build decryption signature"


class RemoteRejection(PowerKeyError):
    user_message = "Transaction rejected by the ledger"
