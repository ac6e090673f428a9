# powerkey_core/storage/provider.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional

from powerkey_core.models import DecryptionAuthorization


class SignatureStore(ABC):
    """
    Key-value store for cached decryption authorizations.

    Keys come from models.authorization_key(). Read-then-write-on-miss is not
    atomic across processes; the client is single-user.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[DecryptionAuthorization]:
        ...

    @abstractmethod
    def set(self, key: str, auth: DecryptionAuthorization) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    def close(self) -> None:
        return
