from typing import Dict, Optional
from powerkey_core.models import DecryptionAuthorization
from powerkey_core.storage.provider import SignatureStore

class InMemorySignatureStore(SignatureStore):
    def __init__(self):
        self.entries: Dict[str, dict] = {}

    # stored as plain dicts so callers can't mutate cached entries
    def get(self, key: str) -> Optional[DecryptionAuthorization]:
        data = self.entries.get(key)
        return DecryptionAuthorization.from_dict(data) if data else None

    def set(self, key: str, auth: DecryptionAuthorization):
        self.entries[key] = auth.to_dict()

    def delete(self, key: str):
        self.entries.pop(key, None)
