from __future__ import annotations
from typing import Optional
import json, sqlite3, os
from powerkey_core.models import DecryptionAuthorization
from powerkey_core.storage.provider import SignatureStore
from powerkey_core.utils import now_epoch


class SQLiteSignatureStore(SignatureStore):
    def __init__(self, path="db/powerkey_signatures.db"):
        # If no directory, default to current working directory
        dir_path = os.path.dirname(path) or "."
        os.makedirs(dir_path, exist_ok=True)
        self.db = sqlite3.connect(path, check_same_thread=False)

        self._init()

    def _init(self) -> None:
        self.db.execute("""CREATE TABLE IF NOT EXISTS decryption_signatures(
            key TEXT PRIMARY KEY,
            identity_id TEXT NOT NULL,
            payload TEXT NOT NULL,
            updated_at INTEGER NOT NULL
        )""")
        self.db.commit()

    def get(self, key: str) -> Optional[DecryptionAuthorization]:
        cur = self.db.execute("SELECT payload FROM decryption_signatures WHERE key=?", (key,))
        row = cur.fetchone()
        if not row:
            return None
        return DecryptionAuthorization.from_dict(json.loads(row[0]))

    def set(self, key: str, auth: DecryptionAuthorization) -> None:
        self.db.execute(
            "INSERT INTO decryption_signatures(key,identity_id,payload,updated_at) VALUES(?,?,?,?) "
            "ON CONFLICT(key) DO UPDATE SET identity_id=excluded.identity_id, "
            "payload=excluded.payload, updated_at=excluded.updated_at",
            (key, auth.identity_id, json.dumps(auth.to_dict(), sort_keys=True), now_epoch())
        )
        self.db.commit()

    def delete(self, key: str) -> None:
        self.db.execute("DELETE FROM decryption_signatures WHERE key=?", (key,))
        self.db.commit()

    def close(self):
        self.db.close()
