import pytest

from powerkey_core.models import DecryptionAuthorization, authorization_key
from powerkey_core.storage import (
    InMemorySignatureStore, SQLiteSignatureStore, load_signature_store,
)

VAULT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


def _auth():
    return DecryptionAuthorization(
        private_key="cHJpdg==", public_key="cHVi", signature="c2ln",
        authorized_resources=[VAULT], identity_id="0xabc",
        valid_from=1_000, valid_duration_days=365,
    )


@pytest.mark.parametrize("make", [
    lambda tmp: InMemorySignatureStore(),
    lambda tmp: SQLiteSignatureStore(str(tmp / "sigs.db")),
])
def test_store_roundtrip(tmp_path, make):
    store = make(tmp_path)
    key = authorization_key([VAULT], "0xabc")

    assert store.get(key) is None
    store.set(key, _auth())
    assert store.get(key) == _auth()

    store.delete(key)
    assert store.get(key) is None


def test_memory_store_returns_copies():
    store = InMemorySignatureStore()
    store.set("k", _auth())
    got = store.get("k")
    got.authorized_resources.append("0xdead")
    assert store.get("k").authorized_resources == [VAULT]


def test_sqlite_upsert_replaces(tmp_path):
    store = SQLiteSignatureStore(str(tmp_path / "sigs.db"))
    store.set("k", _auth())
    newer = _auth()
    newer.valid_from = 2_000
    store.set("k", newer)

    assert store.get("k").valid_from == 2_000
    cur = store.db.execute("SELECT COUNT(*) FROM decryption_signatures")
    assert cur.fetchone()[0] == 1


def test_sqlite_schema_exists(tmp_path):
    store = SQLiteSignatureStore(str(tmp_path / "sigs.db"))
    cur = store.db.execute("PRAGMA table_info(decryption_signatures)")
    cols = {row[1] for row in cur.fetchall()}
    assert {"key", "identity_id", "payload", "updated_at"} <= cols


def test_load_signature_store_modes(monkeypatch, tmp_path):
    assert isinstance(load_signature_store(), InMemorySignatureStore)

    monkeypatch.setenv("POWERKEY_SIGNATURE_STORE", "sqlite")
    monkeypatch.setenv("POWERKEY_DB_PATH", str(tmp_path / "env.db"))
    assert isinstance(load_signature_store(), SQLiteSignatureStore)
    assert (tmp_path / "env.db").exists()

    with pytest.raises(ValueError):
        load_signature_store({"provider": "redis"})
