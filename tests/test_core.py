from decimal import Decimal

import pytest

from powerkey_core.coordinator import scale_value
from powerkey_core.crypto import (
    compute_pubkey_fingerprint, derive_key, aead_encrypt, aead_decrypt,
    ed25519_generate, ed25519_sign, ed25519_verify, x25519_generate,
)
from powerkey_core.engine import LocalVaultEngine
from powerkey_core.errors import AuthorizationError, ValidationError
from powerkey_core.models import DecryptionAuthorization, authorization_key
from powerkey_core.signer import LocalSigner, verify_authorization
from powerkey_core.utils import b64e

VAULT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
OTHER = "0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0"


def test_sign_verify():
    priv, pub = ed25519_generate()
    sig = ed25519_sign(priv, b"hello")
    assert ed25519_verify(pub, sig, b"hello")
    assert not ed25519_verify(pub, sig, b"hell0")


def test_encrypt_decrypt():
    a_priv, a_pub = x25519_generate()
    b_priv, b_pub = x25519_generate()
    k1 = derive_key(a_priv, b_pub)
    k2 = derive_key(b_priv, a_pub)
    nonce, ct = aead_encrypt(k1, b"kwh", aad=b"t")
    assert aead_decrypt(k2, nonce, ct, aad=b"t") == b"kwh"


def test_fingerprint_is_address_shaped():
    _, pub = ed25519_generate()
    fpr = compute_pubkey_fingerprint(b64e(pub))
    assert fpr.startswith("0x") and len(fpr) == 42


@pytest.mark.parametrize("value,expected", [
    (0, 0),
    (12.3, 123),
    ("12.34", 123),
    (Decimal("12.35"), 124),
    (429496729.5, 0xFFFFFFFF),
])
def test_scale_value(value, expected):
    assert scale_value(value) == expected


@pytest.mark.parametrize("value", [-0.1, float("nan"), float("inf"), "abc", True])
def test_scale_value_rejects_invalid(value):
    with pytest.raises(ValidationError, match="Invalid value"):
        scale_value(value)


@pytest.mark.parametrize("value", [
    429496729.6,
    Decimal("429496729.55"),
    Decimal("1e999999"),
    "1e999999",
    "9" * 200,
])
def test_scale_value_rejects_out_of_range(value):
    with pytest.raises(ValidationError, match="too large"):
        scale_value(value)


def test_scale_value_largest_accepted():
    assert scale_value(Decimal("429496729.549")) == 0xFFFFFFFF


def _auth(**overrides):
    data = dict(
        private_key="cHJpdg==", public_key="cHVi", signature="c2ln",
        authorized_resources=[VAULT], identity_id="0xabc",
        valid_from=1_000, valid_duration_days=1,
    )
    data.update(overrides)
    return DecryptionAuthorization(**data)


def test_authorization_window_is_inclusive():
    auth = _auth()
    assert not auth.is_time_valid(999)
    assert auth.is_time_valid(1_000)
    assert auth.is_time_valid(1_000 + 86400)
    assert not auth.is_time_valid(1_001 + 86400)


def test_authorization_covers_same_set_any_order():
    auth = _auth(authorized_resources=[VAULT, OTHER])
    assert auth.covers([OTHER, VAULT])
    assert auth.covers([OTHER.lower(), VAULT.upper().replace("0X", "0x")])
    assert not auth.covers([VAULT])


def test_authorization_key_sorts_resources():
    assert authorization_key([OTHER, VAULT], "0xAB") == authorization_key([VAULT, OTHER], "0xab")


def test_authorization_dict_roundtrip():
    auth = _auth()
    assert DecryptionAuthorization.from_dict(auth.to_dict()) == auth


async def _signed_auth(signer, engine, resources, valid_from, days=365):
    priv, pub = engine.generate_keypair()
    sig = await signer.sign_authorization(resources, signer.identity_id, pub, valid_from, days)
    return DecryptionAuthorization(
        private_key=priv, public_key=pub, signature=sig, authorized_resources=list(resources),
        identity_id=signer.identity_id, valid_from=valid_from, valid_duration_days=days,
    )


@pytest.mark.asyncio
async def test_signed_authorization_verifies_and_detects_tampering():
    import time
    signer, engine = LocalSigner(), LocalVaultEngine()
    auth = await _signed_auth(signer, engine, [VAULT], int(time.time()))
    assert verify_authorization(auth)

    auth.authorized_resources = [VAULT, OTHER]
    assert not verify_authorization(auth)


@pytest.mark.asyncio
async def test_signer_declines():
    signer = LocalSigner(approve=lambda msg: False)
    assert await signer.sign_authorization([VAULT], signer.identity_id, "cHVi", 0, 1) is None


@pytest.mark.asyncio
async def test_engine_input_proof_binds_contract_and_user():
    engine, signer = LocalVaultEngine(), LocalSigner()
    enc = await engine.build_encrypted_input(VAULT, signer.identity_id, 123)
    assert enc.handle.startswith("0x") and len(enc.handle) == 66
    assert engine.verify_input(enc.handle, enc.proof, VAULT, signer.identity_id)
    assert not engine.verify_input(enc.handle, enc.proof, OTHER, signer.identity_id)
    assert not engine.verify_input(enc.handle, enc.proof, VAULT, LocalSigner().identity_id)


@pytest.mark.asyncio
async def test_engine_rejects_non_uint32():
    engine = LocalVaultEngine()
    with pytest.raises(ValueError):
        await engine.build_encrypted_input(VAULT, "0xabc", 0x1_0000_0000)


@pytest.mark.asyncio
async def test_engine_user_decrypt():
    import time
    engine, signer = LocalVaultEngine(), LocalSigner()
    enc = await engine.build_encrypted_input(VAULT, signer.identity_id, 427)
    engine.allow(enc.handle, signer.identity_id)
    auth = await _signed_auth(signer, engine, [VAULT], int(time.time()))

    assert await engine.decrypt(enc.handle, VAULT, auth) == 427


@pytest.mark.asyncio
async def test_engine_user_decrypt_enforces_acl_and_window():
    import time
    engine, signer = LocalVaultEngine(), LocalSigner()
    enc = await engine.build_encrypted_input(VAULT, signer.identity_id, 5)
    auth = await _signed_auth(signer, engine, [VAULT], int(time.time()))

    with pytest.raises(AuthorizationError, match="not allowed"):
        await engine.decrypt(enc.handle, VAULT, auth)

    engine.allow(enc.handle, signer.identity_id)
    expired = await _signed_auth(signer, engine, [VAULT], int(time.time()) - 3 * 86400, days=1)
    with pytest.raises(AuthorizationError, match="expired"):
        await engine.decrypt(enc.handle, VAULT, expired)

    other = await _signed_auth(signer, engine, [OTHER], int(time.time()))
    with pytest.raises(AuthorizationError, match="not covered"):
        await engine.decrypt(enc.handle, VAULT, other)
