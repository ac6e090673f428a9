from __future__ import annotations
from typing import Tuple, Optional
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.exceptions import InvalidSignature
import os, hashlib
from .utils import b64d

"""
powerkey_core.crypto
--------------------
Cryptographic primitives used by the local vault engine and signer:

- Ed25519: identity signatures and input proofs
- X25519 + HKDF + AES-GCM: value confidentiality and re-encryption
- Fingerprints: identity ids derived from Ed25519 public keys
"""

# --------- Ed25519 (sign/verify) ----------
def ed25519_generate() -> Tuple[bytes, bytes]:
    sk = ed25519.Ed25519PrivateKey.generate()
    pk = sk.public_key()
    return sk.private_bytes_raw(), pk.public_bytes_raw()

def ed25519_public(priv_raw: bytes) -> bytes:
    return ed25519.Ed25519PrivateKey.from_private_bytes(priv_raw).public_key().public_bytes_raw()

def ed25519_sign(priv_raw: bytes, data: bytes) -> bytes:
    sk = ed25519.Ed25519PrivateKey.from_private_bytes(priv_raw)
    return sk.sign(data)

def ed25519_verify(pub_raw: bytes, sig: bytes, data: bytes) -> bool:
    try:
        ed25519.Ed25519PublicKey.from_public_bytes(pub_raw).verify(sig, data)
        return True
    except (InvalidSignature, ValueError):
        return False

# --------- X25519 + HKDF + AES-GCM (encrypt/decrypt) ----------
def x25519_generate() -> Tuple[bytes, bytes]:
    sk = x25519.X25519PrivateKey.generate()
    pk = sk.public_key()
    return sk.private_bytes_raw(), pk.public_bytes_raw()

def derive_key(own_priv: bytes, peer_pub: bytes, salt: Optional[bytes] = None, info: bytes = b"powerkey-v1") -> bytes:
    sk = x25519.X25519PrivateKey.from_private_bytes(own_priv)
    shared = sk.exchange(x25519.X25519PublicKey.from_public_bytes(peer_pub))
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=salt, info=info)
    return hkdf.derive(shared)  # 256-bit AEAD key

def aead_encrypt(key: bytes, plaintext: bytes, aad: Optional[bytes] = None) -> Tuple[bytes, bytes]:
    aes = AESGCM(key)
    nonce = os.urandom(12)
    ct = aes.encrypt(nonce, plaintext, aad)
    return nonce, ct

def aead_decrypt(key: bytes, nonce: bytes, ciphertext: bytes, aad: Optional[bytes] = None) -> bytes:
    aes = AESGCM(key)
    return aes.decrypt(nonce, ciphertext, aad)

def compute_pubkey_fingerprint(pubkey_b64: str) -> str:
    """
    Compute a stable identity id for an Ed25519 public key.

    - Input: base64-encoded Ed25519 public key
    - Output: "0x" + first 20 bytes of SHA256, hex-encoded

    The 20-byte width matches ledger account addresses, so the fingerprint
    doubles as the identity id the vault contract sees.
    """
    raw = b64d(pubkey_b64)
    digest = hashlib.sha256(raw).hexdigest()
    return "0x" + digest[:40]
