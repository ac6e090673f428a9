"""
powerkey_core.engine
--------------------
Encryption engine and decrypt capability.

EncryptionEngine is the interface the coordinator consumes. LocalVaultEngine
is an in-process implementation for development chains and tests: values are
sealed with AES-GCM under a network key, input proofs are Ed25519 signatures
binding a handle to (contract, user), and user decryption re-encrypts the
plaintext to the X25519 key named in a signed DecryptionAuthorization.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Set, Tuple
import asyncio, hashlib, json

from .constants import INPUT_PROOF_DOMAIN, UINT32_MAX
from .crypto import (
    aead_decrypt, aead_encrypt, derive_key, ed25519_generate, ed25519_sign, ed25519_verify, x25519_generate,
)
from .errors import AuthorizationError
from .logger import get_logger
from .models import DecryptionAuthorization, EncryptedInput
from .signer import verify_authorization
from .utils import b64d, b64e, canonical_json, from_hex, now_epoch, to_hex

log = get_logger("powerkey.engine")

HandlePair = Tuple[str, str]  # (handle, contract address)


class EncryptionEngine(ABC):

    @abstractmethod
    async def build_encrypted_input(self, vault_address: str, identity_id: str, value: int) -> EncryptedInput:
        ...

    @abstractmethod
    def generate_keypair(self) -> Tuple[str, str]:
        """Return a fresh (private_key, public_key) pair, base64 encoded."""

    @abstractmethod
    async def user_decrypt(self, pairs: Sequence[HandlePair],
                           authorization: DecryptionAuthorization) -> Dict[str, int]:
        ...

    async def decrypt(self, handle: str, contract_address: str, authorization: DecryptionAuthorization) -> int:
        result = await self.user_decrypt([(handle, contract_address)], authorization)
        return result[handle]


@dataclass
class _Sealed:
    nonce: bytes
    ciphertext: bytes
    aad: bytes
    contract: str


class LocalVaultEngine(EncryptionEngine):

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        net_priv, net_pub = x25519_generate()
        self._network_key = derive_key(net_priv, net_pub, info=b"powerkey-network")
        self._verifier_priv, self.verifier_pub = ed25519_generate()
        self._sealed: Dict[str, _Sealed] = {}
        self._acl: Dict[str, Set[str]] = {}

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    async def build_encrypted_input(self, vault_address, identity_id, value):
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= UINT32_MAX:
            raise ValueError(f"value {value!r} is not a uint32")
        if self.latency:
            await asyncio.sleep(self.latency)

        contract, user = vault_address.lower(), identity_id.lower()
        aad = canonical_json({"contract": contract, "user": user})
        nonce, ct = aead_encrypt(self._network_key, value.to_bytes(4, "big"), aad=aad)
        handle = to_hex(hashlib.sha256(nonce + ct).digest())
        self._sealed[handle] = _Sealed(nonce=nonce, ciphertext=ct, aad=aad, contract=contract)
        log.debug(f"[ENGINE] sealed input handle={handle} contract={contract}")

        sig = ed25519_sign(self._verifier_priv, self._proof_bytes(handle, contract, user))
        proof = json.dumps({"handle": handle, "sig": b64e(sig)}).encode("utf-8")
        return EncryptedInput(handle=handle, proof=proof)

    def verify_input(self, handle: str, proof: bytes, contract: str, user: str) -> bool:
        try:
            data = json.loads(proof)
            sig = b64d(data["sig"])
        except (ValueError, KeyError, TypeError):
            return False
        if data.get("handle") != handle:
            return False
        return ed25519_verify(self.verifier_pub, sig, self._proof_bytes(handle, contract.lower(), user.lower()))

    @staticmethod
    def _proof_bytes(handle: str, contract: str, user: str) -> bytes:
        return INPUT_PROOF_DOMAIN + from_hex(handle) + canonical_json({"contract": contract, "user": user})

    def allow(self, handle: str, identity_id: str) -> None:
        """Grant an identity decryption rights on a handle (set by the ledger)."""
        self._acl.setdefault(handle, set()).add(identity_id.lower())

    # ------------------------------------------------------------------
    # Decryption
    # ------------------------------------------------------------------
    def generate_keypair(self):
        priv, pub = x25519_generate()
        return b64e(priv), b64e(pub)

    async def user_decrypt(self, pairs, authorization):
        if self.latency:
            await asyncio.sleep(self.latency)
        self._check_authorization(authorization, (contract for _, contract in pairs))

        results: Dict[str, int] = {}
        for handle, contract in pairs:
            sealed = self._sealed.get(handle)
            if sealed is None or sealed.contract != contract.lower():
                raise KeyError(f"unknown handle {handle} for {contract}")
            if authorization.identity_id.lower() not in self._acl.get(handle, set()):
                raise AuthorizationError(f"{authorization.identity_id} is not allowed to decrypt {handle}")

            clear = aead_decrypt(self._network_key, sealed.nonce, sealed.ciphertext, aad=sealed.aad)
            results[handle] = self._reencrypt_roundtrip(clear, authorization)
        return results

    def _check_authorization(self, auth: DecryptionAuthorization, contracts: Iterable[str]) -> None:
        if not verify_authorization(auth):
            raise AuthorizationError("Invalid decryption signature")
        if not auth.is_time_valid(now_epoch()):
            raise AuthorizationError("Decryption signature expired")
        allowed = {r.lower() for r in auth.authorized_resources}
        for contract in contracts:
            if contract.lower() not in allowed:
                raise AuthorizationError(f"Contract {contract} not covered by signature")

    @staticmethod
    def _reencrypt_roundtrip(clear: bytes, auth: DecryptionAuthorization) -> int:
        # Gateway side: seal to the user's re-encryption key
        eph_priv, eph_pub = x25519_generate()
        key = derive_key(eph_priv, b64d(auth.public_key), info=b"powerkey-reencrypt")
        nonce, ct = aead_encrypt(key, clear)
        # Client side: open with the authorization's private key
        key = derive_key(b64d(auth.private_key), eph_pub, info=b"powerkey-reencrypt")
        return int.from_bytes(aead_decrypt(key, nonce, ct), "big")
