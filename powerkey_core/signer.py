"""
powerkey_core.signer
--------------------
Interactive signing of decryption authorizations.

The signature field of a DecryptionAuthorization is a base64 blob holding
the signer's Ed25519 public key and its signature over the canonical
authorization message. Identity ids are fingerprints of that public key,
so any holder can check the blob without a key directory.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Sequence, Union
import inspect, json

from .constants import AUTH_DOMAIN
from .crypto import compute_pubkey_fingerprint, ed25519_generate, ed25519_public, ed25519_sign, ed25519_verify
from .logger import get_logger
from .models import DecryptionAuthorization
from .utils import b64d, b64e, canonical_json

log = get_logger("powerkey.signer")

Approver = Callable[[bytes], Union[bool, Awaitable[bool]]]


def authorization_message(resources: Sequence[str], identity_id: str, public_key: str,
                          valid_from: int, valid_duration_days: int) -> bytes:
    return canonical_json({
        "domain": AUTH_DOMAIN,
        "resources": sorted(r.lower() for r in resources),
        "identity": identity_id.lower(),
        "public_key": public_key,
        "valid_from": valid_from,
        "valid_duration_days": valid_duration_days,
    })


def verify_authorization(auth: DecryptionAuthorization) -> bool:
    try:
        blob = json.loads(b64d(auth.signature))
        pub_b64, sig_b64 = blob["pub"], blob["sig"]
    except (ValueError, KeyError, TypeError):
        return False
    if compute_pubkey_fingerprint(pub_b64).lower() != auth.identity_id.lower():
        return False
    msg = authorization_message(auth.authorized_resources, auth.identity_id, auth.public_key,
                                auth.valid_from, auth.valid_duration_days)
    return ed25519_verify(b64d(pub_b64), b64d(sig_b64), msg)


class InteractiveSigner(ABC):
    identity_id: str

    @abstractmethod
    async def sign_authorization(self, resources: Sequence[str], identity_id: str, public_key: str,
                                 valid_from: int, valid_duration_days: int) -> Optional[str]:
        """Return the signature blob, or None when the user declines."""


class LocalSigner(InteractiveSigner):
    """
    Ed25519 identity held in process.

    `approve` stands in for the wallet prompt: it receives the message bytes
    and returns (or resolves to) False to decline.
    """

    def __init__(self, priv_raw: Optional[bytes] = None, approve: Optional[Approver] = None):
        if priv_raw is None:
            priv_raw, _ = ed25519_generate()
        self._priv = priv_raw
        self.public_key_b64 = b64e(ed25519_public(priv_raw))
        self.identity_id = compute_pubkey_fingerprint(self.public_key_b64)
        self._approve = approve

    async def sign_authorization(self, resources, identity_id, public_key, valid_from, valid_duration_days):
        if identity_id.lower() != self.identity_id.lower():
            raise ValueError(f"signer {self.identity_id} cannot sign for {identity_id}")

        msg = authorization_message(resources, identity_id, public_key, valid_from, valid_duration_days)
        if self._approve is not None:
            approved = self._approve(msg)
            if inspect.isawaitable(approved):
                approved = await approved
            if not approved:
                log.info(f"[SIGNER] {self.identity_id} declined authorization")
                return None

        sig = ed25519_sign(self._priv, msg)
        return b64e(json.dumps({"pub": self.public_key_b64, "sig": b64e(sig)}).encode("utf-8"))
