# powerkey_core/signature.py
from __future__ import annotations
from typing import Callable, Optional, Sequence
import os

from .constants import DEFAULT_AUTH_DURATION_DAYS
from .engine import EncryptionEngine
from .errors import AuthorizationError
from .logger import get_logger
from .models import DecryptionAuthorization, authorization_key
from .signer import InteractiveSigner
from .storage import SignatureStore
from .utils import now_epoch

log = get_logger("powerkey.signature")


class DecryptionSignatureManager:
    """
    Load-or-sign for decryption authorizations.

    A cached entry is reused only while its validity window is open and its
    resource set equals the requested one. Anything else costs exactly one
    interactive signing call. A declined or failed signing is final for this
    request; there is no retry.
    """

    def __init__(self, store: SignatureStore, engine: EncryptionEngine,
                 duration_days: Optional[int] = None, clock: Callable[[], int] = now_epoch):
        self.store = store
        self.engine = engine
        if duration_days is None:
            duration_days = int(os.getenv("POWERKEY_AUTH_DURATION_DAYS", DEFAULT_AUTH_DURATION_DAYS))
        self.duration_days = duration_days
        self.clock = clock

    def load(self, resources: Sequence[str], identity_id: str) -> Optional[DecryptionAuthorization]:
        key = authorization_key(resources, identity_id)
        cached = self.store.get(key)
        if cached is None:
            return None
        if cached.identity_id.lower() != identity_id.lower() or not cached.covers(resources):
            log.info(f"[AUTH] cached signature does not match request key={key}")
            return None
        if not cached.is_time_valid(self.clock()):
            log.info(f"[AUTH] cached signature outside validity window key={key}")
            return None
        return cached

    async def ensure_authorization(self, resources: Sequence[str], signer: InteractiveSigner) -> DecryptionAuthorization:
        identity_id = signer.identity_id
        cached = self.load(resources, identity_id)
        if cached is not None:
            log.debug(f"[AUTH] cache hit identity={identity_id}")
            return cached

        private_key, public_key = self.engine.generate_keypair()
        valid_from = self.clock()
        log.info(f"[AUTH] requesting signature identity={identity_id} resources={list(resources)}")
        try:
            signature = await signer.sign_authorization(
                resources, identity_id, public_key, valid_from, self.duration_days
            )
        except Exception as e:
            log.warning(f"[AUTH] signing failed: {e}")
            raise AuthorizationError("authorization unavailable") from e

        if not signature:
            raise AuthorizationError("authorization unavailable")

        auth = DecryptionAuthorization(
            private_key=private_key,
            public_key=public_key,
            signature=signature,
            authorized_resources=list(resources),
            identity_id=identity_id,
            valid_from=valid_from,
            valid_duration_days=self.duration_days,
        )
        self.store.set(authorization_key(resources, identity_id), auth)
        return auth
