"""
powerkey_core.session
---------------------
Process-wide session context: the active network and the active signing
identity. Wallet glue pushes changes through update(); operations only read
it through snapshot() and is_current().
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .deployments import VaultDescriptor, load_deployments, resolve_vault
from .logger import get_logger

log = get_logger("powerkey.session")

_UNSET = object()


@dataclass(frozen=True)
class SessionSnapshot:
    network_id: Optional[int]
    identity_id: Optional[str]


class SessionContext:
    def __init__(self, deployments: Optional[Dict[str, Dict[str, Any]]] = None,
                 network_id: Optional[int] = None, signer=None):
        self._deployments = deployments if deployments is not None else load_deployments()
        self._network_id = network_id
        self._signer = signer
        self._descriptor = resolve_vault(network_id, self._deployments)
        self._listeners: List[Callable[[VaultDescriptor], None]] = []

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def network_id(self) -> Optional[int]:
        return self._network_id

    @property
    def signer(self):
        return self._signer

    @property
    def identity_id(self) -> Optional[str]:
        return self._signer.identity_id if self._signer is not None else None

    @property
    def descriptor(self) -> VaultDescriptor:
        return self._descriptor

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(network_id=self._network_id, identity_id=self.identity_id)

    def is_current(self, prior: SessionSnapshot) -> bool:
        return self.snapshot() == prior

    # ------------------------------------------------------------------
    # Write side (wallet events)
    # ------------------------------------------------------------------
    def update(self, network_id=_UNSET, signer=_UNSET) -> None:
        if signer is not _UNSET and signer is not self._signer:
            self._signer = signer
            log.info(f"[SESSION] identity -> {self.identity_id}")

        if network_id is not _UNSET and network_id != self._network_id:
            self._network_id = network_id
            self._descriptor = resolve_vault(network_id, self._deployments)
            log.info(f"[SESSION] network -> {network_id} vault={self._descriptor.address}")
            for listener in list(self._listeners):
                listener(self._descriptor)

    def reload_deployments(self, deployments: Dict[str, Dict[str, Any]]) -> None:
        """Swap the deployment table, e.g. after a redeploy on the current network."""
        self._deployments = deployments
        descriptor = resolve_vault(self._network_id, deployments)
        if descriptor != self._descriptor:
            self._descriptor = descriptor
            log.info(f"[SESSION] vault -> {descriptor.address}")
            for listener in list(self._listeners):
                listener(descriptor)

    def on_descriptor_change(self, listener: Callable[[VaultDescriptor], None]) -> None:
        self._listeners.append(listener)


_session: Optional[SessionContext] = None


def init_session(deployments: Optional[Dict[str, Dict[str, Any]]] = None,
                 network_id: Optional[int] = None, signer=None) -> SessionContext:
    """Create (or replace) the process-wide session."""
    global _session
    _session = SessionContext(deployments=deployments, network_id=network_id, signer=signer)
    return _session


def get_session() -> SessionContext:
    if _session is None:
        raise RuntimeError("session not initialised; call init_session() first")
    return _session
