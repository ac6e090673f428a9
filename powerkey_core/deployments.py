# powerkey_core/deployments.py

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional
import json, os

from .constants import ZERO_ADDRESS
from .models import LedgerOperation

VAULT_OPERATIONS: FrozenSet[LedgerOperation] = frozenset(LedgerOperation)

# Local development chain; real networks come from POWERKEY_DEPLOYMENTS.
DEFAULT_DEPLOYMENTS: Dict[str, Dict[str, Any]] = {
    "31337": {
        "address": "0x5FbDB2315678afecb367f032d93F642f64180aa3",
        "chain_id": 31337,
        "chain_name": "hardhat",
    },
}


@dataclass(frozen=True)
class VaultDescriptor:
    """
    Where the energy vault lives on a given network.

    `address` is None when the vault is not deployed there; every read and
    write is disabled in that case.
    """
    address: Optional[str] = None
    chain_id: Optional[int] = None
    chain_name: Optional[str] = None
    operations: FrozenSet[LedgerOperation] = field(default=VAULT_OPERATIONS)

    @property
    def is_deployed(self) -> bool:
        return bool(self.address) and self.address != ZERO_ADDRESS


def load_deployments(path: str | None = None) -> Dict[str, Dict[str, Any]]:
    """
    Load the deployment table keyed by chain id (as a string).

    Resolution order: explicit path, POWERKEY_DEPLOYMENTS, built-in defaults.
    """
    path = path or os.getenv("POWERKEY_DEPLOYMENTS")
    if not path:
        return dict(DEFAULT_DEPLOYMENTS)
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    return {str(k): v for k, v in data.items()}


def resolve_vault(chain_id: Optional[int], deployments: Dict[str, Dict[str, Any]]) -> VaultDescriptor:
    if not chain_id:
        return VaultDescriptor()

    entry = deployments.get(str(chain_id))
    if not entry or not entry.get("address") or entry["address"] == ZERO_ADDRESS:
        return VaultDescriptor(chain_id=chain_id)

    return VaultDescriptor(
        address=entry["address"],
        chain_id=entry.get("chain_id") or chain_id,
        chain_name=entry.get("chain_name"),
    )
