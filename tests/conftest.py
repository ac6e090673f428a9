import pytest

from powerkey_core.constants import ZERO_ADDRESS

VAULT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
SEPOLIA_VAULT = "0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0"

DEPLOYMENTS = {
    "31337": {"address": VAULT, "chain_id": 31337, "chain_name": "hardhat"},
    "11155111": {"address": SEPOLIA_VAULT, "chain_id": 11155111, "chain_name": "sepolia"},
    "1": {"address": ZERO_ADDRESS, "chain_id": 1, "chain_name": "mainnet"},
}


@pytest.fixture
def deployments():
    return {k: dict(v) for k, v in DEPLOYMENTS.items()}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("POWERKEY_LEDGER", "POWERKEY_RPC_URL", "POWERKEY_SIGNATURE_STORE",
                 "POWERKEY_DB_PATH", "POWERKEY_DEPLOYMENTS", "POWERKEY_AUTH_DURATION_DAYS",
                 "POWERKEY_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
