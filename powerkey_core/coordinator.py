"""
powerkey_core.coordinator
-------------------------
EnergyVaultCoordinator: the operation surface the UI calls.

- create_record(): validate, encrypt, submit, confirm, update totals
- decrypt_record(): read handle, load-or-sign authorization, user-decrypt

Each operation holds its single-flight slot for its whole lifetime and
threads a StalenessGuard through every await. Failures become a status
message plus a notifier call; stale results are dropped without either.
"""

from __future__ import annotations
from decimal import Decimal, DecimalException, ROUND_HALF_UP
from typing import Optional, Union

from .constants import UINT32_MAX, VALUE_SCALE
from .deployments import VaultDescriptor
from .engine import EncryptionEngine
from .errors import NotReadyError, PowerKeyError, RemoteUnavailable, StaleAbort, ValidationError
from .flight import OperationKind, Running, SingleFlight
from .guard import StalenessGuard
from .ledger import LedgerClient, classify_remote_error
from .logger import get_logger
from .models import LedgerOperation, RecordKind
from .session import SessionContext
from .signature import DecryptionSignatureManager

log = get_logger("powerkey.coordinator")

Number = Union[int, float, Decimal, str]

# Smallest value that rounds past uint32 once scaled
_MAX_UNSCALED = (Decimal(UINT32_MAX) + Decimal("0.5")) / VALUE_SCALE


class Notifier:
    """User-facing notifications. UIs override these; the default only logs."""

    def __init__(self):
        self.log = get_logger("powerkey.notify")

    def info(self, text: str) -> None:
        self.log.info(text)

    def success(self, text: str) -> None:
        self.log.info(text)

    def error(self, text: str) -> None:
        self.log.warning(text)


def scale_value(value: Number) -> int:
    """Fixed-point encode a kWh value to one decimal digit; must fit uint32."""
    if isinstance(value, bool):
        raise ValidationError("Invalid value")
    try:
        d = Decimal(str(value))
    except (DecimalException, ValueError):
        raise ValidationError("Invalid value")
    if not d.is_finite() or d < 0:
        raise ValidationError("Invalid value")
    if d >= _MAX_UNSCALED:
        raise ValidationError("Value too large: must fit in uint32")

    return int((d * VALUE_SCALE).to_integral_value(rounding=ROUND_HALF_UP))


def _record_kind(kind: Union[RecordKind, str]) -> RecordKind:
    try:
        return RecordKind(kind)
    except ValueError:
        raise ValidationError(f"Unknown record kind {kind!r}")


class EnergyVaultCoordinator:

    def __init__(self, session: SessionContext, ledger: LedgerClient, engine: Optional[EncryptionEngine],
                 signatures: DecryptionSignatureManager, notifier: Optional[Notifier] = None):
        self.session = session
        self.ledger = ledger
        self.engine = engine
        self.signatures = signatures
        self.notifier = notifier or Notifier()
        self.flight = SingleFlight()

        self.total_generation = Decimal(0)
        self.total_consumption = Decimal(0)
        self.status_message = ""

        session.on_descriptor_change(self._on_descriptor_change)
        self._on_descriptor_change(session.descriptor)

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------
    @property
    def descriptor(self) -> VaultDescriptor:
        return self.session.descriptor

    @property
    def deployment_address(self) -> Optional[str]:
        return self.descriptor.address

    @property
    def is_deployed(self) -> Optional[bool]:
        if self.session.network_id is None:
            return None
        return self.descriptor.is_deployed

    @property
    def is_loading(self) -> bool:
        return self.flight.is_running(OperationKind.CREATE)

    @property
    def is_decrypting(self) -> bool:
        return self.flight.is_running(OperationKind.DECRYPT)

    @property
    def decrypting_id(self) -> Optional[str]:
        state = self.flight.state(OperationKind.DECRYPT)
        return state.subject if isinstance(state, Running) else None

    @property
    def can_create_record(self) -> bool:
        return self._ready() and not self.is_loading

    @property
    def can_decrypt(self) -> bool:
        return self._ready() and not self.is_loading and not self.is_decrypting

    def _ready(self) -> bool:
        return self.descriptor.is_deployed and self.engine is not None and self.session.signer is not None

    def _require_ready(self) -> None:
        if not self._ready():
            raise NotReadyError()

    def _on_descriptor_change(self, descriptor: VaultDescriptor) -> None:
        if not descriptor.is_deployed:
            self.status_message = f"EnergyVault deployment not found for chainId={self.session.network_id}."

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    async def create_record(self, kind: Union[RecordKind, str], source: str, value: Number) -> Optional[str]:
        guard = StalenessGuard(self.session, "createRecord")
        if not self.flight.try_acquire(OperationKind.CREATE, guard.snapshot):
            log.info("[CREATE] rejected: create already in flight")
            return None

        try:
            self._require_ready()
            kind = _record_kind(kind)
            scaled = scale_value(value)

            address, signer = guard.address, self.session.signer
            self.status_message = "Encrypting and submitting record..."
            log.info(f"[CREATE] {kind.value} source={source!r} scaled={scaled} identity={signer.identity_id}")

            enc = await guard.step(
                lambda: self.engine.build_encrypted_input(address, signer.identity_id, scaled)
            )
            tx = await self.ledger.submit_write(
                address, signer.identity_id, LedgerOperation.create_for(kind), source, enc.handle, enc.proof
            )
            self.status_message = f"Waiting tx {tx.tx_hash}..."
            self.notifier.info("Transaction submitted, waiting for confirmation...")

            receipt = await guard.step(lambda: self.ledger.await_confirmation(tx))

            self._add_total(kind, Decimal(str(value)))
            self.status_message = "Record created successfully"
            self.notifier.success(f"{kind.value.capitalize()} record created!")
            log.info(f"[CREATE] confirmed record={receipt.record_id} tx={receipt.tx_hash}")
            return receipt.record_id
        except StaleAbort as e:
            self._discard(e)
            return None
        except Exception as e:
            self._report(classify_remote_error(e), "createRecord failed")
            return None
        finally:
            self.flight.release(OperationKind.CREATE)

    def _add_total(self, kind: RecordKind, value: Decimal) -> None:
        if kind is RecordKind.GENERATION:
            self.total_generation += value
        else:
            self.total_consumption += value

    # ------------------------------------------------------------------
    # Decrypt
    # ------------------------------------------------------------------
    async def decrypt_record(self, record_id: str) -> Optional[Decimal]:
        guard = StalenessGuard(self.session, "decrypt")
        if not self.flight.try_acquire(OperationKind.DECRYPT, guard.snapshot, subject=record_id):
            log.info(f"[DECRYPT] rejected record={record_id}: decrypt already in flight")
            return None

        try:
            self._require_ready()

            address, signer = guard.address, self.session.signer
            self.status_message = "Decrypting record..."
            log.info(f"[DECRYPT] record={record_id} identity={signer.identity_id}")

            handle = await guard.step(lambda: self.ledger.read_encrypted_value(address, record_id))
            auth = await guard.step(lambda: self.signatures.ensure_authorization([address], signer))
            clear = await guard.step(lambda: self.engine.user_decrypt([(handle, address)], auth))

            value = Decimal(int(clear[handle])) / VALUE_SCALE
            self.status_message = f"Record decrypted: {value} kWh"
            self.notifier.success("Record decrypted successfully!")
            return value
        except StaleAbort as e:
            self._discard(e)
            return None
        except Exception as e:
            self._report(classify_remote_error(e), "Decrypt failed")
            return None
        finally:
            self.flight.release(OperationKind.DECRYPT)

    # ------------------------------------------------------------------
    # Outcome reporting
    # ------------------------------------------------------------------
    def _discard(self, abort: StaleAbort) -> None:
        self.status_message = abort.message
        log.info(f"[STALE] {abort.message}")

    def _report(self, err: PowerKeyError, prefix: str) -> None:
        if isinstance(err, RemoteUnavailable):
            self.status_message = f"{prefix}: Wallet RPC unreachable."
        else:
            self.status_message = f"{prefix}: {err.message}"
        log.warning(f"[{err.__class__.__name__}] {self.status_message}")
        self.notifier.error(err.message)


def coordinator_from_env(network_id: Optional[int] = None, signer=None,
                         notifier: Optional[Notifier] = None) -> EnergyVaultCoordinator:
    """
    Wire a coordinator from POWERKEY_* environment settings.

    The local ledger and the engine must share state, so "local" mode builds
    one LocalVaultEngine and hands it to both.
    """
    from .engine import LocalVaultEngine
    from .ledger import ledger_factory
    from .session import init_session
    from .storage import load_signature_store

    engine = LocalVaultEngine()
    session = init_session(network_id=network_id, signer=signer)
    signatures = DecryptionSignatureManager(load_signature_store(), engine)
    return EnergyVaultCoordinator(session, ledger_factory(engine), engine, signatures, notifier=notifier)
