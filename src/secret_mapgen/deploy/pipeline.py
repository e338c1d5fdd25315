"""Deployment pipeline - upload, resolve code hash, instantiate, persist."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from secret_mapgen.errors import (
    AmbiguousLogEntry,
    ChainError,
    ChainRejected,
    DeploymentError,
    MissingLogEntry,
    UnknownCodeId,
)
from secret_mapgen.interfaces.store import DeploymentStore
from secret_mapgen.models.config import GasConfig
from secret_mapgen.models.records import (
    DeploymentRecord,
    LogEntry,
    SignerIdentity,
    TxResult,
)

log = logging.getLogger(__name__)

T = TypeVar("T")

STEP_UPLOAD = "upload"
STEP_RESOLVE_HASH = "resolve_hash"
STEP_INSTANTIATE = "instantiate"
STEP_PERSIST = "persist"


def find_log_value(logs: Sequence[LogEntry], event_type: str, key: str) -> str:
    """Return the single value logged under ``event_type``/``key``.

    Repeated entries carrying the same value count as one; an absent entry
    raises MissingLogEntry and conflicting values raise AmbiguousLogEntry.
    """
    values = [e.value for e in logs if e.type == event_type and e.key == key]
    if not values:
        raise MissingLogEntry(event_type, key)
    distinct = list(dict.fromkeys(values))
    if len(distinct) > 1:
        raise AmbiguousLogEntry(event_type, key, distinct)
    return distinct[0]


def _check_tx(tx: TxResult, what: str) -> None:
    if not tx.ok:
        raise ChainRejected(
            f"{what} rejected (code {tx.code}): {tx.raw_log}",
            tx_hash=tx.tx_hash,
            code=tx.code,
            raw_log=tx.raw_log,
        )


def random_label_suffix() -> str:
    return uuid.uuid4().hex[:8]


class DeploymentPipeline:
    """Drives the strictly sequential deployment of the contract.

    Every step is an irreversible on-chain change. When a later step fails,
    the DeploymentError carries the identifiers reached so far so the
    operator can call ``resume`` instead of uploading again.
    """

    def __init__(
        self,
        store: DeploymentStore,
        gas: GasConfig | None = None,
        label_prefix: str = "secret raffle",
        label_suffix: Callable[[], str] = random_label_suffix,
    ) -> None:
        self._store = store
        self._gas = gas or GasConfig()
        self._label_prefix = label_prefix
        self._label_suffix = label_suffix

    async def deploy(
        self,
        wasm_bytes: bytes,
        signer: SignerIdentity,
        init_msg: dict[str, Any] | None = None,
    ) -> DeploymentRecord:
        """Upload ``wasm_bytes``, instantiate it, and persist the new record."""
        if not wasm_bytes:
            raise ValueError("wasm_bytes is empty")

        code_id = await self._step(STEP_UPLOAD, lambda: self._upload(wasm_bytes, signer))
        return await self.resume(code_id, signer, init_msg)

    async def resume(
        self,
        code_id: str,
        signer: SignerIdentity,
        init_msg: dict[str, Any] | None = None,
        code_hash: str | None = None,
    ) -> DeploymentRecord:
        """Finish a deployment from an already uploaded ``code_id``."""
        if code_hash is None:
            code_hash = await self._step(
                STEP_RESOLVE_HASH,
                lambda: self._resolve_hash(code_id, signer),
                code_id=code_id,
            )

        address = await self._step(
            STEP_INSTANTIATE,
            lambda: self._instantiate(code_id, code_hash, signer, init_msg or {}),
            code_id=code_id,
            code_hash=code_hash,
        )

        record = DeploymentRecord(
            code_id=code_id,
            contract_code_hash=code_hash,
            contract_address=address,
        )
        try:
            self._store.save(record)
        except OSError as exc:
            log.error("Could not persist deployment record: %s", exc)
            raise DeploymentError(
                STEP_PERSIST, exc, code_id, code_hash, contract_address=address,
            ) from exc

        log.info(
            "Deployed codeId=%s contractCodeHash=%s contractAddress=%s",
            record.code_id, record.contract_code_hash, record.contract_address,
        )
        return record

    # ── Steps ──────────────────────────────────────────────

    async def _upload(self, wasm_bytes: bytes, signer: SignerIdentity) -> str:
        log.info(
            "Uploading %d bytes of wasm from %s (gas %d)",
            len(wasm_bytes), signer.address, self._gas.upload,
        )
        tx = await signer.client.store_code(wasm_bytes, self._gas.upload)
        _check_tx(tx, "store_code")
        code_id = find_log_value(tx.logs, "message", "code_id")
        log.info("Uploaded code: codeId=%s (tx=%s)", code_id, tx.tx_hash[:16] or "?")
        return code_id

    async def _resolve_hash(self, code_id: str, signer: SignerIdentity) -> str:
        code_hash = await signer.client.code_hash_by_code_id(code_id)
        if not code_hash:
            raise UnknownCodeId(code_id)
        log.info("Resolved codeId=%s to contractCodeHash=%s", code_id, code_hash)
        return code_hash

    async def _instantiate(
        self,
        code_id: str,
        code_hash: str,
        signer: SignerIdentity,
        init_msg: dict[str, Any],
    ) -> str:
        label = f"{self._label_prefix}{self._label_suffix()}"
        log.info(
            "Instantiating codeId=%s label=%r (gas %d)",
            code_id, label, self._gas.instantiate,
        )
        tx = await signer.client.instantiate_contract(
            code_id, code_hash, init_msg, label, self._gas.instantiate,
        )
        _check_tx(tx, "instantiate_contract")
        return find_log_value(tx.logs, "message", "contract_address")

    async def _step(
        self,
        name: str,
        fn: Callable[[], Awaitable[T]],
        code_id: str | None = None,
        code_hash: str | None = None,
    ) -> T:
        """Run one step; any failure aborts the pipeline with the partial state."""
        try:
            return await fn()
        except ChainError as exc:
            log.error("Deployment step %s failed: %s", name, exc)
            raise DeploymentError(name, exc, code_id, code_hash) from exc
        except Exception as exc:
            log.error("Deployment step %s raised %s: %s", name, type(exc).__name__, exc)
            cause = ChainRejected(f"{name} failed: {exc}")
            cause.__cause__ = exc
            raise DeploymentError(name, cause, code_id, code_hash) from exc
