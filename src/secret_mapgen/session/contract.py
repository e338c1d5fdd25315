"""Contract session - execute/query against the deployed instance."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from secret_mapgen.errors import ChainRejected, NoSigner
from secret_mapgen.models.actions import (
    ExecuteAction,
    GetCount,
    GetMapCount,
    GetMaps,
    QueryAction,
)
from secret_mapgen.models.config import GasConfig
from secret_mapgen.models.records import (
    DeploymentRecord,
    ExecuteOutcome,
    SignerIdentity,
)
from secret_mapgen.session.guard import OperationGuard

if TYPE_CHECKING:
    from secret_mapgen.session.lifecycle import SessionLifecycle

log = logging.getLogger(__name__)


class ContractSession:
    """Binds a signer identity to a DeploymentRecord.

    With no signer bound, ``execute`` and ``query`` return None without
    touching the chain; callers gate their controls on connection state.
    Every mutating call runs through ``guard`` so ``guard.busy`` reflects
    in-flight transactions.
    """

    def __init__(
        self,
        record: DeploymentRecord,
        signer: SignerIdentity | None = None,
        gas: GasConfig | None = None,
        guard: OperationGuard | None = None,
    ) -> None:
        self._record = record
        self._signer = signer
        self._gas = gas or GasConfig()
        self.guard = guard or OperationGuard()
        # Last result per query kind; replaced wholesale on every answer.
        self._state: dict[str, Any] = {}

    # ── Binding ────────────────────────────────────────────

    @property
    def record(self) -> DeploymentRecord:
        return self._record

    @property
    def signer(self) -> SignerIdentity | None:
        return self._signer

    def bind(self, signer: SignerIdentity | None) -> None:
        """Swap the signer identity (None when disconnected)."""
        self._signer = signer

    def attach(self, lifecycle: SessionLifecycle) -> Callable[[], None]:
        """Follow a SessionLifecycle: rebind whenever its state changes."""
        self.bind(lifecycle.signer)
        return lifecycle.subscribe(lambda _state: self.bind(lifecycle.signer))

    def _require_signer(self) -> SignerIdentity:
        if self._signer is None:
            raise NoSigner("no connected signer")
        return self._signer

    # ── Operations ─────────────────────────────────────────

    async def execute(
        self,
        action: ExecuteAction,
        with_query: QueryAction | bool = False,
    ) -> ExecuteOutcome | None:
        """Submit ``action`` as a contract transaction.

        ``with_query`` chains a read after a successful transaction: pass a
        query, or True to refresh the query that matches the action. A
        failed follow-up query lands in ``ExecuteOutcome.query_error``.
        """
        try:
            signer = self._require_signer()
        except NoSigner:
            log.debug("execute(%s) skipped: no signer", action.kind)
            return None

        async def _run() -> ExecuteOutcome:
            tx = await signer.client.execute_contract(
                self._record.contract_address,
                self._record.contract_code_hash,
                action.to_msg(),
                self._gas.for_action(action.kind),
            )
            if not tx.ok:
                log.error(
                    "%s rejected (code %d, tx=%s): %s",
                    action.kind, tx.code, tx.tx_hash[:16] or "?", tx.raw_log,
                )
                raise ChainRejected(
                    f"{action.kind} rejected (code {tx.code}): {tx.raw_log}",
                    tx_hash=tx.tx_hash,
                    code=tx.code,
                    raw_log=tx.raw_log,
                )
            log.info("%s succeeded (tx=%s)", action.kind, tx.tx_hash[:16] or "?")
            outcome = ExecuteOutcome(tx=tx)

            follow_up = _follow_up_query(action.kind, with_query)
            if follow_up is not None:
                try:
                    outcome.query_result = await self.query(follow_up)
                except Exception as exc:
                    log.warning(
                        "Follow-up %s after %s failed: %s", follow_up.kind, action.kind, exc,
                    )
                    outcome.query_error = exc
            return outcome

        return await self.guard.run(_run)

    async def query(self, action: QueryAction) -> Any:
        """Run a read-only query; the answer replaces the stored one for its kind."""
        try:
            signer = self._require_signer()
        except NoSigner:
            log.debug("query(%s) skipped: no signer", action.kind)
            return None

        result = await signer.client.query_contract(
            self._record.contract_address,
            self._record.contract_code_hash,
            action.to_msg(),
        )
        self._state[action.kind] = result
        return result

    # ── State ──────────────────────────────────────────────

    @property
    def state(self) -> dict[str, Any]:
        return dict(self._state)

    def last(self, kind: str) -> Any:
        return self._state.get(kind)

    @property
    def count(self) -> int | None:
        resp = self._state.get(GetCount.kind)
        return resp.get("count") if isinstance(resp, dict) else None

    @property
    def maps(self) -> list[str]:
        resp = self._state.get(GetMaps.kind)
        if isinstance(resp, dict):
            return list(resp.get("maps") or [])
        return []

    @property
    def map_count(self) -> int | None:
        resp = self._state.get(GetMapCount.kind)
        return resp.get("count") if isinstance(resp, dict) else None


# Query that shows the effect of each action.
_REFRESH_QUERIES: dict[str, QueryAction] = {
    "increment": GetCount(),
    "reset": GetCount(),
    "generate": GetMaps(),
    "clear": GetMaps(),
}


def _follow_up_query(kind: str, with_query: QueryAction | bool) -> QueryAction | None:
    if with_query is True:
        return _REFRESH_QUERIES.get(kind)
    if with_query is False or with_query is None:
        return None
    return with_query
