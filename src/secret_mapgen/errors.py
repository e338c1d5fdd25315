"""Exception taxonomy shared by the pipeline, session and lifecycle layers."""

from __future__ import annotations


class MapgenError(Exception):
    """Base class for all secret_mapgen errors."""


class ConfigurationError(MapgenError):
    """Required configuration (signer secret, deployment record) is missing or invalid."""


# ── Chain-side failures ────────────────────────────────


class ChainError(MapgenError):
    """The chain or its API answered in a way we cannot proceed from."""


class ChainRejected(ChainError):
    """A transaction was rejected or failed on-chain."""

    def __init__(
        self,
        message: str,
        tx_hash: str | None = None,
        code: int | None = None,
        raw_log: str | None = None,
    ) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash
        self.code = code
        self.raw_log = raw_log


class MissingLogEntry(ChainError):
    """An expected identifier is absent from a transaction's response log."""

    def __init__(self, event_type: str, key: str) -> None:
        super().__init__(f"no '{event_type}.{key}' entry in transaction log")
        self.event_type = event_type
        self.key = key


class AmbiguousLogEntry(ChainError):
    """Several conflicting values were logged for one event-type + key pair."""

    def __init__(self, event_type: str, key: str, values: list[str]) -> None:
        super().__init__(
            f"conflicting '{event_type}.{key}' entries in transaction log: {values}"
        )
        self.event_type = event_type
        self.key = key
        self.values = values


class UnknownCodeId(ChainError):
    """The chain reports no code hash for a code id."""

    def __init__(self, code_id: str) -> None:
        super().__init__(f"chain has no code hash for code id {code_id}")
        self.code_id = code_id


# ── Deployment ─────────────────────────────────────────


class DeploymentError(MapgenError):
    """A deployment step failed; carries whatever on-chain state was reached.

    Upload and instantiation are irreversible, so ``code_id`` and
    ``contract_code_hash`` are kept here for a manual resume.
    """

    def __init__(
        self,
        step: str,
        cause: Exception,
        code_id: str | None = None,
        contract_code_hash: str | None = None,
        contract_address: str | None = None,
    ) -> None:
        msg = f"deployment failed at {step}: {cause}"
        if code_id:
            msg += f" (codeId={code_id}"
            if contract_code_hash:
                msg += f", contractCodeHash={contract_code_hash}"
            msg += ")"
        super().__init__(msg)
        self.step = step
        self.cause = cause
        self.code_id = code_id
        self.contract_code_hash = contract_code_hash
        self.contract_address = contract_address

    @property
    def partial(self) -> dict[str, str]:
        """Identifiers produced by the steps that did succeed."""
        out: dict[str, str] = {}
        if self.code_id:
            out["codeId"] = self.code_id
        if self.contract_code_hash:
            out["contractCodeHash"] = self.contract_code_hash
        if self.contract_address:
            out["contractAddress"] = self.contract_address
        return out


# ── Session / wallet ───────────────────────────────────


class NoSigner(MapgenError):
    """No connected signer identity. Swallowed by ContractSession."""


class ExtensionMissing(MapgenError):
    """The signer provider (wallet) is not installed or not configured."""


class ConnectionRejected(MapgenError):
    """The provider refused to enable the chain or yielded no account."""
