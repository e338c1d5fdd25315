"""Persisted records and chain result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from secret_mapgen.errors import ConfigurationError

_RECORD_FIELDS = ("codeId", "contractCodeHash", "contractAddress")


@dataclass(frozen=True)
class DeploymentRecord:
    """Which contract instance we talk to. Replaced, never edited."""

    code_id: str
    contract_code_hash: str
    contract_address: str

    def __post_init__(self) -> None:
        for name in ("code_id", "contract_code_hash", "contract_address"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigurationError(
                    f"deployment record field '{name}' must be a non-empty string"
                )

    def to_dict(self) -> dict[str, str]:
        return {
            "codeId": self.code_id,
            "contractCodeHash": self.contract_code_hash,
            "contractAddress": self.contract_address,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeploymentRecord:
        missing = [k for k in _RECORD_FIELDS if not data.get(k)]
        if missing:
            raise ConfigurationError(
                f"deployment record is missing {', '.join(missing)}"
            )
        return cls(
            code_id=str(data["codeId"]),
            contract_code_hash=str(data["contractCodeHash"]),
            contract_address=str(data["contractAddress"]),
        )


@dataclass(frozen=True)
class LogEntry:
    """One flattened event attribute from a transaction's response log."""

    type: str
    key: str
    value: str


@dataclass
class TxResult:
    """Outcome of a broadcast transaction as reported by the chain."""

    tx_hash: str
    code: int = 0
    raw_log: str = ""
    logs: list[LogEntry] = field(default_factory=list)
    gas_used: int | None = None
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.code == 0


@dataclass(frozen=True)
class SignerIdentity:
    """A connected account plus the chain client that signs as it."""

    address: str
    client: Any  # ChainClient bound to this address


@dataclass
class ExecuteOutcome:
    """Result of ContractSession.execute().

    The mutating transaction succeeded whenever an outcome is returned;
    a failed follow-up query is reported in ``query_error`` only.
    """

    tx: TxResult
    query_result: Any = None
    query_error: Exception | None = None
