"""ChainClient protocol - the narrow surface consumed from the network client."""

from __future__ import annotations

from typing import Any, Protocol

from secret_mapgen.models.records import TxResult


class ChainClient(Protocol):
    """Signer-bound client for the compute module of a Secret Network chain.

    Transaction methods return a TxResult whether or not the chain accepted
    the transaction; callers inspect ``TxResult.code``.
    """

    async def store_code(self, wasm_bytes: bytes, gas_limit: int) -> TxResult:
        """Upload contract bytecode."""
        ...

    async def code_hash_by_code_id(self, code_id: str) -> str | None:
        """Return the code hash for an uploaded code id, or None if unknown."""
        ...

    async def instantiate_contract(
        self,
        code_id: str,
        code_hash: str,
        init_msg: dict[str, Any],
        label: str,
        gas_limit: int,
    ) -> TxResult:
        """Create a contract instance from uploaded code."""
        ...

    async def execute_contract(
        self,
        contract_address: str,
        code_hash: str,
        msg: dict[str, Any],
        gas_limit: int,
    ) -> TxResult:
        """Submit a mutating call to a contract instance."""
        ...

    async def query_contract(
        self,
        contract_address: str,
        code_hash: str,
        query: dict[str, Any],
    ) -> Any:
        """Run a read-only query and return the decoded JSON answer."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
