"""Signer provider protocols - the wallet boundary used by SessionLifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol

from secret_mapgen.interfaces.chain import ChainClient


@dataclass(frozen=True)
class Account:
    """An account exposed by an offline signer."""

    address: str


class OfflineSigner(Protocol):
    """Signs transactions without network access."""

    async def get_accounts(self) -> list[Account]:
        ...


class SignerProvider(Protocol):
    """Wallet provider: enables a chain and hands out signers."""

    async def enable(self, chain_id: str) -> None:
        """Ask the wallet to expose ``chain_id``. May raise if the user refuses."""
        ...

    def get_offline_signer(self, chain_id: str) -> OfflineSigner:
        ...

    def get_encryption_utils(self, chain_id: str) -> Any:
        """Encryption helpers for contract messages, or None for the default."""
        ...


# (signer, address, encryption_utils) -> client signing as that address
ClientFactory = Callable[[OfflineSigner, str, Any], ChainClient]

# Returns None when no provider is installed/configured.
ProviderLocator = Callable[[], "SignerProvider | None"]
