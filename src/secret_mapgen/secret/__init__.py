"""Secret Network integration: chain client and wallet provider."""

from secret_mapgen.secret.client import SecretChainClient, fetch_code_hash
from secret_mapgen.secret.signer import (
    MnemonicWalletProvider,
    client_factory,
    identity_from_config,
    provider_locator,
)

__all__ = [
    "SecretChainClient", "fetch_code_hash",
    "MnemonicWalletProvider", "client_factory", "identity_from_config", "provider_locator",
]
