"""Protocol interfaces for all secret_mapgen boundaries."""

from secret_mapgen.interfaces.chain import ChainClient
from secret_mapgen.interfaces.signer import (
    Account,
    ClientFactory,
    OfflineSigner,
    ProviderLocator,
    SignerProvider,
)
from secret_mapgen.interfaces.store import DeploymentStore, PreferenceStore

__all__ = [
    "ChainClient",
    "Account", "ClientFactory", "OfflineSigner", "ProviderLocator", "SignerProvider",
    "DeploymentStore", "PreferenceStore",
]
