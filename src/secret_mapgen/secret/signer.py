"""Mnemonic-backed wallet provider for the SessionLifecycle signer boundary."""

from __future__ import annotations

import logging
from typing import Any, Callable

from secret_sdk.key.mnemonic import MnemonicKey

from secret_mapgen.config import require_mnemonic
from secret_mapgen.errors import ConnectionRejected
from secret_mapgen.interfaces.chain import ChainClient
from secret_mapgen.interfaces.signer import Account
from secret_mapgen.models.config import ClientConfig
from secret_mapgen.models.records import SignerIdentity
from secret_mapgen.secret.client import SecretChainClient

log = logging.getLogger(__name__)


class MnemonicSigner:
    """Offline signer over a single mnemonic-derived key."""

    def __init__(self, key: MnemonicKey) -> None:
        self.key = key

    async def get_accounts(self) -> list[Account]:
        return [Account(address=self.key.acc_address)]


class MnemonicWalletProvider:
    """Local stand-in for a browser wallet: one key, one enabled chain."""

    def __init__(self, mnemonic: str, chain_id: str) -> None:
        self._mnemonic = mnemonic
        self._chain_id = chain_id
        self._key: MnemonicKey | None = None

    async def enable(self, chain_id: str) -> None:
        if chain_id != self._chain_id:
            raise ConnectionRejected(
                f"wallet is configured for {self._chain_id}, not {chain_id}"
            )
        if self._key is None:
            try:
                self._key = MnemonicKey(mnemonic=self._mnemonic)
            except Exception as exc:
                raise ConnectionRejected(f"invalid mnemonic: {exc}") from exc
        log.debug("Enabled %s for %s", chain_id, self._key.acc_address)

    def get_offline_signer(self, chain_id: str) -> MnemonicSigner:
        if self._key is None or chain_id != self._chain_id:
            raise ConnectionRejected(f"chain {chain_id} is not enabled")
        return MnemonicSigner(self._key)

    def get_encryption_utils(self, chain_id: str) -> Any:
        # secret-sdk derives the encryption seed from the LCD client itself.
        return None


def provider_locator(cfg: ClientConfig) -> Callable[[], MnemonicWalletProvider | None]:
    """A locator that finds no provider when no mnemonic is configured."""

    def _locate() -> MnemonicWalletProvider | None:
        if not cfg.mnemonic:
            return None
        return MnemonicWalletProvider(cfg.mnemonic, cfg.chain_id)

    return _locate


def client_factory(cfg: ClientConfig) -> Callable[[MnemonicSigner, str, Any], ChainClient]:
    def _build(signer: MnemonicSigner, address: str, encryption_utils: Any) -> ChainClient:
        return _chain_client(cfg, signer.key)

    return _build


def identity_from_config(cfg: ClientConfig) -> SignerIdentity:
    """Signer identity for offline tooling (deploy) straight from the mnemonic."""
    key = MnemonicKey(mnemonic=require_mnemonic(cfg))
    client = _chain_client(cfg, key)
    return SignerIdentity(address=key.acc_address, client=client)


def _chain_client(cfg: ClientConfig, key: MnemonicKey) -> SecretChainClient:
    return SecretChainClient(
        cfg.lcd_url,
        cfg.chain_id,
        key,
        poll_interval=cfg.tx_poll_interval,
        commit_timeout=cfg.tx_commit_timeout,
    )
