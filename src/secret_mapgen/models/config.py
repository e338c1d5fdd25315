"""Configuration models for the client and deployer."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class GasConfig:
    """Fixed gas ceilings per transaction kind."""

    upload: int = 4_000_000  # store_code is bound by the wasm size
    instantiate: int = 400_000
    generate: int = 3_000_000
    clear: int = 200_000
    increment: int = 100_000
    reset: int = 100_000

    def for_action(self, kind: str) -> int:
        try:
            return int(getattr(self, kind))
        except AttributeError:
            raise KeyError(f"no gas ceiling configured for action '{kind}'") from None


@dataclass
class ClientConfig:
    """Complete client configuration."""

    # Network
    chain_id: str = "pulsar-3"
    lcd_url: str = "https://api.pulsar3.scrttestnet.com"
    tx_poll_interval: float = 1.0  # seconds between tx_info polls
    tx_commit_timeout: float = 60.0

    # Wallet
    mnemonic: str = ""  # loaded from env var SECRET_MAPGEN_MNEMONIC

    # Deploy
    deployment_path: str = "latest-deployment.json"
    wasm_path: str = "contract.wasm.gz"
    label_prefix: str = "secret raffle"
    init_count: int = 0

    # Storage
    db_path: str = "~/.secret_mapgen/state.db"

    # Logging
    log_level: str = "info"

    gas: GasConfig = field(default_factory=GasConfig)
