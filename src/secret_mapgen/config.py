"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from secret_mapgen.errors import ConfigurationError
from secret_mapgen.models.config import ClientConfig, GasConfig


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "SECRET_MAPGEN_",
) -> ClientConfig:
    """Load client configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (SECRET_MAPGEN_MNEMONIC, etc.)
        2. TOML config file
        3. Defaults from ClientConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = ClientConfig()

    # ── Network section ────────────────────────────────────
    network = raw.get("network", {})
    if v := network.get("chain_id"):
        cfg.chain_id = str(v)
    if v := network.get("lcd_url"):
        cfg.lcd_url = str(v)
    if v := network.get("tx_poll_interval"):
        cfg.tx_poll_interval = float(v)
    if v := network.get("tx_commit_timeout"):
        cfg.tx_commit_timeout = float(v)

    # ── Wallet section ─────────────────────────────────────
    wallet = raw.get("wallet", {})
    if v := wallet.get("mnemonic"):
        cfg.mnemonic = str(v)

    # ── Deploy section ─────────────────────────────────────
    deploy = raw.get("deploy", {})
    if v := deploy.get("deployment_path"):
        cfg.deployment_path = str(v)
    if v := deploy.get("wasm_path"):
        cfg.wasm_path = str(v)
    if v := deploy.get("label_prefix"):
        cfg.label_prefix = str(v)
    if (v := deploy.get("init_count")) is not None:
        cfg.init_count = int(v)

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Logging section ────────────────────────────────────
    logging_raw = raw.get("logging", {})
    if v := logging_raw.get("log_level"):
        cfg.log_level = str(v)

    # ── Gas section ────────────────────────────────────────
    gas_raw = raw.get("gas", {})
    defaults = GasConfig()
    cfg.gas = GasConfig(
        upload=int(gas_raw.get("upload", defaults.upload)),
        instantiate=int(gas_raw.get("instantiate", defaults.instantiate)),
        generate=int(gas_raw.get("generate", defaults.generate)),
        clear=int(gas_raw.get("clear", defaults.clear)),
        increment=int(gas_raw.get("increment", defaults.increment)),
        reset=int(gas_raw.get("reset", defaults.reset)),
    )

    # ── Environment variable overrides (highest priority) ──
    if mnemonic := os.environ.get(f"{env_prefix}MNEMONIC"):
        cfg.mnemonic = mnemonic
    if chain_id := os.environ.get(f"{env_prefix}CHAIN_ID"):
        cfg.chain_id = chain_id
    if lcd := os.environ.get(f"{env_prefix}LCD_URL"):
        cfg.lcd_url = lcd
    if dep := os.environ.get(f"{env_prefix}DEPLOYMENT_PATH"):
        cfg.deployment_path = dep
    if wasm := os.environ.get(f"{env_prefix}WASM_PATH"):
        cfg.wasm_path = wasm
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())
    cfg.deployment_path = str(Path(cfg.deployment_path).expanduser())
    cfg.wasm_path = str(Path(cfg.wasm_path).expanduser())

    return cfg


def require_mnemonic(cfg: ClientConfig) -> str:
    """Return the signer secret or raise ConfigurationError."""
    if not cfg.mnemonic:
        raise ConfigurationError(
            "No wallet mnemonic configured. "
            "Set SECRET_MAPGEN_MNEMONIC or [wallet] mnemonic in the config file."
        )
    return cfg.mnemonic
