"""CLI entry point for secret_mapgen."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, NoReturn

import click

from secret_mapgen.config import load_config
from secret_mapgen.deploy.pipeline import DeploymentPipeline
from secret_mapgen.errors import ConfigurationError, DeploymentError, MapgenError
from secret_mapgen.models.actions import (
    EXECUTE_ACTIONS,
    QUERY_ACTIONS,
    parse_action,
    parse_query,
)
from secret_mapgen.models.config import ClientConfig
from secret_mapgen.models.records import SignerIdentity
from secret_mapgen.secret.signer import (
    client_factory,
    identity_from_config,
    provider_locator,
)
from secret_mapgen.session.contract import ContractSession
from secret_mapgen.session.lifecycle import AUTO_CONNECT_FLAG, SessionLifecycle
from secret_mapgen.storage.deployment import JsonDeploymentStore
from secret_mapgen.storage.sqlite import SQLitePreferenceStore


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _alert(message: str) -> None:
    click.echo(f"\n!! {message}", err=True)


def _print_record(data: dict[str, str]) -> None:
    click.echo(f"  codeId:           {data.get('codeId', '(none)')}")
    click.echo(f"  contractCodeHash: {data.get('contractCodeHash', '(none)')}")
    click.echo(f"  contractAddress:  {data.get('contractAddress', '(none)')}")


def _identity(cfg: ClientConfig) -> SignerIdentity:
    try:
        return identity_from_config(cfg)
    except ConfigurationError as exc:
        _fail(str(exc))


def _lifecycle(cfg: ClientConfig, prefs: SQLitePreferenceStore) -> SessionLifecycle:
    return SessionLifecycle(
        chain_id=cfg.chain_id,
        locate_provider=provider_locator(cfg),
        client_factory=client_factory(cfg),
        preferences=prefs,
        alert=_alert,
    )


@asynccontextmanager
async def _wallet(cfg: ClientConfig) -> AsyncIterator[SessionLifecycle]:
    """Preference store + lifecycle, released on exit."""
    prefs = SQLitePreferenceStore(cfg.db_path)
    await prefs.initialize()
    lifecycle = _lifecycle(cfg, prefs)
    try:
        yield lifecycle
    finally:
        await lifecycle.shutdown()
        await prefs.close()


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """secret-mapgen - deploy and drive the map generator contract."""
    ctx.ensure_object(dict)
    cfg = load_config(config_path)
    ctx.obj["cfg"] = cfg

    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Deployment ─────────────────────────────────────────


@cli.command()
@click.option("--wasm", "wasm_path", default=None, help="Contract wasm (defaults to config wasm_path)")
@click.option("--init-count", type=int, default=None, help="Initial counter value")
@click.pass_context
def deploy(ctx: click.Context, wasm_path: str | None, init_count: int | None) -> None:
    """Upload, instantiate and record a new contract instance."""
    cfg: ClientConfig = ctx.obj["cfg"]
    path = Path(wasm_path or cfg.wasm_path)
    if not path.exists():
        _fail(f"wasm file not found: {path}")
    wasm_bytes = path.read_bytes()
    init_msg = {"count": cfg.init_count if init_count is None else init_count}

    signer = _identity(cfg)
    store = JsonDeploymentStore(cfg.deployment_path)
    pipeline = DeploymentPipeline(store, cfg.gas, cfg.label_prefix)

    async def _deploy():
        try:
            return await pipeline.deploy(wasm_bytes, signer, init_msg)
        finally:
            await signer.client.close()

    click.echo(f"Deploying {path} ({len(wasm_bytes)} bytes) to {cfg.chain_id} as {signer.address}")
    try:
        record = asyncio.run(_deploy())
    except DeploymentError as exc:
        click.echo(f"\nDeployment failed at step '{exc.step}': {exc.cause}", err=True)
        if exc.partial:
            click.echo("Reached on-chain state:", err=True)
            _print_record(exc.partial)
            if exc.code_id and not exc.contract_address:
                hint = f"secret-mapgen instantiate --code-id {exc.code_id}"
                if exc.contract_code_hash:
                    hint += f" --code-hash {exc.contract_code_hash}"
                click.echo(f"Resume with: {hint}", err=True)
        sys.exit(1)

    click.echo("Deployment successful!")
    _print_record(record.to_dict())
    click.echo(f"  Written to:       {store.path}")


@cli.command()
@click.option("--code-id", required=True, help="Already uploaded code id")
@click.option("--code-hash", default=None, help="Code hash (looked up when omitted)")
@click.option("--init-count", type=int, default=None, help="Initial counter value")
@click.pass_context
def instantiate(ctx: click.Context, code_id: str, code_hash: str | None, init_count: int | None) -> None:
    """Resume a deployment from an uploaded code id."""
    cfg: ClientConfig = ctx.obj["cfg"]
    init_msg = {"count": cfg.init_count if init_count is None else init_count}
    signer = _identity(cfg)
    store = JsonDeploymentStore(cfg.deployment_path)
    pipeline = DeploymentPipeline(store, cfg.gas, cfg.label_prefix)

    async def _resume():
        try:
            return await pipeline.resume(code_id, signer, init_msg, code_hash=code_hash)
        finally:
            await signer.client.close()

    try:
        record = asyncio.run(_resume())
    except DeploymentError as exc:
        _fail(str(exc))

    click.echo("Instantiation successful!")
    _print_record(record.to_dict())


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show configuration, deployment record and wallet preference."""
    cfg: ClientConfig = ctx.obj["cfg"]
    click.echo(f"Chain ID:   {cfg.chain_id}")
    click.echo(f"LCD URL:    {cfg.lcd_url}")
    click.echo(f"Mnemonic:   {'***configured***' if cfg.mnemonic else '(not set)'}")
    click.echo(f"DB path:    {cfg.db_path}")

    store = JsonDeploymentStore(cfg.deployment_path)
    try:
        record = store.load()
    except ConfigurationError as exc:
        click.echo(f"Deployment: INVALID ({exc})")
        record = None
    else:
        if record is None:
            click.echo(f"Deployment: (none at {store.path})")
    if record is not None:
        click.echo(f"Deployment: {store.path}")
        _print_record(record.to_dict())

    async def _pref() -> bool:
        prefs = SQLitePreferenceStore(cfg.db_path)
        await prefs.initialize()
        try:
            return await prefs.get_flag(AUTO_CONNECT_FLAG)
        finally:
            await prefs.close()

    click.echo(f"Auto-connect: {'on' if asyncio.run(_pref()) else 'off'}")


# ── Wallet ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def connect(ctx: click.Context) -> None:
    """Connect the wallet and enable auto-connect."""
    cfg: ClientConfig = ctx.obj["cfg"]

    async def _connect() -> str | None:
        async with _wallet(cfg) as lifecycle:
            if await lifecycle.connect():
                return lifecycle.address
            return None

    address = asyncio.run(_connect())
    if address is None:
        sys.exit(1)
    click.echo(f"Connected: {address}")


@cli.command()
@click.pass_context
def disconnect(ctx: click.Context) -> None:
    """Disconnect the wallet and disable auto-connect."""
    cfg: ClientConfig = ctx.obj["cfg"]

    async def _disconnect() -> None:
        async with _wallet(cfg) as lifecycle:
            await lifecycle.disconnect()

    asyncio.run(_disconnect())
    click.echo("Wallet disconnected.")


# ── Contract calls ─────────────────────────────────────


def _session_call(cfg: ClientConfig, call):
    """Run ``call(session)`` with an auto-reconnected wallet."""
    try:
        record = JsonDeploymentStore(cfg.deployment_path).require()
    except ConfigurationError as exc:
        _fail(str(exc))

    async def _run():
        async with _wallet(cfg) as lifecycle:
            session = ContractSession(record, gas=cfg.gas)
            session.attach(lifecycle)
            await lifecycle.auto_reconnect()
            if not lifecycle.is_connected:
                click.echo("Wallet not connected. Run 'secret-mapgen connect' first.", err=True)
                return None
            return await call(session)

    try:
        return asyncio.run(_run())
    except MapgenError as exc:
        _fail(str(exc))


@cli.command()
@click.argument("action", type=click.Choice(sorted(EXECUTE_ACTIONS)))
@click.option("--count", type=int, default=None, help="Value for 'reset'")
@click.option("--with-query", is_flag=True, help="Refresh the matching query afterwards")
@click.pass_context
def execute(ctx: click.Context, action: str, count: int | None, with_query: bool) -> None:
    """Submit a contract transaction (increment, reset, generate, clear)."""
    cfg: ClientConfig = ctx.obj["cfg"]
    params = {"count": count} if action == "reset" and count is not None else {}
    act = parse_action(action, **params)

    outcome = _session_call(cfg, lambda s: s.execute(act, with_query=with_query))
    if outcome is None:
        sys.exit(1)
    click.echo(f"{action} succeeded (tx={outcome.tx.tx_hash})")
    if outcome.query_error is not None:
        click.echo(f"Follow-up query failed: {outcome.query_error}", err=True)
    elif outcome.query_result is not None:
        click.echo(json.dumps(outcome.query_result, indent=2))


@cli.command()
@click.argument("kind", type=click.Choice(sorted(QUERY_ACTIONS)))
@click.option("--index", type=int, default=None, help="Map index for 'get_map'")
@click.pass_context
def query(ctx: click.Context, kind: str, index: int | None) -> None:
    """Run a read-only contract query (get_count, get_maps, get_map, get_map_count)."""
    cfg: ClientConfig = ctx.obj["cfg"]
    params = {"index": index} if kind == "get_map" and index is not None else {}
    q = parse_query(kind, **params)

    result = _session_call(cfg, lambda s: s.query(q))
    if result is None:
        sys.exit(1)
    click.echo(json.dumps(result, indent=2))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
