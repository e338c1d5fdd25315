"""Shared fixtures for secret_mapgen tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from secret_mapgen.deploy.pipeline import DeploymentPipeline
from secret_mapgen.models.config import ClientConfig, GasConfig
from secret_mapgen.session.contract import ContractSession
from secret_mapgen.session.lifecycle import SessionLifecycle
from secret_mapgen.storage.sqlite import SQLitePreferenceStore

from tests.factories import TEST_ADDRESS, make_identity
from tests.mocks import (
    MemoryDeploymentStore,
    MemoryPreferenceStore,
    MockChainClient,
    MockProvider,
)

CHAIN_ID = "pulsar-3"
LCD_URL = "https://api.pulsar3.scrttestnet.com"
WASM = b"\x00asm\x01\x00\x00\x00" + b"\x00" * 64


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Secret Network testnet"
    meta["Chain ID"] = CHAIN_ID
    meta["LCD"] = LCD_URL


def make_test_config(**overrides) -> ClientConfig:
    """Build a ClientConfig suitable for testing."""
    defaults = dict(
        chain_id=CHAIN_ID,
        lcd_url=LCD_URL,
        mnemonic="",
        deployment_path="latest-deployment.json",
        db_path=":memory:",
        gas=GasConfig(),
    )
    defaults.update(overrides)
    return ClientConfig(**defaults)


@pytest.fixture
def test_config():
    return make_test_config()


@pytest.fixture
def chain():
    return MockChainClient()


@pytest.fixture
def identity(chain):
    return make_identity(chain)


@pytest.fixture
def deployment_store():
    return MemoryDeploymentStore()


@pytest.fixture
def pipeline(deployment_store):
    return DeploymentPipeline(deployment_store, GasConfig(), label_prefix="secret raffle")


@pytest.fixture
async def record(pipeline, identity):
    """A contract deployed on the mock chain with count=0."""
    return await pipeline.deploy(WASM, identity, {"count": 0})


@pytest.fixture
async def session(record, identity):
    return ContractSession(record, identity)


@pytest.fixture
async def prefs():
    """Initialized in-memory SQLitePreferenceStore."""
    s = SQLitePreferenceStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def provider():
    return MockProvider(address=TEST_ADDRESS)


@pytest.fixture
def alerts():
    return []


def make_lifecycle(provider, prefs=None, chain=None, alerts=None) -> SessionLifecycle:
    """Lifecycle whose client factory always hands out ``chain``."""
    chain = chain or MockChainClient()
    return SessionLifecycle(
        chain_id=CHAIN_ID,
        locate_provider=lambda: provider,
        client_factory=lambda signer, address, utils: chain,
        preferences=prefs if prefs is not None else MemoryPreferenceStore(),
        alert=alerts.append if alerts is not None else None,
    )


@pytest.fixture
def lifecycle(provider, chain, alerts):
    return make_lifecycle(provider, MemoryPreferenceStore(), chain, alerts)
