"""Tier 2 gate tests: LCD health and code hash lookup."""

from __future__ import annotations

import pytest

from secret_mapgen.secret.client import fetch_code_hash
from tests.tier2.conftest import KNOWN_CODE_ID, LCD_URL

pytestmark = pytest.mark.testnet


async def test_node_reports_network(testnet_reachable):
    network = testnet_reachable["default_node_info"]["network"]
    assert network


async def test_known_code_id_has_hash(testnet_reachable):
    code_hash = await fetch_code_hash(LCD_URL, KNOWN_CODE_ID)
    assert code_hash is not None
    assert len(code_hash) == 64
    int(code_hash, 16)


async def test_unknown_code_id_returns_none(testnet_reachable):
    assert await fetch_code_hash(LCD_URL, "999999999") is None
