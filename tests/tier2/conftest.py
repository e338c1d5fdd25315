"""Tier 2 fixtures: read-only checks against the public Secret testnet LCD."""

from __future__ import annotations

import os

import httpx
import pytest

from tests.conftest import LCD_URL as DEFAULT_LCD_URL

LCD_URL = os.environ.get("SECRET_MAPGEN_LCD_URL", DEFAULT_LCD_URL)

# Code id 1 exists on every long-lived Secret testnet.
KNOWN_CODE_ID = os.environ.get("SECRET_MAPGEN_KNOWN_CODE_ID", "1")


@pytest.fixture(scope="session")
def testnet_reachable():
    """Gate: skip all tier2 tests if the LCD is unreachable."""
    try:
        r = httpx.get(f"{LCD_URL}/cosmos/base/tendermint/v1beta1/node_info", timeout=10)
    except httpx.HTTPError as exc:
        pytest.skip(f"Secret testnet LCD unreachable: {exc}")
    if r.status_code != 200:
        pytest.skip(f"Secret testnet LCD not healthy: HTTP {r.status_code}")
    return r.json()
