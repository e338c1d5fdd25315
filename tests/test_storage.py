"""Deployment record file and SQLite preference store."""

from __future__ import annotations

import json

import pytest

from secret_mapgen.errors import ConfigurationError
from secret_mapgen.models.records import DeploymentRecord
from secret_mapgen.storage.deployment import JsonDeploymentStore
from secret_mapgen.storage.sqlite import SQLitePreferenceStore

from tests.factories import CODE_HASH, CONTRACT_ADDRESS, make_record


# ── JsonDeploymentStore ───────────────────────────────────────────


def test_save_writes_camel_case_keys(tmp_path):
    path = tmp_path / "latest-deployment.json"
    JsonDeploymentStore(path).save(make_record())

    data = json.loads(path.read_text())
    assert data == {
        "codeId": "1",
        "contractCodeHash": CODE_HASH,
        "contractAddress": CONTRACT_ADDRESS,
    }


def test_load_round_trip(tmp_path):
    store = JsonDeploymentStore(tmp_path / "latest-deployment.json")
    store.save(make_record())
    assert store.load() == make_record()


def test_save_overwrites_previous_record(tmp_path):
    store = JsonDeploymentStore(tmp_path / "latest-deployment.json")
    store.save(make_record(code_id="1"))
    store.save(make_record(code_id="2", contract_address="secret1other"))

    assert store.load().code_id == "2"
    # No temp files left behind
    assert [p.name for p in tmp_path.iterdir()] == ["latest-deployment.json"]


def test_save_creates_parent_directories(tmp_path):
    store = JsonDeploymentStore(tmp_path / "nested" / "dir" / "deploy.json")
    store.save(make_record())
    assert store.path.exists()


def test_load_missing_file_returns_none(tmp_path):
    assert JsonDeploymentStore(tmp_path / "absent.json").load() is None


def test_require_missing_file_raises(tmp_path):
    with pytest.raises(ConfigurationError, match="deploy"):
        JsonDeploymentStore(tmp_path / "absent.json").require()


def test_load_invalid_json(tmp_path):
    path = tmp_path / "latest-deployment.json"
    path.write_text("{not json")
    with pytest.raises(ConfigurationError, match="not valid JSON"):
        JsonDeploymentStore(path).load()


def test_load_non_object(tmp_path):
    path = tmp_path / "latest-deployment.json"
    path.write_text("[1, 2]")
    with pytest.raises(ConfigurationError):
        JsonDeploymentStore(path).load()


def test_load_missing_fields(tmp_path):
    path = tmp_path / "latest-deployment.json"
    path.write_text(json.dumps({"codeId": "1"}))
    with pytest.raises(ConfigurationError, match="contractAddress"):
        JsonDeploymentStore(path).load()


def test_record_rejects_empty_fields():
    with pytest.raises(ConfigurationError):
        DeploymentRecord(code_id="1", contract_code_hash="", contract_address="secret1x")


# ── SQLitePreferenceStore ─────────────────────────────────────────


async def test_flag_defaults_to_false(prefs):
    assert await prefs.get_flag("wallet_auto_connect") is False


async def test_flag_round_trip(prefs):
    await prefs.set_flag("wallet_auto_connect", True)
    assert await prefs.get_flag("wallet_auto_connect") is True
    await prefs.set_flag("wallet_auto_connect", False)
    assert await prefs.get_flag("wallet_auto_connect") is False
    assert await prefs.get("wallet_auto_connect") == "false"


async def test_non_boolean_value_reads_false(prefs):
    await prefs.set("wallet_auto_connect", "yes")
    assert await prefs.get_flag("wallet_auto_connect") is False


async def test_preferences_persist_across_connections(tmp_path):
    db_path = str(tmp_path / "sub" / "state.db")
    store = SQLitePreferenceStore(db_path)
    await store.initialize()
    await store.set_flag("wallet_auto_connect", True)
    await store.close()

    reopened = SQLitePreferenceStore(db_path)
    await reopened.initialize()
    try:
        assert await reopened.get_flag("wallet_auto_connect") is True
    finally:
        await reopened.close()


def test_db_requires_initialize():
    with pytest.raises(AssertionError):
        SQLitePreferenceStore(":memory:").db
