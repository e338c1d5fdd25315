"""Deployment pipeline: upload → resolve hash → instantiate → persist."""

from __future__ import annotations

import pytest

from secret_mapgen.deploy.pipeline import DeploymentPipeline, find_log_value
from secret_mapgen.errors import (
    AmbiguousLogEntry,
    ChainRejected,
    DeploymentError,
    MissingLogEntry,
    UnknownCodeId,
)
from secret_mapgen.models.config import GasConfig
from secret_mapgen.models.records import LogEntry

from tests.conftest import WASM
from tests.factories import make_identity
from tests.mocks import MemoryDeploymentStore, MockChainClient


# ── Happy path ────────────────────────────────────────────────────


async def test_deploy_produces_complete_record(pipeline, identity, chain, deployment_store):
    record = await pipeline.deploy(WASM, identity, {"count": 0})

    assert record.code_id == "1"
    assert record.contract_code_hash == chain.code_hashes["1"]
    assert record.contract_address.startswith("secret1contract")
    for value in record.to_dict().values():
        assert isinstance(value, str) and value

    # Persisted exactly once, wholesale
    assert deployment_store.saves == [record]


async def test_deploy_steps_run_in_order_with_fixed_gas(pipeline, identity, chain):
    await pipeline.deploy(WASM, identity, {"count": 0})

    assert [c[0] for c in chain.calls] == [
        "store_code", "code_hash_by_code_id", "instantiate_contract",
    ]
    gas = GasConfig()
    assert chain.calls[0][2] == gas.upload
    assert chain.calls[2][5] == gas.instantiate
    assert gas.instantiate < gas.upload


async def test_instantiate_receives_code_id_hash_and_init_msg(pipeline, identity, chain):
    await pipeline.deploy(WASM, identity, {"count": 7})

    _, code_id, code_hash, init_msg, label, _ = chain.calls[2]
    assert code_id == "1"
    assert code_hash == chain.code_hashes["1"]
    assert init_msg == {"count": 7}
    assert label.startswith("secret raffle")


async def test_deploy_is_not_idempotent(pipeline, identity, chain, deployment_store):
    first = await pipeline.deploy(WASM, identity, {"count": 0})
    second = await pipeline.deploy(WASM, identity, {"count": 0})

    assert first.contract_address != second.contract_address
    assert first.code_id != second.code_id
    assert chain.labels[0] != chain.labels[1]

    # Latest deployment fully replaces the prior record
    assert deployment_store.record == second


async def test_label_suffix_is_injectable(identity, chain):
    suffixes = iter(["-a", "-b"])
    pipeline = DeploymentPipeline(
        MemoryDeploymentStore(), label_prefix="maps", label_suffix=lambda: next(suffixes),
    )
    await pipeline.deploy(WASM, identity)
    await pipeline.deploy(WASM, identity)

    assert chain.labels == ["maps-a", "maps-b"]


async def test_empty_wasm_rejected_before_any_call(pipeline, identity, chain):
    with pytest.raises(ValueError):
        await pipeline.deploy(b"", identity)
    assert chain.calls == []


# ── Failures ──────────────────────────────────────────────────────


async def test_missing_code_id_aborts_before_instantiation(deployment_store):
    chain = MockChainClient(omit_code_id=True)
    pipeline = DeploymentPipeline(deployment_store)

    with pytest.raises(DeploymentError) as exc_info:
        await pipeline.deploy(WASM, make_identity(chain))

    err = exc_info.value
    assert err.step == "upload"
    assert isinstance(err.cause, MissingLogEntry)
    assert err.cause.key == "code_id"
    assert err.partial == {}
    assert chain.count("code_hash_by_code_id") == 0
    assert chain.count("instantiate_contract") == 0
    assert deployment_store.saves == []


async def test_rejected_upload_is_chain_rejected(deployment_store):
    chain = MockChainClient(reject_upload=True)
    pipeline = DeploymentPipeline(deployment_store)

    with pytest.raises(DeploymentError) as exc_info:
        await pipeline.deploy(WASM, make_identity(chain))

    cause = exc_info.value.cause
    assert isinstance(cause, ChainRejected)
    assert cause.code == 11
    assert "out of gas" in cause.raw_log
    assert chain.count("instantiate_contract") == 0


async def test_unknown_code_id_surfaces_code_id(deployment_store):
    chain = MockChainClient(unknown_code=True)
    pipeline = DeploymentPipeline(deployment_store)

    with pytest.raises(DeploymentError) as exc_info:
        await pipeline.deploy(WASM, make_identity(chain))

    err = exc_info.value
    assert err.step == "resolve_hash"
    assert isinstance(err.cause, UnknownCodeId)
    assert err.partial == {"codeId": "1"}
    assert chain.count("instantiate_contract") == 0


async def test_failed_instantiation_reports_partial_state(deployment_store):
    chain = MockChainClient(reject_instantiate=True)
    pipeline = DeploymentPipeline(deployment_store)

    with pytest.raises(DeploymentError) as exc_info:
        await pipeline.deploy(WASM, make_identity(chain))

    err = exc_info.value
    assert err.step == "instantiate"
    assert isinstance(err.cause, ChainRejected)
    assert err.partial == {"codeId": "1", "contractCodeHash": chain.code_hashes["1"]}
    assert "codeId=1" in str(err)
    assert deployment_store.saves == []


async def test_missing_contract_address_is_missing_log_entry(deployment_store):
    chain = MockChainClient(omit_contract_address=True)
    pipeline = DeploymentPipeline(deployment_store)

    with pytest.raises(DeploymentError) as exc_info:
        await pipeline.deploy(WASM, make_identity(chain))

    assert exc_info.value.step == "instantiate"
    assert isinstance(exc_info.value.cause, MissingLogEntry)
    assert exc_info.value.cause.key == "contract_address"


async def test_unexpected_client_exception_is_wrapped(deployment_store):
    class Exploding(MockChainClient):
        async def store_code(self, wasm_bytes, gas_limit):
            raise ConnectionResetError("peer reset")

    pipeline = DeploymentPipeline(deployment_store)
    with pytest.raises(DeploymentError) as exc_info:
        await pipeline.deploy(WASM, make_identity(Exploding()))

    cause = exc_info.value.cause
    assert isinstance(cause, ChainRejected)
    assert isinstance(cause.__cause__, ConnectionResetError)


async def test_persist_failure_keeps_full_partial_state():
    chain = MockChainClient()
    pipeline = DeploymentPipeline(MemoryDeploymentStore(fail=True))

    with pytest.raises(DeploymentError) as exc_info:
        await pipeline.deploy(WASM, make_identity(chain))

    err = exc_info.value
    assert err.step == "persist"
    assert set(err.partial) == {"codeId", "contractCodeHash", "contractAddress"}


# ── Resume ────────────────────────────────────────────────────────


async def test_resume_instantiates_existing_code(deployment_store):
    chain = MockChainClient(reject_instantiate=True)
    pipeline = DeploymentPipeline(deployment_store)
    with pytest.raises(DeploymentError) as exc_info:
        await pipeline.deploy(WASM, make_identity(chain))

    chain.reject_instantiate = False
    partial = exc_info.value.partial
    record = await pipeline.resume(
        partial["codeId"], make_identity(chain), {"count": 0},
        code_hash=partial["contractCodeHash"],
    )

    assert record.code_id == "1"
    assert chain.count("store_code") == 1
    # Hash was supplied, so no second lookup
    assert chain.count("code_hash_by_code_id") == 1
    assert deployment_store.record == record


# ── Log extraction ────────────────────────────────────────────────


def test_find_log_value_matches_type_and_key():
    logs = [
        LogEntry("wasm", "code_id", "99"),
        LogEntry("message", "sender", "secret1abc"),
        LogEntry("message", "code_id", "42"),
    ]
    assert find_log_value(logs, "message", "code_id") == "42"


def test_find_log_value_absent_raises():
    with pytest.raises(MissingLogEntry):
        find_log_value([LogEntry("wasm", "code_id", "1")], "message", "code_id")


def test_find_log_value_duplicate_same_value_ok():
    logs = [LogEntry("message", "code_id", "5"), LogEntry("message", "code_id", "5")]
    assert find_log_value(logs, "message", "code_id") == "5"


def test_find_log_value_conflicting_values_raise():
    logs = [LogEntry("message", "code_id", "5"), LogEntry("message", "code_id", "6")]
    with pytest.raises(AmbiguousLogEntry) as exc_info:
        find_log_value(logs, "message", "code_id")
    assert exc_info.value.values == ["5", "6"]
