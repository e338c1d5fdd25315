"""Secret Network chain client - ChainClient over secret-sdk and the LCD REST API."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

import httpx
from secret_sdk.client.lcd import AsyncLCDClient
from secret_sdk.core.wasm import MsgInstantiateContract, MsgStoreCode
from secret_sdk.exceptions import LCDResponseError
from secret_sdk.key.key import Key

from secret_mapgen.errors import ChainError
from secret_mapgen.models.records import LogEntry, TxResult

log = logging.getLogger(__name__)

# secret-sdk raises a bare Exception when CheckTx rejects a broadcast.
_BROADCAST_REJECTED = re.compile(r"failed with code (\d+)")


def flatten_logs(raw_logs: Any) -> list[LogEntry]:
    """Flatten tx logs into (type, key, value) entries.

    Accepts the flat ``{type, key, value}`` entries secret-sdk builds for
    committed transactions as well as per-message ``{events: [...]}`` logs.
    """
    if raw_logs is None:
        return []
    if not isinstance(raw_logs, (list, tuple)):
        raw_logs = [raw_logs]

    entries: list[LogEntry] = []
    for item in raw_logs:
        if isinstance(item, dict) and "type" in item and "key" in item:
            entries.append(
                LogEntry(type=str(item["type"]), key=str(item["key"]), value=str(item.get("value", "")))
            )
            continue
        events = item.get("events") if isinstance(item, dict) else getattr(item, "events", None)
        for event in events or []:
            etype = event.get("type", "")
            for attr in event.get("attributes") or []:
                entries.append(
                    LogEntry(type=etype, key=str(attr.get("key", "")), value=str(attr.get("value", "")))
                )
    return entries


def to_tx_result(res: Any) -> TxResult:
    """Convert a secret-sdk TxInfo (or broadcast result) into a TxResult."""
    raw_log = getattr(res, "raw_log", None)
    if raw_log is None:
        raw_log = getattr(res, "rawlog", "")
    return TxResult(
        tx_hash=str(getattr(res, "txhash", "") or ""),
        code=int(getattr(res, "code", 0) or 0),
        raw_log=str(raw_log or ""),
        logs=flatten_logs(getattr(res, "logs", None)),
        gas_used=getattr(res, "gas_used", None),
        data=getattr(res, "data", None),
    )


def rejected_broadcast(exc: Exception) -> TxResult | None:
    """TxResult for a broadcast the node refused, or None for other errors."""
    if type(exc) is not Exception:
        return None
    match = _BROADCAST_REJECTED.search(str(exc))
    if match is None:
        return None
    return TxResult(tx_hash="", code=int(match.group(1)), raw_log=str(exc))


class SecretChainClient:
    """ChainClient bound to one signing key.

    Transactions go through secret-sdk's async wallet, which handles
    encryption, signing and broadcasting. Broadcasts are only checked by
    the node, so every transaction method then polls ``tx_info`` until the
    transaction is committed and reports the committed result. The code
    hash lookup is a plain LCD REST call.
    """

    def __init__(
        self,
        lcd_url: str,
        chain_id: str,
        key: Key,
        http_timeout: float = 30,
        poll_interval: float = 1.0,
        commit_timeout: float = 60.0,
        lcd: AsyncLCDClient | None = None,
    ) -> None:
        self._lcd_url = lcd_url.rstrip("/")
        self._lcd = lcd or AsyncLCDClient(url=self._lcd_url, chain_id=chain_id)
        self._wallet = self._lcd.wallet(key)
        self._address = key.acc_address
        self._http_timeout = http_timeout
        self._poll_interval = poll_interval
        self._commit_timeout = commit_timeout

    @property
    def address(self) -> str:
        return self._address

    async def close(self) -> None:
        """Close the underlying aiohttp session."""
        try:
            await self._lcd.session.close()
        except Exception as exc:
            log.debug("LCD session close failed: %s", exc)

    # ── Transactions ───────────────────────────────────────

    async def store_code(self, wasm_bytes: bytes, gas_limit: int) -> TxResult:
        msg = MsgStoreCode(
            sender=self._address,
            wasm_byte_code=wasm_bytes,
            source="",
            builder="",
        )
        return await self._submit(msg, gas_limit)

    async def instantiate_contract(
        self,
        code_id: str,
        code_hash: str,
        init_msg: dict[str, Any],
        label: str,
        gas_limit: int,
    ) -> TxResult:
        msg = MsgInstantiateContract(
            sender=self._address,
            code_id=int(code_id),
            label=label,
            init_msg=init_msg,
            code_hash=code_hash,
            encryption_utils=self._lcd.encrypt_utils,
        )
        return await self._submit(msg, gas_limit)

    async def execute_contract(
        self,
        contract_address: str,
        code_hash: str,
        msg: dict[str, Any],
        gas_limit: int,
    ) -> TxResult:
        execute_msg = await self._lcd.wasm.contract_execute_msg(
            sender_address=self._address,
            contract_address=contract_address,
            handle_msg=msg,
            contract_code_hash=code_hash,
        )
        return await self._submit(execute_msg, gas_limit)

    async def wait_for_tx(self, tx_hash: str) -> TxResult:
        """Poll until ``tx_hash`` is in a block; raises ChainError on timeout."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._commit_timeout
        while True:
            try:
                info = await self._lcd.tx.tx_info(tx_hash)
            except LCDResponseError as exc:
                if loop.time() >= deadline:
                    raise ChainError(
                        f"transaction {tx_hash} not committed after {self._commit_timeout:g}s"
                    ) from exc
                log.debug("tx %s not committed yet: %s", tx_hash[:16], exc)
                await asyncio.sleep(self._poll_interval)
                continue
            return to_tx_result(info)

    async def _submit(self, msg: Any, gas_limit: int) -> TxResult:
        try:
            res = await self._wallet.create_and_broadcast_tx(msg_list=[msg], gas=gas_limit)
        except Exception as exc:
            rejected = rejected_broadcast(exc)
            if rejected is None:
                raise
            log.warning("Broadcast rejected (code %d): %s", rejected.code, rejected.raw_log)
            return rejected

        broadcast = to_tx_result(res)
        if not broadcast.ok:
            return broadcast
        log.debug("Broadcast %s, waiting for commit", broadcast.tx_hash[:16])
        return await self.wait_for_tx(broadcast.tx_hash)

    # ── Queries ────────────────────────────────────────────

    async def query_contract(
        self,
        contract_address: str,
        code_hash: str,
        query: dict[str, Any],
    ) -> Any:
        return await self._lcd.wasm.contract_query(
            contract_address, query, contract_code_hash=code_hash,
        )

    async def code_hash_by_code_id(self, code_id: str) -> str | None:
        return await fetch_code_hash(self._lcd_url, code_id, self._http_timeout)


async def fetch_code_hash(
    lcd_url: str,
    code_id: str,
    timeout: float = 30,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str | None:
    """GET /compute/v1beta1/code_hash/by_code_id/{code_id}.

    Returns None when the chain does not know the code id.
    """
    url = f"{lcd_url.rstrip('/')}/compute/v1beta1/code_hash/by_code_id/{code_id}"
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(timeout, connect=10), transport=transport,
    ) as http:
        resp = await http.get(url)
    if resp.status_code == 404:
        return None
    if resp.status_code >= 400 and "not found" in resp.text.lower():
        return None
    resp.raise_for_status()
    code_hash = resp.json().get("code_hash")
    return str(code_hash) if code_hash else None
