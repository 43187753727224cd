"""HTTP JSON-RPC transport for Ethereum-compatible nodes.

This module provides:
- `parse_rpc_log`: map a JSON-RPC log object onto `RawLog`
- `PollingSubscriber`: an async log subscriber built on filter polling
  (`eth_newFilter` + `eth_getFilterChanges`) for endpoints without
  websocket support
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

import httpx

from dexwatch.core.errors import SubscriptionError
from dexwatch.core.models import RawLog

logger = logging.getLogger(__name__)


def _hex_int(v: Any) -> int | None:
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v.startswith("0x"):
        return int(v, 16)
    return None


def parse_rpc_log(rl: Mapping[str, Any]) -> RawLog:
    """Normalize one JSON-RPC log object."""
    data_hex = str(rl.get("data") or "0x")
    data_hex = data_hex[2:] if data_hex.lower().startswith("0x") else data_hex
    tx_hash = rl.get("transactionHash")
    return RawLog(
        address=str(rl["address"]).lower(),
        topics=tuple(str(t).lower() for t in rl.get("topics", [])),
        data=bytes.fromhex(data_hex),
        block_number=_hex_int(rl.get("blockNumber")),
        tx_hash=tx_hash.lower() if isinstance(tx_hash, str) else None,
        log_index=_hex_int(rl.get("logIndex")),
        removed=bool(rl.get("removed", False)),
    )


class PollingSubscriber:
    """Log subscriber over plain HTTP JSON-RPC.

    Parameters
    ----------
    url : str
        RPC endpoint URL.
    poll_interval_s : float
        Delay between `eth_getFilterChanges` calls.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    """

    def __init__(
        self,
        url: str,
        *,
        poll_interval_s: float = 2.0,
        timeout_s: int = 20,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.poll_interval_s = poll_interval_s
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            http2=True,
        )
        self._next_id = 0

    async def _call(self, method: str, params: list[Any]) -> Any:
        self._next_id += 1
        payload = {"jsonrpc": "2.0", "id": self._next_id, "method": method, "params": params}
        try:
            r = await self.client.post(self.url, json=payload)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SubscriptionError(f"{method} failed: {type(e).__name__}: {e}") from e
        if "error" in data:
            e = data["error"]
            raise SubscriptionError(f"RPC error on {method}: {e.get('code')} {e.get('message')}")
        return data.get("result")

    async def latest_block(self) -> int:
        """Return the latest block number as an int."""
        return int(await self._call("eth_blockNumber", []), 16)

    async def subscribe(self, address: str, topic0: str) -> AsyncIterator[RawLog]:
        """Yield logs for (address, topic0) as they appear, until the filter fails."""
        filter_id = await self._call(
            "eth_newFilter",
            [{"address": address.lower(), "topics": [topic0.lower()]}],
        )
        logger.info("polling filter %s installed for %s topic0=%s", filter_id, address, topic0[:10])
        try:
            while True:
                changes = await self._call("eth_getFilterChanges", [filter_id])
                for rl in changes or []:
                    try:
                        raw = parse_rpc_log(rl)
                    except (KeyError, TypeError, ValueError) as e:
                        logger.warning(
                            "skipping malformed log from filter %s: %s: %s", filter_id, type(e).__name__, e
                        )
                        continue
                    yield raw
                await asyncio.sleep(self.poll_interval_s)
        finally:
            try:
                await self._call("eth_uninstallFilter", [filter_id])
            except SubscriptionError as e:
                logger.debug("could not uninstall filter %s: %s", filter_id, e)

    async def subscribe_blocks(self) -> AsyncIterator[dict[str, Any]]:
        """Yield block headers as the chain head advances."""
        last = await self.latest_block()
        while True:
            await asyncio.sleep(self.poll_interval_s)
            head = await self.latest_block()
            for n in range(last + 1, head + 1):
                block = await self._call("eth_getBlockByNumber", [hex(n), False])
                if block is not None:
                    yield block
            last = max(last, head)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
