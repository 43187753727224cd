"""WebSocket transport: `eth_subscribe` over the `websockets` library.

Each `subscribe` call opens its own connection and ends when that connection
closes. There is no reconnect loop here; a dropped link ends the stream and
whoever consumes it decides what happens next.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosedError, InvalidHandshake, InvalidURI

from dexwatch.clients.rpc import parse_rpc_log
from dexwatch.core.errors import SubscriptionError
from dexwatch.core.models import RawLog

logger = logging.getLogger(__name__)

MAX_MESSAGE_SIZE = 10 * 1024 * 1024


class WebSocketSubscriber:
    """Live log / head subscriber.

    Parameters
    ----------
    url : str
        `ws://` or `wss://` endpoint.
    timeout_s : int
        Timeout for opening the connection and for the subscription reply.
    """

    def __init__(self, url: str, *, timeout_s: int = 20) -> None:
        self.url = url
        self.timeout_s = timeout_s

    async def _subscription(self, params: list[Any]) -> AsyncIterator[dict[str, Any]]:
        """Open a connection, subscribe, and yield each notification's `result`."""
        try:
            async with websockets.connect(
                self.url,
                open_timeout=self.timeout_s,
                max_size=MAX_MESSAGE_SIZE,
            ) as ws:
                await ws.send(json.dumps({"jsonrpc": "2.0", "id": 1, "method": "eth_subscribe", "params": params}))
                try:
                    reply = json.loads(await asyncio.wait_for(ws.recv(), timeout=self.timeout_s))
                except json.JSONDecodeError as e:
                    raise SubscriptionError(f"unreadable eth_subscribe reply: {e}") from e
                if "error" in reply:
                    raise SubscriptionError(f"eth_subscribe rejected: {reply['error']}")
                sub_id = reply.get("result")
                logger.info("subscribed %s (id=%s)", params[0], sub_id)

                async for message in ws:
                    try:
                        msg = json.loads(message)
                    except json.JSONDecodeError as e:
                        logger.warning("invalid JSON message on %s: %s", sub_id, e)
                        continue
                    if msg.get("method") != "eth_subscription":
                        continue
                    body = msg.get("params") or {}
                    if body.get("subscription") != sub_id or not body.get("result"):
                        continue
                    yield body["result"]
                logger.info("subscription %s closed by peer", sub_id)
        except SubscriptionError:
            raise
        except ConnectionClosedError as e:
            raise SubscriptionError(f"connection to {self.url} lost: {e}") from e
        except (OSError, TimeoutError, InvalidHandshake, InvalidURI) as e:
            raise SubscriptionError(f"cannot subscribe via {self.url}: {type(e).__name__}: {e}") from e

    async def subscribe(self, address: str, topic0: str) -> AsyncIterator[RawLog]:
        params = ["logs", {"address": address.lower(), "topics": [topic0.lower()]}]
        async for result in self._subscription(params):
            try:
                raw = parse_rpc_log(result)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("skipping malformed log notification: %s: %s", type(e).__name__, e)
                continue
            yield raw

    async def subscribe_blocks(self) -> AsyncIterator[dict[str, Any]]:
        """Yield new block headers (`newHeads`)."""
        async for header in self._subscription(["newHeads"]):
            yield header

    async def aclose(self) -> None:
        """Nothing to release: connections live only as long as their subscription."""
