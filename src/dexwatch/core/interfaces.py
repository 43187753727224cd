from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Protocol, runtime_checkable

from dexwatch.core.models import DecodedEvent, RawLog


# ---------------------------------------------------------------------------
# ILogSubscriber
# ---------------------------------------------------------------------------

@runtime_checkable
class ILogSubscriber(Protocol):
    """
    Abstract source of live EVM logs.

    Domain expectations:
    - `subscribe` returns an async iterator of RawLog for one contract address
      and one topic0, in the order the node delivers them.
    - It raises SubscriptionError if the subscription cannot be established.
    - When the underlying link ends, the iterator ends. It never reconnects on
      its own; a new subscription is a new `subscribe` call.
    - Logs may be redelivered after a reconnect; de-duplication is the
      consumer's choice.
    """

    def subscribe(self, address: str, topic0: str) -> AsyncIterator[RawLog]:
        """
        Implementations:
        - WebSocketSubscriber (eth_subscribe "logs")
        - PollingSubscriber (eth_newFilter + eth_getFilterChanges over HTTP)
        - In-memory fakes for testing
        """
        ...


# ---------------------------------------------------------------------------
# EventSink
# ---------------------------------------------------------------------------

# Called once per decoded log with the record or the DecodeFailure.
# May be a plain function or a coroutine function.
EventSink = Callable[[DecodedEvent], Awaitable[None] | None]
