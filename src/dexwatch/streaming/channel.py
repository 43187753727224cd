"""One contract + one event as a lazy, unbounded stream of raw logs."""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import AsyncIterator

from dexwatch.core.interfaces import ILogSubscriber
from dexwatch.core.models import RawLog
from dexwatch.decoding.specs import EventSchema

logger = logging.getLogger(__name__)


class RedeliveryFilter:
    """Remember the last `window` `(tx_hash, log_index)` keys seen.

    Logs without both fields cannot be identified and always pass.
    """

    def __init__(self, window: int) -> None:
        if window <= 0:
            raise ValueError("window must be positive")
        self.window = window
        self._seen: OrderedDict[tuple[str, int], None] = OrderedDict()

    def is_duplicate(self, raw: RawLog) -> bool:
        key = raw.dedup_key
        if key is None:
            return False
        if key in self._seen:
            self._seen.move_to_end(key)
            return True
        self._seen[key] = None
        if len(self._seen) > self.window:
            self._seen.popitem(last=False)
        return False


class SubscriptionChannel:
    """Async iterable of `RawLog` for one address and one event schema.

    Each iteration issues one `subscribe` call on the transport; the channel
    itself never retries. When the transport ends, iteration ends. Transport
    errors (`SubscriptionError`) propagate to the consumer unchanged.
    """

    def __init__(
        self,
        subscriber: ILogSubscriber,
        address: str,
        schema: EventSchema,
        *,
        dedup_window: int = 0,
    ) -> None:
        self.subscriber = subscriber
        self.address = address
        self.schema = schema
        self.dedup_window = dedup_window

    def __aiter__(self) -> AsyncIterator[RawLog]:
        return self._iter()

    async def _iter(self) -> AsyncIterator[RawLog]:
        seen = RedeliveryFilter(self.dedup_window) if self.dedup_window > 0 else None
        async for raw in self.subscriber.subscribe(self.address, self.schema.topic0):
            if seen is not None and seen.is_duplicate(raw):
                logger.info("skipping redelivered log %s#%s", raw.tx_hash, raw.log_index)
                continue
            yield raw

    def __repr__(self) -> str:
        return f"SubscriptionChannel({self.schema.name} @ {self.address})"
