"""Run two log streams side by side: subscribe → decode → sink.

Each `StreamLoop` owns its channel, its decoding and its sink; the loops
share nothing except the combined termination signal. `DualStreamMultiplexer.run`
returns as soon as *either* loop ends, reporting which one and why. The other
loop keeps running until the caller decides to `shutdown()`.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from dexwatch.core.config import PoolConfig, WatchConfig
from dexwatch.core.interfaces import EventSink, ILogSubscriber
from dexwatch.core.models import DecodedEvent, DecodeFailure, DecodeFailureReason, RawLog
from dexwatch.decoding.decoder import decode_log
from dexwatch.streaming.channel import SubscriptionChannel

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    RUNNING = "running"
    TERMINATED = "terminated"


class MultiplexState(str, Enum):
    ACTIVE = "active"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class LoopStats:
    """Per-loop counters, only ever touched by that loop's task."""

    received: int = 0
    decoded: int = 0
    failed: int = 0


# ---------------------------------------------------------------------------
# One consumption loop
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class StreamLoop:
    name: str
    channel: SubscriptionChannel
    sink: EventSink
    state: LoopState = LoopState.RUNNING
    stats: LoopStats = field(default_factory=LoopStats)

    def decode(self, raw: RawLog) -> DecodedEvent:
        """Decode one log against this loop's schema and contract address."""
        if raw.address.lower() != self.channel.address.lower():
            return DecodeFailure(
                reason=DecodeFailureReason.ADDRESS_MISMATCH,
                detail=f"emitted by {raw.address}, subscribed to {self.channel.address}",
                log=raw,
                event=self.channel.schema.name,
            )
        return decode_log(raw, self.channel.schema)

    async def run(self) -> None:
        """Consume the channel until it ends or raises.

        Decode failures go to the sink like any record and never stop the loop.
        Transport and sink exceptions propagate and end the loop.
        """
        try:
            async for raw in self.channel:
                self.stats.received += 1
                event = self.decode(raw)
                if isinstance(event, DecodeFailure):
                    self.stats.failed += 1
                else:
                    self.stats.decoded += 1
                result = self.sink(event)
                if inspect.isawaitable(result):
                    await result
        finally:
            self.state = LoopState.TERMINATED


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class MultiplexOutcome:
    """Which loop ended first, and why."""

    state: MultiplexState
    terminated: StreamLoop
    cause: BaseException | None  # None: the stream simply ended
    survivors: list[StreamLoop]

    @property
    def reason(self) -> str:
        if self.cause is None:
            return f"stream {self.terminated.name!r} ended"
        return f"stream {self.terminated.name!r} failed: {type(self.cause).__name__}: {self.cause}"


# ---------------------------------------------------------------------------
# Multiplexer
# ---------------------------------------------------------------------------


class DualStreamMultiplexer:
    """Drive two `StreamLoop`s concurrently.

    State is `ACTIVE` while both loops run and `FAILED` from the moment
    either one terminates.
    """

    def __init__(self, first: StreamLoop, second: StreamLoop) -> None:
        if first.name == second.name:
            raise ValueError("stream names must differ")
        self.loops = (first, second)
        self._tasks: dict[asyncio.Task[None], StreamLoop] = {}

    @property
    def state(self) -> MultiplexState:
        if all(loop.state is LoopState.RUNNING for loop in self.loops):
            return MultiplexState.ACTIVE
        return MultiplexState.FAILED

    async def run(self) -> MultiplexOutcome:
        """Start both loops and return when the first one terminates."""
        if self._tasks:
            raise RuntimeError("multiplexer already started")
        self._tasks = {
            asyncio.create_task(loop.run(), name=f"stream-{loop.name}"): loop for loop in self.loops
        }
        try:
            done, _ = await asyncio.wait(self._tasks, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            await self.shutdown()
            raise

        task = next(t for t in self._tasks if t in done)
        loop = self._tasks[task]
        cause = asyncio.CancelledError() if task.cancelled() else task.exception()
        outcome = MultiplexOutcome(
            state=MultiplexState.FAILED,
            terminated=loop,
            cause=cause,
            survivors=[lp for t, lp in self._tasks.items() if not t.done()],
        )
        logger.error("%s (received=%d)", outcome.reason, loop.stats.received)
        return outcome

    async def shutdown(self) -> None:
        """Cancel any loop still running and wait for all of them to finish."""
        for task in self._tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)


def build_multiplexer(
    config: WatchConfig,
    subscriber: ILogSubscriber,
    make_sink: Callable[[PoolConfig], EventSink],
) -> DualStreamMultiplexer:
    """Wire one loop per configured pool onto a shared transport."""

    def _loop(pool: PoolConfig) -> StreamLoop:
        channel = SubscriptionChannel(subscriber, pool.address, pool.schema, dedup_window=config.dedup_window)
        return StreamLoop(name=pool.name, channel=channel, sink=make_sink(pool))

    return DualStreamMultiplexer(_loop(config.v2), _loop(config.v3))
