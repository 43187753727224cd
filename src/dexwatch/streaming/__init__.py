"""Live streaming: subscription channels and the dual-stream multiplexer."""

from dexwatch.streaming.channel import RedeliveryFilter, SubscriptionChannel
from dexwatch.streaming.multiplexer import (
    DualStreamMultiplexer,
    LoopState,
    LoopStats,
    MultiplexOutcome,
    MultiplexState,
    StreamLoop,
    build_multiplexer,
)

__all__ = [
    "RedeliveryFilter",
    "SubscriptionChannel",
    "DualStreamMultiplexer",
    "LoopState",
    "LoopStats",
    "MultiplexOutcome",
    "MultiplexState",
    "StreamLoop",
    "build_multiplexer",
]
