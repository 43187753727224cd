"""Core data models, configuration, interfaces and errors.

This package provides:
- Data models (RawLog, SwapV2, SwapV3, DecodeFailure)
- Configuration classes (Settings, PoolConfig, WatchConfig)
- Transport and sink interfaces
- The exception hierarchy
"""

from dexwatch.core.errors import DexwatchError, FixedPointError, SchemaError, SubscriptionError
from dexwatch.core.models import (
    DecodedEvent,
    DecodeFailure,
    DecodeFailureReason,
    RawLog,
    SwapRecord,
    SwapV2,
    SwapV3,
)

__all__ = [
    "DexwatchError",
    "FixedPointError",
    "SchemaError",
    "SubscriptionError",
    "DecodedEvent",
    "DecodeFailure",
    "DecodeFailureReason",
    "RawLog",
    "SwapRecord",
    "SwapV2",
    "SwapV3",
]
