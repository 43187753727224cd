from __future__ import annotations

from .core.errors import DexwatchError, FixedPointError, SchemaError, SubscriptionError
from .core.models import DecodedEvent, DecodeFailure, DecodeFailureReason, RawLog, SwapV2, SwapV3
from .decoding.decoder import decode_log
from .decoding.registry_builder import schema_from_signature
from .decoding.schemas import SWAP_V2, SWAP_V2_T0, SWAP_V3, SWAP_V3_T0
from .decoding.specs import EventSchema, FieldSpec
from .formatting import format_fixed_point, format_signed_fixed_point
from .streaming.channel import SubscriptionChannel
from .streaming.multiplexer import DualStreamMultiplexer, MultiplexOutcome, StreamLoop

__all__ = [
    "DexwatchError",
    "FixedPointError",
    "SchemaError",
    "SubscriptionError",
    "DecodedEvent",
    "DecodeFailure",
    "DecodeFailureReason",
    "RawLog",
    "SwapV2",
    "SwapV3",
    "decode_log",
    "schema_from_signature",
    "SWAP_V2",
    "SWAP_V2_T0",
    "SWAP_V3",
    "SWAP_V3_T0",
    "EventSchema",
    "FieldSpec",
    "format_fixed_point",
    "format_signed_fixed_point",
    "SubscriptionChannel",
    "DualStreamMultiplexer",
    "MultiplexOutcome",
    "StreamLoop",
]
