"""Core data models: raw logs in, typed swap records (or failures) out.

This module defines:
- `RawLog`: one log as delivered by the transport, minimally normalized.
- `SwapV2` / `SwapV3`: typed records for the two pool variants.
- `DecodeFailure`: why a log could not be turned into a record.
- `DecodedEvent`: the tagged union handed to sinks.

Design notes
------------
- Records are frozen and created per log; nothing here is shared between
  streams or retained after the sink returns.
- Integers stay Python ints (arbitrary precision), so uint256/int256 values
  never lose bits. Addresses are EIP-55 checksummed strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# === Transport record ===


@dataclass(slots=True, frozen=True)
class RawLog:
    """Raw log as received from the node."""

    address: str  # lowercased 0x...
    topics: tuple[str, ...]  # lowercased 0x..., topic0 first
    data: bytes
    block_number: int | None = None
    tx_hash: str | None = None  # lowercased 0x...
    log_index: int | None = None
    removed: bool = False  # set by the node when a reorg drops the log

    @property
    def dedup_key(self) -> tuple[str, int] | None:
        """`(tx_hash, log_index)` when both are known, else None."""
        if self.tx_hash is None or self.log_index is None:
            return None
        return (self.tx_hash, self.log_index)


# === Decoded records ===


@dataclass(slots=True, frozen=True)
class SwapV2:
    """Constant-product pair `Swap` event."""

    sender: str
    amount0_in: int
    amount1_in: int
    amount0_out: int
    amount1_out: int
    recipient: str


@dataclass(slots=True, frozen=True)
class SwapV3:
    """Concentrated-liquidity pool `Swap` event.

    `amount0` / `amount1` are signed from the pool's point of view: positive
    means the pool received the token, negative means it paid it out.
    """

    sender: str
    recipient: str
    amount0: int
    amount1: int
    sqrt_price_x96: int
    liquidity: int
    tick: int


SwapRecord = SwapV2 | SwapV3


# === Failures ===


class DecodeFailureReason(str, Enum):
    SIGNATURE_MISMATCH = "signature_mismatch"
    TOPIC_COUNT_MISMATCH = "topic_count_mismatch"
    DATA_LENGTH_MISMATCH = "data_length_mismatch"
    VALUE_OUT_OF_RANGE = "value_out_of_range"
    ADDRESS_MISMATCH = "address_mismatch"


@dataclass(slots=True, frozen=True)
class DecodeFailure:
    """A log that could not be decoded; carries the log for diagnostics."""

    reason: DecodeFailureReason
    detail: str
    log: RawLog
    event: str  # schema name the log was decoded against


DecodedEvent = SwapV2 | SwapV3 | DecodeFailure
