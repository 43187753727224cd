import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest

from conftest import RECIPIENT, SENDER, V2_POOL, V3_POOL, FakeSubscriber, encode_log
from dexwatch.core.config import PoolConfig, WatchConfig
from dexwatch.core.errors import SubscriptionError
from dexwatch.core.models import DecodedEvent, DecodeFailure, DecodeFailureReason, RawLog, SwapV2, SwapV3
from dexwatch.decoding.schemas import SWAP_V2, SWAP_V3
from dexwatch.streaming.channel import RedeliveryFilter, SubscriptionChannel
from dexwatch.streaming.multiplexer import (
    DualStreamMultiplexer,
    LoopState,
    MultiplexState,
    StreamLoop,
    build_multiplexer,
)


def _v2(i: int, **meta: Any) -> RawLog:
    record = SwapV2(SENDER, i, 0, 0, i * 2, RECIPIENT)
    return encode_log(SWAP_V2, record, V2_POOL, **meta)


def _v3(i: int, **meta: Any) -> RawLog:
    record = SwapV3(SENDER, RECIPIENT, -i, i, 1 << 96, 10**18, -i)
    return encode_log(SWAP_V3, record, V3_POOL, **meta)


def _loops(subscriber: FakeSubscriber) -> tuple[StreamLoop, list[DecodedEvent], StreamLoop, list[DecodedEvent]]:
    seen_v2: list[DecodedEvent] = []
    seen_v3: list[DecodedEvent] = []
    v2 = StreamLoop("v2", SubscriptionChannel(subscriber, V2_POOL, SWAP_V2), seen_v2.append)
    v3 = StreamLoop("v3", SubscriptionChannel(subscriber, V3_POOL, SWAP_V3), seen_v3.append)
    return v2, seen_v2, v3, seen_v3


@pytest.mark.asyncio
async def test_channel_subscribes_with_schema_topic0() -> None:
    subscriber = FakeSubscriber({V2_POOL: [_v2(1), _v2(2)]})
    channel = SubscriptionChannel(subscriber, V2_POOL, SWAP_V2)

    logs = [raw async for raw in channel]

    assert logs == [_v2(1), _v2(2)]
    assert subscriber.calls == [(V2_POOL, SWAP_V2.topic0)]


@pytest.mark.asyncio
async def test_channel_propagates_transport_errors() -> None:
    subscriber = FakeSubscriber({V2_POOL: [_v2(1), SubscriptionError("link lost")]})
    channel = SubscriptionChannel(subscriber, V2_POOL, SWAP_V2)
    received = []

    with pytest.raises(SubscriptionError):
        async for raw in channel:
            received.append(raw)
    assert received == [_v2(1)]


@pytest.mark.asyncio
async def test_channel_drops_redelivered_logs_when_enabled() -> None:
    first = _v2(1, tx_hash="0xaa", log_index=3)
    second = _v2(2, tx_hash="0xaa", log_index=4)
    anonymous = _v2(3)
    subscriber = FakeSubscriber({V2_POOL: [first, second, first, anonymous, anonymous]})

    deduped = [raw async for raw in SubscriptionChannel(subscriber, V2_POOL, SWAP_V2, dedup_window=8)]
    plain = [raw async for raw in SubscriptionChannel(subscriber, V2_POOL, SWAP_V2)]

    assert deduped == [first, second, anonymous, anonymous]
    assert len(plain) == 5


def test_redelivery_filter_window_is_bounded() -> None:
    f = RedeliveryFilter(window=2)
    logs = [_v2(i, tx_hash=f"0x{i:02x}", log_index=0) for i in range(3)]
    assert [f.is_duplicate(raw) for raw in logs] == [False, False, False]
    # the oldest key fell out of the window
    assert f.is_duplicate(logs[0]) is False
    assert f.is_duplicate(logs[2]) is True
    with pytest.raises(ValueError):
        RedeliveryFilter(window=0)


@pytest.mark.asyncio
async def test_first_terminated_stream_fails_the_multiplexer() -> None:
    # v2 ends after two logs; v3 delivers one then hangs forever
    subscriber = FakeSubscriber({V2_POOL: [_v2(1), _v2(2)], V3_POOL: [_v3(7), None]})
    v2, seen_v2, v3, seen_v3 = _loops(subscriber)
    mux = DualStreamMultiplexer(v2, v3)
    assert mux.state is MultiplexState.ACTIVE

    outcome = await asyncio.wait_for(mux.run(), timeout=5)

    assert outcome.state is MultiplexState.FAILED
    assert mux.state is MultiplexState.FAILED
    assert outcome.terminated is v2
    assert outcome.cause is None
    assert outcome.survivors == [v3]
    assert "'v2' ended" in outcome.reason
    assert v2.state is LoopState.TERMINATED
    assert v3.state is LoopState.RUNNING

    assert seen_v2 == [SwapV2(SENDER, 1, 0, 0, 2, RECIPIENT), SwapV2(SENDER, 2, 0, 0, 4, RECIPIENT)]
    assert seen_v3 == [SwapV3(SENDER, RECIPIENT, -7, 7, 1 << 96, 10**18, -7)]

    await mux.shutdown()
    assert v3.state is LoopState.TERMINATED
    assert seen_v3 == [SwapV3(SENDER, RECIPIENT, -7, 7, 1 << 96, 10**18, -7)]


@pytest.mark.asyncio
async def test_transport_error_is_reported_as_cause() -> None:
    subscriber = FakeSubscriber({V2_POOL: [None], V3_POOL: [_v3(1), SubscriptionError("socket closed")]})
    v2, _, v3, seen_v3 = _loops(subscriber)
    mux = DualStreamMultiplexer(v2, v3)

    outcome = await asyncio.wait_for(mux.run(), timeout=5)
    await mux.shutdown()

    assert outcome.terminated is v3
    assert isinstance(outcome.cause, SubscriptionError)
    assert "socket closed" in outcome.reason
    assert len(seen_v3) == 1


@pytest.mark.asyncio
async def test_decode_failures_do_not_stop_the_loop() -> None:
    garbage = RawLog(address=V2_POOL, topics=(SWAP_V2.topic0,), data=b"\x00")
    foreign = _v2(5)
    foreign = RawLog(address=V3_POOL, topics=foreign.topics, data=foreign.data)
    subscriber = FakeSubscriber({V2_POOL: [garbage, foreign, _v2(1), None], V3_POOL: [_v3(1)]})
    v2, seen_v2, v3, _ = _loops(subscriber)
    mux = DualStreamMultiplexer(v2, v3)

    outcome = await asyncio.wait_for(mux.run(), timeout=5)
    # let the surviving v2 loop drain its queued logs before inspecting it
    for _ in range(10):
        await asyncio.sleep(0)
    await mux.shutdown()

    assert outcome.terminated is v3
    assert [type(e) for e in seen_v2] == [DecodeFailure, DecodeFailure, SwapV2]
    assert seen_v2[0].reason is DecodeFailureReason.TOPIC_COUNT_MISMATCH
    assert seen_v2[1].reason is DecodeFailureReason.ADDRESS_MISMATCH
    assert (v2.stats.received, v2.stats.decoded, v2.stats.failed) == (3, 1, 2)


@pytest.mark.asyncio
async def test_async_sink_is_awaited_and_its_errors_end_the_loop() -> None:
    subscriber = FakeSubscriber({V2_POOL: [_v2(1), _v2(2)], V3_POOL: [None]})
    sink = AsyncMock(side_effect=[None, RuntimeError("sink broke")])
    v2 = StreamLoop("v2", SubscriptionChannel(subscriber, V2_POOL, SWAP_V2), sink)
    v3 = StreamLoop("v3", SubscriptionChannel(subscriber, V3_POOL, SWAP_V3), lambda event: None)
    mux = DualStreamMultiplexer(v2, v3)

    outcome = await asyncio.wait_for(mux.run(), timeout=5)
    await mux.shutdown()

    assert sink.await_count == 2
    assert outcome.terminated is v2
    assert isinstance(outcome.cause, RuntimeError)


@pytest.mark.asyncio
async def test_multiplexer_runs_once() -> None:
    subscriber = FakeSubscriber({V2_POOL: [], V3_POOL: [None]})
    v2, _, v3, _ = _loops(subscriber)
    mux = DualStreamMultiplexer(v2, v3)
    await mux.run()
    with pytest.raises(RuntimeError):
        await mux.run()
    await mux.shutdown()


def test_multiplexer_requires_distinct_names() -> None:
    subscriber = FakeSubscriber({})
    v2, _, _, _ = _loops(subscriber)
    with pytest.raises(ValueError):
        DualStreamMultiplexer(v2, v2)


@pytest.mark.asyncio
async def test_build_multiplexer_wires_one_loop_per_pool() -> None:
    subscriber = FakeSubscriber({V2_POOL: [_v2(1)], V3_POOL: [None]})
    config = WatchConfig(
        v2=PoolConfig("v2", V2_POOL, SWAP_V2),
        v3=PoolConfig("v3", V3_POOL, SWAP_V3),
        dedup_window=16,
    )
    sinks: dict[str, list[DecodedEvent]] = {}

    def make_sink(pool: PoolConfig):
        return sinks.setdefault(pool.name, []).append

    mux = build_multiplexer(config, subscriber, make_sink)
    outcome = await asyncio.wait_for(mux.run(), timeout=5)
    await mux.shutdown()

    assert [loop.name for loop in mux.loops] == ["v2", "v3"]
    assert all(loop.channel.dedup_window == 16 for loop in mux.loops)
    assert outcome.terminated.name == "v2"
    assert len(sinks["v2"]) == 1
    assert sinks["v3"] == []
