import asyncio
from collections.abc import AsyncIterator, Iterable
from typing import Any

import pytest

from dexwatch.core.models import RawLog
from dexwatch.decoding.schemas import SWAP_V2, SWAP_V3
from dexwatch.decoding.specs import EventSchema

V2_POOL = "0xb4e16d0168e52d35cacd2c6185b44281ec28c9dc"
V3_POOL = "0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640"
SENDER = "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"
RECIPIENT = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"


# ---- test-only ABI encoder (inverse of the decoder) ----


def encode_word(value: int | str, signed: bool = False) -> bytes:
    if isinstance(value, str):
        return bytes(12) + bytes.fromhex(value[2:])
    return value.to_bytes(32, "big", signed=signed)


def encode_log(schema: EventSchema, record: Any, address: str, **meta: Any) -> RawLog:
    """Lay a record out as topics + data exactly as the event would be emitted."""
    topics = [schema.topic0]
    data = b""
    for f in schema.fields:
        word = encode_word(getattr(record, f.attr), f.type.signed)
        if f.indexed:
            topics.append("0x" + word.hex())
        else:
            data += word
    return RawLog(address=address, topics=tuple(topics), data=data, **meta)


@pytest.fixture
def v2_schema() -> EventSchema:
    return SWAP_V2


@pytest.fixture
def v3_schema() -> EventSchema:
    return SWAP_V3


# ---- in-memory transport ----


class FakeSubscriber:
    """Serves pre-canned logs per address; `None` in a script means "hang forever"."""

    def __init__(self, scripts: dict[str, Iterable[RawLog | BaseException | None]]) -> None:
        self.scripts = {addr.lower(): list(items) for addr, items in scripts.items()}
        self.calls: list[tuple[str, str]] = []

    async def subscribe(self, address: str, topic0: str) -> AsyncIterator[RawLog]:
        self.calls.append((address, topic0))
        for item in self.scripts[address.lower()]:
            await asyncio.sleep(0)
            if item is None:
                await asyncio.Event().wait()
            elif isinstance(item, BaseException):
                raise item
            else:
                yield item


@pytest.fixture
def fake_subscriber_cls() -> type[FakeSubscriber]:
    return FakeSubscriber
