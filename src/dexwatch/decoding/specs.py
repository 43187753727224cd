"""Event schema primitives.

Defines lightweight frozen dataclasses to describe how to decode one event:
- `AbiType`: the supported static ABI value types (address, uintN, intN)
- `FieldSpec`: one event parameter (indexed topic or data word)
- `EventSchema`: topic0, ordered fields and the record class to build

Schemas are validated once at construction; a malformed schema raises
`SchemaError` instead of failing later on every log.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from typing import Literal

from dexwatch.core.errors import SchemaError

AbiKind = Literal["address", "uint", "int"]

_INT_TYPE_RE = re.compile(r"^(u?int)(\d*)$")
_TOPIC0_RE = re.compile(r"^0x[0-9a-f]{64}$")


@dataclass(frozen=True)
class AbiType:
    """A static ABI value type that fits in one 32-byte word."""

    kind: AbiKind
    bits: int

    @property
    def signed(self) -> bool:
        return self.kind == "int"

    @property
    def canonical(self) -> str:
        return "address" if self.kind == "address" else f"{self.kind}{self.bits}"

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def __str__(self) -> str:
        return self.canonical


def parse_abi_type(type_str: str) -> AbiType:
    """Parse `address`, `uintN` or `intN` (bare `uint`/`int` mean 256 bits)."""
    t = type_str.strip()
    if t == "address":
        return AbiType("address", 160)
    m = _INT_TYPE_RE.match(t)
    if m is None:
        raise SchemaError(f"Unsupported ABI type: {type_str!r}")
    kind, width = m.groups()
    bits = int(width) if width else 256
    if bits < 8 or bits > 256 or bits % 8:
        raise SchemaError(f"Invalid integer width in ABI type: {type_str!r}")
    return AbiType(kind, bits)  # type: ignore[arg-type]


@dataclass(frozen=True)
class FieldSpec:
    """Describe one event parameter.

    `name` is the ABI parameter name (part of the event's identity);
    `attr` is the record attribute the decoded value is assigned to.
    """

    name: str
    indexed: bool
    type: AbiType
    attr: str = ""

    def __post_init__(self) -> None:
        if not self.attr:
            object.__setattr__(self, "attr", self.name)


@dataclass(frozen=True)
class EventSchema:
    """One event decoding rule: topic0 + ordered fields + record class."""

    name: str
    topic0: str  # lowercased 0x-hex keccak of the canonical signature
    fields: tuple[FieldSpec, ...]
    record_type: type
    topic_fields: tuple[FieldSpec, ...] = field(init=False, repr=False)
    data_fields: tuple[FieldSpec, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "topic0", self.topic0.lower())
        object.__setattr__(self, "fields", tuple(self.fields))
        if not _TOPIC0_RE.match(self.topic0):
            raise SchemaError(f"{self.name}: topic0 is not a 32-byte hex word: {self.topic0!r}")

        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            raise SchemaError(f"{self.name}: duplicate field names in {names}")

        if not dataclasses.is_dataclass(self.record_type):
            raise SchemaError(f"{self.name}: record type {self.record_type!r} is not a dataclass")
        record_attrs = {f.name for f in dataclasses.fields(self.record_type)}
        attrs = [f.attr for f in self.fields]
        if len(set(attrs)) != len(attrs) or set(attrs) != record_attrs:
            raise SchemaError(
                f"{self.name}: fields {sorted(attrs)} do not map onto "
                f"{self.record_type.__name__} attributes {sorted(record_attrs)}"
            )

        topic_fields = tuple(f for f in self.fields if f.indexed)
        if len(topic_fields) > 3:
            raise SchemaError(f"{self.name}: at most 3 indexed fields are allowed")
        object.__setattr__(self, "topic_fields", topic_fields)
        object.__setattr__(self, "data_fields", tuple(f for f in self.fields if not f.indexed))

    @property
    def signature(self) -> str:
        """Canonical signature, e.g. `Swap(address,uint256,...)`."""
        return f"{self.name}({','.join(f.type.canonical for f in self.fields)})"

    @property
    def expected_topics(self) -> int:
        return 1 + len(self.topic_fields)

    @property
    def expected_data_len(self) -> int:
        return 32 * len(self.data_fields)
