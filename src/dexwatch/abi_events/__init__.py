"""Load event schemas from contract ABI JSON documents.

The ABI is validated with pydantic once, at startup; anything malformed or
unsupported raises `SchemaError` before a subscription is opened.
"""

import json
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, Literal

from eth_utils.abi import event_signature_to_log_topic
from pydantic import BaseModel, ValidationError

from dexwatch.core.errors import SchemaError
from dexwatch.decoding.registry_builder import to_snake
from dexwatch.decoding.specs import EventSchema, FieldSpec, parse_abi_type


class AbiInput(BaseModel):
    indexed: bool = False
    internalType: str | None = None
    name: str
    type: str


class AbiEvent(BaseModel):
    anonymous: bool = False
    inputs: Sequence[AbiInput]
    name: str
    type: Literal["event"]


def get_event_signature(event: AbiEvent) -> str:
    """Canonical signature, with shorthand types such as `uint` widened to `uint256`."""
    return f"{event.name}({','.join(parse_abi_type(event_input.type).canonical for event_input in event.inputs)})"


def get_event_topic0(event: AbiEvent) -> str:
    return "0x" + event_signature_to_log_topic(get_event_signature(event)).hex()


AbiJson = Iterable[Mapping[str, Any]]
AbiSpec = AbiJson | Mapping[str, Any] | Path


def _load_abi(abi: AbiSpec) -> AbiJson:
    """Return the ABI entry list; compiler artifacts (`{"abi": [...]}`) are unwrapped."""
    if isinstance(abi, Path):
        try:
            abi = json.loads(abi.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise SchemaError(f"Cannot read ABI {abi}: {e}") from e
    if isinstance(abi, Mapping):
        if "abi" not in abi:
            raise SchemaError("ABI document is an object without an 'abi' key")
        abi = abi["abi"]
    if isinstance(abi, (str, bytes)) or not isinstance(abi, Iterable):
        raise SchemaError(f"ABI must be a list of entries, got {type(abi).__name__}")
    return abi


def get_events_from_abi(abi: AbiSpec) -> dict[str, AbiEvent]:
    """Return the ABI's events keyed by name."""
    events: dict[str, AbiEvent] = {}
    for entry in _load_abi(abi):
        if not isinstance(entry, Mapping):
            raise SchemaError(f"ABI entry is not an object: {entry!r}")
        if entry.get("type") != "event":
            continue
        try:
            events[entry["name"]] = AbiEvent.model_validate(entry)
        except (KeyError, ValidationError) as e:
            raise SchemaError(f"Malformed ABI event entry: {e}") from e
    return events


def get_event_schema(
    event: AbiEvent,
    record_type: type,
    renames: Mapping[str, str] | None = None,
) -> EventSchema:
    if event.anonymous:
        raise SchemaError(f"{event.name}: anonymous events have no topic0 and are not supported")
    renames = renames or {}
    fields = tuple(
        FieldSpec(
            name=event_input.name,
            indexed=event_input.indexed,
            type=parse_abi_type(event_input.type),
            attr=renames.get(event_input.name, to_snake(event_input.name)),
        )
        for event_input in event.inputs
    )
    return EventSchema(
        name=event.name,
        topic0=get_event_topic0(event),
        fields=fields,
        record_type=record_type,
    )


def load_event_schema(
    abi: AbiSpec,
    event_name: str,
    record_type: type,
    *,
    renames: Mapping[str, str] | None = None,
) -> EventSchema:
    """Build the schema for `event_name` from an ABI file or parsed JSON."""
    events = get_events_from_abi(abi)
    if event_name not in events:
        raise SchemaError(f"Event {event_name!r} not found in ABI (has: {sorted(events)})")
    return get_event_schema(events[event_name], record_type, renames)
