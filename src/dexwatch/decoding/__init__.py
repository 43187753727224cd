"""Event decoding.

This package provides:
- Event schema primitives (AbiType, FieldSpec, EventSchema)
- Schema construction from Solidity signatures
- Built-in V2 / V3 swap schemas
- Generic decoder that turns a RawLog into a typed record or a DecodeFailure
"""

from dexwatch.decoding.decoder import decode_log
from dexwatch.decoding.registry_builder import schema_from_signature, topic0_of
from dexwatch.decoding.schemas import SWAP_V2, SWAP_V3
from dexwatch.decoding.specs import AbiType, EventSchema, FieldSpec, parse_abi_type

__all__ = [
    "decode_log",
    "schema_from_signature",
    "topic0_of",
    "SWAP_V2",
    "SWAP_V3",
    "AbiType",
    "EventSchema",
    "FieldSpec",
    "parse_abi_type",
]
