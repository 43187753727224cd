"""Build `EventSchema` instances from Solidity event signatures.

Example input:
  "Swap(address indexed sender, uint256 amount0In, uint256 amount1In,
        uint256 amount0Out, uint256 amount1Out, address indexed to)"
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from eth_utils import keccak

from dexwatch.core.errors import SchemaError

from .specs import EventSchema, FieldSpec, parse_abi_type

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")


def to_snake(name: str) -> str:
    """`amount0In` -> `amount0_in`, `sqrtPriceX96` -> `sqrt_price_x96`."""
    return _CAMEL_RE.sub(r"_\1", name).lower()


def topic0_of(canonical_signature: str) -> str:
    """Return the lowercased 0x-hex keccak256 of a canonical event signature."""
    return "0x" + keccak(text=canonical_signature).hex()


def _split_params(params_str: str) -> list[str]:
    """Split the parameter list by commas. Tuple types are not supported."""
    if "(" in params_str or ")" in params_str:
        raise SchemaError("Tuple parameters are not supported in event signatures")
    return [p.strip() for p in params_str.split(",") if p.strip()]


def _parse_param(p: str, fallback_name: str) -> tuple[str, str, bool]:
    """Parse one parameter fragment into (name, abi_type, indexed)."""
    tokens = p.split()
    indexed = "indexed" in tokens
    tokens = [t for t in tokens if t != "indexed"]
    if len(tokens) == 1:
        return (fallback_name, tokens[0], indexed)
    if len(tokens) == 2:
        return (tokens[1], tokens[0], indexed)
    raise SchemaError(f"Cannot parse event parameter: {p!r}")


def parse_signature(
    signature: str,
    renames: Mapping[str, str] | None = None,
) -> tuple[str, tuple[FieldSpec, ...]]:
    """Split a Solidity event signature into its name and ordered field specs.

    Record attributes default to the snake_case form of each parameter name;
    `renames` maps parameter names to explicit attribute names.
    """
    sig = signature.strip()
    open_paren = sig.find("(")
    close_paren = sig.rfind(")")
    if open_paren <= 0 or close_paren < open_paren or sig[close_paren + 1 :].strip():
        raise SchemaError(f"Invalid event signature: {signature!r}")
    name = sig[:open_paren].strip()
    renames = renames or {}

    fields: list[FieldSpec] = []
    for i, part in enumerate(_split_params(sig[open_paren + 1 : close_paren])):
        p_name, p_type, indexed = _parse_param(part, fallback_name=f"arg{i}")
        fields.append(
            FieldSpec(
                name=p_name,
                indexed=indexed,
                type=parse_abi_type(p_type),
                attr=renames.get(p_name, to_snake(p_name)),
            )
        )

    return name, tuple(fields)


def canonical_signature(name: str, fields: tuple[FieldSpec, ...]) -> str:
    return f"{name}({','.join(f.type.canonical for f in fields)})"


def schema_from_signature(
    signature: str,
    record_type: type,
    *,
    renames: Mapping[str, str] | None = None,
) -> EventSchema:
    """Build an EventSchema from a Solidity event signature string."""
    name, fields = parse_signature(signature, renames)
    return EventSchema(
        name=name,
        topic0=topic0_of(canonical_signature(name, fields)),
        fields=fields,
        record_type=record_type,
    )
