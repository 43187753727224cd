"""Decoding utilities: ABI word access and typed word parsers."""

from __future__ import annotations

import re

from eth_utils import to_checksum_address

from .specs import AbiType

WORD_SIZE = 32

_TOPIC_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}\Z")


class WordRangeError(ValueError):
    """A word does not hold a valid value of its declared type."""


def word_at(data: bytes, i: int) -> bytes:
    """Return the i-th 32-byte ABI word. Caller guarantees `data` is long enough."""
    start = WORD_SIZE * i
    return data[start : start + WORD_SIZE]


def topic_word(topic_hex: str) -> bytes:
    """Convert a 0x-hex topic into its 32-byte word."""
    if not _TOPIC_RE.match(topic_hex):
        raise WordRangeError(f"topic is not 32 bytes of hex: {topic_hex!r}")
    return bytes.fromhex(topic_hex[-2 * WORD_SIZE :])


def parse_word(word: bytes, typ: AbiType) -> int | str:
    """Interpret one 32-byte word according to its declared type.

    - address: low 160 bits, upper 96 bits must be zero
    - uintN: unsigned, must fit in N bits
    - intN: two's complement over the full word, must fit in N bits
      (a correctly encoded intN is sign-extended to 256 bits)
    """
    if typ.kind == "address":
        if any(word[:12]):
            raise WordRangeError(f"address word has non-zero upper bytes: 0x{word.hex()}")
        return to_checksum_address("0x" + word[12:].hex())

    v = int.from_bytes(word, "big", signed=typ.signed)
    if v < typ.min_value or v > typ.max_value:
        raise WordRangeError(f"{v} does not fit in {typ.canonical}")
    return v

