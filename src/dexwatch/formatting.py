"""Fixed-point rendering of on-chain integers.

Token amounts are scaled integers (`value * 10**decimals`). These helpers turn
them into exact decimal strings with integer arithmetic only: no floats and
no rounding.

Guaranteed-safe range: `0 <= decimals <= 77` and values that fit in 256 bits
(unsigned, or signed for `format_signed_fixed_point`). 10**77 is the largest
power of ten below 2**256, so the divisor always fits the same width as the
value. Inputs outside that range raise `FixedPointError`.
"""

from __future__ import annotations

from dexwatch.core.errors import FixedPointError

MAX_DECIMALS = 77
UINT256_MAX = (1 << 256) - 1
INT256_MIN = -(1 << 255)
INT256_MAX = (1 << 255) - 1


def _check_decimals(decimals: int) -> None:
    if not 0 <= decimals <= MAX_DECIMALS:
        raise FixedPointError(f"decimals must be in 0..{MAX_DECIMALS}, got {decimals}")


def format_fixed_point(value: int, decimals: int) -> str:
    """Render an unsigned 256-bit integer scaled by `10**decimals`.

    >>> format_fixed_point(1_000_000, 6)
    '1.000000'
    >>> format_fixed_point(42, 0)
    '42'

    With `decimals == 0` the fractional part is omitted entirely.
    """
    _check_decimals(decimals)
    if not 0 <= value <= UINT256_MAX:
        raise FixedPointError(f"value {value} is not an unsigned 256-bit integer")
    if decimals == 0:
        return str(value)
    whole, fraction = divmod(value, 10**decimals)
    return f"{whole}.{fraction:0{decimals}d}"


def format_signed_fixed_point(value: int, decimals: int) -> str:
    """Render a signed 256-bit integer; negative values get a leading `-`."""
    _check_decimals(decimals)
    if not INT256_MIN <= value <= INT256_MAX:
        raise FixedPointError(f"value {value} is not a signed 256-bit integer")
    text = format_fixed_point(abs(value), decimals)
    return f"-{text}" if value < 0 else text
