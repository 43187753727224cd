"""Built-in schemas for the two supported pool variants.

- `SWAP_V2`: constant-product pair `Swap`
- `SWAP_V3`: concentrated-liquidity pool `Swap`

Both are built (and validated) at import time. Their topic0 values are
pinned as constants so a drift in the signature strings is caught by tests.
"""

from __future__ import annotations

from dexwatch.core.models import SwapV2, SwapV3

from .registry_builder import schema_from_signature

SWAP_V2_T0 = "0xd78ad95fa46c994b6551d0da85fc275fe613ce37657fb8d5e3d130840159d822"
SWAP_V3_T0 = "0xc42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67"

SWAP_V2 = schema_from_signature(
    "Swap(address indexed sender, uint256 amount0In, uint256 amount1In, "
    "uint256 amount0Out, uint256 amount1Out, address indexed to)",
    SwapV2,
    renames={"to": "recipient"},
)

SWAP_V3 = schema_from_signature(
    "Swap(address indexed sender, address indexed recipient, int256 amount0, int256 amount1, "
    "uint160 sqrtPriceX96, uint128 liquidity, int24 tick)",
    SwapV3,
)
