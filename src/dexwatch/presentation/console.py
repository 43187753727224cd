"""Rich console sink: one line per decoded swap or diagnostic."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from dexwatch.core.config import PoolConfig
from dexwatch.core.errors import FixedPointError
from dexwatch.core.models import DecodedEvent, DecodeFailure, RawLog, SwapV2, SwapV3
from dexwatch.formatting import format_fixed_point, format_signed_fixed_point


def _where(log: RawLog) -> str:
    if log.tx_hash is None:
        return log.address
    return f"{log.tx_hash}#{log.log_index} (block {log.block_number})"


class ConsoleSink:
    """Render events for one pool, scaling amounts by the pool's token decimals."""

    def __init__(self, pool: PoolConfig, console: Console | None = None) -> None:
        self.pool = pool
        self.console = console or Console()

    def __call__(self, event: DecodedEvent) -> None:
        if isinstance(event, DecodeFailure):
            self.console.print(
                f"[red]✗ {self.pool.name} decode failure[/] [bold]{event.reason.value}[/] "
                f"{escape(event.detail)} @ {_where(event.log)}",
                soft_wrap=True,
            )
            return
        try:
            line = self.render(event)
        except FixedPointError as e:
            self.console.print(
                f"[yellow]⚠ {self.pool.name} format failure[/] {escape(str(e))}: {escape(repr(event))}",
                soft_wrap=True,
            )
            return
        self.console.print(line, soft_wrap=True)

    def render(self, record: SwapV2 | SwapV3) -> str:
        d0, d1 = self.pool.decimals0, self.pool.decimals1
        if isinstance(record, SwapV2):
            return (
                f"🦄 [cyan]{self.pool.name}[/] {record.sender} → {record.recipient} "
                f"in: {format_fixed_point(record.amount0_in, d0)} / {format_fixed_point(record.amount1_in, d1)} "
                f"out: {format_fixed_point(record.amount0_out, d0)} / {format_fixed_point(record.amount1_out, d1)}"
            )
        return (
            f"🦄 [magenta]{self.pool.name}[/] {record.sender} → {record.recipient} "
            f"amount0: {format_signed_fixed_point(record.amount0, d0)} "
            f"amount1: {format_signed_fixed_point(record.amount1, d1)} "
            f"tick: {record.tick} liquidity: {record.liquidity} sqrtPriceX96: {record.sqrt_price_x96}"
        )
