import asyncio
import logging
from pathlib import Path

import click
from eth_utils import is_address, to_checksum_address
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from dexwatch.abi_events import load_event_schema
from dexwatch.clients import make_subscriber
from dexwatch.core.config import PoolConfig, Settings, WatchConfig
from dexwatch.core.errors import DexwatchError
from dexwatch.core.models import SwapV2, SwapV3
from dexwatch.decoding.registry_builder import canonical_signature, parse_signature, topic0_of
from dexwatch.decoding.schemas import SWAP_V2, SWAP_V3
from dexwatch.decoding.specs import EventSchema
from dexwatch.presentation.console import ConsoleSink
from dexwatch.streaming.multiplexer import MultiplexOutcome, build_multiplexer

console = Console()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        raise click.ClickException(f"invalid configuration:\n{e}") from e


def _address(value: str | None, fallback: str, option: str) -> str:
    if value is None:
        return fallback
    if not is_address(value):
        raise click.BadParameter(f"not an address: {value}", param_hint=option)
    return to_checksum_address(value)


def _schema(abi_path: str | None, default: EventSchema, record_type: type, renames: dict[str, str]) -> EventSchema:
    if abi_path is None:
        return default
    try:
        schema = load_event_schema(Path(abi_path), "Swap", record_type, renames=renames)
    except DexwatchError as e:
        raise click.ClickException(str(e)) from e
    if schema.topic0 != default.topic0:
        raise click.ClickException(f"{abi_path}: Swap event does not match {default.signature}")
    return schema


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    show_default=True,
)
def cli(log_level: str) -> None:
    """dexwatch — live V2/V3 swap decoder."""
    _setup_logging(log_level)


@cli.command("watch")
@click.option("--endpoint", default=None, help="ws(s):// or http(s):// node URL [env: WS_ENDPOINT]")
@click.option("--v2-pool", default=None, help="V2 pair address [env: V2_POOL]")
@click.option("--v3-pool", default=None, help="V3 pool address [env: V3_POOL]")
@click.option("--v2-abi", type=click.Path(exists=True, dir_okay=False), default=None, help="V2 pair ABI JSON")
@click.option("--v3-abi", type=click.Path(exists=True, dir_okay=False), default=None, help="V3 pool ABI JSON")
@click.option("--dedup-window", type=int, default=None, help="Drop redelivered logs among the last N [env: DEDUP_WINDOW]")
def watch_cmd(
    endpoint: str | None,
    v2_pool: str | None,
    v3_pool: str | None,
    v2_abi: str | None,
    v3_abi: str | None,
    dedup_window: int | None,
) -> None:
    """Stream and decode Swap events from a V2 pair and a V3 pool until one stream stops."""
    settings = _load_settings()
    endpoint = endpoint or settings.ws_endpoint
    if not endpoint:
        raise click.UsageError("Pass --endpoint or set WS_ENDPOINT")

    config = WatchConfig(
        v2=PoolConfig(
            name="v2",
            address=_address(v2_pool, settings.v2_pool, "--v2-pool"),
            schema=_schema(v2_abi, SWAP_V2, SwapV2, {"to": "recipient"}),
            decimals0=settings.v2_decimals0,
            decimals1=settings.v2_decimals1,
        ),
        v3=PoolConfig(
            name="v3",
            address=_address(v3_pool, settings.v3_pool, "--v3-pool"),
            schema=_schema(v3_abi, SWAP_V3, SwapV3, {}),
            decimals0=settings.v3_decimals0,
            decimals1=settings.v3_decimals1,
        ),
        dedup_window=settings.dedup_window if dedup_window is None else dedup_window,
    )

    async def run() -> MultiplexOutcome:
        subscriber = make_subscriber(
            endpoint,
            timeout_s=settings.timeout_s,
            poll_interval_s=settings.poll_interval_s,
        )
        mux = build_multiplexer(config, subscriber, lambda pool: ConsoleSink(pool, console))
        try:
            outcome = await mux.run()
        finally:
            await mux.shutdown()
            await subscriber.aclose()
        for loop in mux.loops:
            s = loop.stats
            console.print(
                f"[bold]{loop.name}[/]: received={s.received} "
                f"[green]decoded[/]={s.decoded} [red]failed[/]={s.failed}"
            )
        return outcome

    try:
        outcome = asyncio.run(run())
    except DexwatchError as e:
        raise click.ClickException(str(e)) from e
    raise click.ClickException(outcome.reason)


@cli.command("blocks")
@click.option("--endpoint", default=None, help="ws(s):// or http(s):// node URL [env: WS_ENDPOINT]")
def blocks_cmd(endpoint: str | None) -> None:
    """Print new block headers as they arrive."""
    settings = _load_settings()
    endpoint = endpoint or settings.ws_endpoint
    if not endpoint:
        raise click.UsageError("Pass --endpoint or set WS_ENDPOINT")

    async def run() -> None:
        subscriber = make_subscriber(endpoint, timeout_s=settings.timeout_s, poll_interval_s=settings.poll_interval_s)
        try:
            async for header in subscriber.subscribe_blocks():
                number = header.get("number")
                number_s = str(int(number, 16)) if isinstance(number, str) else str(number)
                console.print(f"[bold]block[/] {number_s} {header.get('hash')}")
        finally:
            await subscriber.aclose()

    try:
        asyncio.run(run())
    except DexwatchError as e:
        raise click.ClickException(str(e)) from e
    raise click.ClickException("block stream ended")


@cli.command("topic0")
@click.argument("signature")
def topic0_cmd(signature: str) -> None:
    """Print the topic0 hash and canonical form of an event SIGNATURE."""
    try:
        name, fields = parse_signature(signature)
    except DexwatchError as e:
        raise click.ClickException(str(e)) from e
    canonical = canonical_signature(name, fields)
    click.echo(f"{canonical} {topic0_of(canonical)}")
