from __future__ import annotations

from dataclasses import dataclass

from eth_utils import is_address, to_checksum_address
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dexwatch.decoding.specs import EventSchema


class Settings(BaseSettings):
    """Process settings, read from the environment and `.env`."""

    ws_endpoint: str = ""
    v2_pool: str = "0xB4e16d0168e52d35CaCD2c6185b44281Ec28C9Dc"  # USDC/WETH pair
    v3_pool: str = "0x88e6A0c2dDD26FEEb64F039a2c41296FcB3f5640"  # USDC/WETH 0.05% pool
    v2_decimals0: int = 6
    v2_decimals1: int = 18
    v3_decimals0: int = 6
    v3_decimals1: int = 18
    dedup_window: int = 0
    poll_interval_s: float = 2.0
    timeout_s: int = 20

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("v2_pool", "v3_pool")
    @classmethod
    def _checksum(cls, v: str) -> str:
        if not is_address(v):
            raise ValueError(f"not an address: {v!r}")
        return to_checksum_address(v)

    @field_validator("v2_decimals0", "v2_decimals1", "v3_decimals0", "v3_decimals1")
    @classmethod
    def _decimals_range(cls, v: int) -> int:
        if not 0 <= v <= 77:
            raise ValueError("token decimals must be in 0..77")
        return v


@dataclass(frozen=True)
class PoolConfig:
    """One watched pool: where it lives, how to decode it, how to scale it."""

    name: str
    address: str
    schema: EventSchema
    decimals0: int = 18
    decimals1: int = 18


@dataclass(frozen=True)
class WatchConfig:
    """Configuration for the dual-stream watcher.

    Free of infrastructure concerns (no endpoint URL, no transport choice).
    """

    v2: PoolConfig
    v3: PoolConfig
    dedup_window: int = 0  # 0 disables redelivery de-duplication
