from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class ConfigurationError(Exception):
    """Raised when the chain client cannot be configured from runtime settings."""


class SettingsSource(Protocol):
    """Anything exposing ``get_setting`` the way the agent runtime does."""

    def get_setting(self, key: str) -> Optional[str]:
        ...


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # Chain Client
    injective_network: str = Field(default="", description="Injective network name (Mainnet, Testnet, ...)")
    injective_private_key: str = Field(default="", description="Private key used to sign chain messages")
    evm_public_key: str = Field(default="", description="Ethereum-style public address of the wallet")
    injective_public_key: str = Field(default="", description="inj1... bech32 address of the wallet")

    # External API Keys
    coingecko_api_key: str = Field(default="", description="Coingecko Pro API key")
    defillama_api_key: str = Field(default="", description="DefiLlama API key")

    # Cache Settings
    price_cache_ttl_seconds: int = Field(default=300, description="TTL for token price lookups")
    protocol_cache_ttl_seconds: int = Field(default=900, description="TTL for TVL and protocol data")
    max_cache_size: int = Field(default=1000, description="Maximum entries per cache")

    request_timeout_seconds: float = Field(default=10, description="Timeout for REST calls")

    # Swap Execution
    swap_max_attempts: int = Field(default=3, description="Order submission attempts before giving up")
    swap_retry_delay_seconds: float = Field(default=2, description="Pause between order submission attempts")
    subaccount_poll_timeout_seconds: float = Field(
        default=30,
        description="How long to wait for a freshly funded trading subaccount to appear",
    )
    subaccount_poll_interval_seconds: float = Field(
        default=2,
        description="Delay between subaccount lookups while waiting",
    )


@dataclass(frozen=True)
class ClientConfig:
    """Everything needed to construct a chain client for one wallet."""
    network: str
    private_key: str
    evm_public_key: Optional[str] = None
    injective_public_key: Optional[str] = None


def _lookup(runtime: Optional[SettingsSource], key: str, fallback: str) -> str:
    value: Any = None
    if runtime is not None:
        value = runtime.get_setting(key)
    if not value:
        value = fallback
    return str(value).strip() if value else ""


def resolve_client_config(
    runtime: Optional[SettingsSource] = None,
    config: Optional[Settings] = None,
) -> ClientConfig:
    """Resolve chain client configuration, preferring runtime settings over the environment."""

    config = config or settings
    network = _lookup(runtime, "INJECTIVE_NETWORK", config.injective_network)
    private_key = _lookup(runtime, "INJECTIVE_PRIVATE_KEY", config.injective_private_key)
    evm_public_key = _lookup(runtime, "EVM_PUBLIC_KEY", config.evm_public_key)
    injective_public_key = _lookup(runtime, "INJECTIVE_PUBLIC_KEY", config.injective_public_key)

    missing = []
    if not network:
        missing.append("INJECTIVE_NETWORK")
    if not private_key:
        missing.append("INJECTIVE_PRIVATE_KEY")
    if not evm_public_key and not injective_public_key:
        missing.append("EVM_PUBLIC_KEY or INJECTIVE_PUBLIC_KEY")
    if missing:
        raise ConfigurationError(f"Incorrect configuration, missing: {', '.join(missing)}")

    return ClientConfig(
        network=network,
        private_key=private_key,
        evm_public_key=evm_public_key or None,
        injective_public_key=injective_public_key or None,
    )


settings = Settings()
