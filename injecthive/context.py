"""
Shared state for one plugin instance.

REST providers and their caches live for the whole process. Chain gateways are
built per message, because the wallet configuration is read from the agent
runtime that sent the message.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .cache import TTLCache
from .config import ClientConfig, Settings, SettingsSource, resolve_client_config
from .providers.coingecko import CoingeckoProvider
from .providers.defillama import DefiLlamaProvider
from .providers.injective import ChainClient, ClientFactory
from .services.bank import BankGateway
from .services.explorer import ExplorerGateway
from .services.portfolio import PortfolioService
from .services.swap import SwapGateway
from .services.transfer import TransferGateway

logger = logging.getLogger(__name__)

METADATA_CACHE_TTL_S = 3600


@dataclass
class ChainServices:
    """Gateways bound to one configured chain client."""
    config: ClientConfig
    client: ChainClient
    bank: BankGateway
    explorer: ExplorerGateway
    portfolio: PortfolioService
    transfer: TransferGateway
    swap: SwapGateway


class PluginContext:
    def __init__(
        self,
        settings: Settings,
        client_factory: ClientFactory,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self.client_factory = client_factory

        self.price_cache = TTLCache(ttl=settings.price_cache_ttl_seconds, max_size=settings.max_cache_size)
        self.protocol_cache = TTLCache(ttl=settings.protocol_cache_ttl_seconds, max_size=settings.max_cache_size)
        self.metadata_cache = TTLCache(ttl=METADATA_CACHE_TTL_S, max_size=settings.max_cache_size)

        self.coingecko = CoingeckoProvider(
            self.price_cache,
            api_key=settings.coingecko_api_key,
            client=http_client,
            timeout_s=settings.request_timeout_seconds,
        )
        self.defillama = DefiLlamaProvider(
            self.protocol_cache,
            api_key=settings.defillama_api_key,
            client=http_client,
            timeout_s=settings.request_timeout_seconds,
        )

    def chain(self, runtime: Optional[SettingsSource] = None) -> ChainServices:
        """Build gateways for the wallet configured on ``runtime``.

        Raises:
            ConfigurationError: network, private key or both public keys are missing.
        """
        config = resolve_client_config(runtime, self.settings)
        client = self.client_factory(config)
        bank = BankGateway(client, config, metadata_cache=self.metadata_cache)
        logger.debug("Chain client ready for network %s", config.network)

        return ChainServices(
            config=config,
            client=client,
            bank=bank,
            explorer=ExplorerGateway(client),
            portfolio=PortfolioService(client, bank, self.coingecko),
            transfer=TransferGateway(client, bank, config),
            swap=SwapGateway(
                client,
                bank,
                self.coingecko,
                config,
                max_attempts=self.settings.swap_max_attempts,
                retry_delay_s=self.settings.swap_retry_delay_seconds,
                poll_timeout_s=self.settings.subaccount_poll_timeout_seconds,
                poll_interval_s=self.settings.subaccount_poll_interval_seconds,
            ),
        )

    async def aclose(self) -> None:
        await self.coingecko.aclose()
        await self.defillama.aclose()
