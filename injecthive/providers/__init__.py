from .base import Provider
from .coingecko import CoingeckoProvider
from .defillama import DefiLlamaProvider
from .injective import ChainClient, ClientFactory, ClientReply

__all__ = [
    "Provider",
    "CoingeckoProvider",
    "DefiLlamaProvider",
    "ChainClient",
    "ClientFactory",
    "ClientReply",
]
