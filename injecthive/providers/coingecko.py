import logging
import time
from typing import Any, Dict, Iterable, List, Optional

import httpx

from ..cache import TTLCache
from ..formatting import format_price
from ..types.envelope import Envelope, ErrorCode, failure, success
from ..types.market import PriceBatch, PriceLookupError, TokenPrice
from .base import Provider

logger = logging.getLogger(__name__)


# Denoms and symbols (lowercase) -> CoinGecko coin id
DENOM_TO_COINGECKO_ID: Dict[str, str] = {
    "inj": "injective-protocol",
    "peggy0xdac17f958d2ee523a2206206994597c13d831ec7": "tether",
    "peggy0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48": "usd-coin",
    "peggy0x2260fac5e5542a773aa44fbcfedf7c193bc2c599": "wrapped-bitcoin",
    "peggy0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2": "ethereum",
    "factory/inj14ejqjyq8um4p3xfqj74yld5waqljf88f9eneuk/inj": "injective-protocol",
    "factory/inj1hdvy6tl89llr69r9pecgz2nkthyregm3u9leh5/atom": "cosmos",
    "factory/inj1hdvy6tl89llr69r9pecgz2nkthyregm3u9leh5/osmo": "osmosis",
    "factory/inj1hdvy6tl89llr69r9pecgz2nkthyregm3u9leh5/sei": "sei-network",
    "factory/inj1hdvy6tl89llr69r9pecgz2nkthyregm3u9leh5/astro": "astroport",
    "usdt": "tether",
    "usdc": "usd-coin",
    "btc": "bitcoin",
    "wbtc": "wrapped-bitcoin",
    "eth": "ethereum",
    "weth": "ethereum",
    "atom": "cosmos",
    "osmo": "osmosis",
    "sei": "sei-network",
    "astro": "astroport",
    "sol": "solana",
    "dot": "polkadot",
    "ada": "cardano",
    "avax": "avalanche-2",
    "matic": "matic-network",
    "link": "chainlink",
    "uni": "uniswap",
    "doge": "dogecoin",
    "shib": "shiba-inu",
    "xrp": "ripple",
    "bnb": "binancecoin",
    "luna": "terra-luna-2",
    "near": "near",
}

# Last-known prices served with ``is_estimated`` when the API is unreachable
COMMON_TOKEN_PRICES: Dict[str, Dict[str, Any]] = {
    "injective-protocol": {"name": "Injective", "symbol": "INJ", "price": 13.16},
    "bitcoin": {"name": "Bitcoin", "symbol": "BTC", "price": 62500.00},
    "wrapped-bitcoin": {"name": "Wrapped Bitcoin", "symbol": "WBTC", "price": 62500.00},
    "ethereum": {"name": "Ethereum", "symbol": "ETH", "price": 3200.00},
    "tether": {"name": "Tether", "symbol": "USDT", "price": 1.00},
    "usd-coin": {"name": "USD Coin", "symbol": "USDC", "price": 1.00},
    "cosmos": {"name": "Cosmos", "symbol": "ATOM", "price": 8.50},
    "osmosis": {"name": "Osmosis", "symbol": "OSMO", "price": 0.65},
    "sei-network": {"name": "Sei", "symbol": "SEI", "price": 0.55},
    "astroport": {"name": "Astroport", "symbol": "ASTRO", "price": 0.12},
}


def resolve_coin_id(denom: str) -> Optional[str]:
    """CoinGecko id for a denom or symbol, case-insensitively."""
    if not denom:
        return None
    return DENOM_TO_COINGECKO_ID.get(denom.strip().lower())


class CoingeckoProvider(Provider):
    """Token prices from CoinGecko ``simple/price`` behind a 5 minute cache.

    The cache is keyed by coin id, so ``inj`` and the INJ denom share an entry.
    Static prices are returned (flagged ``is_estimated``) when the API fails and
    are never written to the cache.
    """

    name = "coingecko"
    timeout_s = 10
    public_base_url = "https://api.coingecko.com/api/v3"
    pro_base_url = "https://pro-api.coingecko.com/api/v3"

    def __init__(
        self,
        cache: TTLCache,
        api_key: str = "",
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: Optional[float] = None,
    ):
        super().__init__(client=client, timeout_s=timeout_s)
        self.cache = cache
        self.api_key = api_key

    @property
    def base_url(self) -> str:
        return self.pro_base_url if self.api_key else self.public_base_url

    def _build_params(self, coin_ids: Iterable[str]) -> Dict[str, str]:
        params = {
            "ids": ",".join(coin_ids),
            "vs_currencies": "usd",
            "include_last_updated_at": "true",
        }
        if self.api_key:
            params["x_cg_pro_api_key"] = self.api_key
        return params

    async def _fetch_prices(self, coin_ids: List[str]) -> Dict[str, Any]:
        logger.info("Fetching %d price(s) from CoinGecko: %s", len(coin_ids), ",".join(coin_ids))
        data = await self._get_json(f"{self.base_url}/simple/price", params=self._build_params(coin_ids))
        return data if isinstance(data, dict) else {}

    def _build_price(self, denom: str, coin_id: str, entry: Dict[str, Any], is_estimated: bool = False) -> TokenPrice:
        return TokenPrice(
            denom=denom,
            coin_id=coin_id,
            price=entry["price"],
            formatted_price=format_price(entry["price"]),
            name=entry["name"],
            symbol=entry["symbol"],
            timestamp=entry["timestamp"],
            is_estimated=is_estimated,
        )

    def _fallback(self, denom: str, coin_id: str) -> Optional[TokenPrice]:
        known = COMMON_TOKEN_PRICES.get(coin_id)
        if known is None:
            return None
        logger.warning("Using fallback price for %s", coin_id)
        return self._build_price(denom, coin_id, {**known, "timestamp": time.time()}, is_estimated=True)

    def _entry_from_payload(self, denom: str, coin_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        quote = payload.get(coin_id) or {}
        price = quote.get("usd")
        if price is None:
            return None

        known = COMMON_TOKEN_PRICES.get(coin_id, {})
        return {
            "price": float(price),
            "name": known.get("name", denom.upper()),
            "symbol": known.get("symbol", denom.upper()),
            "timestamp": float(quote.get("last_updated_at") or time.time()),
        }

    async def get_token_price(self, denom: str) -> Envelope:
        """USD price for a denom or symbol."""
        if not denom:
            return failure(ErrorCode.MISSING_PARAMETER, "Token denomination is required")

        coin_id = resolve_coin_id(denom)
        if coin_id is None:
            return failure(ErrorCode.INVALID_PARAMETER, f"No CoinGecko ID found for denom: {denom}")

        cached = await self.cache.get(coin_id)
        if cached is not None:
            logger.debug("Using cached price for %s", coin_id)
            return success(self._build_price(denom, coin_id, cached))

        try:
            payload = await self._fetch_prices([coin_id])
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching price for %s: %s", coin_id, e)
            estimate = self._fallback(denom, coin_id)
            if estimate is not None:
                return success(estimate)
            return failure(ErrorCode.API_ERROR, f"Error fetching price: {e}")

        entry = self._entry_from_payload(denom, coin_id, payload)
        if entry is None:
            estimate = self._fallback(denom, coin_id)
            if estimate is not None:
                return success(estimate)
            return failure(ErrorCode.DATA_NOT_AVAILABLE, f"Failed to fetch price for {denom}")

        await self.cache.set(coin_id, entry)
        return success(self._build_price(denom, coin_id, entry))

    async def get_multiple_token_prices(self, denoms: List[str]) -> Envelope:
        """Prices for several denoms with a single upstream request for the cache misses."""
        if not denoms:
            return failure(ErrorCode.MISSING_PARAMETER, "Token denominations array is required")

        prices: Dict[str, TokenPrice] = {}
        errors: Dict[str, PriceLookupError] = {}
        pending: Dict[str, List[str]] = {}

        for denom in denoms:
            coin_id = resolve_coin_id(denom)
            if coin_id is None:
                errors[denom] = PriceLookupError(denom=denom, error=f"No CoinGecko ID found for denom: {denom}")
                continue

            cached = await self.cache.get(coin_id)
            if cached is not None:
                prices[denom] = self._build_price(denom, coin_id, cached)
            else:
                pending.setdefault(coin_id, []).append(denom)

        if pending:
            payload: Dict[str, Any] = {}
            try:
                payload = await self._fetch_prices(list(pending))
            except (httpx.HTTPError, ValueError) as e:
                logger.error("Error fetching prices for %s: %s", ",".join(pending), e)

            for coin_id, requested in pending.items():
                for denom in requested:
                    entry = self._entry_from_payload(denom, coin_id, payload)
                    if entry is not None:
                        await self.cache.set(coin_id, entry)
                        prices[denom] = self._build_price(denom, coin_id, entry)
                        continue

                    estimate = self._fallback(denom, coin_id)
                    if estimate is not None:
                        prices[denom] = estimate
                    else:
                        errors[denom] = PriceLookupError(denom=denom, error=f"Failed to fetch price for {denom}")

        return success(PriceBatch(prices=prices, errors=errors, timestamp=time.time(), count=len(prices)))

    async def get_usd_price(self, denom_or_coin_id: str) -> Optional[float]:
        """Best-effort USD price for valuations; falls back to static prices, else ``None``."""
        coin_id = resolve_coin_id(denom_or_coin_id) or denom_or_coin_id

        cached = await self.cache.get(coin_id)
        if cached is not None:
            return cached["price"]

        try:
            payload = await self._fetch_prices([coin_id])
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Price lookup for %s failed: %s", coin_id, e)
            payload = {}

        entry = self._entry_from_payload(denom_or_coin_id, coin_id, payload)
        if entry is not None:
            await self.cache.set(coin_id, entry)
            return entry["price"]

        known = COMMON_TOKEN_PRICES.get(coin_id)
        return known["price"] if known else None
