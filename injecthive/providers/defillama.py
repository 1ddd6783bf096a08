import logging
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx

from ..cache import TTLCache
from ..formatting import format_compact_usd
from ..types.envelope import Envelope, ErrorCode, failure, success
from ..types.market import (
    ChainShare,
    ChainTVLSummary,
    GlobalTVLOverview,
    InjectiveTVL,
    ProtocolInfo,
    TopProtocols,
    TVLPoint,
    YieldPool,
    YieldPools,
)
from .base import Provider

logger = logging.getLogger(__name__)

CHAIN_NAME = "Injective"

ESTIMATED_NOTE = "Using estimated data due to API unavailability"

# Last-known Injective protocols served when DefiLlama is unreachable
COMMON_INJECTIVE_PROTOCOLS: Dict[str, Dict[str, Any]] = {
    "helix": {
        "name": "Helix",
        "tvl": 22242391.77046,
        "symbol": "HLX",
        "category": "DEX",
        "chains": ["Injective"],
        "url": "https://helixapp.com/",
    },
    "hydro": {
        "name": "Hydro",
        "tvl": 20082605.006,
        "symbol": "HYDRO",
        "category": "Derivatives",
        "chains": ["Injective"],
        "url": "https://hydroprotocol.io/",
    },
    "astroport": {
        "name": "Astroport",
        "tvl": 30000000,
        "symbol": "ASTRO",
        "category": "DEX",
        "chains": ["Injective", "Terra", "Neutron"],
        "url": "https://astroport.fi/",
    },
    "gateio": {
        "name": "Gate.io",
        "tvl": 6659226856.414,
        "symbol": "GT",
        "category": "CEX",
        "chains": ["Injective"],
        "url": "https://gate.io/",
    },
    "portal": {
        "name": "Portal",
        "tvl": 2849880591.915,
        "symbol": "PORTAL",
        "category": "Bridge",
        "chains": ["Injective"],
        "url": "https://www.portalbridge.com/",
    },
    "axelar": {
        "name": "Axelar",
        "tvl": 178131282.627,
        "symbol": "AXL",
        "category": "Bridge",
        "chains": ["Injective"],
        "url": "https://axelar.network/",
    },
    "trustake": {
        "name": "TruStake",
        "tvl": 141328600.229,
        "symbol": "TRUS",
        "category": "Staking",
        "chains": ["Injective"],
        "url": "https://trustake.io/",
    },
    "stride": {
        "name": "Stride",
        "tvl": 90011232.219,
        "symbol": "STRD",
        "category": "Liquid Staking",
        "chains": ["Injective"],
        "url": "https://stride.zone/",
    },
}

# Normalized names whose DefiLlama slug differs from the name
KNOWN_SLUGS: Dict[str, str] = {
    "helix": "helix",
    "hydro": "hydro-protocol",
}

_TVL_CACHE_KEY = "injective-tvl"
_POOLS_CACHE_KEY = "injective-yield-pools"


def normalize_protocol_name(name: str) -> str:
    """Lowercase and drop spaces, dots, hyphens and a trailing ``protocol``."""
    normalized = re.sub(r"[\s.\-]+", "", name.lower())
    return re.sub(r"protocol$", "", normalized)


def _injective_tvl(raw: Dict[str, Any]) -> float:
    # /protocol/{slug} nests history under chainTvls; only plain numbers count
    for key in ("chainTvls", "currentChainTvls"):
        value = (raw.get(key) or {}).get(CHAIN_NAME)
        if isinstance(value, (int, float)) and value:
            return float(value)
    tvl = raw.get("tvl")
    return float(tvl) if isinstance(tvl, (int, float)) else 0.0


def _protocol_from_raw(raw: Dict[str, Any], is_estimated: bool = False) -> ProtocolInfo:
    tvl = _injective_tvl(raw)
    return ProtocolInfo(
        name=raw.get("name") or "",
        tvl=tvl,
        formatted_tvl=format_compact_usd(tvl),
        symbol=raw.get("symbol") or "",
        category=raw.get("category") or "",
        chains=list(raw.get("chains") or [CHAIN_NAME]),
        url=raw.get("url") or "",
        slug=raw.get("slug"),
        description=raw.get("description") or "",
        change_1d=float(raw.get("change_1d") or 0),
        change_7d=float(raw.get("change_7d") or 0),
        is_estimated=is_estimated,
    )


def _common_protocol(name: str) -> Optional[Dict[str, Any]]:
    normalized = normalize_protocol_name(name)
    for key, protocol in COMMON_INJECTIVE_PROTOCOLS.items():
        if normalize_protocol_name(key) == normalized or normalize_protocol_name(protocol["name"]) == normalized:
            return protocol
    return None


def _estimated_protocols() -> List[ProtocolInfo]:
    protocols = [_protocol_from_raw(p, is_estimated=True) for p in COMMON_INJECTIVE_PROTOCOLS.values()]
    protocols.sort(key=lambda p: p.tvl, reverse=True)
    return protocols


class DefiLlamaProvider(Provider):
    """Injective TVL, protocol and yield data from DefiLlama behind a 15 minute cache."""

    name = "defillama"
    timeout_s = 10
    base_url = "https://api.llama.fi"
    yields_url = "https://yields.llama.fi"

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

    def _build_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def _fetch(self, url: str) -> Any:
        return await self._get_json(url, headers=self._build_headers())

    # ------------------------------------------------------------------
    # Protocols
    # ------------------------------------------------------------------

    async def _injective_protocols(self) -> List[ProtocolInfo]:
        """All Injective protocols sorted by TVL; raises on upstream failure."""
        cached = await self.cache.get(_TVL_CACHE_KEY)
        if cached is not None:
            logger.debug("Using cached Injective protocol list")
            return cached

        logger.info("Fetching protocols from DefiLlama")
        data = await self._fetch(f"{self.base_url}/protocols")
        if not isinstance(data, list):
            raise ValueError("Unexpected /protocols payload from DefiLlama")

        protocols = [
            _protocol_from_raw(raw)
            for raw in data
            if isinstance(raw, dict) and CHAIN_NAME in (raw.get("chains") or [])
        ]
        protocols.sort(key=lambda p: p.tvl, reverse=True)
        await self.cache.set(_TVL_CACHE_KEY, protocols)
        return protocols

    async def get_injective_tvl(self) -> Envelope:
        """Every protocol deployed on Injective with its Injective TVL."""
        try:
            protocols = await self._injective_protocols()
            note = None
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching Injective TVL: %s", e)
            protocols = _estimated_protocols()
            note = ESTIMATED_NOTE

        total = sum(p.tvl for p in protocols)
        logger.info("Found %d Injective protocols with total TVL %s", len(protocols), format_compact_usd(total))
        return success(
            InjectiveTVL(
                protocols=protocols,
                total_tvl=total,
                timestamp=time.time(),
                count=len(protocols),
                note=note,
            )
        )

    async def get_protocol_by_name(self, name: str) -> Envelope:
        """Look a protocol up by slug, then by exact and partial name over the Injective list."""
        if not name or not name.strip():
            return failure(ErrorCode.MISSING_PARAMETER, "Protocol name is required")

        normalized = normalize_protocol_name(name)
        logger.info("Looking up protocol %s (normalized: %s)", name, normalized)

        slug = KNOWN_SLUGS.get(normalized)
        if slug is None and _common_protocol(name) is not None:
            slug = normalized

        if slug:
            try:
                data = await self._fetch(f"{self.base_url}/protocol/{slug}")
                if isinstance(data, dict) and data.get("name"):
                    return success(_protocol_from_raw({**data, "slug": slug}))
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Failed to fetch protocol %s by slug %s: %s", name, slug, e)

        try:
            protocols = await self._injective_protocols()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching protocol list: %s", e)
            common = _common_protocol(name)
            if common is not None:
                return success(_protocol_from_raw(common, is_estimated=True))
            return failure(ErrorCode.API_ERROR, f"Error fetching protocol data: {e}")

        match = next((p for p in protocols if normalize_protocol_name(p.name) == normalized), None)
        if match is None:
            match = next((p for p in protocols if normalized in normalize_protocol_name(p.name)), None)
        if match is not None:
            return success(match)

        common = _common_protocol(name)
        if common is not None:
            return success(_protocol_from_raw(common, is_estimated=True))

        return failure(ErrorCode.PROTOCOL_NOT_FOUND, f"Protocol '{name}' not found on Injective")

    async def get_top_injective_protocols(self, limit: int = 10) -> Envelope:
        tvl = await self.get_injective_tvl()
        if not tvl.success:
            return tvl

        data: InjectiveTVL = tvl.result
        top = sorted(data.protocols, key=lambda p: p.tvl, reverse=True)[:limit]
        return success(
            TopProtocols(
                protocols=top,
                total_protocols=data.count,
                total_tvl=data.total_tvl,
                formatted_total_tvl=format_compact_usd(data.total_tvl),
                timestamp=data.timestamp,
                note=data.note,
            )
        )

    # ------------------------------------------------------------------
    # Yields
    # ------------------------------------------------------------------

    async def get_injective_yield_pools(self) -> Envelope:
        cached = await self.cache.get(_POOLS_CACHE_KEY)
        if cached is not None:
            return success(YieldPools(pools=cached, count=len(cached), timestamp=time.time()))

        try:
            payload = await self._fetch(f"{self.yields_url}/pools")
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching yield pools: %s", e)
            return failure(ErrorCode.API_ERROR, f"Error fetching yield pools: {e}")

        rows = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            return success(
                YieldPools(pools=[], count=0, timestamp=time.time(), note="No yield pools found or API unavailable")
            )

        pools = [
            YieldPool(
                pool=str(row.get("pool") or ""),
                symbol=row.get("symbol") or "",
                project=row.get("project") or "",
                tvl_usd=float(row.get("tvlUsd") or 0),
                apy=float(row.get("apy") or 0),
                apy_base=row.get("apyBase"),
                apy_reward=row.get("apyReward"),
                reward_tokens=list(row.get("rewardTokens") or []),
            )
            for row in rows
            if isinstance(row, dict) and row.get("chain") == CHAIN_NAME
        ]
        pools.sort(key=lambda p: p.apy, reverse=True)
        await self.cache.set(_POOLS_CACHE_KEY, pools)
        logger.info("Found %d yield pools on Injective", len(pools))
        return success(YieldPools(pools=pools, count=len(pools), timestamp=time.time()))

    # ------------------------------------------------------------------
    # Chain level
    # ------------------------------------------------------------------

    async def get_chain_tvl_summary(self, chain: str = CHAIN_NAME, now: Optional[datetime] = None) -> Envelope:
        """Twelve month TVL history for ``chain`` with current, 30 day change and range."""
        cache_key = f"chain-tvl:{chain.lower()}"
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return success(cached)

        try:
            history = await self._fetch(f"{self.base_url}/v2/historicalChainTvl/{chain}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching TVL history for %s: %s", chain, e)
            return failure(ErrorCode.API_ERROR, f"Error fetching TVL history: {e}")

        if not isinstance(history, list):
            return failure(ErrorCode.DATA_NOT_AVAILABLE, "Invalid response format from DefiLlama")

        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=365)
        points: List[TVLPoint] = []
        for row in history:
            try:
                day = datetime.fromtimestamp(int(row["date"]), tz=timezone.utc)
                tvl = float(row.get("tvl") or 0)
            except (KeyError, TypeError, ValueError):
                continue
            if day >= cutoff:
                points.append(TVLPoint(date=day.date().isoformat(), tvl=tvl))

        if not points:
            return failure(ErrorCode.DATA_NOT_AVAILABLE, f"No valid TVL data found for {chain}")

        values = [p.tvl for p in points]
        current = values[-1]
        month_ago_index = len(values) - 31
        month_ago = values[month_ago_index] if month_ago_index >= 0 else values[0]
        change = ((current - month_ago) / month_ago * 100) if month_ago else 0.0

        summary = ChainTVLSummary(
            chain=chain,
            current_tvl=current,
            monthly_change=change,
            max_tvl=max(values),
            min_tvl=min(values),
            avg_tvl=sum(values) / len(values),
            last_12_months=points,
        )
        await self.cache.set(cache_key, summary)
        return success(summary)

    async def get_global_tvl_overview(self) -> Envelope:
        """Total DeFi TVL across chains and the ten largest chains by share."""
        cache_key = "global-tvl"
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return success(cached)

        try:
            chains = await self._fetch(f"{self.base_url}/v2/chains")
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching global TVL: %s", e)
            return failure(ErrorCode.API_ERROR, f"Error fetching global TVL: {e}")

        if not isinstance(chains, list):
            return failure(ErrorCode.DATA_NOT_AVAILABLE, "Invalid response format from DefiLlama")

        positive = [c for c in chains if isinstance(c, dict) and float(c.get("tvl") or 0) > 0]
        total = sum(float(c["tvl"]) for c in positive)
        positive.sort(key=lambda c: float(c["tvl"]), reverse=True)

        overview = GlobalTVLOverview(
            total_tvl=total,
            top_chains=[
                ChainShare(name=c.get("name") or "", tvl=float(c["tvl"]), percentage=float(c["tvl"]) / total * 100)
                for c in positive[:10]
            ],
        )
        await self.cache.set(cache_key, overview)
        return success(overview)
