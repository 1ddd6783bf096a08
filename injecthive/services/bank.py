import logging
from typing import Any, Dict, Mapping, Optional

from ..cache import TTLCache
from ..config import ClientConfig
from ..providers.injective import ChainClient, call_client
from ..types.bank import TokenBalance, WalletBalances
from ..types.envelope import Envelope, ErrorCode, failure, success
from ..units import InvalidAmountError, to_human
from .tokens import classify_denom, resolve_decimals

logger = logging.getLogger(__name__)

_METADATA_CACHE_KEY = "denoms-metadata"


class BankGateway:
    """Wallet balances and bank module queries.

    Balances are always read live because transfers and swaps use them as
    preconditions; only the denom metadata table is cached.
    """

    def __init__(self, client: ChainClient, config: ClientConfig, metadata_cache: Optional[TTLCache] = None):
        self.client = client
        self.config = config
        self.metadata_cache = metadata_cache

    async def get_wallet_address(self) -> Envelope:
        """Address from the chain's account details, else the configured inj1 key."""
        envelope = await call_client(
            self.client.get_account_details(self.config.injective_public_key),
            "getAccountDetailsError",
        )
        address = None
        if envelope.success and isinstance(envelope.result, Mapping):
            account = envelope.result.get("account") or {}
            address = account.get("address")
        address = address or self.config.injective_public_key
        if address:
            return success(address)
        if not envelope.success:
            return envelope
        return failure(ErrorCode.CONFIGURATION_ERROR, "Unable to determine wallet address")

    def _to_balance(self, denom: str, raw_amount: Any, metadata: Optional[Mapping[str, Any]] = None) -> TokenBalance:
        # Missing amounts mean an empty balance
        raw = str(raw_amount) if raw_amount not in (None, "") else "0"
        classification = classify_denom(denom, metadata)
        return TokenBalance(
            denom=denom,
            display_denom=classification.display_denom,
            name=classification.name,
            kind=classification.kind,
            decimals=classification.decimals,
            raw_amount=raw,
            amount=to_human(raw, classification.decimals),
        )

    async def get_balance(self, denom: str, address: Optional[str] = None) -> Envelope:
        """Balance of one denom in display units."""
        if not denom:
            return failure(ErrorCode.MISSING_PARAMETER, "Token denomination is required")

        envelope = await call_client(self.client.get_bank_balance(denom, address), "getBankBalanceError")
        if not envelope.success:
            return envelope

        result = envelope.result if isinstance(envelope.result, Mapping) else {}
        try:
            return success(self._to_balance(denom, result.get("amount")))
        except InvalidAmountError as e:
            return failure(ErrorCode.INVALID_PARAMETER, str(e), {"denom": denom, "amount": result.get("amount")})

    async def _metadata_by_denom(self) -> Dict[str, Mapping[str, Any]]:
        if self.metadata_cache is not None:
            cached = await self.metadata_cache.get(_METADATA_CACHE_KEY)
            if cached is not None:
                return cached

        envelope = await self.get_denoms_metadata()
        if not envelope.success:
            logger.warning("Denom metadata unavailable: %s", envelope.message)
            return {}

        records = envelope.result.get("metadatas") if isinstance(envelope.result, Mapping) else envelope.result
        by_denom = {m["base"]: m for m in records or [] if isinstance(m, Mapping) and m.get("base")}
        if self.metadata_cache is not None:
            await self.metadata_cache.set(_METADATA_CACHE_KEY, by_denom)
        return by_denom

    async def get_balances(self, address: Optional[str] = None) -> Envelope:
        """Every balance the wallet holds, classified and scaled."""
        envelope = await call_client(self.client.get_bank_balances(address), "getBankBalancesError")
        if not envelope.success:
            return envelope

        result = envelope.result if isinstance(envelope.result, Mapping) else {}
        metadata = await self._metadata_by_denom()

        balances = []
        for row in result.get("balances") or []:
            denom = row.get("denom")
            if not denom:
                continue
            try:
                balances.append(self._to_balance(denom, row.get("amount"), metadata.get(denom)))
            except InvalidAmountError as e:
                logger.warning("Skipping balance for %s: %s", denom, e)

        return success(WalletBalances(address=address, balances=balances, count=len(balances)))

    async def get_denoms_metadata(self) -> Envelope:
        return await call_client(self.client.get_denoms_metadata(), "getDenomsMetadataError")

    async def get_total_supply(self) -> Envelope:
        return await call_client(self.client.get_total_supply(), "getTotalSupplyError")

    async def get_supply_of(self, denom: str) -> Envelope:
        if not denom:
            return failure(ErrorCode.MISSING_PARAMETER, "Token denomination is required")

        envelope = await call_client(self.client.get_supply_of(denom), "getSupplyOfError")
        if not envelope.success or not isinstance(envelope.result, Mapping):
            return envelope

        amount = envelope.result.get("amount")
        if amount is None:
            return envelope
        decimals = resolve_decimals(denom)
        try:
            human = to_human(str(amount), decimals)
        except InvalidAmountError as e:
            return failure(ErrorCode.INVALID_PARAMETER, str(e), dict(envelope.result))
        return success({**envelope.result, "human_amount": human, "decimals": decimals})
