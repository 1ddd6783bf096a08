from .bank import TokenBalance, WalletBalances
from .envelope import Envelope, ErrorCode, ErrorInfo, Failure, Success, failure, from_client_reply, success
from .explorer import AccountInfo, BlockSummary, NetworkStats, TransactionSummary, TxMessage
from .intent import ExtractedIntent, IntentKind
from .market import (
    ChainShare,
    ChainTVLSummary,
    GlobalTVLOverview,
    InjectiveTVL,
    PriceBatch,
    PriceLookupError,
    ProtocolInfo,
    TokenPrice,
    TopProtocols,
    TVLPoint,
    YieldPool,
    YieldPools,
)
from .portfolio import HoldingValue, PortfolioSummary, SubaccountBalance, WalletSummary
from .reply import Reply
from .trade import SpotMarketOrder, SwapReceipt, TradingPair, TransferReceipt

__all__ = [
    "TokenBalance",
    "WalletBalances",
    "Envelope",
    "ErrorCode",
    "ErrorInfo",
    "Failure",
    "Success",
    "failure",
    "from_client_reply",
    "success",
    "AccountInfo",
    "BlockSummary",
    "NetworkStats",
    "TransactionSummary",
    "TxMessage",
    "ExtractedIntent",
    "IntentKind",
    "ChainShare",
    "ChainTVLSummary",
    "GlobalTVLOverview",
    "InjectiveTVL",
    "PriceBatch",
    "PriceLookupError",
    "ProtocolInfo",
    "TokenPrice",
    "TopProtocols",
    "TVLPoint",
    "YieldPool",
    "YieldPools",
    "HoldingValue",
    "PortfolioSummary",
    "SubaccountBalance",
    "WalletSummary",
    "Reply",
    "SpotMarketOrder",
    "SwapReceipt",
    "TradingPair",
    "TransferReceipt",
]
