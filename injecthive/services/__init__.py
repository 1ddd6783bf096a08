from .bank import BankGateway
from .explorer import ExplorerGateway
from .portfolio import PortfolioService
from .swap import SwapGateway, find_trading_pair
from .transfer import TransferGateway

__all__ = [
    "BankGateway",
    "ExplorerGateway",
    "PortfolioService",
    "SwapGateway",
    "TransferGateway",
    "find_trading_pair",
]
