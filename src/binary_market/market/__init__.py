"""Market engine — phase state machine, pricing, option ledgers and settlement."""

from binary_market.market.collaborators import (
    CollateralToken,
    FeePool,
    MarketCollaborators,
    MarketManager,
    SystemStatus,
    utc_now,
)
from binary_market.market.events import EventBus
from binary_market.market.market import Market
from binary_market.market.option import OptionLedger
from binary_market.market.oracle import PriceRound, RoundPriceOracle
from binary_market.market.pricing import (
    TradeKind,
    bid_or_refund_for_price,
    compute_prices,
    prices_after_trade,
)

__all__ = [
    "CollateralToken",
    "EventBus",
    "FeePool",
    "Market",
    "MarketCollaborators",
    "MarketManager",
    "OptionLedger",
    "PriceRound",
    "RoundPriceOracle",
    "SystemStatus",
    "TradeKind",
    "bid_or_refund_for_price",
    "compute_prices",
    "prices_after_trade",
    "utc_now",
]
