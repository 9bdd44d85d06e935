"""Pydantic domain models."""

from binary_market.models.events import (
    ZERO_ADDRESS,
    Approval,
    BidPlaced,
    Burned,
    Issued,
    MarketDestroyed,
    MarketEvent,
    MarketResolved,
    OptionsClaimed,
    OptionsExercised,
    PricesUpdated,
    Refunded,
    Transfer,
)
from binary_market.models.market import (
    Durations,
    FeeSchedule,
    OracleDetails,
    Phase,
    Side,
    SidePair,
    Times,
)

__all__ = [
    "ZERO_ADDRESS",
    "Approval",
    "BidPlaced",
    "Burned",
    "Durations",
    "FeeSchedule",
    "Issued",
    "MarketDestroyed",
    "MarketEvent",
    "MarketResolved",
    "OptionsClaimed",
    "OptionsExercised",
    "OracleDetails",
    "Phase",
    "PricesUpdated",
    "Refunded",
    "Side",
    "SidePair",
    "Times",
    "Transfer",
]
