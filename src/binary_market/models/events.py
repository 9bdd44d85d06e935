"""Event models — change notifications published by markets and option ledgers."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from binary_market.models.market import Side

ZERO_ADDRESS = "0x" + "0" * 40


class MarketEvent(BaseModel):
    """Common envelope: owning market, emitting component, and clock time."""

    model_config = ConfigDict(frozen=True)

    market: str
    source: str
    ts: datetime

    @property
    def event_type(self) -> str:
        return type(self).__name__


class BidPlaced(MarketEvent):
    side: Side
    account: str
    value: Decimal


class Refunded(MarketEvent):
    side: Side
    account: str
    value: Decimal
    fee: Decimal


class PricesUpdated(MarketEvent):
    long_price: Decimal
    short_price: Decimal


class MarketResolved(MarketEvent):
    result: Side
    oracle_price: Decimal
    oracle_timestamp: datetime
    deposited: Decimal
    pool_fees: Decimal
    creator_fees: Decimal


class OptionsClaimed(MarketEvent):
    account: str
    long_options: Decimal
    short_options: Decimal


class OptionsExercised(MarketEvent):
    account: str
    value: Decimal


class MarketDestroyed(MarketEvent):
    beneficiary: str
    reward: Decimal
    swept: Decimal


# ── Option ledger token events ────────────────────────────────


class Transfer(MarketEvent):
    from_account: str
    to_account: str
    value: Decimal


class Approval(MarketEvent):
    owner: str
    spender: str
    value: Decimal


class Issued(MarketEvent):
    account: str
    value: Decimal


class Burned(MarketEvent):
    account: str
    value: Decimal
