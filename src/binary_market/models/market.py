"""Market value models — sides, phases, price pairs, schedules."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict

from binary_market.decimal_math import UNIT, ZERO


class Side(str, Enum):
    LONG = "long"
    SHORT = "short"

    @property
    def opposite(self) -> "Side":
        return Side.SHORT if self is Side.LONG else Side.LONG


class Phase(str, Enum):
    BIDDING = "bidding"
    TRADING = "trading"
    MATURITY = "maturity"
    DESTRUCTION = "destruction"


class SidePair(BaseModel):
    """A (long, short) pair of amounts — prices, bids, balances or claimables."""

    model_config = ConfigDict(frozen=True)

    long: Decimal = ZERO
    short: Decimal = ZERO

    def for_side(self, side: Side) -> Decimal:
        return self.long if side is Side.LONG else self.short

    def with_side(self, side: Side, value: Decimal) -> "SidePair":
        return self.model_copy(update={side.value: value})

    @property
    def total(self) -> Decimal:
        return self.long + self.short


class Times(BaseModel):
    """Market lifecycle boundaries, fixed at construction."""

    model_config = ConfigDict(frozen=True)

    bidding_end: datetime
    maturity: datetime
    destruction: datetime


class FeeSchedule(BaseModel):
    """Fee rates plus the fee amounts snapshotted at resolution."""

    model_config = ConfigDict(frozen=True)

    pool_fee: Decimal
    creator_fee: Decimal
    refund_fee: Decimal
    creator_fees_collected: Decimal = ZERO
    pool_fees_collected: Decimal = ZERO

    @property
    def total_fee(self) -> Decimal:
        return self.pool_fee + self.creator_fee

    @property
    def fee_multiplier(self) -> Decimal:
        """Fraction of deposits backing options: 1 - pool_fee - creator_fee."""
        return UNIT - self.total_fee

    @property
    def refund_multiplier(self) -> Decimal:
        return UNIT - self.refund_fee


class OracleDetails(BaseModel):
    """Price feed key, strike, and the final price (zero until resolution)."""

    model_config = ConfigDict(frozen=True)

    key: str
    strike_price: Decimal
    final_price: Decimal = ZERO


class Durations(BaseModel):
    """Manager-level duration parameters."""

    model_config = ConfigDict(frozen=True)

    max_oracle_price_age: timedelta
    expiry_duration: timedelta
    max_time_to_maturity: timedelta
