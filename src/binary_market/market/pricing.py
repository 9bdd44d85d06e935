"""Option price calculations — pure functions, no market state."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from binary_market.decimal_math import (
    UNIT,
    checked_sub,
    divide_decimal_round,
    multiply_decimal_round,
    sub_to_zero,
)
from binary_market.errors import ArithmeticPreconditionError
from binary_market.models.market import FeeSchedule, Side, SidePair


class TradeKind(str, Enum):
    BID = "bid"
    REFUND = "refund"


def compute_prices(
    long_bids: Decimal,
    short_bids: Decimal,
    deposited: Decimal,
    fee_multiplier: Decimal,
) -> SidePair:
    """Price each side as its share of the fee-adjusted option supply.

    supply = deposited * (1 - pool_fee - creator_fee)
    price  = side_bids / supply      (both rounded half-up)
    """
    if long_bids == 0 or short_bids == 0:
        raise ArithmeticPreconditionError("Bids must be nonzero")
    supply = multiply_decimal_round(deposited, fee_multiplier)
    return SidePair(
        long=divide_decimal_round(long_bids, supply),
        short=divide_decimal_round(short_bids, supply),
    )


def prices_after_trade(
    total_bids: SidePair,
    deposited: Decimal,
    fees: FeeSchedule,
    side: Side,
    value: Decimal,
    kind: TradeKind,
) -> SidePair:
    """Prices that would result from bidding or refunding *value* on *side*.

    A refund removes the full value from the side's bids but only the
    post-fee amount from the deposits, matching what ``Market.refund`` does.
    """
    bids = total_bids.for_side(side)
    if kind is TradeKind.REFUND:
        bids = checked_sub(bids, value, "Insufficient bids")
        deposited = checked_sub(deposited, multiply_decimal_round(value, fees.refund_multiplier))
    else:
        bids = bids + value
        deposited = deposited + value
    adjusted = total_bids.with_side(side, bids)
    return compute_prices(adjusted.long, adjusted.short, deposited, fees.fee_multiplier)


def bid_or_refund_for_price(
    total_bids: SidePair,
    deposited: Decimal,
    fees: FeeSchedule,
    bid_side: Side,
    price_side: Side,
    price: Decimal,
    kind: TradeKind,
) -> Decimal:
    """Value to bid (or refund) on *bid_side* to move *price_side* to *price*.

    Solves the linear price equation for the trade value. Returns zero when
    the target cannot be reached in that direction, i.e. it is already met.

    With D deposits, b the price side's bids, f the fee multiplier and r the
    refund multiplier:

        same side, bid:     (D·p·f − b) / (1 − p·f)
        same side, refund:  (b − D·p·f) / (1 − p·f·r)
        other side, bid:    b/(p·f) − D
        other side, refund: (D − b/(p·f)) / r
    """
    if price <= 0:
        raise ArithmeticPreconditionError("Price must be positive")
    adjusted_price = multiply_decimal_round(price, fees.fee_multiplier)
    bids = total_bids.for_side(price_side)
    refund = kind is TradeKind.REFUND

    if bid_side is price_side:
        if adjusted_price >= UNIT:
            raise ArithmeticPreconditionError("Price unreachable at current fees")
        deposited_by_price = multiply_decimal_round(deposited, adjusted_price)
        numerator_left, numerator_right = deposited_by_price, bids
        if refund:
            numerator_left, numerator_right = bids, deposited_by_price
            adjusted_price = multiply_decimal_round(adjusted_price, fees.refund_multiplier)
        return divide_decimal_round(
            sub_to_zero(numerator_left, numerator_right),
            UNIT - adjusted_price,
        )

    bids_per_price = divide_decimal_round(bids, adjusted_price)
    if refund:
        value = sub_to_zero(deposited, bids_per_price)
        return divide_decimal_round(value, fees.refund_multiplier)
    return sub_to_zero(bids_per_price, deposited)
