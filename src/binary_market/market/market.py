"""Market — phase gating, pricing, bidding, resolution, exercise and teardown."""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any

import structlog

from binary_market.decimal_math import (
    ZERO,
    checked_sub,
    multiply_decimal_round,
    sub_to_zero,
    to_amount,
    to_unit,
)
from binary_market.errors import (
    AuthorizationError,
    ConstructionError,
    InsufficientCapitalError,
    MarketDestroyedError,
    MarketError,
    NothingToClaimError,
    NothingToExerciseError,
    PhaseError,
    StalePriceError,
)
from binary_market.market.collaborators import MarketCollaborators
from binary_market.market.option import OptionLedger
from binary_market.market.pricing import (
    TradeKind,
    bid_or_refund_for_price,
    compute_prices,
    prices_after_trade,
)
from binary_market.models.events import (
    BidPlaced,
    MarketDestroyed,
    MarketEvent,
    MarketResolved,
    OptionsClaimed,
    OptionsExercised,
    PricesUpdated,
    Refunded,
)
from binary_market.models.market import (
    FeeSchedule,
    OracleDetails,
    Phase,
    Side,
    SidePair,
    Times,
)

log = structlog.get_logger("market")


class _Transaction:
    """Undo actions for side effects on collaborators made during one operation."""

    def __init__(self) -> None:
        self._compensations: list[Callable[[], None]] = []

    def on_rollback(self, action: Callable[[], None]) -> None:
        self._compensations.append(action)

    def compensate(self) -> None:
        for action in reversed(self._compensations):
            action()


class Market:
    """A two-outcome market over a single oracle observation.

    Deposits are pooled; each side's price is its share of the fee-adjusted
    pool. At maturity the oracle decides the winning side and winners redeem
    one unit of collateral per option.

    Every mutating call is serialised on ``lock`` and is all-or-nothing: a
    failure restores the market and both ledgers, undoes deposit-total
    updates on the manager, and drops the notifications it queued.
    """

    def __init__(
        self,
        *,
        owner: str,
        creator: str,
        capital_requirement: Decimal | int | str,
        oracle_key: str,
        strike_price: Decimal | int | str,
        times: Times,
        initial_bids: SidePair,
        fees: FeeSchedule,
        collaborators: MarketCollaborators,
        address: str | None = None,
    ) -> None:
        self.address = address or f"market-{uuid.uuid4().hex[:12]}"
        self.owner = owner
        self.creator = creator
        self.lock = threading.RLock()
        self.events = collaborators.events
        self._collaborators = collaborators

        long_bid = to_unit(initial_bids.long)
        short_bid = to_unit(initial_bids.short)
        fees = FeeSchedule(
            pool_fee=to_unit(fees.pool_fee),
            creator_fee=to_unit(fees.creator_fee),
            refund_fee=to_unit(fees.refund_fee),
        )
        self.capital_requirement = to_unit(capital_requirement)
        _validate_times(times)
        _validate_fees(fees)
        if long_bid <= 0 or short_bid <= 0:
            raise ConstructionError("Bids must be nonzero")
        initial_deposit = long_bid + short_bid
        if self.capital_requirement > initial_deposit:
            raise ConstructionError("Insufficient capital")

        self._times = times
        self._fees = fees
        self._oracle_details = OracleDetails(key=oracle_key, strike_price=to_unit(strike_price))
        self._deposited = initial_deposit
        self._prices = compute_prices(long_bid, short_bid, initial_deposit, fees.fee_multiplier)
        self._resolved = False
        self._destroyed = False

        self._long = OptionLedger(self, Side.LONG, creator, long_bid)
        self._short = OptionLedger(self, Side.SHORT, creator, short_bid)

        with self._atomic("create") as txn:
            self._increment_total_deposited(txn, initial_deposit)
            self._collaborators.token.transfer_from(self.address, creator, self.address, initial_deposit)
            self._emit(PricesUpdated, long_price=self._prices.long, short_price=self._prices.short)

        log.info(
            "market_created",
            market=self.address,
            creator=creator,
            oracle_key=oracle_key,
            strike_price=str(self._oracle_details.strike_price),
            deposited=str(initial_deposit),
            long_price=str(self._prices.long),
            short_price=str(self._prices.short),
        )

    # ── State views ───────────────────────────────────────────

    @property
    def times(self) -> Times:
        return self._times

    @property
    def fees(self) -> FeeSchedule:
        return self._fees

    @property
    def oracle_details(self) -> OracleDetails:
        return self._oracle_details

    @property
    def prices(self) -> SidePair:
        return self._prices

    @property
    def deposited(self) -> Decimal:
        return self._deposited

    @property
    def resolved(self) -> bool:
        return self._resolved

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def long(self) -> OptionLedger:
        return self._long

    @property
    def short(self) -> OptionLedger:
        return self._short

    def option(self, side: Side) -> OptionLedger:
        return self._long if side is Side.LONG else self._short

    def price_of(self, side: Side) -> Decimal:
        return self._prices.for_side(side)

    def bids_of(self, account: str) -> SidePair:
        return SidePair(long=self._long.bid_of(account), short=self._short.bid_of(account))

    def total_bids(self) -> SidePair:
        return SidePair(long=self._long.total_bids, short=self._short.total_bids)

    def claimable_by(self, account: str) -> SidePair:
        return SidePair(long=self._long.claimable_by(account), short=self._short.claimable_by(account))

    def total_claimable(self) -> SidePair:
        return SidePair(long=self._long.total_claimable(), short=self._short.total_claimable())

    def balances_of(self, account: str) -> SidePair:
        return SidePair(long=self._long.balance_of(account), short=self._short.balance_of(account))

    def total_supplies(self) -> SidePair:
        return SidePair(long=self._long.total_supply, short=self._short.total_supply)

    def total_exercisable(self) -> SidePair:
        return SidePair(long=self._long.total_exercisable(), short=self._short.total_exercisable())

    # ── Phases ────────────────────────────────────────────────

    def now(self) -> datetime:
        return self._collaborators.clock()

    def phase(self) -> Phase:
        now = self.now()
        if now < self._times.bidding_end:
            return Phase.BIDDING
        if now < self._times.maturity:
            return Phase.TRADING
        if now < self._times.destruction:
            return Phase.MATURITY
        return Phase.DESTRUCTION

    def bidding_ended(self) -> bool:
        return self.now() >= self._times.bidding_end

    def matured(self) -> bool:
        return self.now() >= self._times.maturity

    def destructible(self) -> bool:
        return self.now() >= self._times.destruction

    # ── Pricing ───────────────────────────────────────────────

    def prices_after_bid_or_refund(
        self,
        side: Side,
        value: Decimal | int | str,
        refund: bool = False,
    ) -> SidePair:
        """Simulate the prices after a bid (or refund) without touching state."""
        kind = TradeKind.REFUND if refund else TradeKind.BID
        return prices_after_trade(self.total_bids(), self._deposited, self._fees, side, to_amount(value), kind)

    def bid_or_refund_for_price(
        self,
        bid_side: Side,
        price_side: Side,
        price: Decimal | int | str,
        refund: bool = False,
    ) -> Decimal:
        """Trade size on *bid_side* that moves *price_side* to *price*; zero if already there."""
        kind = TradeKind.REFUND if refund else TradeKind.BID
        return bid_or_refund_for_price(
            self.total_bids(), self._deposited, self._fees, bid_side, price_side, to_unit(price), kind,
        )

    def _update_prices(self) -> None:
        totals = self.total_bids()
        self._prices = compute_prices(totals.long, totals.short, self._deposited, self._fees.fee_multiplier)
        self._emit(PricesUpdated, long_price=self._prices.long, short_price=self._prices.short)

    # ── Bidding ───────────────────────────────────────────────

    def bid(self, sender: str, side: Side, value: Decimal | int | str) -> None:
        value = to_amount(value)
        with self._atomic("bid") as txn:
            self._require_bidding()
            if value == 0:
                return
            self.option(side).bid(self.address, sender, value)
            self._emit(BidPlaced, side=side, account=sender, value=value)
            self._deposited += value
            self._increment_total_deposited(txn, value)
            self._collaborators.token.transfer_from(self.address, sender, self.address, value)
            self._update_prices()

        log.info(
            "bid_placed",
            market=self.address,
            side=side.value,
            account=sender,
            value=str(value),
            long_price=str(self._prices.long),
            short_price=str(self._prices.short),
        )

    def refund(self, sender: str, side: Side, value: Decimal | int | str) -> Decimal:
        """Withdraw part of a bid; returns the amount paid back after the refund fee."""
        value = to_amount(value)
        with self._atomic("refund") as txn:
            self._require_bidding()
            if value == 0:
                return ZERO
            if sender == self.creator:
                self._require_creator_capital(side, value)

            refund_minus_fee = multiply_decimal_round(value, self._fees.refund_multiplier)
            self.option(side).refund(self.address, sender, value)
            self._emit(
                Refunded,
                side=side,
                account=sender,
                value=refund_minus_fee,
                fee=value - refund_minus_fee,
            )
            self._deposited = checked_sub(self._deposited, refund_minus_fee)
            self._decrement_total_deposited(txn, refund_minus_fee)
            self._collaborators.token.transfer(self.address, sender, refund_minus_fee)
            self._update_prices()

        log.info(
            "refund_processed",
            market=self.address,
            side=side.value,
            account=sender,
            value=str(value),
            refunded=str(refund_minus_fee),
        )
        return refund_minus_fee

    def _require_creator_capital(self, side: Side, value: Decimal) -> None:
        bids = self.bids_of(self.creator)
        if bids.total - value < self.capital_requirement:
            raise InsufficientCapitalError()
        if value >= bids.for_side(side):
            raise InsufficientCapitalError("Cannot refund entire position")

    # ── Resolution ────────────────────────────────────────────

    def oracle_price_and_timestamp(self) -> tuple[Decimal, datetime]:
        oracle = self._collaborators.oracle
        key = self._oracle_details.key
        return oracle.rate_and_timestamp_at_round(key, oracle.current_round_id(key))

    def _freshness_threshold(self) -> datetime:
        return self._times.maturity - self._collaborators.manager.durations().max_oracle_price_age

    def can_resolve(self) -> bool:
        if self._resolved or not self.matured():
            return False
        _, observed_at = self.oracle_price_and_timestamp()
        return observed_at >= self._freshness_threshold()

    def result(self) -> Side:
        """Winning side: LONG when the strike is at or below the observed price."""
        if self._resolved:
            price = self._oracle_details.final_price
        else:
            price, _ = self.oracle_price_and_timestamp()
        return Side.LONG if self._oracle_details.strike_price <= price else Side.SHORT

    def resolve(self) -> Side:
        with self._atomic("resolve"):
            outcome = self._resolve()
        return outcome

    def _resolve(self) -> Side:
        self._require_matured()
        if self._resolved:
            raise PhaseError("Market already resolved", 1003)
        self._require_system_active()
        self._require_manager_unpaused()

        price, observed_at = self.oracle_price_and_timestamp()
        threshold = self._freshness_threshold()
        if observed_at < threshold:
            raise StalePriceError(self._oracle_details.key, observed_at, threshold)

        deposited = self._deposited
        creator_fees = multiply_decimal_round(deposited, self._fees.creator_fee)
        pool_fees = multiply_decimal_round(deposited, self._fees.pool_fee)
        self._oracle_details = self._oracle_details.model_copy(update={"final_price": price})
        self._fees = self._fees.model_copy(
            update={"creator_fees_collected": creator_fees, "pool_fees_collected": pool_fees},
        )
        self._resolved = True

        outcome = self.result()
        self._emit(
            MarketResolved,
            result=outcome,
            oracle_price=price,
            oracle_timestamp=observed_at,
            deposited=deposited,
            pool_fees=pool_fees,
            creator_fees=creator_fees,
        )
        log.info(
            "market_resolved",
            market=self.address,
            result=outcome.value,
            oracle_price=str(price),
            strike_price=str(self._oracle_details.strike_price),
            deposited=str(deposited),
            creator_fees=str(creator_fees),
        )
        return outcome

    # ── Claiming and exercising ───────────────────────────────

    def exercisable_deposits(self) -> Decimal:
        """Collateral backing option payouts: deposits net of pool and creator fees."""
        if self._resolved:
            collected = self._fees.creator_fees_collected + self._fees.pool_fees_collected
            return sub_to_zero(self._deposited, collected)
        return multiply_decimal_round(self._deposited, self._fees.fee_multiplier)

    def claim_options(self, sender: str) -> SidePair:
        with self._atomic("claim_options"):
            claimed = self._claim_options(sender)
        log.info(
            "options_claimed",
            market=self.address,
            account=sender,
            long_options=str(claimed.long),
            short_options=str(claimed.short),
        )
        return claimed

    def _claim_options(self, sender: str) -> SidePair:
        self._require_bidding_ended()
        self._require_system_active()
        self._require_manager_unpaused()

        exercisable = self.exercisable_deposits()
        outcome = self.result() if self._resolved else None

        # Once resolved only the winning side is worth claiming.
        long_options = ZERO
        short_options = ZERO
        if outcome is None or outcome is Side.LONG:
            long_options = self._long.claim(self.address, sender, exercisable)
        if outcome is None or outcome is Side.SHORT:
            short_options = self._short.claim(self.address, sender, exercisable)

        if long_options == 0 and short_options == 0:
            raise NothingToClaimError()
        self._emit(OptionsClaimed, account=sender, long_options=long_options, short_options=short_options)
        return SidePair(long=long_options, short=short_options)

    def exercise_options(self, sender: str) -> Decimal:
        """Redeem the caller's options; returns the collateral paid out."""
        with self._atomic("exercise_options") as txn:
            self._require_matured()
            self._require_system_active()
            if not self._resolved:
                self._resolve()

            outcome = self.result()
            if self.option(outcome).claimable_by(sender) != 0:
                self._claim_options(sender)

            balances = self.balances_of(sender)
            if balances.long == 0 and balances.short == 0:
                raise NothingToExerciseError()

            if balances.long != 0:
                self._long.exercise(self.address, sender)
            if balances.short != 0:
                self._short.exercise(self.address, sender)

            payout = balances.for_side(outcome)
            self._emit(OptionsExercised, account=sender, value=payout)
            if payout != 0:
                self._deposited = checked_sub(self._deposited, payout)
                self._decrement_total_deposited(txn, payout)
                self._collaborators.token.transfer(self.address, sender, payout)

        log.info(
            "options_exercised",
            market=self.address,
            account=sender,
            result=outcome.value,
            payout=str(payout),
        )
        return payout

    # ── Destruction ───────────────────────────────────────────

    def destruction_reward(self) -> Decimal:
        """Unexercised winning-side collateral plus creator fees, capped at the deposits."""
        deposited = self._deposited
        unexercised = min(self.option(self.result()).total_exercisable(), deposited)
        return min(unexercised + self._fees.creator_fees_collected, deposited)

    def self_destruct(self, sender: str, beneficiary: str) -> Decimal:
        """Pay the destruction reward, sweep the rest to the fee pool, and close the market."""
        with self._atomic("self_destruct") as txn:
            self._require_owner(sender)
            self._require_destructible()
            if not self._resolved:
                raise PhaseError("Market unresolved", 1004)

            token = self._collaborators.token
            deposited = self._deposited
            reward = self.destruction_reward()
            self._decrement_total_deposited(txn, deposited)
            if reward != 0:
                token.transfer(self.address, beneficiary, reward)

            # Sweep the actual balance so stray direct transfers are not stranded.
            swept = token.balance_of(self.address)
            if swept != 0:
                token.transfer(self.address, self._collaborators.fee_pool.fee_address, swept)

            self._long.self_destruct(self.address, beneficiary)
            self._short.self_destruct(self.address, beneficiary)
            self._deposited = ZERO
            self._destroyed = True
            self._emit(MarketDestroyed, beneficiary=beneficiary, reward=reward, swept=swept)

        log.info(
            "market_destroyed",
            market=self.address,
            beneficiary=beneficiary,
            reward=str(reward),
            swept=str(swept),
        )
        return reward

    # ── Transactions ──────────────────────────────────────────

    @contextmanager
    def _atomic(self, operation: str) -> Iterator[_Transaction]:
        with self.lock:
            if self._destroyed:
                raise MarketDestroyedError(self.address)
            checkpoint = self._checkpoint()
            txn = _Transaction()
            try:
                with self.events.transaction():
                    yield txn
            except BaseException as exc:
                txn.compensate()
                self._restore(checkpoint)
                if isinstance(exc, MarketError):
                    log.warning(
                        "operation_rejected",
                        market=self.address,
                        operation=operation,
                        code=exc.code,
                        reason=exc.message,
                    )
                raise

    def _checkpoint(self) -> dict[str, Any]:
        return {
            "deposited": self._deposited,
            "prices": self._prices,
            "fees": self._fees,
            "oracle_details": self._oracle_details,
            "resolved": self._resolved,
            "destroyed": self._destroyed,
            "long": self._long.checkpoint(),
            "short": self._short.checkpoint(),
        }

    def _restore(self, state: dict[str, Any]) -> None:
        self._deposited = state["deposited"]
        self._prices = state["prices"]
        self._fees = state["fees"]
        self._oracle_details = state["oracle_details"]
        self._resolved = state["resolved"]
        self._destroyed = state["destroyed"]
        self._long.restore(state["long"])
        self._short.restore(state["short"])

    def _increment_total_deposited(self, txn: _Transaction, value: Decimal) -> None:
        manager = self._collaborators.manager
        manager.increment_total_deposited(value)
        txn.on_rollback(lambda: manager.decrement_total_deposited(value))

    def _decrement_total_deposited(self, txn: _Transaction, value: Decimal) -> None:
        manager = self._collaborators.manager
        manager.decrement_total_deposited(value)
        txn.on_rollback(lambda: manager.increment_total_deposited(value))

    def _emit(self, event_cls: type[MarketEvent], **fields: Any) -> None:
        self.events.publish(event_cls(market=self.address, source=self.address, ts=self.now(), **fields))

    # ── Guards ────────────────────────────────────────────────

    def _require_owner(self, sender: str) -> None:
        if sender != self.owner:
            raise AuthorizationError("Only the contract owner may perform this action", 2001)

    def _require_system_active(self) -> None:
        if not self._collaborators.system_status.is_active():
            raise AuthorizationError("Operation prohibited", 2003)

    def _require_manager_unpaused(self) -> None:
        if self._collaborators.manager.paused():
            raise AuthorizationError("This action cannot be performed while the contract is paused", 2004)

    def _require_bidding(self) -> None:
        if self.bidding_ended():
            raise PhaseError("Bidding inactive")

    def _require_bidding_ended(self) -> None:
        if not self.bidding_ended():
            raise PhaseError("Bidding incomplete")

    def _require_matured(self) -> None:
        if not self.matured():
            raise PhaseError("Not yet mature")

    def _require_destructible(self) -> None:
        if not self.destructible():
            raise PhaseError("Market cannot be destroyed yet")


def _validate_times(times: Times) -> None:
    if not times.bidding_end < times.maturity:
        raise ConstructionError("Maturity predates end of bidding")
    if not times.maturity < times.destruction:
        raise ConstructionError("Destruction predates maturity")


def _validate_fees(fees: FeeSchedule) -> None:
    if min(fees.pool_fee, fees.creator_fee, fees.refund_fee) < 0:
        raise ConstructionError("Fees must be non-negative")
    if fees.total_fee >= 1:
        raise ConstructionError("Fee must be less than 100%")
    if fees.total_fee <= 0:
        raise ConstructionError("Fee must be nonzero")
    if fees.refund_fee > 1:
        raise ConstructionError("Refund fee must be no greater than 100%")
