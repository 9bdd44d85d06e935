"""Tests for the per-side option ledger — claims, transfers, allowances and burns."""

from __future__ import annotations

from decimal import Decimal

import pytest

from binary_market.decimal_math import divide_decimal
from binary_market.errors import (
    ArithmeticPreconditionError,
    AuthorizationError,
    InsufficientFundsError,
    NothingToClaimError,
    PhaseError,
)
from binary_market.models import ZERO_ADDRESS, Approval, Issued, OptionsClaimed, Side, SidePair, Transfer

from conftest import ALICE, BOB, CREATOR


def _ledger_events(collaborators, source):
    return [e for e in collaborators.events.history if e.source == source]


@pytest.fixture
def claimed(market, clock):
    """Alice bids five long, then claims once bidding has ended."""
    market.bid(ALICE, Side.LONG, Decimal(5))
    clock.set(market.times.bidding_end)
    market.claim_options(ALICE)
    return market


class TestViews:
    def test_claimable_before_bidding_ends(self, market):
        market.bid(ALICE, Side.LONG, Decimal(5))
        price = market.prices.long
        assert market.long.claimable_by(ALICE) == divide_decimal(Decimal(5), price)
        assert market.long.total_claimable() == divide_decimal(Decimal(10), price)
        assert market.claimable_by(BOB) == SidePair()

    def test_price_follows_market(self, market):
        market.bid(ALICE, Side.SHORT, Decimal(5))
        assert market.short.price() == market.prices.short

    def test_total_exercisable_counts_supply_and_claimable(self, claimed):
        ledger = claimed.long
        assert ledger.total_exercisable() == ledger.total_supply + ledger.total_claimable()
        assert ledger.total_supply == ledger.balance_of(ALICE)


class TestMarketOnly:
    def test_bid_from_outsider(self, market):
        with pytest.raises(AuthorizationError, match="Permitted only for the market.") as exc_info:
            market.long.bid(ALICE, ALICE, Decimal(1))
        assert exc_info.value.code == 2002

    def test_claim_from_outsider(self, market, clock):
        clock.set(market.times.bidding_end)
        with pytest.raises(AuthorizationError):
            market.short.claim(CREATOR, CREATOR, Decimal(100))

    def test_exercise_from_outsider(self, market):
        with pytest.raises(AuthorizationError):
            market.long.exercise(ALICE, ALICE)


class TestClaim:
    def test_claim_during_bidding_rejected(self, market):
        with pytest.raises(PhaseError, match="Bidding incomplete"):
            market.claim_options(CREATOR)

    def test_claim_mints_at_price(self, market, clock):
        market.bid(ALICE, Side.LONG, Decimal(5))
        expected = divide_decimal(Decimal(5), market.prices.long)
        clock.set(market.times.bidding_end)

        claimed = market.claim_options(ALICE)

        assert claimed == SidePair(long=expected)
        assert market.long.balance_of(ALICE) == expected
        assert market.long.bid_of(ALICE) == 0
        assert market.long.total_bids == Decimal(5)

    def test_claim_event_order(self, claimed, collaborators):
        events = _ledger_events(collaborators, claimed.long.address)
        transfer, issued = events[-2:]
        assert isinstance(transfer, Transfer)
        assert transfer.from_account == ZERO_ADDRESS
        assert transfer.to_account == ALICE
        assert isinstance(issued, Issued)
        assert issued.value == transfer.value
        assert isinstance(collaborators.events.history[-1], OptionsClaimed)

    def test_second_claim_has_nothing(self, claimed):
        with pytest.raises(NothingToClaimError):
            claimed.claim_options(ALICE)

    def test_claim_capped_by_exercisable_deposits(self, market, clock):
        # 5 / 0.510204081632653061 truncates just above 9.8, the fee-adjusted pool.
        clock.set(market.times.bidding_end)
        claimed = market.claim_options(CREATOR)
        assert claimed == SidePair(long=Decimal("9.8"), short=Decimal("9.8"))
        assert market.total_supplies() == SidePair(long=Decimal("9.8"), short=Decimal("9.8"))

    def test_zero_bid_claims_nothing(self, market, clock):
        clock.set(market.times.bidding_end)
        assert market.long.claim(market.address, BOB, Decimal(100)) == 0


class TestTransfers:
    def test_transfer_during_bidding_rejected(self, market):
        with pytest.raises(PhaseError, match="Bidding incomplete"):
            market.long.transfer(CREATOR, ALICE, Decimal(1))

    def test_transfer(self, claimed, collaborators):
        ledger = claimed.long
        held = ledger.balance_of(ALICE)
        ledger.transfer(ALICE, BOB, Decimal(1))

        assert ledger.balance_of(ALICE) == held - 1
        assert ledger.balance_of(BOB) == Decimal(1)
        event = collaborators.events.history[-1]
        assert isinstance(event, Transfer)
        assert (event.from_account, event.to_account, event.value) == (ALICE, BOB, Decimal(1))

    def test_transfer_insufficient_balance(self, claimed):
        with pytest.raises(InsufficientFundsError, match="Insufficient balance."):
            claimed.long.transfer(BOB, ALICE, Decimal(1))

    def test_approve_allowed_during_bidding(self, market, collaborators):
        market.long.approve(ALICE, BOB, Decimal(3))
        assert market.long.allowance(ALICE, BOB) == Decimal(3)
        assert isinstance(collaborators.events.history[-1], Approval)

    def test_transfer_from_spends_allowance(self, claimed):
        ledger = claimed.long
        ledger.approve(ALICE, BOB, Decimal(3))
        ledger.transfer_from(BOB, ALICE, BOB, Decimal(2))

        assert ledger.allowance(ALICE, BOB) == Decimal(1)
        assert ledger.balance_of(BOB) == Decimal(2)

    def test_transfer_from_insufficient_allowance(self, claimed):
        ledger = claimed.long
        ledger.approve(ALICE, BOB, Decimal(1))
        with pytest.raises(InsufficientFundsError, match="Insufficient allowance."):
            ledger.transfer_from(BOB, ALICE, BOB, Decimal(2))
        assert ledger.allowance(ALICE, BOB) == Decimal(1)


class TestExercise:
    def test_zero_balance_is_noop(self, market, collaborators):
        before = len(collaborators.events.history)
        assert market.long.exercise(market.address, BOB) == 0
        assert len(collaborators.events.history) == before


class TestNegativeTransfers:
    def test_negative_transfer_cannot_pull_from_recipient(self, claimed):
        ledger = claimed.long
        ledger.transfer(ALICE, BOB, Decimal(2))
        alice, bob = ledger.balance_of(ALICE), ledger.balance_of(BOB)

        with pytest.raises(ArithmeticPreconditionError):
            ledger.transfer(ALICE, BOB, Decimal(-1))

        assert ledger.balance_of(ALICE) == alice
        assert ledger.balance_of(BOB) == bob

    def test_negative_transfer_from_rejected(self, claimed):
        ledger = claimed.long
        ledger.approve(ALICE, BOB, Decimal(3))
        with pytest.raises(ArithmeticPreconditionError):
            ledger.transfer_from(BOB, ALICE, BOB, Decimal(-1))
        assert ledger.allowance(ALICE, BOB) == Decimal(3)
        assert ledger.balance_of(BOB) == 0

    def test_negative_approve_rejected(self, market):
        with pytest.raises(ArithmeticPreconditionError):
            market.long.approve(ALICE, BOB, Decimal(-1))
        assert market.long.allowance(ALICE, BOB) == 0


class TestClaimGates:
    def test_paused_manager_blocks_claim(self, market, collaborators, clock):
        market.bid(ALICE, Side.LONG, Decimal(5))
        clock.set(market.times.bidding_end)
        collaborators.manager.set_paused(True)

        with pytest.raises(AuthorizationError) as exc_info:
            market.claim_options(ALICE)

        assert exc_info.value.code == 2004
        assert market.long.bid_of(ALICE) == Decimal(5)
        assert market.long.balance_of(ALICE) == 0

    def test_inactive_system_blocks_claim(self, market, collaborators, clock):
        clock.set(market.times.bidding_end)
        collaborators.system_status.suspend()
        with pytest.raises(AuthorizationError, match="Operation prohibited"):
            market.claim_options(CREATOR)
