"""Tests for market teardown — reward, sweep and the terminal state."""

from __future__ import annotations

from decimal import Decimal

import pytest

from binary_market.errors import AuthorizationError, MarketDestroyedError, PhaseError
from binary_market.models import MarketDestroyed, Side

from conftest import ALICE, BOB, CREATOR, FUNDING, OWNER, START, publish_price


def _resolve(market, collaborators, clock, price):
    publish_price(collaborators, price, START)
    clock.set(market.times.maturity)
    market.resolve()


class TestDestructionReward:
    def test_unexercised_winners_go_to_beneficiary(self, market, collaborators, clock):
        _resolve(market, collaborators, clock, "150")
        unexercised = market.long.total_exercisable()
        assert market.destruction_reward() == min(unexercised + Decimal("0.1"), Decimal(10))

    def test_after_full_exercise_only_creator_fees(self, market, collaborators, clock):
        clock.set(market.times.bidding_end)
        market.claim_options(CREATOR)
        _resolve(market, collaborators, clock, "50")
        market.exercise_options(CREATOR)
        assert market.destruction_reward() == Decimal("0.1")


class TestSelfDestruct:
    def test_pays_reward_and_sweeps_remainder(self, market, collaborators, clock):
        _resolve(market, collaborators, clock, "150")
        reward = market.destruction_reward()
        clock.set(market.times.destruction)

        assert market.self_destruct(OWNER, CREATOR) == reward

        token = collaborators.token
        assert token.balance_of(CREATOR) == FUNDING - 10 + reward
        assert token.balance_of(collaborators.fee_pool.fee_address) == Decimal(10) - reward
        assert token.balance_of(market.address) == 0
        assert collaborators.manager.total_deposited == 0
        assert market.deposited == 0

    def test_stray_collateral_swept(self, market, collaborators, clock):
        collaborators.token.transfer(BOB, market.address, Decimal(1))
        clock.set(market.times.bidding_end)
        market.claim_options(CREATOR)
        _resolve(market, collaborators, clock, "50")
        market.exercise_options(CREATOR)
        clock.set(market.times.destruction)

        market.self_destruct(OWNER, CREATOR)

        assert collaborators.token.balance_of(collaborators.fee_pool.fee_address) == Decimal("1.1")

    def test_terminal_state(self, market, collaborators, clock):
        _resolve(market, collaborators, clock, "150")
        clock.set(market.times.destruction)
        market.self_destruct(OWNER, CREATOR)

        assert market.destroyed
        assert market.long.destroyed and market.short.destroyed
        assert market.long.total_bids == 0
        event = collaborators.events.history[-1]
        assert isinstance(event, MarketDestroyed)
        assert event.beneficiary == CREATOR

    def test_destroyed_market_rejects_everything(self, market, collaborators, clock):
        _resolve(market, collaborators, clock, "150")
        clock.set(market.times.destruction)
        market.self_destruct(OWNER, CREATOR)

        with pytest.raises(MarketDestroyedError):
            market.exercise_options(CREATOR)
        with pytest.raises(MarketDestroyedError):
            market.self_destruct(OWNER, CREATOR)
        with pytest.raises(MarketDestroyedError):
            market.long.transfer(CREATOR, ALICE, Decimal(1))


class TestSelfDestructRejected:
    def test_not_owner(self, market, collaborators, clock):
        _resolve(market, collaborators, clock, "150")
        clock.set(market.times.destruction)
        with pytest.raises(AuthorizationError) as exc_info:
            market.self_destruct(CREATOR, CREATOR)
        assert exc_info.value.code == 2001

    def test_too_early(self, market, collaborators, clock):
        _resolve(market, collaborators, clock, "150")
        with pytest.raises(PhaseError, match="Market cannot be destroyed yet"):
            market.self_destruct(OWNER, CREATOR)

    def test_unresolved(self, market, clock):
        clock.set(market.times.destruction)
        with pytest.raises(PhaseError, match="Market unresolved") as exc_info:
            market.self_destruct(OWNER, CREATOR)
        assert exc_info.value.code == 1004
        assert not market.destroyed

    def test_paused_manager_blocks_teardown(self, market, collaborators, clock):
        _resolve(market, collaborators, clock, "150")
        clock.set(market.times.destruction)
        collaborators.manager.set_paused(True)
        with pytest.raises(AuthorizationError):
            market.self_destruct(OWNER, CREATOR)
        assert not market.destroyed
        assert collaborators.token.balance_of(market.address) == Decimal(10)

    def test_resolution_survives_late_bids_attempt(self, market, collaborators, clock):
        _resolve(market, collaborators, clock, "150")
        with pytest.raises(PhaseError):
            market.bid(ALICE, Side.LONG, Decimal(1))
        assert market.resolved
