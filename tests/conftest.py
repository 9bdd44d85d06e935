"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from binary_market.db.base import Base
from binary_market.market import (
    CollateralToken,
    EventBus,
    FeePool,
    Market,
    MarketCollaborators,
    MarketManager,
    RoundPriceOracle,
    SystemStatus,
)
from binary_market.models import Durations, FeeSchedule, SidePair, Times

import binary_market.db.tables  # noqa: F401

START = datetime(2026, 1, 1, tzinfo=timezone.utc)

OWNER = "owner"
CREATOR = "creator"
ALICE = "alice"
BOB = "bob"

ORACLE_KEY = "sBTC"
STRIKE = Decimal("100")
CAPITAL_REQUIREMENT = Decimal("2")
INITIAL_BIDS = SidePair(long=Decimal("5"), short=Decimal("5"))
FEES = FeeSchedule(pool_fee=Decimal("0.01"), creator_fee=Decimal("0.01"), refund_fee=Decimal("0.05"))
FUNDING = Decimal("1000")


class FakeClock:
    """Manually advanced clock handed to markets in place of wall time."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)

    def set(self, now: datetime) -> None:
        self.now = now


@pytest.fixture
def db_session():
    """In-memory SQLite session with the journal tables created."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    session = Session(engine)
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def db_factory(tmp_path):
    """Session factory over a file-backed SQLite database."""
    engine = create_engine(f"sqlite:///{tmp_path / 'journal.db'}")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def durations():
    return Durations(
        max_oracle_price_age=timedelta(hours=2),
        expiry_duration=timedelta(seconds=100),
        max_time_to_maturity=timedelta(days=365),
    )


@pytest.fixture
def collaborators(clock, durations):
    token = CollateralToken()
    for account in (CREATOR, ALICE, BOB):
        token.mint(account, FUNDING)
    return MarketCollaborators(
        token=token,
        oracle=RoundPriceOracle(genesis=datetime(1970, 1, 1, tzinfo=timezone.utc)),
        fee_pool=FeePool(),
        system_status=SystemStatus(),
        manager=MarketManager(durations),
        clock=clock,
        events=EventBus(),
    )


@pytest.fixture
def times():
    return Times(
        bidding_end=START + timedelta(seconds=100),
        maturity=START + timedelta(seconds=200),
        destruction=START + timedelta(seconds=300),
    )


@pytest.fixture
def make_market(collaborators, times):
    """Build a market with the creator's collateral pre-approved for it."""

    def _make(
        *,
        address: str = "market-test",
        initial_bids: SidePair = INITIAL_BIDS,
        fees: FeeSchedule = FEES,
        capital_requirement: Decimal = CAPITAL_REQUIREMENT,
        strike_price: Decimal = STRIKE,
        market_times: Times | None = None,
    ) -> Market:
        token = collaborators.token
        for account in (CREATOR, ALICE, BOB):
            token.approve(account, address, FUNDING)
        return Market(
            owner=OWNER,
            creator=CREATOR,
            capital_requirement=capital_requirement,
            oracle_key=ORACLE_KEY,
            strike_price=strike_price,
            times=market_times or times,
            initial_bids=initial_bids,
            fees=fees,
            collaborators=collaborators,
            address=address,
        )

    return _make


@pytest.fixture
def market(make_market):
    return make_market()


def publish_price(collaborators, price, observed_at) -> int:
    return collaborators.oracle.update_price(ORACLE_KEY, price, observed_at)


def to_maturity(clock: FakeClock, market: Market) -> None:
    clock.set(market.times.maturity)
