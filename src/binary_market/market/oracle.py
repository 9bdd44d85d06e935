"""RoundPriceOracle — in-memory round-based price feed keyed by currency key."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

import structlog

from binary_market.decimal_math import to_unit
from binary_market.errors import ArithmeticPreconditionError

log = structlog.get_logger("price_oracle")


@dataclass(frozen=True)
class PriceRound:
    """One published observation."""

    price: Decimal
    observed_at: datetime
    source: str  # "feed", "manual"


class RoundPriceOracle:
    """Stores every published round per key; round ids start at 1.

    Round 0 is the "no data" round and reports a zero price observed at the
    epoch passed in as ``genesis``.
    """

    def __init__(self, genesis: datetime) -> None:
        self._genesis = genesis
        self._rounds: dict[str, list[PriceRound]] = {}

    # ── Feed interface ────────────────────────────────────────

    def current_round_id(self, key: str) -> int:
        return len(self._rounds.get(key, []))

    def rate_and_timestamp_at_round(self, key: str, round_id: int) -> tuple[Decimal, datetime]:
        rounds = self._rounds.get(key, [])
        if round_id == 0:
            return Decimal("0"), self._genesis
        if round_id < 0 or round_id > len(rounds):
            raise ArithmeticPreconditionError(f"Unknown round {round_id} for {key}")
        entry = rounds[round_id - 1]
        return entry.price, entry.observed_at

    # ── Publishing ────────────────────────────────────────────

    def update_price(
        self,
        key: str,
        price: Decimal | int | str,
        observed_at: datetime,
        source: str = "manual",
    ) -> int:
        """Publish a new round and return its id."""
        entry = PriceRound(price=to_unit(price), observed_at=observed_at, source=source)
        self._rounds.setdefault(key, []).append(entry)
        round_id = len(self._rounds[key])
        log.debug("oracle_round_published", key=key, round_id=round_id, price=str(entry.price))
        return round_id

    def latest(self, key: str) -> PriceRound | None:
        rounds = self._rounds.get(key)
        if not rounds:
            return None
        return rounds[-1]
