"""External collaborators — interfaces the market consumes, plus in-memory implementations.

The market never looks collaborators up by name: everything it talks to is
handed over once, bundled in a ``MarketCollaborators``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Protocol, runtime_checkable

import structlog

from binary_market.decimal_math import ZERO, checked_sub, require_non_negative
from binary_market.errors import AuthorizationError
from binary_market.market.events import EventBus
from binary_market.models.market import Durations

log = structlog.get_logger("collaborators")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ── Interfaces ────────────────────────────────────────────────


@runtime_checkable
class CollateralTokenLike(Protocol):
    def balance_of(self, account: str) -> Decimal: ...

    def transfer(self, sender: str, to: str, value: Decimal) -> None: ...

    def transfer_from(self, spender: str, from_account: str, to: str, value: Decimal) -> None: ...


@runtime_checkable
class PriceFeed(Protocol):
    def current_round_id(self, key: str) -> int: ...

    def rate_and_timestamp_at_round(self, key: str, round_id: int) -> tuple[Decimal, datetime]: ...


@runtime_checkable
class FeePoolLike(Protocol):
    fee_address: str


@runtime_checkable
class SystemStatusLike(Protocol):
    def is_active(self) -> bool: ...


@runtime_checkable
class MarketManagerLike(Protocol):
    def paused(self) -> bool: ...

    def durations(self) -> Durations: ...

    def increment_total_deposited(self, value: Decimal) -> None: ...

    def decrement_total_deposited(self, value: Decimal) -> None: ...


# ── In-memory implementations ─────────────────────────────────


class CollateralToken:
    """Fungible collateral with standard transfer/approve semantics."""

    def __init__(self, symbol: str = "sUSD") -> None:
        self.symbol = symbol
        self._balances: dict[str, Decimal] = defaultdict(lambda: ZERO)
        self._allowances: dict[tuple[str, str], Decimal] = defaultdict(lambda: ZERO)
        self.total_supply = ZERO

    def mint(self, account: str, value: Decimal) -> None:
        require_non_negative(value)
        self._balances[account] += value
        self.total_supply += value

    def balance_of(self, account: str) -> Decimal:
        return self._balances[account]

    def allowance(self, owner: str, spender: str) -> Decimal:
        return self._allowances[(owner, spender)]

    def approve(self, owner: str, spender: str, value: Decimal) -> None:
        require_non_negative(value)
        self._allowances[(owner, spender)] = value

    def transfer(self, sender: str, to: str, value: Decimal) -> None:
        self._move(sender, to, value)

    def transfer_from(self, spender: str, from_account: str, to: str, value: Decimal) -> None:
        remaining = checked_sub(self._allowances[(from_account, spender)], value, "Insufficient allowance.")
        self._move(from_account, to, value)
        self._allowances[(from_account, spender)] = remaining

    def _move(self, from_account: str, to: str, value: Decimal) -> None:
        require_non_negative(value)
        self._balances[from_account] = checked_sub(
            self._balances[from_account], value, "Insufficient balance.",
        )
        self._balances[to] += value


@dataclass
class FeePool:
    fee_address: str = "fee-pool"


class SystemStatus:
    """Platform-wide operational switch."""

    def __init__(self, active: bool = True) -> None:
        self._active = active

    def is_active(self) -> bool:
        return self._active

    def suspend(self) -> None:
        self._active = False
        log.warning("system_suspended")

    def resume(self) -> None:
        self._active = True
        log.info("system_resumed")


class MarketManager:
    """Aggregate deposit bookkeeping, pause flag and duration parameters."""

    def __init__(self, durations: Durations, paused: bool = False) -> None:
        self._durations = durations
        self._paused = paused
        self.total_deposited = ZERO

    def paused(self) -> bool:
        return self._paused

    def set_paused(self, paused: bool) -> None:
        self._paused = paused
        log.info("manager_pause_changed", paused=paused)

    def durations(self) -> Durations:
        return self._durations

    def increment_total_deposited(self, value: Decimal) -> None:
        self._require_unpaused()
        self.total_deposited += value

    def decrement_total_deposited(self, value: Decimal) -> None:
        self._require_unpaused()
        self.total_deposited = checked_sub(self.total_deposited, value)

    def _require_unpaused(self) -> None:
        if self._paused:
            raise AuthorizationError("This action cannot be performed while the contract is paused", 2004)


@dataclass
class MarketCollaborators:
    """Everything a market talks to, passed once at construction."""

    token: CollateralTokenLike
    oracle: PriceFeed
    fee_pool: FeePoolLike
    system_status: SystemStatusLike
    manager: MarketManagerLike
    clock: Callable[[], datetime] = utc_now
    events: EventBus = field(default_factory=EventBus)
