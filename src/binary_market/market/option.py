"""OptionLedger — per-outcome bids, claims, and the fungible option balance surface."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog

from binary_market.decimal_math import ZERO, checked_sub, divide_decimal, require_non_negative, sub_to_zero
from binary_market.errors import AuthorizationError, MarketDestroyedError, PhaseError
from binary_market.models.events import (
    ZERO_ADDRESS,
    Approval,
    Burned,
    Issued,
    MarketEvent,
    Transfer,
)
from binary_market.models.market import Side

if TYPE_CHECKING:
    from binary_market.market.market import Market

log = structlog.get_logger("option_ledger")


class OptionLedger:
    """Bookkeeping for one side of a binary market.

    Before bidding ends an account only holds a bid. Once bidding ends the
    bid can be claimed, converting it at the side's current price into a
    transferable balance; the balance is burned when exercised. Every
    mutation of bids or claims must come from the owning market.
    """

    decimals = 18

    def __init__(
        self,
        market: "Market",
        side: Side,
        initial_bidder: str,
        initial_bid: Decimal,
    ) -> None:
        self.market = market
        self.side = side
        self.name = f"Binary Option {side.value.title()}"
        self.symbol = "sLONG" if side is Side.LONG else "sSHORT"
        self.address = f"{market.address}:{side.value}"

        self._bids: dict[str, Decimal] = {initial_bidder: initial_bid}
        self.total_bids = initial_bid
        self._balances: dict[str, Decimal] = {}
        self._allowances: dict[tuple[str, str], Decimal] = {}
        self.total_supply = ZERO
        self.destroyed = False

    # ── Views ─────────────────────────────────────────────────

    def price(self) -> Decimal:
        """Current bid-to-option conversion price, as published by the market."""
        return self.market.price_of(self.side)

    def bid_of(self, account: str) -> Decimal:
        return self._bids.get(account, ZERO)

    def balance_of(self, account: str) -> Decimal:
        return self._balances.get(account, ZERO)

    def allowance(self, owner: str, spender: str) -> Decimal:
        return self._allowances.get((owner, spender), ZERO)

    def claimable_by(self, account: str) -> Decimal:
        bid = self.bid_of(account)
        if bid == 0:
            return ZERO
        return divide_decimal(bid, self.price())

    def total_claimable(self) -> Decimal:
        if self.total_bids == 0:
            return ZERO
        return divide_decimal(self.total_bids, self.price())

    def total_exercisable(self) -> Decimal:
        """Outstanding payout obligation: minted balances plus unclaimed bids."""
        return self.total_supply + self.total_claimable()

    # ── Market-only mutations ─────────────────────────────────

    def bid(self, sender: str, account: str, value: Decimal) -> None:
        self._require_live()
        self._require_market(sender)
        self._require_bidding()
        require_non_negative(value)
        if value == 0:
            return
        self._bids[account] = self.bid_of(account) + value
        self.total_bids += value

    def refund(self, sender: str, account: str, value: Decimal) -> None:
        self._require_live()
        self._require_market(sender)
        self._require_bidding()
        require_non_negative(value)
        if value == 0:
            return
        remaining = checked_sub(self.bid_of(account), value, "Insufficient bid")
        self.total_bids = checked_sub(self.total_bids, value, "Insufficient bids")
        self._set(self._bids, account, remaining)

    def claim(self, sender: str, account: str, deposits_remaining: Decimal) -> Decimal:
        """Convert the account's bid into options; returns the amount minted.

        The minted amount is capped so the side's supply never exceeds
        *deposits_remaining*; price rounding can otherwise overshoot it.
        """
        self._require_live()
        self._require_market(sender)
        self._require_bidding_ended()

        bid = self.bid_of(account)
        if bid == 0:
            return ZERO
        claimable = divide_decimal(bid, self.price())
        ceiling = sub_to_zero(deposits_remaining, self.total_supply)
        if claimable > ceiling:
            log.warning(
                "claim_clamped",
                option=self.address,
                account=account,
                claimable=str(claimable),
                ceiling=str(ceiling),
            )
            claimable = ceiling
        if claimable == 0:
            return ZERO

        self.total_bids = checked_sub(self.total_bids, bid)
        self._bids.pop(account, None)
        self._balances[account] = self.balance_of(account) + claimable
        self.total_supply += claimable

        self._emit(Transfer, from_account=ZERO_ADDRESS, to_account=account, value=claimable)
        self._emit(Issued, account=account, value=claimable)
        return claimable

    def exercise(self, sender: str, account: str) -> Decimal:
        """Burn the account's whole balance; returns the amount burned."""
        self._require_live()
        self._require_market(sender)

        balance = self.balance_of(account)
        if balance == 0:
            return ZERO
        self._balances.pop(account, None)
        self.total_supply = checked_sub(self.total_supply, balance)

        self._emit(Transfer, from_account=account, to_account=ZERO_ADDRESS, value=balance)
        self._emit(Burned, account=account, value=balance)
        return balance

    def self_destruct(self, sender: str, beneficiary: str) -> None:
        self._require_live()
        self._require_market(sender)
        self._bids.clear()
        self._balances.clear()
        self._allowances.clear()
        self.total_bids = ZERO
        self.total_supply = ZERO
        self.destroyed = True
        log.info("option_destroyed", option=self.address, beneficiary=beneficiary)

    # ── Transfer surface ──────────────────────────────────────

    def transfer(self, sender: str, to: str, value: Decimal) -> None:
        with self.market.lock:
            self._require_live()
            self._require_bidding_ended()
            self._move(sender, to, value)

    def transfer_from(self, sender: str, from_account: str, to: str, value: Decimal) -> None:
        with self.market.lock:
            self._require_live()
            self._require_bidding_ended()
            remaining = checked_sub(self.allowance(from_account, sender), value, "Insufficient allowance.")
            self._move(from_account, to, value)
            self._allowances[(from_account, sender)] = remaining

    def approve(self, sender: str, spender: str, value: Decimal) -> None:
        with self.market.lock:
            self._require_live()
            require_non_negative(value)
            self._allowances[(sender, spender)] = value
            self._emit(Approval, owner=sender, spender=spender, value=value)

    def _move(self, from_account: str, to: str, value: Decimal) -> None:
        require_non_negative(value)
        remaining = checked_sub(self.balance_of(from_account), value, "Insufficient balance.")
        self._set(self._balances, from_account, remaining)
        self._balances[to] = self.balance_of(to) + value
        self._emit(Transfer, from_account=from_account, to_account=to, value=value)

    # ── Checkpointing ─────────────────────────────────────────

    def checkpoint(self) -> dict[str, Any]:
        return {
            "bids": dict(self._bids),
            "total_bids": self.total_bids,
            "balances": dict(self._balances),
            "allowances": dict(self._allowances),
            "total_supply": self.total_supply,
            "destroyed": self.destroyed,
        }

    def restore(self, state: dict[str, Any]) -> None:
        self._bids = dict(state["bids"])
        self.total_bids = state["total_bids"]
        self._balances = dict(state["balances"])
        self._allowances = dict(state["allowances"])
        self.total_supply = state["total_supply"]
        self.destroyed = state["destroyed"]

    # ── Helpers ───────────────────────────────────────────────

    @staticmethod
    def _set(store: dict, key: Any, value: Decimal) -> None:
        if value == 0:
            store.pop(key, None)
        else:
            store[key] = value

    def _emit(self, event_cls: type[MarketEvent], **fields: Any) -> None:
        self.market.events.publish(
            event_cls(market=self.market.address, source=self.address, ts=self.market.now(), **fields),
        )

    def _require_market(self, sender: str) -> None:
        if sender != self.market.address:
            raise AuthorizationError("Permitted only for the market.", 2002)

    def _require_live(self) -> None:
        if self.destroyed:
            raise MarketDestroyedError(self.address)

    def _require_bidding(self) -> None:
        if self.market.bidding_ended():
            raise PhaseError("Bidding inactive")

    def _require_bidding_ended(self) -> None:
        if not self.market.bidding_ended():
            raise PhaseError("Bidding incomplete")
