"""Event persistence — write MarketEvent Pydantic models to the market_events table."""

from __future__ import annotations

from sqlalchemy.orm import Session

from binary_market.db.tables.events import MarketEventRow
from binary_market.models.events import MarketEvent

_ENVELOPE = {"market", "source", "ts"}


def event_payload(event: MarketEvent) -> dict:
    """JSON-safe event body without the envelope fields (Decimals become strings)."""
    return event.model_dump(mode="json", exclude=_ENVELOPE)


def persist_event(session: Session, event: MarketEvent) -> int:
    """Insert an event into market_events and return the row id."""
    row = MarketEventRow(
        ts=event.ts,
        market=event.market,
        source=event.source,
        event_type=event.event_type,
        payload=event_payload(event),
    )
    session.add(row)
    session.commit()
    session.refresh(row)
    return row.id
