"""Journal queries — read back recorded market events."""

from __future__ import annotations

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from binary_market.db.tables.events import MarketEventRow


def list_markets(session: Session) -> list[dict]:
    """Markets seen in the journal, with event counts and last activity."""
    rows = session.execute(
        select(
            MarketEventRow.market,
            func.count(MarketEventRow.id),
            func.max(MarketEventRow.ts),
        )
        .group_by(MarketEventRow.market)
        .order_by(MarketEventRow.market)
    ).all()
    return [
        {"market": market, "events": count, "last_event_at": last_ts}
        for market, count, last_ts in rows
    ]


def market_events(
    session: Session,
    market: str,
    event_type: str | None = None,
    limit: int = 100,
) -> list[MarketEventRow]:
    """Events for one market in publication order, optionally filtered by type."""
    query = select(MarketEventRow).where(MarketEventRow.market == market)
    if event_type is not None:
        query = query.where(MarketEventRow.event_type == event_type)
    query = query.order_by(MarketEventRow.id).limit(limit)
    return list(session.execute(query).scalars().all())


def latest_event(session: Session, market: str, event_type: str) -> MarketEventRow | None:
    """Most recent event of one type for a market."""
    return session.execute(
        select(MarketEventRow)
        .where(MarketEventRow.market == market, MarketEventRow.event_type == event_type)
        .order_by(desc(MarketEventRow.id))
        .limit(1)
    ).scalar_one_or_none()
