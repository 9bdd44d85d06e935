"""FastAPI application — read-only view over the market event journal."""

from datetime import datetime, timezone
from typing import Generator, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException
from sqlalchemy.orm import Session

from binary_market.config.loader import load_config
from binary_market.db.engine import get_session as _get_session, init_engine
from binary_market.journal.queries import latest_event, list_markets, market_events

logger = structlog.get_logger("api")

app = FastAPI(
    title="Binary Market Journal API",
    description="Read-only access to recorded market notifications",
    version="0.1.0",
)

config = load_config()


def get_db() -> Generator[Session, None, None]:
    """Dependency to get DB session."""
    gen = _get_session()
    session = next(gen)
    try:
        yield session
    finally:
        try:
            next(gen)
        except StopIteration:
            pass


@app.on_event("startup")
async def startup_event():
    """Initialize database engine on startup."""
    init_engine(config.database.url, create_tables=True)
    logger.info("database_engine_initialized")


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/markets")
async def get_markets(session: Session = Depends(get_db)):
    """All markets present in the journal."""
    return list_markets(session)


@app.get("/api/markets/{market}/events")
async def get_market_events(
    market: str,
    event_type: Optional[str] = None,
    limit: int = 100,
    session: Session = Depends(get_db),
):
    """Recorded events for a market, oldest first."""
    rows = market_events(session, market, event_type=event_type, limit=min(limit, 1000))
    if not rows and event_type is None:
        raise HTTPException(status_code=404, detail=f"Unknown market: {market}")
    return [
        {
            "id": row.id,
            "ts": row.ts,
            "source": row.source,
            "event_type": row.event_type,
            "payload": row.payload,
        }
        for row in rows
    ]


@app.get("/api/markets/{market}/prices")
async def get_market_prices(market: str, session: Session = Depends(get_db)):
    """Latest published long/short price pair."""
    row = latest_event(session, market, "PricesUpdated")
    if row is None:
        raise HTTPException(status_code=404, detail=f"No prices recorded for market: {market}")
    return {
        "market": market,
        "ts": row.ts,
        "long_price": row.payload["long_price"],
        "short_price": row.payload["short_price"],
    }
