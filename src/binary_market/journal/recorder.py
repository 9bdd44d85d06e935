"""EventJournal — EventBus listener that records every delivered event."""

from __future__ import annotations

from collections.abc import Callable

import structlog
from sqlalchemy.orm import Session

from binary_market.journal.persistence import persist_event
from binary_market.market.events import EventBus
from binary_market.models.events import MarketEvent

log = structlog.get_logger("event_journal")


class EventJournal:
    """Persists events in their own short-lived sessions, one commit per event."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory
        self.recorded = 0

    def attach(self, bus: EventBus) -> "EventJournal":
        bus.subscribe(self)
        return self

    def detach(self, bus: EventBus) -> None:
        bus.unsubscribe(self)

    def __call__(self, event: MarketEvent) -> None:
        session = self._session_factory()
        try:
            row_id = persist_event(session, event)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
        self.recorded += 1
        log.debug(
            "event_recorded",
            event_id=row_id,
            event_type=event.event_type,
            market=event.market,
        )
