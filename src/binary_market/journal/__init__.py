"""Event journal — persists market notifications for off-system observers."""

from binary_market.journal.persistence import event_payload, persist_event
from binary_market.journal.queries import latest_event, list_markets, market_events
from binary_market.journal.recorder import EventJournal

__all__ = [
    "EventJournal",
    "event_payload",
    "latest_event",
    "list_markets",
    "market_events",
    "persist_event",
]
