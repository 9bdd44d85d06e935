"""EventBus — synchronous in-process notifications with transactional buffering."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

import structlog

from binary_market.models.events import MarketEvent

log = structlog.get_logger("event_bus")

Listener = Callable[[MarketEvent], None]


class EventBus:
    """Delivers events to subscribed listeners in publish order.

    Inside ``transaction()`` events are held back and only delivered once the
    outermost transaction exits cleanly; a failing transaction drops them.
    A listener that raises is logged and skipped so observers cannot undo
    state that has already been committed.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._pending: list[MarketEvent] = []
        self._depth = 0
        self.history: list[MarketEvent] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def publish(self, event: MarketEvent) -> None:
        if self._depth > 0:
            self._pending.append(event)
            return
        self._deliver([event])

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                dropped = len(self._pending)
                self._pending.clear()
                if dropped:
                    log.debug("events_discarded", count=dropped)
            raise
        self._depth -= 1
        if self._depth == 0:
            events, self._pending = self._pending, []
            self._deliver(events)

    def _deliver(self, events: list[MarketEvent]) -> None:
        for event in events:
            self.history.append(event)
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception:
                    log.exception("event_listener_error", event_type=event.event_type, market=event.market)
