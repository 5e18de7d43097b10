"""Approval event emitter and the observer protocol it dispatches to."""

import logging
from dataclasses import dataclass
from typing import Protocol

from apwf.domain.events.event import ApprovalEvent
from apwf.domain.events.event_types import ApprovalEventType

logger = logging.getLogger(__name__)


class ApprovalObserver(Protocol):
    def on_event(self, event: ApprovalEvent) -> None:
        """Handle an approval event. Must not block."""
        ...


@dataclass
class _Subscription:
    observer: ApprovalObserver
    # None means every event type
    event_types: frozenset[ApprovalEventType] | None

    def wants(self, event_type: ApprovalEventType) -> bool:
        return self.event_types is None or event_type in self.event_types


class ApprovalEventEmitter:
    """Dispatches approval events to subscribed observers in subscription order.

    An observer subscribed several times still receives each event once.
    """

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []

    def subscribe(
        self,
        observer: ApprovalObserver,
        event_types: list[ApprovalEventType] | None = None,
    ) -> None:
        """Subscribe to specific event types, or all events if None."""
        types = frozenset(event_types) if event_types is not None else None
        self._subscriptions.append(_Subscription(observer, types))

    def unsubscribe(self, observer: ApprovalObserver) -> None:
        self._subscriptions = [s for s in self._subscriptions if s.observer is not observer]

    def emit(self, event: ApprovalEvent) -> None:
        notified: list[ApprovalObserver] = []
        for sub in self._subscriptions:
            if not sub.wants(event.event_type):
                continue
            if any(sub.observer is seen for seen in notified):
                continue
            notified.append(sub.observer)
            self._safe_notify(sub.observer, event)

    def _safe_notify(self, observer: ApprovalObserver, event: ApprovalEvent) -> None:
        # Observer failures are reported, never raised into the protocol.
        try:
            observer.on_event(event)
        except Exception as e:
            logger.warning(f"Observer {observer!r} failed on {event.event_type.value}: {e}")
