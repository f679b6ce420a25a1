"""In-memory audit storage, used when no persistent audit sink is configured."""

from expense_tracker.models.audit import AuditEvent
from expense_tracker.services.storage.interface import AuditStorageInterface


class InMemoryAuditStorage(AuditStorageInterface):
    """Keeps audit events in a list for the lifetime of the process."""

    def __init__(self, max_events: int = 1000):
        self._events: list[AuditEvent] = []
        self._max_events = max_events

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        if len(self._events) > self._max_events:
            del self._events[: len(self._events) - self._max_events]
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
