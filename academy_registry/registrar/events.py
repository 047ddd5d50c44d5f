"""
Registry Events — Ordered record of every state transition.

Each accepted mutation appends exactly one event per transition to the
EventLog (school creation appends two: DirectorSet, then SchoolCreated).
Rejected operations append nothing.

External indexers rebuild state by folding the log in sequence order,
see replay.py.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Union

from .identity import Identity, SchoolHandle

logger = logging.getLogger(__name__)


# =============================================================================
# Domain Events
# =============================================================================

@dataclass(frozen=True)
class AdministratorGranted:
    """The Rector granted the Administrator role to ``account``."""
    account: Identity


@dataclass(frozen=True)
class AdministratorRevoked:
    """The Rector revoked the Administrator role from ``account``."""
    account: Identity


@dataclass(frozen=True)
class SchoolCreated:
    """A school was created and assigned to ``director``."""
    school: SchoolHandle
    director: Identity
    name: str


@dataclass(frozen=True)
class SchoolDeleted:
    """The association between ``school`` and ``director`` was removed."""
    school: SchoolHandle
    director: Identity


@dataclass(frozen=True)
class DirectorSet:
    """``director`` now governs ``school``."""
    director: Identity
    school: SchoolHandle


RegistryEvent = Union[
    AdministratorGranted,
    AdministratorRevoked,
    SchoolCreated,
    SchoolDeleted,
    DirectorSet,
]

EVENT_TYPES: dict[str, type] = {
    cls.__name__: cls
    for cls in (
        AdministratorGranted,
        AdministratorRevoked,
        SchoolCreated,
        SchoolDeleted,
        DirectorSet,
    )
}


def event_from_dict(data: dict[str, Any]) -> RegistryEvent:
    """Rebuild an event from its ``EventRecord.to_dict()`` form."""
    name = data["event"]
    if name not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {name}")
    return EVENT_TYPES[name](**data["args"])


# =============================================================================
# Event Log
# =============================================================================

@dataclass(frozen=True)
class EventRecord:
    """
    A logged event.

    Sequence numbers start at 0 and are gap-free within one log.
    """
    sequence: int
    event: RegistryEvent
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def name(self) -> str:
        return type(self.event).__name__

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "event": self.name,
            "args": asdict(self.event),
            "timestamp": self.timestamp.isoformat(),
        }


EventSubscriber = Callable[[EventRecord], None]


class EventLog:
    """
    Append-only, ordered event log.

    Records are:
    - Immutable once appended
    - Numbered in emission order
    - Delivered synchronously to subscribers, in subscription order

    Usage:
        log = EventLog()
        log.subscribe(lambda record: print(record.to_dict()))

        ledger = AccessLedger(rector, event_log=log)
        registry = SchoolRegistry(ledger, factory, event_log=log)
    """

    def __init__(self) -> None:
        self._records: list[EventRecord] = []
        self._subscribers: list[EventSubscriber] = []
        self._lock = threading.Lock()

    def emit(self, event: RegistryEvent) -> EventRecord:
        """Append an event and notify subscribers."""
        with self._lock:
            record = EventRecord(sequence=len(self._records), event=event)
            self._records.append(record)
            subscribers = list(self._subscribers)

        # The record is already committed; a failing subscriber cannot undo it
        for subscriber in subscribers:
            try:
                subscriber(record)
            except Exception:
                logger.exception(
                    "Event subscriber failed on %s #%d", record.name, record.sequence
                )

        return record

    def subscribe(self, subscriber: EventSubscriber) -> None:
        """Register a callback for every future event."""
        with self._lock:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: EventSubscriber) -> None:
        """Remove a previously registered callback."""
        with self._lock:
            self._subscribers.remove(subscriber)

    def query(self, event_type: type | None = None, since: int = 0) -> list[EventRecord]:
        """Query records by event type and minimum sequence number."""
        with self._lock:
            results = self._records[since:]
        if event_type is not None:
            results = [r for r in results if isinstance(r.event, event_type)]
        return list(results)

    def events(self) -> list[RegistryEvent]:
        """Get the bare events in order."""
        with self._lock:
            return [r.event for r in self._records]

    def all(self) -> list[EventRecord]:
        """Get all records."""
        with self._lock:
            return list(self._records)

    def to_dicts(self) -> list[dict[str, Any]]:
        """Export the log in a JSON-safe form."""
        return [r.to_dict() for r in self.all()]

    def count(self) -> int:
        """Get record count."""
        with self._lock:
            return len(self._records)

    def __len__(self) -> int:
        return self.count()
