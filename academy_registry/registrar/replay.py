"""
Event Replay — Rebuild role membership and the bijection from an event log.

This is how an external indexer reconstructs registry state. Events are
applied in sequence order and every handler is idempotent: applying the
same event twice leaves the projection unchanged.

Within a school creation, DirectorSet arrives before SchoolCreated. The
DirectorSet handler therefore does the mapping work for both creation and
director changes, and SchoolCreated only records the school's name.

Construction-time role grants emit no events, so the Rector identity has
to be supplied by the caller.
"""

from __future__ import annotations

from typing import Any, Iterable, Union

from .events import (
    AdministratorGranted,
    AdministratorRevoked,
    DirectorSet,
    EventRecord,
    RegistryEvent,
    SchoolCreated,
    SchoolDeleted,
    event_from_dict,
)
from .identity import Identity, SchoolHandle
from .roles import Role
from .states import RegistryState

ReplayInput = Union[EventRecord, RegistryEvent, dict]


class RegistryProjection:
    """
    State rebuilt from events.

    Usage:
        projection = replay_events(registry.event_log.to_dicts(), rector)
        assert projection.state.to_dict() == registry.state().to_dict()
    """

    def __init__(self, rector: Identity) -> None:
        self.members: dict[Role, list[Identity]] = {
            Role.RECTOR: [rector],
            Role.ADMINISTRATOR: [rector],
        }
        self.state = RegistryState()
        self.names: dict[SchoolHandle, str] = {}
        self.applied = 0

    def apply(self, event: RegistryEvent) -> None:
        """Fold one event into the projection."""
        if isinstance(event, AdministratorGranted):
            admins = self.members[Role.ADMINISTRATOR]
            if event.account not in admins:
                admins.append(event.account)

        elif isinstance(event, AdministratorRevoked):
            admins = self.members[Role.ADMINISTRATOR]
            if event.account in admins:
                admins.remove(event.account)

        elif isinstance(event, DirectorSet):
            self._set_director(event.director, event.school)

        elif isinstance(event, SchoolCreated):
            self._set_director(event.director, event.school)
            self.names[event.school] = event.name

        elif isinstance(event, SchoolDeleted):
            director = self.state.director_of.pop(event.school, None)
            if director is not None and self.state.school_of.get(director) == event.school:
                del self.state.school_of[director]

        else:
            raise TypeError(f"Cannot replay {type(event).__name__}")

        self.state.school_count = len(self.state.director_of)
        self.applied += 1

    def _set_director(self, director: Identity, school: SchoolHandle) -> None:
        previous = self.state.director_of.get(school)
        if previous is not None and previous != director:
            self.state.school_of.pop(previous, None)
        self.state.school_of[director] = school
        self.state.director_of[school] = director

    def role_members(self, role: Role) -> tuple[Identity, ...]:
        return tuple(self.members[role])

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.state.to_dict(),
            "administrators": list(self.members[Role.ADMINISTRATOR]),
            "rectors": list(self.members[Role.RECTOR]),
        }


def _normalize(item: ReplayInput) -> tuple[int | None, RegistryEvent]:
    if isinstance(item, EventRecord):
        return item.sequence, item.event
    if isinstance(item, dict):
        return item.get("sequence"), event_from_dict(item)
    return None, item


def replay_events(records: Iterable[ReplayInput], rector: Identity) -> RegistryProjection:
    """
    Replay events to reconstruct state.

    Accepts EventRecords, their ``to_dict()`` form, or bare events.
    Sequenced inputs must be gap-free and in order.

    Raises:
        ValueError: If a sequence number is out of order or missing
    """
    projection = RegistryProjection(rector)
    expected: int | None = None

    for item in records:
        sequence, event = _normalize(item)
        if sequence is not None:
            if expected is not None and sequence != expected:
                raise ValueError(
                    f"Event sequence gap: expected #{expected}, got #{sequence}"
                )
            expected = sequence + 1
        projection.apply(event)

    return projection
