"""
School Factory — The collaborator that brings School entities into being.

The registry never looks inside a School. It calls
``factory.create(name, director)`` once per creation and stores the
returned handle. Anything satisfying the SchoolFactory protocol can be
plugged in (a contract deployer, a database, a fake in tests).
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from .identity import Identity, SchoolHandle, derive_address


@runtime_checkable
class SchoolFactory(Protocol):
    """Protocol for school factories."""

    def create(self, name: str, director: Identity) -> SchoolHandle:
        """
        Create a School entity.

        Args:
            name: School name
            director: The school's first director

        Returns:
            Opaque handle identifying the new school

        Raises:
            Any exception; the registry reports it as CollaboratorFailure
        """
        ...


@dataclass(frozen=True)
class School:
    """What the in-memory factory remembers about a school it created."""
    handle: SchoolHandle
    name: str
    director: Identity
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class DeterministicSchoolFactory:
    """
    In-memory factory with predictable handles.

    Each handle is derived from the factory's deployer address and a
    nonce that increases with every creation, so the handle of the next
    school can be computed in advance with ``next_handle()``.
    """

    def __init__(self, deployer: Identity, nonce: int = 1) -> None:
        self.deployer = deployer
        self._nonce = nonce
        self._schools: dict[SchoolHandle, School] = {}
        self._lock = threading.Lock()

    @property
    def nonce(self) -> int:
        return self._nonce

    def next_handle(self) -> SchoolHandle:
        """Compute the handle the next ``create`` call will return."""
        with self._lock:
            return derive_address(self.deployer, self._nonce)

    def create(self, name: str, director: Identity) -> SchoolHandle:
        with self._lock:
            handle = derive_address(self.deployer, self._nonce)
            self._nonce += 1
            self._schools[handle] = School(handle=handle, name=name, director=director)
            return handle

    def get(self, handle: SchoolHandle) -> School | None:
        """Get the record for a created school."""
        return self._schools.get(handle)

    def count(self) -> int:
        """Number of schools ever created (deletion does not destroy them)."""
        return len(self._schools)
