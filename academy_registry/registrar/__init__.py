"""
Academy Registrar Module — Role-gated director/school registry.

This module provides:
- A two-tier access ledger (one immutable Rector, delegated Administrators)
- A strict director <-> school bijection with atomic mutations
- An ordered event log that indexers can replay to rebuild state

Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                  SchoolRegistry                     │
    │  - create / delete / change director                │
    │  - check-then-commit, one lock per registry         │
    └───────┬──────────────────┬──────────────────┬───────┘
            │ has ADMINISTRATOR│ create(name, d)  │ emit
            ▼                  ▼                  ▼
    ┌───────────────┐  ┌───────────────┐  ┌───────────────┐
    │ AccessLedger  │  │ SchoolFactory │  │   EventLog    │
    │ RECTOR admins │  │ (collaborator)│  │ ordered, gap- │
    │ ADMINISTRATOR │  │ opaque handle │  │ free records  │
    └───────────────┘  └───────────────┘  └───────────────┘
"""

from .access import AccessLedger
from .config import RegistryConfig
from .errors import (
    AlreadyDirector,
    CollaboratorFailure,
    InvariantViolationError,
    NotADirector,
    RegistrarError,
    ReservedIdentity,
    Unauthorized,
    UnknownSchool,
)
from .events import (
    AdministratorGranted,
    AdministratorRevoked,
    DirectorSet,
    EventLog,
    EventRecord,
    RegistryEvent,
    SchoolCreated,
    SchoolDeleted,
)
from .factory import DeterministicSchoolFactory, School, SchoolFactory
from .identity import NULL_IDENTITY, Identity, SchoolHandle, derive_address, is_null
from .invariants import (
    InvariantViolation,
    RegistryInvariant,
    check_invariants,
    list_invariants,
)
from .registry import SchoolRegistry
from .replay import RegistryProjection, replay_events
from .roles import ROLE_ADMINS, Role
from .states import RegistryState

__all__ = [
    # Core
    "AccessLedger",
    "SchoolRegistry",
    "RegistryConfig",
    "RegistryState",
    # Identities & roles
    "Identity",
    "SchoolHandle",
    "NULL_IDENTITY",
    "is_null",
    "derive_address",
    "Role",
    "ROLE_ADMINS",
    # Collaborator
    "SchoolFactory",
    "DeterministicSchoolFactory",
    "School",
    # Events
    "EventLog",
    "EventRecord",
    "RegistryEvent",
    "AdministratorGranted",
    "AdministratorRevoked",
    "SchoolCreated",
    "SchoolDeleted",
    "DirectorSet",
    # Replay
    "RegistryProjection",
    "replay_events",
    # Invariants
    "InvariantViolation",
    "RegistryInvariant",
    "check_invariants",
    "list_invariants",
    # Errors
    "RegistrarError",
    "Unauthorized",
    "AlreadyDirector",
    "ReservedIdentity",
    "NotADirector",
    "UnknownSchool",
    "CollaboratorFailure",
    "InvariantViolationError",
]
