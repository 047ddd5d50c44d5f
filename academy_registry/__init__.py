"""
Academy Registry - Role-gated director/school registry.

Architecture:
    AccessLedger → SchoolRegistry → EventLog → replay

Public API (stable):
    Academy             - Facade. One ledger, one registry, one event log.
    AccessLedger        - Rector / Administrator role membership.
    SchoolRegistry      - The director <-> school bijection.
    RegistryConfig      - Registry configuration.
    Role                - RECTOR and ADMINISTRATOR.

Subpackages:
    registrar   - Ledger, registry, factory, events, invariants, replay
    monitoring  - StructuredLogger and the event-log subscriber

Example:
    from academy_registry import Academy

    academy = Academy(rector)
    academy.add_admin(rector, admin)
    school = academy.create_school(admin, "School1", director)
    print(academy.director_of(school))
"""

__version__ = "1.0.0"

from academy_registry.academy import Academy
from academy_registry.registrar import (
    NULL_IDENTITY,
    AccessLedger,
    AlreadyDirector,
    CollaboratorFailure,
    DeterministicSchoolFactory,
    EventLog,
    NotADirector,
    RegistrarError,
    RegistryConfig,
    ReservedIdentity,
    Role,
    SchoolFactory,
    SchoolRegistry,
    Unauthorized,
    UnknownSchool,
    replay_events,
)

__all__ = [
    "__version__",
    "Academy",
    "AccessLedger",
    "SchoolRegistry",
    "RegistryConfig",
    "Role",
    "NULL_IDENTITY",
    "SchoolFactory",
    "DeterministicSchoolFactory",
    "EventLog",
    "replay_events",
    # Errors
    "RegistrarError",
    "Unauthorized",
    "AlreadyDirector",
    "ReservedIdentity",
    "NotADirector",
    "UnknownSchool",
    "CollaboratorFailure",
]
