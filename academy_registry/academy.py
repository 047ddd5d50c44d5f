"""
Academy — One ledger, one registry and one event log behind a single object.

The Academy wires the registrar components together and exposes them under
the names callers of the on-chain academy contract already know:

    academy = Academy(rector)
    academy.add_admin(rector, admin)
    school = academy.create_school(admin, "School1", director)

    academy.nb_schools()            # 1
    academy.school_of(director)     # school
    academy.director_of(school)     # director

Every Academy owns its own components, so any number of them can live in
one process.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from academy_registry.monitoring.logging import EventLogSubscriber, StructuredLogger
from academy_registry.registrar.access import AccessLedger
from academy_registry.registrar.config import RegistryConfig
from academy_registry.registrar.errors import RegistrarError
from academy_registry.registrar.events import EventLog
from academy_registry.registrar.factory import DeterministicSchoolFactory, SchoolFactory
from academy_registry.registrar.identity import Identity, SchoolHandle, derive_address
from academy_registry.registrar.invariants import InvariantViolation
from academy_registry.registrar.registry import SchoolRegistry
from academy_registry.registrar.replay import RegistryProjection, replay_events
from academy_registry.registrar.roles import Role

logger = logging.getLogger(__name__)


class Academy:
    """
    Role-gated school registry facade.

    Args:
        rector: The root authority; also the first administrator
        factory: School factory (default: DeterministicSchoolFactory
            deploying from the academy's own address)
        address: The academy's own identity (default: derived from rector)
        event_log: Shared event log (default: a new one)
        config: Registry configuration
        structured_logger: If given, every event and every rejected
            mutation is also written to it
    """

    def __init__(
        self,
        rector: Identity,
        factory: SchoolFactory | None = None,
        address: Identity | None = None,
        event_log: EventLog | None = None,
        config: RegistryConfig | None = None,
        structured_logger: StructuredLogger | None = None,
    ) -> None:
        self.rector = rector
        self.event_log = event_log if event_log is not None else EventLog()
        self.ledger = AccessLedger(rector, event_log=self.event_log)
        self.address = address or derive_address(rector, 0)
        self.factory = factory if factory is not None else DeterministicSchoolFactory(self.address)
        self.registry = SchoolRegistry(
            self.ledger,
            self.factory,
            event_log=self.event_log,
            config=config,
        )

        self._structured_logger: StructuredLogger | None = None
        self._subscriber: EventLogSubscriber | None = None
        if structured_logger is not None:
            self.attach_logger(structured_logger)

        logger.info("Academy %s deployed with rector %s", self.address, rector)

    # Roles

    @staticmethod
    def rector_role() -> Role:
        return Role.RECTOR

    @staticmethod
    def admin_role() -> Role:
        return Role.ADMINISTRATOR

    def add_admin(self, caller: Identity, account: Identity) -> None:
        self._audited("add_admin", caller, self.ledger.grant_administrator, caller, account)

    def revoke_admin(self, caller: Identity, account: Identity) -> None:
        self._audited("revoke_admin", caller, self.ledger.revoke_administrator, caller, account)

    def has_role(self, role: Role, account: Identity | None) -> bool:
        return self.ledger.has_role(role, account)

    def get_role_member(self, role: Role, index: int) -> Identity:
        return self.ledger.get_role_member(role, index)

    def get_role_member_count(self, role: Role) -> int:
        return self.ledger.get_role_member_count(role)

    # Schools

    def create_school(self, caller: Identity, name: str, director: Identity) -> SchoolHandle:
        return self._audited(
            "create_school", caller, self.registry.create_school, caller, name, director
        )

    def delete_school(self, caller: Identity, school: SchoolHandle) -> None:
        self._audited("delete_school", caller, self.registry.delete_school, caller, school)

    def change_school_director(
        self,
        caller: Identity,
        old_director: Identity,
        new_director: Identity,
    ) -> None:
        self._audited(
            "change_school_director",
            caller,
            self.registry.change_school_director,
            caller,
            old_director,
            new_director,
        )

    def nb_schools(self) -> int:
        return self.registry.school_count()

    def school_of(self, director: Identity | None) -> SchoolHandle | None:
        return self.registry.school_of(director)

    def director_of(self, school: SchoolHandle | None) -> Identity | None:
        return self.registry.director_of(school)

    def is_director(self, account: Identity | None) -> bool:
        return self.registry.is_director(account)

    def is_school(self, school: SchoolHandle | None) -> bool:
        return self.registry.is_school(school)

    # Observability

    def attach_logger(self, structured_logger: StructuredLogger) -> EventLogSubscriber:
        """Write every future event to ``structured_logger``.

        Rejected mutations are written to it too. Replaces any previously
        attached logger.
        """
        if self._subscriber is not None:
            self.event_log.unsubscribe(self._subscriber)
        self._structured_logger = structured_logger.bind(academy=self.address)
        self._subscriber = EventLogSubscriber(self._structured_logger)
        self.event_log.subscribe(self._subscriber)
        return self._subscriber

    def snapshot(self) -> dict[str, Any]:
        return {"academy": self.address, **self.registry.snapshot()}

    def replay(self) -> RegistryProjection:
        """Rebuild roles and mappings from this academy's event log."""
        return replay_events(self.event_log.all(), self.rector)

    def verify(self) -> list[InvariantViolation]:
        return self.registry.verify()

    def _audited(
        self,
        operation: str,
        caller: Identity,
        call: Callable[..., Any],
        *args: Any,
    ) -> Any:
        try:
            return call(*args)
        except RegistrarError as e:
            if self._structured_logger is not None:
                self._structured_logger.operation_rejected(e, operation, caller)
            raise
