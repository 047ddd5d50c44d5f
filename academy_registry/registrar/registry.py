"""
School Registry — The director/school bijection state machine.

All meaningful state change goes through three operations:

    create_school           director -> new school    (count + 1)
    change_school_director  old director -> new       (count unchanged)
    delete_school           forget school & director  (count - 1)

Each operation follows the same check-then-commit order:
    1. Caller must hold the Administrator role (AccessLedger)
    2. Domain preconditions are validated against the current state
    3. The factory is called (create_school only)
    4. Both mapping directions and the counter are committed together,
       staged on a copy and checked first when verify_after_commit is on
    5. Events are appended to the EventLog

Any failure in steps 1-4 leaves the state untouched. The whole sequence
runs under the ledger's lock, shared by the registry, so concurrent callers
are serialised.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .access import AccessLedger
from .config import RegistryConfig
from .errors import (
    AlreadyDirector,
    CollaboratorFailure,
    InvariantViolationError,
    NotADirector,
    RegistrarError,
    ReservedIdentity,
    UnknownSchool,
)
from .events import DirectorSet, EventLog, SchoolCreated, SchoolDeleted
from .factory import SchoolFactory
from .identity import Identity, SchoolHandle, is_null
from .invariants import InvariantViolation, check_invariants
from .roles import Role
from .states import RegistryState

logger = logging.getLogger(__name__)


class SchoolRegistry:
    """
    The School Registry — single authority over director/school assignments.

    Usage:
        ledger = AccessLedger(rector)
        registry = SchoolRegistry(ledger, DeterministicSchoolFactory(deployer))

        ledger.grant_administrator(rector, admin)
        school = registry.create_school(admin, "School1", director1)

        registry.change_school_director(admin, director1, director2)
        registry.delete_school(admin, school)
    """

    def __init__(
        self,
        ledger: AccessLedger,
        factory: SchoolFactory,
        event_log: EventLog | None = None,
        config: RegistryConfig | None = None,
    ) -> None:
        self.config = config or RegistryConfig()
        self._ledger = ledger
        self._factory = factory
        # Share the ledger's log by default so one log orders every event
        self._event_log = event_log if event_log is not None else ledger.event_log
        self._state = RegistryState()
        # One lock for roles and mappings, so subscribers may query either
        self._lock = ledger.lock

    @property
    def ledger(self) -> AccessLedger:
        return self._ledger

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    # =========================================================================
    # Mutations (Administrator only)
    # =========================================================================

    def create_school(self, caller: Identity, name: str, director: Identity) -> SchoolHandle:
        """
        Create a school and assign its director.

        Args:
            caller: Account performing the operation
            name: School name, passed through to the factory
            director: First director; must not govern another school

        Returns:
            Handle of the new school

        Raises:
            Unauthorized: If caller is not an administrator
            ReservedIdentity: If director is the null identity
            AlreadyDirector: If director already governs a school
            CollaboratorFailure: If the factory fails or returns an unusable handle
        """
        with self._lock:
            self._require_administrator(caller, "create_school")

            if is_null(director):
                raise self._reject(
                    ReservedIdentity(director, argument="director"), caller, "create_school"
                )
            if director in self._state.school_of:
                raise self._reject(AlreadyDirector(director), caller, "create_school")

            school = self._create_with_factory(caller, name, director)
            if is_null(school):
                raise self._reject(
                    CollaboratorFailure("returned the null identity as a school handle"),
                    caller,
                    "create_school",
                )
            if school in self._state.director_of:
                raise self._reject(
                    CollaboratorFailure(
                        f"returned handle {school} which is already a registered school"
                    ),
                    caller,
                    "create_school",
                )

            self._commit("create_school", lambda state: state.link(director, school))

            self._event_log.emit(DirectorSet(director, school))
            self._event_log.emit(SchoolCreated(school, director, name))

        logger.info("School created: %s (%r) directed by %s", school, name, director)
        return school

    def delete_school(self, caller: Identity, school: SchoolHandle) -> None:
        """
        Forget a school and its director.

        The School entity itself is not destroyed or notified.

        Raises:
            Unauthorized: If caller is not an administrator
            UnknownSchool: If school has no active mapping
        """
        with self._lock:
            self._require_administrator(caller, "delete_school")

            if is_null(school) or school not in self._state.director_of:
                raise self._reject(UnknownSchool(school), caller, "delete_school")

            director = self._commit("delete_school", lambda state: state.unlink(school))

            self._event_log.emit(SchoolDeleted(school, director))

        logger.info("School deleted: %s (director was %s)", school, director)

    def change_school_director(
        self,
        caller: Identity,
        old_director: Identity,
        new_director: Identity,
    ) -> None:
        """
        Hand a school over from one director to another.

        ``old_director == new_director`` is rejected with AlreadyDirector:
        the old director is by definition already mapped.

        Raises:
            Unauthorized: If caller is not an administrator
            NotADirector: If old_director governs no school
            ReservedIdentity: If new_director is the null identity
            AlreadyDirector: If new_director already governs a school
        """
        with self._lock:
            self._require_administrator(caller, "change_school_director")

            if is_null(old_director) or old_director not in self._state.school_of:
                raise self._reject(NotADirector(old_director), caller, "change_school_director")
            if is_null(new_director):
                raise self._reject(
                    ReservedIdentity(new_director, argument="new_director"),
                    caller,
                    "change_school_director",
                )
            if new_director in self._state.school_of:
                raise self._reject(AlreadyDirector(new_director), caller, "change_school_director")

            school = self._commit(
                "change_school_director",
                lambda state: state.relink(old_director, new_director),
            )

            self._event_log.emit(DirectorSet(new_director, school))

        logger.info("School %s director changed: %s -> %s", school, old_director, new_director)

    # =========================================================================
    # Queries (no authorization)
    # =========================================================================

    def school_count(self) -> int:
        with self._lock:
            return self._state.school_count

    def school_of(self, identity: Identity | None) -> SchoolHandle | None:
        """Get the school governed by ``identity``, or None."""
        with self._lock:
            return self._state.school_of.get(identity)

    def director_of(self, school: SchoolHandle | None) -> Identity | None:
        """Get the director of ``school``, or None."""
        with self._lock:
            return self._state.director_of.get(school)

    def is_director(self, identity: Identity | None) -> bool:
        with self._lock:
            return identity in self._state.school_of

    def is_school(self, school: SchoolHandle | None) -> bool:
        with self._lock:
            return school in self._state.director_of

    def schools(self) -> dict[SchoolHandle, Identity]:
        """Get a copy of the school -> director mapping."""
        with self._lock:
            return dict(self._state.director_of)

    def state(self) -> RegistryState:
        """Get a copy of the current state.

        Returns a copy to prevent direct mutation of registry state.
        """
        with self._lock:
            return self._state.copy()

    def snapshot(self) -> dict[str, Any]:
        """
        Create a JSON-safe snapshot of the registry.

        The snapshot can be used to:
        - Save state to disk
        - Compare against a replayed event log
        - Debug state issues
        """
        with self._lock:
            return {
                **self._state.to_dict(),
                "administrators": list(self._ledger.role_members(Role.ADMINISTRATOR)),
                "rectors": list(self._ledger.role_members(Role.RECTOR)),
                "event_count": self._event_log.count(),
            }

    def verify(self) -> list[InvariantViolation]:
        """Check every registry invariant against the current state."""
        with self._lock:
            return check_invariants(self._state, self._ledger)

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_administrator(self, caller: Identity, operation: str) -> None:
        try:
            self._ledger.require_role(Role.ADMINISTRATOR, caller)
        except RegistrarError as e:
            self._reject(e, caller, operation)
            raise

    def _create_with_factory(self, caller: Identity, name: str, director: Identity) -> SchoolHandle:
        try:
            return self._factory.create(name, director)
        except CollaboratorFailure as e:
            self._reject(e, caller, "create_school")
            raise
        except Exception as e:
            failure = CollaboratorFailure(str(e) or type(e).__name__, cause=e)
            raise self._reject(failure, caller, "create_school") from e

    def _reject(
        self,
        error: RegistrarError,
        caller: Identity,
        operation: str | None = None,
    ) -> RegistrarError:
        """Log a rejected operation and hand the error back for raising."""
        if self.config.log_rejections:
            logger.warning(
                "Rejected %s by %s: %s",
                operation or "operation", caller, error.message,
            )
        return error

    def _commit(self, operation: str, apply: Callable[[RegistryState], Any]) -> Any:
        """Apply a commit helper, checking the result first when verifying."""
        if not self.config.verify_after_commit:
            return apply(self._state)

        staged = self._state.copy()
        result = apply(staged)
        self._verify(staged, operation)
        self._state = staged
        return result

    def _verify(self, state: RegistryState, operation: str) -> None:
        violations = check_invariants(state, self._ledger)
        if violations:
            first = violations[0]
            logger.critical(
                "Invariant %s broken after %s: %s",
                first.invariant_id, operation, first.message,
            )
            raise InvariantViolationError(
                first.invariant_id,
                first.message,
                details={"operation": operation, "violations": len(violations)},
            )
