"""
Registry Invariants — Checks that must hold after every operation.

Bijection:
    - registry.bijection.director_round_trip   director_of[school_of[d]] == d
    - registry.bijection.school_round_trip     school_of[director_of[s]] == s
Counting:
    - registry.count.consistent                school_count == len(director_of)
Identity:
    - registry.identity.no_null                null never a key or value
Access:
    - access.rector.present                    Rector set is non-empty

The registrar never relies on these to reject requests; preconditions do
that before any mutation. These checks exist to prove, after the fact,
that the committed state is sound (see RegistryConfig.verify_after_commit
and SchoolRegistry.verify()).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

from .identity import is_null
from .roles import Role
from .states import RegistryState

if TYPE_CHECKING:
    from .access import AccessLedger


@dataclass(frozen=True)
class InvariantViolation:
    """Record of an invariant violation."""
    invariant_id: str
    classification: Literal["REJECT", "HALT"]
    message: str


@runtime_checkable
class RegistryInvariant(Protocol):
    """
    Protocol for registry invariants.

    Each invariant:
    - Has a unique ID (namespaced: registry.* / access.*)
    - Has a description
    - Checks a state
    - Returns violations on failure
    """

    @property
    def id(self) -> str:
        ...

    @property
    def description(self) -> str:
        ...

    def check(
        self,
        state: RegistryState,
        ledger: AccessLedger | None = None,
    ) -> list[InvariantViolation]:
        """
        Check if the invariant holds.

        Args:
            state: The registry state to inspect
            ledger: The access ledger, for role invariants (optional)

        Returns:
            Empty list if invariant holds, list of violations otherwise
        """
        ...


class BaseInvariant(ABC):
    """Base class for registry invariants with common functionality."""

    @property
    @abstractmethod
    def id(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @abstractmethod
    def check(
        self,
        state: RegistryState,
        ledger: AccessLedger | None = None,
    ) -> list[InvariantViolation]:
        ...

    def _violation(self, message: str) -> InvariantViolation:
        # A broken committed state is never recoverable by retrying
        return InvariantViolation(
            invariant_id=self.id,
            classification="HALT",
            message=message,
        )


# =============================================================================
# Bijection Invariants
# =============================================================================

class DirectorRoundTripInvariant(BaseInvariant):
    """Every mapped director maps back to itself through its school."""

    @property
    def id(self) -> str:
        return "registry.bijection.director_round_trip"

    @property
    def description(self) -> str:
        return "director_of(school_of(d)) == d for every mapped director"

    def check(
        self,
        state: RegistryState,
        ledger: AccessLedger | None = None,
    ) -> list[InvariantViolation]:
        violations = []
        for director, school in state.school_of.items():
            back = state.director_of.get(school)
            if back != director:
                violations.append(self._violation(
                    f"Director {director} maps to school {school}, "
                    f"which maps back to {back}"
                ))
        return violations


class SchoolRoundTripInvariant(BaseInvariant):
    """Every mapped school maps back to itself through its director."""

    @property
    def id(self) -> str:
        return "registry.bijection.school_round_trip"

    @property
    def description(self) -> str:
        return "school_of(director_of(s)) == s for every mapped school"

    def check(
        self,
        state: RegistryState,
        ledger: AccessLedger | None = None,
    ) -> list[InvariantViolation]:
        violations = []
        for school, director in state.director_of.items():
            back = state.school_of.get(director)
            if back != school:
                violations.append(self._violation(
                    f"School {school} maps to director {director}, "
                    f"who maps back to {back}"
                ))
        return violations


# =============================================================================
# Counting & Identity Invariants
# =============================================================================

class CountConsistencyInvariant(BaseInvariant):
    """The school counter equals the number of mapped schools."""

    @property
    def id(self) -> str:
        return "registry.count.consistent"

    @property
    def description(self) -> str:
        return "school_count equals the number of school->director entries"

    def check(
        self,
        state: RegistryState,
        ledger: AccessLedger | None = None,
    ) -> list[InvariantViolation]:
        if state.school_count != len(state.director_of):
            return [self._violation(
                f"school_count is {state.school_count} but "
                f"{len(state.director_of)} schools are mapped"
            )]
        return []


class NoNullIdentityInvariant(BaseInvariant):
    """The null identity never appears in either mapping."""

    @property
    def id(self) -> str:
        return "registry.identity.no_null"

    @property
    def description(self) -> str:
        return "The null identity is never a key or value in either mapping"

    def check(
        self,
        state: RegistryState,
        ledger: AccessLedger | None = None,
    ) -> list[InvariantViolation]:
        violations = []
        for mapping_name, mapping in (
            ("school_of", state.school_of),
            ("director_of", state.director_of),
        ):
            for key, value in mapping.items():
                if is_null(key) or is_null(value):
                    violations.append(self._violation(
                        f"Null identity in {mapping_name}: {key!r} -> {value!r}"
                    ))
        return violations


# =============================================================================
# Access Invariants
# =============================================================================

class RectorPresentInvariant(BaseInvariant):
    """The Rector role always has at least one holder."""

    @property
    def id(self) -> str:
        return "access.rector.present"

    @property
    def description(self) -> str:
        return "Rector role membership is never empty"

    def check(
        self,
        state: RegistryState,
        ledger: AccessLedger | None = None,
    ) -> list[InvariantViolation]:
        if ledger is None:
            return []
        if ledger.get_role_member_count(Role.RECTOR) == 0:
            return [self._violation("Rector role has no members")]
        return []


# =============================================================================
# Invariant Registry
# =============================================================================

REGISTRY_INVARIANTS: list[RegistryInvariant] = [
    # Bijection
    DirectorRoundTripInvariant(),
    SchoolRoundTripInvariant(),
    # Counting & identity
    CountConsistencyInvariant(),
    NoNullIdentityInvariant(),
    # Access
    RectorPresentInvariant(),
]


def check_invariants(
    state: RegistryState,
    ledger: AccessLedger | None = None,
    invariants: list[RegistryInvariant] | None = None,
) -> list[InvariantViolation]:
    """Run every invariant and collect the violations."""
    violations: list[InvariantViolation] = []
    for invariant in REGISTRY_INVARIANTS if invariants is None else invariants:
        violations.extend(invariant.check(state, ledger))
    return violations


def list_invariants() -> list[dict[str, Any]]:
    """List all registry invariants with their metadata."""
    return [
        {"id": inv.id, "description": inv.description}
        for inv in REGISTRY_INVARIANTS
    ]
