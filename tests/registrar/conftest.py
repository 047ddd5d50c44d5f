"""
Registrar Test Fixtures — Shared infrastructure for registry tests.

Provides:
    - Isolated academies (ledger + registry + event log)
    - Named test accounts, matching the signer list of the contract tests
    - Fake school factories for collaborator failures
    - Concurrency helpers
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from academy_registry.academy import Academy
from academy_registry.registrar import (
    NULL_IDENTITY,
    AccessLedger,
    DeterministicSchoolFactory,
    EventLog,
    RegistrarError,
    RegistryConfig,
    SchoolRegistry,
    derive_address,
)


def account(label: str) -> str:
    """Deterministic, address-shaped identity for a label."""
    return derive_address(f"0x{label}", 0)


# =============================================================================
# Fake Factories
# =============================================================================

class FailingFactory:
    """Factory that raises ``error`` on every call."""

    def __init__(self, error: Exception):
        self.error = error
        self.calls = 0

    def create(self, name: str, director: str) -> str:
        self.calls += 1
        raise self.error


class FixedHandleFactory:
    """Factory that returns the same handle every time."""

    def __init__(self, handle: str | None):
        self.handle = handle
        self.calls = 0

    def create(self, name: str, director: str) -> str | None:
        self.calls += 1
        return self.handle


# =============================================================================
# Test Harness
# =============================================================================

@dataclass
class AcademyTestHarness:
    """
    Test harness for registry tests.

    Provides:
    - Isolated academies
    - Named accounts
    - Event capture
    """

    config: RegistryConfig = field(default_factory=RegistryConfig)

    # Internal state
    _academy: Academy | None = field(default=None, init=False)
    _accounts: dict[str, str] = field(default_factory=dict, init=False)

    def account(self, label: str) -> str:
        """Get (or create) the identity for a label."""
        if label not in self._accounts:
            self._accounts[label] = account(label)
        return self._accounts[label]

    def create_academy(self, factory: Any = None, **config: Any) -> Academy:
        """Create an isolated academy owned by the ``rector`` account."""
        cfg = RegistryConfig(**config) if config else self.config
        self._academy = Academy(self.account("rector"), factory=factory, config=cfg)
        return self._academy

    @property
    def academy(self) -> Academy:
        if self._academy is None:
            self.create_academy()
        return self._academy

    def with_admin(self, label: str = "admin1") -> str:
        """Grant the Administrator role to ``label`` and return its identity."""
        admin = self.account(label)
        self.academy.add_admin(self.account("rector"), admin)
        return admin

    def event_names(self) -> list[str]:
        return [record.name for record in self.academy.event_log.all()]


# =============================================================================
# Concurrency Helpers
# =============================================================================

def parallel(
    operations: list[Callable[[], Any]],
    max_workers: int = 8,
) -> list[Any]:
    """
    Execute operations in parallel and collect results.

    Returns results in the same order as operations. Registrar errors are
    returned in place of a result.
    """
    results: list[Any] = [None] * len(operations)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(op): i
            for i, op in enumerate(operations)
        }

        for future in as_completed(futures):
            idx = futures[future]
            try:
                results[idx] = future.result()
            except RegistrarError as e:
                results[idx] = e

    return results


def exactly_one(results: list[Any]) -> bool:
    """Check that exactly one operation succeeded."""
    return sum(1 for r in results if not isinstance(r, RegistrarError)) == 1


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def harness() -> AcademyTestHarness:
    """Create an isolated test harness."""
    return AcademyTestHarness()


@pytest.fixture
def academy(harness: AcademyTestHarness) -> Academy:
    return harness.create_academy()


@pytest.fixture
def rector(harness: AcademyTestHarness) -> str:
    return harness.account("rector")


@pytest.fixture
def admin(harness: AcademyTestHarness, academy: Academy) -> str:
    """An account already granted the Administrator role."""
    return harness.with_admin("admin1")


@pytest.fixture
def admin2(harness: AcademyTestHarness) -> str:
    """An account that is not yet an administrator."""
    return harness.account("admin2")


@pytest.fixture
def lambda_user(harness: AcademyTestHarness) -> str:
    return harness.account("lambda")


@pytest.fixture
def director1(harness: AcademyTestHarness) -> str:
    return harness.account("director1")


@pytest.fixture
def director2(harness: AcademyTestHarness) -> str:
    return harness.account("director2")


@pytest.fixture
def director3(harness: AcademyTestHarness) -> str:
    return harness.account("director3")


@pytest.fixture
def school1(academy: Academy, admin: str, director1: str) -> str:
    """School1, created by admin1 and directed by director1."""
    return academy.create_school(admin, "School1", director1)


@pytest.fixture
def ledger(rector: str) -> AccessLedger:
    """A bare ledger with its own event log."""
    return AccessLedger(rector, event_log=EventLog())


@pytest.fixture
def registry(ledger: AccessLedger) -> SchoolRegistry:
    """A bare registry sharing the ledger's event log."""
    return SchoolRegistry(ledger, DeterministicSchoolFactory(account("deployer")))


@pytest.fixture
def null_identity() -> str:
    return NULL_IDENTITY
