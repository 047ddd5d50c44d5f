"""
Concurrency Tests

Goal: racing callers never break the bijection.

Required Tests:
    ✓ Racing creates for one director → exactly one school
    ✓ Racing deletes of one school → exactly one deletion
    ✓ Racing handovers to one new director → exactly one handover
    ✓ Many independent creates → count and log agree
    ✓ Subscribers may query the registry while another thread mutates it
"""

import threading
import time

from academy_registry.academy import Academy
from academy_registry.registrar import (
    AccessLedger,
    AlreadyDirector,
    RegistryConfig,
    Role,
    SchoolCreated,
    SchoolRegistry,
    UnknownSchool,
    derive_address,
)

from .conftest import AcademyTestHarness, exactly_one, parallel


class TestConcurrentMutations:

    def test_racing_creates_single_winner(self, academy: Academy, admin: str, director1: str):
        results = parallel([
            (lambda i=i: academy.create_school(admin, f"School{i}", director1))
            for i in range(16)
        ])

        assert exactly_one(results)
        losers = [r for r in results if isinstance(r, Exception)]
        assert all(isinstance(r, AlreadyDirector) for r in losers)
        assert academy.nb_schools() == 1
        assert len(academy.event_log.query(SchoolCreated)) == 1
        assert academy.verify() == []

    def test_racing_deletes_single_winner(self, academy: Academy, admin: str, school1: str):
        results = parallel([lambda: academy.delete_school(admin, school1) for _ in range(8)])

        assert exactly_one(results)
        assert all(isinstance(r, UnknownSchool) for r in results if isinstance(r, Exception))
        assert academy.nb_schools() == 0

    def test_racing_handovers_single_winner(
        self,
        harness: AcademyTestHarness,
        academy: Academy,
        admin: str,
    ):
        directors = [harness.account(f"director{i}") for i in range(8)]
        for i, director in enumerate(directors):
            academy.create_school(admin, f"School{i}", director)
        newcomer = harness.account("newcomer")

        results = parallel([
            (lambda d=d: academy.change_school_director(admin, d, newcomer))
            for d in directors
        ])

        assert exactly_one(results)
        assert academy.is_director(newcomer)
        assert academy.nb_schools() == len(directors)
        assert academy.verify() == []

    def test_independent_creates(self, harness: AcademyTestHarness, academy: Academy, admin: str):
        directors = [harness.account(f"d{i}") for i in range(32)]

        results = parallel([
            (lambda d=d: academy.create_school(admin, d, d))
            for d in directors
        ])

        assert not any(isinstance(r, Exception) for r in results)
        assert len(set(results)) == len(directors)
        assert academy.nb_schools() == len(directors)
        sequences = [r.sequence for r in academy.event_log.all()]
        assert sequences == list(range(len(sequences)))
        assert academy.replay().state.to_dict() == academy.registry.state().to_dict()


class TestSubscriberReentry:
    """Subscribers run inside the mutation and may read any component."""

    def test_subscriber_queries_registry_during_concurrent_create(self, harness: AcademyTestHarness):
        rector = harness.account("rector")
        admin = harness.account("admin1")
        director = harness.account("director1")
        factory_entered = threading.Event()

        class SlowFactory:
            def create(self, name: str, director: str) -> str:
                factory_entered.set()
                time.sleep(0.2)
                return derive_address(director, 1)

        ledger = AccessLedger(rector)
        registry = SchoolRegistry(
            ledger,
            SlowFactory(),
            config=RegistryConfig(verify_after_commit=True),
        )
        counts: list[int] = []
        ledger.event_log.subscribe(lambda record: counts.append(registry.school_count()))

        def grant_while_creating() -> None:
            factory_entered.wait(2)
            ledger.grant_administrator(rector, admin)

        creator = threading.Thread(
            target=registry.create_school, args=(rector, "School1", director), daemon=True
        )
        granter = threading.Thread(target=grant_while_creating, daemon=True)
        creator.start()
        granter.start()
        creator.join(3)
        granter.join(3)

        assert not creator.is_alive() and not granter.is_alive()
        assert registry.is_director(director)
        assert ledger.has_role(Role.ADMINISTRATOR, admin)
        assert counts == [1, 1, 1]

    def test_subscriber_reads_both_components(self, academy: Academy, rector: str, admin2: str):
        seen: list[tuple[bool, int]] = []
        academy.event_log.subscribe(
            lambda record: seen.append((academy.has_role(Role.ADMINISTRATOR, admin2), academy.nb_schools()))
        )

        academy.add_admin(rector, admin2)
        academy.create_school(admin2, "School1", admin2)

        assert seen == [(True, 0), (True, 1), (True, 1)]
