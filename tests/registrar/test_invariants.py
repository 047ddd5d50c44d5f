"""
Invariant Tests — detecting broken registry states.

The registrar never produces these states itself; they are built by hand
here to prove every invariant actually fires.
"""

import pytest

from academy_registry.registrar import (
    NULL_IDENTITY,
    AccessLedger,
    RegistryInvariant,
    RegistryState,
    Role,
    check_invariants,
    derive_address,
    is_null,
    list_invariants,
)
from academy_registry.registrar.invariants import REGISTRY_INVARIANTS


def _ids(violations):
    return {v.invariant_id for v in violations}


class TestInvariantCatalogue:
    def test_all_invariants_follow_protocol(self):
        for invariant in REGISTRY_INVARIANTS:
            assert isinstance(invariant, RegistryInvariant)

    def test_list_invariants(self):
        ids = [entry["id"] for entry in list_invariants()]

        assert ids == [
            "registry.bijection.director_round_trip",
            "registry.bijection.school_round_trip",
            "registry.count.consistent",
            "registry.identity.no_null",
            "access.rector.present",
        ]
        assert all(entry["description"] for entry in list_invariants())


class TestBrokenStates:
    """Each corruption is caught by the matching invariant."""

    def test_sound_state(self):
        state = RegistryState()
        state.link("0xd1", "0xs1")
        state.link("0xd2", "0xs2")

        assert check_invariants(state) == []

    def test_dangling_director(self):
        state = RegistryState(
            school_of={"0xd1": "0xs1"},
            director_of={},
            school_count=0,
        )
        assert "registry.bijection.director_round_trip" in _ids(check_invariants(state))

    def test_dangling_school(self):
        state = RegistryState(
            school_of={},
            director_of={"0xs1": "0xd1"},
            school_count=1,
        )
        assert _ids(check_invariants(state)) == {"registry.bijection.school_round_trip"}

    def test_crossed_mappings(self):
        state = RegistryState(
            school_of={"0xd1": "0xs1", "0xd2": "0xs2"},
            director_of={"0xs1": "0xd2", "0xs2": "0xd1"},
            school_count=2,
        )
        assert _ids(check_invariants(state)) == {
            "registry.bijection.director_round_trip",
            "registry.bijection.school_round_trip",
        }

    def test_count_drift(self):
        state = RegistryState()
        state.link("0xd1", "0xs1")
        state.school_count = 3

        violations = check_invariants(state)

        assert _ids(violations) == {"registry.count.consistent"}
        assert violations[0].classification == "HALT"

    def test_null_identity_in_mapping(self):
        state = RegistryState()
        state.link(NULL_IDENTITY, "0xs1")

        assert _ids(check_invariants(state)) == {"registry.identity.no_null"}

    def test_rector_present(self):
        ledger = AccessLedger("0xrector")
        assert check_invariants(RegistryState(), ledger) == []

    def test_rector_missing(self):
        ledger = AccessLedger("0xrector")
        ledger._members[Role.RECTOR].clear()

        assert _ids(check_invariants(RegistryState(), ledger)) == {"access.rector.present"}

    def test_custom_invariant_list(self):
        state = RegistryState(school_count=1)
        assert check_invariants(state, invariants=[]) == []

    def test_explicit_invariant_subset(self):
        state = RegistryState(school_count=1)
        only_null = [inv for inv in REGISTRY_INVARIANTS if inv.id == "registry.identity.no_null"]

        assert check_invariants(state, invariants=only_null) == []
        assert _ids(check_invariants(state)) == {"registry.count.consistent"}


class TestRegistryState:
    """Commit helpers and serialization."""

    def test_link_relink_unlink(self):
        state = RegistryState()
        state.link("0xd1", "0xs1")

        assert state.relink("0xd1", "0xd2") == "0xs1"
        assert state.school_of == {"0xd2": "0xs1"}
        assert state.director_of == {"0xs1": "0xd2"}
        assert state.school_count == 1

        assert state.unlink("0xs1") == "0xd2"
        assert state == RegistryState()

    def test_dict_round_trip(self):
        state = RegistryState()
        state.link("0xd1", "0xs1")

        rebuilt = RegistryState.from_dict(state.to_dict())

        assert rebuilt == state

    def test_copy_is_independent(self):
        state = RegistryState()
        copy = state.copy()
        copy.link("0xd1", "0xs1")

        assert state.school_count == 0


class TestIdentity:
    @pytest.mark.parametrize("value", [None, "", NULL_IDENTITY])
    def test_null_values(self, value):
        assert is_null(value)

    def test_real_identity_not_null(self):
        assert not is_null("0x" + "0" * 39 + "1")

    def test_derive_address_is_deterministic(self):
        first = derive_address("0xDeployer", 1)

        assert first == derive_address("0xdeployer", 1)
        assert first != derive_address("0xdeployer", 2)
        assert first.startswith("0x") and len(first) == 42

    def test_negative_nonce(self):
        with pytest.raises(ValueError):
            derive_address("0xdeployer", -1)
