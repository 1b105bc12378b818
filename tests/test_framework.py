import pytest

from argsem_pkg.errors import MalformedFrameworkError
from argsem_pkg.framework import Extension, Framework


class TestConstruction:
    def test_attack_on_unknown_argument_is_rejected(self):
        with pytest.raises(MalformedFrameworkError):
            Framework({"a"}, {("a", "z")})

    def test_malformed_is_a_value_error(self):
        with pytest.raises(ValueError):
            Framework(set(), {("x", "y")})

    def test_indices(self, reinstatement):
        assert reinstatement.attackers("a") == {"b"}
        assert reinstatement.attackers("c") == frozenset()
        assert reinstatement.attacked_by("c") == {"b"}
        assert reinstatement.is_attack("b", "a")
        assert not reinstatement.is_attack("a", "b")

    def test_structural_equality(self):
        f1 = Framework({"a", "b"}, {("a", "b")})
        f2 = Framework(["b", "a"], [("a", "b")])
        assert f1 == f2
        assert hash(f1) == hash(f2)
        assert f1 != Framework({"a", "b"}, {("b", "a")})

    def test_predicates_reject_foreign_arguments(self, mutual):
        with pytest.raises(ValueError):
            mutual.is_conflict_free({"a", "zz"})


class TestExtension:
    def test_equality_is_set_equality(self):
        assert Extension({"a", "b"}) == Extension(["b", "a"])
        assert Extension({"a"}) == frozenset({"a"})
        assert len({Extension({"a"}), Extension({"a"})}) == 1

    def test_str_is_sorted(self):
        assert str(Extension({"b", "a"})) == "{a, b}"
        assert str(Extension()) == "{}"


class TestPredicates:
    def test_conflict_free(self, mutual):
        assert mutual.is_conflict_free(set())
        assert mutual.is_conflict_free({"a"})
        assert not mutual.is_conflict_free({"a", "b"})

    def test_self_attacker_is_never_conflict_free(self, self_attack):
        assert not self_attack.is_conflict_free({"a"})

    def test_acceptability(self, reinstatement):
        assert reinstatement.is_acceptable("c", set())
        assert not reinstatement.is_acceptable("a", set())
        assert reinstatement.is_acceptable("a", {"c"})

    def test_defended_by_is_the_characteristic_function(self, reinstatement):
        assert reinstatement.defended_by(set()) == {"c"}
        assert reinstatement.defended_by({"c"}) == {"a", "c"}

    def test_admissible(self, single_attack):
        assert single_attack.is_admissible(set())
        assert single_attack.is_admissible({"b"})
        assert not single_attack.is_admissible({"a"})

    def test_complete_requires_closure_under_defence(self, reinstatement):
        assert reinstatement.is_admissible({"c"})
        assert not reinstatement.is_complete({"c"})
        assert reinstatement.is_complete({"a", "c"})

    def test_stable(self, mutual, odd_cycle):
        assert mutual.is_stable({"a"})
        assert not mutual.is_stable(set())
        assert not any(odd_cycle.is_stable(s) for s in [set(), {"a"}, {"b"}, {"c"}])

    def test_attacks_set(self, reinstatement):
        assert reinstatement.attacks_set({"c"}, {"a", "b"})
        assert not reinstatement.attacks_set({"a"}, {"b", "c"})


class TestGroundedFixpoint:
    def test_single_attack(self, single_attack):
        assert single_attack.grounded_extension() == {"b"}

    def test_mutual_attack(self, mutual):
        assert mutual.grounded_extension() == Extension()

    def test_reinstatement(self, reinstatement):
        assert reinstatement.grounded_extension() == {"a", "c"}

    def test_empty(self, empty):
        assert empty.grounded_extension() == Extension()

    def test_grounded_is_complete(self, all_frameworks):
        for F in all_frameworks:
            assert F.is_complete(F.grounded_extension())


class TestMaximalAdmissibleSubset:
    def test_drops_undefended_members(self, reinstatement):
        assert reinstatement.maximal_admissible_subset({"a"}) == Extension()
        assert reinstatement.maximal_admissible_subset({"a", "c"}) == {"a", "c"}

    def test_rejects_conflicting_input(self, mutual):
        with pytest.raises(ValueError):
            mutual.maximal_admissible_subset({"a", "b"})


class TestStructure:
    def test_candidates_drop_hopeless_arguments(self, self_attack, single_attack):
        assert self_attack.candidates() == ()
        # a has an unattacked attacker, it can never be defended
        assert single_attack.candidates() == ("b",)
        assert single_attack.candidates(for_admissible=False) == ("a", "b")

    def test_well_founded_graph(self, reinstatement, mutual, self_attack):
        assert reinstatement.is_well_founded()
        assert not mutual.is_well_founded()
        assert not self_attack.is_well_founded()

    def test_self_loops(self, self_attack, mutual):
        assert self_attack.has_self_loops()
        assert not mutual.has_self_loops()

    def test_unattacked(self, reinstatement):
        assert reinstatement.unattacked_arguments() == {"c"}

    def test_restrict(self, reinstatement):
        sub = reinstatement.restrict({"a", "b"})
        assert sub == Framework({"a", "b"}, {("b", "a")})
        with pytest.raises(ValueError):
            reinstatement.restrict({"q"})
