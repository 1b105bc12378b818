import pytest

from argsem_pkg.errors import MalformedFrameworkError
from argsem_pkg.evidential import ETA, EvidentialFramework
from argsem_pkg.framework import Extension
from argsem_pkg.reasoner import compute_extensions, is_in_semantics


def ext(*args):
    return Extension(args)


@pytest.fixture
def supported():
    # eta supports a
    return EvidentialFramework({"a"}, supports={"a": [{ETA}]})


@pytest.fixture
def attack():
    # both prima facie, b attacks a
    return EvidentialFramework({"a", "b"}, {("b", "a")}, prima_facie={"a", "b"})


@pytest.fixture
def unsupported_attacker():
    # c attacks a but nothing supports c
    return EvidentialFramework({"a", "c"}, {("c", "a")}, prima_facie={"a"})


class TestConstruction:
    def test_eta_is_always_present(self):
        E = EvidentialFramework(set())
        assert E.arguments == {ETA}

    def test_eta_can_not_be_supported(self):
        with pytest.raises(MalformedFrameworkError):
            EvidentialFramework({"a"}, supports={ETA: [{"a"}]})

    def test_eta_can_not_attack(self):
        with pytest.raises(MalformedFrameworkError):
            EvidentialFramework({"a"}, {(ETA, "a")})

    def test_empty_supporter_set(self):
        with pytest.raises(MalformedFrameworkError):
            EvidentialFramework({"a"}, supports={"a": [set()]})

    def test_unknown_supporter(self):
        with pytest.raises(MalformedFrameworkError):
            EvidentialFramework({"a"}, supports={"a": [{"zz"}]})

    def test_equal_frameworks_hash_alike(self, attack):
        twin = EvidentialFramework(["b", "a"], [("b", "a")], prima_facie=["b", "a"])
        assert twin == attack
        assert hash(twin) == hash(attack)

    def test_prima_facie_means_supported_by_eta(self, attack):
        assert attack.supports["a"] == {frozenset({ETA})}


class TestSupport:
    def test_chains(self):
        E = EvidentialFramework({"a", "b"}, supports={"a": [{ETA}], "b": [{"a"}]})
        assert E.support_chains("b") == {frozenset({"b", "a", ETA})}
        assert E.has_evidential_support("b", {"a", ETA})
        assert not E.has_evidential_support("b", {ETA})
        assert E.has_evidential_support(ETA, set())

    def test_support_cycle_is_not_evidence(self):
        E = EvidentialFramework({"a", "c", "d"}, supports={"a": [{ETA}], "c": [{"d"}], "d": [{"c"}]})
        assert E.evidence_supported_arguments() == {ETA, "a"}
        assert E.support_chains("c") == frozenset()

    def test_only_minimal_chains_are_kept(self):
        E = EvidentialFramework(
            {"a", "b"},
            supports={"a": [{ETA}], "b": [{ETA}, {"a"}]},
        )
        assert E.support_chains("b") == {frozenset({"b", ETA})}

    def test_attacking_sets(self, attack):
        assert attack.minimal_attacking_sets("a") == {frozenset({"b", ETA})}
        assert attack.minimal_attacking_sets("b") == frozenset()

    def test_self_supporting(self, supported):
        assert supported.is_self_supporting({ETA, "a"})
        assert not supported.is_self_supporting({"a"})


class TestPredicates:
    def test_gated_conflict(self, unsupported_attacker):
        assert unsupported_attacker.is_conflict_free({"a", "c"})
        assert not unsupported_attacker.framework.is_conflict_free({"a", "c"})

    def test_supported_attack_is_a_conflict(self, attack):
        assert not attack.is_conflict_free({ETA, "a", "b"})
        # without eta, b has no support inside the set
        assert attack.is_conflict_free({"a", "b"})

    def test_admissible_needs_eta(self, supported):
        assert supported.is_admissible(set())
        assert supported.is_admissible({ETA})
        assert supported.is_admissible({ETA, "a"})
        assert not supported.is_admissible({"a"})

    def test_acceptability(self, attack):
        assert attack.is_acceptable("b", {ETA})
        assert not attack.is_acceptable("a", {ETA})
        assert attack.fes({ETA}) == {ETA, "b"}

    def test_stable(self, attack):
        assert attack.is_stable({ETA, "b"})
        assert not attack.is_stable({ETA})


class TestSemantics:
    def test_supported(self, supported):
        assert compute_extensions(supported, "admissible") == {ext(), ext(ETA), ext(ETA, "a")}
        assert compute_extensions(supported, "complete") == {ext(ETA, "a")}
        assert compute_extensions(supported, "grounded") == {ext(ETA, "a")}

    def test_attack(self, attack):
        assert compute_extensions(attack, "grounded") == {ext(ETA, "b")}
        assert compute_extensions(attack, "preferred") == {ext(ETA, "b")}
        assert compute_extensions(attack, "stable") == {ext(ETA, "b")}
        assert compute_extensions(attack, "ideal") == {ext(ETA, "b")}

    def test_self_supporting_sets(self, unsupported_attacker):
        assert compute_extensions(unsupported_attacker, "self-supporting") == {ext(), ext(ETA), ext(ETA, "a")}

    def test_unsupported_attacker_is_harmless(self, unsupported_attacker):
        assert compute_extensions(unsupported_attacker, "grounded") == {ext(ETA, "a")}

    def test_empty(self):
        E = EvidentialFramework(set())
        assert compute_extensions(E, "grounded") == {ext(ETA)}
        assert compute_extensions(E, "admissible") == {ext(), ext(ETA)}

    def test_strategies_agree(self, attack, supported, unsupported_attacker):
        for E in (attack, supported, unsupported_attacker):
            for sem in ("conflict-free", "admissible", "complete", "stable", "self-supporting"):
                assert compute_extensions(E, sem) == compute_extensions(E, sem, strategy="powerset")

    def test_grounded_is_in_every_complete_extension(self, attack, supported, unsupported_attacker):
        for E in (attack, supported, unsupported_attacker):
            grounded = E.grounded_extension()
            complete = compute_extensions(E, "complete")
            assert complete
            assert all(grounded <= c for c in complete)

    def test_membership(self, attack):
        assert is_in_semantics(attack, {ETA, "b"}, "complete")
        assert is_in_semantics(attack, {ETA, "b"}, "preferred")
        assert not is_in_semantics(attack, {"b"}, "admissible")


class TestConversion:
    def test_chains_become_arguments(self, attack):
        F = attack.to_framework()
        assert F.arguments == {"eta", "a_eta", "b_eta"}
        assert F.attacks == {("b_eta", "a_eta")}
