"""
Evidential argumentation frameworks (Oren & Norman).

An EAF adds a support relation and a special argument eta, the source of all
evidence. An argument only counts once it has evidential support: a chain of
supporter sets leading back to eta. Attacks are gated the same way, so an
argument without support inside a candidate set cannot attack from it.

Every predicate here costs noticeably more than its Dung counterpart (support
lookup, gated conflict check, attacking-set bookkeeping), so the support
chains are computed once per framework.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from itertools import product
from typing import Dict, FrozenSet, Iterable, List, Mapping, Set, Tuple
import logging

from .errors import MalformedFrameworkError
from .framework import Argument, Attack, Extension, Framework

logger = logging.getLogger(__name__)

ETA = "eta"


def _minimal(sets: Iterable[FrozenSet[Argument]]) -> FrozenSet[FrozenSet[Argument]]:
    pool = set(sets)
    return frozenset(s for s in pool if not any(o < s for o in pool))


@dataclass(frozen=True)
class EvidentialFramework:
    arguments: FrozenSet[Argument]
    attacks: FrozenSet[Attack] = frozenset()
    supports: Mapping[Argument, FrozenSet[FrozenSet[Argument]]] = field(default_factory=dict)
    eta: Argument = ETA
    prima_facie: FrozenSet[Argument] = frozenset()

    framework: Framework = field(init=False, repr=False, compare=False)
    _chains: Dict[Argument, FrozenSet[FrozenSet[Argument]]] = field(init=False, repr=False, compare=False)
    _attacking_sets: Dict[Argument, FrozenSet[FrozenSet[Argument]]] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        args = frozenset(self.arguments) | {self.eta} | frozenset(self.prima_facie)
        supports: Dict[Argument, Set[FrozenSet[Argument]]] = {}
        for a, supporter_sets in dict(self.supports).items():
            supporter_sets = [frozenset(s) for s in supporter_sets]
            if not supporter_sets or any(not s for s in supporter_sets):
                raise MalformedFrameworkError(f"Support for {a} must be a non-empty collection of non-empty sets")
            supports.setdefault(a, set()).update(supporter_sets)
        for a in self.prima_facie:
            supports.setdefault(a, set()).add(frozenset({self.eta}))

        object.__setattr__(self, "arguments", args)
        object.__setattr__(self, "attacks", frozenset((s, t) for s, t in self.attacks))
        object.__setattr__(self, "supports", {a: frozenset(ss) for a, ss in supports.items()})
        object.__setattr__(self, "prima_facie", frozenset(self.prima_facie))
        self._validate_core()
        object.__setattr__(self, "framework", Framework(args, self.attacks))
        self._build_chains()

    def __hash__(self) -> int:
        return hash((self.arguments, self.attacks, frozenset(self.supports.items()), self.eta, self.prima_facie))

    # --- validation ---
    def _validate_core(self) -> None:
        if self.eta in self.supports:
            raise MalformedFrameworkError("Eta can not be supported by another argument")
        for s, t in self.attacks:
            if self.eta in (s, t):
                raise MalformedFrameworkError("Eta is not allowed to be part of any attack relation")
        for a, supporter_sets in self.supports.items():
            if a not in self.arguments:
                raise MalformedFrameworkError(f"Support given for unknown argument {a}")
            for s in supporter_sets:
                unknown = s - self.arguments
                if unknown:
                    raise MalformedFrameworkError(
                        f"Supporters of {a} reference unknown arguments: {sorted(map(str, unknown))}")

    # --- indexing ---
    def _build_chains(self) -> None:
        """
        Minimal support chains: for every argument a, the ⊆-minimal sets that
        contain a and eta and e-support every member without going through a
        cycle. Built bottom-up until nothing changes.
        """
        chains: Dict[Argument, Set[FrozenSet[Argument]]] = {a: set() for a in self.arguments}
        chains[self.eta] = {frozenset({self.eta})}
        order = [a for a in sorted(self.arguments, key=str) if a != self.eta]

        rounds = 0
        changed = True
        while changed:
            changed = False
            rounds += 1
            for a in order:
                for supporter_set in self.supports.get(a, ()):
                    if a in supporter_set:
                        continue
                    options = [[c for c in chains[x] if a not in c] for x in supporter_set]
                    if any(not o for o in options):
                        continue
                    for combo in product(*options):
                        cand = frozenset({a}).union(*combo)
                        if any(c <= cand for c in chains[a]):
                            continue
                        chains[a] = {c for c in chains[a] if not cand < c} | {cand}
                        changed = True

        attacking: Dict[Argument, FrozenSet[FrozenSet[Argument]]] = {}
        for a in self.arguments:
            attacking[a] = _minimal(c for b in self.framework.attackers(a) for c in chains[b])

        object.__setattr__(self, "_chains", {a: frozenset(cs) for a, cs in chains.items()})
        object.__setattr__(self, "_attacking_sets", attacking)
        logger.debug("support chains built in %d rounds for %d arguments", rounds, len(self.arguments))

    def _check(self, delta: Iterable[Argument]) -> FrozenSet[Argument]:
        dset = frozenset(delta)
        unknown = dset - self.arguments
        if unknown:
            raise ValueError(f"Set contains arguments not in the framework: {sorted(map(str, unknown))}")
        return dset

    # --- public views ---
    def support_chains(self, a: Argument) -> FrozenSet[FrozenSet[Argument]]:
        return self._chains[a]

    def minimal_attacking_sets(self, a: Argument) -> FrozenSet[FrozenSet[Argument]]:
        """Minimal sets that carry an evidence-supported attack on a."""
        return self._attacking_sets[a]

    def evidence_supported_arguments(self) -> Extension:
        """Arguments reachable from eta through the support relation."""
        return Extension(a for a, cs in self._chains.items() if cs)

    # --- evidential support ---
    def has_evidential_support(self, a: Argument, delta: Iterable[Argument]) -> bool:
        if a == self.eta:
            return True
        dset = frozenset(delta)
        return any(c - {a} <= dset for c in self._chains[a])

    def is_evidence_supported_attack(self, delta: Iterable[Argument], b: Argument) -> bool:
        """Some member of delta attacks b and is itself e-supported by delta."""
        dset = frozenset(delta)
        return any(a in dset and self.has_evidential_support(a, dset) for a in self.framework.attackers(b))

    def is_self_supporting(self, delta: Iterable[Argument]) -> bool:
        dset = self._check(delta)
        return all(self.has_evidential_support(a, dset) for a in dset)

    # --- predicates ---
    def is_conflict_free(self, delta: Iterable[Argument]) -> bool:
        dset = self._check(delta)
        return not any(self.is_evidence_supported_attack(dset, b) for b in dset)

    def can_extend_conflict_free(self, current: FrozenSet[Argument], a: Argument) -> bool:
        return self.is_conflict_free(current | {a})

    def is_acceptable(self, a: Argument, delta: Iterable[Argument]) -> bool:
        """
        a is e-supported by delta, and every minimal evidence-supported
        attacking set of a has a member that delta attacks with support.
        """
        dset = frozenset(delta)
        if not self.has_evidential_support(a, dset):
            return False
        for attacking_set in self._attacking_sets[a]:
            if not any(self.is_evidence_supported_attack(dset, x) for x in attacking_set):
                return False
        return True

    def fes(self, delta: Iterable[Argument]) -> Extension:
        """{ a | a is acceptable w.r.t. delta }"""
        dset = frozenset(delta)
        return Extension(a for a in self.arguments if self.is_acceptable(a, dset))

    def is_admissible(self, delta: Iterable[Argument]) -> bool:
        dset = self._check(delta)
        if dset and self.eta not in dset:
            return False
        return self.is_conflict_free(dset) and all(self.is_acceptable(a, dset) for a in dset)

    def is_complete(self, delta: Iterable[Argument]) -> bool:
        dset = frozenset(delta)
        return self.is_admissible(dset) and self.fes(dset) <= dset

    def is_stable(self, delta: Iterable[Argument]) -> bool:
        dset = frozenset(delta)
        if not self.is_complete(dset):
            return False
        return all(self.is_evidence_supported_attack(dset, x) for x in self.arguments - dset)

    # --- fixpoints ---
    def grounded_extension(self) -> Extension:
        """Least fix-point of fes from ∅; eta enters in the first round."""
        current = Extension()
        while True:
            nxt = self.fes(current)
            if nxt == current:
                return current
            current = nxt

    def maximal_admissible_subset(self, delta: Iterable[Argument]) -> Extension:
        current = frozenset(self._check(delta))
        if not self.is_conflict_free(current):
            raise ValueError("maximal_admissible_subset() expects a conflict-free set")
        while True:
            nxt = frozenset(a for a in current if self.is_acceptable(a, current))
            if nxt == current:
                return Extension(current)
            current = nxt

    # --- search helpers ---
    def candidates(self) -> Tuple[Argument, ...]:
        """Only e-supported arguments can be acceptable."""
        return tuple(sorted(self.evidence_supported_arguments(), key=str))

    # --- conversion ---
    def to_framework(self) -> Framework:
        """
        Dung framework over the minimal support chains: chain C1 attacks chain
        C2 when a member of C1 attacks a member of C2.
        """
        def name(chain: FrozenSet[Argument]) -> str:
            return "_".join(sorted(map(str, chain)))

        chains = {c for cs in self._chains.values() for c in cs}
        names = {c: name(c) for c in chains}
        attacks = set()
        for c1 in chains:
            hit = {t for s in c1 for t in self.framework.attacked_by(s)}
            for c2 in chains:
                if hit & c2:
                    attacks.add((names[c1], names[c2]))
        return Framework(set(names.values()), attacks)

    def __str__(self) -> str:
        sup = "; ".join(
            f"{a} <= " + " | ".join("{" + ", ".join(sorted(map(str, s))) + "}" for s in sorted(ss, key=lambda s: sorted(map(str, s))))
            for a, ss in sorted(self.supports.items(), key=lambda p: str(p[0]))
        )
        return f"{self.framework} supports: {sup}"
