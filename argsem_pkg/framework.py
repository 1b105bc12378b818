from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Hashable, Iterable, Tuple
import logging

import numpy as np

from .errors import MalformedFrameworkError

logger = logging.getLogger(__name__)

Argument = Hashable
Attack = Tuple[Argument, Argument]


def _order_key(a: Argument) -> str:
    return str(a)


# ---------- Extension ----------
class Extension(frozenset):
    """A set of arguments. Equality is plain set equality."""

    def __repr__(self) -> str:
        return f"Extension({self})"

    def __str__(self) -> str:
        return "{" + ", ".join(sorted(map(str, self))) + "}"


# ---------- Framework ----------
@dataclass(frozen=True)
class Framework:
    """
    Dung framework (Args, Att).

    Arguments live in a fixed order; `_index` maps each one to its row/column in
    the boolean attack matrix, so every predicate below is a handful of numpy
    operations over index vectors instead of a walk over Python objects.
    """
    arguments: FrozenSet[Argument]
    attacks: FrozenSet[Attack] = frozenset()

    _order: Tuple[Argument, ...] = field(init=False, repr=False, compare=False)
    _index: Dict[Argument, int] = field(init=False, repr=False, compare=False)
    _attack_matrix: np.ndarray = field(init=False, repr=False, compare=False)
    _attackers: Dict[Argument, FrozenSet[Argument]] = field(init=False, repr=False, compare=False)
    _attacked: Dict[Argument, FrozenSet[Argument]] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "arguments", frozenset(self.arguments))
        object.__setattr__(self, "attacks", frozenset((s, t) for s, t in self.attacks))
        self._validate_core()
        self._build_matrices()

    # --- validation ---
    def _validate_core(self) -> None:
        for s, t in self.attacks:
            missing = {x for x in (s, t) if x not in self.arguments}
            if missing:
                raise MalformedFrameworkError(
                    f"Attack ({s}, {t}) references unknown arguments: {sorted(map(str, missing))}"
                )

    # --- indexing ---
    def _build_matrices(self) -> None:
        order = tuple(sorted(self.arguments, key=_order_key))
        index = {a: i for i, a in enumerate(order)}
        n = len(order)

        # attack[i, j] = True if i attacks j
        matrix = np.zeros((n, n), dtype=bool)
        for s, t in self.attacks:
            matrix[index[s], index[t]] = True

        attackers = {a: frozenset(order[i] for i in np.flatnonzero(matrix[:, index[a]])) for a in order}
        attacked = {a: frozenset(order[j] for j in np.flatnonzero(matrix[index[a]])) for a in order}

        object.__setattr__(self, "_order", order)
        object.__setattr__(self, "_index", index)
        object.__setattr__(self, "_attack_matrix", matrix)
        object.__setattr__(self, "_attackers", attackers)
        object.__setattr__(self, "_attacked", attacked)

    def _mask(self, delta: Iterable[Argument]) -> np.ndarray:
        dset = set(delta)
        unknown = dset - self.arguments
        if unknown:
            raise ValueError(f"Set contains arguments not in the framework: {sorted(map(str, unknown))}")
        vec = np.zeros(len(self._order), dtype=bool)
        vec[[self._index[a] for a in dset]] = True
        return vec

    def _to_extension(self, vec: np.ndarray) -> Extension:
        return Extension(self._order[i] for i in np.flatnonzero(vec))

    def _hit_by(self, vec: np.ndarray) -> np.ndarray:
        """Arguments attacked by at least one member of `vec`."""
        if not vec.any():
            return np.zeros(len(self._order), dtype=bool)
        return self._attack_matrix[vec].any(axis=0)

    def _defended(self, vec: np.ndarray) -> np.ndarray:
        """Characteristic function on index vectors."""
        undefeated_attackers = self._attack_matrix & ~self._hit_by(vec)[:, None]
        return ~undefeated_attackers.any(axis=0)

    # --- public views ---
    @property
    def order(self) -> Tuple[Argument, ...]:
        return self._order

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, a: object) -> bool:
        return a in self.arguments

    def attackers(self, a: Argument) -> FrozenSet[Argument]:
        return self._attackers[a]

    def attacked_by(self, a: Argument) -> FrozenSet[Argument]:
        return self._attacked[a]

    def is_attack(self, attacker: Argument, attacked: Argument) -> bool:
        return bool(self._attack_matrix[self._index[attacker], self._index[attacked]])

    def attacks_set(self, delta: Iterable[Argument], gamma: Iterable[Argument]) -> bool:
        return bool((self._hit_by(self._mask(delta)) & self._mask(gamma)).any())

    # --- predicates ---
    def is_conflict_free(self, delta: Iterable[Argument]) -> bool:
        vec = self._mask(delta)
        idx = np.flatnonzero(vec)
        return not self._attack_matrix[np.ix_(idx, idx)].any()

    def is_acceptable(self, a: Argument, delta: Iterable[Argument]) -> bool:
        """delta defends a: every attacker of a is attacked by delta."""
        hit = self._hit_by(self._mask(delta))
        return not (self._attack_matrix[:, self._index[a]] & ~hit).any()

    def defended_by(self, delta: Iterable[Argument]) -> Extension:
        """{ a | delta defends a } (the characteristic function)."""
        return self._to_extension(self._defended(self._mask(delta)))

    def is_admissible(self, delta: Iterable[Argument]) -> bool:
        dset = set(delta)
        if not self.is_conflict_free(dset):
            return False
        vec = self._mask(dset)
        return not (vec & ~self._defended(vec)).any()

    def is_complete(self, delta: Iterable[Argument]) -> bool:
        # admissible + closed under defence  <=>  conflict-free fix-point
        dset = set(delta)
        if not self.is_conflict_free(dset):
            return False
        vec = self._mask(dset)
        return bool(np.array_equal(vec, self._defended(vec)))

    def is_stable(self, delta: Iterable[Argument]) -> bool:
        dset = set(delta)
        if not self.is_conflict_free(dset):
            return False
        vec = self._mask(dset)
        return bool((vec | self._hit_by(vec)).all())

    def can_extend_conflict_free(self, current: FrozenSet[Argument], a: Argument) -> bool:
        """current ∪ {a} is conflict-free, given that current already is."""
        if self.is_attack(a, a):
            return False
        return self._attacked[a].isdisjoint(current) and self._attackers[a].isdisjoint(current)

    # --- fixpoints ---
    def grounded_extension(self) -> Extension:
        """
        Least fix-point of the characteristic function, iterated from ∅.
        Monotone on a finite lattice, so at most |Args| + 1 rounds.
        """
        vec = np.zeros(len(self._order), dtype=bool)
        rounds = 0
        while True:
            rounds += 1
            nxt = self._defended(vec)
            if np.array_equal(nxt, vec):
                break
            vec = nxt
        logger.debug("grounded fix-point reached after %d rounds (%d arguments in)", rounds, int(vec.sum()))
        return self._to_extension(vec)

    def maximal_admissible_subset(self, delta: Iterable[Argument]) -> Extension:
        """
        Greatest fix-point of S ↦ S ∩ F(S) below a conflict-free set.
        Every admissible subset of delta survives each round, so the result is
        the ⊆-largest admissible subset of delta.
        """
        vec = self._mask(delta)
        if not self.is_conflict_free(self._to_extension(vec)):
            raise ValueError("maximal_admissible_subset() expects a conflict-free set")
        while True:
            nxt = vec & self._defended(vec)
            if np.array_equal(nxt, vec):
                return self._to_extension(vec)
            vec = nxt

    # --- search helpers ---
    def candidates(self, for_admissible: bool = True) -> Tuple[Argument, ...]:
        """
        Arguments worth branching on. Self-attackers never sit in a
        conflict-free set; an argument with an unattacked attacker is never
        defended, so it never sits in an admissible set either.
        """
        diag = np.diag(self._attack_matrix)
        keep = ~diag
        if for_admissible:
            unattacked = ~self._attack_matrix.any(axis=0)
            keep &= ~(self._attack_matrix & unattacked[:, None]).any(axis=0)
        return tuple(self._order[i] for i in np.flatnonzero(keep))

    # --- structure ---
    def unattacked_arguments(self) -> Extension:
        return self._to_extension(~self._attack_matrix.any(axis=0))

    def has_self_loops(self) -> bool:
        return bool(np.diag(self._attack_matrix).any())

    def is_well_founded(self) -> bool:
        """No infinite backward attack chain, i.e. the attack graph is acyclic."""
        remaining = np.ones(len(self._order), dtype=bool)
        while remaining.any():
            sub = self._attack_matrix & remaining[:, None] & remaining[None, :]
            sources = remaining & ~sub.any(axis=0)
            if not sources.any():
                return False
            remaining &= ~sources
        return True

    def restrict(self, delta: Iterable[Argument]) -> "Framework":
        """Sub-framework induced by delta."""
        keep = set(delta)
        self._mask(keep)
        return Framework(keep, {(s, t) for s, t in self.attacks if s in keep and t in keep})

    def __str__(self) -> str:
        args = ", ".join(map(str, self._order))
        atts = ", ".join(f"({s}, {t})" for s, t in sorted(self.attacks, key=lambda p: (str(p[0]), str(p[1]))))
        return f"<{{{args}}}, {{{atts}}}>"
