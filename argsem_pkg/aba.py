from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass, field
from itertools import product
from typing import Any, Dict, FrozenSet, Iterable, List, Set
import logging

from .errors import MalformedFrameworkError, NonFlatTheoryError
from .framework import Extension, Framework
from .logic import ObjectLogic, build_contrary_map, entailment_rules

logger = logging.getLogger(__name__)


# Notes:
# Δ attacks β iff Δ derives ¯β. Derivations are monotone, so checking the
# closed attackers Cl(support(d)) of the deductions d concluding ¯β is
# equivalent to searching all attacking sets.

# ---------- Dataclasses ----------
@dataclass(frozen=True)
class Literal:
    key: str
    payload: Any = field(default=None, compare=False)

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.key

    def __repr__(self) -> str:
        return f"Literal({self.key!r})"


# ---------- Rule ----------
@dataclass(frozen=True)
class InferenceRule:
    """conclusion ← premises   (premises may be empty)."""
    conclusion: Literal
    premises: FrozenSet[Literal] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "premises", frozenset(self.premises))
        if not isinstance(self.conclusion, Literal) or not all(isinstance(p, Literal) for p in self.premises):
            raise TypeError("InferenceRule.conclusion and premises must be Literal instances.")

    def __str__(self) -> str:
        body = ", ".join(sorted(p.key for p in self.premises))
        return f"{self.conclusion} <- {body}" if body else f"{self.conclusion} <-"


# ---------- Deduction ----------
@dataclass(frozen=True)
class Deduction:
    """(conclusion, rules used, assumptions used). Identity is the whole triple."""
    conclusion: Literal
    rules: FrozenSet[InferenceRule] = frozenset()
    assumptions: FrozenSet[Literal] = frozenset()

    def __str__(self) -> str:
        supp = ",".join(sorted(a.key for a in self.assumptions))
        return f"{{{supp}}} ⊢ {self.conclusion}"

    def pretty(self, indent: int = 0) -> str:
        pad = "  " * indent
        lines = [f"{pad}⊢ {self.conclusion}"]
        for r in sorted(self.rules, key=str):
            lines.append(f"{pad}  rule: {r}")
        for a in sorted(self.assumptions, key=lambda l: l.key):
            lines.append(f"{pad}  assumption: {a}")
        return "\n".join(lines)


# ---------- Theory ----------
@dataclass(frozen=True)
class AbaTheory:
    assumptions: FrozenSet[Literal]
    contrary: Dict[Literal, Literal]          # α -> ¯α
    rules: FrozenSet[InferenceRule] = frozenset()
    flat: bool = True                         # set False to allow assumptions as rule conclusions

    _by_premise: Dict[Literal, Set[InferenceRule]] = field(init=False, repr=False, compare=False)
    _inv_contrary: Dict[Literal, Set[Literal]] = field(init=False, repr=False, compare=False)
    _cache: Dict[Any, Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "assumptions", frozenset(self.assumptions))
        object.__setattr__(self, "rules", frozenset(self.rules))
        object.__setattr__(self, "contrary", dict(self.contrary))
        self._validate_core()
        self._index_rules()
        object.__setattr__(self, "_cache", {})

    def __hash__(self) -> int:
        return hash((self.assumptions, frozenset(self.contrary.items()), self.rules, self.flat))

    @classmethod
    def from_logic(cls, assumptions: Iterable[Literal], rules: Iterable[InferenceRule],
                   logic: ObjectLogic, flat: bool = True, max_premises: int = 2) -> "AbaTheory":
        """
        Contraries come from the object logic instead of an explicit map, and
        the logic's entailment over the theory's literals is compiled into
        extra rules (premise sets of up to `max_premises` literals). In a flat
        theory assumptions are never made rule conclusions.
        """
        assumptions = set(assumptions)
        rules = set(rules)
        contrary = build_contrary_map(assumptions, logic)
        vocabulary = assumptions | set(contrary.values())
        for r in rules:
            vocabulary |= {r.conclusion} | r.premises
        targets = vocabulary - assumptions if flat else vocabulary
        compiled = entailment_rules(vocabulary, logic, targets, max_premises)
        logger.debug("object logic contributed %d rules", len(compiled - rules))
        return cls(frozenset(assumptions), contrary, frozenset(rules | compiled), flat)

    # --- validation ---
    def _validate_core(self) -> None:
        if not all(isinstance(a, Literal) for a in self.assumptions):
            raise TypeError("assumptions must be a set[Literal]")
        # contrary total on A
        missing = self.assumptions - self.contrary.keys()
        if missing:
            raise MalformedFrameworkError(
                f"Contrary missing for assumptions: {{ {', '.join(sorted(m.key for m in missing))} }}")
        extra = self.contrary.keys() - self.assumptions
        if extra:
            raise MalformedFrameworkError(
                f"Contrary given for non-assumptions: {{ {', '.join(sorted(m.key for m in extra))} }}")
        overlap = self.assumptions & {r.conclusion for r in self.rules}
        if overlap and self.flat:
            raise MalformedFrameworkError(
                f"Assumptions {sorted(a.key for a in overlap)} are rule conclusions; "
                "pass flat=False to build a non-flat theory")

    # --- indexing ---
    def _index_rules(self) -> None:
        by_premise: Dict[Literal, Set[InferenceRule]] = defaultdict(set)
        for r in self.rules:
            for p in r.premises:
                by_premise[p].add(r)
        inv: Dict[Literal, Set[Literal]] = defaultdict(set)   # ¯β -> {β}
        for a, c in self.contrary.items():
            inv[c].add(a)
        object.__setattr__(self, "_by_premise", dict(by_premise))
        object.__setattr__(self, "_inv_contrary", dict(inv))

    def _check_assumptions(self, delta: Iterable[Literal], where: str) -> FrozenSet[Literal]:
        dset = frozenset(delta)
        bad = dset - self.assumptions
        if bad:
            raise ValueError(f"{where}() got non-assumptions: { {x.key for x in bad} }")
        return dset

    # --- structure ---
    def is_flat(self) -> bool:
        """No assumption is the conclusion of a rule."""
        return not any(r.conclusion in self.assumptions for r in self.rules)

    def contrary_of(self, a: Literal) -> Literal:
        return self.contrary[a]

    # --- derivations ---
    def derivable(self, premises: Iterable[Literal]) -> FrozenSet[Literal]:
        """Every literal derivable from `premises` by forward chaining (premises included)."""
        key = ("derivable", frozenset(premises))
        if key in self._cache:
            return self._cache[key]
        known: Set[Literal] = set(key[1])
        # premise-free rules fire unconditionally
        queue = [r for r in self.rules if not r.premises]
        queue += [r for p in known for r in self._by_premise.get(p, ())]
        while queue:
            r = queue.pop()
            if r.conclusion in known or not r.premises <= known:
                continue
            known.add(r.conclusion)
            queue.extend(self._by_premise.get(r.conclusion, ()))
        result = frozenset(known)
        self._cache[key] = result
        return result

    def derives(self, premises: Iterable[Literal], conclusion: Literal) -> bool:
        """premises ⊢ conclusion ?"""
        return conclusion in self.derivable(premises)

    def deductions(self) -> FrozenSet[Deduction]:
        """
        Forward chaining from the assumption leaves and the premise-free rules
        until no new (conclusion, rules, assumptions) triple appears. Finite
        because there are finitely many such triples.
        """
        if "deductions" in self._cache:
            return self._cache["deductions"]
        by_conclusion: Dict[Literal, Set[Deduction]] = defaultdict(set)
        for a in self.assumptions:
            by_conclusion[a].add(Deduction(a, frozenset(), frozenset({a})))

        ordered_rules = sorted(self.rules, key=str)
        rounds = 0
        changed = True
        while changed:
            changed = False
            rounds += 1
            for r in ordered_rules:
                pools = [list(by_conclusion.get(p, ())) for p in sorted(r.premises, key=lambda l: l.key)]
                if any(not pool for pool in pools):
                    continue
                for combo in product(*pools):
                    d = Deduction(
                        r.conclusion,
                        frozenset({r}).union(*(c.rules for c in combo)),
                        frozenset().union(*(c.assumptions for c in combo)),
                    )
                    if d not in by_conclusion[r.conclusion]:
                        by_conclusion[r.conclusion].add(d)
                        changed = True

        result = frozenset(d for ds in by_conclusion.values() for d in ds)
        logger.debug("forward chaining produced %d deductions in %d rounds", len(result), rounds)
        self._cache["deductions"] = result
        return result

    # --- assumption-set semantics ---
    def closure(self, delta: Iterable[Literal]) -> FrozenSet[Literal]:
        """Cl(Δ): the assumptions derivable from Δ."""
        dset = self._check_assumptions(delta, "closure")
        return self.derivable(dset) & self.assumptions

    def is_closed(self, delta: Iterable[Literal]) -> bool:
        dset = frozenset(delta)
        return dset == self.closure(dset)

    def attacks(self, delta: Iterable[Literal], beta: Literal) -> bool:
        """Δ attacks β  ⇔  Δ derives ¯β."""
        if beta not in self.assumptions:
            raise ValueError(f"attacks() expects an assumption, got {beta.key}")
        return self.contrary[beta] in self.derivable(delta)

    def attacks_set(self, delta: Iterable[Literal], Bs: Iterable[Literal]) -> bool:
        """Δ attacks B iff it attacks at least one β ∈ B."""
        derived = self.derivable(delta)
        return any(self.contrary[b] in derived for b in Bs)

    def is_conflict_free(self, delta: Iterable[Literal]) -> bool:
        dset = self._check_assumptions(delta, "is_conflict_free")
        return not self.attacks_set(dset, dset)

    def can_extend_conflict_free(self, current: FrozenSet[Literal], a: Literal) -> bool:
        return self.is_conflict_free(current | {a})

    def _closed_attackers_of(self, alpha: Literal) -> List[FrozenSet[Literal]]:
        """⊆-minimal closed assumption sets deriving ¯α."""
        key = ("attackers", alpha)
        if key in self._cache:
            return self._cache[key]
        target = self.contrary[alpha]
        closed = {self.closure(d.assumptions) for d in self.deductions() if d.conclusion == target}
        minimal = [B for B in closed if not any(C < B for C in closed)]
        self._cache[key] = minimal
        return minimal

    def defends(self, delta: Iterable[Literal], alpha: Literal) -> bool:
        """Δ defends α iff Δ attacks every closed attacker of α."""
        dset = self._check_assumptions(delta, "defends")
        if alpha not in self.assumptions:
            raise ValueError(f"defends() expects an assumption for alpha, got {alpha.key}")
        return all(self.attacks_set(dset, B) for B in self._closed_attackers_of(alpha))

    def defended_by(self, delta: Iterable[Literal]) -> FrozenSet[Literal]:
        """{ α ∈ A | Δ defends α }"""
        dset = frozenset(delta)
        return frozenset(a for a in self.assumptions if self.defends(dset, a))

    def is_admissible(self, delta: Iterable[Literal]) -> bool:
        dset = self._check_assumptions(delta, "is_admissible")
        return (self.is_closed(dset) and self.is_conflict_free(dset)
                and all(self.defends(dset, a) for a in dset))

    def is_complete(self, delta: Iterable[Literal]) -> bool:
        dset = frozenset(delta)
        return self.is_admissible(dset) and dset == self.closure(self.defended_by(dset))  # fix-point condition

    def is_set_stable(self, delta: Iterable[Literal]) -> bool:
        dset = self._check_assumptions(delta, "is_set_stable")
        if not (self.is_closed(dset) and self.is_conflict_free(dset)):
            return False
        for beta in self.assumptions - dset:
            if not self.attacks_set(dset, self.closure({beta})):
                return False
        return True

    # --- reduction ---
    def to_framework(self) -> Framework:
        """
        Dung framework whose arguments are the deductions of this theory and
        whose attacks are undercuts: d1 attacks d2 iff d1 concludes the
        contrary of an assumption d2 rests on.
        """
        if not self.is_flat():
            raise NonFlatTheoryError("Only flat ABA theories can be transformed into Dung frameworks.")
        ds = self.deductions()
        by_conclusion: Dict[Literal, List[Deduction]] = defaultdict(list)
        for d in ds:
            by_conclusion[d.conclusion].append(d)
        attacks = set()
        for atted in ds:
            for a in atted.assumptions:
                for atter in by_conclusion.get(self.contrary[a], ()):
                    attacks.add((atter, atted))
        logger.info("ABA reduction: %d deductions, %d undercuts", len(ds), len(attacks))
        return Framework(ds, attacks)

    def __str__(self) -> str:
        lines = [f"assumptions: {', '.join(sorted(a.key for a in self.assumptions))}"]
        lines += [f"contrary({a}) = {c}" for a, c in sorted(self.contrary.items(), key=lambda p: p[0].key)]
        lines += [str(r) for r in sorted(self.rules, key=str)]
        return "\n".join(lines)


def project_extension(ext: Iterable[Deduction]) -> Extension:
    """Assumptions used by a set of deductions."""
    out: Set[Literal] = set()
    for d in ext:
        out |= d.assumptions
    return Extension(out)
