from __future__ import annotations
from dataclasses import dataclass, field
from itertools import combinations
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Protocol, Set

if TYPE_CHECKING:
    from .aba import InferenceRule, Literal


# ---------- 1. What the ABA core needs from an object logic ----------
class ObjectLogic(Protocol):
    def contrary(self, literal: "Literal") -> "Literal": ...

    def derives(self, premises: Iterable["Literal"], conclusion: "Literal") -> bool: ...


# ---------- 2. Formula ----------
@dataclass(frozen=True)
class Formula:
    atom: str               # base proposition identifier
    neg: bool = False       # syntactic negation flag
    meta: Any = field(default=None, compare=False)  # optional payload, e.g. source text

    def key(self) -> str:
        """Canonical engine key."""
        return f"{'¬' if self.neg else ''}{self.atom}"


# ---------- 3. Default contrary ----------
def flip_neg(f: Formula) -> Formula:
    return Formula(f.atom, not f.neg, f.meta)


# ---------- 4. Negation logic over canonical keys ----------
@dataclass
class NegationLogic:
    """
    Minimal object logic: the contrary of a literal is its syntactic
    negation, and a premise set only derives what it contains. Everything
    else comes from the rules of the ABA theory.
    """
    contrary_fn: Callable[[Formula], Formula] = flip_neg

    def to_literal(self, f: Formula) -> "Literal":
        from .aba import Literal
        return Literal(f.key(), payload=f)

    def contrary(self, lit: "Literal") -> "Literal":
        from .aba import Literal
        f = lit.payload if isinstance(lit.payload, Formula) else self.parse(lit.key)
        cf = self.contrary_fn(f)
        return Literal(cf.key(), payload=cf)

    def derives(self, premises: Iterable["Literal"], conclusion: "Literal") -> bool:
        return conclusion in set(premises)

    def parse(self, key: str) -> Formula:
        neg = key.startswith('¬')
        return Formula(key[1:] if neg else key, neg)


# ---------- 5. Helpers to build a theory from a logic ----------
def build_contrary_map(assumptions: Set["Literal"], logic: ObjectLogic) -> Dict["Literal", "Literal"]:
    out: Dict["Literal", "Literal"] = {}
    for lit in assumptions:
        out[lit] = logic.contrary(lit)
    return out


def entailment_rules(
    vocabulary: Iterable["Literal"],
    logic: ObjectLogic,
    targets: Iterable["Literal"],
    max_premises: int = 2,
) -> Set["InferenceRule"]:
    """
    Rules `t <- P` for every target t and every ⊆-minimal P ⊆ vocabulary \\ {t}
    with at most `max_premises` members such that the logic derives t from P.
    """
    from .aba import InferenceRule
    pool = sorted(set(vocabulary), key=lambda l: l.key)
    out: Set[InferenceRule] = set()
    for t in sorted(set(targets), key=lambda l: l.key):
        others = [l for l in pool if l != t]
        found: List[frozenset] = []
        for size in range(max_premises + 1):
            for combo in combinations(others, size):
                premises = frozenset(combo)
                if any(f <= premises for f in found):
                    continue
                if logic.derives(premises, t):
                    found.append(premises)
                    out.add(InferenceRule(t, premises))
    return out
