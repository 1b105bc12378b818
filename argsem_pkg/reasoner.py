"""
Entry points: compute or verify extensions of a Dung framework, a flat or
non-flat ABA theory, or an evidential framework under any `Semantics`.

Each kind of target has one dispatch table from `Semantics` to a reasoner
function; the tables are checked against the enum at import time so a new
semantics cannot be added without deciding what it means everywhere.

ABA policy: flat theories go through the Dung reduction and the resulting
extensions are projected back onto assumptions; non-flat theories (where the
reduction is unsound) are handled by the direct search over assumption sets.
Conflict-freeness is always computed directly, since a conflict-free set of
deductions can still combine into an assumption set that attacks itself.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Iterable, Set, Union
import logging

from . import config
from .aba import AbaTheory, project_extension
from .errors import UnsupportedSemanticsError
from .evidential import EvidentialFramework
from .framework import Extension, Framework
from .sat import SatOracle
from .search import CancelToken, always, enumerate_sets, filter_maximal, intersection
from .semantics import Semantics

logger = logging.getLogger(__name__)

Target = Union[Framework, AbaTheory, EvidentialFramework]


@dataclass
class SearchOptions:
    strategy: str = config.STRATEGY
    workers: int = config.WORKERS
    cancel: CancelToken | None = None
    oracle: SatOracle | None = None
    show_progress: bool = config.SHOW_PROGRESS

    def search(self, universe, keep, can_add=always, desc="Searching") -> Set[Extension]:
        if self.strategy == "powerset":
            can_add = always
        return enumerate_sets(
            universe, keep,
            can_add=can_add,
            strategy=self.strategy,
            workers=self.workers,
            cancel=self.cancel,
            show_progress=self.show_progress,
            desc=desc,
        )


def _options(strategy=None, workers=None, cancel=None, oracle=None, show_progress=None) -> SearchOptions:
    opts = SearchOptions(cancel=cancel, oracle=oracle)
    if strategy is not None:
        opts.strategy = strategy
    if workers is not None:
        opts.workers = workers
    if show_progress is not None:
        opts.show_progress = show_progress
    return opts


# ---------- Dung ----------
def _dung_universe(F: Framework, opts: SearchOptions, for_admissible: bool = True):
    return F.order if opts.strategy == "powerset" else F.candidates(for_admissible)


def _dung_conflict_free(F: Framework, opts: SearchOptions) -> Set[Extension]:
    if opts.oracle is not None:
        return opts.oracle.extensions(F, Semantics.CONFLICT_FREE, opts.cancel)
    return opts.search(_dung_universe(F, opts, False), F.is_conflict_free, F.can_extend_conflict_free,
                       desc="Conflict-free sets")


def _dung_admissible(F: Framework, opts: SearchOptions) -> Set[Extension]:
    if opts.oracle is not None:
        return opts.oracle.extensions(F, Semantics.ADMISSIBLE, opts.cancel)
    return opts.search(_dung_universe(F, opts), F.is_admissible, F.can_extend_conflict_free,
                       desc="Admissible sets")


def _dung_complete(F: Framework, opts: SearchOptions) -> Set[Extension]:
    if opts.oracle is not None:
        return opts.oracle.extensions(F, Semantics.COMPLETE, opts.cancel)
    return opts.search(_dung_universe(F, opts), F.is_complete, F.can_extend_conflict_free,
                       desc="Complete extensions")


def _dung_preferred(F: Framework, opts: SearchOptions) -> Set[Extension]:
    if opts.oracle is not None:
        return opts.oracle.extensions(F, Semantics.PREFERRED, opts.cancel)
    return filter_maximal(_dung_admissible(F, opts))


def _dung_stable(F: Framework, opts: SearchOptions) -> Set[Extension]:
    if opts.oracle is not None:
        return opts.oracle.extensions(F, Semantics.STABLE, opts.cancel)
    # a stable extension attacks every outsider, so it is admissible too
    return opts.search(_dung_universe(F, opts), F.is_stable, F.can_extend_conflict_free,
                       desc="Stable extensions")


def _dung_grounded(F: Framework, opts: SearchOptions) -> Set[Extension]:
    return {F.grounded_extension()}


def _dung_ideal(F: Framework, opts: SearchOptions) -> Set[Extension]:
    inter = intersection(_dung_preferred(F, opts))
    return {F.maximal_admissible_subset(inter if inter is not None else ())}


def _dung_well_founded(F: Framework, opts: SearchOptions) -> Set[Extension]:
    inter = intersection(_dung_complete(F, opts))
    return {inter if inter is not None else Extension()}


def _unsupported(target, opts: SearchOptions) -> Set[Extension]:
    raise UnsupportedSemanticsError(
        f"{Semantics.SELF_SUPPORTING} is only defined for evidential frameworks, "
        f"not {type(target).__name__}")


_DUNG: Dict[Semantics, Callable[[Framework, SearchOptions], Set[Extension]]] = {
    Semantics.CONFLICT_FREE: _dung_conflict_free,
    Semantics.ADMISSIBLE: _dung_admissible,
    Semantics.COMPLETE: _dung_complete,
    Semantics.GROUNDED: _dung_grounded,
    Semantics.PREFERRED: _dung_preferred,
    Semantics.STABLE: _dung_stable,
    Semantics.IDEAL: _dung_ideal,
    Semantics.WELL_FOUNDED: _dung_well_founded,
    Semantics.SELF_SUPPORTING: _unsupported,
}


# ---------- ABA ----------
def _aba_universe(T: AbaTheory):
    return tuple(sorted(T.assumptions, key=lambda l: l.key))


def _aba_direct_conflict_free(T: AbaTheory, opts: SearchOptions) -> Set[Extension]:
    return opts.search(_aba_universe(T), T.is_conflict_free, T.can_extend_conflict_free,
                       desc="Conflict-free assumption sets")


def _aba_direct_admissible(T: AbaTheory, opts: SearchOptions) -> Set[Extension]:
    return opts.search(_aba_universe(T), T.is_admissible, T.can_extend_conflict_free,
                       desc="Admissible assumption sets")


def _aba_direct_complete(T: AbaTheory, opts: SearchOptions) -> Set[Extension]:
    return opts.search(_aba_universe(T), T.is_complete, T.can_extend_conflict_free,
                       desc="Complete assumption sets")


def _aba_direct_preferred(T: AbaTheory, opts: SearchOptions) -> Set[Extension]:
    return filter_maximal(_aba_direct_admissible(T, opts))


def _aba_direct_stable(T: AbaTheory, opts: SearchOptions) -> Set[Extension]:
    return opts.search(_aba_universe(T), T.is_set_stable, T.can_extend_conflict_free,
                       desc="Set-stable assumption sets")


def _aba_direct_well_founded(T: AbaTheory, opts: SearchOptions) -> Set[Extension]:
    comps = _aba_direct_complete(T, opts)
    inter = intersection(comps)
    return set() if inter is None else {inter}


def _aba_direct_ideal(T: AbaTheory, opts: SearchOptions) -> Set[Extension]:
    # need ⊆-max admissible sets that are subset of every preferred
    prefs = _aba_direct_preferred(T, opts)
    if not prefs:
        return set()
    inter = intersection(prefs)
    inside = {A for A in _aba_direct_admissible(T, opts) if A <= inter}
    return filter_maximal(inside)


_ABA_DIRECT: Dict[Semantics, Callable[[AbaTheory, SearchOptions], Set[Extension]]] = {
    Semantics.CONFLICT_FREE: _aba_direct_conflict_free,
    Semantics.ADMISSIBLE: _aba_direct_admissible,
    Semantics.COMPLETE: _aba_direct_complete,
    # without flatness there is no unique least complete set to speak of
    Semantics.GROUNDED: _aba_direct_well_founded,
    Semantics.PREFERRED: _aba_direct_preferred,
    Semantics.STABLE: _aba_direct_stable,
    Semantics.IDEAL: _aba_direct_ideal,
    Semantics.WELL_FOUNDED: _aba_direct_well_founded,
    Semantics.SELF_SUPPORTING: _unsupported,
}


def _aba_via_reduction(semantics: Semantics) -> Callable[[AbaTheory, SearchOptions], Set[Extension]]:
    def reason(T: AbaTheory, opts: SearchOptions) -> Set[Extension]:
        if not T.is_flat():
            return _ABA_DIRECT[semantics](T, opts)
        F = reduce_aba_to_framework(T)
        return {project_extension(ext) for ext in _DUNG[semantics](F, opts)}
    reason.__name__ = f"_aba_{semantics.name.lower()}"
    return reason


_ABA: Dict[Semantics, Callable[[AbaTheory, SearchOptions], Set[Extension]]] = {
    Semantics.CONFLICT_FREE: _aba_direct_conflict_free,
    Semantics.ADMISSIBLE: _aba_via_reduction(Semantics.ADMISSIBLE),
    Semantics.COMPLETE: _aba_via_reduction(Semantics.COMPLETE),
    Semantics.GROUNDED: _aba_via_reduction(Semantics.GROUNDED),
    Semantics.PREFERRED: _aba_via_reduction(Semantics.PREFERRED),
    Semantics.STABLE: _aba_via_reduction(Semantics.STABLE),
    Semantics.IDEAL: _aba_via_reduction(Semantics.IDEAL),
    Semantics.WELL_FOUNDED: _aba_via_reduction(Semantics.WELL_FOUNDED),
    Semantics.SELF_SUPPORTING: _unsupported,
}


# ---------- Evidential ----------
def _eaf_universe(E: EvidentialFramework, opts: SearchOptions):
    return tuple(sorted(E.arguments, key=str)) if opts.strategy == "powerset" else E.candidates()


def _eaf_conflict_free(E: EvidentialFramework, opts: SearchOptions) -> Set[Extension]:
    universe = tuple(sorted(E.arguments, key=str))
    return opts.search(universe, E.is_conflict_free, E.can_extend_conflict_free,
                       desc="E-conflict-free sets")


def _eaf_admissible(E: EvidentialFramework, opts: SearchOptions) -> Set[Extension]:
    return opts.search(_eaf_universe(E, opts), E.is_admissible, E.can_extend_conflict_free,
                       desc="E-admissible sets")


def _eaf_complete(E: EvidentialFramework, opts: SearchOptions) -> Set[Extension]:
    return opts.search(_eaf_universe(E, opts), E.is_complete, E.can_extend_conflict_free,
                       desc="E-complete extensions")


def _eaf_preferred(E: EvidentialFramework, opts: SearchOptions) -> Set[Extension]:
    return filter_maximal(_eaf_admissible(E, opts))


def _eaf_stable(E: EvidentialFramework, opts: SearchOptions) -> Set[Extension]:
    return opts.search(_eaf_universe(E, opts), E.is_stable, E.can_extend_conflict_free,
                       desc="E-stable extensions")


def _eaf_grounded(E: EvidentialFramework, opts: SearchOptions) -> Set[Extension]:
    return {E.grounded_extension()}


def _eaf_ideal(E: EvidentialFramework, opts: SearchOptions) -> Set[Extension]:
    inter = intersection(_eaf_preferred(E, opts))
    return {E.maximal_admissible_subset(inter if inter is not None else ())}


def _eaf_well_founded(E: EvidentialFramework, opts: SearchOptions) -> Set[Extension]:
    inter = intersection(_eaf_complete(E, opts))
    return set() if inter is None else {inter}


def _eaf_self_supporting(E: EvidentialFramework, opts: SearchOptions) -> Set[Extension]:
    # not hereditary, so no pruning beyond dropping unsupported arguments
    return enumerate_sets(
        _eaf_universe(E, opts), E.is_self_supporting,
        strategy=opts.strategy, workers=opts.workers, cancel=opts.cancel,
        show_progress=opts.show_progress, desc="Self-supporting sets",
    )


_EAF: Dict[Semantics, Callable[[EvidentialFramework, SearchOptions], Set[Extension]]] = {
    Semantics.CONFLICT_FREE: _eaf_conflict_free,
    Semantics.ADMISSIBLE: _eaf_admissible,
    Semantics.COMPLETE: _eaf_complete,
    Semantics.GROUNDED: _eaf_grounded,
    Semantics.PREFERRED: _eaf_preferred,
    Semantics.STABLE: _eaf_stable,
    Semantics.IDEAL: _eaf_ideal,
    Semantics.WELL_FOUNDED: _eaf_well_founded,
    Semantics.SELF_SUPPORTING: _eaf_self_supporting,
}

for _name, _table in (("Dung", _DUNG), ("ABA", _ABA), ("ABA (direct)", _ABA_DIRECT), ("EAF", _EAF)):
    _missing = set(Semantics) - set(_table)
    if _missing:
        raise RuntimeError(f"{_name} dispatch table misses {sorted(map(str, _missing))}")


def _table_for(target: Target):
    if isinstance(target, Framework):
        return _DUNG
    if isinstance(target, AbaTheory):
        return _ABA
    if isinstance(target, EvidentialFramework):
        return _EAF
    raise TypeError(f"expected Framework, AbaTheory or EvidentialFramework, got {type(target).__name__}")


# ---------- public API ----------
def reduce_aba_to_framework(theory: AbaTheory) -> Framework:
    """Dung framework of a flat ABA theory; raises NonFlatTheoryError otherwise."""
    return theory.to_framework()


def compute_extensions(
    target: Target,
    semantics: Semantics | str,
    *,
    strategy: str | None = None,
    workers: int | None = None,
    cancel: CancelToken | None = None,
    oracle: SatOracle | None = None,
    show_progress: bool | None = None,
) -> Set[Extension]:
    """
    All extensions of `target` under `semantics`.

    For an AbaTheory the extensions are assumption sets. `oracle` is only
    consulted for Dung frameworks (including the reduced framework of a flat
    ABA theory); `cancel` is checked between candidate evaluations.
    """
    semantics = Semantics.parse(semantics)
    table = _table_for(target)
    opts = _options(strategy, workers, cancel, oracle, show_progress)
    result = table[semantics](target, opts)
    logger.debug("%s on %s: %d extensions", semantics, type(target).__name__, len(result))
    return result


def direct_aba_extensions(theory: AbaTheory, semantics: Semantics | str, **options) -> Set[Extension]:
    """Assumption-set semantics without going through the Dung reduction."""
    semantics = Semantics.parse(semantics)
    return _ABA_DIRECT[semantics](theory, _options(**options))


def is_in_semantics(target: Target, extension: Iterable[Hashable], semantics: Semantics | str,
                    **options) -> bool:
    """Does `extension` belong to the extensions of `target` under `semantics`?"""
    semantics = Semantics.parse(semantics)
    ext = Extension(extension)
    _table_for(target)

    if isinstance(target, Framework):
        checks = {
            Semantics.CONFLICT_FREE: target.is_conflict_free,
            Semantics.ADMISSIBLE: target.is_admissible,
            Semantics.COMPLETE: target.is_complete,
            Semantics.STABLE: target.is_stable,
        }
    elif isinstance(target, AbaTheory):
        checks = {
            Semantics.CONFLICT_FREE: target.is_conflict_free,
            Semantics.ADMISSIBLE: target.is_admissible,
            Semantics.COMPLETE: target.is_complete,
            Semantics.STABLE: target.is_set_stable,
        }
    else:
        checks = {
            Semantics.CONFLICT_FREE: target.is_conflict_free,
            Semantics.ADMISSIBLE: target.is_admissible,
            Semantics.COMPLETE: target.is_complete,
            Semantics.STABLE: target.is_stable,
            Semantics.SELF_SUPPORTING: target.is_self_supporting,
        }
    if semantics in checks:
        return checks[semantics](ext)
    return ext in compute_extensions(target, semantics, **options)


def is_skeptically_accepted(target: Target, argument: Hashable, semantics: Semantics | str,
                            **options) -> bool:
    """In every extension (vacuously true when there are none)."""
    return all(argument in ext for ext in compute_extensions(target, semantics, **options))


def is_credulously_accepted(target: Target, argument: Hashable, semantics: Semantics | str,
                            **options) -> bool:
    """In at least one extension."""
    return any(argument in ext for ext in compute_extensions(target, semantics, **options))


def is_coherent(framework: Framework, **options) -> bool:
    """Preferred and stable extensions coincide."""
    return (compute_extensions(framework, Semantics.PREFERRED, **options)
            == compute_extensions(framework, Semantics.STABLE, **options))


def is_relatively_coherent(framework: Framework, **options) -> bool:
    """The grounded extension equals the intersection of the preferred ones."""
    grounded = framework.grounded_extension()
    return grounded == intersection(compute_extensions(framework, Semantics.PREFERRED, **options))
