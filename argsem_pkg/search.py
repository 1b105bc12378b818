"""
Subset search over candidate extensions.

Every semantics without a closed form ends up here: walk candidate sets,
keep the ones a predicate accepts. The walk is exponential in the number of
arguments (2^n candidates in the worst case), so two strategies are offered:

* ``pruned``   depth-first growth over a fixed argument order, only ever
               extending a set while ``can_add`` allows it. ``can_add`` must
               encode a hereditary property (conflict-freeness), otherwise
               sets are silently lost.
* ``powerset`` every subset, no pruning. Slow on purpose: it is the baseline
               the pruned walk is tested against.

With ``workers > 1`` the pruned walk is split on the first chosen argument and
the branches run in a process pool. ``keep`` and ``can_add`` must then be
picklable (module-level functions or bound methods, not lambdas). A cancel
request is forwarded to the workers through a multiprocessing Event, which
each branch polls between candidates like the sequential walk does.
"""
from __future__ import annotations
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait
from itertools import combinations
from typing import Callable, FrozenSet, Hashable, Iterable, List, Sequence, Set, Tuple
import logging
import multiprocessing
import threading

from tqdm import tqdm

from .errors import CanceledError
from .framework import Extension

logger = logging.getLogger(__name__)

KeepFn = Callable[[FrozenSet[Hashable]], bool]
CanAddFn = Callable[[FrozenSet[Hashable], Hashable], bool]

STRATEGIES = ("pruned", "powerset")


class CancelToken:
    """
    Cooperative cancellation flag shared between a caller and a running search.
    `event` may be a multiprocessing Event so worker processes see the flag.
    """

    def __init__(self, event=None):
        self._event = event if event is not None else threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def canceled(self) -> bool:
        return self._event.is_set()

    def raise_if_canceled(self, visited: int = 0) -> None:
        if self._event.is_set():
            raise CanceledError(visited)


def always(current: FrozenSet[Hashable], a: Hashable) -> bool:
    return True


def _search_branch(
    universe: Sequence[Hashable],
    first: int | None,
    can_add: CanAddFn,
    keep: KeepFn,
    cancel: CancelToken | None = None,
    on_visit: Callable[[], None] | None = None,
) -> Tuple[List[Extension], int]:
    """
    DFS below one starting point. `first=None` walks the whole tree from ∅,
    otherwise only the sets whose lowest-ordered member is universe[first]
    (the empty set is not part of any branch).
    """
    found: List[Extension] = []
    visited = 0

    def dfs(current: FrozenSet[Hashable], start: int) -> None:
        nonlocal visited
        if cancel is not None:
            cancel.raise_if_canceled(visited)
        visited += 1
        if on_visit is not None:
            on_visit()
        if keep(current):
            found.append(Extension(current))
        for i in range(start, len(universe)):
            a = universe[i]
            if can_add(current, a):
                dfs(current | {a}, i + 1)

    if first is None:
        dfs(frozenset(), 0)
    elif can_add(frozenset(), universe[first]):
        dfs(frozenset({universe[first]}), first + 1)
    return found, visited


def _powerset(
    universe: Sequence[Hashable],
    keep: KeepFn,
    cancel: CancelToken | None,
    pbar: tqdm,
) -> Tuple[List[Extension], int]:
    found: List[Extension] = []
    visited = 0
    for size in range(len(universe) + 1):
        for combo in combinations(universe, size):
            if cancel is not None:
                cancel.raise_if_canceled(visited)
            visited += 1
            pbar.update(1)
            candidate = frozenset(combo)
            if keep(candidate):
                found.append(Extension(candidate))
    return found, visited


# set in each worker process by _init_worker
_worker_cancel: CancelToken | None = None


def _init_worker(event) -> None:
    global _worker_cancel
    _worker_cancel = CancelToken(event)


def _worker_branch(
    universe: Sequence[Hashable],
    first: int,
    can_add: CanAddFn,
    keep: KeepFn,
) -> Tuple[List[Extension], int]:
    return _search_branch(universe, first, can_add, keep, _worker_cancel)


def _parallel(
    universe: Sequence[Hashable],
    can_add: CanAddFn,
    keep: KeepFn,
    workers: int,
    cancel: CancelToken | None,
    pbar: tqdm,
) -> Tuple[List[Extension], int]:
    found: List[Extension] = []
    visited = 0
    if cancel is not None:
        cancel.raise_if_canceled(visited)
    visited += 1
    if keep(frozenset()):
        found.append(Extension())

    ctx = multiprocessing.get_context()
    stop = ctx.Event()
    executor = ProcessPoolExecutor(max_workers=workers, mp_context=ctx,
                                   initializer=_init_worker, initargs=(stop,))
    canceled = False
    try:
        pending = {
            executor.submit(_worker_branch, universe, i, can_add, keep)
            for i in range(len(universe))
        }
        while pending:
            if cancel is not None and cancel.canceled:
                # running branches poll `stop` between candidates
                canceled = True
                stop.set()
                for fut in pending:
                    fut.cancel()
                raise CanceledError(visited)
            done, pending = wait(pending, timeout=0.05, return_when=FIRST_COMPLETED)
            for fut in done:
                branch_found, branch_visited = fut.result()
                found.extend(branch_found)
                visited += branch_visited
                pbar.update(1)
    finally:
        executor.shutdown(wait=not canceled, cancel_futures=True)
    return found, visited


def enumerate_sets(
    universe: Iterable[Hashable],
    keep: KeepFn,
    *,
    can_add: CanAddFn = always,
    strategy: str = "pruned",
    workers: int = 1,
    cancel: CancelToken | None = None,
    show_progress: bool = False,
    desc: str = "Searching",
) -> Set[Extension]:
    """Return every candidate set accepted by `keep`, as a set of Extensions."""
    if strategy not in STRATEGIES:
        raise ValueError(f"strategy must be one of {STRATEGIES}, got {strategy!r}")
    ordered = tuple(universe)
    n = len(ordered)

    if strategy == "powerset":
        with tqdm(total=2 ** n, desc=desc, unit="set", disable=not show_progress) as pbar:
            found, visited = _powerset(ordered, keep, cancel, pbar)
    elif workers > 1 and n > 1:
        logger.debug("splitting %d branches over %d workers", n, workers)
        with tqdm(total=n, desc=desc, unit="branch", disable=not show_progress) as pbar:
            found, visited = _parallel(ordered, can_add, keep, workers, cancel, pbar)
    else:
        with tqdm(desc=desc, unit="set", disable=not show_progress) as pbar:
            found, visited = _search_branch(ordered, None, can_add, keep, cancel, lambda: pbar.update(1))

    results = set(found)
    logger.info("%s: %d candidates visited, %d accepted (%s, n=%d)", desc, visited, len(results), strategy, n)
    return results


def filter_maximal(sets: Iterable[FrozenSet[Hashable]]) -> Set[Extension]:
    """⊆-maximal members. Sorting by size means only larger sets need checking."""
    ordered = sorted({Extension(s) for s in sets}, key=len, reverse=True)
    maximal: List[Extension] = []
    for ext in ordered:
        if not any(ext < other for other in maximal):
            maximal.append(ext)
    return set(maximal)


def intersection(sets: Iterable[FrozenSet[Hashable]]) -> Extension | None:
    """Intersection of all sets, folded one at a time; None for no sets."""
    it = iter(sets)
    try:
        inter = set(next(it))
    except StopIteration:
        return None
    for s in it:
        inter &= s
    return Extension(inter)
