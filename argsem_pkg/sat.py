from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Set
import logging
import threading
import time

from pysat.solvers import Solver
from tqdm import tqdm

from . import config
from .errors import OracleTimeoutError, UnsupportedSemanticsError
from .framework import Argument, Extension, Framework
from .search import CancelToken, filter_maximal
from .semantics import Semantics

logger = logging.getLogger(__name__)


@dataclass
class SatOracle:
    """
    SAT-backed enumeration for Dung frameworks (python-sat).

    Handed explicitly to the reasoner by the caller; nothing here is global.
    `timeout` bounds the whole enumeration for one call, in seconds.
    """
    solver_name: str = field(default_factory=lambda: config.SAT_SOLVER)
    timeout: float | None = field(default_factory=lambda: config.ORACLE_TIMEOUT)
    show_progress: bool = False

    SUPPORTED = (
        Semantics.CONFLICT_FREE,
        Semantics.ADMISSIBLE,
        Semantics.COMPLETE,
        Semantics.STABLE,
        Semantics.PREFERRED,
    )

    # --- encoding ---
    def _add_conflict_free(self, solver: Solver, F: Framework, var: Dict[Argument, int]) -> int:
        cnt = 0
        for s, t in tqdm(sorted(F.attacks, key=str), desc="  Encoding conflicts", unit="attack",
                         disable=not self.show_progress, leave=False):
            solver.add_clause([-var[s], -var[t]])
            cnt += 1
        return cnt

    def _add_admissibility(self, solver: Solver, F: Framework, var: Dict[Argument, int]) -> int:
        """Picking a forces, for each attacker b of a, at least one attacker of b."""
        cnt = 0
        for a in tqdm(F.order, desc="  Encoding defences", unit="argument",
                      disable=not self.show_progress, leave=False):
            for b in F.attackers(a):
                defenders = [var[c] for c in F.attackers(b)]
                # no defender at all means a can never be picked
                solver.add_clause([-var[a]] + defenders)
                cnt += 1
        return cnt

    def _add_completeness(self, solver: Solver, F: Framework, var: Dict[Argument, int]) -> int:
        """
        If every attacker of a is attacked by the set, a must be in.
        d_b is an auxiliary variable for "b is attacked by the set".
        """
        cnt = 0
        next_var = len(var) + 1
        attacked_aux: Dict[Argument, int] = {}
        for b in F.order:
            d_b = next_var
            next_var += 1
            attacked_aux[b] = d_b
            attackers = [var[c] for c in F.attackers(b)]
            solver.add_clause([-d_b] + attackers)
            for c in attackers:
                solver.add_clause([-c, d_b])
            cnt += 1 + len(attackers)
        for a in F.order:
            solver.add_clause([var[a]] + [-attacked_aux[b] for b in F.attackers(a)])
            cnt += 1
        return cnt

    def _add_stability(self, solver: Solver, F: Framework, var: Dict[Argument, int]) -> int:
        cnt = 0
        for a in F.order:
            solver.add_clause([var[a]] + [var[b] for b in F.attackers(a)])
            cnt += 1
        return cnt

    def _build(self, F: Framework, semantics: Semantics) -> tuple[Solver, Dict[int, Argument]]:
        var = {a: i + 1 for i, a in enumerate(F.order)}
        solver = Solver(name=self.solver_name)
        counts = {"conflict": self._add_conflict_free(solver, F, var)}
        if semantics in (Semantics.ADMISSIBLE, Semantics.PREFERRED, Semantics.COMPLETE):
            counts["defence"] = self._add_admissibility(solver, F, var)
        if semantics is Semantics.COMPLETE:
            counts["completeness"] = self._add_completeness(solver, F, var)
        if semantics is Semantics.STABLE:
            counts["stability"] = self._add_stability(solver, F, var)
        logger.debug("encoded %s over %d arguments: %s", semantics, len(var), counts)
        return solver, {v: a for a, v in var.items()}

    # --- enumeration ---
    def extensions(self, F: Framework, semantics: Semantics | str,
                   cancel: CancelToken | None = None) -> Set[Extension]:
        semantics = Semantics.parse(semantics)
        if semantics not in self.SUPPORTED:
            raise UnsupportedSemanticsError(f"SAT oracle does not encode {semantics}")

        started = time.monotonic()
        deadline = None if self.timeout is None else started + self.timeout
        if deadline is not None and time.monotonic() >= deadline:
            raise OracleTimeoutError(self.timeout, 0)
        if len(F) == 0:
            return {Extension()}

        target = Semantics.ADMISSIBLE if semantics is Semantics.PREFERRED else semantics
        solver, var_to_arg = self._build(F, target)
        arg_vars = sorted(var_to_arg)

        timer = None
        if deadline is not None:
            timer = threading.Timer(max(0.0, deadline - time.monotonic()), solver.interrupt)
            timer.daemon = True
            timer.start()

        results: List[Extension] = []
        calls = 0
        try:
            with tqdm(desc=f"  SAT models ({target})", unit="model", disable=not self.show_progress) as pbar:
                while True:
                    if cancel is not None:
                        cancel.raise_if_canceled(calls)
                    if deadline is not None:
                        # an interrupt that fired between calls is stale; the clock decides
                        solver.clear_interrupt()
                        if time.monotonic() >= deadline:
                            raise OracleTimeoutError(self.timeout, calls)
                    sat = solver.solve_limited(expect_interrupt=True)
                    calls += 1
                    if sat is None or (deadline is not None and time.monotonic() >= deadline):
                        raise OracleTimeoutError(self.timeout, calls)
                    if not sat:
                        break
                    model = set(l for l in solver.get_model() if l > 0)
                    results.append(Extension(var_to_arg[v] for v in arg_vars if v in model))
                    pbar.update(1)
                    # block this assignment of the argument variables
                    solver.add_clause([(-v if v in model else v) for v in arg_vars])
        finally:
            if timer is not None:
                timer.cancel()
            solver.delete()

        logger.info("SAT %s: %d models with %d solver calls in %.3fs",
                    target, len(results), calls, time.monotonic() - started)
        if semantics is Semantics.PREFERRED:
            return filter_maximal(results)
        return set(results)
