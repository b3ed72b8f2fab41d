"""
Wrapper around the CasADi IPOPT interface.

The NLP graph only depends on the horizon and the tunables, so it is compiled
once and reused; each cycle passes its own guess, bounds and polynomial
coefficients as solver inputs.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import casadi as ca
import numpy as np

from .bicycle_model import symbolic_problem
from .config import MPCConfig
from .layout import DecisionLayout
from .problem_builder import ProblemData
from .vehicle import ReferencePolynomial

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = ("Solve_Succeeded",)


@dataclass(frozen=True)
class SolverOutput:
    status: str
    success: bool
    decision: np.ndarray
    cost: float
    iterations: int
    solve_time_sec: float


class IpoptSolver:
    def __init__(self, layout: DecisionLayout, config: MPCConfig):
        self.layout = layout
        self.config = config
        self._solver: Optional[ca.Function] = None

    @property
    def solver(self) -> ca.Function:
        if self._solver is None:
            nlp = symbolic_problem(self.layout, self.config)
            logger.debug(
                "Compiling NLP: %d variables, %d constraints",
                self.layout.n_vars,
                self.layout.n_constraints,
            )
            self._solver = ca.nlpsol(
                "kmpc_solver", "ipopt", nlp, self.config.ipopt.to_casadi()
            )
        return self._solver

    def solve(self, problem: ProblemData, reference: ReferencePolynomial) -> SolverOutput:
        """
        Runs IPOPT once.

        Non-convergence is reported through ``status`` and ``success``.
        Errors raised by CasADi itself (e.g. ill-posed bounds) propagate as
        ``RuntimeError``.
        """
        solver = self.solver
        started = time.perf_counter()
        try:
            sol = solver(
                x0=problem.initial_guess,
                p=reference.as_array(),
                lbx=problem.lbx,
                ubx=problem.ubx,
                lbg=problem.lbg,
                ubg=problem.ubg,
            )
        except RuntimeError:
            logger.debug("IPOPT call raised", exc_info=True)
            raise
        elapsed = time.perf_counter() - started

        stats = solver.stats()
        status = str(stats.get("return_status", "Unknown"))
        return SolverOutput(
            status=status,
            success=status in SUCCESS_STATUSES,
            decision=np.asarray(sol["x"].full(), dtype=float).ravel(),
            cost=float(sol["f"]),
            iterations=int(stats.get("iter_count", 0)),
            solve_time_sec=elapsed,
        )
