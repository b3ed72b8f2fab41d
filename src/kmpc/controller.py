"""
Per-cycle MPC solve: build the NLP, run the solver, interpret the result.

A solve either yields a ``Converged`` plan or a ``Failed`` outcome naming
what went wrong.  Unconverged solver output is never returned as a command;
choosing a fallback (hold the last command, brake, ...) is up to the caller.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from .config import MPCConfig
from .ipopt_solver import IpoptSolver, SolverOutput
from .layout import DecisionLayout
from .problem_builder import build_problem
from .vehicle import ActuatorCommand, ReferencePolynomial, VehicleState

logger = logging.getLogger(__name__)


class FailureKind(enum.Enum):
    INFEASIBLE = "infeasible"
    TIME_LIMIT = "time_limit"
    ITERATION_LIMIT = "iteration_limit"
    NUMERICAL = "numerical"
    INVALID_PROBLEM = "invalid_problem"
    SOLVER_ERROR = "solver_error"
    # Stopped at IPOPT's looser acceptable tolerances; constraints may be off
    # by up to acceptable_constr_viol_tol.
    ACCEPTABLE = "acceptable"
    UNKNOWN = "unknown"


_STATUS_KINDS = {
    "Solved_To_Acceptable_Level": FailureKind.ACCEPTABLE,
    "Infeasible_Problem_Detected": FailureKind.INFEASIBLE,
    "Not_Enough_Degrees_Of_Freedom": FailureKind.INFEASIBLE,
    "Maximum_CpuTime_Exceeded": FailureKind.TIME_LIMIT,
    "Maximum_WallTime_Exceeded": FailureKind.TIME_LIMIT,
    "Maximum_Iterations_Exceeded": FailureKind.ITERATION_LIMIT,
    "Restoration_Failed": FailureKind.NUMERICAL,
    "Error_In_Step_Computation": FailureKind.NUMERICAL,
    "Invalid_Number_Detected": FailureKind.NUMERICAL,
    "Search_Direction_Becomes_Too_Small": FailureKind.NUMERICAL,
    "Diverging_Iterates": FailureKind.NUMERICAL,
    "Feasible_Point_Found": FailureKind.NUMERICAL,
    "Invalid_Problem_Definition": FailureKind.INVALID_PROBLEM,
    "Invalid_Option": FailureKind.INVALID_PROBLEM,
    "User_Requested_Stop": FailureKind.SOLVER_ERROR,
    "Insufficient_Memory": FailureKind.SOLVER_ERROR,
    "Internal_Error": FailureKind.SOLVER_ERROR,
    "Unrecoverable_Exception": FailureKind.SOLVER_ERROR,
    "NonIpopt_Exception_Thrown": FailureKind.SOLVER_ERROR,
}


def failure_kind(status: str) -> FailureKind:
    return _STATUS_KINDS.get(status, FailureKind.UNKNOWN)


@dataclass(frozen=True)
class Converged:
    command: ActuatorCommand
    # Predicted (x, y) for steps 1..N-1.
    trajectory: np.ndarray
    cost: float
    states: np.ndarray
    actuators: np.ndarray
    status: str
    iterations: int
    solve_time_sec: float

    @property
    def ok(self) -> bool:
        return True

    def to_sequence(self) -> List[float]:
        """
        Flat output ``[delta, a, x1, y1, ..., x_{N-1}, y_{N-1}]``.
        """
        values = [self.command.delta, self.command.a]
        values.extend(float(v) for v in self.trajectory.ravel())
        return values


@dataclass(frozen=True)
class Failed:
    kind: FailureKind
    status: str
    message: str

    @property
    def ok(self) -> bool:
        return False


MPCResult = Union[Converged, Failed]


class MPCController:
    """
    Model predictive path tracker on a kinematic bicycle model.

    Parameters
    ----------
    config : MPCConfig
        Horizon, model constants, bounds, weights and IPOPT options.
    solver : object, optional
        Anything with ``solve(problem, reference) -> SolverOutput``.  Defaults
        to an ``IpoptSolver`` for ``config``.
    """

    def __init__(self, config: Optional[MPCConfig] = None, solver=None):
        self.config = config if config is not None else MPCConfig()
        self.layout = DecisionLayout(self.config.horizon)
        self.solver = solver if solver is not None else IpoptSolver(self.layout, self.config)

    def solve(
        self, state: Sequence[float], coefficients: Sequence[float]
    ) -> MPCResult:
        """
        Computes this cycle's command for ``state`` tracking ``coefficients``.

        Raises ``ValueError`` unless the state has 6 entries and the
        coefficients exactly 4.
        """
        vehicle_state = (
            state if isinstance(state, VehicleState) else VehicleState.from_sequence(state)
        )
        reference = (
            coefficients
            if isinstance(coefficients, ReferencePolynomial)
            else ReferencePolynomial.from_sequence(coefficients)
        )

        problem = build_problem(vehicle_state, self.layout, self.config)
        try:
            output = self.solver.solve(problem, reference)
        except RuntimeError as e:
            logger.warning("MPC solve failed: solver raised: %s", e)
            return Failed(kind=FailureKind.SOLVER_ERROR, status="Exception", message=str(e))

        if not output.success:
            kind = failure_kind(output.status)
            logger.warning(
                "MPC solve failed: %s (%s) after %d iterations",
                output.status,
                kind.value,
                output.iterations,
            )
            return Failed(
                kind=kind,
                status=output.status,
                message=f"IPOPT returned {output.status}",
            )

        logger.debug(
            "MPC solve %s: cost %.4f, %d iterations, %.1f ms",
            output.status,
            output.cost,
            output.iterations,
            1e3 * output.solve_time_sec,
        )
        return self._converged(output)

    def _converged(self, output: SolverOutput) -> Converged:
        decision = output.decision
        layout = self.layout
        states = layout.states(decision)
        actuators = layout.actuators(decision)
        trajectory = states[1:, :2].copy()
        return Converged(
            command=ActuatorCommand(
                delta=float(decision[layout.delta_start]),
                a=float(decision[layout.a_start]),
            ),
            trajectory=trajectory,
            cost=output.cost,
            states=states.copy(),
            actuators=actuators.copy(),
            status=output.status,
            iterations=output.iterations,
            solve_time_sec=output.solve_time_sec,
        )
