"""
Model predictive path tracking on a kinematic bicycle model.

Each control cycle the controller transcribes the tracking problem over a
short horizon into a nonlinear program (states and actuators of every step as
decision variables, the discretized model as equality constraints), solves it
with IPOPT through CasADi and returns the first actuator command together
with the predicted trajectory.
"""

from .config import IpoptOptions, MPCConfig
from .layout import ACTUATOR_CHANNELS, STATE_CHANNELS, DecisionLayout
from .vehicle import ActuatorCommand, ReferencePolynomial, VehicleState
from .bicycle_model import (
    bind_reference,
    dynamics_residuals,
    kinematic_step,
    make_evaluator,
)
from .problem_builder import ProblemData, build_problem
from .ipopt_solver import IpoptSolver, SolverOutput
from .controller import (
    Converged,
    Failed,
    FailureKind,
    MPCController,
    MPCResult,
)

__all__ = [
    "IpoptOptions",
    "MPCConfig",
    "ACTUATOR_CHANNELS",
    "STATE_CHANNELS",
    "DecisionLayout",
    "ActuatorCommand",
    "ReferencePolynomial",
    "VehicleState",
    "bind_reference",
    "dynamics_residuals",
    "kinematic_step",
    "make_evaluator",
    "ProblemData",
    "build_problem",
    "IpoptSolver",
    "SolverOutput",
    "Converged",
    "Failed",
    "FailureKind",
    "MPCController",
    "MPCResult",
]
