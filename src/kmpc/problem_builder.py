"""
Initial guess and bounds of the tracking NLP for one control cycle.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .config import MPCConfig
from .layout import DecisionLayout
from .vehicle import VehicleState


@dataclass(frozen=True)
class ProblemData:
    initial_guess: np.ndarray
    lbx: np.ndarray
    ubx: np.ndarray
    lbg: np.ndarray
    ubg: np.ndarray


def build_problem(
    state: VehicleState, layout: DecisionLayout, config: MPCConfig
) -> ProblemData:
    current = state.as_array()
    step0 = layout.step_indices(0)

    # Zero everywhere except the measured state at step 0.
    initial_guess = np.zeros(layout.n_vars)
    initial_guess[step0] = current

    lbx, ubx = _variable_bounds(layout, config)

    # Dynamics residuals are driven to zero, step 0 is pinned to the state.
    lbg = np.zeros(layout.n_constraints)
    ubg = np.zeros(layout.n_constraints)
    lbg[step0] = current
    ubg[step0] = current

    return ProblemData(
        initial_guess=initial_guess, lbx=lbx, ubx=ubx, lbg=lbg, ubg=ubg
    )


def _variable_bounds(layout: DecisionLayout, config: MPCConfig):
    lbx = np.empty(layout.n_vars)
    ubx = np.empty(layout.n_vars)

    states = slice(0, layout.delta_start)
    lbx[states] = -config.unbounded
    ubx[states] = config.unbounded

    steering = layout.segment("delta")
    lbx[steering] = -config.max_steering
    ubx[steering] = config.max_steering

    accel = layout.segment("a")
    lbx[accel] = config.accel_bounds[0]
    ubx[accel] = config.accel_bounds[1]
    return lbx, ubx
