"""
Tests for the initial guess and bound construction.
"""

import numpy as np

from kmpc.config import MPCConfig
from kmpc.layout import DecisionLayout
from kmpc.problem_builder import build_problem
from kmpc.vehicle import VehicleState

STATE = VehicleState(1.0, -2.0, 0.1, 15.0, 0.4, -0.02)


def test_initial_guess_zero_except_step0():
    config = MPCConfig()
    layout = DecisionLayout(config.horizon)
    problem = build_problem(STATE, layout, config)

    step0 = layout.step_indices(0)
    np.testing.assert_array_equal(problem.initial_guess[step0], STATE.as_array())

    rest = np.delete(problem.initial_guess, step0)
    assert np.all(rest == 0.0)
    assert problem.initial_guess.shape == (layout.n_vars,)


def test_variable_bounds():
    """States are free, steering and acceleration are boxed."""
    config = MPCConfig()
    layout = DecisionLayout(config.horizon)
    problem = build_problem(STATE, layout, config)

    states = slice(0, layout.delta_start)
    assert np.all(problem.lbx[states] == -1.0e19)
    assert np.all(problem.ubx[states] == 1.0e19)

    delta = layout.segment("delta")
    assert np.all(problem.lbx[delta] == -0.436332)
    assert np.all(problem.ubx[delta] == 0.436332)

    a = layout.segment("a")
    assert np.all(problem.lbx[a] == -1.0)
    assert np.all(problem.ubx[a] == 1.0)


def test_constraint_bounds_pin_step0():
    config = MPCConfig(horizon=6)
    layout = DecisionLayout(6)
    problem = build_problem(STATE, layout, config)

    step0 = layout.step_indices(0)
    np.testing.assert_array_equal(problem.lbg[step0], STATE.as_array())
    np.testing.assert_array_equal(problem.ubg[step0], STATE.as_array())

    others = np.setdiff1d(np.arange(layout.n_constraints), step0)
    assert np.all(problem.lbg[others] == 0.0)
    assert np.all(problem.ubg[others] == 0.0)
    assert problem.lbg.shape == (layout.n_constraints,)


def test_configured_bounds_are_used():
    config = MPCConfig(horizon=4, max_steering=0.2, accel_bounds=(-3.0, 0.5), unbounded=1e6)
    layout = DecisionLayout(4)
    problem = build_problem(STATE, layout, config)

    assert problem.lbx[0] == -1e6
    assert np.all(problem.ubx[layout.segment("delta")] == 0.2)
    assert np.all(problem.lbx[layout.segment("a")] == -3.0)
    assert np.all(problem.ubx[layout.segment("a")] == 0.5)


def test_builds_fresh_arrays_per_call():
    config = MPCConfig(horizon=4)
    layout = DecisionLayout(4)
    first = build_problem(STATE, layout, config)
    second = build_problem(VehicleState(0, 0, 0, 0, 0, 0), layout, config)

    first.initial_guess[:] = 99.0
    assert np.all(second.initial_guess == 0.0)
    np.testing.assert_array_equal(first.lbg[layout.step_indices(0)], STATE.as_array())
