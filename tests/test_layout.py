"""
Tests for the decision vector layout.
"""

import pytest
import numpy as np

from kmpc.layout import ACTUATOR_CHANNELS, STATE_CHANNELS, DecisionLayout


@pytest.mark.parametrize("horizon", [3, 5, 12, 25])
def test_segments_are_contiguous_and_cover_vector(horizon):
    """Segments follow each other without gaps or overlap."""
    layout = DecisionLayout(horizon)

    position = 0
    for name in STATE_CHANNELS + ACTUATOR_CHANNELS:
        segment = layout.segment(name)
        assert segment.start == position
        position = segment.stop

    assert position == layout.n_vars
    assert layout.n_vars == 6 * horizon + 2 * (horizon - 1)
    assert layout.n_constraints == 6 * horizon


def test_reference_horizon_offsets():
    """Offsets for the tuned 12 step horizon."""
    layout = DecisionLayout(12)

    assert layout.x_start == 0
    assert layout.y_start == 12
    assert layout.psi_start == 24
    assert layout.v_start == 36
    assert layout.cte_start == 48
    assert layout.epsi_start == 60
    assert layout.delta_start == 72
    assert layout.a_start == 83
    assert layout.n_vars == 94


def test_actuator_segments_are_one_shorter():
    layout = DecisionLayout(7)
    delta = layout.segment("delta")
    a = layout.segment("a")
    assert delta.stop - delta.start == 6
    assert a.stop - a.start == 6


def test_split_states_and_actuators_views():
    """States come back as (N, 6), actuators as (N - 1, 2)."""
    layout = DecisionLayout(4)
    decision = np.arange(layout.n_vars, dtype=float)

    parts = layout.split(decision)
    np.testing.assert_array_equal(parts["v"], [12, 13, 14, 15])
    np.testing.assert_array_equal(parts["a"], [27, 28, 29])

    states = layout.states(decision)
    assert states.shape == (4, 6)
    np.testing.assert_array_equal(states[0], [0, 4, 8, 12, 16, 20])
    np.testing.assert_array_equal(states[:, 1], parts["y"])

    actuators = layout.actuators(decision)
    assert actuators.shape == (3, 2)
    np.testing.assert_array_equal(actuators[:, 0], parts["delta"])
    np.testing.assert_array_equal(actuators[:, 1], parts["a"])


def test_step_indices():
    layout = DecisionLayout(5)
    np.testing.assert_array_equal(layout.step_indices(0), [0, 5, 10, 15, 20, 25])
    np.testing.assert_array_equal(layout.step_indices(2), [2, 7, 12, 17, 22, 27])


def test_unknown_channel_raises():
    with pytest.raises(KeyError):
        DecisionLayout(5).segment("omega")
