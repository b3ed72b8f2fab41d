"""
Tests for configuration and input value types.
"""

import pytest
import numpy as np

from kmpc.config import IpoptOptions, MPCConfig
from kmpc.vehicle import ReferencePolynomial, VehicleState


def test_defaults_match_tuned_controller():
    config = MPCConfig()
    assert config.horizon == 12
    assert config.dt == 0.04
    assert config.lf == 2.67
    assert config.ref_v == 40.0
    assert config.max_steering == 0.436332
    assert config.accel_bounds == (-1.0, 1.0)
    assert config.smoothness_weight == 1000.0
    assert config.ipopt.max_cpu_time == 0.5


@pytest.mark.parametrize(
    "kwargs",
    [
        {"horizon": 2},
        {"dt": 0.0},
        {"lf": -1.0},
        {"max_steering": 0.0},
        {"smoothness_weight": -1.0},
    ],
)
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ValueError):
        MPCConfig(**kwargs)


def test_from_mapping():
    config = MPCConfig.from_mapping(
        {
            "horizon": 8,
            "ref_v": 25.0,
            "accel_bounds": [-2.0, 1.5],
            "ipopt": {"max_cpu_time": 2.0, "extra": {"linear_solver": "mumps"}},
        }
    )
    assert config.horizon == 8
    assert config.ref_v == 25.0
    assert config.accel_bounds == (-2.0, 1.5)
    assert isinstance(config.ipopt, IpoptOptions)
    assert config.ipopt.max_cpu_time == 2.0


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(ValueError, match="horizn"):
        MPCConfig.from_mapping({"horizn": 10})
    with pytest.raises(ValueError, match="max_time"):
        MPCConfig.from_mapping({"ipopt": {"max_time": 1.0}})


def test_ipopt_options_to_casadi():
    opts = IpoptOptions(print_level=5, extra={"linear_solver": "mumps", "ipopt.mu_init": 0.1})
    casadi_opts = opts.to_casadi()

    assert casadi_opts["ipopt.print_level"] == 5
    assert casadi_opts["ipopt.max_cpu_time"] == 0.5
    assert casadi_opts["ipopt.linear_solver"] == "mumps"
    assert casadi_opts["ipopt.mu_init"] == 0.1
    assert casadi_opts["print_time"] is False
    assert casadi_opts["error_on_fail"] is False


def test_vehicle_state_from_sequence():
    state = VehicleState.from_sequence(np.array([1, 2, 3, 4, 5, 6]))
    assert state == VehicleState(1.0, 2.0, 3.0, 4.0, 5.0, 6.0)
    np.testing.assert_array_equal(state.as_array(), [1, 2, 3, 4, 5, 6])


@pytest.mark.parametrize("values", [[], [0.0] * 5, [0.0] * 7, [[0.0] * 6]])
def test_vehicle_state_wrong_shape(values):
    with pytest.raises(ValueError):
        VehicleState.from_sequence(values)


def test_reference_polynomial_from_sequence():
    reference = ReferencePolynomial.from_sequence(np.array([1.0, 0.5, 0.0, -0.1]))
    assert reference == ReferencePolynomial(1.0, 0.5, 0.0, -0.1)


@pytest.mark.parametrize("values", [[], [1.0, 0.5], [0.0] * 3, [0.0] * 5])
def test_reference_polynomial_wrong_length(values):
    with pytest.raises(ValueError):
        ReferencePolynomial.from_sequence(values)


def test_reference_polynomial_evaluation():
    reference = ReferencePolynomial(1.0, 2.0, 3.0, 4.0)
    assert reference.evaluate(2.0) == pytest.approx(1 + 4 + 12 + 32)
    assert reference.slope(2.0) == pytest.approx(2 + 12 + 48)
    assert reference.heading(0.0) == pytest.approx(np.arctan(2.0))
    np.testing.assert_allclose(reference.evaluate(np.array([0.0, 1.0])), [1.0, 10.0])
