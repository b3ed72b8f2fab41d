"""
Value types exchanged with the caller every control cycle.

States and coefficients arrive as plain sequences from the telemetry layer.
They are checked for shape here, once, before any NLP is built; a wrong
length is a programming error on the caller side and raises ``ValueError``.
Values are not checked for finiteness: NaN/Inf are handed to the solver,
whose own safeguards deal with them.
"""

from __future__ import annotations

from dataclasses import astuple, dataclass
from typing import Callable, Sequence

import numpy as np

STATE_DIM = 6
POLY_COEFFS = 4


def _as_floats(values: Sequence[float], what: str) -> np.ndarray:
    array = np.asarray(values, dtype=float)
    if array.ndim != 1:
        raise ValueError(f"{what} must be a flat sequence, got shape {array.shape}")
    return array


@dataclass(frozen=True)
class VehicleState:
    """
    Vehicle state in the vehicle frame.

    ``cte`` is the signed lateral distance to the reference path and ``epsi``
    the signed heading error with respect to the path tangent.
    """

    x: float
    y: float
    psi: float
    v: float
    cte: float
    epsi: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "VehicleState":
        array = _as_floats(values, "state")
        if array.size != STATE_DIM:
            raise ValueError(
                f"state must have {STATE_DIM} entries (x, y, psi, v, cte, epsi), "
                f"got {array.size}"
            )
        return cls(*(float(value) for value in array))

    def as_array(self) -> np.ndarray:
        return np.array(astuple(self), dtype=float)


@dataclass(frozen=True)
class ActuatorCommand:
    delta: float
    a: float

    def as_array(self) -> np.ndarray:
        return np.array([self.delta, self.a], dtype=float)


@dataclass(frozen=True)
class ReferencePolynomial:
    """
    Cubic ``y = c0 + c1*x + c2*x**2 + c3*x**3`` describing the desired path.

    The evaluation helpers only use arithmetic plus an injected ``atan`` so
    they work on floats, NumPy arrays and CasADi symbols alike.
    """

    c0: float
    c1: float
    c2: float
    c3: float

    @classmethod
    def from_sequence(cls, coefficients: Sequence[float]) -> "ReferencePolynomial":
        """Coefficients ``(c0, c1, c2, c3)``, lowest degree first."""
        array = _as_floats(coefficients, "coefficients")
        if array.size != POLY_COEFFS:
            raise ValueError(
                f"expected {POLY_COEFFS} polynomial coefficients (c0, c1, c2, c3), "
                f"got {array.size}"
            )
        return cls(*(float(value) for value in array))

    def as_array(self) -> np.ndarray:
        return np.array(astuple(self), dtype=float)

    def evaluate(self, x):
        return self.c0 + self.c1 * x + self.c2 * x**2 + self.c3 * x**3

    def slope(self, x):
        return self.c1 + 2.0 * self.c2 * x + 3.0 * self.c3 * x**2

    def heading(self, x, atan: Callable = np.arctan):
        return atan(self.slope(x))
