from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np

STATE_CHANNELS = ("x", "y", "psi", "v", "cte", "epsi")
ACTUATOR_CHANNELS = ("delta", "a")


@dataclass(frozen=True)
class DecisionLayout:
    """
    Flat ordering of the NLP decision vector for a horizon of ``N`` steps.

    The vector holds the N-long trajectories of ``x, y, psi, v, cte, epsi``
    followed by the (N-1)-long trajectories of ``delta, a``.  Actuators have
    no value at the last step since nothing is left to act on.  The same
    offsets index the constraint vector, which only holds the six state
    channels.
    """

    horizon: int

    @property
    def x_start(self) -> int:
        return 0

    @property
    def y_start(self) -> int:
        return self.x_start + self.horizon

    @property
    def psi_start(self) -> int:
        return self.y_start + self.horizon

    @property
    def v_start(self) -> int:
        return self.psi_start + self.horizon

    @property
    def cte_start(self) -> int:
        return self.v_start + self.horizon

    @property
    def epsi_start(self) -> int:
        return self.cte_start + self.horizon

    @property
    def delta_start(self) -> int:
        return self.epsi_start + self.horizon

    @property
    def a_start(self) -> int:
        return self.delta_start + self.horizon - 1

    @property
    def state_block(self) -> int:
        return len(STATE_CHANNELS) * self.horizon

    @property
    def actuator_block(self) -> int:
        return len(ACTUATOR_CHANNELS) * (self.horizon - 1)

    @property
    def n_vars(self) -> int:
        return self.state_block + self.actuator_block

    @property
    def n_constraints(self) -> int:
        return self.state_block

    def start(self, name: str) -> int:
        if name not in STATE_CHANNELS and name not in ACTUATOR_CHANNELS:
            raise KeyError(name)
        return getattr(self, f"{name}_start")

    def segment(self, name: str) -> slice:
        start = self.start(name)
        length = self.horizon if name in STATE_CHANNELS else self.horizon - 1
        return slice(start, start + length)

    def split(self, decision: np.ndarray) -> Dict[str, np.ndarray]:
        decision = np.asarray(decision)
        return {
            name: decision[self.segment(name)]
            for name in STATE_CHANNELS + ACTUATOR_CHANNELS
        }

    def states(self, decision: np.ndarray) -> np.ndarray:
        """Returns the state trajectory as an ``(N, 6)`` array."""
        decision = np.asarray(decision)
        return decision[: self.state_block].reshape(len(STATE_CHANNELS), self.horizon).T

    def actuators(self, decision: np.ndarray) -> np.ndarray:
        """Returns the actuator trajectory as an ``(N - 1, 2)`` array."""
        decision = np.asarray(decision)
        return (
            decision[self.state_block : self.n_vars]
            .reshape(len(ACTUATOR_CHANNELS), self.horizon - 1)
            .T
        )

    def step_indices(self, step: int) -> np.ndarray:
        """Indices of the six state channels at ``step``."""
        return np.array([self.start(name) + step for name in STATE_CHANNELS])
