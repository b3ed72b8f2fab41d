"""
Kinematic bicycle model, cost and constraints of the tracking NLP.

The functions below are written against plain indexing and arithmetic so one
implementation serves two purposes: called with CasADi symbols they build the
expression graph handed to IPOPT (CasADi then supplies exact sparse
derivatives), called with NumPy arrays they evaluate the same model
numerically for simulation and for checking solutions.
"""

from __future__ import annotations

from typing import Callable, Dict, List, NamedTuple, Sequence, Tuple

import casadi as ca
import numpy as np

from .config import MPCConfig
from .layout import DecisionLayout, STATE_CHANNELS
from .vehicle import POLY_COEFFS, ReferencePolynomial


class TrigOps(NamedTuple):
    sin: Callable
    cos: Callable
    atan: Callable


NUMPY_OPS = TrigOps(np.sin, np.cos, np.arctan)
CASADI_OPS = TrigOps(ca.sin, ca.cos, ca.atan)


def kinematic_step(
    state: Sequence,
    delta,
    a,
    reference: ReferencePolynomial,
    dt: float,
    lf: float,
    ops: TrigOps = NUMPY_OPS,
) -> Tuple:
    """
    Advances ``(x, y, psi, v, cte, epsi)`` by one step of ``dt``.

    ``cte`` and ``epsi`` are propagated from the reference path value and
    tangent heading at the current ``x``, so they stay tied to the position
    and heading instead of evolving freely.
    """
    x0, y0, psi0, v0, _, epsi0 = state
    f0 = reference.evaluate(x0)
    psides0 = reference.heading(x0, atan=ops.atan)
    yaw_rate_dt = v0 * delta / lf * dt
    return (
        x0 + v0 * ops.cos(psi0) * dt,
        y0 + v0 * ops.sin(psi0) * dt,
        psi0 + yaw_rate_dt,
        v0 + a * dt,
        (f0 - y0) + v0 * ops.sin(epsi0) * dt,
        (psi0 - psides0) + yaw_rate_dt,
    )


def objective(decision, layout: DecisionLayout, config: MPCConfig):
    N = layout.horizon
    w = config.smoothness_weight
    cost = 0.0

    # Tracking: stay on the path, aligned with it, at the reference speed.
    for i in range(N):
        cost += decision[layout.cte_start + i] ** 2
        cost += decision[layout.epsi_start + i] ** 2
        cost += (decision[layout.v_start + i] - config.ref_v) ** 2

    # Actuation magnitude.
    for i in range(N - 1):
        cost += decision[layout.delta_start + i] ** 2
        cost += decision[layout.a_start + i] ** 2

    # Actuation smoothness.
    for i in range(N - 2):
        cost += w * (decision[layout.delta_start + i + 1] - decision[layout.delta_start + i]) ** 2
        cost += w * (decision[layout.a_start + i + 1] - decision[layout.a_start + i]) ** 2

    return cost


def constraint_terms(
    decision,
    layout: DecisionLayout,
    reference: ReferencePolynomial,
    config: MPCConfig,
    ops: TrigOps = NUMPY_OPS,
) -> List:
    """
    Returns the ``6N`` constraint entries in layout order.

    Step 0 holds the raw step-0 state; it is pinned to the measured state by
    equal lower and upper constraint bounds.  Steps ``1..N-1`` hold the
    difference between the decision variables and the model prediction from
    the previous step.
    """
    N = layout.horizon
    starts = [layout.start(name) for name in STATE_CHANNELS]
    terms: List = [0.0] * layout.n_constraints

    for start in starts:
        terms[start] = decision[start]

    for t in range(1, N):
        previous = [decision[start + t - 1] for start in starts]
        predicted = kinematic_step(
            previous,
            decision[layout.delta_start + t - 1],
            decision[layout.a_start + t - 1],
            reference,
            config.dt,
            config.lf,
            ops,
        )
        for start, value in zip(starts, predicted):
            terms[start + t] = decision[start + t] - value

    return terms


def symbolic_problem(layout: DecisionLayout, config: MPCConfig) -> Dict[str, ca.SX]:
    """
    Builds the NLP in ``casadi.nlpsol`` form.

    The polynomial coefficients are the NLP parameter ``p`` so the graph does
    not depend on a particular cycle's reference.
    """
    w = ca.SX.sym("w", layout.n_vars)
    p = ca.SX.sym("p", POLY_COEFFS)
    reference = ReferencePolynomial(p[0], p[1], p[2], p[3])
    f = objective(w, layout, config)
    g = ca.vertcat(*constraint_terms(w, layout, reference, config, CASADI_OPS))
    return {"x": w, "p": p, "f": f, "g": g}


def make_evaluator(layout: DecisionLayout, config: MPCConfig) -> ca.Function:
    """
    CasADi function ``fg(w, p) -> (f, g)`` of the cost and constraints.

    Diagnostic view of the graph from ``symbolic_problem``; ``IpoptSolver``
    compiles that graph into ``nlpsol`` directly and does not go through
    this function.  Useful to evaluate a candidate or a returned decision
    vector with exactly the expressions IPOPT sees.
    """
    nlp = symbolic_problem(layout, config)
    return ca.Function(
        "fg", [nlp["x"], nlp["p"]], [nlp["f"], nlp["g"]], ["w", "p"], ["f", "g"]
    )


def bind_reference(
    evaluator: ca.Function, reference: ReferencePolynomial
) -> Callable[[np.ndarray], Tuple[float, np.ndarray]]:
    """
    Closes ``evaluator`` over one cycle's reference polynomial.

    The returned callable maps a decision vector to ``(cost, constraints)``
    and has no side effects.  Meant for inspecting candidates outside the
    solver; the solver receives the coefficients as the NLP parameter ``p``.
    """
    coefficients = reference.as_array()

    def evaluate(decision: np.ndarray) -> Tuple[float, np.ndarray]:
        f, g = evaluator(np.asarray(decision, dtype=float), coefficients)
        return float(f), np.asarray(g.full(), dtype=float).ravel()

    return evaluate


def dynamics_residuals(
    decision: np.ndarray,
    layout: DecisionLayout,
    reference: ReferencePolynomial,
    config: MPCConfig,
) -> np.ndarray:
    """
    NumPy re-evaluation of the model residuals for steps ``1..N-1``.

    Returns an ``(N - 1, 6)`` array; a dynamically consistent trajectory
    gives zeros.
    """
    states = layout.states(decision)
    actuators = layout.actuators(decision)
    residuals = np.zeros((layout.horizon - 1, len(STATE_CHANNELS)))
    for t in range(1, layout.horizon):
        predicted = kinematic_step(
            states[t - 1],
            actuators[t - 1, 0],
            actuators[t - 1, 1],
            reference,
            config.dt,
            config.lf,
        )
        residuals[t - 1] = states[t] - np.asarray(predicted)
    return residuals
