"""2D visualization of an MPC prediction in the vehicle frame."""

from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np
from scipy.interpolate import interp1d

from .controller import Converged
from .vehicle import ReferencePolynomial


def plot_prediction(result: Converged, reference: ReferencePolynomial, ax=None):
    """Plot the predicted path against the reference polynomial."""
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 4))

    xs = result.states[:, 0]
    ys = result.states[:, 1]
    ax.scatter(xs, ys, color="g", marker="o", s=12, label="Prediction nodes")

    # Cubic smoothing needs 4 strictly increasing samples.
    if xs.size >= 4 and np.all(np.diff(xs) > 0):
        x_fine = np.linspace(xs[0], xs[-1], 200)
        ax.plot(x_fine, interp1d(xs, ys, kind="cubic")(x_fine), color="g", label="Prediction")
    else:
        ax.plot(xs, ys, color="g", label="Prediction")

    x_ref = np.linspace(min(0.0, xs.min()), max(xs.max(), 1.0), 200)
    ax.plot(x_ref, reference.evaluate(x_ref), color="y", linestyle="--", label="Reference")
    ax.scatter(xs[0], ys[0], color="r", marker="*", label="Vehicle")

    ax.set_xlabel("x (m)")
    ax.set_ylabel("y (m)")
    ax.set_title(
        f"delta={result.command.delta:+.3f} rad, a={result.command.a:+.3f}, cost={result.cost:.2f}"
    )
    ax.legend()
    return ax
