#!/usr/bin/env python3
"""
Closed-loop run of the MPC against a simulated kinematic bicycle.

The road is a sinusoid in the world frame.  Every cycle the upcoming
waypoints are moved into the vehicle frame and fitted with a cubic, the
controller is solved from the vehicle-frame state, and the command is applied
to the plant.  When a solve fails the previous command is held.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from kmpc import ActuatorCommand, MPCConfig, MPCController, ReferencePolynomial
from kmpc.bicycle_model import kinematic_step
from kmpc.plotting import plot_prediction

FLAT_ROAD = ReferencePolynomial(0.0, 0.0, 0.0, 0.0)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Closed-loop MPC path tracking demo.")
    parser.add_argument("--cycles", type=int, default=300, help="Number of control cycles.")
    parser.add_argument("--speed", type=float, default=10.0, help="Initial speed.")
    parser.add_argument("--offset", type=float, default=1.5, help="Initial lateral offset.")
    parser.add_argument("--amplitude", type=float, default=4.0, help="Road amplitude (m).")
    parser.add_argument("--wavelength", type=float, default=120.0, help="Road wavelength (m).")
    parser.add_argument("--no-plot", action="store_true", help="Skip the plots.")
    parser.add_argument("--verbose", action="store_true", help="Log every solve.")
    return parser.parse_args()


def road(xs: np.ndarray, amplitude: float, wavelength: float) -> np.ndarray:
    return amplitude * np.sin(2.0 * np.pi * xs / wavelength)


def vehicle_frame_reference(pose, amplitude, wavelength, lookahead=40.0, count=8):
    px, py, psi = pose
    wx = np.linspace(px, px + lookahead, count)
    wy = road(wx, amplitude, wavelength)
    dx, dy = wx - px, wy - py
    x_v = dx * np.cos(psi) + dy * np.sin(psi)
    y_v = -dx * np.sin(psi) + dy * np.cos(psi)
    # polyfit returns the highest degree first.
    return ReferencePolynomial.from_sequence(np.polyfit(x_v, y_v, 3)[::-1])


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    config = MPCConfig()
    controller = MPCController(config)

    # World-frame plant state: x, y, psi, v.
    px, py, psi, v = 0.0, args.offset, 0.0, args.speed
    command = ActuatorCommand(0.0, 0.0)
    driven = [(px, py)]
    failures = 0
    last_result, last_reference = None, None

    for _ in range(args.cycles):
        reference = vehicle_frame_reference((px, py, psi), args.amplitude, args.wavelength)
        cte = reference.evaluate(0.0)
        epsi = -reference.heading(0.0)
        result = controller.solve((0.0, 0.0, 0.0, v, cte, epsi), reference)
        if result.ok:
            command = result.command
            last_result, last_reference = result, reference
        else:
            failures += 1

        px, py, psi, v, _, _ = kinematic_step(
            (px, py, psi, v, 0.0, 0.0),
            command.delta,
            command.a,
            FLAT_ROAD,
            config.dt,
            config.lf,
        )
        driven.append((px, py))

    driven = np.asarray(driven)
    lateral = driven[:, 1] - road(driven[:, 0], args.amplitude, args.wavelength)
    print(f"Cycles: {args.cycles}, failed solves: {failures}")
    print(f"Final speed: {v:.2f}, distance: {px:.1f} m")
    print(f"Lateral error: mean |e| = {np.mean(np.abs(lateral)):.3f} m, "
          f"max |e| = {np.max(np.abs(lateral)):.3f} m")

    if args.no_plot:
        return

    fig, (ax_world, ax_pred) = plt.subplots(2, 1, figsize=(9, 8))
    xs = np.linspace(0.0, max(px, 1.0), 400)
    ax_world.plot(xs, road(xs, args.amplitude, args.wavelength), "y--", label="Road")
    ax_world.plot(driven[:, 0], driven[:, 1], "b", label="Driven")
    ax_world.set_xlabel("x (m)")
    ax_world.set_ylabel("y (m)")
    ax_world.legend()
    if last_result is not None:
        plot_prediction(last_result, last_reference, ax=ax_pred)
    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
