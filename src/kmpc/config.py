"""
Tunable constants of the path-tracking MPC.

Defaults reproduce the tuning used with the Udacity-style simulator (12 steps
of 40 ms, 40 mph reference speed).  They were found empirically for one
vehicle and are exposed here so they can be re-tuned rather than edited in
place.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Tuple


@dataclass
class IpoptOptions:
    print_level: int = 0
    # Wall clock budget of one control cycle.
    max_cpu_time: float = 0.5
    max_iter: int = 3000
    tol: float = 1e-8
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_casadi(self) -> Dict[str, Any]:
        """
        Returns the option dict expected by ``casadi.nlpsol(..., "ipopt", ...)``.

        ``extra`` keys are passed through with the ``ipopt.`` prefix added
        when missing.
        """
        opts: Dict[str, Any] = {
            "print_time": False,
            "error_on_fail": False,
            "ipopt.sb": "yes",
            "ipopt.print_level": int(self.print_level),
            "ipopt.max_cpu_time": float(self.max_cpu_time),
            "ipopt.max_iter": int(self.max_iter),
            "ipopt.tol": float(self.tol),
        }
        for key, value in self.extra.items():
            name = key if key.startswith("ipopt.") else f"ipopt.{key}"
            opts[name] = value
        return opts


@dataclass
class MPCConfig:
    horizon: int = 12
    dt: float = 0.04
    # Distance between the front axle and the center of gravity.  Obtained by
    # matching the turning radius of the simulated car at constant steering
    # and speed.
    lf: float = 2.67
    ref_v: float = 40.0
    # 25 degrees
    max_steering: float = 0.436332
    accel_bounds: Tuple[float, float] = (-1.0, 1.0)
    smoothness_weight: float = 1000.0
    unbounded: float = 1.0e19
    ipopt: IpoptOptions = field(default_factory=IpoptOptions)

    def __post_init__(self) -> None:
        if self.horizon < 3:
            raise ValueError(f"horizon must be >= 3, got {self.horizon}")
        if self.dt <= 0.0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.lf <= 0.0:
            raise ValueError(f"lf must be positive, got {self.lf}")
        if self.max_steering <= 0.0:
            raise ValueError(f"max_steering must be positive, got {self.max_steering}")
        if self.smoothness_weight < 0.0:
            raise ValueError(
                f"smoothness_weight must be non-negative, got {self.smoothness_weight}"
            )
        self.accel_bounds = (float(self.accel_bounds[0]), float(self.accel_bounds[1]))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "MPCConfig":
        """
        Builds a config from a plain mapping, e.g. a parsed settings file.

        Unknown keys are rejected so a typo does not silently fall back to a
        default.  A nested ``ipopt`` mapping is turned into ``IpoptOptions``.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise ValueError(f"unknown MPC config keys: {', '.join(unknown)}")

        values = dict(mapping)
        ipopt = values.get("ipopt")
        if isinstance(ipopt, Mapping):
            ipopt_known = {f.name for f in fields(IpoptOptions)}
            ipopt_unknown = sorted(set(ipopt) - ipopt_known)
            if ipopt_unknown:
                raise ValueError(f"unknown ipopt option keys: {', '.join(ipopt_unknown)}")
            values["ipopt"] = IpoptOptions(**ipopt)
        if "accel_bounds" in values:
            values["accel_bounds"] = tuple(values["accel_bounds"])
        return cls(**values)
