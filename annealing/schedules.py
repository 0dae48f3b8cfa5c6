"""Cooling schedules.

A schedule maps the step index to the temperature used for that step. The
absolute scale comes from the run's initial temperature `t0`, so one schedule
instance works with any heuristic.

Schedules are usually non-increasing, but nothing requires it: the engine never
infers termination from the shape of the schedule (see `ReheatingSchedule`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import math

from .errors import InvalidParameter


class CoolingSchedule(Protocol):
    def temperature(self, step: int, t0: float) -> float:  # pragma: no cover
        """Return the temperature for `step` given the initial temperature `t0`."""


def _progress(step: int, steps: int) -> float:
    if steps <= 1:
        return 1.0
    return min(1.0, step / (steps - 1))


@dataclass(frozen=True)
class GeometricSchedule:
    """Stepwise geometric cooling.

    ``T(step) = t0 * alpha ** k`` with ``k = step // steps_per_temperature``
    (``k = step`` when `steps_per_temperature` is 0 or negative), so the
    temperature is held for `steps_per_temperature` steps before each drop.
    """

    alpha: float = 0.997
    steps_per_temperature: int = 200

    def __post_init__(self) -> None:
        if not (0.0 < self.alpha <= 1.0):
            raise InvalidParameter(f"alpha must lie in (0, 1], got {self.alpha!r}")

    def temperature(self, step: int, t0: float) -> float:
        spt = self.steps_per_temperature
        k = step if spt <= 0 else step // spt
        return t0 * self.alpha ** k

    @classmethod
    def for_budget(cls, max_steps: int, levels: int = 1000, final_ratio: float = 1e-3) -> "GeometricSchedule":
        """Fit the cooling to a step budget.

        Holds each temperature for ``max_steps // levels`` steps and picks
        `alpha` so that the last step of the budget runs at about
        ``final_ratio * t0``.
        """

        if levels < 1:
            raise InvalidParameter(f"levels must be >= 1, got {levels!r}")
        if not (0.0 < final_ratio <= 1.0):
            raise InvalidParameter(f"final_ratio must lie in (0, 1], got {final_ratio!r}")
        spt = max(1, max_steps // levels)
        drops = max(1, (max_steps - 1) // spt)
        return cls(alpha=final_ratio ** (1.0 / drops), steps_per_temperature=spt)


@dataclass(frozen=True)
class ExponentialSchedule:
    """Geometric interpolation from `t0` down to `t_end` across `steps`.

    T = t0 * (t_end / t0) ** (step / (steps - 1)); `t_end` is held afterwards.
    """

    steps: int
    t_end: float = 0.05

    def __post_init__(self) -> None:
        if self.steps < 1:
            raise InvalidParameter(f"steps must be >= 1, got {self.steps!r}")
        if not (math.isfinite(self.t_end) and self.t_end > 0):
            raise InvalidParameter(f"t_end must be finite and > 0, got {self.t_end!r}")

    def temperature(self, step: int, t0: float) -> float:
        return t0 * ((self.t_end / t0) ** _progress(step, self.steps))


@dataclass(frozen=True)
class LinearSchedule:
    """Straight line from `t0` to `t_end` across `steps`, then flat."""

    steps: int
    t_end: float = 0.0

    def __post_init__(self) -> None:
        if self.steps < 1:
            raise InvalidParameter(f"steps must be >= 1, got {self.steps!r}")
        if not (math.isfinite(self.t_end) and self.t_end >= 0):
            raise InvalidParameter(f"t_end must be finite and >= 0, got {self.t_end!r}")

    def temperature(self, step: int, t0: float) -> float:
        return t0 + (self.t_end - t0) * _progress(step, self.steps)


@dataclass(frozen=True)
class LogarithmicSchedule:
    """Classic slow schedule ``T = t0 * ln(2) / ln(step + 2)``."""

    def temperature(self, step: int, t0: float) -> float:
        return t0 * math.log(2.0) / math.log(step + 2.0)


@dataclass(frozen=True)
class ReheatingSchedule:
    """Restart `inner` every `period` steps.

    A reheat resets the temperature to `t0` while the engine keeps its current
    and best solutions, so later cycles refine the best state found so far.
    """

    inner: CoolingSchedule
    period: int

    def __post_init__(self) -> None:
        if self.period < 1:
            raise InvalidParameter(f"period must be >= 1, got {self.period!r}")

    def temperature(self, step: int, t0: float) -> float:
        return self.inner.temperature(step % self.period, t0)


__all__ = [
    "CoolingSchedule",
    "ExponentialSchedule",
    "GeometricSchedule",
    "LinearSchedule",
    "LogarithmicSchedule",
    "ReheatingSchedule",
]
