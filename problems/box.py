"""Bounded continuous minimization.

Solutions are tuples of floats inside a box ``lower <= x <= upper``. A
neighbor perturbs every coordinate by a uniform step proportional to the
coordinate's span and clips the result back into the box.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

import math
import random

from annealing import InvalidParameter


Point = Tuple[float, ...]


def sphere(x: Sequence[float]) -> float:
    return float(sum(v * v for v in x))


def rastrigin(x: Sequence[float]) -> float:
    """Highly multimodal test function; global minimum 0 at the origin."""

    return 10.0 * len(x) + sum(v * v - 10.0 * math.cos(2.0 * math.pi * v) for v in x)


def _clip_to_bounds(x: Sequence[float], lower: Sequence[float], upper: Sequence[float]) -> Point:
    return tuple(min(max(v, lo), hi) for v, lo, hi in zip(x, lower, upper))


@dataclass(frozen=True)
class BoxProblem:
    objective: Callable[[Sequence[float]], float]
    lower: Point
    upper: Point
    neighbor_scale: float = 0.1

    def __post_init__(self) -> None:
        lower = tuple(float(v) for v in self.lower)
        upper = tuple(float(v) for v in self.upper)
        if not lower:
            raise InvalidParameter("bounds must have at least one dimension")
        if len(lower) != len(upper):
            raise InvalidParameter("lower and upper bounds must have the same length")
        for i, (lo, hi) in enumerate(zip(lower, upper)):
            if not (math.isfinite(lo) and math.isfinite(hi)):
                raise InvalidParameter(f"bounds of dimension {i} must be finite")
            if lo > hi:
                raise InvalidParameter(f"lower bound exceeds upper bound in dimension {i}")
        if not (0.0 < self.neighbor_scale <= 1.0):
            raise InvalidParameter(f"neighbor_scale must lie in (0, 1], got {self.neighbor_scale!r}")

        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    @property
    def dim(self) -> int:
        return len(self.lower)

    def contains(self, x: Sequence[float]) -> bool:
        return len(x) == self.dim and all(lo <= v <= hi for v, lo, hi in zip(x, self.lower, self.upper))

    def random_solution(self, rng: random.Random) -> Point:
        return tuple(rng.uniform(lo, hi) for lo, hi in zip(self.lower, self.upper))

    def neighbor(self, x: Point, rng: random.Random) -> Point:
        candidate: List[float] = []
        for v, lo, hi in zip(x, self.lower, self.upper):
            step = self.neighbor_scale * (hi - lo)
            candidate.append(v + rng.uniform(-step, step))
        return _clip_to_bounds(candidate, self.lower, self.upper)

    def energy(self, x: Point) -> float:
        return float(self.objective(x))


__all__ = ["BoxProblem", "Point", "rastrigin", "sphere"]
