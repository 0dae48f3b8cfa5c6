"""Initial-temperature heuristics.

The energy-distribution heuristic samples random solutions, measures how
spread out their energies are with robust statistics, and picks the starting
temperature at which an uphill move of that typical size is accepted with a
target probability:

    p = exp(-dE / T0)   =>   T0 = -dE / ln(p)

Median and MAD are used instead of mean and standard deviation so that a few
pathological solutions (huge penalties, infinities) do not blow up `T0`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol

import logging
import math
import random

from .errors import AnnealingError, InvalidParameter, ProblemFault
from .problem import AnnealingProblem
from .stats import (
    IQR_NORMAL_CONSISTENCY,
    MAD_NORMAL_CONSISTENCY,
    iqr_sorted,
    median_absolute_deviation,
    median_sorted,
)


logger = logging.getLogger("annealing.heuristics")

# Smallest temperature a heuristic may hand to the engine.
MIN_INITIAL_TEMPERATURE = 1e-6
MIN_SAMPLES = 10


@dataclass(frozen=True)
class InitialTemperature:
    """Estimated starting temperature plus the statistics behind it.

    Only `temperature` drives the search; the rest is diagnostic.
    """

    temperature: float
    median_energy: float
    mad: float
    sample_count: int


class TemperatureHeuristic(Protocol):
    def estimate(self, problem: AnnealingProblem, rng: random.Random) -> InitialTemperature:  # pragma: no cover
        """Estimate an initial temperature for `problem`."""


class EnergyDistributionHeuristic:
    """Estimate `T0` from the energy distribution of random solutions.

    Args:
        samples: number of random solutions to draw (>= 10).
        target_acceptance: acceptance probability of a typical uphill move at
            `T0`, strictly between 0 and 1. Values around 0.6-0.9 are common;
            larger values start hotter.
        min_t0: lower bound for the returned temperature. Negative values are
            treated as 0.

    Raises:
        InvalidParameter: on construction, before anything is sampled.
    """

    def __init__(self, samples: int = 300, target_acceptance: float = 0.8, min_t0: float = MIN_INITIAL_TEMPERATURE) -> None:
        if isinstance(samples, bool) or int(samples) != samples or samples < MIN_SAMPLES:
            raise InvalidParameter(f"samples must be an integer >= {MIN_SAMPLES}, got {samples!r}")
        if not (0.0 < target_acceptance < 1.0):
            raise InvalidParameter(f"target_acceptance must lie in (0, 1), got {target_acceptance!r}")
        if math.isnan(min_t0) or min_t0 == math.inf:
            raise InvalidParameter(f"min_t0 must be a finite number, got {min_t0!r}")

        self.samples = int(samples)
        self.target_acceptance = float(target_acceptance)
        self.min_t0 = max(0.0, float(min_t0))

    def __repr__(self) -> str:
        return (
            f"EnergyDistributionHeuristic(samples={self.samples}, "
            f"target_acceptance={self.target_acceptance}, min_t0={self.min_t0})"
        )

    def sample_energies(self, problem: AnnealingProblem, rng: random.Random) -> List[float]:
        """Draw `samples` random solutions and return their energies, ascending.

        NaN energies are recorded as +inf so that sorting stays well-defined.
        """

        energies: List[float] = []
        for i in range(self.samples):
            try:
                e = float(problem.energy(problem.random_solution(rng)))
            except AnnealingError:
                raise
            except Exception as exc:
                raise ProblemFault(f"problem failed while sampling energy {i}: {exc!r}") from exc
            energies.append(math.inf if math.isnan(e) else e)
        energies.sort()
        return energies

    def estimate(self, problem: AnnealingProblem, rng: random.Random) -> InitialTemperature:
        energies = self.sample_energies(problem, rng)

        median = median_sorted(energies)
        mad = median_absolute_deviation(energies, median)
        scale = MAD_NORMAL_CONSISTENCY * mad

        # Flat-ish landscape: MAD collapses, fall back to the IQR.
        delta_e = scale if scale > 0 else IQR_NORMAL_CONSISTENCY * iqr_sorted(energies)
        if delta_e <= 0:
            delta_e = 1.0

        t0 = -delta_e / math.log(self.target_acceptance)
        if not math.isfinite(t0) or t0 < self.min_t0 or t0 <= 0:
            t0 = max(self.min_t0, MIN_INITIAL_TEMPERATURE)

        logger.debug(
            "energy distribution: n=%d median=%.4g mad=%.4g dE=%.4g -> T0=%.4g",
            len(energies),
            median,
            mad,
            delta_e,
            t0,
        )
        return InitialTemperature(temperature=t0, median_energy=median, mad=mad, sample_count=len(energies))


class FixedTemperatureHeuristic:
    """Use a caller-chosen starting temperature; samples nothing."""

    def __init__(self, temperature: float) -> None:
        if not (math.isfinite(temperature) and temperature > 0):
            raise InvalidParameter(f"initial temperature must be finite and > 0, got {temperature!r}")
        self.temperature = float(temperature)

    def __repr__(self) -> str:
        return f"FixedTemperatureHeuristic(temperature={self.temperature})"

    def estimate(self, problem: AnnealingProblem, rng: random.Random) -> InitialTemperature:
        return InitialTemperature(temperature=self.temperature, median_energy=math.nan, mad=math.nan, sample_count=0)


def estimate_initial_temperature(
    problem: AnnealingProblem,
    rng: random.Random,
    samples: int = 300,
    target_acceptance: float = 0.8,
    min_t0: float = MIN_INITIAL_TEMPERATURE,
) -> InitialTemperature:
    """Functional form of `EnergyDistributionHeuristic.estimate`.

    Parameters are validated before the first sample is drawn.
    """

    heuristic = EnergyDistributionHeuristic(samples=samples, target_acceptance=target_acceptance, min_t0=min_t0)
    return heuristic.estimate(problem, rng)


__all__ = [
    "EnergyDistributionHeuristic",
    "FixedTemperatureHeuristic",
    "InitialTemperature",
    "MIN_INITIAL_TEMPERATURE",
    "TemperatureHeuristic",
    "estimate_initial_temperature",
]
