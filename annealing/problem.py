"""Problem contract consumed by the annealing engine.

A problem describes a search space through three capabilities:

- ``random_solution(rng)``: an independent starting point, reproducible for a
  seeded `random.Random`;
- ``neighbor(solution, rng)``: a perturbed copy of `solution`. It must return
  a new value and leave its argument untouched, because the engine keeps the
  current and best solutions by reference;
- ``energy(solution)``: a deterministic scalar cost, lower is better.

Problems may additionally implement ``propose(solution, rng)`` returning the
neighbor together with its energy difference, when that difference is much
cheaper to compute than a full `energy` call (e.g. a 2-opt move on a tour).

None of these operations may rely on external synchronization: the engine
calls them synchronously from its loop, and several runs may share a problem.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Protocol, Tuple, TypeVar, runtime_checkable

import random


S = TypeVar("S")


@runtime_checkable
class AnnealingProblem(Protocol[S]):
    def random_solution(self, rng: random.Random) -> S:  # pragma: no cover
        """Return a random starting solution."""

    def neighbor(self, solution: S, rng: random.Random) -> S:  # pragma: no cover
        """Return a randomly sampled neighbor of `solution`."""

    def energy(self, solution: S) -> float:  # pragma: no cover
        """Return energy/cost to MINIMIZE."""


@runtime_checkable
class DeltaEnergyProblem(AnnealingProblem[S], Protocol[S]):
    def propose(self, solution: S, rng: random.Random) -> Tuple[S, float]:  # pragma: no cover
        """Return ``(neighbor, energy(neighbor) - energy(solution))``."""


class RandomSolutionFn(Protocol[S]):
    def __call__(self, rng: random.Random) -> S:  # pragma: no cover
        """Return a random starting solution."""


class NeighborFn(Protocol[S]):
    def __call__(self, state: S, rng: random.Random) -> S:  # pragma: no cover
        """Return a randomly sampled neighbor of `state`."""


class EnergyFn(Protocol[S]):
    def __call__(self, state: S) -> float:  # pragma: no cover
        """Return energy/cost to MINIMIZE."""


@dataclass(frozen=True)
class FunctionProblem(Generic[S]):
    """Build a problem out of three plain callables.

    Handy for small search spaces where a dedicated class would be noise:

        problem = FunctionProblem(
            random_solution_fn=lambda rng: rng.randint(-50, 50),
            neighbor_fn=lambda x, rng: x + rng.choice((-1, 1)),
            energy_fn=lambda x: float((x - 3) ** 2),
        )
    """

    random_solution_fn: RandomSolutionFn[S]
    neighbor_fn: NeighborFn[S]
    energy_fn: EnergyFn[S]

    def random_solution(self, rng: random.Random) -> S:
        return self.random_solution_fn(rng)

    def neighbor(self, solution: S, rng: random.Random) -> S:
        return self.neighbor_fn(solution, rng)

    def energy(self, solution: S) -> float:
        return self.energy_fn(solution)


__all__ = [
    "AnnealingProblem",
    "DeltaEnergyProblem",
    "EnergyFn",
    "FunctionProblem",
    "NeighborFn",
    "RandomSolutionFn",
]
