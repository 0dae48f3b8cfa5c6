"""Travelling salesman problem on the unit square.

Cities are random points in ``[0, 1) x [0, 1)``. Optionally a vertical "river"
at ``x = river_x`` splits the square and every edge crossing it pays an extra
`river_penalty`, which makes the landscape more rugged than plain Euclidean TSP.

Tours are tuples of city indices (a closed loop). Moves are 2-opt segment
reversals; their energy change only depends on the two replaced edges, so
`TspProblem.propose` reports it in O(1) and the engine never recomputes the
full tour length during a run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import math
import random

from annealing import InvalidParameter


Tour = Tuple[int, ...]

MIN_CITIES = 4


# ----------------------------
# Model
# ----------------------------


@dataclass(frozen=True)
class TspModel:
    cities: Tuple[Tuple[float, float], ...]
    river_x: Optional[float] = None
    river_penalty: float = 0.0

    @property
    def city_count(self) -> int:
        return len(self.cities)

    @property
    def has_river(self) -> bool:
        return self.river_x is not None

    def crosses_river(self, city_a: int, city_b: int) -> bool:
        if self.river_x is None:
            return False
        xa = self.cities[city_a][0]
        xb = self.cities[city_b][0]
        return (xa < self.river_x < xb) or (xb < self.river_x < xa)

    def distance(self, city_a: int, city_b: int) -> float:
        (xa, ya), (xb, yb) = self.cities[city_a], self.cities[city_b]
        d = math.hypot(xa - xb, ya - yb)
        if self.crosses_river(city_a, city_b):
            d += self.river_penalty
        return d


def make_random_model(
    city_count: int,
    rng: random.Random,
    include_river: bool = False,
    river_penalty: float = 0.35,
) -> TspModel:
    """Scatter `city_count` cities; the river (if any) lies in the middle half."""

    if city_count < MIN_CITIES:
        raise InvalidParameter(f"city_count must be >= {MIN_CITIES}, got {city_count!r}")
    if river_penalty < 0:
        raise InvalidParameter(f"river_penalty must be >= 0, got {river_penalty!r}")

    river_x = 0.25 + rng.random() * 0.5 if include_river else None
    cities = tuple((rng.random(), rng.random()) for _ in range(city_count))
    return TspModel(cities=cities, river_x=river_x, river_penalty=river_penalty if include_river else 0.0)


# ----------------------------
# Annealing problem
# ----------------------------


class TspProblem:
    """Closed-tour TSP over a fixed model. Read-only, so runs may share it."""

    def __init__(self, model: TspModel) -> None:
        if model.city_count < MIN_CITIES:
            raise InvalidParameter(f"a TSP needs at least {MIN_CITIES} cities, got {model.city_count}")
        self.model = model
        n = model.city_count
        self._dist: List[List[float]] = [[model.distance(a, b) for b in range(n)] for a in range(n)]

    def edge_length(self, city_a: int, city_b: int) -> float:
        return self._dist[city_a][city_b]

    def random_solution(self, rng: random.Random) -> Tour:
        tour = list(range(self.model.city_count))
        rng.shuffle(tour)
        return tuple(tour)

    def energy(self, tour: Tour) -> float:
        n = len(tour)
        return sum(self._dist[tour[i]][tour[(i + 1) % n]] for i in range(n))

    def neighbor(self, tour: Tour, rng: random.Random) -> Tour:
        return self.propose(tour, rng)[0]

    def propose(self, tour: Tour, rng: random.Random) -> Tuple[Tour, float]:
        """Reverse a random segment ``tour[i..k]`` (2-opt) and report the energy change."""

        n = len(tour)
        i, k = self._pick_segment(n, rng)

        a = tour[(i - 1) % n]
        b = tour[i]
        c = tour[k]
        d = tour[(k + 1) % n]

        dist = self._dist
        delta = (dist[a][c] + dist[b][d]) - (dist[a][b] + dist[c][d])
        reversed_tour = tour[:i] + tour[i : k + 1][::-1] + tour[k + 1 :]
        return reversed_tour, delta

    @staticmethod
    def _pick_segment(n: int, rng: random.Random) -> Tuple[int, int]:
        # Reject segments that leave the tour unchanged (adjacent or whole-tour).
        while True:
            i = rng.randrange(n)
            k = rng.randrange(n)
            if i > k:
                i, k = k, i
            if k > i + 1 and not (i == 0 and k == n - 1):
                return i, k


__all__ = ["MIN_CITIES", "Tour", "TspModel", "TspProblem", "make_random_model"]
