"""Independent restarts run concurrently.

Every run owns its random source, schedule and heuristic; only the problem is
shared, so the problem's operations must be reentrant (see `annealing.problem`).
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, List, Optional, Sequence, TypeVar

import logging
import random

from .engine import AnnealConfig, AnnealResult, CancellationToken, anneal
from .errors import InvalidParameter
from .heuristics import TemperatureHeuristic
from .problem import AnnealingProblem
from .schedules import CoolingSchedule


logger = logging.getLogger("annealing.ensemble")

TState = TypeVar("TState")


def run_ensemble(
    problem: AnnealingProblem[TState],
    seeds: Sequence[int],
    config: AnnealConfig = AnnealConfig(),
    schedule_factory: Optional[Callable[[], CoolingSchedule]] = None,
    heuristic_factory: Optional[Callable[[], TemperatureHeuristic]] = None,
    max_workers: Optional[int] = None,
    cancel: Optional[CancellationToken] = None,
) -> List[AnnealResult[TState]]:
    """Anneal `problem` once per seed and return the results in seed order.

    Each run uses ``random.Random(seed)`` and a copy of `config` with that seed,
    so a given seed reproduces the same result whether it runs alone or inside
    an ensemble. A shared `cancel` token stops every run, and the first run that
    raises cancels the others before its error propagates.

    Raises:
        InvalidParameter: empty or duplicated seeds, or ``max_workers < 1``.
    """

    seeds = list(seeds)
    if not seeds:
        raise InvalidParameter("an ensemble needs at least one seed")
    if len(set(seeds)) != len(seeds):
        raise InvalidParameter("ensemble seeds must be unique")
    if max_workers is not None and max_workers < 1:
        raise InvalidParameter(f"max_workers must be >= 1, got {max_workers!r}")

    # Stops the remaining runs once one of them fails.
    stop = CancellationToken(parent=cancel)

    def run_one(seed: int) -> AnnealResult[TState]:
        try:
            return anneal(
                problem,
                config=replace(config, seed=seed),
                schedule=schedule_factory() if schedule_factory is not None else None,
                heuristic=heuristic_factory() if heuristic_factory is not None else None,
                rng=random.Random(seed),
                cancel=stop,
            )
        except Exception:
            logger.error("Ensemble run with seed %d failed; cancelling the other runs", seed)
            stop.cancel()
            raise

    logger.info("Running ensemble of %d annealing runs", len(seeds))
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(run_one, seeds))

    best = best_result(results)
    logger.info("Ensemble finished: best energy %.4g", best.best_energy)
    return results


def best_result(results: Sequence[AnnealResult[TState]]) -> AnnealResult[TState]:
    """Lowest best energy; the earliest result wins ties."""

    if not results:
        raise InvalidParameter("no results to choose from")
    best = results[0]
    for r in results[1:]:
        if r.best_energy < best.best_energy:
            best = r
    return best


__all__ = ["best_result", "run_ensemble"]
