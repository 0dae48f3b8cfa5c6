"""Simulated annealing engine.

The engine minimizes ``problem.energy`` over the space described by an
`AnnealingProblem` and streams its progress as immutable
`SimulatedAnnealingState` snapshots:

    annealer = Annealer(problem, AnnealConfig(max_steps=50_000, seed=7))
    for state in annealer.run():
        ...                      # render, log, or push to a queue
    result = annealer.result()

Each step proposes a neighbor of the current solution and applies the
Metropolis criterion: downhill moves (``delta <= 0``) are always accepted,
uphill moves with probability ``exp(-delta / T)``. The temperature comes from
a `CoolingSchedule` scaled by the initial temperature that a
`TemperatureHeuristic` estimated from the same random source.

Runs are sequential and fully determined by the problem, the configuration
and the seed: two runs with the same inputs emit identical state sequences.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from time import perf_counter
from typing import Any, Callable, Generic, Iterator, List, Optional, Tuple, TypeVar

import logging
import math
import random
import threading

from .errors import AnnealingError, InvalidParameter, NonFiniteEnergy, ProblemFault
from .heuristics import (
    EnergyDistributionHeuristic,
    FixedTemperatureHeuristic,
    InitialTemperature,
    TemperatureHeuristic,
)
from .problem import AnnealingProblem, DeltaEnergyProblem
from .schedules import CoolingSchedule, GeometricSchedule


logger = logging.getLogger("annealing.engine")

TState = TypeVar("TState")

# Temperatures at or below this are treated as zero: uphill moves are never accepted.
TEMPERATURE_FLOOR = 1e-12


class RunPhase(str, Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    CONVERGED = "converged"
    STEP_LIMIT_REACHED = "step_limit_reached"
    TIME_LIMIT_REACHED = "time_limit_reached"
    CANCELLED = "cancelled"
    TERMINATED = "terminated"
    FAILED = "failed"


TERMINAL_REASONS = frozenset(
    {
        RunPhase.CONVERGED,
        RunPhase.STEP_LIMIT_REACHED,
        RunPhase.TIME_LIMIT_REACHED,
        RunPhase.CANCELLED,
    }
)


@dataclass(frozen=True)
class AnnealConfig:
    """Engine configuration.

    Attributes:
        max_steps: Maximum number of annealing steps (0 runs no step at all).
        seed: Seed for the run's `random.Random`; None seeds from the OS.
        convergence_window: Stop as converged after this many steps without a
            strict improvement of the best energy. None disables the check.
        min_temperature: Stop as converged once the schedule's temperature is
            at or below this value. 0 disables the check.
        time_limit: Optional wall-clock limit in seconds.
        emit_every: Emit a state snapshot every N steps. The final state is
            always emitted.
        progress_every: Log progress every N steps (0 disables).
        initial_temperature: Fixed T0. When set, no energy sampling happens.
    """

    max_steps: int = 200_000
    seed: Optional[int] = 42
    convergence_window: Optional[int] = None
    min_temperature: float = 0.0
    time_limit: Optional[float] = None
    emit_every: int = 1
    progress_every: int = 0
    initial_temperature: Optional[float] = None

    def __post_init__(self) -> None:
        if self.max_steps < 0:
            raise InvalidParameter(f"max_steps must be >= 0, got {self.max_steps!r}")
        if self.convergence_window is not None and self.convergence_window < 1:
            raise InvalidParameter(f"convergence_window must be >= 1, got {self.convergence_window!r}")
        if not (math.isfinite(self.min_temperature) and self.min_temperature >= 0):
            raise InvalidParameter(f"min_temperature must be finite and >= 0, got {self.min_temperature!r}")
        if self.time_limit is not None and not self.time_limit > 0:
            raise InvalidParameter(f"time_limit must be > 0 seconds, got {self.time_limit!r}")
        if self.emit_every < 1:
            raise InvalidParameter(f"emit_every must be >= 1, got {self.emit_every!r}")
        if self.progress_every < 0:
            raise InvalidParameter(f"progress_every must be >= 0, got {self.progress_every!r}")
        if self.initial_temperature is not None and not (
            math.isfinite(self.initial_temperature) and self.initial_temperature > 0
        ):
            raise InvalidParameter(
                f"initial_temperature must be finite and > 0, got {self.initial_temperature!r}"
            )


@dataclass(frozen=True)
class SimulatedAnnealingState:
    """Snapshot of a run after `step` completed steps.

    `reason` is None for regular snapshots; the last snapshot of a run carries
    the terminal phase that ended it.
    """

    step: int
    temperature: float
    current_energy: float
    best_energy: float
    accepted_moves: int
    uphill_accepted_moves: int
    reason: Optional[RunPhase] = None

    @property
    def is_final(self) -> bool:
        return self.reason is not None

    @property
    def acceptance_ratio(self) -> float:
        return self.accepted_moves / self.step if self.step else 0.0


@dataclass(frozen=True)
class AnnealResult(Generic[TState]):
    best_solution: TState
    best_energy: float
    best_step: int
    accepted_moves: int
    uphill_accepted_moves: int
    total_steps: int
    reason: RunPhase
    initial_temperature: InitialTemperature
    final_state: SimulatedAnnealingState


class CancellationToken:
    """Run-scoped cancellation flag, safe to raise from any thread.

    A token created with a `parent` also reads as cancelled once the parent is;
    cancelling the child leaves the parent untouched.
    """

    def __init__(self, parent: Optional["CancellationToken"] = None) -> None:
        self._event = threading.Event()
        self._parent = parent

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled


def acceptance_probability(delta: float, temperature: float) -> float:
    """Metropolis acceptance probability of a move changing energy by `delta`."""

    if delta <= 0:
        return 1.0
    if not temperature > TEMPERATURE_FLOOR or math.isinf(delta):
        return 0.0
    return math.exp(-delta / temperature)


def metropolis_accept(delta: float, temperature: float, rng: random.Random) -> bool:
    """Decide a move with the Metropolis criterion.

    Downhill moves are accepted without touching `rng`; every uphill move
    consumes exactly one uniform draw, even when its probability is 0 or 1.
    """

    if delta <= 0:
        return True
    return rng.random() < acceptance_probability(delta, temperature)


class Annealer(Generic[TState]):
    """One simulated annealing run over `problem`.

    Args:
        problem: search space (random solutions, neighbors, energy).
        config: step/time limits, convergence window, emission cadence, seed.
        schedule: cooling schedule; defaults to a `GeometricSchedule` fitted to
            `config.max_steps` (see `GeometricSchedule.for_budget`).
        heuristic: initial-temperature heuristic; defaults to
            `EnergyDistributionHeuristic()`, or to a fixed temperature when
            `config.initial_temperature` is set.
        rng: random source; defaults to ``random.Random(config.seed)``.
        cancel: cancellation token, checked once per step.

    Raises:
        InvalidParameter: `config.initial_temperature` combined with an
            explicit heuristic, or a missing problem.
    """

    def __init__(
        self,
        problem: AnnealingProblem[TState],
        config: AnnealConfig = AnnealConfig(),
        schedule: Optional[CoolingSchedule] = None,
        heuristic: Optional[TemperatureHeuristic] = None,
        rng: Optional[random.Random] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> None:
        if problem is None:
            raise InvalidParameter("problem is required")
        if config.initial_temperature is not None and heuristic is not None:
            raise InvalidParameter("pass either config.initial_temperature or a heuristic, not both")

        if heuristic is None:
            if config.initial_temperature is not None:
                heuristic = FixedTemperatureHeuristic(config.initial_temperature)
            else:
                heuristic = EnergyDistributionHeuristic()

        self.problem = problem
        self._uses_delta = isinstance(problem, DeltaEnergyProblem)
        self.config = config
        self.schedule: CoolingSchedule = (
            schedule if schedule is not None else GeometricSchedule.for_budget(config.max_steps)
        )
        self.heuristic: TemperatureHeuristic = heuristic
        self.rng = rng if rng is not None else random.Random(config.seed)
        self.cancel = cancel if cancel is not None else CancellationToken()

        self.phase = RunPhase.INITIALIZING
        self.reason: Optional[RunPhase] = None
        self.initial_temperature: Optional[InitialTemperature] = None
        self.best_solution: Optional[TState] = None
        self.best_step = 0
        self.last_state: Optional[SimulatedAnnealingState] = None
        self._started = False

    # ----------------------------
    # Public API
    # ----------------------------

    def run(self) -> Iterator[SimulatedAnnealingState]:
        """Start the run and return its state stream.

        The stream is lazy: no work happens until it is iterated. It can be
        consumed only once; a second call raises `RuntimeError`.
        """

        if self._started:
            raise RuntimeError("an Annealer can only be run once")
        self._started = True
        return self._run()

    def result(self) -> AnnealResult[TState]:
        if self.phase is not RunPhase.TERMINATED:
            raise RuntimeError(f"run has not terminated (phase={self.phase.value})")

        final = self.last_state
        return AnnealResult(
            best_solution=self.best_solution,
            best_energy=final.best_energy,
            best_step=self.best_step,
            accepted_moves=final.accepted_moves,
            uphill_accepted_moves=final.uphill_accepted_moves,
            total_steps=final.step,
            reason=self.reason,
            initial_temperature=self.initial_temperature,
            final_state=final,
        )

    # ----------------------------
    # Loop
    # ----------------------------

    def _run(self) -> Iterator[SimulatedAnnealingState]:
        cfg = self.config
        rng = self.rng

        it = self._call("temperature heuristic", self.heuristic.estimate, self.problem, rng)
        self.initial_temperature = it
        t0 = it.temperature
        logger.info(
            "Initial temperature estimated: T0=%.4g (medianE=%.4g, MAD=%.4g, n=%d)",
            t0,
            it.median_energy,
            it.mad,
            it.sample_count,
        )

        current = self._call("random_solution", self.problem.random_solution, rng)
        current_e = self._energy(current)
        if not math.isfinite(current_e):
            self.phase = RunPhase.FAILED
            raise NonFiniteEnergy(f"initial solution has non-finite energy {current_e!r}")

        best_e = current_e
        self.best_solution = current
        self.best_step = 0

        step = 0
        accepted = 0
        uphill = 0
        last_improvement = 0
        start = perf_counter()
        temperature = self.schedule.temperature(0, t0)

        self.last_state = SimulatedAnnealingState(0, temperature, current_e, best_e, 0, 0)
        self.phase = RunPhase.RUNNING
        logger.info("Annealing started: E0=%.4g, max_steps=%d", current_e, cfg.max_steps)

        while True:
            reason = self._termination_reason(step, temperature, start, last_improvement)
            if reason is not None:
                break

            neighbor, neighbor_e = self._propose(current, current_e)
            delta = neighbor_e - current_e

            if metropolis_accept(delta, temperature, rng):
                current = neighbor
                current_e = neighbor_e
                accepted += 1
                if delta > 0:
                    uphill += 1
                if self._uses_delta and current_e < best_e:
                    # Accumulated deltas drift; a new best is re-evaluated exactly.
                    current_e = self._energy(current)
                if current_e < best_e:
                    best_e = current_e
                    self.best_solution = current
                    self.best_step = step + 1
                    last_improvement = step + 1

            step += 1
            state = SimulatedAnnealingState(
                step=step,
                temperature=temperature,
                current_energy=current_e,
                best_energy=best_e,
                accepted_moves=accepted,
                uphill_accepted_moves=uphill,
            )
            self.last_state = state

            if cfg.progress_every and step % cfg.progress_every == 0:
                logger.debug(
                    "step=%d T=%.4g E=%.4g best=%.4g acc=%d up=%d",
                    step,
                    temperature,
                    current_e,
                    best_e,
                    accepted,
                    uphill,
                )
            if step % cfg.emit_every == 0:
                yield state

            temperature = self.schedule.temperature(step, t0)

        self.reason = reason
        final = replace(self.last_state, reason=reason)
        self.last_state = final
        self.phase = RunPhase.TERMINATED
        logger.info(
            "Annealing finished (%s): steps=%d best=%.4g accepted=%d uphill=%d",
            reason.value,
            final.step,
            final.best_energy,
            final.accepted_moves,
            final.uphill_accepted_moves,
        )
        yield final

    def _termination_reason(
        self,
        step: int,
        temperature: float,
        start: float,
        last_improvement: int,
    ) -> Optional[RunPhase]:
        cfg = self.config
        if self.cancel.cancelled:
            return RunPhase.CANCELLED
        if step >= cfg.max_steps:
            return RunPhase.STEP_LIMIT_REACHED
        if cfg.time_limit is not None and (perf_counter() - start) >= cfg.time_limit:
            return RunPhase.TIME_LIMIT_REACHED
        if cfg.convergence_window is not None and step - last_improvement >= cfg.convergence_window:
            return RunPhase.CONVERGED
        if cfg.min_temperature > 0 and temperature <= cfg.min_temperature:
            return RunPhase.CONVERGED
        return None

    # ----------------------------
    # Problem calls
    # ----------------------------

    def _propose(self, current: TState, current_e: float) -> Tuple[TState, float]:
        """Return a neighbor and its energy; non-finite energies become +inf."""

        if self._uses_delta:
            neighbor, delta = self._call("propose", self.problem.propose, current, self.rng)
            neighbor_e = current_e + self._call("propose", float, delta)
        else:
            neighbor = self._call("neighbor", self.problem.neighbor, current, self.rng)
            neighbor_e = self._energy(neighbor)

        if not math.isfinite(neighbor_e):
            return neighbor, math.inf
        return neighbor, neighbor_e

    def _energy(self, solution: TState) -> float:
        value = self._call("energy", self.problem.energy, solution)
        return self._call("energy", float, value)

    def _call(self, what: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except AnnealingError:
            self.phase = RunPhase.FAILED
            raise
        except Exception as exc:
            self.phase = RunPhase.FAILED
            logger.error("Problem %s failed at step %s: %r", what, self._last_step(), exc)
            raise ProblemFault(f"problem {what} failed: {exc!r}", last_state=self.last_state) from exc

    def _last_step(self) -> Optional[int]:
        return self.last_state.step if self.last_state is not None else None


def anneal(
    problem: AnnealingProblem[TState],
    config: AnnealConfig = AnnealConfig(),
    schedule: Optional[CoolingSchedule] = None,
    heuristic: Optional[TemperatureHeuristic] = None,
    *,
    rng: Optional[random.Random] = None,
    cancel: Optional[CancellationToken] = None,
    callback: Optional[Callable[[SimulatedAnnealingState], None]] = None,
    record_history: bool = False,
) -> AnnealResult[TState]:
    """Run simulated annealing to completion.

    Contract:
    - Minimizes `problem.energy`
    - `callback`, when given, receives every emitted state synchronously
    - With `record_history`, a `ProblemFault` carries the states seen so far

    Returns:
        AnnealResult with the best solution and run metrics.
    """

    annealer = Annealer(problem, config=config, schedule=schedule, heuristic=heuristic, rng=rng, cancel=cancel)
    history: List[SimulatedAnnealingState] = []
    try:
        for state in annealer.run():
            if record_history:
                history.append(state)
            if callback is not None:
                callback(state)
    except ProblemFault as exc:
        exc.history = tuple(history)
        raise

    return annealer.result()


__all__ = [
    "AnnealConfig",
    "AnnealResult",
    "Annealer",
    "CancellationToken",
    "RunPhase",
    "SimulatedAnnealingState",
    "TEMPERATURE_FLOOR",
    "TERMINAL_REASONS",
    "acceptance_probability",
    "anneal",
    "metropolis_accept",
]
