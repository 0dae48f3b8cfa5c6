import math
import random
import sys
from pathlib import Path

import pytest

# Ensure project root is on PYTHONPATH
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from annealing import (
    EnergyDistributionHeuristic,
    FixedTemperatureHeuristic,
    FunctionProblem,
    InvalidParameter,
    ProblemFault,
    estimate_initial_temperature,
)


class ScriptedProblem:
    """Random solutions are scripted values; a solution's energy is its value."""

    def __init__(self, values):
        self.values = list(values)
        self.index = 0
        self.energy_calls = 0
        self.random_calls = 0

    def random_solution(self, rng):
        self.random_calls += 1
        value = self.values[self.index % len(self.values)]
        self.index += 1
        return value

    def neighbor(self, solution, rng):
        return solution

    def energy(self, solution):
        self.energy_calls += 1
        return float(solution)


def gaussian_problem(scale):
    return FunctionProblem(
        random_solution_fn=lambda rng: rng.gauss(0.0, scale),
        neighbor_fn=lambda x, rng: x + rng.gauss(0.0, 1.0),
        energy_fn=lambda x: x * x,
    )


def test_one_to_ten_sample():
    problem = ScriptedProblem([7, 3, 10, 1, 5, 2, 9, 4, 8, 6])

    it = estimate_initial_temperature(problem, random.Random(0), samples=10, target_acceptance=0.8, min_t0=0.0)

    assert it.median_energy == 5.5
    assert it.mad == 2.5
    assert it.sample_count == 10
    assert it.temperature == pytest.approx(1.4826 * 2.5 / -math.log(0.8))


def test_flat_landscape_falls_back_to_unit_gap():
    problem = ScriptedProblem([5] * 20)

    it = estimate_initial_temperature(problem, random.Random(0), samples=20, target_acceptance=0.8)

    assert it.mad == 0.0
    assert it.median_energy == 5.0
    assert it.temperature == pytest.approx(4.4814, abs=1e-4)


def test_zero_mad_uses_iqr_fallback():
    problem = ScriptedProblem([0, 0, 0, 0, 0, 0, 1, 2, 3, 4])

    it = estimate_initial_temperature(problem, random.Random(0), samples=10, target_acceptance=0.5)

    assert it.mad == 0.0
    assert it.temperature == pytest.approx(0.7413 * 1.75 / -math.log(0.5))


def test_too_few_samples_fails_before_any_evaluation():
    problem = ScriptedProblem(range(100))

    with pytest.raises(InvalidParameter):
        estimate_initial_temperature(problem, random.Random(0), samples=5)

    assert problem.energy_calls == 0
    assert problem.random_calls == 0


@pytest.mark.parametrize("target", [0.0, 1.0, -0.2, 1.3, float("nan")])
def test_target_acceptance_must_be_inside_unit_interval(target):
    with pytest.raises(InvalidParameter):
        EnergyDistributionHeuristic(samples=10, target_acceptance=target)


def test_negative_min_t0_is_treated_as_zero():
    assert EnergyDistributionHeuristic(samples=10, min_t0=-3.0).min_t0 == 0.0


def test_low_estimate_is_clamped_to_min_t0():
    problem = ScriptedProblem(range(1, 11))

    it = estimate_initial_temperature(problem, random.Random(0), samples=10, target_acceptance=0.01, min_t0=5.0)

    assert it.temperature == 5.0
    # The diagnostics still describe the sample.
    assert it.median_energy == 5.5


@pytest.mark.parametrize("seed", range(5))
@pytest.mark.parametrize("target", [0.05, 0.5, 0.8, 0.99])
@pytest.mark.parametrize("min_t0", [0.0, 1e-3, 10.0])
def test_temperature_is_finite_positive_and_above_floor(seed, target, min_t0):
    problem = gaussian_problem(scale=1.0 + seed)

    it = estimate_initial_temperature(
        problem, random.Random(seed), samples=10 + 7 * seed, target_acceptance=target, min_t0=min_t0
    )

    assert math.isfinite(it.temperature)
    assert it.temperature > 0
    assert it.temperature >= min_t0


def test_same_seed_gives_identical_estimates():
    problem = gaussian_problem(scale=3.0)
    heuristic = EnergyDistributionHeuristic(samples=50, target_acceptance=0.7)

    first = heuristic.estimate(problem, random.Random(123))
    second = heuristic.estimate(problem, random.Random(123))

    assert first == second


def test_non_finite_energies_still_give_a_usable_temperature():
    problem = ScriptedProblem([float("nan"), float("inf"), 1, 2] * 5)

    it = estimate_initial_temperature(problem, random.Random(0), samples=20, min_t0=0.5)

    assert math.isfinite(it.temperature)
    assert it.temperature >= 0.5


def test_mostly_infinite_energies_are_clamped():
    problem = ScriptedProblem([float("inf")] * 9 + [1.0])

    it = estimate_initial_temperature(problem, random.Random(0), samples=10, min_t0=0.0)

    assert it.temperature == 1e-6


def test_problem_errors_surface_as_problem_fault():
    def broken(rng):
        raise KeyError("boom")

    problem = FunctionProblem(random_solution_fn=broken, neighbor_fn=lambda x, rng: x, energy_fn=float)

    with pytest.raises(ProblemFault) as info:
        estimate_initial_temperature(problem, random.Random(0), samples=10)

    assert isinstance(info.value.__cause__, KeyError)


def test_fixed_temperature_samples_nothing():
    problem = ScriptedProblem([1, 2, 3])

    it = FixedTemperatureHeuristic(2.5).estimate(problem, random.Random(0))

    assert it.temperature == 2.5
    assert it.sample_count == 0
    assert math.isnan(it.median_energy)
    assert problem.energy_calls == 0


@pytest.mark.parametrize("temperature", [0.0, -1.0, float("inf"), float("nan")])
def test_fixed_temperature_must_be_positive_and_finite(temperature):
    with pytest.raises(InvalidParameter):
        FixedTemperatureHeuristic(temperature)
