import random
import sys
from pathlib import Path

import pytest

# Ensure project root is on PYTHONPATH
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from annealing import AnnealConfig, ExponentialSchedule, InvalidParameter, anneal
from problems.box import BoxProblem, rastrigin, sphere


def test_objectives_vanish_at_origin():
    assert sphere((0.0, 0.0, 0.0)) == 0.0
    assert rastrigin((0.0, 0.0)) == pytest.approx(0.0)
    assert sphere((1.0, 2.0)) == 5.0


def test_random_solutions_and_neighbors_stay_in_bounds():
    problem = BoxProblem(objective=sphere, lower=(-1.0, 0.0, 10.0), upper=(1.0, 0.5, 10.0), neighbor_scale=1.0)
    rng = random.Random(4)

    x = problem.random_solution(rng)
    for _ in range(500):
        assert problem.contains(x)
        x = problem.neighbor(x, rng)

    # A zero-width dimension never moves.
    assert x[2] == 10.0


def test_bounds_are_normalized_to_float_tuples():
    problem = BoxProblem(objective=sphere, lower=[0, 0], upper=[1, 2])

    assert problem.lower == (0.0, 0.0)
    assert problem.upper == (1.0, 2.0)
    assert problem.dim == 2


@pytest.mark.parametrize(
    "kwargs",
    [
        {"lower": (), "upper": ()},
        {"lower": (0.0,), "upper": (1.0, 2.0)},
        {"lower": (2.0,), "upper": (1.0,)},
        {"lower": (float("-inf"),), "upper": (1.0,)},
        {"lower": (0.0,), "upper": (1.0,), "neighbor_scale": 0.0},
    ],
)
def test_invalid_boxes_are_rejected(kwargs):
    with pytest.raises(InvalidParameter):
        BoxProblem(objective=sphere, **kwargs)


def test_annealing_approaches_sphere_minimum():
    problem = BoxProblem(objective=sphere, lower=(-5.0, -5.0), upper=(5.0, 5.0), neighbor_scale=0.05)
    steps = 20_000

    result = anneal(
        problem,
        config=AnnealConfig(max_steps=steps, seed=21),
        schedule=ExponentialSchedule(steps=steps, t_end=1e-4),
    )

    assert result.best_energy < 0.05
    assert problem.contains(result.best_solution)
