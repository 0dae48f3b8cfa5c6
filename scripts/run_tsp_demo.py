"""Demo runner: anneal a random TSP instance without any UI.

Prints the estimated initial temperature, periodic progress lines and a final
summary table. Optionally runs several seeds as an ensemble.

Usage (PowerShell):
    python scripts\\run_tsp_demo.py --cities 60 --river --seed 12345

"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence
import argparse
import logging
import random
import sys

import pandas as pd

# Ensure project root is on PYTHONPATH when running as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from annealing import (
    AnnealConfig,
    EnergyDistributionHeuristic,
    GeometricSchedule,
    SimulatedAnnealingState,
    anneal,
    best_result,
    run_ensemble,
)
from problems.tsp import TspProblem, make_random_model
from utils.state_table import results_to_frame, states_to_frame


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Headless simulated annealing on a random TSP instance")
    parser.add_argument("--cities", type=int, default=60, help="number of cities (>= 4)")
    parser.add_argument("--seed", type=int, default=12345, help="seed for the city layout and the run")
    parser.add_argument("--steps", type=int, default=200_000, help="maximum annealing steps")
    parser.add_argument("--river", action="store_true", help="add a river with a crossing penalty")
    parser.add_argument("--river-penalty", type=float, default=0.35)
    parser.add_argument(
        "--alpha",
        type=float,
        default=None,
        help="geometric cooling factor (default: fitted so the last step runs at 1e-3 * T0)",
    )
    parser.add_argument("--steps-per-temperature", type=int, default=None, help="steps held at each temperature")
    parser.add_argument("--progress-every", type=int, default=20_000, help="print progress every N steps")
    parser.add_argument(
        "--ensemble",
        type=int,
        default=0,
        help="run this many seeds (seed, seed+1, ...) concurrently instead of a single run",
    )
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    model = make_random_model(
        args.cities,
        random.Random(args.seed),
        include_river=args.river,
        river_penalty=args.river_penalty,
    )
    problem = TspProblem(model)

    config = AnnealConfig(max_steps=args.steps, seed=args.seed)

    def schedule_factory() -> GeometricSchedule:
        if args.alpha is None and args.steps_per_temperature is None:
            return GeometricSchedule.for_budget(args.steps)
        return GeometricSchedule(
            alpha=args.alpha if args.alpha is not None else 0.997,
            steps_per_temperature=args.steps_per_temperature if args.steps_per_temperature is not None else 200,
        )

    def heuristic_factory() -> EnergyDistributionHeuristic:
        return EnergyDistributionHeuristic(samples=300, target_acceptance=0.80, min_t0=1e-6)

    if args.ensemble > 0:
        seeds = [args.seed + i for i in range(args.ensemble)]
        results = run_ensemble(
            problem,
            seeds,
            config=config,
            schedule_factory=schedule_factory,
            heuristic_factory=heuristic_factory,
        )
        print("\n=== Ensemble ===")
        print(results_to_frame(results, seeds).to_string(index=False))
        best = best_result(results)
        print(f"\nBEST: {best.best_energy:.4g} (seed {seeds[results.index(best)]})")
        return

    progress = []

    def on_state(state: SimulatedAnnealingState) -> None:
        if state.is_final or (args.progress_every > 0 and state.step % args.progress_every == 0):
            progress.append(state)
            print(
                f"step={state.step}  T={state.temperature:.4g}  E={state.current_energy:.4g}  "
                f"best={state.best_energy:.4g}  acc={state.accepted_moves}  up={state.uphill_accepted_moves}"
            )

    result = anneal(
        problem,
        config=config,
        schedule=schedule_factory(),
        heuristic=heuristic_factory(),
        callback=on_state,
    )

    print("\n=== Progress ===")
    print(states_to_frame(progress).to_string(index=False))

    print("\n=== Result ===")
    summary = pd.Series(
        {
            "reason": result.reason.value,
            "T0": result.initial_temperature.temperature,
            "median_energy": result.initial_temperature.median_energy,
            "mad": result.initial_temperature.mad,
            "best_energy": result.best_energy,
            "best_step": result.best_step,
            "steps": result.total_steps,
            "accepted": result.accepted_moves,
            "uphill": result.uphill_accepted_moves,
        }
    )
    print(summary.to_string())
    print("\nBest tour:", list(result.best_solution))


if __name__ == "__main__":
    main()
