"""pandas views of annealing runs.

Converts streamed `SimulatedAnnealingState` snapshots and finished
`AnnealResult`s into DataFrames for progress tables and ensemble summaries.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

import pandas as pd

from annealing import AnnealResult, SimulatedAnnealingState


STATE_COLUMNS = [
    "step",
    "temperature",
    "current_energy",
    "best_energy",
    "accepted_moves",
    "uphill_accepted_moves",
    "acceptance_ratio",
    "reason",
]


def states_to_frame(states: Iterable[SimulatedAnnealingState]) -> pd.DataFrame:
    """One row per state snapshot, suitable for progress tables and plots.

    `reason` is empty for regular snapshots and holds the terminal reason
    (e.g. ``"step_limit_reached"``) on the final one.
    """

    rows = [
        {
            "step": s.step,
            "temperature": s.temperature,
            "current_energy": s.current_energy,
            "best_energy": s.best_energy,
            "accepted_moves": s.accepted_moves,
            "uphill_accepted_moves": s.uphill_accepted_moves,
            "acceptance_ratio": s.acceptance_ratio,
            "reason": s.reason.value if s.reason is not None else "",
        }
        for s in states
    ]
    return pd.DataFrame(rows, columns=STATE_COLUMNS)


def results_to_frame(results: Sequence[AnnealResult], seeds: Optional[Sequence[int]] = None) -> pd.DataFrame:
    """Summarize finished runs (e.g. an ensemble), one row per run."""

    if seeds is not None and len(seeds) != len(results):
        raise ValueError("seeds length must equal results length")

    rows = []
    for idx, r in enumerate(results):
        rows.append(
            {
                "run": idx,
                "seed": seeds[idx] if seeds is not None else None,
                "best_energy": r.best_energy,
                "best_step": r.best_step,
                "total_steps": r.total_steps,
                "accepted_moves": r.accepted_moves,
                "uphill_accepted_moves": r.uphill_accepted_moves,
                "initial_temperature": r.initial_temperature.temperature,
                "reason": r.reason.value,
            }
        )
    return pd.DataFrame(rows)


__all__ = ["STATE_COLUMNS", "results_to_frame", "states_to_frame"]
