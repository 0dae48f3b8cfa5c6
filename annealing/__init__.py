"""Simulated annealing engine: problem contract, heuristics, schedules, runs."""

from .engine import (
    AnnealConfig,
    AnnealResult,
    Annealer,
    CancellationToken,
    RunPhase,
    SimulatedAnnealingState,
    acceptance_probability,
    anneal,
)
from .ensemble import best_result, run_ensemble
from .errors import AnnealingError, InvalidParameter, NonFiniteEnergy, ProblemFault
from .heuristics import (
    EnergyDistributionHeuristic,
    FixedTemperatureHeuristic,
    InitialTemperature,
    TemperatureHeuristic,
    estimate_initial_temperature,
)
from .problem import AnnealingProblem, DeltaEnergyProblem, FunctionProblem
from .schedules import (
    CoolingSchedule,
    ExponentialSchedule,
    GeometricSchedule,
    LinearSchedule,
    LogarithmicSchedule,
    ReheatingSchedule,
)

__all__ = [
    "AnnealConfig",
    "AnnealResult",
    "Annealer",
    "AnnealingError",
    "AnnealingProblem",
    "CancellationToken",
    "CoolingSchedule",
    "DeltaEnergyProblem",
    "EnergyDistributionHeuristic",
    "ExponentialSchedule",
    "FixedTemperatureHeuristic",
    "FunctionProblem",
    "GeometricSchedule",
    "InitialTemperature",
    "InvalidParameter",
    "LinearSchedule",
    "LogarithmicSchedule",
    "NonFiniteEnergy",
    "ProblemFault",
    "ReheatingSchedule",
    "RunPhase",
    "SimulatedAnnealingState",
    "TemperatureHeuristic",
    "acceptance_probability",
    "anneal",
    "best_result",
    "estimate_initial_temperature",
    "run_ensemble",
]
