"""Exceptions raised by the annealing engine."""

from __future__ import annotations

from typing import Any, Optional, Tuple


class AnnealingError(Exception):
    """Base class for every error raised by the `annealing` package."""


class InvalidParameter(AnnealingError, ValueError):
    """A heuristic, schedule or engine parameter is outside its domain.

    Raised before any sampling or search starts.
    """


class NonFiniteEnergy(AnnealingError, ArithmeticError):
    """The initial solution has a NaN or infinite energy.

    Non-finite energies of candidate moves are not errors; those candidates
    are simply rejected.
    """


class ProblemFault(AnnealingError, RuntimeError):
    """A problem operation (random solution, neighbor, energy) raised.

    Attributes:
        last_state: the last valid `SimulatedAnnealingState`, or None when the
            failure happened before the first step.
        history: states collected by the caller's sink before the failure.
    """

    def __init__(self, message: str, last_state: Optional[Any] = None, history: Tuple[Any, ...] = ()) -> None:
        super().__init__(message)
        self.last_state = last_state
        self.history = tuple(history)


__all__ = ["AnnealingError", "InvalidParameter", "NonFiniteEnergy", "ProblemFault"]
