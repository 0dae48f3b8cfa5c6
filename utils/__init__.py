"""Tabular views of annealing runs (pandas)."""

from .state_table import results_to_frame, states_to_frame

__all__ = ["results_to_frame", "states_to_frame"]
