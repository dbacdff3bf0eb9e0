"""Randomized ledger simulations."""

from .runner import LedgerSimulation, SimulationResult

__all__ = ["LedgerSimulation", "SimulationResult"]
