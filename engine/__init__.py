"""
Cohort engine — Markov cohort simulator, per-cycle schedule builder, strategy/PSA runner.
"""

from .cohort import CohortInputs, CohortSimulator, CycleOutcome, SimulationResult, simulate_cohort
from .runner import PSAResults, Strategy, run_psa, run_strategies
from .schedule import ScheduleSegment, expand_schedule

__all__ = [
    "CohortInputs",
    "CohortSimulator",
    "CycleOutcome",
    "SimulationResult",
    "simulate_cohort",
    "PSAResults",
    "Strategy",
    "run_psa",
    "run_strategies",
    "ScheduleSegment",
    "expand_schedule",
]
