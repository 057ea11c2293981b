"""
Markov cohort simulator — propagates a population vector through per-cycle
transition matrices and accrues discounted costs and effects.

For cycle t = 1..N:
    z_t      = z_{t-1} · P_t
    cost_t   = dot(z_t, costs_t)   / (1 + r)^t
    effect_t = dot(z_t, effects_t) [/ (1 + r)^t if discount_effects]

Inputs may be constant (one matrix / one vector, replicated for every cycle)
or explicit per-cycle sequences. Sequences must already have exactly N
entries: use engine.schedule.expand_schedule() to build them. Nothing is
repeated or truncated implicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

import numpy as np
import pandas as pd

from core.config import SimulationConfig
from core.errors import DimensionMismatch, InvalidParameter
from core.schema import TRACE_COLUMNS, StateSpace
from core.utils import discount_factors
from data_prep.validators import (
    check_state_values,
    check_state_vector,
    check_transition_matrices,
    is_per_cycle,
)

logger = logging.getLogger(__name__)


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class CohortInputs:
    """Everything one simulation run needs, bundled for strategies and PSA."""
    initial_state: np.ndarray
    transitions: np.ndarray   # (S, S) or (N, S, S)
    costs: np.ndarray         # (S,) or (N, S)
    effects: np.ndarray       # (S,) or (N, S)
    state_names: Optional[Sequence[str]] = None


@dataclass(frozen=True)
class CycleOutcome:
    """One cycle of a SimulationResult."""
    cycle: int
    state: np.ndarray
    cost: float
    effect: float


@dataclass(frozen=True)
class SimulationResult:
    """
    Output of one cohort run. All arrays are read-only.

    states  — (N, S) state vectors z_1..z_N
    costs   — (N,) discounted cost per cycle
    effects — (N,) effect per cycle (discounted only if discount_effects)
    """
    initial_state: np.ndarray
    states: np.ndarray
    costs: np.ndarray
    effects: np.ndarray
    undiscounted_costs: np.ndarray
    undiscounted_effects: np.ndarray
    state_space: StateSpace
    discount_rate: float
    discount_effects: bool

    @property
    def n_cycles(self) -> int:
        return self.states.shape[0]

    @property
    def n_states(self) -> int:
        return self.states.shape[1]

    @property
    def cohort_size(self) -> float:
        return float(self.initial_state.sum())

    @property
    def total_cost(self) -> float:
        return float(self.costs.sum())

    @property
    def total_effect(self) -> float:
        return float(self.effects.sum())

    @property
    def total_undiscounted_cost(self) -> float:
        return float(self.undiscounted_costs.sum())

    @property
    def total_undiscounted_effect(self) -> float:
        return float(self.undiscounted_effects.sum())

    def cumulative_costs(self) -> np.ndarray:
        return np.cumsum(self.costs)

    def cumulative_effects(self) -> np.ndarray:
        return np.cumsum(self.effects)

    def trace(self, *, include_initial: bool = False) -> np.ndarray:
        """Markov trace; with include_initial the first row is z_0."""
        if include_initial:
            return np.vstack([self.initial_state, self.states])
        return self.states.copy()

    def survival(self, dead_state: "str | int") -> np.ndarray:
        """Fraction of the cohort not in `dead_state` at each cycle: 1 - z_t[dead] / size."""
        idx = self.state_space.index(dead_state)
        size = self.cohort_size
        if size == 0:
            raise InvalidParameter("Survival is undefined for an empty cohort.")
        return 1.0 - self.states[:, idx] / size

    def __len__(self) -> int:
        return self.n_cycles

    def __iter__(self) -> Iterator[CycleOutcome]:
        for t in range(self.n_cycles):
            yield CycleOutcome(
                cycle=t + 1,
                state=self.states[t],
                cost=float(self.costs[t]),
                effect=float(self.effects[t]),
            )

    def to_dataframe(self) -> pd.DataFrame:
        """One row per cycle: cycle, cost, effect, undiscounted values, then one column per state."""
        df = pd.DataFrame({
            TRACE_COLUMNS[0]: np.arange(1, self.n_cycles + 1),
            TRACE_COLUMNS[1]: self.costs,
            TRACE_COLUMNS[2]: self.effects,
            TRACE_COLUMNS[3]: self.undiscounted_costs,
            TRACE_COLUMNS[4]: self.undiscounted_effects,
        })
        states = pd.DataFrame(self.states, columns=list(self.state_space.names))
        return pd.concat([df, states], axis=1)


def _resolve_horizon(n_cycles: Optional[int], **per_cycle: np.ndarray) -> int:
    """
    Check per-cycle sequences against n_cycles (or derive it from them).
    Only inputs given as sequences are passed in, whatever their length.
    """
    lengths = {name: arr.shape[0] for name, arr in per_cycle.items()}

    if n_cycles is None:
        if not lengths:
            raise DimensionMismatch(
                "n_cycles is required when transitions, costs and effects are all constant."
            )
        if len(set(lengths.values())) > 1:
            raise DimensionMismatch(f"Per-cycle inputs disagree on the horizon: {lengths}.")
        return next(iter(lengths.values()))

    if n_cycles < 1:
        raise InvalidParameter(f"n_cycles must be >= 1, got {n_cycles}.")
    for name, length in lengths.items():
        if length != n_cycles:
            raise DimensionMismatch(
                f"{name} has {length} per-cycle entries, expected {n_cycles}."
            )
    return n_cycles


def simulate_cohort(
    initial_state,
    transitions,
    costs,
    effects,
    *,
    n_cycles: Optional[int] = None,
    discount_rate: float = 0.0,
    discount_effects: bool = False,
    tolerance: float = 1e-6,
    state_names: Optional[Sequence[str]] = None,
) -> SimulationResult:
    """
    Run one Markov cohort simulation.

    Parameters
    ----------
    initial_state : array-like, shape (S,)
        Counts (or fractions) of the cohort in each state at cycle 0.
    transitions : array-like, shape (S, S) or (N, S, S)
        Row-stochastic transition matrix, constant or one per cycle.
    costs, effects : array-like, shape (S,) or (N, S)
        Per-cycle accrual for occupying each state.
    n_cycles : int, optional
        Horizon N. Required if every input is constant; otherwise it must
        match the per-cycle sequences.
    discount_rate : float
        r in [0, 1); cycle t is weighted by 1 / (1 + r)^t.
    discount_effects : bool
        Apply the same discounting to effects.

    Raises
    ------
    DimensionMismatch, InvalidTransitionMatrix, InvalidParameter
        Before any computation starts.
    """
    if not 0.0 <= discount_rate < 1.0:
        raise InvalidParameter(f"discount_rate must be in [0, 1), got {discount_rate}.")

    z0 = check_state_vector(initial_state)
    n_states = z0.size
    matrices = check_transition_matrices(transitions, n_states, tolerance=tolerance)
    cost_arr = check_state_values(costs, n_states, label="costs")
    effect_arr = check_state_values(effects, n_states, label="effects")
    state_space = StateSpace.resolve(state_names, n_states)

    sequences = {}
    for name, raw, arr, constant_ndim in (
        ("transitions", transitions, matrices, 2),
        ("costs", costs, cost_arr, 1),
        ("effects", effects, effect_arr, 1),
    ):
        if is_per_cycle(raw, constant_ndim):
            sequences[name] = arr
    horizon = _resolve_horizon(n_cycles, **sequences)

    states = np.empty((horizon, n_states), dtype=float)
    z = z0
    for t in range(horizon):
        P = matrices[t] if "transitions" in sequences else matrices[0]
        z = z @ P
        states[t] = z

    # (N, S) * (N, S) row-wise dot; a constant (1, S) vector broadcasts over cycles
    undiscounted_costs = np.einsum("ts,ts->t", states, np.broadcast_to(cost_arr, states.shape))
    undiscounted_effects = np.einsum("ts,ts->t", states, np.broadcast_to(effect_arr, states.shape))

    factors = discount_factors(discount_rate, horizon)
    disc_costs = undiscounted_costs / factors
    disc_effects = undiscounted_effects / factors if discount_effects else undiscounted_effects.copy()

    logger.debug(
        "Simulated %d cycles over %d states (r=%.4f): cost=%.2f effect=%.4f",
        horizon, n_states, discount_rate, disc_costs.sum(), disc_effects.sum(),
    )

    return SimulationResult(
        initial_state=_frozen(z0.copy()),
        states=_frozen(states),
        costs=_frozen(disc_costs),
        effects=_frozen(disc_effects),
        undiscounted_costs=_frozen(undiscounted_costs),
        undiscounted_effects=_frozen(undiscounted_effects),
        state_space=state_space,
        discount_rate=float(discount_rate),
        discount_effects=bool(discount_effects),
    )


class CohortSimulator:
    """
    Config-holding front end to simulate_cohort().

    Usage:
        sim = CohortSimulator(SimulationConfig(n_cycles=20, discount_rate=0.06))
        result = sim.run(z0, P, costs, effects)
        result.total_cost, result.total_effect
    """

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or SimulationConfig()

    def run(
        self,
        initial_state,
        transitions,
        costs,
        effects,
        *,
        state_names: Optional[Sequence[str]] = None,
    ) -> SimulationResult:
        cfg = self.config
        return simulate_cohort(
            initial_state,
            transitions,
            costs,
            effects,
            n_cycles=cfg.n_cycles,
            discount_rate=cfg.discount_rate,
            discount_effects=cfg.discount_effects,
            tolerance=cfg.row_sum_tolerance,
            state_names=state_names,
        )

    def run_inputs(self, inputs: CohortInputs) -> SimulationResult:
        return self.run(
            inputs.initial_state,
            inputs.transitions,
            inputs.costs,
            inputs.effects,
            state_names=inputs.state_names,
        )
