"""
Strategy runner — orchestrates strategies and PSA replications through the cohort simulator.

Two modes of operation:
  1. Base case:  run_strategies() — each strategy once, with point-estimate parameters
  2. PSA:        run_psa()        — each strategy once per sampled parameter set

A Strategy turns a parameter mapping into CohortInputs. Every replication
owns its inputs and produces an independent SimulationResult, so runs can
be dispatched to a thread pool without locking.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from core.config import PSAConfig, SimulationConfig
from core.errors import InvalidParameter
from core.schema import PSA_COLUMNS
from distributions.psa_spec import SampledParameters

from .cohort import CohortInputs, CohortSimulator, SimulationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Strategy:
    """A named intervention: maps a parameter set to the inputs of one cohort run."""
    name: str
    build: Callable[[Mapping[str, Any]], CohortInputs]


def _check_strategies(strategies: Sequence[Strategy]) -> None:
    if not strategies:
        raise InvalidParameter("At least one strategy is required.")
    names = [s.name for s in strategies]
    dupes = sorted({n for n in names if names.count(n) > 1})
    if dupes:
        raise InvalidParameter(f"Duplicate strategy names: {dupes}")


def run_strategies(
    strategies: Sequence[Strategy],
    params: Mapping[str, Any],
    config: SimulationConfig,
) -> Dict[str, SimulationResult]:
    """Run every strategy once with the same parameters. Keys keep strategy order."""
    _check_strategies(strategies)
    simulator = CohortSimulator(config)
    return {s.name: simulator.run_inputs(s.build(params)) for s in strategies}


@dataclass
class PSAResults:
    """
    Per-replication totals for every strategy.

    outcomes: long DataFrame with columns sample, strategy, cost, effect,
    ordered by sample then strategy.
    """
    outcomes: pd.DataFrame
    strategies: List[str]

    @property
    def n_samples(self) -> int:
        return int(self.outcomes["sample"].nunique())

    def costs(self) -> pd.DataFrame:
        """(n_samples × strategies) total discounted cost."""
        return self._wide("cost")

    def effects(self) -> pd.DataFrame:
        """(n_samples × strategies) total effect."""
        return self._wide("effect")

    def _wide(self, value: str) -> pd.DataFrame:
        wide = self.outcomes.pivot(index="sample", columns="strategy", values=value)
        wide.columns.name = None
        return wide[self.strategies]

    def to_dataframe(self) -> pd.DataFrame:
        return self.outcomes.copy()


def _run_sample(
    simulator: CohortSimulator,
    strategies: Sequence[Strategy],
    params: Mapping[str, Any],
) -> List[Tuple[float, float]]:
    totals = []
    for strategy in strategies:
        result = simulator.run_inputs(strategy.build(params))
        totals.append((result.total_cost, result.total_effect))
    return totals


def run_psa(
    strategies: Sequence[Strategy],
    sampled: SampledParameters,
    config: SimulationConfig,
    *,
    fixed_params: Optional[Mapping[str, Any]] = None,
    max_workers: Optional[int] = None,
    psa_config: Optional[PSAConfig] = None,
) -> PSAResults:
    """
    Run every strategy for every sampled parameter set.

    Parameters
    ----------
    strategies : sequence of Strategy
    sampled : SampledParameters
        Output of distributions.psa_spec.sample_parameters()
    config : SimulationConfig
        Horizon, discounting and tolerance shared by all runs
    fixed_params : mapping, optional
        Point values merged under each sample (sampled values win)
    max_workers : int, optional
        If given, replications are spread over a thread pool of this size.
        Output order is the same either way.
    psa_config : PSAConfig, optional
        Supplies max_workers when it is not passed explicitly

    Returns
    -------
    PSAResults
    """
    _check_strategies(strategies)
    n = sampled.n_samples
    if n == 0:
        raise InvalidParameter("No sampled parameter sets to run.")

    if max_workers is None and psa_config is not None:
        max_workers = psa_config.max_workers

    simulator = CohortSimulator(config)
    base = dict(fixed_params or {})

    def params_for(i: int) -> Dict[str, Any]:
        merged = dict(base)
        merged.update(sampled.get_sample(i))
        return merged

    logger.info("Running PSA: %d samples x %d strategies", n, len(strategies))

    if max_workers is None or max_workers <= 1:
        per_sample = [_run_sample(simulator, strategies, params_for(i)) for i in range(n)]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            per_sample = list(pool.map(
                lambda i: _run_sample(simulator, strategies, params_for(i)), range(n)
            ))

    names = [s.name for s in strategies]
    totals = np.array(per_sample, dtype=float)   # (n, n_strategies, 2)
    outcomes = pd.DataFrame({
        PSA_COLUMNS[0]: np.repeat(np.arange(n), len(names)),
        PSA_COLUMNS[1]: np.tile(names, n),
        PSA_COLUMNS[2]: totals[:, :, 0].reshape(-1),
        PSA_COLUMNS[3]: totals[:, :, 1].reshape(-1),
    })

    logger.info("PSA complete: %d runs", len(outcomes))
    return PSAResults(outcomes=outcomes, strategies=names)
