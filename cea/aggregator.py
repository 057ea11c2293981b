"""
Aggregate PSA replications into distribution summaries.

Instead of: "ICER = 6,276 per life-year" (one number, no context)
The analyst gets:
  - cost and effect distributions per strategy (mean, percentiles)
  - the joint incremental cost / effect cloud (cost-effectiveness plane)
  - P(cost-effective) at each willingness-to-pay (acceptability curve)
  - the expected value of perfect information (what removing all
    parameter uncertainty would be worth)
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from core.config import PSAConfig
from core.errors import InvalidParameter
from engine.runner import PSAResults

from .metrics import net_monetary_benefit


def _check_strategy(psa: PSAResults, name: str) -> None:
    if name not in psa.strategies:
        raise InvalidParameter(f"Unknown strategy '{name}'. Available: {psa.strategies}")


def summarize_psa(
    psa: PSAResults,
    *,
    percentiles: Tuple[float, ...] = (0.025, 0.25, 0.50, 0.75, 0.975),
) -> pd.DataFrame:
    """
    One row per (strategy, metric) with mean, std and percentiles.

    Metrics are total discounted cost and total effect.
    """
    rows = []
    for metric, wide in (("cost", psa.costs()), ("effect", psa.effects())):
        for strategy in psa.strategies:
            values = wide[strategy].dropna().to_numpy()
            if len(values) == 0:
                continue
            row = {
                "Strategy": strategy,
                "Metric": metric,
                "Mean": float(np.mean(values)),
                "Std Dev": float(np.std(values)),
                "Min": float(np.min(values)),
            }
            for p in percentiles:
                row[f"P{p * 100:g}"] = float(np.percentile(values, p * 100))
            row["Max"] = float(np.max(values))
            rows.append(row)
    return pd.DataFrame(rows)


def incremental_samples(
    psa: PSAResults,
    comparator: str,
    intervention: str,
) -> pd.DataFrame:
    """Per-sample incremental cost and effect of `intervention` vs `comparator`."""
    _check_strategy(psa, comparator)
    _check_strategy(psa, intervention)
    costs, effects = psa.costs(), psa.effects()
    return pd.DataFrame({
        "sample": costs.index.to_numpy(),
        "incremental_cost": (costs[intervention] - costs[comparator]).to_numpy(),
        "incremental_effect": (effects[intervention] - effects[comparator]).to_numpy(),
    })


def _wtp_grid(wtp_values: Optional[Iterable[float]]) -> list:
    if wtp_values is None:
        return list(PSAConfig().willingness_to_pay)
    wtp_values = list(wtp_values)
    if not wtp_values:
        raise InvalidParameter("Need at least one willingness-to-pay value.")
    return wtp_values


def _nmb_by_strategy(psa: PSAResults, wtp: float) -> np.ndarray:
    """(n_samples, n_strategies) net monetary benefit."""
    return net_monetary_benefit(psa.costs().to_numpy(), psa.effects().to_numpy(), wtp)


def acceptability_curve(
    psa: PSAResults,
    wtp_values: Optional[Iterable[float]] = None,
) -> pd.DataFrame:
    """
    Cost-effectiveness acceptability curve.

    For each willingness-to-pay λ, the share of samples in which each
    strategy has the highest net monetary benefit. Rows sum to 1.
    Columns: wtp, then one per strategy. The default grid is
    PSAConfig.willingness_to_pay.
    """
    rows = []
    for wtp in _wtp_grid(wtp_values):
        nmb = _nmb_by_strategy(psa, wtp)
        winners = np.argmax(nmb, axis=1)
        shares = np.bincount(winners, minlength=len(psa.strategies)) / nmb.shape[0]
        row: Dict[str, float] = {"wtp": float(wtp)}
        row.update({s: float(v) for s, v in zip(psa.strategies, shares)})
        rows.append(row)
    return pd.DataFrame(rows)


def expected_value_of_perfect_information(
    psa: PSAResults,
    wtp_values: Optional[Iterable[float]] = None,
) -> pd.DataFrame:
    """
    EVPI at each willingness-to-pay, in the units of the simulated totals:

        EVPI(λ) = E[max_s NMB_s] - max_s E[NMB_s]

    Non-negative by construction. Columns: wtp, evpi, optimal_strategy.
    Same default grid as acceptability_curve().
    """
    rows = []
    for wtp in _wtp_grid(wtp_values):
        nmb = _nmb_by_strategy(psa, wtp)
        expected = nmb.mean(axis=0)
        evpi = float(nmb.max(axis=1).mean() - expected.max())
        rows.append({
            "wtp": float(wtp),
            "evpi": max(evpi, 0.0),
            "optimal_strategy": psa.strategies[int(np.argmax(expected))],
        })
    return pd.DataFrame(rows)
