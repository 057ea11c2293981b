"""
Deterministic cost-effectiveness metrics between strategies.

ICER between comparator A and intervention B, over all cycles of each run:

    ICER = (Σ cost_B - Σ cost_A) / (Σ effect_B - Σ effect_A)

incremental_analysis() applies the standard frontier procedure to any
number of strategies: sort by cost, drop strictly dominated strategies
(costlier and no more effective), then drop extendedly dominated ones
(whose ICER exceeds that of the next more effective strategy), and report
ICERs along what remains.
"""

from __future__ import annotations

import logging
import math
from typing import Mapping, Union

import numpy as np
import pandas as pd

from core.errors import InvalidParameter
from engine.cohort import SimulationResult

logger = logging.getLogger(__name__)

STATUS_FRONTIER = "non-dominated"
STATUS_DOMINATED = "dominated"
STATUS_EXTENDED = "extendedly dominated"


def icer(delta_cost: float, delta_effect: float) -> float:
    """ΔC/ΔE; NaN (with a warning) when the effects are identical."""
    if delta_effect == 0:
        logger.warning("ICER undefined: incremental effect is 0 (incremental cost %.2f).", delta_cost)
        return math.nan
    return delta_cost / delta_effect


def compute_icer(comparator: SimulationResult, intervention: SimulationResult) -> float:
    """ICER of `intervention` versus `comparator`, from total discounted cost and effect."""
    return icer(
        intervention.total_cost - comparator.total_cost,
        intervention.total_effect - comparator.total_effect,
    )


def net_monetary_benefit(cost, effect, willingness_to_pay: float):
    """NMB = λ · effect - cost (vectorized over cost/effect)."""
    return willingness_to_pay * np.asarray(effect, dtype=float) - np.asarray(cost, dtype=float)


def _totals_frame(results: Union[Mapping[str, SimulationResult], pd.DataFrame]) -> pd.DataFrame:
    if isinstance(results, pd.DataFrame):
        missing = [c for c in ("strategy", "cost", "effect") if c not in results.columns]
        if missing:
            raise InvalidParameter(f"Missing required columns: {missing}")
        return results[["strategy", "cost", "effect"]].copy()
    return pd.DataFrame([
        {"strategy": name, "cost": r.total_cost, "effect": r.total_effect}
        for name, r in results.items()
    ])


def incremental_analysis(
    results: Union[Mapping[str, SimulationResult], pd.DataFrame],
) -> pd.DataFrame:
    """
    Full incremental analysis over two or more strategies.

    Parameters
    ----------
    results : mapping name -> SimulationResult, or DataFrame with strategy/cost/effect

    Returns
    -------
    DataFrame sorted by cost with columns:
        strategy, cost, effect, incremental_cost, incremental_effect, icer, status
    Increments are against the previous non-dominated strategy; dominated
    rows carry NaN.
    """
    df = _totals_frame(results)
    if len(df) < 2:
        raise InvalidParameter("Incremental analysis needs at least two strategies.")
    df = df.sort_values(["cost", "effect"], ascending=[True, False]).reset_index(drop=True)
    df["status"] = STATUS_FRONTIER

    # Strict dominance: some cheaper (or equal) strategy is at least as effective
    best_effect = -np.inf
    for i in df.index:
        if df.at[i, "effect"] <= best_effect:
            df.at[i, "status"] = STATUS_DOMINATED
        else:
            best_effect = df.at[i, "effect"]

    # Extended dominance: ICERs along the frontier must increase
    while True:
        frontier = df.index[df["status"] == STATUS_FRONTIER].tolist()
        ratios = [
            (df.at[b, "cost"] - df.at[a, "cost"]) / (df.at[b, "effect"] - df.at[a, "effect"])
            for a, b in zip(frontier[:-1], frontier[1:])
        ]
        dropped = False
        for k in range(len(ratios) - 1):
            if ratios[k] > ratios[k + 1]:
                df.at[frontier[k + 1], "status"] = STATUS_EXTENDED
                dropped = True
                break
        if not dropped:
            break

    df["incremental_cost"] = np.nan
    df["incremental_effect"] = np.nan
    df["icer"] = np.nan
    frontier = df.index[df["status"] == STATUS_FRONTIER].tolist()
    for prev, cur in zip(frontier[:-1], frontier[1:]):
        d_cost = df.at[cur, "cost"] - df.at[prev, "cost"]
        d_effect = df.at[cur, "effect"] - df.at[prev, "effect"]
        df.at[cur, "incremental_cost"] = d_cost
        df.at[cur, "incremental_effect"] = d_effect
        df.at[cur, "icer"] = d_cost / d_effect

    return df[["strategy", "cost", "effect", "incremental_cost", "incremental_effect", "icer", "status"]]
