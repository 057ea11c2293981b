"""
Decision support — probability statements and flags for an intervention vs comparator.

Translates PSA replications into answers a decision maker can act on:
  Q1: "Is it worth the money?"       → ICER of mean costs/effects vs threshold
  Q2: "How sure are we?"             → P(cost-effective) at the threshold
  Q3: "Where does the cloud sit?"    → share of samples in each CE-plane quadrant
  Q4: "Is it ever clearly better?"   → dominance flags
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import numpy as np
import pandas as pd

from core.errors import InvalidParameter
from engine.runner import PSAResults

from .aggregator import incremental_samples
from .metrics import icer


@dataclass
class DecisionReport:
    """Structured decision output for one pairwise comparison."""
    comparator: str
    intervention: str
    willingness_to_pay: float
    n_samples: int

    # Means across samples
    mean_incremental_cost: float
    mean_incremental_effect: float
    icer: float

    # Probability statements
    prob_cost_effective: float
    # quadrants partition the plane: east = ΔE > 0, north = ΔC > 0
    prob_dominant: float     # SE: no costlier and more effective
    prob_dominated: float    # NW: costlier and no more effective
    prob_more_costly_more_effective: float   # NE quadrant
    prob_less_costly_less_effective: float   # SW quadrant

    # Uncertainty in the incremental cost
    incremental_cost_p025: float
    incremental_cost_p975: float

    flags: List[str] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to a display-friendly table."""
        rows = [
            {"Metric": "Comparison", "Value": f"{self.intervention} vs {self.comparator}", "Unit": ""},
            {"Metric": "Samples", "Value": f"{self.n_samples}", "Unit": ""},
            {"Metric": "Willingness to Pay", "Value": f"{self.willingness_to_pay:,.0f}", "Unit": "per unit effect"},
            {"Metric": "Mean Incremental Cost", "Value": f"{self.mean_incremental_cost:,.2f}", "Unit": ""},
            {"Metric": "Mean Incremental Effect", "Value": f"{self.mean_incremental_effect:,.4f}", "Unit": ""},
            {"Metric": "ICER", "Value": f"{self.icer:,.2f}" if np.isfinite(self.icer) else "N/A", "Unit": "per unit effect"},
            {"Metric": "Incremental Cost 95% Interval",
             "Value": f"{self.incremental_cost_p025:,.2f} to {self.incremental_cost_p975:,.2f}", "Unit": ""},
            {"Metric": "P(Cost-Effective)", "Value": f"{self.prob_cost_effective:.1%}", "Unit": ""},
            {"Metric": "P(Dominant)", "Value": f"{self.prob_dominant:.1%}", "Unit": ""},
            {"Metric": "P(Dominated)", "Value": f"{self.prob_dominated:.1%}", "Unit": ""},
            {"Metric": "P(NE quadrant)", "Value": f"{self.prob_more_costly_more_effective:.1%}", "Unit": ""},
            {"Metric": "P(SW quadrant)", "Value": f"{self.prob_less_costly_less_effective:.1%}", "Unit": ""},
        ]
        if self.flags:
            rows.append({"Metric": "FLAGS", "Value": " | ".join(self.flags), "Unit": ""})
        return pd.DataFrame(rows)


def generate_decision_report(
    psa: PSAResults,
    *,
    comparator: str,
    intervention: str,
    willingness_to_pay: float,
) -> DecisionReport:
    """
    Generate a decision report from PSA replications.

    Parameters
    ----------
    psa : PSAResults
        Output of engine.runner.run_psa()
    comparator, intervention : str
        Strategy names in the PSA
    willingness_to_pay : float
        Threshold λ; the intervention is cost-effective in a sample when
        λ·ΔE - ΔC > 0.
    """
    inc = incremental_samples(psa, comparator, intervention)
    d_cost = inc["incremental_cost"].to_numpy()
    d_effect = inc["incremental_effect"].to_numpy()
    n = len(d_cost)
    if n == 0:
        raise InvalidParameter("No PSA samples to generate report from.")

    mean_dc = float(np.mean(d_cost))
    mean_de = float(np.mean(d_effect))
    ratio = icer(mean_dc, mean_de)

    prob_ce = float(np.mean(willingness_to_pay * d_effect - d_cost > 0))
    east, north = d_effect > 0, d_cost > 0
    prob_dominant = float(np.mean(~north & east))
    prob_dominated = float(np.mean(north & ~east))
    prob_ne = float(np.mean(north & east))
    prob_sw = float(np.mean(~north & ~east))

    flags = []
    if mean_dc < 0 and mean_de > 0:
        flags.append("DOMINANT: cheaper and more effective on average")
    elif mean_dc > 0 and mean_de < 0:
        flags.append("DOMINATED: costlier and less effective on average")
    elif np.isfinite(ratio) and mean_de > 0 and ratio > willingness_to_pay:
        flags.append(f"ICER_ABOVE_THRESHOLD: {ratio:,.0f} > {willingness_to_pay:,.0f}")
    if 0.4 <= prob_ce <= 0.6:
        flags.append(f"DECISION_UNCERTAIN: P(cost-effective) = {prob_ce:.0%}")
    if prob_dominated > 0.05:
        flags.append(f"HARM_RISK: {prob_dominated:.0%} of samples dominated")

    return DecisionReport(
        comparator=comparator,
        intervention=intervention,
        willingness_to_pay=float(willingness_to_pay),
        n_samples=n,
        mean_incremental_cost=mean_dc,
        mean_incremental_effect=mean_de,
        icer=ratio,
        prob_cost_effective=prob_ce,
        prob_dominant=prob_dominant,
        prob_dominated=prob_dominated,
        prob_more_costly_more_effective=prob_ne,
        prob_less_costly_less_effective=prob_sw,
        incremental_cost_p025=float(np.percentile(d_cost, 2.5)),
        incremental_cost_p975=float(np.percentile(d_cost, 97.5)),
        flags=flags,
    )
