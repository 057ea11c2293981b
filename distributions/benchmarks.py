"""
Reference model inputs from the published literature.

The HIV/ART model (Chancellor et al. 1997, the worked example used by most
Markov-model tutorials) is the standard check for a cohort engine:
four states A/B/C (CD4 bands, then AIDS) and D (death), zidovudine
monotherapy versus zidovudine + lamivudine for two years.

Usage:
  - Deterministic base case: get_reference_model("hiv_art")
  - PSA: get_reference_psa_spec("hiv_art") -> distributions.psa_spec.PSASpec
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from core.errors import InvalidParameter

from .moments import lognormal_params_from_ci
from .psa_spec import DirichletSpec, ParameterSpec, PSASpec


@dataclass(frozen=True)
class ReferenceModel:
    """Base-case inputs for a published two-strategy cohort model."""
    name: str
    states: Tuple[str, ...]
    dead_state: str
    initial_state: np.ndarray
    transition_counts: np.ndarray     # observed transitions, rows = from-state
    transition_matrix: np.ndarray     # comparator, row-normalized
    state_costs: Dict[str, np.ndarray]  # cost component -> per-state cost
    effects: np.ndarray
    relative_risk: float
    relative_risk_ci: Tuple[float, float]
    treatment_cost: float               # add-on drug cost per live state per cycle
    treatment_cycles: int
    n_cycles: int
    discount_rate: float
    source: str

    @property
    def comparator_costs(self) -> np.ndarray:
        return sum(self.state_costs.values())

    @property
    def intervention_costs(self) -> np.ndarray:
        alive = self.effects > 0
        return self.comparator_costs + self.treatment_cost * alive


_HIV_COUNTS = np.array([
    # A     B     C     D
    [1251, 350, 116, 17],   # A
    [0, 731, 512, 15],      # B
    [0, 0, 1312, 437],      # C
    [0, 0, 0, 1],           # D (absorbing)
], dtype=float)

# Published matrix is the count matrix rounded to 3 dp
_HIV_MONO = np.array([
    [0.721, 0.202, 0.067, 0.010],
    [0.000, 0.581, 0.407, 0.012],
    [0.000, 0.000, 0.750, 0.250],
    [0.000, 0.000, 0.000, 1.000],
])

REFERENCE_MODELS: Dict[str, ReferenceModel] = {
    "hiv_art": ReferenceModel(
        name="HIV/ART: zidovudine mono vs zidovudine + lamivudine",
        states=("A", "B", "C", "D"),
        dead_state="D",
        initial_state=np.array([1000.0, 0.0, 0.0, 0.0]),
        transition_counts=_HIV_COUNTS,
        transition_matrix=_HIV_MONO,
        state_costs={
            "direct_medical": np.array([1701.0, 1774.0, 6948.0, 0.0]),
            "community": np.array([1055.0, 1278.0, 2059.0, 0.0]),
            "zidovudine": np.array([2278.0, 2278.0, 2278.0, 0.0]),
        },
        effects=np.array([1.0, 1.0, 1.0, 0.0]),
        relative_risk=0.509,
        relative_risk_ci=(0.365, 0.710),
        treatment_cost=2086.0,
        treatment_cycles=2,
        n_cycles=20,
        discount_rate=0.06,
        source="Chancellor et al. (1997) PharmacoEconomics 12(1):54-66",
    ),
}


def get_reference_model(name: str = "hiv_art") -> ReferenceModel:
    """Return a published reference model by name."""
    if name not in REFERENCE_MODELS:
        raise InvalidParameter(
            f"Unknown reference model '{name}'. "
            f"Available: {list(REFERENCE_MODELS.keys())}"
        )
    return REFERENCE_MODELS[name]


def get_reference_psa_spec(
    name: str = "hiv_art",
    *,
    n_samples: int = 1000,
    seed: int = 42,
) -> PSASpec:
    """
    PSA distributions for a reference model:
      - transition matrix: Dirichlet over the observed counts
      - relative risk: lognormal from the published 95% CI
      - cost components: gamma with sd = mean (wide, as in the original analysis)
    Drug costs are list prices and stay fixed.
    """
    model = get_reference_model(name)
    meanlog, sdlog = lognormal_params_from_ci(model.relative_risk, *model.relative_risk_ci)

    params = [ParameterSpec(name="rr", distribution="lognormal", meanlog=meanlog, sdlog=sdlog)]
    for component in ("direct_medical", "community"):
        costs = model.state_costs[component]
        for state, cost in zip(model.states, costs):
            if cost > 0:
                params.append(ParameterSpec(
                    name=f"cost_{component}_{state}", distribution="gamma", mean=cost, sd=cost,
                ))

    return PSASpec(
        n_samples=n_samples,
        seed=seed,
        parameters=params,
        dirichlet=[DirichletSpec(name="P_mono", counts=model.transition_counts.tolist())],
    )
