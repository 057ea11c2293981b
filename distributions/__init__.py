"""
Distributions package — parameter fits, sampling and survival curves for the cohort model.

  1. moments.py     — method-of-moments fits (beta, gamma, lognormal, Dirichlet)
  2. sampler.py     — ParameterSampler, the seeded sampling service for PSA
  3. correlation.py — covariance repair for correlated draws
  4. survival.py    — parametric survival distributions -> per-cycle probabilities
  5. psa_spec.py    — declarative PSA parameter sets (pydantic) and the sampled table
  6. benchmarks.py  — published reference model inputs
"""

from .benchmarks import ReferenceModel, get_reference_model, get_reference_psa_spec
from .correlation import covariance_from_correlation, ensure_positive_semidefinite
from .moments import (
    beta_params_from_moments,
    dirichlet_params_from_counts,
    gamma_params_from_moments,
    lognormal_params_from_ci,
    lognormal_params_from_moments,
)
from .psa_spec import (
    DirichletSpec,
    MultivariateNormalSpec,
    ParameterSpec,
    PSASpec,
    SampledParameters,
    load_psa_spec,
    sample_parameters,
)
from .sampler import ParameterSampler
from .survival import (
    Exponential,
    Gamma,
    Gompertz,
    LogLogistic,
    LogNormal,
    SurvivalDistribution,
    Weibull,
    make_survival_distribution,
)

__all__ = [
    "ReferenceModel",
    "get_reference_model",
    "get_reference_psa_spec",
    "covariance_from_correlation",
    "ensure_positive_semidefinite",
    "beta_params_from_moments",
    "dirichlet_params_from_counts",
    "gamma_params_from_moments",
    "lognormal_params_from_ci",
    "lognormal_params_from_moments",
    "DirichletSpec",
    "MultivariateNormalSpec",
    "ParameterSpec",
    "PSASpec",
    "SampledParameters",
    "load_psa_spec",
    "sample_parameters",
    "ParameterSampler",
    "SurvivalDistribution",
    "Exponential",
    "Weibull",
    "Gompertz",
    "LogLogistic",
    "LogNormal",
    "Gamma",
    "make_survival_distribution",
]
