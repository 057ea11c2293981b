"""
Method-of-moments parameter fits for PSA input distributions.

Each function maps a reported mean and standard deviation (or CI, or
counts) to the native parameters of the distribution the sampler draws
from. Invalid inputs raise InvalidParameter; nothing is silently clipped.

  beta      — probabilities / utilities bounded in (0, 1)
  gamma     — costs and other positive, right-skewed quantities
  lognormal — relative risks, hazard ratios
  dirichlet — multinomial transition rows from observed counts
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np
from scipy import stats

from core.errors import InvalidParameter


def _check_sd(sd: float) -> None:
    if not math.isfinite(sd) or sd <= 0:
        raise InvalidParameter(f"Standard deviation must be positive, got {sd}.")


def beta_params_from_moments(mean: float, sd: float) -> Tuple[float, float]:
    """
    (alpha, beta) with the given mean and sd.

        alpha = mean * (mean(1-mean)/var - 1)
        beta  = (1-mean) * (mean(1-mean)/var - 1)

    Requires 0 < mean < 1 and var < mean(1-mean).
    """
    if not 0.0 < mean < 1.0:
        raise InvalidParameter(f"Beta mean must be in (0, 1), got {mean}.")
    _check_sd(sd)
    variance = sd ** 2
    max_variance = mean * (1.0 - mean)
    if variance >= max_variance:
        raise InvalidParameter(
            f"Beta variance {variance:.6g} must be below mean*(1-mean) = {max_variance:.6g}."
        )
    common = max_variance / variance - 1.0
    return mean * common, (1.0 - mean) * common


def gamma_params_from_moments(mean: float, sd: float) -> Tuple[float, float]:
    """(shape, scale) with shape = mean²/var and scale = var/mean."""
    if not math.isfinite(mean) or mean <= 0:
        raise InvalidParameter(f"Gamma mean must be positive, got {mean}.")
    _check_sd(sd)
    variance = sd ** 2
    return mean ** 2 / variance, variance / mean


def lognormal_params_from_moments(mean: float, sd: float) -> Tuple[float, float]:
    """
    (meanlog, sdlog) of a lognormal whose own mean and sd are given.

        sdlog²  = ln(1 + var/mean²)
        meanlog = ln(mean) - sdlog²/2
    """
    if not math.isfinite(mean) or mean <= 0:
        raise InvalidParameter(f"Lognormal mean must be positive, got {mean}.")
    _check_sd(sd)
    sdlog_sq = math.log1p(sd ** 2 / mean ** 2)
    return math.log(mean) - 0.5 * sdlog_sq, math.sqrt(sdlog_sq)


def lognormal_params_from_ci(
    point_estimate: float,
    lower: float,
    upper: float,
    *,
    level: float = 0.95,
) -> Tuple[float, float]:
    """(meanlog, sdlog) for a ratio reported as point estimate with a symmetric-on-log CI."""
    if min(point_estimate, lower, upper) <= 0:
        raise InvalidParameter("Point estimate and CI bounds must be positive.")
    if not lower < upper:
        raise InvalidParameter(f"CI lower bound {lower} must be below upper {upper}.")
    if not 0.0 < level < 1.0:
        raise InvalidParameter(f"CI level must be in (0, 1), got {level}.")
    z = stats.norm.ppf(0.5 + level / 2.0)
    sdlog = (math.log(upper) - math.log(lower)) / (2.0 * z)
    return math.log(point_estimate), sdlog


def dirichlet_params_from_counts(counts) -> np.ndarray:
    """Dirichlet alpha for one multinomial row: the observed counts themselves."""
    alpha = np.asarray(counts, dtype=float)
    if alpha.ndim != 1 or alpha.size == 0:
        raise InvalidParameter(f"Counts must be a non-empty 1-D vector, got shape {alpha.shape}.")
    if not np.all(np.isfinite(alpha)) or np.any(alpha < 0):
        raise InvalidParameter("Counts must be finite and non-negative.")
    if alpha.sum() <= 0:
        raise InvalidParameter("Counts must have a positive total.")
    return alpha
