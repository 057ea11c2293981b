"""
ParameterSampler — the random-sampling service for probabilistic sensitivity analysis.

One method per distribution family, each parameterized explicitly. The
sampler owns its numpy Generator; there is no global seed, so two samplers
built with the same seed produce the same draws regardless of what else
runs in the process.

Usage:
    sampler = ParameterSampler(seed=42)
    p_death = sampler.beta_from_moments(0.05, 0.01, size=1000)
    cost_c  = sampler.gamma_from_moments(6948, 6948, size=1000)
    P       = sampler.dirichlet_matrix(counts, size=1000)     # (1000, S, S)

For parallel replications, spawn() hands each worker an independent
child stream derived from the same SeedSequence.
"""

from __future__ import annotations

from typing import List, Optional, Tuple, Union

import numpy as np

from core.errors import DimensionMismatch, InvalidParameter

from .correlation import ensure_positive_semidefinite
from .moments import (
    beta_params_from_moments,
    dirichlet_params_from_counts,
    gamma_params_from_moments,
    lognormal_params_from_moments,
)

Size = Optional[Union[int, Tuple[int, ...]]]


def _positive(name: str, value: float) -> None:
    if not np.isfinite(value) or value <= 0:
        raise InvalidParameter(f"{name} must be positive, got {value}.")


class ParameterSampler:
    """Draws PSA parameter replicates from a caller-owned random stream."""

    def __init__(
        self,
        seed: Optional[Union[int, np.random.SeedSequence]] = None,
        *,
        rng: Optional[np.random.Generator] = None,
    ):
        if rng is not None and seed is not None:
            raise InvalidParameter("Provide seed OR rng, not both.")
        if rng is not None:
            self._seed_seq = None
            self.rng = rng
        else:
            self._seed_seq = (
                seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
            )
            self.rng = np.random.default_rng(self._seed_seq)

    def spawn(self, n: int) -> List["ParameterSampler"]:
        """Independent child samplers, e.g. one per worker."""
        if self._seed_seq is None:
            raise InvalidParameter("spawn() needs a sampler built from a seed, not an rng.")
        return [ParameterSampler(child) for child in self._seed_seq.spawn(n)]

    # ----- direct parameterizations -----

    def normal(self, mean: float, sd: float, size: Size = None) -> np.ndarray:
        if sd < 0:
            raise InvalidParameter(f"Normal sd must be non-negative, got {sd}.")
        return self.rng.normal(mean, sd, size=size)

    def multivariate_normal(self, mean, cov, size: Size = None) -> np.ndarray:
        """Correlated draws, e.g. regression coefficients with their covariance matrix."""
        mean = np.asarray(mean, dtype=float)
        cov = np.asarray(cov, dtype=float)
        if mean.ndim != 1 or cov.shape != (mean.size, mean.size):
            raise DimensionMismatch(
                f"Covariance shape {cov.shape} does not match mean of length {mean.size}."
            )
        cov = ensure_positive_semidefinite(cov)
        return self.rng.multivariate_normal(mean, cov, size=size)

    def beta(self, alpha: float, beta: float, size: Size = None) -> np.ndarray:
        _positive("Beta alpha", alpha)
        _positive("Beta beta", beta)
        return self.rng.beta(alpha, beta, size=size)

    def gamma(self, shape: float, scale: float, size: Size = None) -> np.ndarray:
        _positive("Gamma shape", shape)
        _positive("Gamma scale", scale)
        return self.rng.gamma(shape, scale, size=size)

    def lognormal(self, meanlog: float, sdlog: float, size: Size = None) -> np.ndarray:
        if sdlog < 0:
            raise InvalidParameter(f"Lognormal sdlog must be non-negative, got {sdlog}.")
        return self.rng.lognormal(meanlog, sdlog, size=size)

    def uniform(self, low: float, high: float, size: Size = None) -> np.ndarray:
        if not low < high:
            raise InvalidParameter(f"Uniform low {low} must be below high {high}.")
        return self.rng.uniform(low, high, size=size)

    def dirichlet(self, alpha, size: Size = None) -> np.ndarray:
        """
        Dirichlet draws for one multinomial row.

        Zero entries of alpha are allowed: those components are always 0 and
        the rest are drawn from the Dirichlet over the positive entries.
        """
        alpha = dirichlet_params_from_counts(alpha)
        positive = alpha > 0
        n = 1 if size is None else size
        draws = self.rng.dirichlet(alpha[positive], size=n)
        shape = np.shape(draws)[:-1] + (alpha.size,)
        out = np.zeros(shape, dtype=float)
        out[..., positive] = draws
        return out[0] if size is None else out

    # ----- moment-based parameterizations -----

    def beta_from_moments(self, mean: float, sd: float, size: Size = None) -> np.ndarray:
        a, b = beta_params_from_moments(mean, sd)
        return self.rng.beta(a, b, size=size)

    def gamma_from_moments(self, mean: float, sd: float, size: Size = None) -> np.ndarray:
        shape, scale = gamma_params_from_moments(mean, sd)
        return self.rng.gamma(shape, scale, size=size)

    def lognormal_from_moments(self, mean: float, sd: float, size: Size = None) -> np.ndarray:
        meanlog, sdlog = lognormal_params_from_moments(mean, sd)
        return self.rng.lognormal(meanlog, sdlog, size=size)

    # ----- transition matrices -----

    def dirichlet_matrix(self, counts, size: int = 1) -> np.ndarray:
        """
        Sample `size` transition matrices, each row an independent Dirichlet
        over that row's observed transition counts.

        Returns shape (size, S, S); every row sums to 1.
        """
        counts = np.asarray(counts, dtype=float)
        if counts.ndim != 2 or counts.shape[0] != counts.shape[1]:
            raise DimensionMismatch(f"Counts must be a square matrix, got shape {counts.shape}.")
        if size < 1:
            raise InvalidParameter(f"size must be >= 1, got {size}.")
        n_states = counts.shape[0]
        out = np.empty((size, n_states, n_states), dtype=float)
        for i in range(n_states):
            out[:, i, :] = self.dirichlet(counts[i], size=size)
        return out
