"""
Parametric survival distributions used to derive time-dependent transition probabilities.

Parameterizations follow the conventions used by flexsurv/hesim:

  Exponential(rate)          S(t) = exp(-rate t)
  Weibull(shape, scale)      S(t) = exp(-(t/scale)^shape)
  Gompertz(shape, rate)      h(t) = rate exp(shape t)
  LogLogistic(shape, scale)  S(t) = 1 / (1 + (t/scale)^shape)
  LogNormal(meanlog, sdlog)  log T ~ N(meanlog, sdlog)
  Gamma(shape, rate)         T ~ Gamma(shape, 1/rate)

The per-cycle probability of the event between t0 and t1, given survival
to t0, is 1 - S(t1)/S(t0). Fitting these models to data is out of scope:
parameters come from an external fit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Type

import numpy as np
from scipy import stats

from core.errors import InvalidParameter


def _positive(**params: float) -> None:
    for name, value in params.items():
        if not np.isfinite(value) or value <= 0:
            raise InvalidParameter(f"{name} must be positive, got {value}.")


class SurvivalDistribution:
    """Interface: survival S(t) and hazard h(t) for t >= 0, vectorized over t."""

    def survival(self, t) -> np.ndarray:
        raise NotImplementedError

    def hazard(self, t) -> np.ndarray:
        raise NotImplementedError

    def cumulative_hazard(self, t) -> np.ndarray:
        return -np.log(self.survival(t))

    def cdf(self, t) -> np.ndarray:
        return 1.0 - self.survival(t)

    def pdf(self, t) -> np.ndarray:
        return self.hazard(t) * self.survival(t)

    def transition_probability(self, t0, t1) -> np.ndarray:
        """P(event in (t0, t1] | alive at t0) = 1 - S(t1)/S(t0); 1 where S(t0) is 0."""
        s0 = np.asarray(self.survival(t0), dtype=float)
        s1 = np.asarray(self.survival(t1), dtype=float)
        ratio = np.divide(s1, s0, out=np.zeros_like(s1 * s0), where=s0 > 0)
        return np.clip(1.0 - ratio, 0.0, 1.0)

    def cycle_probabilities(self, n_cycles: int, cycle_length: float = 1.0) -> np.ndarray:
        """transition_probability over cycles [(t-1)L, tL] for t = 1..n_cycles."""
        edges = np.arange(n_cycles + 1, dtype=float) * cycle_length
        return self.transition_probability(edges[:-1], edges[1:])


class _ScipySurvival(SurvivalDistribution):
    """Shared implementation on top of a frozen scipy.stats distribution."""

    def _frozen(self):
        raise NotImplementedError

    def survival(self, t) -> np.ndarray:
        return self._frozen().sf(np.asarray(t, dtype=float))

    def cumulative_hazard(self, t) -> np.ndarray:
        return -self._frozen().logsf(np.asarray(t, dtype=float))

    def cdf(self, t) -> np.ndarray:
        return self._frozen().cdf(np.asarray(t, dtype=float))

    def pdf(self, t) -> np.ndarray:
        return self._frozen().pdf(np.asarray(t, dtype=float))

    def hazard(self, t) -> np.ndarray:
        t = np.asarray(t, dtype=float)
        dist = self._frozen()
        # pdf/sf computed on the log scale to stay finite far in the tail
        return np.exp(dist.logpdf(t) - dist.logsf(t))


@dataclass(frozen=True)
class Exponential(_ScipySurvival):
    rate: float

    def __post_init__(self) -> None:
        _positive(rate=self.rate)

    def _frozen(self):
        return stats.expon(scale=1.0 / self.rate)

    def hazard(self, t) -> np.ndarray:
        return np.full(np.shape(t), self.rate, dtype=float)


@dataclass(frozen=True)
class Weibull(_ScipySurvival):
    shape: float
    scale: float

    def __post_init__(self) -> None:
        _positive(shape=self.shape, scale=self.scale)

    def _frozen(self):
        return stats.weibull_min(c=self.shape, scale=self.scale)


@dataclass(frozen=True)
class LogLogistic(_ScipySurvival):
    shape: float
    scale: float

    def __post_init__(self) -> None:
        _positive(shape=self.shape, scale=self.scale)

    def _frozen(self):
        return stats.fisk(c=self.shape, scale=self.scale)


@dataclass(frozen=True)
class LogNormal(_ScipySurvival):
    meanlog: float
    sdlog: float

    def __post_init__(self) -> None:
        _positive(sdlog=self.sdlog)

    def _frozen(self):
        return stats.lognorm(s=self.sdlog, scale=np.exp(self.meanlog))


@dataclass(frozen=True)
class Gamma(_ScipySurvival):
    shape: float
    rate: float

    def __post_init__(self) -> None:
        _positive(shape=self.shape, rate=self.rate)

    def _frozen(self):
        return stats.gamma(a=self.shape, scale=1.0 / self.rate)


@dataclass(frozen=True)
class Gompertz(SurvivalDistribution):
    """
    Closed form rather than scipy.stats.gompertz, which only covers shape > 0.
    shape < 0 gives a plateau (a fraction never has the event); shape = 0 is exponential.
    """
    shape: float
    rate: float

    def __post_init__(self) -> None:
        _positive(rate=self.rate)
        if not np.isfinite(self.shape):
            raise InvalidParameter(f"shape must be finite, got {self.shape}.")

    def cumulative_hazard(self, t) -> np.ndarray:
        t = np.asarray(t, dtype=float)
        if self.shape == 0:
            return self.rate * t
        return self.rate / self.shape * np.expm1(self.shape * t)

    def survival(self, t) -> np.ndarray:
        return np.exp(-self.cumulative_hazard(t))

    def hazard(self, t) -> np.ndarray:
        t = np.asarray(t, dtype=float)
        return self.rate * np.exp(self.shape * t)


SURVIVAL_DISTRIBUTIONS: Dict[str, Type[SurvivalDistribution]] = {
    "exponential": Exponential,
    "exp": Exponential,
    "weibull": Weibull,
    "gompertz": Gompertz,
    "loglogistic": LogLogistic,
    "llogis": LogLogistic,
    "lognormal": LogNormal,
    "lnorm": LogNormal,
    "gamma": Gamma,
}


def make_survival_distribution(name: str, **params: float) -> SurvivalDistribution:
    """
    Build a survival distribution by family name.

    Parameters
    ----------
    name : str
        One of: exponential (exp), weibull, gompertz, loglogistic (llogis),
        lognormal (lnorm), gamma
    **params
        The family's parameters, e.g. shape=1.2, scale=8.0 for weibull.
    """
    key = name.lower()
    if key not in SURVIVAL_DISTRIBUTIONS:
        raise InvalidParameter(
            f"Unknown survival distribution '{name}'. "
            f"Available: {sorted(set(SURVIVAL_DISTRIBUTIONS))}"
        )
    cls = SURVIVAL_DISTRIBUTIONS[key]
    try:
        return cls(**params)
    except TypeError as exc:
        raise InvalidParameter(f"Bad parameters for '{name}': {exc}") from exc
