from __future__ import annotations

import numpy as np

from .errors import InvalidParameter


def discount_factors(rate: float, n_cycles: int) -> np.ndarray:
    """(1 + r)^t for t = 1..n_cycles; divide an accrual by it to discount."""
    if not 0.0 <= rate < 1.0:
        raise InvalidParameter(f"Discount rate must be in [0, 1), got {rate}.")
    cycles = np.arange(1, n_cycles + 1, dtype=float)
    return np.power(1.0 + rate, cycles)


def rate_to_probability(rate, time: float = 1.0) -> np.ndarray:
    """Constant-hazard rate to the probability of an event within `time`: 1 - exp(-r t)."""
    rate = np.asarray(rate, dtype=float)
    if np.any(rate < 0):
        raise InvalidParameter("Rates must be non-negative.")
    return 1.0 - np.exp(-rate * time)


def probability_to_rate(prob, time: float = 1.0) -> np.ndarray:
    """Inverse of rate_to_probability: -ln(1 - p) / t."""
    prob = np.asarray(prob, dtype=float)
    if np.any((prob < 0) | (prob >= 1)):
        raise InvalidParameter("Probabilities must be in [0, 1).")
    return -np.log1p(-prob) / time


def rescale_probability(prob, from_length: float, to_length: float) -> np.ndarray:
    """Convert a per-period probability to another period length via 1-(1-p)^(to/from)."""
    prob = np.clip(np.asarray(prob, dtype=float), 0.0, 1.0)
    return 1.0 - np.power(1.0 - prob, to_length / from_length)
