"""
SurvivalTransitionModel — time-dependent transition probability from a parametric survival curve.

One transition (e.g. pre-symptomatic -> death) follows a fitted survival
distribution instead of a constant probability. For cycle t of length L:

    p_t = 1 - S(t L) / S((t - 1) L)

The remaining exits of that row keep their base values and the diagonal
takes the complement. Other rows are unchanged. Fitting the distribution
is out of scope: pass a distributions.survival object built from an
external fit's parameters.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from core.errors import InvalidParameter, InvalidTransitionMatrix
from data_prep.validators import check_transition_matrices
from distributions.survival import SurvivalDistribution

from .base import TransitionModel


@dataclass(frozen=True)
class SurvivalTransitionModel(TransitionModel):
    base: np.ndarray
    from_state: int
    to_state: int
    distribution: SurvivalDistribution
    cycle_length: float = 1.0

    def __post_init__(self) -> None:
        arr = np.asarray(self.base, dtype=float)
        check_transition_matrices(arr, arr.shape[0] if arr.ndim == 2 else -1)
        object.__setattr__(self, "base", arr)
        n = arr.shape[0]
        for label, idx in (("from_state", self.from_state), ("to_state", self.to_state)):
            if not 0 <= idx < n:
                raise InvalidParameter(f"{label} {idx} out of range for {n} states.")
        if self.from_state == self.to_state:
            raise InvalidParameter("from_state and to_state must differ.")
        if self.cycle_length <= 0:
            raise InvalidParameter("cycle_length must be positive.")

    @property
    def n_states(self) -> int:
        return self.base.shape[0]

    def matrices(self, n_cycles: int) -> np.ndarray:
        i, j = self.from_state, self.to_state
        probs = self.distribution.cycle_probabilities(n_cycles, self.cycle_length)

        out = np.repeat(self.base[np.newaxis, :, :], n_cycles, axis=0)
        out[:, i, j] = probs
        other_exits = self.base[i].sum() - self.base[i, i] - self.base[i, j]
        stay = 1.0 - other_exits - probs
        if np.any(stay < -1e-12):
            t = int(np.argmin(stay))
            raise InvalidTransitionMatrix(
                f"Cycle {t + 1}: survival-derived probability {probs[t]:.4f} plus other exits "
                f"{other_exits:.4f} from state {i} exceeds 1."
            )
        out[:, i, i] = np.clip(stay, 0.0, 1.0)
        return out
