"""
ConstantTransitionModel — the same matrix in every cycle (time-homogeneous chain).
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from data_prep.validators import check_transition_matrices

from .base import TransitionModel


@dataclass(frozen=True)
class ConstantTransitionModel(TransitionModel):
    matrix: np.ndarray

    def __post_init__(self) -> None:
        arr = np.asarray(self.matrix, dtype=float)
        check_transition_matrices(arr, arr.shape[0] if arr.ndim == 2 else -1)
        object.__setattr__(self, "matrix", arr)

    @property
    def n_states(self) -> int:
        return self.matrix.shape[0]

    def matrices(self, n_cycles: int) -> np.ndarray:
        return np.repeat(self.matrix[np.newaxis, :, :], n_cycles, axis=0)
