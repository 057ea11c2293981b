"""
Treatment-effect and phased transition models.

RelativeRiskTransitionModel applies a treatment's relative risk to every
transition out of a state (the off-diagonal entries); the probability of
staying put absorbs the difference. That is how the combination-therapy
matrix of the HIV/ART model is built from the monotherapy matrix:

    P_combo = apply_relative_risk(P_mono, 0.509)

PhasedTransitionModel chains models over consecutive cycle ranges, e.g.
two cycles of combination therapy followed by monotherapy:

    model = PhasedTransitionModel([
        (RelativeRiskTransitionModel(P_mono, 0.509), 2),
        (ConstantTransitionModel(P_mono), 18),
    ])
    model.matrices(20)   # (20, 4, 4)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from core.errors import DimensionMismatch, InvalidParameter, InvalidTransitionMatrix
from data_prep.validators import check_transition_matrices

from .base import TransitionModel


def apply_relative_risk(matrix, relative_risk: float) -> np.ndarray:
    """
    Scale off-diagonal probabilities by `relative_risk`; diagonal = 1 - row sum.

    Raises InvalidTransitionMatrix if the scaled exits of a row exceed 1.
    """
    if not np.isfinite(relative_risk) or relative_risk < 0:
        raise InvalidParameter(f"Relative risk must be non-negative, got {relative_risk}.")
    base = np.asarray(matrix, dtype=float)
    check_transition_matrices(base, base.shape[0] if base.ndim == 2 else -1)

    out = base * relative_risk
    exits = out.sum(axis=1) - np.diag(out)
    if np.any(exits > 1.0):
        row = int(np.argmax(exits))
        raise InvalidTransitionMatrix(
            f"Relative risk {relative_risk} pushes exits from row {row} to {exits[row]:.4f} > 1."
        )
    np.fill_diagonal(out, 1.0 - exits)
    return out


@dataclass(frozen=True)
class RelativeRiskTransitionModel(TransitionModel):
    """Constant matrix: base transitions with a treatment relative risk applied."""

    base: np.ndarray
    relative_risk: float

    @property
    def n_states(self) -> int:
        return np.shape(self.base)[0]

    @property
    def matrix(self) -> np.ndarray:
        return apply_relative_risk(self.base, self.relative_risk)

    def matrices(self, n_cycles: int) -> np.ndarray:
        return np.repeat(self.matrix[np.newaxis, :, :], n_cycles, axis=0)


@dataclass(frozen=True)
class PhasedTransitionModel(TransitionModel):
    """
    Consecutive phases, each a (TransitionModel, duration) pair.

    Each phase's model is asked for `duration` cycles; the results are
    stacked in order. The total duration must equal the requested horizon.
    """

    phases: Sequence[Tuple[TransitionModel, int]]

    def __post_init__(self) -> None:
        if not self.phases:
            raise InvalidParameter("PhasedTransitionModel needs at least one phase.")
        sizes = {model.n_states for model, _ in self.phases}
        if len(sizes) > 1:
            raise DimensionMismatch(f"Phases disagree on the number of states: {sorted(sizes)}")

    @property
    def n_states(self) -> int:
        return self.phases[0][0].n_states

    @property
    def total_cycles(self) -> int:
        return sum(int(d) for _, d in self.phases)

    def matrices(self, n_cycles: int) -> np.ndarray:
        if n_cycles != self.total_cycles:
            raise DimensionMismatch(
                f"Phases cover {self.total_cycles} cycles, requested {n_cycles}."
            )
        blocks = []
        for model, duration in self.phases:
            if int(duration) != duration or duration < 1:
                raise InvalidParameter(f"Phase duration must be a positive integer, got {duration!r}.")
            blocks.append(model.matrices(int(duration)))
        return np.concatenate(blocks, axis=0)
