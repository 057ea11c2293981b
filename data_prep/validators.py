"""
Input validation for cohort model inputs before they enter the engine.

Catches problems early:
- State vectors with negative or missing counts
- Transition matrices of the wrong shape
- Rows that do not sum to 1, negative probabilities
- Cost/effect vectors that disagree with the state count

The check_* functions raise on the first problem and are what the simulator
calls. validate_cohort_inputs() runs all of them and collects every message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from core.errors import (
    CohortModelError,
    DimensionMismatch,
    InvalidParameter,
    InvalidTransitionMatrix,
)

logger = logging.getLogger(__name__)

DEFAULT_ROW_SUM_TOLERANCE = 1e-6


@dataclass
class ValidationResult:
    """Collects all validation warnings/errors for a set of model inputs."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)


def check_state_vector(initial_state) -> np.ndarray:
    """Return z0 as a float array; it must be 1-D, finite and non-negative."""
    z0 = np.asarray(initial_state, dtype=float)
    if z0.ndim != 1 or z0.size == 0:
        raise DimensionMismatch(
            f"Initial state must be a non-empty 1-D vector, got shape {z0.shape}."
        )
    if not np.all(np.isfinite(z0)):
        raise InvalidParameter("Initial state contains non-finite values.")
    if np.any(z0 < 0):
        raise InvalidParameter("Initial state contains negative counts.")
    return z0


def check_transition_matrices(
    transitions,
    n_states: int,
    *,
    tolerance: float = DEFAULT_ROW_SUM_TOLERANCE,
) -> np.ndarray:
    """
    Return transitions as a (k, S, S) float array.

    A single (S, S) matrix comes back with k = 1. Every row of every matrix
    must be finite, non-negative and sum to 1 within `tolerance`.
    """
    arr = np.asarray(transitions, dtype=float)
    if arr.ndim == 2:
        arr = arr[np.newaxis, :, :]
    if arr.ndim != 3 or arr.shape[0] == 0:
        raise DimensionMismatch(
            f"Transitions must be an (S, S) matrix or (N, S, S) sequence, got shape {arr.shape}."
        )
    if arr.shape[1:] != (n_states, n_states):
        raise DimensionMismatch(
            f"Transition matrix is {arr.shape[1]}x{arr.shape[2]}, "
            f"expected {n_states}x{n_states}."
        )

    if not np.all(np.isfinite(arr)):
        cycle, row = np.argwhere(~np.isfinite(arr))[0][:2]
        raise InvalidTransitionMatrix(
            f"Non-finite probability in matrix {cycle}, row {row}."
        )
    if np.any(arr < 0):
        cycle, row, col = np.argwhere(arr < 0)[0]
        raise InvalidTransitionMatrix(
            f"Negative probability {arr[cycle, row, col]:.6g} in matrix {cycle}, "
            f"row {row}, column {col}."
        )

    row_sums = arr.sum(axis=2)
    bad = np.abs(row_sums - 1.0) > tolerance
    if np.any(bad):
        cycle, row = np.argwhere(bad)[0]
        raise InvalidTransitionMatrix(
            f"Row {row} of matrix {cycle} sums to {row_sums[cycle, row]:.6g}, "
            f"expected 1 (tolerance {tolerance:g})."
        )
    return arr


def check_state_values(values, n_states: int, *, label: str = "values") -> np.ndarray:
    """Return per-state values as a (k, S) float array (k = 1 for a constant vector)."""
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 1:
        arr = arr[np.newaxis, :]
    if arr.ndim != 2 or arr.shape[0] == 0:
        raise DimensionMismatch(
            f"{label} must be an (S,) vector or (N, S) sequence, got shape {arr.shape}."
        )
    if arr.shape[1] != n_states:
        raise DimensionMismatch(
            f"{label} has length {arr.shape[1]}, expected {n_states} (one per state)."
        )
    if not np.all(np.isfinite(arr)):
        raise InvalidParameter(f"{label} contains non-finite values.")
    return arr


def is_per_cycle(values, constant_ndim: int) -> bool:
    """True when `values` carries a leading cycle axis, even one of length 1."""
    return np.ndim(values) > constant_ndim


def absorbing_states(matrix: np.ndarray) -> List[int]:
    """Indices of states whose row keeps all mass on the diagonal."""
    matrix = np.asarray(matrix, dtype=float)
    return [i for i in range(matrix.shape[0]) if np.isclose(matrix[i, i], 1.0)]


def validate_cohort_inputs(
    initial_state,
    transitions,
    costs,
    effects,
    *,
    n_cycles: Optional[int] = None,
    tolerance: float = DEFAULT_ROW_SUM_TOLERANCE,
) -> ValidationResult:
    """
    Run all checks on a set of cohort inputs.
    Returns a ValidationResult with errors (blocking) and warnings (informational).
    """
    result = ValidationResult()

    try:
        z0 = check_state_vector(initial_state)
    except CohortModelError as exc:
        result.errors.append(str(exc))
        return result  # can't size anything else without z0

    n_states = z0.size
    if z0.sum() == 0:
        result.warnings.append("Initial state is all zeros — every output will be 0.")

    matrices = None
    try:
        matrices = check_transition_matrices(transitions, n_states, tolerance=tolerance)
    except CohortModelError as exc:
        result.errors.append(str(exc))

    # cycle counts of the inputs given as explicit per-cycle sequences
    lengths = {}
    for label, values in (("costs", costs), ("effects", effects)):
        try:
            arr = check_state_values(values, n_states, label=label)
        except CohortModelError as exc:
            result.errors.append(str(exc))
            continue
        if np.any(arr < 0):
            result.warnings.append(f"{label} contains negative entries.")
        if is_per_cycle(values, 1):
            lengths[label] = arr.shape[0]

    if matrices is not None:
        if is_per_cycle(transitions, 2):
            lengths["transitions"] = matrices.shape[0]
        if not absorbing_states(matrices[-1]):
            result.warnings.append(
                "No absorbing state in the final transition matrix — check the death state."
            )

    if n_cycles is not None:
        for label, length in lengths.items():
            if length != n_cycles:
                result.errors.append(
                    f"{label} has {length} cycles, expected {n_cycles}."
                )
    elif len(set(lengths.values())) > 1:
        result.errors.append(f"Per-cycle inputs disagree on the horizon: {lengths}.")
    elif not lengths:
        result.errors.append("n_cycles is required when every input is constant.")

    if not result.is_valid:
        logger.debug("Cohort input validation failed: %s", result.errors)
    return result
