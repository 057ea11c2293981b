"""
Data preparation — loading matrices/state values from files, input validation.
"""

from .loader import align_state_values, load_matrix, load_state_values
from .validators import (
    ValidationResult,
    absorbing_states,
    check_state_values,
    check_state_vector,
    check_transition_matrices,
    is_per_cycle,
    validate_cohort_inputs,
)

__all__ = [
    "align_state_values",
    "load_matrix",
    "load_state_values",
    "ValidationResult",
    "absorbing_states",
    "check_state_values",
    "check_state_vector",
    "check_transition_matrices",
    "is_per_cycle",
    "validate_cohort_inputs",
]
