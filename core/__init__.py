"""
Core package — configuration, error kinds, state-space schema and shared utilities.
No simulation logic lives here.
"""

from .config import PSAConfig, SimulationConfig
from .errors import (
    CohortModelError,
    DimensionMismatch,
    InvalidParameter,
    InvalidTransitionMatrix,
)
from .schema import PSA_COLUMNS, TRACE_COLUMNS, StateSpace
from .utils import (
    discount_factors,
    probability_to_rate,
    rate_to_probability,
    rescale_probability,
)

__all__ = [
    "SimulationConfig",
    "PSAConfig",
    "CohortModelError",
    "DimensionMismatch",
    "InvalidParameter",
    "InvalidTransitionMatrix",
    "StateSpace",
    "TRACE_COLUMNS",
    "PSA_COLUMNS",
    "discount_factors",
    "rate_to_probability",
    "probability_to_rate",
    "rescale_probability",
]
