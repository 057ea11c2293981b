"""
Simulation and PSA configuration.
Distribution parameters live in distributions/psa_spec.py (PSASpec).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import InvalidParameter


@dataclass(frozen=True)
class SimulationConfig:
    # None = take the horizon from the per-cycle inputs
    n_cycles: Optional[int] = None
    discount_rate: float = 0.0
    discount_effects: bool = False

    # max |row sum - 1| accepted for a transition matrix row
    row_sum_tolerance: float = 1e-6

    def __post_init__(self) -> None:
        if self.n_cycles is not None and self.n_cycles < 1:
            raise InvalidParameter(f"n_cycles must be >= 1, got {self.n_cycles}.")
        if not 0.0 <= self.discount_rate < 1.0:
            raise InvalidParameter(
                f"discount_rate must be in [0, 1), got {self.discount_rate}."
            )
        if self.row_sum_tolerance <= 0:
            raise InvalidParameter("row_sum_tolerance must be positive.")


@dataclass(frozen=True)
class PSAConfig:
    n_samples: int = 1000
    seed: int = 42

    # None = run replications sequentially
    max_workers: Optional[int] = None

    # willingness-to-pay grid for acceptability curves / EVPI
    willingness_to_pay: Tuple[float, ...] = (0.0, 10_000.0, 20_000.0, 30_000.0, 50_000.0)

    def __post_init__(self) -> None:
        if self.n_samples < 1:
            raise InvalidParameter(f"n_samples must be >= 1, got {self.n_samples}.")
        if self.max_workers is not None and self.max_workers < 1:
            raise InvalidParameter("max_workers must be >= 1 when given.")
