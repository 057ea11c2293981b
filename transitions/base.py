"""
Base class for transition-matrix models.
A model turns its parameters into the per-cycle matrices the simulator consumes.
"""

from __future__ import annotations

import numpy as np


class TransitionModel:
    """Interface for generating per-cycle transition matrices."""

    n_states: int

    def matrices(self, n_cycles: int) -> np.ndarray:
        """Return an (n_cycles, S, S) array of row-stochastic matrices."""
        raise NotImplementedError
