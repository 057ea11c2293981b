from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from .errors import DimensionMismatch, InvalidParameter

# Columns of SimulationResult.to_dataframe(), before the per-state columns.
TRACE_COLUMNS: Tuple[str, ...] = (
    "cycle",
    "cost",
    "effect",
    "undiscounted_cost",
    "undiscounted_effect",
)

# Long-format PSA output (engine.runner.PSAResults).
PSA_COLUMNS: Tuple[str, ...] = ("sample", "strategy", "cost", "effect")


@dataclass(frozen=True)
class StateSpace:
    """Ordered, mutually exclusive health states of a cohort model."""

    names: Tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.names) == 0:
            raise InvalidParameter("A model needs at least one state.")
        if len(set(self.names)) != len(self.names):
            raise InvalidParameter(f"Duplicate state names: {list(self.names)}")

    @classmethod
    def default(cls, n_states: int) -> "StateSpace":
        return cls(tuple(f"state_{i}" for i in range(n_states)))

    @classmethod
    def resolve(cls, names: Optional[Iterable[str]], n_states: int) -> "StateSpace":
        """Build a StateSpace from optional names, checking the count."""
        if names is None:
            return cls.default(n_states)
        space = cls(tuple(str(n) for n in names))
        if space.n_states != n_states:
            raise DimensionMismatch(
                f"{space.n_states} state names given for a {n_states}-state model."
            )
        return space

    @property
    def n_states(self) -> int:
        return len(self.names)

    def index(self, state: "str | int") -> int:
        # bool is Integral but is never a state index
        if isinstance(state, numbers.Integral) and not isinstance(state, bool):
            if not 0 <= state < self.n_states:
                raise InvalidParameter(f"State index {state} out of range.")
            return int(state)
        try:
            return self.names.index(state)
        except ValueError:
            raise InvalidParameter(
                f"Unknown state '{state}'. Available: {list(self.names)}"
            ) from None

    def indices(self, states: Sequence["str | int"]) -> Tuple[int, ...]:
        return tuple(self.index(s) for s in states)
