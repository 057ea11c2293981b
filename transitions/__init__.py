"""
Transition models — turn model parameters into per-cycle transition matrices.
"""

from .base import TransitionModel
from .constant import ConstantTransitionModel
from .scenario import PhasedTransitionModel, RelativeRiskTransitionModel, apply_relative_risk
from .survival import SurvivalTransitionModel

__all__ = [
    "TransitionModel",
    "ConstantTransitionModel",
    "RelativeRiskTransitionModel",
    "PhasedTransitionModel",
    "SurvivalTransitionModel",
    "apply_relative_risk",
]
