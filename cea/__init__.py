"""
Cost-effectiveness analysis — ICERs, incremental analysis, PSA aggregation and decision support.
"""

from .aggregator import (
    acceptability_curve,
    expected_value_of_perfect_information,
    incremental_samples,
    summarize_psa,
)
from .decisions import DecisionReport, generate_decision_report
from .metrics import compute_icer, icer, incremental_analysis, net_monetary_benefit

__all__ = [
    "compute_icer",
    "icer",
    "incremental_analysis",
    "net_monetary_benefit",
    "summarize_psa",
    "incremental_samples",
    "acceptability_curve",
    "expected_value_of_perfect_information",
    "DecisionReport",
    "generate_decision_report",
]
