"""
Error kinds raised by the cohort engine and its helpers.

All of them are detected eagerly, before any computation starts, and are
subclasses of ValueError so callers that already guard with ValueError keep
working.
"""

from __future__ import annotations


class CohortModelError(ValueError):
    """Base class for invalid model inputs."""


class DimensionMismatch(CohortModelError):
    """Vector/matrix sizes disagree with the state count or cycle count."""


class InvalidTransitionMatrix(CohortModelError):
    """A transition row does not sum to 1 or holds an invalid probability."""


class InvalidParameter(CohortModelError):
    """A scalar parameter is outside its valid domain."""
