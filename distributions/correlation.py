"""
Covariance helpers for correlated PSA draws (multivariate normal).

Covariance matrices assembled from published standard errors and
correlations, or copied from a regression output at limited precision,
are often not positive semi-definite. numpy's multivariate_normal then
warns and produces garbage, so matrices are repaired first.
"""

from __future__ import annotations

import logging

import numpy as np

from core.errors import DimensionMismatch, InvalidParameter

logger = logging.getLogger(__name__)


def _check_square(matrix: np.ndarray, label: str) -> None:
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise DimensionMismatch(f"{label} must be square, got shape {matrix.shape}.")
    if not np.allclose(matrix, matrix.T):
        raise InvalidParameter(f"{label} must be symmetric.")


def ensure_positive_semidefinite(cov, *, min_eigenvalue: float = 1e-10) -> np.ndarray:
    """
    Clip negative eigenvalues of a symmetric matrix to `min_eigenvalue`.

    The diagonal is rescaled back to its original variances so marginal
    spreads are unchanged.
    """
    cov = np.asarray(cov, dtype=float)
    _check_square(cov, "Covariance matrix")

    eigenvalues, eigenvectors = np.linalg.eigh(cov)
    if eigenvalues.min() >= 0:
        return cov.copy()

    logger.warning(
        "Covariance matrix not positive semi-definite (min eigenvalue %.3g); clipping.",
        eigenvalues.min(),
    )
    eigenvalues = np.maximum(eigenvalues, min_eigenvalue)
    fixed = eigenvectors @ np.diag(eigenvalues) @ eigenvectors.T
    target = np.sqrt(np.clip(np.diag(cov), 0.0, None))
    current = np.sqrt(np.diag(fixed))
    scale = np.divide(target, current, out=np.zeros_like(target), where=current > 0)
    fixed = fixed * np.outer(scale, scale)
    return (fixed + fixed.T) / 2.0


def covariance_from_correlation(sd, corr) -> np.ndarray:
    """Σ = diag(sd) · R · diag(sd)."""
    sd = np.asarray(sd, dtype=float)
    corr = np.asarray(corr, dtype=float)
    _check_square(corr, "Correlation matrix")
    if sd.ndim != 1 or sd.size != corr.shape[0]:
        raise DimensionMismatch(
            f"{sd.size} standard deviations for a {corr.shape[0]}x{corr.shape[0]} correlation matrix."
        )
    if np.any(sd < 0):
        raise InvalidParameter("Standard deviations must be non-negative.")
    if not np.allclose(np.diag(corr), 1.0) or np.any(np.abs(corr) > 1.0 + 1e-12):
        raise InvalidParameter("Correlation matrix needs a unit diagonal and entries in [-1, 1].")
    return np.outer(sd, sd) * corr
