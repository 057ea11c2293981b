"""
Load transition matrices and per-state values from CSV or Excel.

Files carry state labels in the first column (and, for matrices, the header
row), e.g.

    state,A,B,C,D
    A,0.721,0.202,0.067,0.010
    ...
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from core.errors import DimensionMismatch, InvalidParameter

logger = logging.getLogger(__name__)

_EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


def _read_table(path: Union[str, Path], *, sheet_name=None) -> pd.DataFrame:
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in _EXCEL_SUFFIXES:
        engine = "xlrd" if suffix == ".xls" else "openpyxl"
        df = pd.read_excel(path, sheet_name=sheet_name or 0, index_col=0, engine=engine)
    elif suffix in {".csv", ".txt"}:
        df = pd.read_csv(path, index_col=0)
    else:
        raise InvalidParameter(f"Unsupported file type '{suffix}' for {path}.")
    df.index = df.index.astype(str).str.strip()
    df.columns = [str(c).strip() for c in df.columns]
    return df


def load_matrix(
    path: Union[str, Path],
    *,
    sheet_name: Optional[str] = None,
) -> Tuple[np.ndarray, List[str]]:
    """
    Load a square transition matrix. Returns (matrix, state_names).

    Column labels, when they name states, must match the row labels in order.
    """
    df = _read_table(path, sheet_name=sheet_name)
    n_rows, n_cols = df.shape
    if n_rows != n_cols:
        raise DimensionMismatch(f"Matrix in {path} is {n_rows}x{n_cols}, expected square.")

    names = list(df.index)
    if set(df.columns) == set(names) and list(df.columns) != names:
        logger.warning("Reordering columns of %s to match row labels.", path)
        df = df[names]

    matrix = df.apply(pd.to_numeric, errors="coerce").to_numpy(dtype=float)
    if np.isnan(matrix).any():
        raise InvalidParameter(f"Matrix in {path} has empty or non-numeric cells.")
    logger.debug("Loaded %dx%d matrix from %s", n_rows, n_cols, path)
    return matrix, names


def load_state_values(
    path: Union[str, Path],
    *,
    column: Optional[str] = None,
    sheet_name: Optional[str] = None,
) -> Tuple[np.ndarray, List[str]]:
    """
    Load one value per state (costs, utilities, initial counts).
    Uses the first data column unless `column` is given.
    """
    df = _read_table(path, sheet_name=sheet_name)
    if df.shape[1] == 0:
        raise DimensionMismatch(f"No value column in {path}.")
    if column is None:
        column = df.columns[0]
    elif column not in df.columns:
        raise InvalidParameter(
            f"Column '{column}' not in {path}. Available: {list(df.columns)}"
        )
    values = pd.to_numeric(df[column], errors="coerce").to_numpy(dtype=float)
    if np.isnan(values).any():
        raise InvalidParameter(f"Column '{column}' in {path} has non-numeric cells.")
    return values, list(df.index)


def align_state_values(
    values: np.ndarray,
    names: List[str],
    target: List[str],
    *,
    source: str = "values",
) -> np.ndarray:
    """
    Reorder per-state values from `names` order into `target` order.

    The labels must be the same states; otherwise DimensionMismatch.
    """
    names, target = list(names), list(target)
    if names == target:
        return np.asarray(values, dtype=float)
    if len(set(names)) != len(names) or len(names) != len(target) or set(names) != set(target):
        raise DimensionMismatch(f"States in {source} {names} do not match {target}.")
    logger.warning("Reordering %s to match state order %s.", source, target)
    return pd.Series(values, index=names).reindex(target).to_numpy(dtype=float)
