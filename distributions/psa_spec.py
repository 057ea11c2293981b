"""
Declarative PSA parameter sets.

A PSASpec lists every uncertain model input with the distribution it is
drawn from. It can be written in code or loaded from JSON:

    {
      "n_samples": 1000,
      "seed": 42,
      "parameters": [
        {"name": "rr", "distribution": "lognormal", "meanlog": -0.675, "sdlog": 0.170},
        {"name": "cost_a", "distribution": "gamma", "mean": 1701, "sd": 1701},
        {"name": "u_b", "distribution": "beta", "mean": 0.8, "sd": 0.05}
      ],
      "dirichlet": [{"name": "P_mono", "counts": [[1251, 350, 116, 17], ...]}]
    }

sample_parameters() turns a spec into SampledParameters: one row of drawn
values per PSA replication.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

import numpy as np
import pandas as pd
from pydantic import BaseModel, Field, model_validator

from core.errors import DimensionMismatch, InvalidParameter

from .sampler import ParameterSampler

# parameters each distribution accepts; any one listed alternative is sufficient
_REQUIRED: Dict[str, List[tuple]] = {
    "fixed": [("value",)],
    "normal": [("mean", "sd")],
    "beta": [("alpha", "beta"), ("mean", "sd")],
    "gamma": [("shape", "scale"), ("mean", "sd")],
    "lognormal": [("meanlog", "sdlog"), ("mean", "sd")],
    "uniform": [("low", "high")],
}


class ParameterSpec(BaseModel):
    """One scalar uncertain parameter."""
    name: str
    distribution: Literal["fixed", "normal", "beta", "gamma", "lognormal", "uniform"]
    value: Optional[float] = None
    mean: Optional[float] = None
    sd: Optional[float] = None
    alpha: Optional[float] = None
    beta: Optional[float] = None
    shape: Optional[float] = None
    scale: Optional[float] = None
    meanlog: Optional[float] = None
    sdlog: Optional[float] = None
    low: Optional[float] = None
    high: Optional[float] = None

    @model_validator(mode="after")
    def _check_parameters(self) -> "ParameterSpec":
        options = _REQUIRED[self.distribution]
        if not any(all(getattr(self, f) is not None for f in fields) for fields in options):
            wanted = " or ".join("(" + ", ".join(fields) + ")" for fields in options)
            raise ValueError(f"{self.distribution} parameter '{self.name}' needs {wanted}")
        return self

    def sample(self, sampler: ParameterSampler, n: int) -> np.ndarray:
        d = self.distribution
        if d == "fixed":
            return np.full(n, float(self.value))
        if d == "normal":
            return sampler.normal(self.mean, self.sd, size=n)
        if d == "uniform":
            return sampler.uniform(self.low, self.high, size=n)
        if d == "beta":
            if self.alpha is not None and self.beta is not None:
                return sampler.beta(self.alpha, self.beta, size=n)
            return sampler.beta_from_moments(self.mean, self.sd, size=n)
        if d == "gamma":
            if self.shape is not None and self.scale is not None:
                return sampler.gamma(self.shape, self.scale, size=n)
            return sampler.gamma_from_moments(self.mean, self.sd, size=n)
        if self.meanlog is not None and self.sdlog is not None:
            return sampler.lognormal(self.meanlog, self.sdlog, size=n)
        return sampler.lognormal_from_moments(self.mean, self.sd, size=n)


class DirichletSpec(BaseModel):
    """A whole transition matrix drawn row-wise from observed transition counts."""
    name: str
    counts: List[List[float]]

    @model_validator(mode="after")
    def _check_square(self) -> "DirichletSpec":
        n = len(self.counts)
        if n == 0 or any(len(row) != n for row in self.counts):
            raise ValueError(f"Dirichlet counts '{self.name}' must be a non-empty square matrix")
        return self


class MultivariateNormalSpec(BaseModel):
    """Correlated parameters, e.g. survival-model coefficients with their covariance."""
    names: List[str]
    mean: List[float]
    cov: List[List[float]]

    @model_validator(mode="after")
    def _check_shapes(self) -> "MultivariateNormalSpec":
        k = len(self.names)
        if len(self.mean) != k or len(self.cov) != k or any(len(r) != k for r in self.cov):
            raise ValueError(f"names, mean and cov disagree in size for {self.names}")
        return self


class PSASpec(BaseModel):
    n_samples: int = Field(default=1000, ge=1)
    seed: Optional[int] = 42
    parameters: List[ParameterSpec] = Field(default_factory=list)
    dirichlet: List[DirichletSpec] = Field(default_factory=list)
    multivariate_normal: List[MultivariateNormalSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_names(self) -> "PSASpec":
        names = [p.name for p in self.parameters] + [d.name for d in self.dirichlet]
        for block in self.multivariate_normal:
            names.extend(block.names)
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"Duplicate parameter names: {dupes}")
        return self


def load_psa_spec(path: Union[str, Path]) -> PSASpec:
    """Read and validate a PSASpec from a JSON file."""
    return PSASpec.model_validate_json(Path(path).read_text(encoding="utf-8"))


@dataclass
class SampledParameters:
    """
    Output of PSA sampling: n_samples replicate values per parameter.

    values[name] has shape (n_samples,) for scalar parameters and
    (n_samples, S, S) for Dirichlet-sampled matrices.
    """
    values: Dict[str, np.ndarray]

    def __post_init__(self) -> None:
        lengths = {k: len(v) for k, v in self.values.items()}
        if len(set(lengths.values())) > 1:
            raise DimensionMismatch(f"Parameters disagree on sample count: {lengths}")

    @property
    def n_samples(self) -> int:
        if not self.values:
            return 0
        return len(next(iter(self.values.values())))

    @property
    def names(self) -> List[str]:
        return list(self.values)

    def get_sample(self, idx: int) -> Dict[str, object]:
        """Parameter values for one replication; scalars come back as float."""
        if not 0 <= idx < self.n_samples:
            raise InvalidParameter(f"Sample index {idx} out of range (n={self.n_samples}).")
        out: Dict[str, object] = {}
        for name, arr in self.values.items():
            v = arr[idx]
            out[name] = float(v) if np.ndim(v) == 0 else np.array(v)
        return out

    def to_dataframe(self) -> pd.DataFrame:
        """Scalar parameters only, one row per sample."""
        data = {"sample": np.arange(self.n_samples)}
        for name, arr in self.values.items():
            if arr.ndim == 1:
                data[name] = arr
        return pd.DataFrame(data)

    def summary(self) -> pd.DataFrame:
        """Percentile summary of sampled scalar parameters."""
        pcts = [0.025, 0.25, 0.50, 0.75, 0.975]
        rows = []
        for name, arr in self.values.items():
            if arr.ndim != 1:
                continue
            row = {"Parameter": name, "Mean": np.mean(arr), "Std": np.std(arr)}
            for p in pcts:
                row[f"P{p * 100:g}"] = np.percentile(arr, p * 100)
            rows.append(row)
        return pd.DataFrame(rows)


def sample_parameters(
    spec: PSASpec,
    sampler: Optional[ParameterSampler] = None,
) -> SampledParameters:
    """
    Draw spec.n_samples replicates of every parameter in the spec.

    Draw order is the spec order (parameters, then dirichlet, then
    multivariate normal blocks), so a fixed seed reproduces the table.
    """
    sampler = sampler or ParameterSampler(spec.seed)
    n = spec.n_samples
    values: Dict[str, np.ndarray] = {}

    for p in spec.parameters:
        values[p.name] = np.asarray(p.sample(sampler, n), dtype=float)

    for d in spec.dirichlet:
        values[d.name] = sampler.dirichlet_matrix(d.counts, size=n)

    for block in spec.multivariate_normal:
        draws = sampler.multivariate_normal(block.mean, block.cov, size=n)
        for j, name in enumerate(block.names):
            values[name] = draws[:, j]

    return SampledParameters(values=values)
