"""PSA sampling specs and replication runner."""
import json

import numpy as np
import pandas as pd
import pytest
from pydantic import ValidationError

from core.config import PSAConfig, SimulationConfig
from core.errors import DimensionMismatch, InvalidParameter
from distributions.benchmarks import get_reference_psa_spec
from distributions.psa_spec import (
    DirichletSpec,
    MultivariateNormalSpec,
    ParameterSpec,
    PSASpec,
    SampledParameters,
    load_psa_spec,
    sample_parameters,
)
from engine.cohort import CohortInputs
from engine.runner import Strategy, run_psa
from engine.schedule import expand_schedule
from transitions.scenario import apply_relative_risk


def _hiv_strategies(model):
    n, k = model.n_cycles, model.treatment_cycles
    alive = model.effects > 0

    def costs(params):
        c = np.zeros(4)
        for component in ("direct_medical", "community"):
            for i, state in enumerate(model.states[:3]):
                c[i] += params[f"cost_{component}_{state}"]
        return c + model.state_costs["zidovudine"]

    def mono(params):
        return CohortInputs(model.initial_state, params["P_mono"], costs(params), model.effects)

    def combo(params):
        P = params["P_mono"]
        treated = apply_relative_risk(P, min(params["rr"], 1.0))
        c = costs(params)
        return CohortInputs(
            model.initial_state,
            expand_schedule([(treated, k), (P, n - k)]),
            expand_schedule([(c + model.treatment_cost * alive, k), (c, n - k)]),
            model.effects,
        )

    return [Strategy("mono", mono), Strategy("combo", combo)]


# ---------------------------------------------------------------------------
# Spec models
# ---------------------------------------------------------------------------


def test_parameter_spec_requires_fields():
    with pytest.raises(ValidationError):
        ParameterSpec(name="p", distribution="beta", mean=0.3)
    with pytest.raises(ValidationError):
        ParameterSpec(name="p", distribution="weibull", value=1.0)
    ParameterSpec(name="p", distribution="beta", alpha=2.0, beta=5.0)


def test_dirichlet_spec_square():
    with pytest.raises(ValidationError):
        DirichletSpec(name="P", counts=[[1, 2], [3]])


def test_mvn_spec_shapes():
    with pytest.raises(ValidationError):
        MultivariateNormalSpec(names=["a", "b"], mean=[0.0], cov=[[1.0, 0.0], [0.0, 1.0]])


def test_psa_spec_unique_names():
    with pytest.raises(ValidationError, match="Duplicate"):
        PSASpec(parameters=[
            ParameterSpec(name="x", distribution="fixed", value=1.0),
            ParameterSpec(name="x", distribution="fixed", value=2.0),
        ])


def test_load_psa_spec(tmp_path):
    path = tmp_path / "psa.json"
    path.write_text(json.dumps({
        "n_samples": 25,
        "seed": 3,
        "parameters": [
            {"name": "u", "distribution": "beta", "mean": 0.8, "sd": 0.05},
            {"name": "c", "distribution": "gamma", "mean": 100, "sd": 10},
            {"name": "k", "distribution": "fixed", "value": 2},
        ],
        "dirichlet": [{"name": "P", "counts": [[5, 5], [0, 1]]}],
        "multivariate_normal": [
            {"names": ["b0", "b1"], "mean": [0.0, 1.0], "cov": [[1.0, 0.1], [0.1, 1.0]]}
        ],
    }))
    spec = load_psa_spec(path)
    sampled = sample_parameters(spec)
    assert sampled.n_samples == 25
    assert sampled.names == ["u", "c", "k", "P", "b0", "b1"]
    assert sampled.values["P"].shape == (25, 2, 2)
    np.testing.assert_array_equal(sampled.values["k"], 2.0)
    one = sampled.get_sample(3)
    assert isinstance(one["u"], float)
    assert one["P"].shape == (2, 2)


# ---------------------------------------------------------------------------
# SampledParameters
# ---------------------------------------------------------------------------


def test_sampling_reproducible():
    spec = get_reference_psa_spec("hiv_art", n_samples=20, seed=5)
    a = sample_parameters(spec)
    b = sample_parameters(spec)
    for name in a.names:
        np.testing.assert_array_equal(a.values[name], b.values[name])


def test_sampled_parameters_length_check():
    with pytest.raises(DimensionMismatch):
        SampledParameters({"a": np.zeros(3), "b": np.zeros(4)})


def test_sampled_parameters_tables():
    sampled = SampledParameters({"a": np.arange(4.0), "P": np.zeros((4, 2, 2))})
    df = sampled.to_dataframe()
    assert list(df.columns) == ["sample", "a"]
    summary = sampled.summary()
    assert list(summary["Parameter"]) == ["a"]
    assert summary["Mean"].iloc[0] == pytest.approx(1.5)
    with pytest.raises(InvalidParameter):
        sampled.get_sample(4)


def test_reference_spec_contents():
    spec = get_reference_psa_spec("hiv_art", n_samples=10)
    names = [p.name for p in spec.parameters]
    assert names[0] == "rr"
    assert "cost_direct_medical_C" in names
    assert "cost_community_D" not in names
    assert spec.dirichlet[0].name == "P_mono"


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


@pytest.fixture
def hiv_psa(hiv_model):
    sampled = sample_parameters(get_reference_psa_spec("hiv_art", n_samples=40, seed=42))
    config = SimulationConfig(n_cycles=hiv_model.n_cycles, discount_rate=hiv_model.discount_rate)
    return sampled, config, _hiv_strategies(hiv_model)


def test_run_psa_output_layout(hiv_psa):
    sampled, config, strategies = hiv_psa
    psa = run_psa(strategies, sampled, config)
    df = psa.to_dataframe()
    assert list(df.columns) == ["sample", "strategy", "cost", "effect"]
    assert len(df) == 80
    assert list(df["strategy"].iloc[:4]) == ["mono", "combo", "mono", "combo"]
    assert psa.n_samples == 40
    assert list(psa.costs().columns) == ["mono", "combo"]
    assert (psa.effects()["combo"] > psa.effects()["mono"]).all()


def test_run_psa_parallel_matches_sequential(hiv_psa):
    sampled, config, strategies = hiv_psa
    seq = run_psa(strategies, sampled, config)
    par = run_psa(strategies, sampled, config, max_workers=4)
    pd.testing.assert_frame_equal(seq.outcomes, par.outcomes)


def test_run_psa_fixed_params_filled_in(hiv_model):
    sampled = SampledParameters({"scale": np.array([1.0, 2.0])})
    seen = []

    def build(params):
        seen.append(dict(params))
        return CohortInputs(hiv_model.initial_state, hiv_model.transition_matrix,
                            hiv_model.comparator_costs * params["scale"], hiv_model.effects)

    psa = run_psa([Strategy("only", build)], sampled, SimulationConfig(n_cycles=5),
                  fixed_params={"scale": 99.0, "other": 1})
    costs = psa.costs()["only"].to_numpy()
    assert costs[1] == pytest.approx(2 * costs[0])
    assert seen[0] == {"scale": 1.0, "other": 1}


def test_run_psa_takes_workers_from_psa_config(hiv_psa):
    sampled, config, strategies = hiv_psa
    seq = run_psa(strategies, sampled, config)
    pooled = run_psa(strategies, sampled, config, psa_config=PSAConfig(max_workers=3))
    pd.testing.assert_frame_equal(seq.outcomes, pooled.outcomes)


def test_run_psa_rejects_duplicates_and_empty(hiv_psa):
    sampled, config, strategies = hiv_psa
    with pytest.raises(InvalidParameter):
        run_psa([strategies[0], strategies[0]], sampled, config)
    with pytest.raises(InvalidParameter):
        run_psa([], sampled, config)
    with pytest.raises(InvalidParameter):
        run_psa(strategies, SampledParameters({}), config)
