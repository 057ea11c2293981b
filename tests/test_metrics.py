"""Cost-effectiveness metrics, PSA aggregation and decision reports."""
import math

import numpy as np
import pandas as pd
import pytest

from cea.aggregator import (
    acceptability_curve,
    expected_value_of_perfect_information,
    incremental_samples,
    summarize_psa,
)
from cea.decisions import generate_decision_report
from cea.metrics import icer, incremental_analysis, net_monetary_benefit
from core.config import PSAConfig
from core.errors import InvalidParameter
from engine.runner import PSAResults


def _make_psa():
    """Four samples: comparator fixed at (100, 1); the intervention lands in every quadrant."""
    rows = []
    for i, (cost, effect) in enumerate([(150, 2.0), (150, 0.5), (50, 1.5), (250, 2.0)]):
        rows.append({"sample": i, "strategy": "comparator", "cost": 100.0, "effect": 1.0})
        rows.append({"sample": i, "strategy": "intervention", "cost": float(cost), "effect": effect})
    return PSAResults(outcomes=pd.DataFrame(rows), strategies=["comparator", "intervention"])


def _make_frontier():
    return pd.DataFrame({
        "strategy": ["E", "D", "C", "B", "A"],
        "cost": [400.0, 300.0, 250.0, 100.0, 0.0],
        "effect": [1.5, 1.6, 1.2, 1.0, 0.0],
    })


# ---------------------------------------------------------------------------
# Deterministic metrics
# ---------------------------------------------------------------------------


def test_icer_ratio():
    assert icer(5940.0, 0.9463) == pytest.approx(5940.0 / 0.9463)


def test_icer_zero_effect_is_nan(caplog):
    assert math.isnan(icer(100.0, 0.0))
    assert "ICER undefined" in caplog.text


def test_net_monetary_benefit():
    nmb = net_monetary_benefit([100.0, 200.0], [1.0, 3.0], 50.0)
    np.testing.assert_allclose(nmb, [-50.0, -50.0])


def test_incremental_analysis_dominance():
    table = incremental_analysis(_make_frontier()).set_index("strategy")
    assert list(table.index) == ["A", "B", "C", "D", "E"]
    assert table.loc["E", "status"] == "dominated"
    assert table.loc["C", "status"] == "extendedly dominated"
    assert table.loc["B", "status"] == "non-dominated"
    assert table.loc["B", "icer"] == pytest.approx(100.0)
    assert table.loc["D", "icer"] == pytest.approx(200.0 / 0.6)
    assert table.loc["D", "incremental_cost"] == pytest.approx(200.0)
    assert np.isnan(table.loc["C", "icer"])
    assert np.isnan(table.loc["A", "icer"])


def test_incremental_analysis_needs_two():
    with pytest.raises(InvalidParameter):
        incremental_analysis(pd.DataFrame({"strategy": ["A"], "cost": [1.0], "effect": [1.0]}))
    with pytest.raises(InvalidParameter, match="Missing"):
        incremental_analysis(pd.DataFrame({"strategy": ["A", "B"], "cost": [1.0, 2.0]}))


# ---------------------------------------------------------------------------
# PSA aggregation
# ---------------------------------------------------------------------------


def test_incremental_samples():
    inc = incremental_samples(_make_psa(), "comparator", "intervention")
    np.testing.assert_allclose(inc["incremental_cost"], [50.0, 50.0, -50.0, 150.0])
    np.testing.assert_allclose(inc["incremental_effect"], [1.0, -0.5, 0.5, 1.0])
    with pytest.raises(InvalidParameter):
        incremental_samples(_make_psa(), "comparator", "other")


def test_summarize_psa():
    summary = summarize_psa(_make_psa())
    assert len(summary) == 4
    row = summary[(summary["Strategy"] == "intervention") & (summary["Metric"] == "cost")].iloc[0]
    assert row["Mean"] == pytest.approx(150.0)
    assert row["Min"] == 50.0
    assert row["Max"] == 250.0
    assert "P50" in summary.columns


def test_acceptability_curve():
    ceac = acceptability_curve(_make_psa(), [0.0, 100.0, 1000.0])
    assert list(ceac.columns) == ["wtp", "comparator", "intervention"]
    np.testing.assert_allclose(ceac[["comparator", "intervention"]].sum(axis=1), 1.0)
    assert ceac["intervention"].tolist() == pytest.approx([0.25, 0.5, 0.75])


def test_acceptability_curve_needs_wtp():
    with pytest.raises(InvalidParameter):
        acceptability_curve(_make_psa(), [])


def test_evpi():
    evpi = expected_value_of_perfect_information(_make_psa(), [0.0, 100.0])
    assert evpi["evpi"].tolist() == pytest.approx([12.5, 37.5])
    assert evpi["optimal_strategy"].iloc[0] == "comparator"
    assert (evpi["evpi"] >= 0).all()


def test_default_wtp_grid_from_psa_config():
    grid = list(PSAConfig().willingness_to_pay)
    assert acceptability_curve(_make_psa())["wtp"].tolist() == grid
    assert expected_value_of_perfect_information(_make_psa())["wtp"].tolist() == grid


def test_evpi_zero_without_uncertainty():
    rows = [
        {"sample": i, "strategy": s, "cost": c, "effect": 1.0}
        for i in range(3) for s, c in (("a", 10.0), ("b", 20.0))
    ]
    psa = PSAResults(outcomes=pd.DataFrame(rows), strategies=["a", "b"])
    evpi = expected_value_of_perfect_information(psa, [50.0])
    assert evpi["evpi"].iloc[0] == pytest.approx(0.0)
    assert evpi["optimal_strategy"].iloc[0] == "a"


# ---------------------------------------------------------------------------
# Decision report
# ---------------------------------------------------------------------------


def test_decision_report_probabilities():
    report = generate_decision_report(
        _make_psa(), comparator="comparator", intervention="intervention", willingness_to_pay=100.0,
    )
    assert report.n_samples == 4
    assert report.mean_incremental_cost == pytest.approx(50.0)
    assert report.mean_incremental_effect == pytest.approx(0.5)
    assert report.icer == pytest.approx(100.0)
    assert report.prob_cost_effective == pytest.approx(0.5)
    assert report.prob_dominant == pytest.approx(0.25)
    assert report.prob_dominated == pytest.approx(0.25)
    assert report.prob_more_costly_more_effective == pytest.approx(0.5)
    assert report.prob_less_costly_less_effective == pytest.approx(0.0)
    assert any(f.startswith("DECISION_UNCERTAIN") for f in report.flags)
    assert any(f.startswith("HARM_RISK") for f in report.flags)


def test_decision_report_threshold_flag():
    report = generate_decision_report(
        _make_psa(), comparator="comparator", intervention="intervention", willingness_to_pay=50.0,
    )
    assert report.prob_cost_effective == pytest.approx(0.25)
    assert any(f.startswith("ICER_ABOVE_THRESHOLD") for f in report.flags)
    table = report.to_dataframe()
    assert table["Metric"].iloc[-1] == "FLAGS"
    assert "ICER" in table["Metric"].tolist()


def test_decision_report_quadrants_partition_ties():
    psa = _make_psa()
    tie = pd.DataFrame([
        {"sample": 4, "strategy": "comparator", "cost": 100.0, "effect": 1.0},
        {"sample": 4, "strategy": "intervention", "cost": 100.0, "effect": 1.0},
    ])
    psa = PSAResults(outcomes=pd.concat([psa.outcomes, tie], ignore_index=True),
                     strategies=psa.strategies)
    report = generate_decision_report(
        psa, comparator="comparator", intervention="intervention", willingness_to_pay=100.0,
    )
    shares = [
        report.prob_dominant,
        report.prob_dominated,
        report.prob_more_costly_more_effective,
        report.prob_less_costly_less_effective,
    ]
    assert sum(shares) == pytest.approx(1.0)
    assert report.prob_less_costly_less_effective == pytest.approx(0.2)


def test_decision_report_unknown_strategy():
    with pytest.raises(InvalidParameter):
        generate_decision_report(
            _make_psa(), comparator="comparator", intervention="other", willingness_to_pay=1.0,
        )
