"""
cohort-cea — command-line front end to the cohort engine.

  cohort-cea run --matrix P.csv --costs costs.csv --effects effects.csv --cycles 20 --discount 0.06
  cohort-cea reference hiv_art
  cohort-cea reference hiv_art --psa 1000 --seed 42 --workers 4

`run` simulates one model from files (see data_prep.loader for the layout)
and prints the per-cycle trace and totals, or writes the trace as CSV.
`reference` runs a published two-strategy model and prints the incremental
analysis; with --psa it also samples the model's parameter uncertainty and
prints the acceptability curve and EVPI over the PSAConfig WTP grid.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, List, Mapping, Optional

import numpy as np

from core.config import PSAConfig, SimulationConfig
from core.errors import CohortModelError
from data_prep.loader import align_state_values, load_matrix, load_state_values
from distributions.benchmarks import (
    REFERENCE_MODELS,
    ReferenceModel,
    get_reference_model,
    get_reference_psa_spec,
)
from distributions.psa_spec import sample_parameters
from engine.cohort import CohortInputs, CohortSimulator
from engine.runner import Strategy, run_psa, run_strategies
from engine.schedule import expand_schedule
from cea.aggregator import acceptability_curve, expected_value_of_perfect_information
from cea.metrics import incremental_analysis
from transitions.scenario import apply_relative_risk

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cohort-cea", description=__doc__.split("\n")[1])
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="simulate one model from CSV/Excel inputs")
    run.add_argument("--matrix", required=True, help="transition matrix file")
    run.add_argument("--costs", required=True, help="per-state cost file")
    run.add_argument("--effects", required=True, help="per-state effect file")
    run.add_argument("--initial", help="per-state initial counts (default: cohort in first state)")
    run.add_argument("--cohort-size", type=float, default=1000.0)
    run.add_argument("--cycles", type=int, required=True)
    run.add_argument("--discount", type=float, default=0.0)
    run.add_argument("--discount-effects", action="store_true")
    run.add_argument("--dead-state", help="state label for the survival column")
    run.add_argument("--output", help="write the per-cycle trace to this CSV")

    ref = sub.add_parser("reference", help="run a published reference model")
    ref.add_argument("name", choices=sorted(REFERENCE_MODELS))
    ref.add_argument("--psa", type=int, metavar="N", help="also run N PSA samples")
    ref.add_argument("--seed", type=int, default=PSAConfig.seed)
    ref.add_argument("--workers", type=int, help="thread pool size for PSA runs")
    return parser


def _cmd_run(args: argparse.Namespace) -> int:
    matrix, names = load_matrix(args.matrix)
    costs = align_state_values(*load_state_values(args.costs), names, source=args.costs)
    effects = align_state_values(*load_state_values(args.effects), names, source=args.effects)

    if args.initial:
        initial = align_state_values(*load_state_values(args.initial), names, source=args.initial)
    else:
        initial = np.zeros(len(names))
        initial[0] = args.cohort_size

    config = SimulationConfig(
        n_cycles=args.cycles,
        discount_rate=args.discount,
        discount_effects=args.discount_effects,
    )
    result = CohortSimulator(config).run(initial, matrix, costs, effects, state_names=names)

    trace = result.to_dataframe()
    if args.dead_state:
        trace["survival"] = result.survival(args.dead_state)

    if args.output:
        trace.to_csv(args.output, index=False)
        logger.info("Wrote %d cycles to %s", len(trace), args.output)
    else:
        print(trace.to_string(index=False))

    print(f"Total cost:   {result.total_cost:,.2f}")
    print(f"Total effect: {result.total_effect:,.4f}")
    return 0


def _reference_strategies(model: ReferenceModel) -> List[Strategy]:
    """
    Comparator and intervention for a reference model.

    Parameters named as in get_reference_psa_spec() (P_mono, rr,
    cost_<component>_<state>) override the published point values.
    """
    n, k = model.n_cycles, model.treatment_cycles
    alive = model.effects > 0

    def costs(params: Mapping[str, Any]) -> np.ndarray:
        total = np.zeros(len(model.states))
        for component, values in model.state_costs.items():
            for i, state in enumerate(model.states):
                total[i] += params.get(f"cost_{component}_{state}", values[i])
        return total

    def comparator(params: Mapping[str, Any]) -> CohortInputs:
        return CohortInputs(
            initial_state=model.initial_state,
            transitions=params.get("P_mono", model.transition_matrix),
            costs=costs(params),
            effects=model.effects,
            state_names=model.states,
        )

    def intervention(params: Mapping[str, Any]) -> CohortInputs:
        base = params.get("P_mono", model.transition_matrix)
        treated = apply_relative_risk(base, params.get("rr", model.relative_risk))
        c = costs(params)
        return CohortInputs(
            initial_state=model.initial_state,
            transitions=expand_schedule([(treated, k), (base, n - k)]),
            costs=expand_schedule([(c + model.treatment_cost * alive, k), (c, n - k)]),
            effects=model.effects,
            state_names=model.states,
        )

    return [Strategy("comparator", comparator), Strategy("intervention", intervention)]


def _cmd_reference(args: argparse.Namespace) -> int:
    model = get_reference_model(args.name)
    strategies = _reference_strategies(model)
    config = SimulationConfig(n_cycles=model.n_cycles, discount_rate=model.discount_rate)

    results = run_strategies(strategies, {}, config)
    print(model.name)
    print(f"Source: {model.source}")
    print(incremental_analysis(results).to_string(index=False))

    if args.psa:
        psa_config = PSAConfig(n_samples=args.psa, seed=args.seed, max_workers=args.workers)
        spec = get_reference_psa_spec(
            args.name, n_samples=psa_config.n_samples, seed=psa_config.seed
        )
        psa = run_psa(strategies, sample_parameters(spec), config, psa_config=psa_config)
        print()
        print(f"Acceptability curve ({psa.n_samples} samples)")
        print(acceptability_curve(psa, psa_config.willingness_to_pay).to_string(index=False))
        print()
        print("Expected value of perfect information")
        print(expected_value_of_perfect_information(
            psa, psa_config.willingness_to_pay
        ).to_string(index=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        if args.command == "run":
            return _cmd_run(args)
        return _cmd_reference(args)
    except CohortModelError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
