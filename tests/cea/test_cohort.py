"""Tests for deterministic cohort evaluation."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import numpy as np
import pytest

from cea_engine.cea.cohort import (
    cycle_frame,
    evaluate_strategy,
    run_cohort_model,
    trace_frame,
)
from cea_engine.core.params import CohortModelParams, StrategyParams, load_cohort_params

FIXTURE_PATH = Path(__file__).resolve().parents[1] / "fixtures" / "cohort_params_small.yaml"


def _alive_dead_params(rate: float = 0.0, timing: str = "end") -> CohortModelParams:
    strategy = StrategyParams(
        name="Only",
        transition_matrix=((0.9, 0.1), (0.0, 1.0)),
        state_costs={"medical": (100.0, 0.0), "drug": (10.0, 0.0)},
        state_utilities=(0.8, 0.0),
    )
    return CohortModelParams(
        states=("Alive", "Dead"),
        initial_distribution=(1.0, 0.0),
        n_cycles=3,
        strategies=(strategy,),
        discount_rate_costs=rate,
        discount_rate_qalys=rate,
        discount_timing=timing,
        dead_states=("Dead",),
    )


def test_undiscounted_totals_match_hand_computation() -> None:
    params = _alive_dead_params(rate=0.0)
    outcome = evaluate_strategy(params, params.strategies[0])

    assert outcome.cycle_costs["medical"] == pytest.approx([90.0, 81.0, 72.9])
    assert outcome.discounted_costs["medical"] == pytest.approx(243.9)
    assert outcome.discounted_costs["drug"] == pytest.approx(24.39)
    assert outcome.total_costs == pytest.approx(268.29)
    assert outcome.total_qalys == pytest.approx(0.8 * 2.439)
    assert outcome.total_life_years == pytest.approx(2.439)
    assert outcome.undiscounted_costs == pytest.approx(outcome.total_costs)
    assert outcome.undiscounted_qalys == pytest.approx(outcome.total_qalys)


def test_discounting_uses_end_of_cycle_times() -> None:
    params = _alive_dead_params(rate=0.03, timing="end")
    outcome = evaluate_strategy(params, params.strategies[0])

    expected = 90.0 / 1.03 + 81.0 / 1.03**2 + 72.9 / 1.03**3
    assert outcome.discounted_costs["medical"] == pytest.approx(expected)
    assert outcome.times.tolist() == [1.0, 2.0, 3.0]
    assert outcome.total_qalys < outcome.undiscounted_qalys


def test_start_timing_discounts_less_than_end_timing() -> None:
    start = evaluate_strategy(
        _alive_dead_params(rate=0.03, timing="start"),
        _alive_dead_params().strategies[0],
    )
    end = evaluate_strategy(
        _alive_dead_params(rate=0.03, timing="end"),
        _alive_dead_params().strategies[0],
    )
    assert start.total_costs > end.total_costs
    assert start.discounted_costs["medical"] == pytest.approx(90.0 + 81.0 / 1.03 + 72.9 / 1.03**2)


def test_cycle_length_scales_qalys_and_life_years() -> None:
    params = replace(_alive_dead_params(rate=0.0), cycle_length=0.5)
    outcome = evaluate_strategy(params, params.strategies[0])

    assert outcome.total_life_years == pytest.approx(0.5 * 2.439)
    assert outcome.total_qalys == pytest.approx(0.5 * 0.8 * 2.439)
    assert outcome.discounted_costs["medical"] == pytest.approx(243.9)


def test_run_cohort_model_preserves_strategy_order() -> None:
    params = load_cohort_params(FIXTURE_PATH)
    outcomes = run_cohort_model(params)

    assert [outcome.strategy for outcome in outcomes] == ["Usual", "Drug"]
    for outcome in outcomes:
        assert outcome.trace.shape == (params.n_cycles + 1, len(params.states))
        assert np.allclose(outcome.trace.sum(axis=1), 1.0)

    usual, drug = outcomes
    assert drug.total_qalys > usual.total_qalys
    assert drug.total_costs > usual.total_costs


def test_trace_and_cycle_frames() -> None:
    params = _alive_dead_params()
    outcome = evaluate_strategy(params, params.strategies[0])

    traces = trace_frame(outcome, states=params.states)
    assert list(traces.columns) == ["Alive", "Dead"]
    assert traces.index.name == "cycle"
    assert len(traces) == 4
    assert traces.loc[0, "Alive"] == 1.0

    cycles = cycle_frame(outcome)
    assert cycles["cycle"].tolist() == [1, 2, 3]
    assert {"cost_medical", "cost_drug", "qalys", "life_years"} <= set(cycles.columns)

    with pytest.raises(ValueError, match="names given"):
        trace_frame(outcome, states=("Alive",))
