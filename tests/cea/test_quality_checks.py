"""Tests for cohort model quality checks."""

from __future__ import annotations

from dataclasses import replace

from cea_engine.cea.cohort import run_cohort_model
from cea_engine.cea.quality_checks import run_quality_checks


def _checks_by_name(report) -> dict[str, bool]:
    return {check.name: check.passed for check in report.hard_checks}


def test_valid_model_passes_all_checks(small_params) -> None:
    params = small_params
    report = run_quality_checks(params=params, outcomes=run_cohort_model(params))

    assert report.passed is True
    assert report.hard_failures == ()
    assert "trace_mass_conservation" in _checks_by_name(report)
    payload = report.to_dict()
    assert payload["passed"] is True
    assert len(payload["hard_checks"]) == 5


def test_leaky_transition_matrix_is_reported_not_fixed(small_params) -> None:
    params = small_params
    leaky = replace(
        params.strategies[0],
        transition_matrix=((0.80, 0.15, 0.00), (0.00, 0.80, 0.20), (0.00, 0.00, 1.00)),
    )
    params = replace(params, strategies=(leaky, params.strategies[1]))
    outcomes = run_cohort_model(params)
    report = run_quality_checks(params=params, outcomes=outcomes)

    checks = _checks_by_name(report)
    assert checks["transition_matrices"] is False
    assert checks["trace_mass_conservation"] is False
    assert report.passed is False
    assert outcomes[0].trace[-1].sum() < 1.0
    failure = next(c for c in report.hard_failures if c.name == "transition_matrices")
    assert "Usual" in failure.details


def test_bad_initial_distribution_and_utilities_fail(small_params) -> None:
    params = small_params
    params = replace(
        params,
        initial_distribution=(0.5, 0.0, 0.0),
        strategies=(replace(params.strategies[0], state_utilities=(1.2, 0.6, 0.0)),),
    )
    checks = _checks_by_name(run_quality_checks(params=params))

    assert checks["initial_distribution"] is False
    assert checks["state_utilities_range"] is False
    assert checks["transition_matrices"] is True
    assert "trace_mass_conservation" not in checks
