"""Quality checks for cohort model inputs and simulated traces."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from cea_engine.cea.cohort import StrategyOutcome
from cea_engine.core.markov import check_occupancy_vector, check_transition_matrix
from cea_engine.core.params import CohortModelParams


@dataclass(frozen=True)
class CheckResult:
    """One quality-check result."""

    name: str
    passed: bool
    details: str
    metric: float | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "name": self.name,
            "passed": self.passed,
            "details": self.details,
        }
        if self.metric is not None:
            payload["metric"] = self.metric
        return payload


@dataclass(frozen=True)
class QualityReport:
    """Aggregated hard checks."""

    hard_checks: tuple[CheckResult, ...]

    @property
    def hard_failures(self) -> tuple[CheckResult, ...]:
        return tuple(check for check in self.hard_checks if not check.passed)

    @property
    def passed(self) -> bool:
        return not self.hard_failures

    def to_dict(self) -> dict[str, object]:
        return {
            "hard_checks": [check.to_dict() for check in self.hard_checks],
            "hard_failures": [check.to_dict() for check in self.hard_failures],
            "passed": self.passed,
        }


def run_quality_checks(
    *,
    params: CohortModelParams,
    outcomes: tuple[StrategyOutcome, ...] = (),
    atol: float = 1e-9,
) -> QualityReport:
    """Run hard checks against model inputs and, if given, simulated outcomes."""
    checks = [
        _check_initial_distribution(params=params, atol=atol),
        _check_transition_matrices(params=params, atol=atol),
        _check_state_costs(params=params),
        _check_state_utilities(params=params),
    ]
    if outcomes:
        checks.append(_check_trace_mass(outcomes=outcomes, atol=atol))
    return QualityReport(hard_checks=tuple(checks))


def _check_initial_distribution(*, params: CohortModelParams, atol: float) -> CheckResult:
    try:
        check_occupancy_vector(params.initial_distribution, atol=atol)
    except ValueError as exc:
        return CheckResult(name="initial_distribution", passed=False, details=str(exc))
    return CheckResult(
        name="initial_distribution",
        passed=True,
        details="Initial distribution is non-negative and sums to 1.",
    )


def _check_transition_matrices(*, params: CohortModelParams, atol: float) -> CheckResult:
    failures = []
    for strategy in params.strategies:
        try:
            check_transition_matrix(strategy.transition_matrix, atol=atol)
        except ValueError as exc:
            failures.append(f"{strategy.name}: {exc}")
    if failures:
        return CheckResult(
            name="transition_matrices",
            passed=False,
            details="; ".join(failures),
            metric=float(len(failures)),
        )
    return CheckResult(
        name="transition_matrices",
        passed=True,
        details=f"All {len(params.strategies)} transition matrices are row-stochastic.",
        metric=0.0,
    )


def _check_state_costs(*, params: CohortModelParams) -> CheckResult:
    bad = [
        f"{strategy.name}/{category}"
        for strategy in params.strategies
        for category, costs in strategy.state_costs.items()
        if not np.all(np.isfinite(costs))
    ]
    return CheckResult(
        name="state_costs_finite",
        passed=not bad,
        details=f"Non-finite costs in: {', '.join(bad)}" if bad else "All state costs are finite.",
    )


def _check_state_utilities(*, params: CohortModelParams) -> CheckResult:
    worst = max(
        max(strategy.state_utilities, default=0.0) for strategy in params.strategies
    )
    finite = all(np.all(np.isfinite(strategy.state_utilities)) for strategy in params.strategies)
    passed = finite and worst <= 1.0
    return CheckResult(
        name="state_utilities_range",
        passed=passed,
        details=(
            "All utilities are finite and at most 1."
            if passed
            else f"Utilities must be finite and at most 1; max={worst}."
        ),
        metric=float(worst),
    )


def _check_trace_mass(*, outcomes: tuple[StrategyOutcome, ...], atol: float) -> CheckResult:
    max_error = 0.0
    for outcome in outcomes:
        row_sums = outcome.trace.sum(axis=1)
        max_error = max(max_error, float(np.max(np.abs(row_sums - 1.0))))
    passed = max_error <= max(atol, 1e-8)
    return CheckResult(
        name="trace_mass_conservation",
        passed=passed,
        details=f"Max |row sum - 1| across traces: {max_error:.3e}",
        metric=max_error,
    )
