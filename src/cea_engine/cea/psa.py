"""Probabilistic sensitivity analysis for cohort Markov models."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

import numpy as np
import pandas as pd

from cea_engine.cea.cohort import evaluate_strategy
from cea_engine.cea.icer import net_monetary_benefit
from cea_engine.core.params import CohortModelParams, PSAParams, StrategyParams


def gamma_from_moments(mean: float, se: float) -> tuple[float, float]:
    """Return ``(shape, scale)`` of a gamma distribution with the given moments."""
    if mean <= 0.0:
        raise ValueError(f"Gamma mean must be positive, got {mean}.")
    if se <= 0.0:
        raise ValueError(f"Gamma standard error must be positive, got {se}.")
    variance = se**2
    return mean**2 / variance, variance / mean


def beta_from_moments(mean: float, se: float) -> tuple[float, float]:
    """Return ``(alpha, beta)`` of a beta distribution with the given moments."""
    if not (0.0 < mean < 1.0):
        raise ValueError(f"Beta mean must be in (0, 1), got {mean}.")
    if se <= 0.0:
        raise ValueError(f"Beta standard error must be positive, got {se}.")
    variance = se**2
    if variance >= mean * (1.0 - mean):
        raise ValueError(
            f"Beta standard error {se} is too large for mean {mean}; "
            f"variance must be below {mean * (1.0 - mean):.6g}."
        )
    common = mean * (1.0 - mean) / variance - 1.0
    return mean * common, (1.0 - mean) * common


def sample_strategy(
    strategy: StrategyParams,
    psa: PSAParams,
    rng: np.random.Generator,
) -> StrategyParams:
    """Draw one parameter set for ``strategy``.

    Transition rows are Dirichlet around the point estimate and costs gamma.
    Negative costs keep their sign and have a gamma-distributed magnitude.
    Utilities in (0, 1) are beta; negative utilities are sampled as a gamma
    disutility ``1 - u``. Structural zeros, absorbing rows, zero costs and
    utilities of exactly 0 or 1 (or above 1) are kept fixed.
    """
    rows = []
    for row in strategy.transition_matrix:
        probs = np.asarray(row, dtype=np.float64)
        positive = probs > 0.0
        sampled = np.zeros_like(probs)
        if positive.sum() <= 1:
            sampled[positive] = 1.0
        else:
            sampled[positive] = rng.dirichlet(probs[positive] * psa.transition_sample_size)
        rows.append(tuple(float(value) for value in sampled))

    state_costs: dict[str, tuple[float, ...]] = {}
    for category, costs in strategy.state_costs.items():
        drawn = []
        for cost in costs:
            if cost == 0.0 or psa.cost_relative_se == 0.0:
                drawn.append(float(cost))
                continue
            magnitude = abs(cost)
            shape, scale = gamma_from_moments(magnitude, magnitude * psa.cost_relative_se)
            drawn.append(float(np.sign(cost) * rng.gamma(shape, scale)))
        state_costs[category] = tuple(drawn)

    utilities = []
    for utility in strategy.state_utilities:
        if utility in (0.0, 1.0) or utility > 1.0 or psa.utility_se == 0.0:
            utilities.append(float(utility))
        elif utility < 0.0:
            shape, scale = gamma_from_moments(1.0 - utility, psa.utility_se)
            utilities.append(float(1.0 - rng.gamma(shape, scale)))
        else:
            alpha, beta = beta_from_moments(utility, psa.utility_se)
            utilities.append(float(rng.beta(alpha, beta)))

    return replace(
        strategy,
        transition_matrix=tuple(rows),
        state_costs=state_costs,
        state_utilities=tuple(utilities),
    )


def run_psa(
    params: CohortModelParams,
    psa: PSAParams,
    show_progress: bool = False,
) -> pd.DataFrame:
    """Run a Monte Carlo PSA over all strategies.

    Every strategy in a draw is sampled from the same random stream so that
    inputs shared between strategies receive the same draw.

    Returns:
        Long DataFrame with columns ``sample``, ``strategy``, ``costs``,
        ``qalys``.
    """
    psa.validate()
    check_psa_feasible(params, psa)
    seeds = np.random.SeedSequence(psa.seed).spawn(psa.n_samples)

    iterator = range(psa.n_samples)
    progress = iterator
    if show_progress:
        from tqdm.auto import tqdm

        progress = tqdm(iterator, desc="PSA", dynamic_ncols=True, leave=False)

    rows = []
    try:
        for sample_idx in progress:
            for strategy in params.strategies:
                rng = np.random.default_rng(seeds[sample_idx])
                drawn = sample_strategy(strategy, psa, rng)
                outcome = evaluate_strategy(params, drawn)
                rows.append(
                    {
                        "sample": sample_idx,
                        "strategy": strategy.name,
                        "costs": outcome.total_costs,
                        "qalys": outcome.total_qalys,
                    }
                )
    finally:
        if show_progress:
            progress.close()

    return pd.DataFrame(rows, columns=["sample", "strategy", "costs", "qalys"])


def check_psa_feasible(params: CohortModelParams, psa: PSAParams) -> None:
    """Raise before sampling if ``utility_se`` cannot fit a beta distribution.

    Every utility strictly inside (0, 1) needs ``utility_se ** 2 < u * (1 - u)``.
    """
    if psa.utility_se == 0.0:
        return
    variance = psa.utility_se**2
    for strategy in params.strategies:
        for state, utility in zip(params.states, strategy.state_utilities):
            if 0.0 < utility < 1.0 and variance >= utility * (1.0 - utility):
                raise ValueError(
                    f"utility_se={psa.utility_se} is too large for utility {utility} "
                    f"of state {state!r} in strategy {strategy.name!r}."
                )


def acceptability_curve(samples: pd.DataFrame, wtp_grid: Sequence[float]) -> pd.DataFrame:
    """Probability that each strategy maximizes net monetary benefit.

    Returns:
        Long DataFrame with columns ``wtp``, ``strategy``, ``probability``.
    """
    strategies, costs, qalys = _pivot_samples(samples)
    rows = []
    for wtp in wtp_grid:
        nmb = net_monetary_benefit(costs, qalys, wtp)
        best = np.argmax(nmb, axis=1)
        counts = np.bincount(best, minlength=len(strategies))
        for idx, name in enumerate(strategies):
            rows.append(
                {
                    "wtp": float(wtp),
                    "strategy": name,
                    "probability": counts[idx] / nmb.shape[0],
                }
            )
    return pd.DataFrame(rows, columns=["wtp", "strategy", "probability"])


def expected_value_of_perfect_information(
    samples: pd.DataFrame,
    wtp_grid: Sequence[float],
) -> pd.DataFrame:
    """Per-person EVPI at each willingness-to-pay threshold."""
    _, costs, qalys = _pivot_samples(samples)
    rows = []
    for wtp in wtp_grid:
        nmb = net_monetary_benefit(costs, qalys, wtp)
        evpi = float(nmb.max(axis=1).mean() - nmb.mean(axis=0).max())
        rows.append({"wtp": float(wtp), "evpi": max(evpi, 0.0)})
    return pd.DataFrame(rows, columns=["wtp", "evpi"])


def _pivot_samples(samples: pd.DataFrame) -> tuple[list[str], np.ndarray, np.ndarray]:
    missing = {"sample", "strategy", "costs", "qalys"} - set(samples.columns)
    if missing:
        raise ValueError(f"PSA samples are missing columns: {sorted(missing)}")
    if samples.empty:
        raise ValueError("PSA samples are empty.")

    strategies = list(dict.fromkeys(samples["strategy"]))
    costs = samples.pivot(index="sample", columns="strategy", values="costs")[strategies]
    qalys = samples.pivot(index="sample", columns="strategy", values="qalys")[strategies]
    if costs.isna().to_numpy().any() or qalys.isna().to_numpy().any():
        raise ValueError("Every sample must contain every strategy.")
    return strategies, costs.to_numpy(dtype=np.float64), qalys.to_numpy(dtype=np.float64)
