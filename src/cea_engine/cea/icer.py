"""Incremental cost-effectiveness analysis across strategies."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
import pandas as pd

from cea_engine.cea.cohort import StrategyOutcome

STATUS_REFERENCE = "reference"
STATUS_NON_DOMINATED = "non-dominated"
STATUS_DOMINATED = "dominated"
STATUS_EXTENDEDLY_DOMINATED = "extendedly dominated"


def summarize_outcomes(outcomes: Iterable[StrategyOutcome]) -> pd.DataFrame:
    """Build a one-row-per-strategy table of discounted totals."""
    rows = [
        {
            "strategy": outcome.strategy,
            "costs": outcome.total_costs,
            "qalys": outcome.total_qalys,
            "life_years": outcome.total_life_years,
        }
        for outcome in outcomes
    ]
    return pd.DataFrame(rows, columns=["strategy", "costs", "qalys", "life_years"])


def incremental_vs_reference(summary: pd.DataFrame, reference: str) -> pd.DataFrame:
    """Incremental costs, QALYs and ICER of each strategy against ``reference``.

    The ICER is NaN for the reference itself and whenever incremental QALYs
    are zero.
    """
    _require_columns(summary)
    matches = summary.loc[summary["strategy"] == reference]
    if matches.empty:
        raise ValueError(
            f"Reference strategy {reference!r} not found; "
            f"available: {summary['strategy'].tolist()}"
        )
    ref_costs = float(matches["costs"].iloc[0])
    ref_qalys = float(matches["qalys"].iloc[0])

    out = summary.copy().reset_index(drop=True)
    out["incremental_costs"] = out["costs"] - ref_costs
    out["incremental_qalys"] = out["qalys"] - ref_qalys
    with np.errstate(divide="ignore", invalid="ignore"):
        icer = out["incremental_costs"] / out["incremental_qalys"]
    out["icer"] = icer.where(out["incremental_qalys"] != 0.0, np.nan)
    return out


def compute_icers(summary: pd.DataFrame) -> pd.DataFrame:
    """Compute ICERs along the efficiency frontier.

    Strategies are ordered by cost. Strictly dominated strategies (no cheaper
    and no more effective than another) and extendedly dominated strategies
    (ICER above that of the next more effective frontier strategy) are
    flagged and excluded from the incremental comparisons.

    Returns:
        Copy of ``summary`` sorted by cost with ``status``,
        ``incremental_costs``, ``incremental_qalys`` and ``icer`` columns.
        Incremental values are relative to the previous frontier strategy
        and are NaN off the frontier and for the reference.
    """
    _require_columns(summary)
    df = (
        summary.copy()
        .sort_values(by=["costs", "qalys"], ascending=[True, False], kind="mergesort")
        .reset_index(drop=True)
    )
    costs = df["costs"].to_numpy(dtype=np.float64)
    qalys = df["qalys"].to_numpy(dtype=np.float64)
    status = [STATUS_NON_DOMINATED] * len(df)

    for i in range(len(df)):
        for j in range(len(df)):
            if i == j:
                continue
            no_worse = costs[j] <= costs[i] and qalys[j] >= qalys[i]
            better = costs[j] < costs[i] or qalys[j] > qalys[i] or j < i
            if no_worse and better:
                status[i] = STATUS_DOMINATED
                break

    frontier = [idx for idx in range(len(df)) if status[idx] != STATUS_DOMINATED]
    removed = True
    while removed and len(frontier) > 2:
        removed = False
        ratios = [
            (costs[frontier[k]] - costs[frontier[k - 1]])
            / (qalys[frontier[k]] - qalys[frontier[k - 1]])
            for k in range(1, len(frontier))
        ]
        for k in range(len(ratios) - 1):
            if ratios[k] > ratios[k + 1]:
                status[frontier[k + 1]] = STATUS_EXTENDEDLY_DOMINATED
                del frontier[k + 1]
                removed = True
                break

    incremental_costs = np.full(len(df), np.nan)
    incremental_qalys = np.full(len(df), np.nan)
    icer = np.full(len(df), np.nan)
    if frontier:
        status[frontier[0]] = STATUS_REFERENCE
    for prev, curr in zip(frontier, frontier[1:]):
        incremental_costs[curr] = costs[curr] - costs[prev]
        incremental_qalys[curr] = qalys[curr] - qalys[prev]
        icer[curr] = incremental_costs[curr] / incremental_qalys[curr]

    df["status"] = status
    df["incremental_costs"] = incremental_costs
    df["incremental_qalys"] = incremental_qalys
    df["icer"] = icer
    return df


def net_monetary_benefit(costs, qalys, wtp):
    """Net monetary benefit ``wtp * qalys - costs`` with NumPy broadcasting."""
    return np.asarray(wtp, dtype=np.float64) * np.asarray(qalys, dtype=np.float64) - np.asarray(
        costs, dtype=np.float64
    )


def _require_columns(summary: pd.DataFrame) -> None:
    missing = {"strategy", "costs", "qalys"} - set(summary.columns)
    if missing:
        raise ValueError(f"Summary table is missing columns: {sorted(missing)}")
