"""Deterministic evaluation of multi-strategy cohort Markov models."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from cea_engine.core.discounting import cycle_times, pv
from cea_engine.core.markov import sim_markov_chain
from cea_engine.core.params import CohortModelParams, StrategyParams


@dataclass(frozen=True)
class StrategyOutcome:
    """Trace and per-cycle / total outcomes for one strategy.

    Per-cycle arrays cover cycles ``1..n_cycles`` (trace rows ``1..n``).
    """

    strategy: str
    trace: np.ndarray
    times: np.ndarray
    cycle_costs: dict[str, np.ndarray]
    cycle_qalys: np.ndarray
    cycle_life_years: np.ndarray
    discounted_costs: dict[str, float]
    total_costs: float
    total_qalys: float
    total_life_years: float

    @property
    def undiscounted_costs(self) -> float:
        return float(sum(costs.sum() for costs in self.cycle_costs.values()))

    @property
    def undiscounted_qalys(self) -> float:
        return float(self.cycle_qalys.sum())


def evaluate_strategy(
    params: CohortModelParams,
    strategy: StrategyParams,
) -> StrategyOutcome:
    """Simulate one strategy and aggregate discounted costs and QALYs."""
    trace = sim_markov_chain(
        x0=params.initial_distribution,
        transition_matrix=strategy.transition_matrix,
        n_cycles=params.n_cycles,
    )
    occupancy = trace[1:]
    times = cycle_times(
        n_cycles=params.n_cycles,
        cycle_length=params.cycle_length,
        timing=params.discount_timing,
    )

    cycle_costs: dict[str, np.ndarray] = {}
    discounted_costs: dict[str, float] = {}
    for category, state_costs in strategy.state_costs.items():
        per_cycle = occupancy @ np.asarray(state_costs, dtype=np.float64)
        cycle_costs[category] = per_cycle
        discounted_costs[category] = float(
            pv(per_cycle, rate=params.discount_rate_costs, times=times).sum()
        )

    utilities = np.asarray(strategy.state_utilities, dtype=np.float64)
    cycle_qalys = (occupancy @ utilities) * params.cycle_length
    total_qalys = float(pv(cycle_qalys, rate=params.discount_rate_qalys, times=times).sum())

    alive = np.array([name not in params.dead_states for name in params.states], dtype=np.float64)
    cycle_life_years = (occupancy @ alive) * params.cycle_length

    return StrategyOutcome(
        strategy=strategy.name,
        trace=trace,
        times=times,
        cycle_costs=cycle_costs,
        cycle_qalys=cycle_qalys,
        cycle_life_years=cycle_life_years,
        discounted_costs=discounted_costs,
        total_costs=float(sum(discounted_costs.values())),
        total_qalys=total_qalys,
        total_life_years=float(cycle_life_years.sum()),
    )


def run_cohort_model(params: CohortModelParams) -> tuple[StrategyOutcome, ...]:
    """Evaluate every strategy in configuration order."""
    return tuple(evaluate_strategy(params, strategy) for strategy in params.strategies)


def trace_frame(outcome: StrategyOutcome, states: tuple[str, ...]) -> pd.DataFrame:
    """Markov trace as a DataFrame indexed by cycle, one column per state."""
    if outcome.trace.shape[1] != len(states):
        raise ValueError(
            f"Trace has {outcome.trace.shape[1]} states but {len(states)} names given."
        )
    frame = pd.DataFrame(outcome.trace, columns=list(states))
    frame.index.name = "cycle"
    return frame


def cycle_frame(outcome: StrategyOutcome) -> pd.DataFrame:
    """Undiscounted per-cycle costs, QALYs and life-years for one strategy."""
    frame = pd.DataFrame(
        {
            "cycle": np.arange(1, len(outcome.times) + 1),
            "time": outcome.times,
        }
    )
    for category, costs in outcome.cycle_costs.items():
        frame[f"cost_{category}"] = costs
    frame["qalys"] = outcome.cycle_qalys
    frame["life_years"] = outcome.cycle_life_years
    return frame
