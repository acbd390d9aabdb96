"""Cohort cost-effectiveness workflow built on the Markov and discounting core."""

from cea_engine.cea.cohort import StrategyOutcome, evaluate_strategy, run_cohort_model
from cea_engine.cea.icer import compute_icers, net_monetary_benefit, summarize_outcomes
from cea_engine.cea.psa import acceptability_curve, run_psa

__all__ = [
    "StrategyOutcome",
    "acceptability_curve",
    "compute_icers",
    "evaluate_strategy",
    "net_monetary_benefit",
    "run_cohort_model",
    "run_psa",
    "summarize_outcomes",
]
