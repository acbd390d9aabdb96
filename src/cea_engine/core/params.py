"""Parameter schema and YAML helpers for cohort cost-effectiveness models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from cea_engine.core.discounting import DISCOUNT_TIMINGS


@dataclass(frozen=True)
class StrategyParams:
    """Per-strategy inputs: transitions plus per-state cycle costs and utilities."""

    name: str
    transition_matrix: tuple[tuple[float, ...], ...]
    state_costs: dict[str, tuple[float, ...]]
    state_utilities: tuple[float, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "transition_matrix": [list(row) for row in self.transition_matrix],
            "state_costs": {
                category: list(costs) for category, costs in self.state_costs.items()
            },
            "state_utilities": list(self.state_utilities),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "StrategyParams":
        costs_payload = payload.get("state_costs", {})
        if not isinstance(costs_payload, dict):
            raise ValueError(
                f"state_costs for strategy {payload.get('name')!r} must be a mapping."
            )
        return cls(
            name=str(payload["name"]),
            transition_matrix=tuple(
                tuple(float(value) for value in row)
                for row in payload["transition_matrix"]
            ),
            state_costs={
                str(category): tuple(float(value) for value in costs)
                for category, costs in costs_payload.items()
            },
            state_utilities=tuple(float(value) for value in payload["state_utilities"]),
        )


@dataclass(frozen=True)
class CohortModelParams:
    """Top-level cohort model bundle shared by all strategies."""

    states: tuple[str, ...]
    initial_distribution: tuple[float, ...]
    n_cycles: int
    strategies: tuple[StrategyParams, ...]
    cycle_length: float = 1.0
    discount_rate_costs: float = 0.03
    discount_rate_qalys: float = 0.03
    discount_timing: str = "end"
    dead_states: tuple[str, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        n_states = len(self.states)
        if n_states == 0:
            raise ValueError("At least one health state is required.")
        if len(set(self.states)) != n_states:
            raise ValueError(f"State names must be unique: {list(self.states)}")
        if len(self.initial_distribution) != n_states:
            raise ValueError(
                f"initial_distribution has length {len(self.initial_distribution)}, "
                f"expected {n_states}."
            )
        if self.n_cycles < 0:
            raise ValueError("n_cycles must be non-negative.")
        if self.cycle_length <= 0.0:
            raise ValueError("cycle_length must be positive.")
        if self.discount_timing not in DISCOUNT_TIMINGS:
            raise ValueError(
                f"discount_timing must be one of {DISCOUNT_TIMINGS}, "
                f"got {self.discount_timing!r}."
            )
        unknown_dead = [name for name in self.dead_states if name not in self.states]
        if unknown_dead:
            raise ValueError(f"Unknown dead state(s): {unknown_dead}")
        if not self.strategies:
            raise ValueError("At least one strategy is required.")

        names = [strategy.name for strategy in self.strategies]
        if len(set(names)) != len(names):
            raise ValueError(f"Strategy names must be unique: {names}")
        for strategy in self.strategies:
            _validate_strategy_shape(strategy, n_states=n_states)

    @property
    def strategy_names(self) -> tuple[str, ...]:
        return tuple(strategy.name for strategy in self.strategies)

    def get_strategy(self, name: str) -> StrategyParams:
        for strategy in self.strategies:
            if strategy.name == name:
                return strategy
        raise KeyError(f"Unknown strategy {name!r}; expected one of {self.strategy_names}.")

    def to_dict(self) -> dict[str, Any]:
        """Convert parameter object to a plain dict."""
        payload = asdict(self)
        payload["states"] = list(self.states)
        payload["initial_distribution"] = list(self.initial_distribution)
        payload["dead_states"] = list(self.dead_states)
        payload["strategies"] = [strategy.to_dict() for strategy in self.strategies]
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "CohortModelParams":
        """Create parameter object from a plain dict."""
        strategies = tuple(
            StrategyParams.from_dict(strategy_payload)
            for strategy_payload in payload["strategies"]
        )
        metadata = payload.get("metadata") or {}
        return cls(
            states=tuple(str(name) for name in payload["states"]),
            initial_distribution=tuple(
                float(value) for value in payload["initial_distribution"]
            ),
            n_cycles=_as_int(payload["n_cycles"], name="n_cycles"),
            strategies=strategies,
            cycle_length=float(payload.get("cycle_length", 1.0)),
            discount_rate_costs=float(payload.get("discount_rate_costs", 0.03)),
            discount_rate_qalys=float(payload.get("discount_rate_qalys", 0.03)),
            discount_timing=str(payload.get("discount_timing", "end")),
            dead_states=tuple(str(name) for name in payload.get("dead_states", ())),
            metadata=dict(metadata),
        )


@dataclass(frozen=True)
class PSAParams:
    """Sampling settings for probabilistic sensitivity analysis."""

    n_samples: int = 1000
    seed: int | None = None
    transition_sample_size: float = 500.0
    cost_relative_se: float = 0.2
    utility_se: float = 0.05

    def validate(self) -> None:
        if self.n_samples <= 0:
            raise ValueError("n_samples must be positive.")
        if self.transition_sample_size <= 0.0:
            raise ValueError("transition_sample_size must be positive.")
        if self.cost_relative_se < 0.0:
            raise ValueError("cost_relative_se must be non-negative.")
        if self.utility_se < 0.0:
            raise ValueError("utility_se must be non-negative.")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PSAParams":
        seed = payload.get("seed")
        return cls(
            n_samples=_as_int(payload.get("n_samples", 1000), name="n_samples"),
            seed=None if seed is None else int(seed),
            transition_sample_size=float(payload.get("transition_sample_size", 500.0)),
            cost_relative_se=float(payload.get("cost_relative_se", 0.2)),
            utility_se=float(payload.get("utility_se", 0.05)),
        )


def _as_int(value: Any, name: str) -> int:
    """Coerce a YAML number to int, rejecting non-integral values."""
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}.") from exc
    if isinstance(value, bool) or not number.is_integer():
        raise ValueError(f"{name} must be an integer, got {value!r}.")
    return int(number)


def _validate_strategy_shape(strategy: StrategyParams, n_states: int) -> None:
    matrix = strategy.transition_matrix
    if len(matrix) != n_states or any(len(row) != n_states for row in matrix):
        raise ValueError(
            f"Strategy {strategy.name!r} transition_matrix must be "
            f"{n_states}x{n_states}."
        )
    if len(strategy.state_utilities) != n_states:
        raise ValueError(
            f"Strategy {strategy.name!r} state_utilities has length "
            f"{len(strategy.state_utilities)}, expected {n_states}."
        )
    for category, costs in strategy.state_costs.items():
        if len(costs) != n_states:
            raise ValueError(
                f"Strategy {strategy.name!r} cost category {category!r} has "
                f"length {len(costs)}, expected {n_states}."
            )


def save_cohort_params(params: CohortModelParams, output_path: Path) -> None:
    """Serialize parameters to YAML."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(yaml.safe_dump(params.to_dict(), sort_keys=False))


def load_cohort_params(path: Path) -> CohortModelParams:
    """Load parameters from YAML."""
    if not path.exists():
        raise FileNotFoundError(f"Cohort parameter file not found: {path}")
    payload = yaml.safe_load(path.read_text())
    if not isinstance(payload, dict):
        raise ValueError("Expected a mapping in cohort parameter YAML.")
    return CohortModelParams.from_dict(payload)


def load_psa_params(path: Path) -> PSAParams:
    """Load PSA settings from YAML."""
    payload = yaml.safe_load(path.read_text())
    if payload is None:
        return PSAParams()
    if not isinstance(payload, dict):
        raise ValueError("Expected a mapping in PSA parameter YAML.")
    return PSAParams.from_dict(payload)
